from datetime import date

import pytest
from fastapi.testclient import TestClient

from app.main import create_app

from conftest import PASSWORD, USERNAME


@pytest.fixture
def make_client(backend, tmp_path):
    clients = []

    def build(today=date(2024, 3, 15)):
        app = create_app(transport=backend.transport(), log_dir=str(tmp_path), today=lambda: today)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield build
    for client in clients:
        client.__exit__(None, None, None)


def _login(client):
    response = client.post("/login", data={"username": USERNAME, "password": PASSWORD}, follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/calendario"


def test_pages_require_login(make_client):
    client = make_client()
    response = client.get("/calendario", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/login"
    assert client.get("/login").status_code == 200
    assert client.get("/health").json() == {"status": 1, "message": "success", "data": {"status": "ok"}}


def test_api_requires_login(make_client):
    response = make_client().get("/api/v1/calendar/view")
    assert response.status_code == 401
    assert response.json()["status"] == 0


def test_wrong_password_shows_error(make_client):
    client = make_client()
    response = client.post("/login", data={"username": USERNAME, "password": "mala"})
    assert response.status_code == 401
    assert "Credenciales incorrectas" in response.text


def test_month_page_after_login(make_client, backend):
    client = make_client()
    _login(client)
    response = client.get("/calendario")
    assert response.status_code == 200
    assert "marzo 2024" in response.text
    assert "09:00 García / Tornado" in response.text
    assert "3 clases" in response.text
    assert all(c.authorization is not None for c in backend.calls_to("GET"))


def test_day_cell_click_then_submit_creates_class(make_client, backend):
    client = make_client()
    _login(client)
    client.post("/calendario/view", data={"view_mode": "day"})
    client.post("/calendario/dialog/create", data={"caballoId": "7", "hora": "10:30"})
    page = client.get("/calendario")
    assert "Nueva Clase" in page.text
    assert '<option value="7" selected>' in page.text

    response = client.post(
        "/calendario/dialog/submit",
        data={
            "hora": "10:30",
            "caballoId": "7",
            "alumnoId": "3",
            "instructorId": "2",
            "especialidad": "EQUITACION",
        },
    )
    assert response.status_code == 200
    assert "Clase creada correctamente" in response.text
    (post,) = backend.calls_to("POST", "/clases")
    assert post.body == {
        "dia": "2024-03-15",
        "hora": "10:30",
        "caballoId": 7,
        "alumnoId": 3,
        "instructorId": 2,
        "especialidad": "EQUITACION",
        "estado": "PROGRAMADA",
    }


def test_popover_status_change(make_client, backend):
    client = make_client()
    _login(client)
    client.post("/calendario/popover/month/open", data={"key": "2024-03-15-2"})
    page = client.get("/calendario")
    assert "Trae casco" in page.text

    page = client.post("/calendario/clases/2/estado", data={"estado": "COMPLETADA"})
    assert "Clase actualizada correctamente" in page.text
    assert "Trae casco" not in page.text
    (patch,) = backend.calls_to("PATCH")
    assert (patch.path, patch.body) == ("/clases/2/estado", {"estado": "COMPLETADA"})


def test_cancel_day_from_toolbar(make_client, backend):
    client = make_client(today=date(2024, 3, 20))
    _login(client)
    client.post("/calendario/view", data={"view_mode": "day"})
    page = client.post("/calendario/dialogs/cancel-day/open")
    assert "Cancelar día (2)" in page.text

    page = client.post("/calendario/cancelar-dia", data={"motivo": "Lluvia"})
    assert "2 clases canceladas correctamente" in page.text
    patches = backend.calls_to("PATCH")
    assert sorted(c.path for c in patches) == ["/clases/10/estado", "/clases/11/estado"]
    assert all(c.body == {"estado": "CANCELADA", "observaciones": "Lluvia"} for c in patches)


def test_copy_week_without_dates(make_client, backend):
    client = make_client()
    _login(client)
    page = client.post("/calendario/copiar-semana", data={"diaInicioOrigen": "2024-03-11"})
    assert "Ambas fechas son obligatorias" in page.text
    assert backend.mutations == []


def test_export_download(make_client):
    client = make_client()
    _login(client)
    client.post("/calendario/view", data={"view_mode": "day"})
    response = client.get("/calendario/export")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert "Clases_2024-03-15.xlsx" in response.headers["content-disposition"]
    assert response.content[:2] == b"PK"


def test_navigation_and_json_view(make_client):
    client = make_client()
    _login(client)
    client.post("/calendario/navigate", data={"direction": "next"})
    body = client.get("/api/v1/calendar/view").json()
    assert body["status"] == 1
    data = body["data"]
    assert data["anchor"] == "2024-04-15"
    assert data["view_mode"] == "month"
    assert data["title"] == "abril 2024"
    assert data["month"]["weeks"][0][0]["date"] == "2024-04-01"


def test_expired_session_redirects_to_login(make_client, backend):
    client = make_client()
    _login(client)
    backend.fail("GET", "/clases/detalles", 401)
    response = client.get("/calendario", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/login"
    # credential was dropped: still logged out once the backend recovers
    backend.failures.clear()
    response = client.get("/calendario", follow_redirects=False)
    assert response.headers["location"] == "/login"


def test_logout(make_client, backend):
    client = make_client()
    _login(client)
    response = client.post("/logout", follow_redirects=False)
    assert response.headers["location"] == "/login"
    assert backend.calls_to("POST", "/auth/logout")
    assert client.get("/calendario", follow_redirects=False).status_code == 303
