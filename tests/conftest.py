"""Shared fixtures: a fake riding-school backend served through httpx.MockTransport."""

import base64
import json
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from app.schemas.classes import DetailedClass, Horse, Instructor, Student
from app.services.backend_client import RidingSchoolClient
from app.services.query_cache import QueryCache
from app.services.resource_directory import ResourceDirectory
from app.services.scheduling_controller import SchedulingController

BASE_URL = "http://backend.test/api/v1"
API_PREFIX = "/api/v1"

USERNAME = "admin"
PASSWORD = "secreto"
CREDENTIALS = base64.b64encode(f"{USERNAME}:{PASSWORD}".encode()).decode()

STUDENTS = [
    {"id": 1, "nombre": "Ana", "apellido": "García", "activo": True},
    {"id": 2, "nombre": "Bruno", "apellido": "López Díaz", "activo": True},
    {"id": 3, "nombre": "Carla", "apellido": "Pérez", "activo": True},
]

INSTRUCTORS = [
    {"id": 1, "nombre": "Laura", "apellido": "Martínez", "activo": True},
    {"id": 2, "nombre": "Diego", "apellido": "Sosa", "activo": True},
    {"id": 3, "nombre": "Marta", "apellido": "Ríos", "activo": False},
]

HORSES = [
    {"id": 7, "nombre": "Tornado", "tipoCaballo": "ESCUELA", "disponible": True},
    {"id": 4, "nombre": "Luna Blanca", "tipoCaballo": "PRIVADO", "disponible": True, "alumnoId": 2},
    {"id": 5, "nombre": "canela", "tipoCaballo": "ESCUELA", "disponible": False},
]


def clase(
    id: int,
    dia: str,
    hora: str,
    estado: str = "PROGRAMADA",
    alumno: int = 1,
    instructor: int = 1,
    caballo: int = 7,
    especialidad: str = "EQUITACION",
    observaciones: Optional[str] = None,
) -> Dict[str, Any]:
    """A class as the backend serializes it."""
    data: Dict[str, Any] = {
        "id": id,
        "dia": dia,
        "hora": hora,
        "estado": estado,
        "alumnoId": alumno,
        "instructorId": instructor,
        "caballoId": caballo,
        "especialidad": especialidad,
    }
    if observaciones is not None:
        data["observaciones"] = observaciones
    return data


CLASSES = [
    clase(1, "2024-03-15", "09:00:00", estado="ACA", alumno=1, caballo=7),
    clase(2, "2024-03-15", "10:30:00", alumno=2, caballo=4, observaciones="Trae casco"),
    clase(3, "2024-03-15", "08:30:00", estado="EN_CURSO", alumno=3, instructor=2, caballo=5),
    # Bulk-cancel day: two cancelable, one COMPLETADA, one CANCELADA
    clase(10, "2024-03-20", "09:00", alumno=1, caballo=7),
    clase(11, "2024-03-20", "10:00", alumno=2, instructor=2, caballo=4),
    clase(12, "2024-03-20", "11:00", estado="COMPLETADA", alumno=3, caballo=5),
    clase(13, "2024-03-20", "12:00", estado="CANCELADA", alumno=1, caballo=7),
]


@dataclass
class RecordedCall:
    method: str
    path: str
    body: Any
    authorization: Optional[str]


class FakeBackend:
    """
    In-memory stand-in for the REST backend.

    GET lists serve the fixture data; mutations answer 200 with an empty
    JSON object unless a (method, path) failure was registered.
    """

    def __init__(self) -> None:
        self.classes: List[Dict[str, Any]] = [dict(c) for c in CLASSES]
        self.students = list(STUDENTS)
        self.instructors = list(INSTRUCTORS)
        self.horses = list(HORSES)
        self.calls: List[RecordedCall] = []
        self.failures: Dict[Tuple[str, str], Tuple[int, Any]] = {}
        self.success_bodies: Dict[Tuple[str, str], Any] = {}

    def fail(self, method: str, path: str, status: int, body: Any = None) -> None:
        self.failures[(method, path)] = (status, body)

    def succeed_with(self, method: str, path: str, body: Any) -> None:
        self.success_bodies[(method, path)] = body

    def calls_to(self, method: str, prefix: str = "") -> List[RecordedCall]:
        return [c for c in self.calls if c.method == method and c.path.startswith(prefix)]

    @property
    def mutations(self) -> List[RecordedCall]:
        return [c for c in self.calls if c.method != "GET" and not c.path.startswith("/auth")]

    def _response(self, status: int, body: Any) -> httpx.Response:
        if body is None:
            return httpx.Response(status)
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith(API_PREFIX):
            path = path[len(API_PREFIX):]
        body = json.loads(request.content) if request.content else None
        self.calls.append(
            RecordedCall(request.method, path, body, request.headers.get("authorization"))
        )

        failure = self.failures.get((request.method, path))
        if failure is not None:
            return self._response(*failure)

        if request.method == "POST" and path == "/auth/login":
            if request.headers.get("authorization") == f"Basic {CREDENTIALS}":
                return httpx.Response(200, json={"username": USERNAME, "rol": "ADMIN"})
            return httpx.Response(401, text="")
        if request.method == "POST" and path == "/auth/logout":
            return httpx.Response(200)

        if request.method == "GET":
            lists = {
                "/clases/detalles": self.classes,
                "/alumnos": self.students,
                "/instructores": self.instructors,
                "/caballos": self.horses,
            }
            if path in lists:
                return httpx.Response(200, json=lists[path])
            return httpx.Response(404, json={"mensaje": "No encontrado"})

        return self._response(200, self.success_bodies.get((request.method, path), {}))

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=BASE_URL, transport=self.transport())


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def make_controller(backend: FakeBackend) -> Callable[..., SchedulingController]:
    """
    Build a controller over the fake backend. Call inside the running event
    loop; today defaults to 2024-03-15.
    """

    def build(
        anchor: Optional[date] = None,
        today: date = date(2024, 3, 15),
        cache: Optional[QueryCache] = None,
        on_unauthorized: Optional[Callable[[], None]] = None,
    ) -> SchedulingController:
        client = RidingSchoolClient(
            backend.http_client(),
            credentials=CREDENTIALS,
            on_unauthorized=on_unauthorized,
        )
        return SchedulingController(
            client,
            cache or QueryCache(),
            today=lambda: today,
            anchor=anchor,
        )

    return build


@pytest.fixture
def directory() -> ResourceDirectory:
    return ResourceDirectory(
        [Student.model_validate(s) for s in STUDENTS],
        [Instructor.model_validate(i) for i in INSTRUCTORS],
        [Horse.model_validate(h) for h in HORSES],
    )


@pytest.fixture
def classes() -> List[DetailedClass]:
    return [DetailedClass.model_validate(c) for c in CLASSES]


@pytest.fixture
def make_class() -> Callable[..., Dict[str, Any]]:
    return clase
