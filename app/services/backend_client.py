"""
Riding-school REST backend client (`/api/v1`).

Every call carries the session's Basic-Auth credential. Response handling is
uniform:
- 401: the session credential is dropped and SessionExpiredError is raised.
- other non-2xx: BackendAPIError with the backend's `errores` / `mensaje` /
  `error` text, else "Error {status}".
- 2xx: JSON body (None when empty) plus the optional `mensaje` / `message`
  to show as a success notification.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import httpx
from pydantic import TypeAdapter

from app.core.config import Settings, get_settings
from app.core.constants import ERR_BAD_CREDENTIALS
from app.core.enums import ClassStatus
from app.core.session_store import encode_credentials
from app.schemas.classes import DetailedClass, Horse, Instructor, Student

logger = logging.getLogger(__name__)

_classes_adapter = TypeAdapter(List[DetailedClass])
_students_adapter = TypeAdapter(List[Student])
_instructors_adapter = TypeAdapter(List[Instructor])
_horses_adapter = TypeAdapter(List[Horse])


class BackendAPIError(Exception):
    """Raised when a backend request fails (non-2xx or transport error)."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body


class SessionExpiredError(BackendAPIError):
    """Backend answered 401; the caller must send the user back to the login screen."""


@dataclass
class ApiResult:
    """Parsed 2xx response."""

    data: Any = None
    message: Optional[str] = None


def build_http_client(settings: Optional[Settings] = None, **kwargs: Any) -> httpx.AsyncClient:
    """Shared AsyncClient rooted at BACKEND_API_BASE_URL. kwargs go to httpx (e.g. transport in tests)."""
    s = settings or get_settings()
    return httpx.AsyncClient(
        base_url=s.BACKEND_API_BASE_URL.rstrip("/"),
        timeout=s.BACKEND_TIMEOUT_SECONDS,
        **kwargs,
    )


def _json_or_none(resp: httpx.Response) -> Any:
    """Decode the body as JSON; empty or non-JSON bodies become None."""
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return None


def error_message_from_response(resp: httpx.Response) -> str:
    """
    Best message for a failed response.

    Field validation errors (`errores`: {campo: texto}) are joined one per line;
    otherwise `mensaje`, then `error`, then the generic "Error {status}".
    """
    body = _json_or_none(resp)
    if isinstance(body, dict):
        errores = body.get("errores")
        if isinstance(errores, dict) and errores:
            return "\n".join(str(v) for v in errores.values())
        msg = body.get("mensaje") or body.get("error")
        if msg:
            return str(msg)
    return f"Error {resp.status_code}"


def success_message_from_data(data: Any) -> Optional[str]:
    """Optional success text sent by the backend on 2xx."""
    if isinstance(data, dict):
        msg = data.get("mensaje") or data.get("message")
        if msg:
            return str(msg)
    return None


class RidingSchoolClient:
    """
    Thin async wrapper over the backend endpoints used by the calendar.

    **Input (request):**
        - http: shared httpx.AsyncClient (base_url = BACKEND_API_BASE_URL).
        - credentials: Base64 `username:password`, or None before login.
        - on_unauthorized: called once on any 401, before raising SessionExpiredError.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        credentials: Optional[str] = None,
        on_unauthorized: Optional[Callable[[], None]] = None,
        auth_path: Optional[str] = None,
    ):
        self._http = http
        self._credentials = credentials
        self._on_unauthorized = on_unauthorized
        self._auth_path = (auth_path or get_settings().BACKEND_AUTH_PATH).rstrip("/")

    def _headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {"Accept": "application/json"}
        if self._credentials:
            headers["Authorization"] = f"Basic {self._credentials}"
        return headers

    async def _request(self, method: str, path: str, json: Any = None) -> ApiResult:
        try:
            resp = await self._http.request(method, path, json=json, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            # No backend message available; callers fall back to their default text
            raise BackendAPIError("", body=str(exc)) from exc

        if resp.status_code == 401:
            logger.info("%s %s -> 401, clearing session", method, path)
            if self._on_unauthorized is not None:
                self._on_unauthorized()
            raise SessionExpiredError("Sesión expirada", status_code=401, body=resp.text)

        if not resp.is_success:
            message = error_message_from_response(resp)
            logger.warning("%s %s -> %s: %s", method, path, resp.status_code, message)
            raise BackendAPIError(message, status_code=resp.status_code, body=resp.text)

        data = _json_or_none(resp)
        return ApiResult(data=data, message=success_message_from_data(data))

    # ---- Resource lists ----

    async def list_classes_detailed(self) -> List[DetailedClass]:
        """GET /clases/detalles: every class with embedded student/instructor/horse."""
        result = await self._request("GET", "/clases/detalles")
        return _classes_adapter.validate_python(result.data or [])

    async def list_students(self) -> List[Student]:
        result = await self._request("GET", "/alumnos")
        return _students_adapter.validate_python(result.data or [])

    async def list_instructors(self) -> List[Instructor]:
        result = await self._request("GET", "/instructores")
        return _instructors_adapter.validate_python(result.data or [])

    async def list_horses(self) -> List[Horse]:
        result = await self._request("GET", "/caballos")
        return _horses_adapter.validate_python(result.data or [])

    # ---- Class mutations ----

    async def create_class(self, payload: Dict[str, Any]) -> ApiResult:
        """POST /clases."""
        return await self._request("POST", "/clases", json=payload)

    async def update_class(self, class_id: int, payload: Dict[str, Any]) -> ApiResult:
        """PUT /clases/{id} with a partial body."""
        return await self._request("PUT", f"/clases/{class_id}", json=payload)

    async def change_class_status(
        self,
        class_id: int,
        status: ClassStatus,
        observation: Optional[str] = None,
    ) -> ApiResult:
        """PATCH /clases/{id}/estado; observation is attached only when given."""
        body: Dict[str, Any] = {"estado": ClassStatus(status).value}
        if observation is not None:
            body["observaciones"] = observation
        return await self._request("PATCH", f"/clases/{class_id}/estado", json=body)

    async def delete_class(self, class_id: int) -> ApiResult:
        """DELETE /clases/{id}."""
        return await self._request("DELETE", f"/clases/{class_id}")

    # ---- Calendar bulk operations ----

    async def copy_week(self, payload: Dict[str, str]) -> ApiResult:
        """POST /calendario/copiar-semana {diaInicioOrigen, diaInicioDestino}."""
        return await self._request("POST", "/calendario/copiar-semana", json=payload)

    async def delete_period(self, payload: Dict[str, str]) -> ApiResult:
        """DELETE /calendario/eliminar-periodo {diaInicioOrigen, diaInicioDestino}."""
        return await self._request("DELETE", "/calendario/eliminar-periodo", json=payload)

    # ---- Authentication ----

    async def login(self, username: str, password: str) -> tuple[str, Dict[str, Any]]:
        """
        POST {auth}/login with Basic auth.

        **Output (response):** (encoded credential, user profile dict).
        A 401 here means wrong credentials, not an expired session.
        """
        encoded = encode_credentials(username, password)
        try:
            resp = await self._http.post(
                f"{self._auth_path}/login",
                headers={"Authorization": f"Basic {encoded}", "Accept": "application/json"},
            )
        except httpx.HTTPError as exc:
            raise BackendAPIError("", body=str(exc)) from exc
        if not resp.is_success:
            raise BackendAPIError(
                resp.text.strip() or ERR_BAD_CREDENTIALS,
                status_code=resp.status_code,
                body=resp.text,
            )
        user = _json_or_none(resp)
        return encoded, user if isinstance(user, dict) else {}

    async def logout(self) -> None:
        """POST {auth}/logout. Failures are logged; the caller clears the session regardless."""
        try:
            await self._http.post(f"{self._auth_path}/logout", headers=self._headers())
        except httpx.HTTPError as exc:
            logger.warning("Logout request failed: %s", exc)
