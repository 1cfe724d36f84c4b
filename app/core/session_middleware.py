"""Middleware that ties each browser to a session id and guards pages behind login."""

import json
import uuid
from typing import Callable

from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.config import get_settings

# Paths reachable without a stored credential (exact match)
EXEMPT_PATHS = {"/login", "/health", "/docs", "/openapi.json"}

# 401 response body for JSON callers: status=0, message as per project API response format
UNAUTHORIZED_MESSAGE = "Sesión no iniciada."
UNAUTHORIZED_BODY = json.dumps({"status": 0, "message": UNAUTHORIZED_MESSAGE}).encode()


def _path_exempt(path: str) -> bool:
    """Return True if the request path does not require a logged-in session."""
    return path in EXEMPT_PATHS or path.startswith("/static/")


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Make sure every request carries a session id (cookie SESSION_COOKIE_NAME),
    exposed as request.state.session_id.

    Requests without a stored credential are redirected to /login (pages) or
    answered with 401 (paths under API_V1_STR). Exempt paths always pass.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        settings = get_settings()
        cookie_name = settings.SESSION_COOKIE_NAME
        session_id = request.cookies.get(cookie_name)
        issued = session_id is None
        if issued:
            session_id = uuid.uuid4().hex
        request.state.session_id = session_id

        path = request.scope.get("path", "")
        store = request.app.state.credential_store
        if _path_exempt(path) or store.get_credentials(session_id):
            response = await call_next(request)
        elif path.startswith(settings.API_V1_STR):
            response = Response(
                content=UNAUTHORIZED_BODY,
                status_code=401,
                media_type="application/json",
            )
        else:
            response = RedirectResponse("/login", status_code=303)

        if issued:
            response.set_cookie(cookie_name, session_id, httponly=True, samesite="lax")
        return response
