"""Login, logout and health routes."""

import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from app.api.deps import (
    get_anonymous_client,
    get_credential_store,
    get_session_client,
    get_session_id,
    get_session_registry,
)
from app.core.constants import ERR_BAD_CREDENTIALS
from app.core.session_store import CredentialStore
from app.schemas.response import ApiResponse, success_response
from app.services.backend_client import BackendAPIError, RidingSchoolClient
from app.services.calendar_page import CalendarSessionRegistry
from app.web.templating import templates

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.get("/", include_in_schema=False)
async def index() -> RedirectResponse:
    return RedirectResponse("/calendario", status_code=303)


@router.get("/login", response_class=HTMLResponse, summary="Login form")
async def login_form(
    request: Request,
    session_id: str = Depends(get_session_id),
    store: CredentialStore = Depends(get_credential_store),
) -> Response:
    if store.get_credentials(session_id):
        return RedirectResponse("/calendario", status_code=303)
    return templates.TemplateResponse(request, "login.html", {"error": None, "username": ""})


@router.post("/login", response_class=HTMLResponse, summary="Log in against the backend")
async def login(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    session_id: str = Depends(get_session_id),
    store: CredentialStore = Depends(get_credential_store),
    registry: CalendarSessionRegistry = Depends(get_session_registry),
    client: RidingSchoolClient = Depends(get_anonymous_client),
) -> Response:
    """
    Validate username/password with the backend (Basic auth). On success the
    encoded credential and user profile are stored for this session.
    """
    try:
        credentials, user = await client.login(username, password)
    except BackendAPIError as exc:
        logger.info("Login failed for %r (status=%s)", username, exc.status_code)
        return templates.TemplateResponse(
            request,
            "login.html",
            {"error": exc.message or ERR_BAD_CREDENTIALS, "username": username},
            status_code=401,
        )
    # Any calendar state from a previous login is bound to the old credential
    registry.discard(session_id)
    store.store(session_id, credentials, user)
    logger.info("User %r logged in", username)
    return RedirectResponse("/calendario", status_code=303)


@router.post("/logout", summary="Log out")
async def logout(
    session_id: str = Depends(get_session_id),
    store: CredentialStore = Depends(get_credential_store),
    registry: CalendarSessionRegistry = Depends(get_session_registry),
    client: RidingSchoolClient = Depends(get_session_client),
) -> RedirectResponse:
    """Tell the backend, then forget the session whatever the backend answered."""
    try:
        await client.logout()
    finally:
        store.clear(session_id)
        registry.discard(session_id)
    return RedirectResponse("/login", status_code=303)


@router.get("/health", response_model=ApiResponse[dict[str, str]], summary="Liveness check")
async def health() -> ApiResponse[dict[str, str]]:
    return success_response(data={"status": "ok"})
