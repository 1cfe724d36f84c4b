"""Application entry point and FastAPI app factory."""

from contextlib import asynccontextmanager
from datetime import date
from typing import Callable, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse, Response

from app.api.v1.router import api_router
from app.core.config import get_settings
from app.core.logging_config import setup_logging
from app.core.session_middleware import SessionMiddleware
from app.core.session_store import CredentialStore
from app.schemas.response import error_response
from app.services.backend_client import RidingSchoolClient, SessionExpiredError, build_http_client
from app.services.calendar_page import CalendarSessionRegistry
from app.services.query_cache import QueryCache
from app.services.scheduling_controller import SchedulingController
from app.web.router import web_router

# CORS: with allow_credentials=True, origins cannot be "*". Use explicit list.
_default_cors_origins = [
    "http://localhost:8000",
    "http://127.0.0.1:8000",
]


def _get_cors_origins() -> list[str]:
    """Return list of allowed CORS origins from settings or default dev list."""
    settings = get_settings()
    if settings.CORS_ORIGINS.strip():
        return [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
    return _default_cors_origins


def _controller_factory(app: FastAPI, today: Optional[Callable[[], date]] = None):
    """Build the per-session controller factory used by the session registry."""

    def factory(session_id: str) -> SchedulingController:
        store: CredentialStore = app.state.credential_store

        def on_unauthorized() -> None:
            store.clear(session_id)
            app.state.calendar_sessions.discard(session_id)

        client = RidingSchoolClient(
            app.state.http_client,
            credentials=store.get_credentials(session_id),
            on_unauthorized=on_unauthorized,
        )
        if today is None:
            return SchedulingController(client, app.state.query_cache)
        return SchedulingController(client, app.state.query_cache, today=today)

    return factory


async def session_expired_handler(request: Request, exc: SessionExpiredError) -> Response:
    """Backend answered 401: the credential is already cleared, send the user to log in again."""
    if request.url.path.startswith(get_settings().API_V1_STR):
        return JSONResponse(status_code=401, content=error_response(exc.message).model_dump())
    return RedirectResponse("/login", status_code=303)


def create_app(
    transport: Optional[httpx.AsyncBaseTransport] = None,
    log_dir: Optional[str] = None,
    today: Optional[Callable[[], date]] = None,
) -> FastAPI:
    """
    Assemble the application.

    **Input (request):**
        - transport: optional httpx transport for the backend client (tests pass a MockTransport).
        - log_dir: overrides LOG_DIR.
        - today: clock for new calendar sessions (default: SCHOOL_TIMEZONE local date).

    **Output (response):** FastAPI app; shared state is created in its lifespan.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events (startup/shutdown)."""
        # Startup: configure logging (app.log + calendar_mutations.log)
        setup_logging(log_dir=log_dir)
        client_kwargs = {"transport": transport} if transport is not None else {}
        app.state.http_client = build_http_client(**client_kwargs)
        app.state.query_cache = QueryCache()
        idle_ttl = get_settings().SESSION_IDLE_TTL_SECONDS
        app.state.credential_store = CredentialStore(idle_ttl=idle_ttl)
        app.state.calendar_sessions = CalendarSessionRegistry(
            _controller_factory(app, today), idle_ttl=idle_ttl
        )
        yield
        # Shutdown
        await app.state.http_client.aclose()

    app = FastAPI(
        title="Riding School Calendar",
        version="1.0.0",
        description="Class calendar for the riding school: month, week and day grids over the school's REST backend.",
        lifespan=lifespan,
    )

    app.add_middleware(SessionMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )
    app.add_exception_handler(SessionExpiredError, session_expired_handler)

    app.include_router(web_router)
    app.include_router(api_router, prefix=get_settings().API_V1_STR)
    return app


app = create_app()
