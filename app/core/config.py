"""Application settings loaded from environment."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings. Loaded from .env and environment."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    API_V1_STR: str = "/api/v1"

    # Riding-school REST backend (classes, students, instructors, horses)
    BACKEND_API_BASE_URL: str = "http://localhost:8080/api/v1"
    # Login/logout endpoints live under this path of the backend base URL
    BACKEND_AUTH_PATH: str = "/auth"
    # None = wait forever; a hung request keeps its operation pending
    BACKEND_TIMEOUT_SECONDS: Optional[float] = None

    # Cookie that ties a browser to its credential and calendar state
    SESSION_COOKIE_NAME: str = "hrs_session"
    # Sessions untouched this long lose their credential and calendar state
    SESSION_IDLE_TTL_SECONDS: float = 8 * 60 * 60

    # CORS: comma-separated origins (e.g. http://localhost:5175). When empty, uses default localhost dev origins.
    CORS_ORIGINS: str = ""

    # Logging (optional)
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"

    # IANA zone for "today" (e.g. America/Argentina/Buenos_Aires). Empty = host local time.
    SCHOOL_TIMEZONE: str = ""


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""
    return Settings()
