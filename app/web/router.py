"""Router aggregating the server-rendered pages."""

from fastapi import APIRouter

from app.web import auth, calendar

web_router = APIRouter()

web_router.include_router(auth.router)
web_router.include_router(calendar.router)
