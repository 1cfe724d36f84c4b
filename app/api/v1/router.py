"""API v1 router aggregating all endpoint routers."""

from fastapi import APIRouter

from app.api.v1.endpoints import calendar

api_router = APIRouter()

api_router.include_router(calendar.router)
