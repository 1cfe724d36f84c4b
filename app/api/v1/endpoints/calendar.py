"""Calendar JSON endpoint: the same view model the HTML page renders."""

from fastapi import APIRouter, Depends

from app.api.deps import get_loaded_session
from app.schemas.calendar_view import CalendarPageView
from app.schemas.response import ApiResponse, success_response
from app.services.calendar_page import CalendarSession, build_calendar_page

router = APIRouter(prefix="/calendar", tags=["calendar"])


@router.get(
    "/view",
    response_model=ApiResponse[CalendarPageView],
    summary="Calendar view for the current session",
    description="Returns the grid (month, week or day, per the session's view mode), toolbar, open dialog and pending notifications. Notifications are not consumed.",
)
async def calendar_view(
    session: CalendarSession = Depends(get_loaded_session),
) -> ApiResponse[CalendarPageView]:
    """Load classes and resources, then derive the page from session state."""
    return success_response(data=build_calendar_page(session, drain=False))
