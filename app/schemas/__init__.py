"""Pydantic schemas: backend records, rendered calendar views and the JSON envelope."""

from app.schemas.calendar_view import CalendarPageView
from app.schemas.classes import ClassForm, DetailedClass, Horse, Instructor, ScheduledClass, Student, WeekRangeForm
from app.schemas.response import ApiResponse, error_response, success_response

__all__ = [
    "ApiResponse",
    "CalendarPageView",
    "ClassForm",
    "DetailedClass",
    "Horse",
    "Instructor",
    "ScheduledClass",
    "Student",
    "WeekRangeForm",
    "error_response",
    "success_response",
]
