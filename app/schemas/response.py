"""Response envelope for the JSON endpoints (calendar view, health, 401s)."""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

from app.core.enums import ApiResponseMessage

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """
    Envelope shared by every JSON answer of this service.

    - status: 1 when the request was served, 0 when it was refused or failed.
    - message: "success", or the reason (e.g. session expired) when status=0.
    - data: payload such as the CalendarPageView; null on errors.
    """

    status: int
    message: str
    data: Optional[T] = None


def success_response(
    data: Any = None, message: str = ApiResponseMessage.SUCCESS.value
) -> ApiResponse[Any]:
    return ApiResponse(status=1, message=message, data=data)


def error_response(message: str, data: Any = None) -> ApiResponse[Any]:
    return ApiResponse(status=0, message=message, data=data)
