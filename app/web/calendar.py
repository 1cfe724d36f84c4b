"""
Calendar page routes: the rendered grid plus one POST per user intent.

Every POST applies its intent to the session's controller (or renderers)
and answers 303 back to /calendario, which re-renders from state.
"""

from datetime import date
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from app.api.deps import get_calendar_session, get_loaded_session
from app.core.constants import EXPORT_MEDIA_TYPE
from app.core.enums import AuxDialog, ClassStatus, NavigationDirection, ViewMode
from app.services.calendar_page import CalendarSession, build_calendar_page
from app.services.scheduling_controller import CreatePrefill
from app.web.templating import templates

router = APIRouter(prefix="/calendario", tags=["calendario"])

CALENDAR_PATH = "/calendario"


def _back() -> RedirectResponse:
    return RedirectResponse(CALENDAR_PATH, status_code=303)


def _close_popovers(session: CalendarSession) -> None:
    session.renderers.month.close_popover()
    session.renderers.week.close_popover()
    session.renderers.day.close_popover()


def _parse_optional_day(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date: {value}")


# ---- Page and export ----


@router.get("", response_class=HTMLResponse, summary="Calendar page")
async def calendar_page(
    request: Request,
    session: CalendarSession = Depends(get_loaded_session),
) -> HTMLResponse:
    page = build_calendar_page(session)
    return templates.TemplateResponse(request, "calendar.html", {"page": page})


@router.get("/export", summary="Day view spreadsheet export")
async def export_day(
    day: Optional[str] = None,
    session: CalendarSession = Depends(get_loaded_session),
) -> Response:
    """
    Download the day grid as .xlsx (anchor day unless ?day=yyyy-MM-dd).
    Uses the classes already loaded for this session; no extra backend call.
    """
    export = session.controller.export_day(_parse_optional_day(day))
    return Response(
        content=export.to_xlsx(),
        media_type=EXPORT_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(export.filename)}"},
    )


# ---- Navigation, view mode and filters ----


@router.post("/navigate")
async def navigate(
    direction: NavigationDirection = Form(...),
    session: CalendarSession = Depends(get_calendar_session),
) -> RedirectResponse:
    session.controller.navigate(direction)
    return _back()


@router.post("/view")
async def set_view(
    view_mode: ViewMode = Form(...),
    session: CalendarSession = Depends(get_calendar_session),
) -> RedirectResponse:
    session.controller.set_view_mode(view_mode)
    return _back()


@router.post("/today")
async def go_to_today(session: CalendarSession = Depends(get_calendar_session)) -> RedirectResponse:
    session.controller.go_to_today()
    return _back()


@router.post("/filters")
async def set_filters(
    alumnoId: str = Form("all"),
    instructorId: str = Form("all"),
    session: CalendarSession = Depends(get_calendar_session),
) -> RedirectResponse:
    try:
        session.controller.set_filters(alumnoId, instructorId)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid filter value")
    return _back()


@router.post("/filters/reset")
async def reset_filters(session: CalendarSession = Depends(get_calendar_session)) -> RedirectResponse:
    session.controller.reset_filters()
    return _back()


# ---- Class dialog ----


@router.post("/dialog/create")
async def open_create_dialog(
    day: Optional[str] = Form(None),
    caballoId: Optional[int] = Form(None),
    hora: Optional[str] = Form(None),
    session: CalendarSession = Depends(get_calendar_session),
) -> RedirectResponse:
    """
    Open the create dialog. With day: month/week cell click (anchor moves
    there). With caballoId + hora: empty day-grid cell (horse and time prefilled).
    """
    controller = session.controller
    clicked_day = _parse_optional_day(day)
    if clicked_day is not None:
        controller.open_create_for_day(clicked_day)
    elif caballoId is not None and hora:
        controller.open_create(CreatePrefill(horse_id=caballoId, time=hora))
    else:
        controller.open_create()
    return _back()


@router.post("/dialog/edit/{class_id}")
async def open_edit_dialog(
    class_id: int,
    session: CalendarSession = Depends(get_loaded_session),
) -> RedirectResponse:
    _close_popovers(session)
    session.controller.open_edit_by_id(class_id)
    return _back()


@router.post("/dialog/close")
async def close_dialog(session: CalendarSession = Depends(get_calendar_session)) -> RedirectResponse:
    session.controller.close_dialog()
    return _back()


@router.post("/dialog/submit")
async def submit_dialog(
    request: Request,
    session: CalendarSession = Depends(get_calendar_session),
) -> RedirectResponse:
    form = await request.form()
    values = {k: v for k, v in form.items() if isinstance(v, str)}
    await session.controller.submit(values)
    return _back()


# ---- Toolbar dialogs ----


@router.post("/dialogs/{kind}/open")
async def open_aux_dialog(
    kind: AuxDialog,
    session: CalendarSession = Depends(get_calendar_session),
) -> RedirectResponse:
    session.controller.open_aux(kind)
    return _back()


@router.post("/dialogs/{kind}/close")
async def close_aux_dialog(
    kind: AuxDialog,
    session: CalendarSession = Depends(get_calendar_session),
) -> RedirectResponse:
    session.controller.close_aux(kind)
    return _back()


# ---- Popovers ----


@router.post("/popover/{view}/open")
async def open_popover(
    view: ViewMode,
    key: str = Form(...),
    session: CalendarSession = Depends(get_calendar_session),
) -> RedirectResponse:
    session.renderers.for_mode(view).open_popover(key)
    return _back()


@router.post("/popover/{view}/close")
async def close_popover(
    view: ViewMode,
    session: CalendarSession = Depends(get_calendar_session),
) -> RedirectResponse:
    session.renderers.for_mode(view).close_popover()
    return _back()


# ---- Single-class mutations ----


@router.post("/clases/{class_id}/estado")
async def change_status(
    class_id: int,
    estado: ClassStatus = Form(...),
    session: CalendarSession = Depends(get_calendar_session),
) -> RedirectResponse:
    _close_popovers(session)
    await session.controller.change_status(class_id, estado)
    return _back()


@router.post("/clases/{class_id}/eliminar")
async def delete_class(
    class_id: int,
    session: CalendarSession = Depends(get_calendar_session),
) -> RedirectResponse:
    _close_popovers(session)
    await session.controller.delete_class(class_id)
    return _back()


# ---- Bulk operations ----


@router.post("/cancelar-dia")
async def cancel_day(
    motivo: str = Form(""),
    motivoOtro: str = Form(""),
    session: CalendarSession = Depends(get_loaded_session),
) -> RedirectResponse:
    """Cancel every cancelable class of the anchor day (active filters apply)."""
    await session.controller.cancel_day_with_reason(motivo, motivoOtro)
    return _back()


@router.post("/copiar-semana")
async def copy_week(
    diaInicioOrigen: str = Form(""),
    diaInicioDestino: str = Form(""),
    session: CalendarSession = Depends(get_calendar_session),
) -> RedirectResponse:
    await session.controller.copy_week(diaInicioOrigen, diaInicioDestino)
    return _back()


@router.post("/eliminar-periodo")
async def delete_period(
    diaInicioOrigen: str = Form(""),
    diaInicioDestino: str = Form(""),
    session: CalendarSession = Depends(get_calendar_session),
) -> RedirectResponse:
    await session.controller.delete_range(diaInicioOrigen, diaInicioDestino)
    return _back()
