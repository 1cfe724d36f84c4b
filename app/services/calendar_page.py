"""
Calendar page composition: controller state + renderers -> CalendarPageView.

Also holds the per-session pairing of controller and renderers
(CalendarSession) and the registry that keeps one per browser session.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from app.core.constants import CANCELLATION_REASONS, MONTH_NAMES, STATUS_ORDER
from app.core.enums import AuxDialog, PendingOperation, Specialty, ViewMode
from app.schemas.calendar_view import CalendarPageView, DialogView, NotificationView, ToolbarView
from app.services.calendar_renderers import CalendarRenderers, status_legend
from app.services.scheduling_controller import (
    CreateDialog,
    EditDialog,
    SchedulingController,
)
from app.services.time_grid import view_title

logger = logging.getLogger(__name__)


@dataclass
class CalendarSession:
    """What one browser sees: its controller and its three renderers."""

    controller: SchedulingController
    renderers: CalendarRenderers
    last_seen: float = 0.0


class CalendarSessionRegistry:
    """
    session_id -> CalendarSession. Created on first visit, discarded on logout,
    when the backend reports the credential as expired, or after idle_ttl
    seconds without a visit. Discarding closes the controller so it stops
    listening to the shared cache.
    """

    def __init__(
        self,
        factory: Callable[[str], SchedulingController],
        idle_ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._factory = factory
        self._sessions: Dict[str, CalendarSession] = {}
        self._lock = threading.Lock()
        self._idle_ttl = idle_ttl
        self._clock = clock

    def _pop_idle(self, now: float) -> List[CalendarSession]:
        if self._idle_ttl is None:
            return []
        expired = [sid for sid, s in self._sessions.items() if now - s.last_seen > self._idle_ttl]
        for sid in expired:
            logger.info("Calendar session %s expired after inactivity", sid[:8])
        return [self._sessions.pop(sid) for sid in expired]

    def get(self, session_id: str) -> CalendarSession:
        with self._lock:
            now = self._clock()
            idle = self._pop_idle(now)
            session = self._sessions.get(session_id)
            if session is None:
                session = CalendarSession(
                    controller=self._factory(session_id),
                    renderers=CalendarRenderers(),
                )
                self._sessions[session_id] = session
                logger.info("Calendar session created for %s", session_id[:8])
            session.last_seen = now
        for old in idle:
            old.controller.close()
        return session

    def discard(self, session_id: Optional[str]) -> None:
        if not session_id:
            return
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is not None:
            session.controller.close()
            logger.info("Calendar session discarded for %s", session_id[:8])

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


def _dialog_view(controller: SchedulingController) -> Optional[DialogView]:
    dialog = controller.state.dialog
    directory = controller.directory
    pending = controller.is_pending(PendingOperation.CREATE) or controller.is_pending(
        PendingOperation.UPDATE
    )
    if isinstance(dialog, EditDialog):
        return DialogView(
            mode="edit",
            title="Editar Clase",
            description=f"Editando clase de {directory.student_full_name(dialog.clase.student_id)}",
            defaults=controller.dialog_defaults(),
            show_status=True,
            pending=pending,
        )
    if isinstance(dialog, CreateDialog):
        anchor = controller.state.anchor
        return DialogView(
            mode="create",
            title="Nueva Clase",
            description=(
                f"Programar clase para el {anchor.day} de {MONTH_NAMES[anchor.month - 1]} de {anchor.year}"
            ),
            defaults=controller.dialog_defaults(),
            pending=pending,
        )
    return None


def _toolbar_view(controller: SchedulingController) -> ToolbarView:
    is_day = controller.state.view_mode == ViewMode.DAY
    return ToolbarView(
        show_export=is_day,
        show_cancel_day=is_day,
        cancel_day_count=controller.cancelable_count() if is_day else 0,
        cancel_day_date=controller.state.anchor.isoformat(),
        cancellation_reasons=list(CANCELLATION_REASONS),
        copy_open=controller.is_aux_open(AuxDialog.COPY_WEEK),
        delete_open=controller.is_aux_open(AuxDialog.DELETE_RANGE),
        cancel_day_open=controller.is_aux_open(AuxDialog.CANCEL_DAY),
        copy_pending=controller.is_pending(PendingOperation.COPY_WEEK),
        delete_pending=controller.is_pending(PendingOperation.DELETE_RANGE),
        cancel_pending=controller.is_pending(PendingOperation.BULK_CANCEL),
    )


def build_calendar_page(session: CalendarSession, drain: bool = True) -> CalendarPageView:
    """
    Derive the whole page from the session's current state.

    Assumes controller.load() ran for this request. Notifications are
    drained (shown once) unless drain is False.
    """
    controller = session.controller
    renderers = session.renderers
    state = controller.state
    directory = controller.directory
    anchor = state.anchor
    today = controller.today()

    month = week = day = None
    if state.view_mode == ViewMode.MONTH:
        month = renderers.month.render(
            anchor, controller.visible_days(), controller.classes_by_day(), directory, today
        )
    elif state.view_mode == ViewMode.WEEK:
        week = renderers.week.render(
            controller.visible_days(), controller.classes_by_day(), directory, today
        )
    else:
        day = renderers.day.render(anchor, controller.filtered_classes(), directory)

    notifications = controller.drain_notifications() if drain else list(controller.notifications)

    return CalendarPageView(
        anchor=anchor.isoformat(),
        view_mode=state.view_mode,
        title=view_title(anchor, state.view_mode),
        filters=state.filters.as_form_values(),
        student_options=directory.student_options(),
        instructor_options=directory.instructor_options(),
        active_instructor_options=directory.instructor_options(active_only=True),
        horse_options=directory.horse_options(),
        specialty_options=[s.value for s in Specialty],
        status_options=[s.value for s in STATUS_ORDER],
        month=month,
        week=week,
        day=day,
        toolbar=_toolbar_view(controller),
        dialog=_dialog_view(controller),
        notifications=[NotificationView(level=n.level.value, message=n.message) for n in notifications],
        legend=status_legend(),
    )
