"""
Scheduling controller: the calendar's view state and user intents.

One controller per browser session. It owns the anchor date, view mode,
class dialog, toolbar dialogs, filters, pending-operation flags and the
notification queue. Intents that change data call the backend, then
invalidate the shared "clases" query; nothing is ever patched into cached
lists locally.

Error policy: BackendAPIError is caught here and becomes an error
notification (the dialog, if any, stays open for retry). SessionExpiredError
is never caught; the web layer turns it into a redirect to the login page.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Set, Union
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from app.core.config import get_settings
from app.core.constants import (
    DEFAULT_CLASS_TIME,
    ERR_BOTH_DATES_REQUIRED,
    ERR_BULK_CANCEL,
    ERR_CLASS_NOT_FOUND,
    ERR_COPY_WEEK,
    ERR_CREATE_CLASS,
    ERR_DELETE_CLASS,
    ERR_DELETE_RANGE,
    ERR_LOAD_CLASSES,
    ERR_REASON_REQUIRED,
    ERR_REQUIRED_FIELDS,
    ERR_UPDATE_CLASS,
    MSG_CLASS_CREATED,
    MSG_CLASS_DELETED,
    MSG_CLASS_UPDATED,
    MSG_EXPORTED,
    MSG_RANGE_DELETED,
    MSG_WEEK_COPIED,
    OTHER_REASON,
)
from app.core.enums import (
    AuxDialog,
    BulkOutcome,
    ClassStatus,
    NavigationDirection,
    NotificationLevel,
    PendingOperation,
    QueryKey,
    ViewMode,
)
from app.core.logging_config import CALENDAR_MUTATIONS_LOGGER_NAME
from app.schemas.classes import ClassForm, DetailedClass, ScheduledClass, WeekRangeForm
from app.services.backend_client import (
    ApiResult,
    BackendAPIError,
    RidingSchoolClient,
    SessionExpiredError,
)
from app.services.day_export import DayExport, build_day_export
from app.services.query_cache import QueryCache
from app.services.resource_directory import ResourceDirectory
from app.services.time_grid import (
    ClassFilters,
    cancelable_classes,
    compute_visible_days,
    filter_classes,
    group_by_day,
    shift_anchor,
)

logger = logging.getLogger(__name__)
# Every backend mutation is also recorded in calendar_mutations.log (see app/core/logging_config.py)
mutation_logger = logging.getLogger(CALENDAR_MUTATIONS_LOGGER_NAME)


def local_today() -> date:
    """Today in SCHOOL_TIMEZONE, or in host local time when unset."""
    tz_name = get_settings().SCHOOL_TIMEZONE.strip()
    if tz_name:
        return datetime.now(ZoneInfo(tz_name)).date()
    return date.today()


# -----------------------------------------------------------------------------
# Dialog state (tagged union)
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class DialogClosed:
    """No class dialog open."""


@dataclass(frozen=True)
class CreateDialog:
    """
    Creating a class on the anchor day; horse/time set when opened from an
    empty day-grid cell. last_submitted holds the form of a failed submit.
    """

    horse_id: Optional[int] = None
    time: Optional[str] = None
    last_submitted: Optional[Dict[str, str]] = field(default=None, compare=False)


@dataclass(frozen=True)
class EditDialog:
    """
    Editing an existing class; clase is the class as it was when opened,
    last_submitted the form of a failed submit.
    """

    clase: ScheduledClass
    last_submitted: Optional[Dict[str, str]] = field(default=None, compare=False)


DialogState = Union[DialogClosed, CreateDialog, EditDialog]

CLOSED = DialogClosed()


@dataclass(frozen=True)
class CreatePrefill:
    """Values carried from an empty (horse, time) day-grid cell into the create dialog."""

    horse_id: int
    time: str


# -----------------------------------------------------------------------------
# Results and notifications
# -----------------------------------------------------------------------------


@dataclass
class Notification:
    level: NotificationLevel
    message: str


@dataclass
class BulkResult:
    """Per-ID outcome of a fan-out of requests. Succeeded changes are never rolled back."""

    requested: List[int] = field(default_factory=list)
    succeeded: List[int] = field(default_factory=list)
    failed: Dict[int, str] = field(default_factory=dict)

    @property
    def outcome(self) -> BulkOutcome:
        if not self.failed:
            return BulkOutcome.ALL_SUCCEEDED
        if not self.succeeded:
            return BulkOutcome.ALL_FAILED
        return BulkOutcome.PARTIAL

    @property
    def ok(self) -> bool:
        return self.outcome == BulkOutcome.ALL_SUCCEEDED


@dataclass
class ViewState:
    """Everything the user is currently looking at and doing."""

    anchor: date
    view_mode: ViewMode = ViewMode.MONTH
    dialog: DialogState = CLOSED
    filters: ClassFilters = ClassFilters()
    aux_dialogs: Set[AuxDialog] = field(default_factory=set)
    pending: Counter = field(default_factory=Counter)


def cancellation_observation(reason: Optional[str], custom: Optional[str] = None) -> Optional[str]:
    """
    Observation text for a bulk cancel. OTHER_REASON means the free text
    (stripped) is used instead; None when nothing usable was chosen.
    """
    reason = (reason or "").strip()
    if not reason:
        return None
    if reason == OTHER_REASON:
        text = (custom or "").strip()
        return text or None
    return reason


def _form_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def _parse_day(value: Union[date, str, None]) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    s = str(value).strip()
    if not s:
        return None
    return date.fromisoformat(s[:10])


class SchedulingController:
    """
    Calendar view state + intents for one session.

    **Input (request):**
        - client: backend client bound to the session's credential.
        - cache: process-wide QueryCache (explicitly injected).
        - today: clock used by go_to_today and "is today" highlighting.
        - anchor: initial anchor date (default: today).
    """

    def __init__(
        self,
        client: RidingSchoolClient,
        cache: QueryCache,
        today: Callable[[], date] = local_today,
        anchor: Optional[date] = None,
    ):
        self.client = client
        self.cache = cache
        self._today = today
        self.state = ViewState(anchor=anchor or today())
        self.notifications: List[Notification] = []
        self.classes: List[DetailedClass] = []
        self.directory = ResourceDirectory()
        self.stale = True
        self._unsubscribe = cache.subscribe(QueryKey.CLASES, self._on_classes_invalidated)

    def close(self) -> None:
        """Detach from the cache; call when the session is discarded."""
        self._unsubscribe()

    def _on_classes_invalidated(self, key: QueryKey) -> None:
        self.stale = True

    def today(self) -> date:
        return self._today()

    # ---- Data ----

    async def load(self) -> None:
        """Fetch (or reuse cached) classes and resource lists for the next render."""
        classes, students, instructors, horses = await asyncio.gather(
            self.cache.get(QueryKey.CLASES, self.client.list_classes_detailed),
            self.cache.get(QueryKey.ALUMNOS, self.client.list_students),
            self.cache.get(QueryKey.INSTRUCTORES, self.client.list_instructors),
            self.cache.get(QueryKey.CABALLOS, self.client.list_horses),
        )
        self.classes = list(classes)
        self.directory = ResourceDirectory(students, instructors, horses)
        # a fetch invalidated while in flight is not cached; keep asking for a reload
        self.stale = not self.cache.is_loaded(QueryKey.CLASES)

    async def refresh(self) -> bool:
        """
        load() when "clases" was invalidated since the last load (or nothing
        was loaded yet), turning a backend failure into an error notification
        so the page still renders with whatever was loaded before.
        """
        if not self.stale:
            return True
        try:
            await self.load()
        except SessionExpiredError:
            raise
        except BackendAPIError as exc:
            logger.warning("Loading calendar data failed (status=%s): %s", exc.status_code, exc.message)
            self._notify(NotificationLevel.ERROR, exc.message or ERR_LOAD_CLASSES)
            return False
        return True

    def filtered_classes(self) -> List[DetailedClass]:
        """Class collection after the student/instructor filters."""
        return filter_classes(self.classes, self.state.filters)

    def visible_days(self) -> List[date]:
        return compute_visible_days(self.state.anchor, self.state.view_mode)

    def classes_by_day(self) -> Dict[date, List[DetailedClass]]:
        return group_by_day(self.filtered_classes())

    # ---- Navigation ----

    def navigate(self, direction: NavigationDirection) -> date:
        """Shift the anchor one unit of the current view (month, 7 days or 1 day)."""
        self.state.anchor = shift_anchor(self.state.anchor, self.state.view_mode, direction)
        return self.state.anchor

    def set_view_mode(self, mode: ViewMode) -> None:
        """Change granularity; the anchor date is kept as is."""
        self.state.view_mode = ViewMode(mode)

    def go_to_today(self) -> date:
        self.state.anchor = self.today()
        return self.state.anchor

    # ---- Filters ----

    def set_filter(self, name: str, value: Any) -> None:
        """name is "alumnoId" or "instructorId"; value "all" clears it."""
        current = self.state.filters.as_form_values()
        if name not in current:
            raise ValueError(f"Unknown filter: {name}")
        current[name] = "all" if value is None else str(value)
        self.state.filters = ClassFilters.from_values(current["alumnoId"], current["instructorId"])

    def set_filters(self, student: Any = "all", instructor: Any = "all") -> None:
        """Both filters at once; an invalid value leaves the previous filters in place."""
        previous = self.state.filters
        try:
            self.set_filter("alumnoId", student)
            self.set_filter("instructorId", instructor)
        except ValueError:
            self.state.filters = previous
            raise

    def reset_filters(self) -> None:
        self.state.filters = ClassFilters()

    # ---- Class dialog ----

    def open_create(self, prefill: Optional[CreatePrefill] = None) -> None:
        """Open the create dialog, optionally with horse and time already chosen."""
        if prefill is None:
            self.state.dialog = CreateDialog()
        else:
            self.state.dialog = CreateDialog(horse_id=prefill.horse_id, time=prefill.time)

    def open_create_for_day(self, day: date) -> None:
        """Month/week day click: move the anchor to that day and open an empty create dialog."""
        self.state.anchor = day
        self.state.dialog = CreateDialog()

    def open_edit(self, clase: ScheduledClass) -> None:
        self.state.dialog = EditDialog(clase=clase)

    def open_edit_by_id(self, class_id: int) -> bool:
        """Open the edit dialog for a loaded class; notify when it is gone."""
        clase = self.find_class(class_id)
        if clase is None:
            self._notify(NotificationLevel.ERROR, ERR_CLASS_NOT_FOUND)
            return False
        self.open_edit(clase)
        return True

    def find_class(self, class_id: int) -> Optional[DetailedClass]:
        for clase in self.classes:
            if clase.id == class_id:
                return clase
        return None

    def close_dialog(self) -> None:
        self.state.dialog = CLOSED

    def dialog_defaults(self) -> Dict[str, str]:
        """
        Form values for the open dialog (empty dict when closed). After a
        failed submit the values the user sent win over the initial ones.
        """
        dialog = self.state.dialog
        if isinstance(dialog, EditDialog):
            c = dialog.clase
            defaults = {
                "hora": c.slot,
                "alumnoId": str(c.student_id),
                "instructorId": str(c.instructor_id),
                "caballoId": str(c.horse_id),
                "especialidad": c.specialty,
                "estado": c.status.value,
            }
        elif isinstance(dialog, CreateDialog):
            defaults = {
                "hora": dialog.time or DEFAULT_CLASS_TIME,
                "alumnoId": "",
                "instructorId": "",
                "caballoId": "" if dialog.horse_id is None else str(dialog.horse_id),
                "especialidad": "",
            }
        else:
            return {}
        if dialog.last_submitted:
            defaults.update({k: v for k, v in dialog.last_submitted.items() if k in defaults})
        return defaults

    def _keep_submitted(self, dialog: Union[CreateDialog, EditDialog], form_values: Mapping[str, Any]) -> None:
        """Remember a failed submit's values so the re-rendered dialog shows them."""
        submitted = {k: _form_text(v) for k, v in form_values.items()}
        if self.state.dialog is dialog:
            self.state.dialog = replace(dialog, last_submitted=submitted)

    # ---- Toolbar dialogs ----

    def open_aux(self, kind: AuxDialog) -> None:
        self.state.aux_dialogs.add(AuxDialog(kind))

    def close_aux(self, kind: AuxDialog) -> None:
        self.state.aux_dialogs.discard(AuxDialog(kind))

    def is_aux_open(self, kind: AuxDialog) -> bool:
        return AuxDialog(kind) in self.state.aux_dialogs

    # ---- Pending flags and notifications ----

    def is_pending(self, op: PendingOperation) -> bool:
        return self.state.pending[op] > 0

    def _notify(self, level: NotificationLevel, message: str) -> None:
        self.notifications.append(Notification(level=level, message=message))

    def drain_notifications(self) -> List[Notification]:
        """Return and clear queued notifications (shown once)."""
        out, self.notifications = self.notifications, []
        return out

    async def _mutate(
        self,
        op: PendingOperation,
        call: Callable[[], Awaitable[ApiResult]],
        description: str,
        success_default: str,
        error_default: str,
    ) -> Optional[ApiResult]:
        """
        Run one backend mutation with the shared success/failure handling.

        Success: invalidate "clases", success notification (backend text or default).
        Failure: error notification (backend text or default), returns None.
        """
        self.state.pending[op] += 1
        try:
            result = await call()
        except SessionExpiredError:
            raise
        except BackendAPIError as exc:
            message = exc.message or error_default
            mutation_logger.warning("%s failed (status=%s): %s", description, exc.status_code, message)
            self._notify(NotificationLevel.ERROR, message)
            return None
        finally:
            self.state.pending[op] -= 1
            if self.state.pending[op] <= 0:
                del self.state.pending[op]
        mutation_logger.info("%s ok", description)
        self.cache.invalidate(QueryKey.CLASES)
        self._notify(NotificationLevel.SUCCESS, result.message or success_default)
        return result

    # ---- Class mutations ----

    async def submit(self, form_values: Mapping[str, Any]) -> bool:
        """
        Submit the open class dialog.

        Edit mode: PUT /clases/{id} with the form fields. Create mode: POST
        /clases stamped with the anchor day and status PROGRAMADA. The dialog
        closes only on success. Returns True on success.
        """
        dialog = self.state.dialog
        if isinstance(dialog, DialogClosed):
            logger.warning("Submit with no dialog open; ignored")
            return False

        values = {k: v for k, v in form_values.items() if v not in (None, "")}
        try:
            form = ClassForm.model_validate(values)
        except ValidationError as exc:
            logger.info("Class form rejected: %s", exc.errors(include_url=False))
            self._keep_submitted(dialog, form_values)
            self._notify(NotificationLevel.ERROR, ERR_REQUIRED_FIELDS)
            return False

        if isinstance(dialog, EditDialog):
            if form.status is None:
                self._keep_submitted(dialog, form_values)
                self._notify(NotificationLevel.ERROR, ERR_REQUIRED_FIELDS)
                return False
            class_id = dialog.clase.id
            payload = form.update_payload()
            result = await self._mutate(
                PendingOperation.UPDATE,
                lambda: self.client.update_class(class_id, payload),
                f"update class {class_id} {payload}",
                MSG_CLASS_UPDATED,
                ERR_UPDATE_CLASS,
            )
        else:
            payload = form.create_payload(self.state.anchor)
            result = await self._mutate(
                PendingOperation.CREATE,
                lambda: self.client.create_class(payload),
                f"create class {payload}",
                MSG_CLASS_CREATED,
                ERR_CREATE_CLASS,
            )

        if result is None:
            self._keep_submitted(dialog, form_values)
            return False
        self.close_dialog()
        return True

    async def change_status(self, class_id: int, status: ClassStatus) -> bool:
        """
        Set one class's status. Any status may follow any other, including
        the class's current one; that request goes through like any other.
        """
        status = ClassStatus(status)
        result = await self._mutate(
            PendingOperation.UPDATE,
            lambda: self.client.change_class_status(class_id, status),
            f"status class {class_id} -> {status.value}",
            MSG_CLASS_UPDATED,
            ERR_UPDATE_CLASS,
        )
        return result is not None

    async def delete_class(self, class_id: int) -> bool:
        """DELETE one class; the view asks for confirmation before calling this."""
        result = await self._mutate(
            PendingOperation.DELETE,
            lambda: self.client.delete_class(class_id),
            f"delete class {class_id}",
            MSG_CLASS_DELETED,
            ERR_DELETE_CLASS,
        )
        return result is not None

    # ---- Bulk operations ----

    async def bulk_cancel(self, class_ids: Iterable[int], observation: str) -> BulkResult:
        """
        Cancel every class in class_ids with the same observation.

        All requests are fired at once. Success is reported only when every
        request succeeded; otherwise an error notification describes the
        failure, while the returned BulkResult lists which IDs did change.
        Already-applied cancellations are not undone.
        """
        ids = list(class_ids)
        result = BulkResult(requested=ids)
        op = PendingOperation.BULK_CANCEL
        self.state.pending[op] += 1
        try:
            outcomes = await asyncio.gather(
                *(
                    self.client.change_class_status(i, ClassStatus.CANCELADA, observation)
                    for i in ids
                ),
                return_exceptions=True,
            )
        finally:
            self.state.pending[op] -= 1
            if self.state.pending[op] <= 0:
                del self.state.pending[op]

        expired: Optional[SessionExpiredError] = None
        for class_id, outcome in zip(ids, outcomes):
            if isinstance(outcome, SessionExpiredError):
                expired = outcome
                result.failed[class_id] = outcome.message
            elif isinstance(outcome, BackendAPIError):
                result.failed[class_id] = outcome.message or ERR_BULK_CANCEL
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.succeeded.append(class_id)

        if result.succeeded:
            self.cache.invalidate(QueryKey.CLASES)
        if expired is not None:
            raise expired

        if result.outcome == BulkOutcome.ALL_SUCCEEDED:
            mutation_logger.info("bulk cancel %s (%r) ok", ids, observation)
            self._notify(
                NotificationLevel.SUCCESS, f"{len(ids)} clases canceladas correctamente"
            )
        else:
            first_error = next(iter(result.failed.values()))
            mutation_logger.warning(
                "bulk cancel %s (%r): %s, succeeded=%s failed=%s",
                ids,
                observation,
                result.outcome.value,
                result.succeeded,
                result.failed,
            )
            if result.outcome == BulkOutcome.PARTIAL:
                message = (
                    f"{len(result.succeeded)} de {len(ids)} clases canceladas; "
                    f"{len(result.failed)} fallaron: {first_error}"
                )
            else:
                message = first_error
            self._notify(NotificationLevel.ERROR, message)
        return result

    def cancelable_day_classes(self, day: Optional[date] = None) -> List[DetailedClass]:
        """Filtered classes of day (default anchor) that are neither COMPLETADA nor CANCELADA."""
        return cancelable_classes(self.filtered_classes(), day or self.state.anchor)

    def cancelable_count(self, day: Optional[date] = None) -> int:
        return len(self.cancelable_day_classes(day))

    async def cancel_day(self, observation: str) -> BulkResult:
        """Bulk-cancel the anchor day's cancelable classes with one shared reason."""
        ids = [c.id for c in self.cancelable_day_classes()]
        self.close_aux(AuxDialog.CANCEL_DAY)
        return await self.bulk_cancel(ids, observation)

    async def cancel_day_with_reason(self, reason: str, custom: str = "") -> Optional[BulkResult]:
        """cancel_day from the dialog's reason picker; None when no usable reason was given."""
        observation = cancellation_observation(reason, custom)
        if observation is None:
            self._notify(NotificationLevel.ERROR, ERR_REASON_REQUIRED)
            return None
        return await self.cancel_day(observation)

    async def copy_week(
        self,
        source_day: Union[date, str, None],
        dest_day: Union[date, str, None],
    ) -> bool:
        """Ask the backend to duplicate the week of source_day into the week of dest_day."""
        form = self._week_range(source_day, dest_day)
        if form is None:
            return False
        payload = form.payload()
        result = await self._mutate(
            PendingOperation.COPY_WEEK,
            lambda: self.client.copy_week(payload),
            f"copy week {payload}",
            MSG_WEEK_COPIED,
            ERR_COPY_WEEK,
        )
        if result is None:
            return False
        self.close_aux(AuxDialog.COPY_WEEK)
        return True

    async def delete_range(
        self,
        from_day: Union[date, str, None],
        to_day: Union[date, str, None],
    ) -> bool:
        """Ask the backend to delete every class from from_day to to_day inclusive."""
        form = self._week_range(from_day, to_day)
        if form is None:
            return False
        payload = form.payload()
        result = await self._mutate(
            PendingOperation.DELETE_RANGE,
            lambda: self.client.delete_period(payload),
            f"delete period {payload}",
            MSG_RANGE_DELETED,
            ERR_DELETE_RANGE,
        )
        if result is None:
            return False
        self.close_aux(AuxDialog.DELETE_RANGE)
        return True

    def _week_range(
        self,
        first: Union[date, str, None],
        second: Union[date, str, None],
    ) -> Optional[WeekRangeForm]:
        try:
            first_day, second_day = _parse_day(first), _parse_day(second)
        except ValueError:
            first_day = second_day = None
        if first_day is None or second_day is None:
            self._notify(NotificationLevel.ERROR, ERR_BOTH_DATES_REQUIRED)
            return None
        return WeekRangeForm(source_day=first_day, dest_day=second_day)

    # ---- Export ----

    def export_day(self, day: Optional[date] = None) -> DayExport:
        """
        Spreadsheet of day (default anchor) built from the loaded, filtered
        classes. The instructor filter, when set, is appended to the file name.
        """
        day = day or self.state.anchor
        instructor_id = self.state.filters.instructor_id
        label = None if instructor_id is None else self.directory.instructor_name(instructor_id)
        export = build_day_export(day, self.filtered_classes(), self.directory, label)
        logger.info("Exported %s (%d horses)", export.filename, len(export.headers) - 1)
        self._notify(NotificationLevel.SUCCESS, MSG_EXPORTED)
        return export
