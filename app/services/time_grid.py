"""
Time grid model: pure date math and grouping behind the month/week/day views.

Nothing here touches the backend or view state; every function is
deterministic given its arguments.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from dateutil.relativedelta import relativedelta

from app.core.constants import (
    DAY_END_MINUTES,
    DAY_START_MINUTES,
    MAX_CLASSES_PER_CELL,
    MONTH_NAMES,
    NON_CANCELABLE_STATUSES,
    SLOT_MINUTES,
    WEEKDAY_FULL_NAMES,
)
from app.core.enums import NavigationDirection, ViewMode
from app.schemas.classes import Horse, ScheduledClass

ALL = "all"

C = TypeVar("C", bound=ScheduledClass)

SlotKey = Tuple[int, str]


def _build_time_slots() -> Tuple[str, ...]:
    return tuple(
        f"{m // 60:02d}:{m % 60:02d}"
        for m in range(DAY_START_MINUTES, DAY_END_MINUTES + 1, SLOT_MINUTES)
    )


# "09:00", "09:30", ..., "18:30"
TIME_SLOTS: Tuple[str, ...] = _build_time_slots()


def time_slots() -> List[str]:
    """Half-hour slots of the operating window, ascending."""
    return list(TIME_SLOTS)


# -----------------------------------------------------------------------------
# Visible days and navigation
# -----------------------------------------------------------------------------


def week_start(d: date) -> date:
    """Monday on/before d."""
    return d - timedelta(days=d.weekday())


def week_end(d: date) -> date:
    """Sunday on/after d."""
    return d + timedelta(days=6 - d.weekday())


def _days_between(start: date, end: date) -> List[date]:
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def compute_visible_days(anchor: date, mode: ViewMode) -> List[date]:
    """
    Days the grid for (anchor, mode) shows.

    - month: Monday on/before the 1st through Sunday on/after the month's last day.
    - week: Monday..Sunday containing anchor.
    - day: [anchor]; the slot rows come from time_slots().
    """
    mode = ViewMode(mode)
    if mode == ViewMode.MONTH:
        first = anchor.replace(day=1)
        last = first + relativedelta(months=1) - timedelta(days=1)
        return _days_between(week_start(first), week_end(last))
    if mode == ViewMode.WEEK:
        return _days_between(week_start(anchor), week_end(anchor))
    return [anchor]


def shift_anchor(anchor: date, mode: ViewMode, direction: NavigationDirection) -> date:
    """
    Move anchor one view unit back or forward.

    Months keep the day of month, clamped to the target month's length
    (2024-01-31 + 1 month = 2024-02-29).
    """
    step = 1 if NavigationDirection(direction) == NavigationDirection.NEXT else -1
    mode = ViewMode(mode)
    if mode == ViewMode.MONTH:
        return anchor + relativedelta(months=step)
    if mode == ViewMode.WEEK:
        return anchor + timedelta(weeks=step)
    return anchor + timedelta(days=step)


def view_title(anchor: date, mode: ViewMode) -> str:
    """Spanish heading for the controls bar."""
    mode = ViewMode(mode)
    month = MONTH_NAMES[anchor.month - 1]
    if mode == ViewMode.MONTH:
        return f"{month} {anchor.year}"
    if mode == ViewMode.WEEK:
        return f"Semana del {anchor.day} de {month}"
    return f"{WEEKDAY_FULL_NAMES[anchor.weekday()]} {anchor.day} de {month} de {anchor.year}"


def day_heading(d: date) -> str:
    """Day-view card header, e.g. "viernes 15 de marzo"."""
    return f"{WEEKDAY_FULL_NAMES[d.weekday()]} {d.day} de {MONTH_NAMES[d.month - 1]}"


def count_label(n: int) -> str:
    return f"{n} clase" if n == 1 else f"{n} clases"


# -----------------------------------------------------------------------------
# Filters
# -----------------------------------------------------------------------------


def _parse_filter_value(value: object) -> Optional[int]:
    if value is None:
        return None
    s = str(value).strip()
    if not s or s == ALL:
        return None
    return int(s)


@dataclass(frozen=True)
class ClassFilters:
    """Student / instructor selection; None means "all"."""

    student_id: Optional[int] = None
    instructor_id: Optional[int] = None

    @classmethod
    def from_values(cls, student: object = ALL, instructor: object = ALL) -> "ClassFilters":
        """Build from form values where "all" (or empty) disables the filter."""
        return cls(
            student_id=_parse_filter_value(student),
            instructor_id=_parse_filter_value(instructor),
        )

    def as_form_values(self) -> Dict[str, str]:
        return {
            "alumnoId": ALL if self.student_id is None else str(self.student_id),
            "instructorId": ALL if self.instructor_id is None else str(self.instructor_id),
        }

    def matches(self, clase: ScheduledClass) -> bool:
        if self.student_id is not None and clase.student_id != self.student_id:
            return False
        if self.instructor_id is not None and clase.instructor_id != self.instructor_id:
            return False
        return True


def filter_classes(classes: Iterable[C], filters: ClassFilters) -> List[C]:
    """Classes matching filters, input order preserved."""
    return [c for c in classes if filters.matches(c)]


# -----------------------------------------------------------------------------
# Grouping and lookup
# -----------------------------------------------------------------------------


def group_by_day(classes: Iterable[C]) -> Dict[date, List[C]]:
    """
    Bucket classes by day, each bucket ascending by start time.

    Sorting compares the raw `hora` strings; zero-padded HH:MM[:SS] sorts
    correctly that way. The sort is stable, so equal times keep input order.
    """
    grouped: Dict[date, List[C]] = defaultdict(list)
    for clase in classes:
        grouped[clase.day].append(clase)
    for bucket in grouped.values():
        bucket.sort(key=lambda c: c.time)
    return dict(grouped)


def classes_on(classes: Iterable[C], day: date) -> List[C]:
    return [c for c in classes if c.day == day]


def build_slot_index(classes_for_day: Iterable[C], horses: Iterable[Horse]) -> Dict[SlotKey, C]:
    """
    Map (horse_id, "HH:MM") -> class for one day's classes.

    Only horses in `horses` are indexed. Double bookings are not detected:
    when two classes share a key, the later one in input order wins.
    """
    horse_ids = {h.id for h in horses}
    index: Dict[SlotKey, C] = {}
    for clase in classes_for_day:
        if clase.horse_id in horse_ids:
            index[(clase.horse_id, clase.slot)] = clase
    return index


@dataclass
class CappedClasses:
    """Badges to draw in one day cell plus how many were collapsed."""

    visible: List[ScheduledClass]
    overflow: int

    @property
    def more_label(self) -> Optional[str]:
        return f"+{self.overflow} más" if self.overflow > 0 else None


def cap_classes(classes: Sequence[ScheduledClass], mode: ViewMode) -> CappedClasses:
    """Apply the per-cell cap of the view (month 3, week 10, day none)."""
    limit = MAX_CLASSES_PER_CELL[ViewMode(mode)]
    if limit is None or len(classes) <= limit:
        return CappedClasses(visible=list(classes), overflow=0)
    return CappedClasses(visible=list(classes[:limit]), overflow=len(classes) - limit)


def cancelable_classes(classes: Iterable[C], day: date) -> List[C]:
    """Classes on day that "Cancelar día" would touch (not COMPLETADA, not CANCELADA)."""
    return [c for c in classes if c.day == day and c.status not in NON_CANCELABLE_STATUSES]
