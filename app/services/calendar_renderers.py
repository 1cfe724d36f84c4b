"""
Month / week / day grid renderers.

Each renderer turns time-grid output plus resource names into view models.
The only state a renderer owns is which popover is open: a single key, so
opening one popover closes any other on the same grid.
"""

from datetime import date
from typing import Dict, List, Optional, Sequence

from app.core.constants import STATUS_CSS, STATUS_GLYPHS, STATUS_LABELS, STATUS_ORDER, WEEKDAY_SHORT_NAMES
from app.core.enums import ViewMode
from app.schemas.calendar_view import (
    BadgeView,
    DayCellView,
    DayGridView,
    HorseColumn,
    LegendItem,
    MonthGridView,
    PopoverView,
    SlotCellView,
    SlotRow,
    StatusOption,
    WeekGridView,
)
from app.schemas.classes import ScheduledClass
from app.services.resource_directory import ResourceDirectory
from app.services.time_grid import (
    build_slot_index,
    cap_classes,
    classes_on,
    count_label,
    day_heading,
    time_slots,
)


def _first_word(text: str) -> str:
    return text.split(" ")[0]


def badge_key(day: date, class_id: int) -> str:
    """Popover key for a month/week badge."""
    return f"{day.isoformat()}-{class_id}"


def slot_key(horse_id: int, slot: str) -> str:
    """Popover key for a day-grid cell."""
    return f"{horse_id}-{slot}"


def build_popover(key: str, clase: ScheduledClass, directory: ResourceDirectory) -> PopoverView:
    """Details + six status buttons, current one flagged."""
    return PopoverView(
        key=key,
        class_id=clase.id,
        time=clase.slot,
        student_name=directory.student_full_name(clase.student_id),
        instructor_name=directory.instructor_name(clase.instructor_id),
        horse_name=directory.horse_name(clase.horse_id),
        specialty=clase.specialty,
        observation=clase.observation or None,
        status=clase.status,
        status_css=STATUS_CSS[clase.status],
        status_options=[
            StatusOption(value=s, label=s.value, current=(s == clase.status)) for s in STATUS_ORDER
        ],
    )


def compact_badge_text(clase: ScheduledClass, directory: ResourceDirectory) -> str:
    """Badge text such as "10:30 García / Tornado" (surname and horse cut to their first word)."""
    surname = _first_word(directory.student_last_name(clase.student_id))
    horse = _first_word(directory.horse_name(clase.horse_id))
    return f"{clase.slot} {surname} / {horse}"


class _PopoverTracker:
    """Single open-popover key per renderer instance."""

    view_mode: ViewMode

    def __init__(self) -> None:
        self.open_key: Optional[str] = None

    def open_popover(self, key: str) -> None:
        self.open_key = key

    def close_popover(self) -> None:
        self.open_key = None

    def is_open(self, key: str) -> bool:
        return self.open_key == key


class _DayCellRenderer(_PopoverTracker):
    """Shared cell building for the month and week grids."""

    def _badge(self, day: date, clase: ScheduledClass, directory: ResourceDirectory) -> BadgeView:
        key = badge_key(day, clase.id)
        is_open = self.is_open(key)
        return BadgeView(
            key=key,
            class_id=clase.id,
            text=compact_badge_text(clase, directory),
            glyph=STATUS_GLYPHS.get(clase.status, ""),
            status=clase.status,
            status_css=STATUS_CSS[clase.status],
            open=is_open,
            popover=build_popover(key, clase, directory) if is_open else None,
        )

    def _cell(
        self,
        day: date,
        classes_by_day: Dict[date, List[ScheduledClass]],
        directory: ResourceDirectory,
        today: date,
        current_month: Optional[int] = None,
    ) -> DayCellView:
        day_classes = classes_by_day.get(day, [])
        capped = cap_classes(day_classes, self.view_mode)
        return DayCellView(
            date=day.isoformat(),
            day_number=day.day,
            is_current_month=current_month is None or day.month == current_month,
            is_today=(day == today),
            count_label=count_label(len(day_classes)) if day_classes else None,
            badges=[self._badge(day, c, directory) for c in capped.visible],
            more_label=capped.more_label,
        )


class MonthRenderer(_DayCellRenderer):
    """Month grid; at most 3 badges per day."""

    view_mode = ViewMode.MONTH

    def render(
        self,
        anchor: date,
        days: Sequence[date],
        classes_by_day: Dict[date, List[ScheduledClass]],
        directory: ResourceDirectory,
        today: date,
    ) -> MonthGridView:
        cells = [
            self._cell(d, classes_by_day, directory, today, current_month=anchor.month)
            for d in days
        ]
        weeks = [cells[i : i + 7] for i in range(0, len(cells), 7)]
        return MonthGridView(weekday_headers=list(WEEKDAY_SHORT_NAMES), weeks=weeks)


class WeekRenderer(_DayCellRenderer):
    """Week grid; at most 10 badges per day."""

    view_mode = ViewMode.WEEK

    def render(
        self,
        days: Sequence[date],
        classes_by_day: Dict[date, List[ScheduledClass]],
        directory: ResourceDirectory,
        today: date,
    ) -> WeekGridView:
        return WeekGridView(
            weekday_headers=list(WEEKDAY_SHORT_NAMES),
            days=[self._cell(d, classes_by_day, directory, today) for d in days],
        )


class DayRenderer(_PopoverTracker):
    """
    Day table: one column per horse (sorted by name), one row per half-hour
    slot. Every cell is looked up in the slot index; there is no cap.
    """

    view_mode = ViewMode.DAY

    def render(
        self,
        day: date,
        classes: Sequence[ScheduledClass],
        directory: ResourceDirectory,
    ) -> DayGridView:
        horses = directory.horses_by_name()
        day_classes = classes_on(classes, day)
        index = build_slot_index(day_classes, horses)

        columns = [
            HorseColumn(
                id=h.id,
                name=h.name,
                is_private=h.is_private,
                title="Caballo Privado" if h.is_private else "Caballo de Escuela",
            )
            for h in horses
        ]

        rows: List[SlotRow] = []
        for slot in time_slots():
            cells: List[SlotCellView] = []
            for horse in horses:
                key = slot_key(horse.id, slot)
                clase = index.get((horse.id, slot))
                if clase is None:
                    cells.append(SlotCellView(key=key, horse_id=horse.id, time=slot))
                    continue
                is_open = self.is_open(key)
                cells.append(
                    SlotCellView(
                        key=key,
                        horse_id=horse.id,
                        time=slot,
                        empty=False,
                        class_id=clase.id,
                        text=directory.student_first_name(clase.student_id),
                        glyph=STATUS_GLYPHS.get(clase.status, ""),
                        status=clase.status,
                        status_css=STATUS_CSS[clase.status],
                        open=is_open,
                        popover=build_popover(key, clase, directory) if is_open else None,
                    )
                )
            rows.append(SlotRow(time=slot, cells=cells))

        return DayGridView(
            date=day.isoformat(),
            heading=day_heading(day),
            class_count=len(day_classes),
            horses=columns,
            rows=rows,
        )


class CalendarRenderers:
    """The three renderer instances of one calendar page."""

    def __init__(self) -> None:
        self.month = MonthRenderer()
        self.week = WeekRenderer()
        self.day = DayRenderer()

    def for_mode(self, mode: ViewMode) -> _PopoverTracker:
        mode = ViewMode(mode)
        if mode == ViewMode.MONTH:
            return self.month
        if mode == ViewMode.WEEK:
            return self.week
        return self.day


def status_legend() -> List[LegendItem]:
    return [
        LegendItem(status=s, label=STATUS_LABELS[s], css=STATUS_CSS[s]) for s in STATUS_ORDER
    ]
