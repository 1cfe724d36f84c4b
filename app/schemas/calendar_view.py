"""Pydantic schemas for the rendered calendar (month/week cells, day grid, popovers, toolbar)."""

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel

from app.core.enums import ClassStatus, ViewMode


class StatusOption(BaseModel):
    """One quick status button in a popover."""

    value: ClassStatus
    label: str
    current: bool = False


class PopoverView(BaseModel):
    """Class details shown when a badge/cell is open."""

    key: str
    class_id: int
    time: str
    student_name: str
    instructor_name: str
    horse_name: str
    specialty: str
    observation: Optional[str] = None
    status: ClassStatus
    status_css: str
    status_options: List[StatusOption] = []


class BadgeView(BaseModel):
    """Compact class badge inside a month/week day cell."""

    key: str
    class_id: int
    text: str
    glyph: str = ""
    status: ClassStatus
    status_css: str
    open: bool = False
    popover: Optional[PopoverView] = None


class DayCellView(BaseModel):
    """One day of the month or week grid."""

    date: str
    day_number: int
    is_current_month: bool = True
    is_today: bool = False
    count_label: Optional[str] = None
    badges: List[BadgeView] = []
    more_label: Optional[str] = None


class MonthGridView(BaseModel):
    """Month grid: rows of 7 cells, Monday first."""

    weekday_headers: List[str]
    weeks: List[List[DayCellView]]


class WeekGridView(BaseModel):
    """Week grid: 7 cells, Monday first."""

    weekday_headers: List[str]
    days: List[DayCellView]


class HorseColumn(BaseModel):
    """Day-grid column header."""

    id: int
    name: str
    is_private: bool = False
    title: str = "Caballo de Escuela"


class SlotCellView(BaseModel):
    """One (horse, time) cell of the day grid; empty cells lead to a prefilled create dialog."""

    key: str
    horse_id: int
    time: str
    empty: bool = True
    class_id: Optional[int] = None
    text: str = ""
    glyph: str = ""
    status: Optional[ClassStatus] = None
    status_css: str = ""
    open: bool = False
    popover: Optional[PopoverView] = None


class SlotRow(BaseModel):
    time: str
    cells: List[SlotCellView]


class DayGridView(BaseModel):
    """Excel-like day table: rows = time slots, columns = horses."""

    date: str
    heading: str
    class_count: int
    horses: List[HorseColumn]
    rows: List[SlotRow]


class DialogView(BaseModel):
    """Create/edit class dialog as rendered (None when closed)."""

    mode: str  # "create" | "edit"
    title: str
    description: str
    defaults: Dict[str, str]
    show_status: bool = False
    pending: bool = False


class ToolbarView(BaseModel):
    """Toolbar state: export / cancel-day (day view only), copy week, delete range."""

    show_export: bool = False
    show_cancel_day: bool = False
    cancel_day_count: int = 0
    cancel_day_date: str = ""
    cancellation_reasons: List[str] = []
    copy_open: bool = False
    delete_open: bool = False
    cancel_day_open: bool = False
    copy_pending: bool = False
    delete_pending: bool = False
    cancel_pending: bool = False


class NotificationView(BaseModel):
    level: str
    message: str


class LegendItem(BaseModel):
    status: ClassStatus
    label: str
    css: str


class CalendarPageView(BaseModel):
    """Everything the calendar page needs for one render."""

    anchor: str
    view_mode: ViewMode
    title: str
    filters: Dict[str, str]
    student_options: List[Tuple[int, str]] = []
    instructor_options: List[Tuple[int, str]] = []
    active_instructor_options: List[Tuple[int, str]] = []
    horse_options: List[Tuple[int, str]] = []
    specialty_options: List[str] = []
    status_options: List[str] = []
    month: Optional[MonthGridView] = None
    week: Optional[WeekGridView] = None
    day: Optional[DayGridView] = None
    toolbar: ToolbarView
    dialog: Optional[DialogView] = None
    notifications: List[NotificationView] = []
    legend: List[LegendItem] = []
