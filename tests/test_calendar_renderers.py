from datetime import date

from app.core.enums import ClassStatus, ViewMode
from app.schemas.classes import ScheduledClass
from app.services.calendar_renderers import (
    CalendarRenderers,
    DayRenderer,
    MonthRenderer,
    WeekRenderer,
    badge_key,
    compact_badge_text,
    slot_key,
    status_legend,
)
from app.services.time_grid import compute_visible_days, group_by_day


def test_compact_badge_text_uses_first_words(classes, directory):
    bruno_on_luna = next(c for c in classes if c.id == 2)
    assert compact_badge_text(bruno_on_luna, directory) == "10:30 López / Luna"


def test_month_cells_cap_badges_and_flag_today(make_class, directory):
    day = date(2024, 3, 15)
    many = [
        ScheduledClass.model_validate(make_class(i, "2024-03-15", f"{9 + i:02d}:00", caballo=7))
        for i in range(5)
    ]
    renderer = MonthRenderer()
    grid = renderer.render(
        day, compute_visible_days(day, ViewMode.MONTH), group_by_day(many), directory, today=day
    )
    assert len(grid.weeks) == 5
    assert all(len(week) == 7 for week in grid.weeks)
    assert grid.weekday_headers[0] == "Lun"

    cells = {cell.date: cell for week in grid.weeks for cell in week}
    cell = cells["2024-03-15"]
    assert cell.is_today
    assert cell.count_label == "5 clases"
    assert len(cell.badges) == 3
    assert cell.more_label == "+2 más"
    assert not cells["2024-02-26"].is_current_month
    assert cells["2024-03-16"].count_label is None


def test_week_cells_show_up_to_ten(make_class, directory):
    many = [
        ScheduledClass.model_validate(make_class(i, "2024-03-15", "10:00", caballo=7))
        for i in range(12)
    ]
    days = compute_visible_days(date(2024, 3, 15), ViewMode.WEEK)
    grid = WeekRenderer().render(days, group_by_day(many), directory, today=date(2024, 3, 1))
    friday = grid.days[4]
    assert friday.date == "2024-03-15"
    assert len(friday.badges) == 10
    assert friday.more_label == "+2 más"
    assert not friday.is_today


def test_only_one_popover_open_per_grid(classes, directory):
    day = date(2024, 3, 15)
    renderer = MonthRenderer()
    renderer.open_popover(badge_key(day, 1))
    renderer.open_popover(badge_key(day, 2))
    grid = renderer.render(
        day, compute_visible_days(day, ViewMode.MONTH), group_by_day(classes), directory, today=day
    )
    badges = [b for week in grid.weeks for cell in week for b in cell.badges]
    opened = [b for b in badges if b.open]
    assert [b.class_id for b in opened] == [2]
    popover = opened[0].popover
    assert popover.student_name == "Bruno López Díaz"
    assert popover.instructor_name == "Laura Martínez"
    assert popover.horse_name == "Luna Blanca"
    assert popover.observation == "Trae casco"
    assert [o.value for o in popover.status_options if o.current] == [ClassStatus.PROGRAMADA]
    assert len(popover.status_options) == 6

    renderer.close_popover()
    assert renderer.open_key is None


def test_day_grid_columns_rows_and_cells(classes, directory):
    renderer = DayRenderer()
    renderer.open_popover(slot_key(7, "09:00"))
    grid = renderer.render(date(2024, 3, 15), classes, directory)

    assert [h.name for h in grid.horses] == ["canela", "Luna Blanca", "Tornado"]
    luna = grid.horses[1]
    assert luna.is_private and luna.title == "Caballo Privado"
    assert len(grid.rows) == 20
    assert grid.class_count == 3
    assert grid.heading == "viernes 15 de marzo"

    nine = grid.rows[0]
    tornado_cell = nine.cells[2]
    assert not tornado_cell.empty
    assert tornado_cell.text == "Ana"
    assert tornado_cell.glyph == "🔵"
    assert tornado_cell.open and tornado_cell.popover.class_id == 1

    empty = nine.cells[0]
    assert empty.empty and empty.horse_id == 5 and empty.time == "09:00"


def test_renderers_for_mode_and_legend():
    renderers = CalendarRenderers()
    assert renderers.for_mode(ViewMode.MONTH) is renderers.month
    assert renderers.for_mode("week") is renderers.week
    assert renderers.for_mode(ViewMode.DAY) is renderers.day
    legend = status_legend()
    assert [item.label for item in legend][:2] == ["Programada", "En Curso"]
    assert len(legend) == 6
