"""
Day-view spreadsheet export: rows = time slots, columns = horses, cell = student.

Built entirely from already-fetched data; no backend call.
"""

import io
import re
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

from openpyxl import Workbook
from openpyxl.utils import get_column_letter

from app.core.constants import EXPORT_SHEET_NAME, EXPORT_TIME_HEADER, STATUS_GLYPHS
from app.schemas.classes import ScheduledClass
from app.services.resource_directory import ResourceDirectory
from app.services.time_grid import build_slot_index, classes_on, time_slots


@dataclass
class DayExport:
    """Export content plus the file name the browser should save it as."""

    filename: str
    headers: List[str]
    rows: List[List[str]]

    def to_xlsx(self) -> bytes:
        """Serialize as a one-sheet workbook."""
        wb = Workbook()
        ws = wb.active
        ws.title = EXPORT_SHEET_NAME
        ws.append(self.headers)
        for row in self.rows:
            ws.append(row)
        for idx, header in enumerate(self.headers, start=1):
            width = 8 if idx == 1 else max(18, len(header) + 2)
            ws.column_dimensions[get_column_letter(idx)].width = width
        buf = io.BytesIO()
        wb.save(buf)
        return buf.getvalue()


def status_glyph_prefix(clase: ScheduledClass) -> str:
    """Glyph and space before the student name: ACA and ASA only."""
    glyph = STATUS_GLYPHS.get(clase.status)
    return f"{glyph} " if glyph else ""


def export_filename(day: date, instructor_label: Optional[str] = None) -> str:
    """Clases_{yyyy-MM-dd}[_{label with whitespace as underscores}].xlsx"""
    name = f"Clases_{day.isoformat()}"
    if instructor_label:
        name += "_" + re.sub(r"\s", "_", instructor_label)
    return f"{name}.xlsx"


def build_day_export(
    day: date,
    classes: Iterable[ScheduledClass],
    directory: ResourceDirectory,
    instructor_label: Optional[str] = None,
) -> DayExport:
    """
    Build the export grid for day from the (already filtered) class list.

    **Input (request):**
        - day: exported date.
        - classes: class collection after the active filters.
        - directory: name lookups; horses give the column order (by name).
        - instructor_label: instructor name when an instructor filter is active.

    **Output (response):** DayExport with header `Hora, <horses...>` and one row per slot.
    """
    horses = directory.horses_by_name()
    index = build_slot_index(classes_on(classes, day), horses)

    headers = [EXPORT_TIME_HEADER] + [h.name for h in horses]
    rows: List[List[str]] = []
    for slot in time_slots():
        row = [slot]
        for horse in horses:
            clase = index.get((horse.id, slot))
            if clase is None:
                row.append("")
            else:
                row.append(status_glyph_prefix(clase) + directory.student_full_name(clase.student_id))
        rows.append(row)

    return DayExport(
        filename=export_filename(day, instructor_label),
        headers=headers,
        rows=rows,
    )
