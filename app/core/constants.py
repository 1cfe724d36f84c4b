"""
Calendar constants: operating hours, per-view limits, labels and default messages.

Messages are shown to the user verbatim when the backend does not send its own
`mensaje`.
"""

from typing import Dict, List, Optional, Tuple

from app.core.enums import ClassStatus, ViewMode

# --- Time grid ---

# Half-hour slots from 09:00 to 18:30 (day view rows and export rows)
DAY_START_MINUTES: int = 9 * 60
DAY_END_MINUTES: int = 18 * 60 + 30
SLOT_MINUTES: int = 30

# Badges shown per day cell before collapsing into "+N más"; None = no cap
MAX_CLASSES_PER_CELL: Dict[ViewMode, Optional[int]] = {
    ViewMode.MONTH: 3,
    ViewMode.WEEK: 10,
    ViewMode.DAY: None,
}

DEFAULT_CLASS_TIME: str = "09:00"

# Monday first
WEEKDAY_SHORT_NAMES: Tuple[str, ...] = ("Lun", "Mar", "Mié", "Jue", "Vie", "Sáb", "Dom")
WEEKDAY_FULL_NAMES: Tuple[str, ...] = (
    "lunes",
    "martes",
    "miércoles",
    "jueves",
    "viernes",
    "sábado",
    "domingo",
)
MONTH_NAMES: Tuple[str, ...] = (
    "enero",
    "febrero",
    "marzo",
    "abril",
    "mayo",
    "junio",
    "julio",
    "agosto",
    "septiembre",
    "octubre",
    "noviembre",
    "diciembre",
)

# --- Status presentation ---

# Order of the quick status buttons in popovers
STATUS_ORDER: List[ClassStatus] = [
    ClassStatus.PROGRAMADA,
    ClassStatus.EN_CURSO,
    ClassStatus.COMPLETADA,
    ClassStatus.CANCELADA,
    ClassStatus.ACA,
    ClassStatus.ASA,
]

# Glyphs shown before the student name (badges, day cells, export)
STATUS_GLYPHS: Dict[ClassStatus, str] = {
    ClassStatus.ACA: "🔵",
    ClassStatus.ASA: "🟡",
}

STATUS_CSS: Dict[ClassStatus, str] = {
    ClassStatus.PROGRAMADA: "status-programada",
    ClassStatus.EN_CURSO: "status-en-curso",
    ClassStatus.COMPLETADA: "status-completada",
    ClassStatus.CANCELADA: "status-cancelada",
    ClassStatus.ACA: "status-aca",
    ClassStatus.ASA: "status-asa",
}

STATUS_LABELS: Dict[ClassStatus, str] = {
    ClassStatus.PROGRAMADA: "Programada",
    ClassStatus.EN_CURSO: "En Curso",
    ClassStatus.COMPLETADA: "Completada",
    ClassStatus.CANCELADA: "Cancelada",
    ClassStatus.ACA: "ACA",
    ClassStatus.ASA: "ASA",
}

# Statuses that "Cancelar día" leaves untouched
NON_CANCELABLE_STATUSES = frozenset({ClassStatus.COMPLETADA, ClassStatus.CANCELADA})

# --- Toolbar ---

OTHER_REASON: str = "Otro"
CANCELLATION_REASONS: List[str] = [
    "Lluvia",
    "Feriado",
    "Mantenimiento",
    "Evento Especial",
    "Emergencia",
    OTHER_REASON,
]

# --- Export ---

EXPORT_SHEET_NAME: str = "Clases"
EXPORT_TIME_HEADER: str = "Hora"
EXPORT_MEDIA_TYPE: str = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# --- Default user-facing messages ---

MSG_CLASS_CREATED = "Clase creada correctamente"
MSG_CLASS_UPDATED = "Clase actualizada correctamente"
MSG_CLASS_DELETED = "Clase eliminada correctamente"
MSG_WEEK_COPIED = "Semana copiada correctamente"
MSG_RANGE_DELETED = "Clases eliminadas correctamente"
MSG_EXPORTED = "Excel exportado correctamente"

ERR_CREATE_CLASS = "Error al crear la clase"
ERR_UPDATE_CLASS = "Error al actualizar la clase"
ERR_DELETE_CLASS = "Error al eliminar la clase"
ERR_COPY_WEEK = "Error al copiar la semana"
ERR_DELETE_RANGE = "Error al eliminar clases"
ERR_BULK_CANCEL = "Error al cancelar las clases"
ERR_BOTH_DATES_REQUIRED = "Ambas fechas son obligatorias"
ERR_REQUIRED_FIELDS = "Completa todos los campos obligatorios"
ERR_BAD_CREDENTIALS = "Credenciales incorrectas"
ERR_LOAD_CLASSES = "Error al cargar las clases"
ERR_CLASS_NOT_FOUND = "La clase ya no existe"
ERR_REASON_REQUIRED = "Selecciona un motivo de cancelación"
