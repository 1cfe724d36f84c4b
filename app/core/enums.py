"""
Centralized enums for repeated string values used across the calendar.

Wire values match the riding-school backend exactly (Spanish upper-case
names). Use .value when a string is required (e.g. for API payloads or
form fields).
"""

from enum import Enum


# -----------------------------------------------------------------------------
# Class status and specialty (backend Clase.estado / Clase.especialidad)
# -----------------------------------------------------------------------------


class ClassStatus(str, Enum):
    """
    Status of a scheduled class.

    Any value may be set from any other value; the backend owns whatever
    rules exist. COMPLETADA and CANCELADA are terminal only in practice.
    """

    PROGRAMADA = "PROGRAMADA"
    EN_CURSO = "EN_CURSO"
    COMPLETADA = "COMPLETADA"
    CANCELADA = "CANCELADA"
    ACA = "ACA"  # Ausencia con aviso
    ASA = "ASA"  # Ausencia sin aviso


class Specialty(str, Enum):
    """Lesson specialty (Clase.especialidad)."""

    EQUINOTERAPIA = "EQUINOTERAPIA"
    EQUITACION = "EQUITACION"
    ADIESTRAMIENTO = "ADIESTRAMIENTO"


class HorseType(str, Enum):
    """Caballo.tipoCaballo: school horse or privately owned."""

    ESCUELA = "ESCUELA"
    PRIVADO = "PRIVADO"


# -----------------------------------------------------------------------------
# Calendar view
# -----------------------------------------------------------------------------


class ViewMode(str, Enum):
    """Calendar grid granularity."""

    MONTH = "month"
    WEEK = "week"
    DAY = "day"


class NavigationDirection(str, Enum):
    """Direction for shifting the anchor date by one view unit."""

    PREV = "prev"
    NEXT = "next"


class PendingOperation(str, Enum):
    """Backend operations that disable their trigger while outstanding."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    BULK_CANCEL = "bulk_cancel"
    COPY_WEEK = "copy_week"
    DELETE_RANGE = "delete_range"


class AuxDialog(str, Enum):
    """Toolbar dialogs that are opened and closed independently of the class dialog."""

    COPY_WEEK = "copy"
    DELETE_RANGE = "delete"
    CANCEL_DAY = "cancel-day"


class BulkOutcome(str, Enum):
    """Aggregate result of a fan-out of per-class requests."""

    ALL_SUCCEEDED = "all_succeeded"
    PARTIAL = "partial"
    ALL_FAILED = "all_failed"


# -----------------------------------------------------------------------------
# Notifications and query cache
# -----------------------------------------------------------------------------


class NotificationLevel(str, Enum):
    """Toast level shown after a user intent completes."""

    SUCCESS = "success"
    ERROR = "error"


class QueryKey(str, Enum):
    """Key space of the shared query cache (one per backend list)."""

    CLASES = "clases"
    ALUMNOS = "alumnos"
    INSTRUCTORES = "instructores"
    CABALLOS = "caballos"


# -----------------------------------------------------------------------------
# API response message
# -----------------------------------------------------------------------------


class ApiResponseMessage(str, Enum):
    """Default message for successful API responses."""

    SUCCESS = "success"
