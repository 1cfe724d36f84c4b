"""Pydantic schemas for backend records (classes, students, instructors, horses) and class forms."""

from datetime import date
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import ClassStatus, HorseType, Specialty


class _BackendModel(BaseModel):
    """Backend JSON uses Spanish camelCase names; Python code uses the field names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Student(_BackendModel):
    """Alumno."""

    id: int
    dni: Optional[str] = None
    first_name: str = Field("", alias="nombre")
    last_name: str = Field("", alias="apellido")
    birth_date: Optional[str] = Field(None, alias="fechaNacimiento")
    phone: Optional[str] = Field(None, alias="telefono")
    email: Optional[str] = None
    enrollment_date: Optional[str] = Field(None, alias="fechaInscripcion")
    class_count: Optional[int] = Field(None, alias="cantidadClases")
    owner: bool = Field(False, alias="propietario")
    active: bool = Field(True, alias="activo")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Instructor(_BackendModel):
    """Instructor."""

    id: int
    dni: Optional[str] = None
    first_name: str = Field("", alias="nombre")
    last_name: str = Field("", alias="apellido")
    birth_date: Optional[str] = Field(None, alias="fechaNacimiento")
    phone: Optional[str] = Field(None, alias="telefono")
    email: Optional[str] = None
    active: bool = Field(True, alias="activo")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Horse(_BackendModel):
    """Caballo. owner_id is set for privately owned horses."""

    id: int
    name: str = Field("", alias="nombre")
    horse_type: HorseType = Field(HorseType.ESCUELA, alias="tipoCaballo")
    available: bool = Field(True, alias="disponible")
    owner_id: Optional[int] = Field(None, alias="alumnoId")

    @property
    def is_private(self) -> bool:
        return self.horse_type == HorseType.PRIVADO


class ScheduledClass(_BackendModel):
    """
    One lesson slot (Clase).

    References student, instructor and horse by bare ID; names are resolved
    through the resource directory, never stored here.
    """

    id: int
    day: date = Field(alias="dia")
    time: str = Field(alias="hora")  # "HH:MM" or "HH:MM:SS"
    specialty: str = Field(alias="especialidad")
    status: ClassStatus = Field(ClassStatus.PROGRAMADA, alias="estado")
    observation: Optional[str] = Field(None, alias="observaciones")
    student_id: int = Field(alias="alumnoId")
    instructor_id: int = Field(alias="instructorId")
    horse_id: int = Field(alias="caballoId")

    @property
    def slot(self) -> str:
        """Start time truncated to HH:MM (grid key)."""
        return self.time[:5]


class DetailedClass(ScheduledClass):
    """Clase as returned by GET /clases/detalles, with embedded resources."""

    student: Optional[Student] = Field(None, alias="alumno")
    instructor: Optional[Instructor] = Field(None, alias="instructor")
    horse: Optional[Horse] = Field(None, alias="caballo")


class ClassForm(_BackendModel):
    """
    Values of the create/edit class dialog. Every field is required except
    status, which only the edit form carries.
    """

    time: str = Field(alias="hora", min_length=1)
    student_id: int = Field(alias="alumnoId")
    instructor_id: int = Field(alias="instructorId")
    horse_id: int = Field(alias="caballoId")
    specialty: Specialty = Field(alias="especialidad")
    status: Optional[ClassStatus] = Field(None, alias="estado")

    def create_payload(self, day: date) -> Dict[str, Any]:
        """Body for POST /clases; new classes always start PROGRAMADA."""
        return {
            "dia": day.isoformat(),
            "hora": self.time,
            "caballoId": self.horse_id,
            "alumnoId": self.student_id,
            "instructorId": self.instructor_id,
            "especialidad": self.specialty.value,
            "estado": ClassStatus.PROGRAMADA.value,
        }

    def update_payload(self) -> Dict[str, Any]:
        """Body for PUT /clases/{id} (partial: the day is not rewritten)."""
        payload: Dict[str, Any] = {
            "alumnoId": self.student_id,
            "instructorId": self.instructor_id,
            "caballoId": self.horse_id,
            "especialidad": self.specialty.value,
            "hora": self.time,
        }
        if self.status is not None:
            payload["estado"] = self.status.value
        return payload


class WeekRangeForm(_BackendModel):
    """Body for copy-week and delete-period: two anchor days."""

    source_day: date = Field(alias="diaInicioOrigen")
    dest_day: date = Field(alias="diaInicioDestino")

    def payload(self) -> Dict[str, str]:
        return {
            "diaInicioOrigen": self.source_day.isoformat(),
            "diaInicioDestino": self.dest_day.isoformat(),
        }
