"""
Read-only ID -> display-name lookups for students, instructors and horses.

Built from the cached backend lists; unknown IDs render as "-".
"""

from typing import Dict, Iterable, List, Tuple

from app.core.enums import HorseType
from app.schemas.classes import Horse, Instructor, Student

MISSING_NAME = "-"


class ResourceDirectory:
    """Name lookups over one snapshot of the resource lists."""

    def __init__(
        self,
        students: Iterable[Student] = (),
        instructors: Iterable[Instructor] = (),
        horses: Iterable[Horse] = (),
    ):
        self._students: Dict[int, Student] = {s.id: s for s in students}
        self._instructors: Dict[int, Instructor] = {i.id: i for i in instructors}
        self._horses: Dict[int, Horse] = {h.id: h for h in horses}

    @property
    def students(self) -> List[Student]:
        return list(self._students.values())

    @property
    def instructors(self) -> List[Instructor]:
        return list(self._instructors.values())

    @property
    def horses(self) -> List[Horse]:
        return list(self._horses.values())

    def student_first_name(self, student_id: int) -> str:
        student = self._students.get(student_id)
        return student.first_name if student else MISSING_NAME

    def student_last_name(self, student_id: int) -> str:
        student = self._students.get(student_id)
        return student.last_name if student else MISSING_NAME

    def student_full_name(self, student_id: int) -> str:
        student = self._students.get(student_id)
        return student.full_name if student else MISSING_NAME

    def instructor_name(self, instructor_id: int) -> str:
        instructor = self._instructors.get(instructor_id)
        return instructor.full_name if instructor else MISSING_NAME

    def horse_name(self, horse_id: int) -> str:
        horse = self._horses.get(horse_id)
        if horse is None or not horse.name:
            return MISSING_NAME
        return horse.name

    def horses_by_name(self) -> List[Horse]:
        """Horses sorted by name, case-insensitive (day-view columns and export columns)."""
        return sorted(self._horses.values(), key=lambda h: (h.name.casefold(), h.id))

    def active_instructors(self) -> List[Instructor]:
        return [i for i in self._instructors.values() if i.active]

    def available_horses(self) -> List[Horse]:
        return [h for h in self._horses.values() if h.available]

    # ---- Select options for the class dialog and filter bar ----

    def student_options(self) -> List[Tuple[int, str]]:
        return [(s.id, s.full_name) for s in self._students.values()]

    def instructor_options(self, active_only: bool = False) -> List[Tuple[int, str]]:
        source = self.active_instructors() if active_only else self.instructors
        return [(i.id, i.full_name) for i in source]

    def horse_options(self) -> List[Tuple[int, str]]:
        """Available horses labelled "Nombre (Escuela|Privado)"."""
        return [
            (h.id, f"{h.name} ({'Escuela' if h.horse_type == HorseType.ESCUELA else 'Privado'})")
            for h in self.available_horses()
        ]
