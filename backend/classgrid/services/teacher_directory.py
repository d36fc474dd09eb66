from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from classgrid.models.teacher import Teacher
from classgrid.schemas.timetable import RosterEntry


class TeacherDirectory:
    def __init__(self, teachers: Iterable[Teacher]) -> None:
        self._teachers = sorted(teachers, key=lambda item: item.id)
        self._by_id = {teacher.id: teacher for teacher in self._teachers}
        self._by_name: dict[str, Teacher] = {}
        for teacher in self._teachers:
            self._by_name.setdefault(teacher.name.strip().lower(), teacher)

    @classmethod
    def from_db(cls, db: Session) -> "TeacherDirectory":
        return cls(db.execute(select(Teacher).order_by(Teacher.id.asc())).scalars())

    def roster(self) -> list[RosterEntry]:
        return [
            RosterEntry(name=teacher.name, subjects=list(teacher.subjects or []))
            for teacher in self._teachers
            if teacher.is_active
        ]

    def id_for_name(self, name: str | None) -> int | None:
        if not name:
            return None
        teacher = self._by_name.get(name.strip().lower())
        return teacher.id if teacher is not None else None

    def name_for_id(self, teacher_id: int | None) -> str | None:
        if teacher_id is None:
            return None
        teacher = self._by_id.get(teacher_id)
        return teacher.name if teacher is not None else None
