from collections import defaultdict
from typing import Dict, List, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from classgrid.models.timetable import TimetableEntry
from classgrid.schemas.timetable import TeacherClash
from classgrid.services.grid_store import GridStore
from classgrid.services.teacher_directory import TeacherDirectory


class TeacherClashService:
    """Warns when a teacher of the edited grid is already booked by another class.

    Read-only: stored rows of other classes are compared by (day, start time),
    nothing is blocked or changed.
    """

    def __init__(self, db: Session, directory: TeacherDirectory):
        self.db = db
        self.directory = directory

    def detect_clashes(self, class_name: str, store: GridStore) -> List[TeacherClash]:
        calendar = store.calendar
        wanted: Dict[Tuple[str, str, int], str] = {}
        for slot, teacher_name in store.teacher_assignments.items():
            teacher_id = self.directory.id_for_name(teacher_name)
            if teacher_id is None:
                continue
            period = calendar.period(slot.period)
            wanted[(slot.day, period.start, teacher_id)] = slot.label

        if not wanted:
            return []

        teacher_ids = {key[2] for key in wanted}
        rows = self.db.execute(
            select(TimetableEntry).where(
                TimetableEntry.class_name != class_name,
                TimetableEntry.teacher_id.in_(teacher_ids),
            )
        ).scalars()

        by_slot = defaultdict(list)
        for row in rows:
            label = wanted.get((row.day, row.start_time, row.teacher_id))
            if label is None:
                continue
            by_slot[label].append(row)

        clashes: List[TeacherClash] = []
        for label in sorted(by_slot, key=lambda item: calendar.sort_key(calendar.parse_label(item))):
            for row in sorted(by_slot[label], key=lambda item: item.class_name):
                clashes.append(TeacherClash(
                    slot=label,
                    teacher_name=self.directory.name_for_id(row.teacher_id) or str(row.teacher_id),
                    other_class_name=row.class_name,
                    other_subject=row.subject,
                ))
        return clashes
