from __future__ import annotations

from dataclasses import dataclass, field
import logging

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from classgrid.core.exceptions import PersistenceError
from classgrid.models.timetable import ClassSchedule, ScheduleStatus, TimetableEntry
from classgrid.services.audit import log_activity
from classgrid.services.grid_store import GridStore
from classgrid.services.lifecycle import LifecycleController, get_or_create_class_schedule
from classgrid.services.period_calendar import PeriodCalendar, SlotKey
from classgrid.services.save_guard import class_save_guard
from classgrid.services.teacher_directory import TeacherDirectory

logger = logging.getLogger(__name__)


@dataclass
class SaveResult:
    class_name: str
    status: ScheduleStatus
    entry_count: int
    is_published: bool
    unresolved_teachers: list[str] = field(default_factory=list)


@dataclass
class LoadedSchedule:
    class_name: str
    grid: dict[SlotKey, str]
    teacher_assignments: dict[SlotKey, str]
    status: ScheduleStatus
    is_published: bool
    dropped_rows: int = 0


@dataclass
class TeacherWeek:
    teacher_id: int
    classes: dict[str, dict[SlotKey, str]]
    dropped_rows: int = 0

    @property
    def total_periods(self) -> int:
        return sum(len(slots) for slots in self.classes.values())


class TimetableSynchronizer:
    """Replace-all persistence of one class grid.

    The delete of the old rows, the insert of the new rows and the lifecycle
    update share one transaction, so a failed save leaves the previously stored
    rows in place.
    """

    def __init__(self, db: Session, calendar: PeriodCalendar) -> None:
        self._db = db
        self._calendar = calendar

    def build_entries(
        self,
        class_name: str,
        store: GridStore,
        directory: TeacherDirectory,
        status: ScheduleStatus,
    ) -> tuple[list[TimetableEntry], list[str]]:
        grid = store.grid
        teachers = store.teacher_assignments
        entries: list[TimetableEntry] = []
        unresolved: list[str] = []
        for slot in self._calendar.slots():
            subject = grid.get(slot)
            if not subject:
                continue
            period = self._calendar.period(slot.period)
            teacher_name = teachers.get(slot)
            teacher_id = directory.id_for_name(teacher_name)
            if teacher_name and teacher_id is None and teacher_name not in unresolved:
                unresolved.append(teacher_name)
            entries.append(
                TimetableEntry(
                    class_name=class_name,
                    day=slot.day,
                    period_index=self._calendar.period_index(slot.period),
                    start_time=period.start,
                    end_time=period.end,
                    subject=subject,
                    teacher_id=teacher_id,
                    status=status,
                )
            )
        return entries, unresolved

    def save(
        self,
        class_name: str,
        store: GridStore,
        directory: TeacherDirectory,
        status: ScheduleStatus,
        *,
        actor: str | None = None,
    ) -> SaveResult:
        status = ScheduleStatus(status)
        with class_save_guard.hold(class_name):
            entries, unresolved = self.build_entries(class_name, store, directory, status)
            if unresolved:
                logger.warning(
                    "Saving %s without directory ids for teacher(s): %s",
                    class_name,
                    ", ".join(unresolved),
                )
            try:
                self._db.execute(delete(TimetableEntry).where(TimetableEntry.class_name == class_name))
                if entries:
                    self._db.add_all(entries)
                lifecycle = LifecycleController(get_or_create_class_schedule(self._db, class_name))
                lifecycle.record_save(status, len(entries))
                log_activity(
                    self._db,
                    actor=actor,
                    action="timetable.publish" if status == ScheduleStatus.published else "timetable.save",
                    entity_type="class_timetable",
                    entity_id=class_name,
                    details={
                        "status": status.value,
                        "entry_count": len(entries),
                        "unresolved_teachers": unresolved,
                    },
                )
                self._db.commit()
            except SQLAlchemyError as exc:
                self._db.rollback()
                logger.exception(
                    "TIMETABLE SAVE FAILED | class=%s | status=%s | entries=%d",
                    class_name,
                    status.value,
                    len(entries),
                )
                raise PersistenceError(
                    f"Failed to save timetable for {class_name}; the previously stored timetable is unchanged",
                    details={"class_name": class_name, "status": status.value},
                ) from exc

            return SaveResult(
                class_name=class_name,
                status=status,
                entry_count=len(entries),
                is_published=lifecycle.is_published,
                unresolved_teachers=unresolved,
            )

    def _fetch_rows(self, *criteria) -> list[TimetableEntry]:
        return list(
            self._db.execute(
                select(TimetableEntry).where(*criteria).order_by(TimetableEntry.id.asc())
            ).scalars()
        )

    def _slot_for_row(self, row: TimetableEntry) -> SlotKey | None:
        """Calendar slot of a stored row, or None when the row cannot be placed on the grid."""
        if row.day not in self._calendar.days or not (row.subject or "").strip():
            return None
        period = self._calendar.teaching_period_starting_at(row.start_time)
        if period is None:
            return None
        return SlotKey(row.day, period.name)

    def _rows_to_grid(
        self,
        class_name: str,
        rows: list[TimetableEntry],
        directory: TeacherDirectory,
    ) -> tuple[dict[SlotKey, str], dict[SlotKey, str], int]:
        grid: dict[SlotKey, str] = {}
        teachers: dict[SlotKey, str] = {}
        dropped = 0
        for row in rows:
            slot = self._slot_for_row(row)
            if slot is None:
                dropped += 1
                continue
            grid[slot] = row.subject.strip()
            teacher_name = directory.name_for_id(row.teacher_id)
            if teacher_name:
                teachers[slot] = teacher_name
        if dropped:
            logger.warning("Dropped %d stored row(s) for %s that match no calendar slot", dropped, class_name)
        return grid, teachers, dropped

    def load(self, class_name: str, directory: TeacherDirectory) -> LoadedSchedule:
        try:
            rows = self._fetch_rows(TimetableEntry.class_name == class_name)
            record = self._db.get(ClassSchedule, class_name)
        except SQLAlchemyError as exc:
            logger.exception("TIMETABLE LOAD FAILED | class=%s", class_name)
            raise PersistenceError(
                f"Failed to load timetable for {class_name}",
                details={"class_name": class_name},
            ) from exc

        grid, teachers, dropped = self._rows_to_grid(class_name, rows, directory)

        if rows:
            status = ScheduleStatus(rows[0].status)
        elif record is not None:
            status = LifecycleController(record).last_saved_status
        else:
            status = ScheduleStatus.draft

        if record is not None:
            is_published = record.is_published
        else:
            is_published = status == ScheduleStatus.published

        return LoadedSchedule(
            class_name=class_name,
            grid=grid,
            teacher_assignments=teachers,
            status=status,
            is_published=is_published,
            dropped_rows=dropped,
        )

    def load_published(self, class_name: str, directory: TeacherDirectory) -> LoadedSchedule:
        """Only rows saved with Published status; a later draft save hides them again."""
        try:
            rows = self._fetch_rows(
                TimetableEntry.class_name == class_name,
                TimetableEntry.status == ScheduleStatus.published,
            )
            record = self._db.get(ClassSchedule, class_name)
        except SQLAlchemyError as exc:
            logger.exception("TIMETABLE LOAD FAILED | class=%s | published_only=true", class_name)
            raise PersistenceError(
                f"Failed to load published timetable for {class_name}",
                details={"class_name": class_name},
            ) from exc

        grid, teachers, dropped = self._rows_to_grid(class_name, rows, directory)
        return LoadedSchedule(
            class_name=class_name,
            grid=grid,
            teacher_assignments=teachers,
            status=ScheduleStatus.published,
            is_published=bool(record.is_published) if record is not None else bool(rows),
            dropped_rows=dropped,
        )

    def load_for_teacher(self, teacher_id: int) -> TeacherWeek:
        try:
            rows = self._fetch_rows(
                TimetableEntry.teacher_id == teacher_id,
                TimetableEntry.status == ScheduleStatus.published,
            )
        except SQLAlchemyError as exc:
            logger.exception("TIMETABLE LOAD FAILED | teacher_id=%s", teacher_id)
            raise PersistenceError(
                f"Failed to load timetable for teacher {teacher_id}",
                details={"teacher_id": teacher_id},
            ) from exc

        classes: dict[str, dict[SlotKey, str]] = {}
        dropped = 0
        for row in sorted(rows, key=lambda item: item.class_name):
            slot = self._slot_for_row(row)
            if slot is None:
                dropped += 1
                continue
            classes.setdefault(row.class_name, {})[slot] = row.subject.strip()
        if dropped:
            logger.warning("Dropped %d stored row(s) for teacher %s that match no calendar slot", dropped, teacher_id)
        return TeacherWeek(teacher_id=teacher_id, classes=classes, dropped_rows=dropped)

    def exists(self, class_name: str) -> bool:
        try:
            count = self._db.execute(
                select(func.count(TimetableEntry.id)).where(TimetableEntry.class_name == class_name)
            ).scalar_one()
        except SQLAlchemyError as exc:
            raise PersistenceError(
                f"Failed to check timetable for {class_name}",
                details={"class_name": class_name},
            ) from exc
        return count > 0
