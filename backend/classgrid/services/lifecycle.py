from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.orm import Session

from classgrid.models.timetable import ClassSchedule, ScheduleStatus


def get_or_create_class_schedule(db: Session, class_name: str) -> ClassSchedule:
    record = db.get(ClassSchedule, class_name)
    if record is None:
        record = ClassSchedule(
            class_name=class_name,
            last_saved_status=ScheduleStatus.draft,
            is_published=False,
            entry_count=0,
        )
        db.add(record)
    return record


class LifecycleController:
    """Draft/Published state of one class.

    The class-level flag only ever moves Draft -> Published. Each save still picks
    its own row-level status, so a draft save after publishing writes ``Draft``
    rows while the class stays published.
    """

    def __init__(self, record: ClassSchedule) -> None:
        self._record = record

    @property
    def class_name(self) -> str:
        return self._record.class_name

    @property
    def state(self) -> ScheduleStatus:
        return ScheduleStatus.published if self._record.is_published else ScheduleStatus.draft

    @property
    def is_published(self) -> bool:
        return bool(self._record.is_published)

    @property
    def last_saved_status(self) -> ScheduleStatus:
        return self._record.last_saved_status or ScheduleStatus.draft

    def record_save(self, status: ScheduleStatus, entry_count: int) -> None:
        self._record.last_saved_status = status
        self._record.entry_count = entry_count
        if status == ScheduleStatus.published:
            self.publish()

    def publish(self) -> None:
        if self._record.is_published:
            return
        self._record.is_published = True
        self._record.published_at = datetime.now(timezone.utc)
