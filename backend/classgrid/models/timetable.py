from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from classgrid.db.base import Base


class ScheduleStatus(str, Enum):
    draft = "Draft"
    published = "Published"


class TimetableEntry(Base):
    """One occupied, non-break slot of a class timetable."""

    __tablename__ = "timetable_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    class_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    day: Mapped[str] = mapped_column(String(20), nullable=False)
    period_index: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    teacher_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    status: Mapped[ScheduleStatus] = mapped_column(
        SAEnum(ScheduleStatus, name="schedule_status", values_callable=lambda items: [item.value for item in items]),
        nullable=False,
        default=ScheduleStatus.draft,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class ClassSchedule(Base):
    """Class-level lifecycle record; ``is_published`` never goes back to False."""

    __tablename__ = "class_schedules"

    class_name: Mapped[str] = mapped_column(String(100), primary_key=True)
    last_saved_status: Mapped[ScheduleStatus] = mapped_column(
        SAEnum(
            ScheduleStatus,
            name="class_schedule_status",
            values_callable=lambda items: [item.value for item in items],
        ),
        nullable=False,
        default=ScheduleStatus.draft,
    )
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    entry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
