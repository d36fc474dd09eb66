from collections.abc import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from classgrid.core.config import Settings, get_settings
from classgrid.db.session import SessionLocal
from classgrid.services.period_calendar import PeriodCalendar, get_period_calendar
from classgrid.services.teacher_directory import TeacherDirectory


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_app_settings() -> Settings:
    return get_settings()


def get_calendar() -> PeriodCalendar:
    return get_period_calendar()


def get_teacher_directory(db: Session = Depends(get_db)) -> TeacherDirectory:
    return TeacherDirectory.from_db(db)
