from __future__ import annotations

import logging

from sqlalchemy import inspect

from classgrid.db.base import Base
from classgrid.db.session import engine
import classgrid.models  # noqa: F401

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "teachers": {"id", "name", "subjects", "is_active"},
    "timetable_entries": {
        "id",
        "class_name",
        "day",
        "period_index",
        "start_time",
        "end_time",
        "subject",
        "teacher_id",
        "status",
    },
    "class_schedules": {"class_name", "last_saved_status", "is_published", "entry_count"},
    "notifications": {"id", "class_name", "title", "message"},
    "activity_logs": {"id", "action", "details"},
}


def missing_schema_parts(connection) -> tuple[list[str], dict[str, list[str]]]:
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    for table_name, columns in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            missing_tables.append(table_name)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(columns - existing)
        if missing:
            missing_columns[table_name] = missing
    return missing_tables, missing_columns


def ensure_runtime_schema() -> None:
    with engine.begin() as connection:
        missing_tables, missing_columns = missing_schema_parts(connection)
        if missing_tables:
            logger.info("Creating missing table(s): %s", ", ".join(missing_tables))
            Base.metadata.create_all(bind=connection)
        if missing_columns:
            logger.warning("Schema is missing columns, run the migrations: %s", missing_columns)
