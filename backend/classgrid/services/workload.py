from __future__ import annotations

from collections.abc import Mapping

from classgrid.schemas.timetable import GridSummaryOut, TeacherLoadEntry
from classgrid.services.grid_store import GridStore
from classgrid.services.period_calendar import PeriodCalendar, SlotKey


def compute_load(
    grid: Mapping[SlotKey, str],
    teacher_assignments: Mapping[SlotKey, str],
    calendar: PeriodCalendar,
    *,
    weekly_limit: int | None = None,
) -> list[TeacherLoadEntry]:
    totals: dict[str, int] = {}
    for slot in calendar.slots():
        if slot not in grid:
            continue
        teacher = teacher_assignments.get(slot)
        if not teacher:
            continue
        totals[teacher] = totals.get(teacher, 0) + 1

    return [
        TeacherLoadEntry(
            teacher_name=teacher,
            total_periods=total,
            overloaded=weekly_limit is not None and total > weekly_limit,
        )
        for teacher, total in totals.items()
    ]


def store_load(store: GridStore, *, weekly_limit: int | None = None) -> list[TeacherLoadEntry]:
    return compute_load(store.grid, store.teacher_assignments, store.calendar, weekly_limit=weekly_limit)


def grid_summary(store: GridStore, *, weekly_limit: int | None = None) -> GridSummaryOut:
    assignable = store.calendar.assignable_slot_count()
    filled = len(store)
    return GridSummaryOut(
        teacher_load=store_load(store, weekly_limit=weekly_limit),
        filled_slots=filled,
        assignable_slots=assignable,
        is_complete=filled >= assignable,
    )
