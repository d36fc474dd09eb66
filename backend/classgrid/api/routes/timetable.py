import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from classgrid.api.deps import get_app_settings, get_calendar, get_db, get_teacher_directory
from classgrid.core.config import Settings
from classgrid.models.timetable import ScheduleStatus
from classgrid.schemas.generator import GeneratedTimetableOut, GenerateTimetableRequest
from classgrid.schemas.timetable import (
    AssignSlotRequest,
    ClearOverrideRequest,
    ClearSlotRequest,
    GridMutationOut,
    GridSnapshot,
    GridSummaryOut,
    LoadedTimetableOut,
    OverrideTeacherRequest,
    RosterEntry,
    SaveTimetableRequest,
    SaveTimetableResponse,
    SlotRef,
    TeacherClash,
    TeacherTimetableOut,
    TimetableExistsOut,
)
from classgrid.services.audit import log_activity
from classgrid.services.conflict_service import TeacherClashService
from classgrid.services.generation import get_generation_bridge
from classgrid.services.grid_store import GridStore
from classgrid.services.notifications import notify_timetable_published
from classgrid.services.period_calendar import PeriodCalendar, SlotKey
from classgrid.services.teacher_directory import TeacherDirectory
from classgrid.services.timetable_sync import LoadedSchedule, SaveResult, TimetableSynchronizer
from classgrid.services.workload import grid_summary, store_load

router = APIRouter()
logger = logging.getLogger(__name__)


def _class_name(value: str | None) -> str:
    trimmed = (value or "").strip()
    if not trimmed:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A class name is required")
    return trimmed


def _slot(ref: SlotRef) -> SlotKey:
    return SlotKey(ref.day.strip(), ref.period.strip())


def _roster(requested: list[RosterEntry] | None, directory: TeacherDirectory) -> list[RosterEntry]:
    if requested is not None:
        return list(requested)
    return directory.roster()


def _store(
    snapshot: GridSnapshot,
    calendar: PeriodCalendar,
    settings: Settings,
    roster: list[RosterEntry] | None = None,
) -> GridStore:
    return GridStore.from_snapshot(
        snapshot,
        calendar,
        roster or [],
        preserve_overrides=settings.preserve_teacher_overrides,
    )


def _mutation_out(store: GridStore, class_name: str | None, settings: Settings) -> GridMutationOut:
    return GridMutationOut(
        snapshot=store.snapshot(class_name),
        teacher_load=store_load(store, weekly_limit=settings.teacher_weekly_period_limit),
    )


def _loaded_out(loaded: LoadedSchedule, calendar: PeriodCalendar, settings: Settings) -> LoadedTimetableOut:
    store = GridStore(calendar, preserve_overrides=settings.preserve_teacher_overrides)
    store.load(loaded.grid, loaded.teacher_assignments)
    return LoadedTimetableOut(
        class_name=loaded.class_name,
        snapshot=store.snapshot(loaded.class_name),
        status=loaded.status,
        is_published=loaded.is_published,
        subjects=store.subjects(),
        teacher_load=store_load(store, weekly_limit=settings.teacher_weekly_period_limit),
    )


def _save_response(result: SaveResult, message: str) -> SaveTimetableResponse:
    return SaveTimetableResponse(
        class_name=result.class_name,
        status=result.status,
        is_published=result.is_published,
        entry_count=result.entry_count,
        unresolved_teachers=result.unresolved_teachers,
        message=message,
    )


@router.post("/grid/assign", response_model=GridMutationOut)
def assign_slot(
    payload: AssignSlotRequest,
    settings: Settings = Depends(get_app_settings),
    calendar: PeriodCalendar = Depends(get_calendar),
    directory: TeacherDirectory = Depends(get_teacher_directory),
) -> GridMutationOut:
    store = _store(payload.snapshot, calendar, settings, _roster(payload.roster, directory))
    store.assign(_slot(payload.slot), payload.subject)
    return _mutation_out(store, payload.snapshot.class_name, settings)


@router.post("/grid/clear", response_model=GridMutationOut)
def clear_slot(
    payload: ClearSlotRequest,
    settings: Settings = Depends(get_app_settings),
    calendar: PeriodCalendar = Depends(get_calendar),
) -> GridMutationOut:
    store = _store(payload.snapshot, calendar, settings)
    store.clear(_slot(payload.slot))
    return _mutation_out(store, payload.snapshot.class_name, settings)


@router.post("/grid/override", response_model=GridMutationOut)
def override_slot_teacher(
    payload: OverrideTeacherRequest,
    settings: Settings = Depends(get_app_settings),
    calendar: PeriodCalendar = Depends(get_calendar),
) -> GridMutationOut:
    store = _store(payload.snapshot, calendar, settings)
    store.override_teacher(_slot(payload.slot), payload.teacher)
    return _mutation_out(store, payload.snapshot.class_name, settings)


@router.post("/grid/override/clear", response_model=GridMutationOut)
def clear_slot_teacher_override(
    payload: ClearOverrideRequest,
    settings: Settings = Depends(get_app_settings),
    calendar: PeriodCalendar = Depends(get_calendar),
    directory: TeacherDirectory = Depends(get_teacher_directory),
) -> GridMutationOut:
    store = _store(payload.snapshot, calendar, settings, _roster(payload.roster, directory))
    store.clear_override(_slot(payload.slot))
    return _mutation_out(store, payload.snapshot.class_name, settings)


@router.post("/grid/load", response_model=GridSummaryOut)
def summarize_grid(
    snapshot: GridSnapshot,
    settings: Settings = Depends(get_app_settings),
    calendar: PeriodCalendar = Depends(get_calendar),
) -> GridSummaryOut:
    store = _store(snapshot, calendar, settings)
    return grid_summary(store, weekly_limit=settings.teacher_weekly_period_limit)


@router.post("/generate", response_model=GeneratedTimetableOut)
def generate_timetable(
    payload: GenerateTimetableRequest,
    settings: Settings = Depends(get_app_settings),
    calendar: PeriodCalendar = Depends(get_calendar),
    directory: TeacherDirectory = Depends(get_teacher_directory),
    db: Session = Depends(get_db),
) -> GeneratedTimetableOut:
    class_name = _class_name(payload.class_name)
    roster = _roster(payload.teachers, directory)
    bridge = get_generation_bridge(settings, calendar)
    schedule = bridge.generate(class_name, roster, payload.subject_period_targets, payload.freeform_rules)

    log_activity(
        db,
        actor=None,
        action="timetable.generate",
        entity_type="class_timetable",
        entity_id=class_name,
        details={"slots": len(schedule.store), "suggestions": len(schedule.suggestions)},
    )
    db.commit()

    return GeneratedTimetableOut(
        class_name=class_name,
        subjects=schedule.subjects or schedule.store.subjects(),
        snapshot=schedule.store.snapshot(class_name),
        suggestions=schedule.suggestions,
        reported_teacher_load=schedule.reported_teacher_load,
        teacher_load=store_load(schedule.store, weekly_limit=settings.teacher_weekly_period_limit),
    )


@router.get("/classes/{class_name}", response_model=LoadedTimetableOut)
def load_class_timetable(
    class_name: str,
    settings: Settings = Depends(get_app_settings),
    calendar: PeriodCalendar = Depends(get_calendar),
    directory: TeacherDirectory = Depends(get_teacher_directory),
    db: Session = Depends(get_db),
) -> LoadedTimetableOut:
    class_name = _class_name(class_name)
    loaded = TimetableSynchronizer(db, calendar).load(class_name, directory)
    return _loaded_out(loaded, calendar, settings)


@router.get("/classes/{class_name}/published", response_model=LoadedTimetableOut)
def load_published_class_timetable(
    class_name: str,
    settings: Settings = Depends(get_app_settings),
    calendar: PeriodCalendar = Depends(get_calendar),
    directory: TeacherDirectory = Depends(get_teacher_directory),
    db: Session = Depends(get_db),
) -> LoadedTimetableOut:
    class_name = _class_name(class_name)
    loaded = TimetableSynchronizer(db, calendar).load_published(class_name, directory)
    return _loaded_out(loaded, calendar, settings)


@router.get("/teachers/{teacher_id}", response_model=TeacherTimetableOut)
def load_teacher_timetable(
    teacher_id: int,
    settings: Settings = Depends(get_app_settings),
    calendar: PeriodCalendar = Depends(get_calendar),
    directory: TeacherDirectory = Depends(get_teacher_directory),
    db: Session = Depends(get_db),
) -> TeacherTimetableOut:
    teacher_name = directory.name_for_id(teacher_id)
    if teacher_name is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found")
    week = TimetableSynchronizer(db, calendar).load_for_teacher(teacher_id)
    return TeacherTimetableOut(
        teacher_id=teacher_id,
        teacher_name=teacher_name,
        classes={
            class_name: {
                slot.label: subject
                for slot, subject in sorted(slots.items(), key=lambda item: calendar.sort_key(item[0]))
            }
            for class_name, slots in week.classes.items()
        },
        total_periods=week.total_periods,
        overloaded=week.total_periods > settings.teacher_weekly_period_limit,
    )


@router.get("/classes/{class_name}/exists", response_model=TimetableExistsOut)
def class_timetable_exists(
    class_name: str,
    calendar: PeriodCalendar = Depends(get_calendar),
    db: Session = Depends(get_db),
) -> TimetableExistsOut:
    class_name = _class_name(class_name)
    return TimetableExistsOut(
        class_name=class_name,
        exists=TimetableSynchronizer(db, calendar).exists(class_name),
    )


@router.put("/classes/{class_name}/draft", response_model=SaveTimetableResponse)
def save_class_timetable_draft(
    class_name: str,
    payload: SaveTimetableRequest,
    settings: Settings = Depends(get_app_settings),
    calendar: PeriodCalendar = Depends(get_calendar),
    directory: TeacherDirectory = Depends(get_teacher_directory),
    db: Session = Depends(get_db),
) -> SaveTimetableResponse:
    class_name = _class_name(class_name)
    store = _store(payload.snapshot, calendar, settings)
    result = TimetableSynchronizer(db, calendar).save(
        class_name,
        store,
        directory,
        ScheduleStatus.draft,
        actor=payload.actor,
    )
    return _save_response(result, "Timetable saved successfully!")


@router.post("/classes/{class_name}/publish", response_model=SaveTimetableResponse)
def publish_class_timetable(
    class_name: str,
    payload: SaveTimetableRequest,
    settings: Settings = Depends(get_app_settings),
    calendar: PeriodCalendar = Depends(get_calendar),
    directory: TeacherDirectory = Depends(get_teacher_directory),
    db: Session = Depends(get_db),
) -> SaveTimetableResponse:
    class_name = _class_name(class_name)
    store = _store(payload.snapshot, calendar, settings)
    result = TimetableSynchronizer(db, calendar).save(
        class_name,
        store,
        directory,
        ScheduleStatus.published,
        actor=payload.actor,
    )

    try:
        notify_timetable_published(db, class_name)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception(
            "TIMETABLE PUBLISH NOTIFICATION FAILED | class=%s | entries=%d",
            class_name,
            result.entry_count,
        )
    return _save_response(result, "Timetable Published!")


@router.post("/classes/{class_name}/clashes", response_model=list[TeacherClash])
def class_timetable_clashes(
    class_name: str,
    snapshot: GridSnapshot,
    settings: Settings = Depends(get_app_settings),
    calendar: PeriodCalendar = Depends(get_calendar),
    directory: TeacherDirectory = Depends(get_teacher_directory),
    db: Session = Depends(get_db),
) -> list[TeacherClash]:
    class_name = _class_name(class_name)
    store = _store(snapshot, calendar, settings)
    return TeacherClashService(db, directory).detect_clashes(class_name, store)
