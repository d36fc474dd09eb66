from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from classgrid.models.timetable import ScheduleStatus


class RosterEntry(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    subjects: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Teacher name cannot be empty")
        return trimmed

    @field_validator("subjects")
    @classmethod
    def normalize_subjects(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value if item.strip()]


class SlotRef(BaseModel):
    day: str = Field(min_length=1, max_length=20)
    period: str = Field(min_length=1, max_length=50)


class GridSnapshot(BaseModel):
    """A whole-week grid passed by value between the editor, generator and store."""

    class_name: str | None = Field(default=None, alias="className", max_length=100)
    timetable: dict[str, str] = Field(default_factory=dict)
    teacher_assignments: dict[str, str] = Field(default_factory=dict, alias="teacherAssignments")
    teacher_overrides: list[str] = Field(default_factory=list, alias="teacherOverrides")

    model_config = {
        "populate_by_name": True,
    }


class AssignSlotRequest(BaseModel):
    snapshot: GridSnapshot = Field(default_factory=GridSnapshot)
    slot: SlotRef
    subject: str = Field(default="", max_length=200)
    roster: list[RosterEntry] | None = None


class ClearSlotRequest(BaseModel):
    snapshot: GridSnapshot = Field(default_factory=GridSnapshot)
    slot: SlotRef


class OverrideTeacherRequest(BaseModel):
    snapshot: GridSnapshot = Field(default_factory=GridSnapshot)
    slot: SlotRef
    teacher: str = Field(default="", max_length=200)


class ClearOverrideRequest(BaseModel):
    snapshot: GridSnapshot = Field(default_factory=GridSnapshot)
    slot: SlotRef
    roster: list[RosterEntry] | None = None


class TeacherLoadEntry(BaseModel):
    teacher_name: str = Field(alias="teacherName")
    total_periods: int = Field(alias="totalPeriods", ge=0)
    overloaded: bool = False

    model_config = {"populate_by_name": True}


class GridSummaryOut(BaseModel):
    teacher_load: list[TeacherLoadEntry] = Field(default_factory=list, alias="teacherLoad")
    filled_slots: int = Field(alias="filledSlots", ge=0)
    assignable_slots: int = Field(alias="assignableSlots", ge=0)
    is_complete: bool = Field(alias="isComplete")

    model_config = {"populate_by_name": True}


class GridMutationOut(BaseModel):
    snapshot: GridSnapshot
    teacher_load: list[TeacherLoadEntry] = Field(default_factory=list, alias="teacherLoad")

    model_config = {"populate_by_name": True}


class SaveTimetableRequest(BaseModel):
    snapshot: GridSnapshot = Field(default_factory=GridSnapshot)
    actor: str | None = Field(default=None, max_length=200)


class SaveTimetableResponse(BaseModel):
    class_name: str = Field(alias="className")
    status: ScheduleStatus
    is_published: bool = Field(alias="isPublished")
    entry_count: int = Field(alias="entryCount", ge=0)
    unresolved_teachers: list[str] = Field(default_factory=list, alias="unresolvedTeachers")
    message: str

    model_config = {"populate_by_name": True}


class LoadedTimetableOut(BaseModel):
    class_name: str = Field(alias="className")
    snapshot: GridSnapshot
    status: ScheduleStatus
    is_published: bool = Field(alias="isPublished")
    subjects: list[str] = Field(default_factory=list)
    teacher_load: list[TeacherLoadEntry] = Field(default_factory=list, alias="teacherLoad")

    model_config = {"populate_by_name": True}


class TimetableExistsOut(BaseModel):
    class_name: str = Field(alias="className")
    exists: bool

    model_config = {"populate_by_name": True}


class TeacherClash(BaseModel):
    slot: str
    teacher_name: str = Field(alias="teacherName")
    other_class_name: str = Field(alias="otherClassName")
    other_subject: str = Field(alias="otherSubject")

    model_config = {"populate_by_name": True}


class TeacherTimetableOut(BaseModel):
    """Published slots of one teacher across every class, keyed by class then slot label."""

    teacher_id: int = Field(alias="teacherId")
    teacher_name: str = Field(alias="teacherName")
    classes: dict[str, dict[str, str]] = Field(default_factory=dict)
    total_periods: int = Field(alias="totalPeriods", ge=0)
    overloaded: bool = False

    model_config = {"populate_by_name": True}
