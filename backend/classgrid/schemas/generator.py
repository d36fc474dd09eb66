from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from classgrid.schemas.timetable import GridSnapshot, RosterEntry, TeacherLoadEntry


class SubjectPeriodTarget(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    periods: int = Field(ge=1, le=60)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Subject name cannot be empty")
        return trimmed


class GenerateTimetableRequest(BaseModel):
    class_name: str = Field(alias="className", min_length=1, max_length=100)
    teachers: list[RosterEntry] | None = None
    subject_period_targets: list[SubjectPeriodTarget] = Field(
        default_factory=list, alias="subjectPeriodTargets", max_length=40
    )
    freeform_rules: str = Field(default="", alias="freeformRules", max_length=4000)

    model_config = {"populate_by_name": True}


class GenerationRequestPayload(BaseModel):
    """Outbound body sent to the generation collaborator."""

    class_name: str = Field(alias="className")
    subjects: list[str]
    teachers: list[RosterEntry]
    subject_period_targets: list[SubjectPeriodTarget] = Field(alias="subjectPeriodTargets")
    freeform_rules: str = Field(alias="freeformRules")
    days: list[str]
    periods: list[str]

    model_config = {"populate_by_name": True}


class GeneratedSlotSubject(BaseModel):
    model_config = ConfigDict(extra="ignore")

    slot: str = Field(min_length=1)
    subject: str = Field(min_length=1)

    @field_validator("slot", "subject")
    @classmethod
    def require_text(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Value cannot be blank")
        return trimmed


class GeneratedSlotTeacher(BaseModel):
    model_config = ConfigDict(extra="ignore")

    slot: str = Field(min_length=1)
    teacher: str = Field(min_length=1)

    @field_validator("slot", "teacher")
    @classmethod
    def require_text(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Value cannot be blank")
        return trimmed


class GeneratedTeacherLoad(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    teacher_name: str = Field(alias="teacherName", min_length=1)
    total_periods: int = Field(alias="totalPeriods", ge=0)


class GenerationResponsePayload(BaseModel):
    """Inbound body from the generation collaborator; every list is required."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    class_name: str | None = Field(default=None, alias="className")
    subjects: list[str]
    timetable: list[GeneratedSlotSubject]
    teacher_assignments: list[GeneratedSlotTeacher] = Field(alias="teacherAssignments")
    suggestions: list[str]
    teacher_load: list[GeneratedTeacherLoad] = Field(alias="teacherLoad")


class GeneratedTimetableOut(BaseModel):
    class_name: str = Field(alias="className")
    subjects: list[str] = Field(default_factory=list)
    snapshot: GridSnapshot
    suggestions: list[str] = Field(default_factory=list)
    reported_teacher_load: list[TeacherLoadEntry] = Field(default_factory=list, alias="reportedTeacherLoad")
    teacher_load: list[TeacherLoadEntry] = Field(default_factory=list, alias="teacherLoad")

    model_config = {"populate_by_name": True}
