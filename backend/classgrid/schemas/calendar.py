from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator, model_validator

DAY_VALUES = {
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
}

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class PeriodDefinition(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    start: str
    end: str
    is_break: bool = Field(default=False, alias="isBreak")

    model_config = {
        "populate_by_name": True,
        "frozen": True,
    }

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Period name cannot be empty")
        return trimmed

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @model_validator(mode="after")
    def validate_time_order(self) -> "PeriodDefinition":
        if parse_time_to_minutes(self.end) <= parse_time_to_minutes(self.start):
            raise ValueError(f"Period {self.name} must end after it starts")
        return self


DEFAULT_DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]

DEFAULT_PERIODS = [
    PeriodDefinition(name="Period 1", start="09:00", end="09:45"),
    PeriodDefinition(name="Period 2", start="09:45", end="10:30"),
    PeriodDefinition(name="Period 3", start="10:30", end="11:15"),
    PeriodDefinition(name="Short Break", start="11:15", end="11:30", is_break=True),
    PeriodDefinition(name="Period 4", start="11:30", end="12:15"),
    PeriodDefinition(name="Period 5", start="12:15", end="13:00"),
    PeriodDefinition(name="Long Break", start="13:00", end="13:45", is_break=True),
    PeriodDefinition(name="Period 6", start="13:45", end="14:30"),
    PeriodDefinition(name="Period 7", start="14:30", end="15:15"),
    PeriodDefinition(name="Period 8", start="15:15", end="16:00"),
]


class CalendarOut(BaseModel):
    days: list[str]
    periods: list[PeriodDefinition]
    assignable_slot_count: int = Field(alias="assignableSlotCount")

    model_config = {"populate_by_name": True}
