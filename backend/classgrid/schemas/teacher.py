from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator


class TeacherCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr | None = None
    subjects: list[str] = Field(default_factory=list, max_length=40)

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
        cleaned: list[str] = []
        for item in value:
            trimmed = item.strip()
            if trimmed and trimmed not in cleaned:
                cleaned.append(trimmed)
        return cleaned


class TeacherOut(BaseModel):
    id: int
    name: str
    email: str | None = None
    subjects: list[str]
    is_active: bool
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
