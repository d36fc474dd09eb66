from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
import json
import logging
import re

from pydantic import ValidationError
import requests

from classgrid.core.config import Settings
from classgrid.core.exceptions import ConfigurationError, GenerationError, SlotValidationError
from classgrid.schemas.generator import (
    GenerationRequestPayload,
    GenerationResponsePayload,
    SubjectPeriodTarget,
)
from classgrid.schemas.timetable import RosterEntry, TeacherLoadEntry
from classgrid.services.grid_store import GridStore
from classgrid.services.period_calendar import PeriodCalendar, SlotKey

logger = logging.getLogger(__name__)

CODE_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


@dataclass
class GeneratedSchedule:
    class_name: str
    store: GridStore
    subjects: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    reported_teacher_load: list[TeacherLoadEntry] = field(default_factory=list)


def post_generation_request(url: str, body: dict, headers: dict[str, str], timeout: float) -> requests.Response:
    return requests.post(url, json=body, headers=headers, timeout=timeout)


def _decode_body(response: requests.Response) -> object:
    try:
        return response.json()
    except ValueError:
        pass
    # Generative backends sometimes wrap the JSON document in a markdown fence.
    text = CODE_FENCE_PATTERN.sub("", (response.text or "").strip())
    try:
        return json.loads(text)
    except ValueError as exc:
        raise GenerationError("Generation service returned a body that is not JSON") from exc


class GenerationBridge:
    """Sends a class/teacher/subject brief out and turns the answer into a seeded grid.

    Free-form rules are passed through untouched and never checked here; the
    collaborator alone is responsible for honouring them.
    """

    def __init__(
        self,
        calendar: PeriodCalendar,
        *,
        endpoint: str,
        api_key: str | None = None,
        timeout_seconds: float = 60.0,
        preserve_overrides: bool = False,
    ) -> None:
        self._calendar = calendar
        self._endpoint = endpoint
        self._api_key = api_key
        self._timeout = timeout_seconds
        self._preserve_overrides = preserve_overrides

    def build_request(
        self,
        class_name: str,
        roster: Sequence[RosterEntry],
        targets: Sequence[SubjectPeriodTarget],
        freeform_rules: str,
    ) -> GenerationRequestPayload:
        subjects: dict[str, None] = {}
        for target in targets:
            subjects.setdefault(target.name, None)
        for member in roster:
            for subject in member.subjects:
                subjects.setdefault(subject, None)

        return GenerationRequestPayload(
            class_name=class_name,
            subjects=list(subjects),
            teachers=list(roster),
            subject_period_targets=list(targets),
            freeform_rules=freeform_rules,
            days=self._calendar.days,
            periods=[period.name for period in self._calendar.periods if not period.is_break],
        )

    def request_candidate(self, payload: GenerationRequestPayload) -> object:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        try:
            response = post_generation_request(
                self._endpoint,
                payload.model_dump(by_alias=True),
                headers,
                self._timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Generation service unreachable for %s: %s", payload.class_name, exc)
            raise GenerationError("Generation service is unreachable", details={"reason": str(exc)}) from exc

        if response.status_code >= 400:
            raise GenerationError(
                f"Generation service answered with HTTP {response.status_code}",
                details={"status_code": response.status_code},
            )
        return _decode_body(response)

    def _parse_slot(self, label: str, *, field_name: str) -> SlotKey:
        try:
            slot = self._calendar.parse_label(label)
        except ValueError as exc:
            raise GenerationError(
                f"Generated {field_name} references an unknown slot",
                details={"slot": label},
            ) from exc
        if self._calendar.is_break(slot):
            raise GenerationError(
                f"Generated {field_name} places an entry on a break",
                details={"slot": label},
            )
        return slot

    def parse_response(self, class_name: str, raw: object, roster: Sequence[RosterEntry]) -> GeneratedSchedule:
        try:
            payload = GenerationResponsePayload.model_validate(raw)
        except ValidationError as exc:
            raise GenerationError(
                "Generation service returned a timetable in an unexpected shape",
                details={"errors": exc.errors(include_url=False, include_context=False, include_input=False)},
            ) from exc

        grid: dict[SlotKey, str] = {}
        for item in payload.timetable:
            slot = self._parse_slot(item.slot, field_name="timetable")
            if slot in grid:
                raise GenerationError("Generated timetable lists a slot twice", details={"slot": item.slot})
            grid[slot] = item.subject

        teachers: dict[SlotKey, str] = {}
        for item in payload.teacher_assignments:
            slot = self._parse_slot(item.slot, field_name="teacher assignment")
            if slot in teachers:
                raise GenerationError("Generated teacher assignments list a slot twice", details={"slot": item.slot})
            teachers[slot] = item.teacher

        store = GridStore(self._calendar, roster, preserve_overrides=self._preserve_overrides)
        try:
            store.load(grid, teachers)
        except SlotValidationError as exc:
            raise GenerationError(exc.message, details=exc.details) from exc

        return GeneratedSchedule(
            class_name=class_name,
            store=store,
            subjects=[subject.strip() for subject in payload.subjects if subject.strip()],
            suggestions=[item.strip() for item in payload.suggestions if item.strip()],
            reported_teacher_load=[
                TeacherLoadEntry(teacher_name=item.teacher_name, total_periods=item.total_periods)
                for item in payload.teacher_load
            ],
        )

    def generate(
        self,
        class_name: str,
        roster: Sequence[RosterEntry],
        targets: Sequence[SubjectPeriodTarget],
        freeform_rules: str = "",
    ) -> GeneratedSchedule:
        payload = self.build_request(class_name, roster, targets, freeform_rules)
        raw = self.request_candidate(payload)
        schedule = self.parse_response(class_name, raw, roster)
        logger.info(
            "Generated candidate timetable for %s with %d slot(s) and %d suggestion(s)",
            class_name,
            len(schedule.store),
            len(schedule.suggestions),
        )
        return schedule


def get_generation_bridge(settings: Settings, calendar: PeriodCalendar) -> GenerationBridge:
    if not settings.generation_service_url:
        raise ConfigurationError("Timetable generation service URL is not configured")
    return GenerationBridge(
        calendar,
        endpoint=settings.generation_service_url,
        api_key=settings.generation_api_key,
        timeout_seconds=settings.generation_timeout_seconds,
        preserve_overrides=settings.preserve_teacher_overrides,
    )
