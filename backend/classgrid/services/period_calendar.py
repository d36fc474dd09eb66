from __future__ import annotations

from collections.abc import Iterator, Sequence
from functools import lru_cache
import json
from typing import NamedTuple

from pydantic import ValidationError

from classgrid.core.config import get_settings
from classgrid.core.exceptions import ConfigurationError
from classgrid.schemas.calendar import (
    DAY_VALUES,
    DEFAULT_DAYS,
    DEFAULT_PERIODS,
    PeriodDefinition,
    parse_time_to_minutes,
)


class SlotKey(NamedTuple):
    day: str
    period: str

    @property
    def label(self) -> str:
        return f"{self.day}-{self.period}"


class PeriodCalendar:
    """Static week layout: ordered days, ordered periods, some of them breaks."""

    def __init__(self, days: Sequence[str], periods: Sequence[PeriodDefinition]) -> None:
        if not days:
            raise ConfigurationError("Period calendar needs at least one day")
        if not periods:
            raise ConfigurationError("Period calendar needs at least one period")
        invalid_days = [day for day in days if day not in DAY_VALUES]
        if invalid_days:
            raise ConfigurationError(f"Invalid calendar day(s): {', '.join(invalid_days)}")
        if len(set(days)) != len(days):
            raise ConfigurationError("Calendar days must be unique")

        names = [period.name for period in periods]
        if len(set(names)) != len(names):
            raise ConfigurationError("Period names must be unique")
        previous_end = -1
        for period in periods:
            start = parse_time_to_minutes(period.start)
            if start < previous_end:
                raise ConfigurationError(f"Period {period.name} overlaps the period before it")
            previous_end = parse_time_to_minutes(period.end)

        self._days = list(days)
        self._periods = list(periods)
        self._period_by_name = {period.name: period for period in self._periods}
        self._index_by_name = {period.name: index for index, period in enumerate(self._periods)}

    @property
    def days(self) -> list[str]:
        return list(self._days)

    @property
    def periods(self) -> list[PeriodDefinition]:
        return list(self._periods)

    def period(self, name: str) -> PeriodDefinition | None:
        return self._period_by_name.get(name)

    def period_index(self, name: str) -> int:
        return self._index_by_name[name]

    def contains(self, slot: SlotKey) -> bool:
        return slot.day in self._days and slot.period in self._period_by_name

    def is_break(self, slot: SlotKey) -> bool:
        period = self._period_by_name.get(slot.period)
        return period is not None and period.is_break

    def is_assignable(self, slot: SlotKey) -> bool:
        return self.contains(slot) and not self.is_break(slot)

    def slots(self, *, include_breaks: bool = False) -> Iterator[SlotKey]:
        for day in self._days:
            for period in self._periods:
                if period.is_break and not include_breaks:
                    continue
                yield SlotKey(day, period.name)

    def assignable_slot_count(self) -> int:
        teaching_periods = sum(1 for period in self._periods if not period.is_break)
        return teaching_periods * len(self._days)

    def sort_key(self, slot: SlotKey) -> tuple[int, int]:
        day_index = self._days.index(slot.day) if slot.day in self._days else len(self._days)
        period_index = self._index_by_name.get(slot.period, len(self._periods))
        return day_index, period_index

    def parse_label(self, label: str) -> SlotKey:
        """Parse a ``"Day-Period Name"`` label; raises ValueError for unknown slots."""
        day, separator, period = label.strip().partition("-")
        if not separator:
            raise ValueError(f"Slot label {label!r} is not in 'Day-Period' form")
        slot = SlotKey(day.strip(), period.strip())
        if not self.contains(slot):
            raise ValueError(f"Slot {label!r} is not part of the period calendar")
        return slot

    def teaching_period_starting_at(self, start_time: str) -> PeriodDefinition | None:
        for period in self._periods:
            if period.start == start_time and not period.is_break:
                return period
        return None


def build_period_calendar(days: Sequence[str], periods_json: str | None) -> PeriodCalendar:
    if not periods_json:
        return PeriodCalendar(days or DEFAULT_DAYS, DEFAULT_PERIODS)
    try:
        raw = json.loads(periods_json)
        periods = [PeriodDefinition.model_validate(item) for item in raw]
    except (json.JSONDecodeError, TypeError, ValidationError) as exc:
        raise ConfigurationError(f"Invalid period calendar configuration: {exc}") from exc
    return PeriodCalendar(days or DEFAULT_DAYS, periods)


@lru_cache
def get_period_calendar() -> PeriodCalendar:
    settings = get_settings()
    return build_period_calendar(settings.school_days, settings.period_calendar_json)
