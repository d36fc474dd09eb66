from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum

from classgrid.core.exceptions import SlotValidationError
from classgrid.schemas.timetable import GridSnapshot
from classgrid.services.period_calendar import PeriodCalendar, SlotKey
from classgrid.services.teacher_resolver import RosterMember, resolve_teacher


class TeacherSource(str, Enum):
    auto = "auto"
    manual = "manual"


class GridStore:
    """In-memory week grid of one class.

    ``_subjects`` is the Grid and ``_teachers`` the TeacherAssignments mapping.
    Every key of ``_teachers`` is also a key of ``_subjects``, and every key of
    ``_manual`` is also a key of ``_teachers``. Break slots never appear as keys.
    """

    def __init__(
        self,
        calendar: PeriodCalendar,
        roster: Iterable[RosterMember] = (),
        *,
        preserve_overrides: bool = False,
    ) -> None:
        self._calendar = calendar
        self._roster = list(roster)
        self._preserve_overrides = preserve_overrides
        self._subjects: dict[SlotKey, str] = {}
        self._teachers: dict[SlotKey, str] = {}
        self._manual: set[SlotKey] = set()

    @property
    def calendar(self) -> PeriodCalendar:
        return self._calendar

    @property
    def roster(self) -> list[RosterMember]:
        return list(self._roster)

    @property
    def grid(self) -> dict[SlotKey, str]:
        return dict(self._subjects)

    @property
    def teacher_assignments(self) -> dict[SlotKey, str]:
        return dict(self._teachers)

    def __len__(self) -> int:
        return len(self._subjects)

    def subject_at(self, slot: SlotKey) -> str | None:
        return self._subjects.get(slot)

    def teacher_at(self, slot: SlotKey) -> str | None:
        return self._teachers.get(slot)

    def teacher_source(self, slot: SlotKey) -> TeacherSource | None:
        if slot not in self._teachers:
            return None
        return TeacherSource.manual if slot in self._manual else TeacherSource.auto

    def occupied_slots(self) -> list[SlotKey]:
        return sorted(self._subjects, key=self._calendar.sort_key)

    def subjects(self) -> list[str]:
        seen: dict[str, None] = {}
        for slot in self.occupied_slots():
            seen.setdefault(self._subjects[slot], None)
        return list(seen)

    def _require_assignable(self, slot: SlotKey) -> None:
        if not self._calendar.contains(slot):
            raise SlotValidationError(
                f"Slot {slot.label} is not part of the period calendar",
                details={"slot": slot.label},
            )
        if self._calendar.is_break(slot):
            raise SlotValidationError(
                f"Slot {slot.label} is a break and cannot hold a subject",
                details={"slot": slot.label},
            )

    def _resolve_into(self, slot: SlotKey, subject: str) -> None:
        teacher = resolve_teacher(subject, self._roster)
        if teacher is None:
            self._teachers.pop(slot, None)
        else:
            self._teachers[slot] = teacher

    def assign(self, slot: SlotKey, subject: str | None) -> None:
        subject = (subject or "").strip()
        if not subject:
            self.clear(slot)
            return
        self._require_assignable(slot)
        self._subjects[slot] = subject
        if slot in self._manual and self._preserve_overrides:
            return
        self._manual.discard(slot)
        self._resolve_into(slot, subject)

    def clear(self, slot: SlotKey) -> None:
        self._subjects.pop(slot, None)
        self._teachers.pop(slot, None)
        self._manual.discard(slot)

    def override_teacher(self, slot: SlotKey, teacher: str | None) -> None:
        teacher = (teacher or "").strip()
        self._require_assignable(slot)
        if not teacher:
            raise SlotValidationError("Teacher name is required for an override", details={"slot": slot.label})
        if slot not in self._subjects:
            raise SlotValidationError(
                f"Slot {slot.label} has no subject to override a teacher for",
                details={"slot": slot.label},
            )
        self._teachers[slot] = teacher
        self._manual.add(slot)

    def clear_override(self, slot: SlotKey) -> None:
        self._manual.discard(slot)
        subject = self._subjects.get(slot)
        if subject is None:
            self._teachers.pop(slot, None)
            return
        self._resolve_into(slot, subject)

    def load(
        self,
        grid: Mapping[SlotKey, str],
        teacher_assignments: Mapping[SlotKey, str],
        manual: Iterable[SlotKey] = (),
    ) -> None:
        """Replace the whole state at once; nothing changes if any entry is invalid."""
        subjects: dict[SlotKey, str] = {}
        for slot, subject in grid.items():
            self._require_assignable(slot)
            cleaned = (subject or "").strip()
            if cleaned:
                subjects[slot] = cleaned

        teachers: dict[SlotKey, str] = {}
        for slot, teacher in teacher_assignments.items():
            cleaned = (teacher or "").strip()
            if not cleaned:
                continue
            if slot not in subjects:
                raise SlotValidationError(
                    f"Slot {slot.label} has a teacher but no subject",
                    details={"slot": slot.label},
                )
            teachers[slot] = cleaned

        manual_slots = set(manual)
        missing = sorted((slot.label for slot in manual_slots if slot not in teachers))
        if missing:
            raise SlotValidationError(
                "Teacher overrides reference slots without a teacher",
                details={"slots": missing},
            )

        self._subjects = subjects
        self._teachers = teachers
        self._manual = manual_slots

    def snapshot(self, class_name: str | None = None) -> GridSnapshot:
        ordered = self.occupied_slots()
        return GridSnapshot(
            class_name=class_name,
            timetable={slot.label: self._subjects[slot] for slot in ordered},
            teacher_assignments={slot.label: self._teachers[slot] for slot in ordered if slot in self._teachers},
            teacher_overrides=[slot.label for slot in ordered if slot in self._manual],
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: GridSnapshot,
        calendar: PeriodCalendar,
        roster: Iterable[RosterMember] = (),
        *,
        preserve_overrides: bool = False,
    ) -> "GridStore":
        def parse(label: str) -> SlotKey:
            try:
                return calendar.parse_label(label)
            except ValueError as exc:
                raise SlotValidationError(str(exc), details={"slot": label}) from exc

        store = cls(calendar, roster, preserve_overrides=preserve_overrides)
        store.load(
            {parse(label): subject for label, subject in snapshot.timetable.items()},
            {parse(label): teacher for label, teacher in snapshot.teacher_assignments.items()},
            [parse(label) for label in snapshot.teacher_overrides],
        )
        return store
