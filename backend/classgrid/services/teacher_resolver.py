from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol


class RosterMember(Protocol):
    name: str
    subjects: list[str]


def resolve_teacher(subject: str, roster: Iterable[RosterMember]) -> str | None:
    # First match in roster order wins; it is not a "best teacher" choice.
    for member in roster:
        if subject in member.subjects:
            return member.name
    return None
