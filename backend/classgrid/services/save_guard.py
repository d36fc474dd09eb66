from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from threading import Lock

from classgrid.core.exceptions import SaveInProgressError


class ClassSaveGuard:
    """Allows one save per class at a time; overlapping saves are rejected, not queued.

    Class names are matched exactly (after trimming), the same way stored rows are keyed.
    """

    def __init__(self) -> None:
        self._active: set[str] = set()
        self._lock = Lock()

    @contextmanager
    def hold(self, class_name: str) -> Iterator[None]:
        key = class_name.strip()
        with self._lock:
            if key in self._active:
                raise SaveInProgressError(class_name)
            self._active.add(key)
        try:
            yield
        finally:
            with self._lock:
                self._active.discard(key)

    def is_saving(self, class_name: str) -> bool:
        with self._lock:
            return class_name.strip() in self._active

    def clear(self) -> None:
        with self._lock:
            self._active.clear()


class_save_guard = ClassSaveGuard()


def clear_save_guard() -> None:
    class_save_guard.clear()
