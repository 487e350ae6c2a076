from __future__ import annotations

import threading
from typing import Generic, TypeVar

T = TypeVar("T")


class AtomicCell(Generic[T]):
    """Single-value cell with compare-and-set on object identity.

    Reads never lock. The compare-and-set step is serialized by a private lock
    that guards only the identity check and the assignment, so no caller ever
    blocks on I/O through this cell.
    """

    __slots__ = ("_lock", "_value")

    def __init__(self, value: T) -> None:
        self._value = value
        self._lock = threading.Lock()

    def get(self) -> T:
        return self._value

    def compare_and_set(self, expected: T, new: T) -> bool:
        with self._lock:
            if self._value is not expected:
                return False
            self._value = new
            return True
