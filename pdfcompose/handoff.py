"""At-most-once hand-off of an output document to the next consumer."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from .core.utils import copy_bytes
from .engine.results import NamedBuffer

T = TypeVar("T")


@dataclass(frozen=True)
class PendingFile:
    """An output waiting to be picked up by another tool."""

    data: bytes
    file_name: str
    source_operation: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", copy_bytes(self.data))

    @classmethod
    def from_result(cls, result: NamedBuffer, source_operation: str) -> "PendingFile":
        return cls(result.data, result.name, source_operation)


class HandoffSlot(Generic[T]):
    """A single-item slot whose ``take`` returns the item and empties the slot.

    ``put`` replaces whatever is waiting. Concurrent ``take`` calls never both
    receive the same item.
    """

    def __init__(self) -> None:
        self._item: Optional[T] = None
        self._lock = threading.Lock()

    def put(self, item: T) -> None:
        with self._lock:
            self._item = item

    def take(self) -> Optional[T]:
        with self._lock:
            item, self._item = self._item, None
            return item

    def peek(self) -> Optional[T]:
        with self._lock:
            return self._item

    def clear(self) -> None:
        with self._lock:
            self._item = None

    def __bool__(self) -> bool:
        return self.peek() is not None


__all__ = ["HandoffSlot", "PendingFile"]
