"""Progress reporting primitives threaded through every operation."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Optional

from .core.utils import get_logger

LOGGER = get_logger("pdfcompose.progress")


class ProgressStatus(str, enum.Enum):
    PROCESSING = "processing"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class ProgressEvent:
    """A single progress notification.

    ``progress`` is a percentage in ``[0, 100]``. Terminal events carry either
    ``COMPLETE`` with ``100`` or ``ERROR`` with ``0``.
    """

    progress: float
    status: ProgressStatus = ProgressStatus.PROCESSING
    message: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.status is not ProgressStatus.PROCESSING


ProgressCallback = Callable[[ProgressEvent], None]


class ProgressChannel:
    """Monotonic emitter wrapping an optional caller callback.

    Processing events never move backwards and never reach ``100``; once a
    terminal event has been emitted the channel ignores anything further so the
    terminal event is always the last one a caller sees.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None) -> None:
        self._callback = callback
        self._last = 0.0
        self._closed = False

    @property
    def last_progress(self) -> float:
        return self._last

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, progress: float, message: str = "") -> None:
        if self._closed:
            return
        value = min(max(float(progress), self._last), 99.0)
        self._last = value
        self._send(ProgressEvent(value, ProgressStatus.PROCESSING, message))

    def advance(self, baseline: float, done: int, total: int, weight: float, message: str = "") -> None:
        """Emit ``baseline + (done / total) * weight``."""

        fraction = done / total if total else 1.0
        self.emit(baseline + fraction * weight, message)

    def complete(self, message: str = "") -> None:
        if self._closed:
            return
        self._closed = True
        self._last = 100.0
        self._send(ProgressEvent(100.0, ProgressStatus.COMPLETE, message))

    def fail(self, message: str) -> None:
        if self._closed:
            return
        self._closed = True
        self._last = 0.0
        self._send(ProgressEvent(0.0, ProgressStatus.ERROR, message))

    def relay(self, event: ProgressEvent) -> None:
        """Forward an event produced elsewhere, keeping this channel's ordering."""

        if event.status is ProgressStatus.COMPLETE:
            self.complete(event.message)
        elif event.status is ProgressStatus.ERROR:
            self.fail(event.message)
        else:
            self.emit(event.progress, event.message)

    def _send(self, event: ProgressEvent) -> None:
        if self._callback is None:
            return
        try:
            self._callback(event)
        except Exception as exc:  # pragma: no cover - caller callbacks vary
            LOGGER.warning("Progress callback failed for %s: %s", event, exc)


__all__ = ["ProgressStatus", "ProgressEvent", "ProgressCallback", "ProgressChannel"]
