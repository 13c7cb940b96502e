"""Choose between the background worker and the calling thread."""

from __future__ import annotations

import time
from typing import Callable, Optional, Sequence

from ..config import ComposeSettings
from ..core.loader import PdfInput
from ..core.utils import get_logger
from ..engine import (
    ComposeOperation,
    CompositionEngine,
    CompressOperation,
    ExtractOperation,
    MergeOperation,
    NamedBuffer,
    Operation,
    OperationResult,
    PageReference,
    ProtectOperation,
    RotateOperation,
    SplitOperation,
    SplitRange,
    WatermarkOperation,
)
from ..progress import ProgressCallback, ProgressChannel
from .worker import PdfWorker, WorkerUnavailableError

LOGGER = get_logger("pdfcompose.dispatch")

WorkerFactory = Callable[[ComposeSettings], PdfWorker]


def yield_thread() -> None:
    """Give other threads a chance to run between engine steps."""

    time.sleep(0)


class ExecutionDispatcher:
    """Runs operations in the background worker when possible.

    With ``execution="auto"`` every operation is first offered to the worker; if
    the worker cannot be created or cannot deliver a result the same operation
    runs on the calling thread instead. Callers observe one monotonic stream of
    progress events and the same errors either way.
    """

    def __init__(
        self,
        settings: ComposeSettings | None = None,
        *,
        worker_factory: WorkerFactory | None = None,
    ) -> None:
        self.settings = settings or ComposeSettings()
        self._worker_factory = worker_factory or PdfWorker
        self._worker: Optional[PdfWorker] = None
        self._worker_failed = False
        self._foreground = CompositionEngine(self.settings, checkpoint=yield_thread)

    def __enter__(self) -> "ExecutionDispatcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def uses_background(self) -> bool:
        return self.settings.execution == "auto" and not self._worker_failed

    def run(self, operation: Operation, on_progress: ProgressCallback | None = None) -> OperationResult:
        channel = ProgressChannel(on_progress)
        worker = self._acquire_worker()
        if worker is not None:
            try:
                result = worker.run(operation, channel.relay)
            except WorkerUnavailableError as exc:
                LOGGER.warning("Running %s in the foreground: %s", type(operation).__name__, exc)
            except Exception as exc:
                channel.fail(str(exc))
                raise
            else:
                channel.complete("Operation completed successfully!")
                return result
        return self._foreground.execute(operation, channel.relay)

    def merge(
        self,
        inputs: Sequence[PdfInput],
        on_progress: ProgressCallback | None = None,
        *,
        output_name: str = "merged.pdf",
    ) -> NamedBuffer:
        return self.run(MergeOperation(inputs, output_name), on_progress)

    def split(
        self,
        source: PdfInput,
        ranges: Sequence[SplitRange | Sequence[int]],
        on_progress: ProgressCallback | None = None,
    ) -> list[NamedBuffer]:
        return self.run(SplitOperation(source, ranges), on_progress)

    def extract(
        self,
        source: PdfInput,
        pages: Sequence[int],
        on_progress: ProgressCallback | None = None,
        *,
        output_name: str | None = None,
    ) -> NamedBuffer:
        return self.run(ExtractOperation(source, pages, output_name), on_progress)

    def rotate(
        self,
        source: PdfInput,
        rotations: dict[int, int],
        on_progress: ProgressCallback | None = None,
        *,
        output_name: str | None = None,
    ) -> NamedBuffer:
        return self.run(RotateOperation(source, rotations, output_name), on_progress)

    def compose(
        self,
        pages: Sequence[PageReference],
        on_progress: ProgressCallback | None = None,
        *,
        output_name: str = "composed.pdf",
    ) -> NamedBuffer:
        return self.run(ComposeOperation(pages, output_name), on_progress)

    def compress(
        self,
        source: PdfInput,
        on_progress: ProgressCallback | None = None,
        *,
        output_name: str | None = None,
    ) -> NamedBuffer:
        return self.run(CompressOperation(source, output_name), on_progress)

    def watermark(
        self,
        source: PdfInput,
        text: str,
        on_progress: ProgressCallback | None = None,
        *,
        font_size: float = 48,
        opacity: float = 0.3,
        rotation: float = 45,
        color: tuple[float, float, float] = (0.5, 0.5, 0.5),
        output_name: str | None = None,
    ) -> NamedBuffer:
        operation = WatermarkOperation(source, text, font_size, opacity, rotation, color, output_name)
        return self.run(operation, on_progress)

    def protect(self, source: PdfInput, password: str, on_progress: ProgressCallback | None = None) -> NamedBuffer:
        return self.run(ProtectOperation(source, password), on_progress)

    def close(self) -> None:
        worker, self._worker = self._worker, None
        if worker is not None:
            worker.close()

    def _acquire_worker(self) -> Optional[PdfWorker]:
        if self.settings.execution != "auto" or self._worker_failed:
            return None
        if self._worker is None:
            try:
                self._worker = self._worker_factory(self.settings)
            except Exception as exc:
                LOGGER.warning("Background worker could not be created: %s", exc)
                self._worker_failed = True
                return None
        if not self._worker.available:
            self._worker_failed = True
            return None
        return self._worker


__all__ = ["ExecutionDispatcher", "WorkerFactory", "yield_thread"]
