"""Background worker hosting its own composition engine in a child process."""

from __future__ import annotations

import multiprocessing
import pickle
import queue
import threading
import time
from concurrent.futures import Future, ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from typing import Any, Optional

from ..config import ComposeSettings
from ..core.utils import configure_logging, get_logger
from ..engine import CompositionEngine, Operation, OperationResult
from ..exceptions import PdfComposeError
from ..progress import ProgressCallback, ProgressEvent

LOGGER = get_logger("pdfcompose.dispatch")

_PROGRESS_QUEUE: Any = None
_WORKER_ENGINE: Optional[CompositionEngine] = None


class WorkerUnavailableError(PdfComposeError):
    """Raised when the background worker cannot take or finish a request."""


def _initialize_worker(progress_queue: Any, settings: ComposeSettings) -> None:
    global _PROGRESS_QUEUE, _WORKER_ENGINE
    _PROGRESS_QUEUE = progress_queue
    configure_logging(settings.log_level)
    _WORKER_ENGINE = CompositionEngine(settings)


def _execute_in_worker(payload: bytes) -> OperationResult:
    if _WORKER_ENGINE is None or _PROGRESS_QUEUE is None:
        raise WorkerUnavailableError("Background worker was not initialized")
    operation = pickle.loads(payload)
    return _WORKER_ENGINE.execute(operation, _PROGRESS_QUEUE.put)


class PdfWorker:
    """Request/response channel to a single background process.

    The process pool is created on the first request and serves one request at
    a time. Progress events travel back over a multiprocessing queue installed
    by the pool initializer and are handed to the caller as they arrive.
    """

    def __init__(
        self,
        settings: ComposeSettings | None = None,
        *,
        mp_context: Any = None,
        poll_interval: float = 0.05,
        drain_timeout: float = 1.0,
    ) -> None:
        self.settings = settings or ComposeSettings()
        self._context = mp_context or multiprocessing.get_context("spawn")
        self._poll_interval = poll_interval
        self._drain_timeout = drain_timeout
        self._executor: ProcessPoolExecutor | None = None
        self._queue: Any = None
        self._lock = threading.Lock()
        self._broken = False

    @property
    def available(self) -> bool:
        return not self._broken

    @property
    def started(self) -> bool:
        return self._executor is not None

    def __enter__(self) -> "PdfWorker":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def run(self, operation: Operation, on_progress: ProgressCallback | None = None) -> OperationResult:
        """Execute ``operation`` in the worker process.

        Raises:
            WorkerUnavailableError: If the request could not be delivered or the
                worker process died; the operation may be retried elsewhere.
            PdfComposeError: Errors raised by the engine, unchanged.
        """

        try:
            payload = pickle.dumps(operation, protocol=pickle.HIGHEST_PROTOCOL)
        except (pickle.PicklingError, TypeError, AttributeError) as exc:
            raise WorkerUnavailableError(
                f"Operation inputs cannot be sent to the background worker: {exc}"
            ) from exc

        with self._lock:
            executor = self._ensure_started()
            self._discard_stale_events()
            try:
                future = executor.submit(_execute_in_worker, payload)
            except (BrokenProcessPool, RuntimeError, OSError) as exc:
                self._mark_broken(exc)
                raise WorkerUnavailableError("Background worker could not accept the request") from exc

            self._pump(future, on_progress)
            try:
                return future.result()
            except BrokenProcessPool as exc:
                self._mark_broken(exc)
                raise WorkerUnavailableError("Background worker terminated unexpectedly") from exc

    def close(self) -> None:
        with self._lock:
            self._shutdown(wait=True)

    def _ensure_started(self) -> ProcessPoolExecutor:
        if self._broken:
            raise WorkerUnavailableError("Background worker is unavailable")
        if self._executor is None:
            try:
                progress_queue = self._context.Queue()
                executor = ProcessPoolExecutor(
                    max_workers=1,
                    mp_context=self._context,
                    initializer=_initialize_worker,
                    initargs=(progress_queue, self.settings),
                )
            except (OSError, ValueError, ImportError) as exc:
                self._broken = True
                LOGGER.warning("Failed to start background worker: %s", exc)
                raise WorkerUnavailableError("Background worker could not be started") from exc
            self._queue, self._executor = progress_queue, executor
            LOGGER.debug("Started background worker")
        return self._executor

    def _pump(self, future: Future, on_progress: ProgressCallback | None) -> None:
        drain_deadline: float | None = None
        while True:
            try:
                event: ProgressEvent = self._queue.get(timeout=self._poll_interval)
            except queue.Empty:
                if not future.done():
                    continue
                if future.cancelled() or isinstance(future.exception(), BrokenProcessPool):
                    return
                # The result can overtake the last events still buffered in the queue.
                if drain_deadline is None:
                    drain_deadline = time.monotonic() + self._drain_timeout
                elif time.monotonic() >= drain_deadline:
                    return
                continue
            except (EOFError, OSError) as exc:
                LOGGER.warning("Progress queue closed unexpectedly: %s", exc)
                return
            if on_progress is not None:
                on_progress(event)
            if event.is_terminal:
                return

    def _discard_stale_events(self) -> None:
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                return

    def _mark_broken(self, exc: BaseException) -> None:
        LOGGER.warning("Background worker failed: %s", exc)
        self._broken = True
        self._shutdown(wait=False)

    def _shutdown(self, *, wait: bool) -> None:
        executor, self._executor = self._executor, None
        progress_queue, self._queue = self._queue, None
        if executor is not None:
            executor.shutdown(wait=wait, cancel_futures=True)
            LOGGER.debug("Stopped background worker")
        if progress_queue is not None:
            progress_queue.close()
            progress_queue.join_thread()


__all__ = ["PdfWorker", "WorkerUnavailableError"]
