"""Foreground and background execution of composition operations."""

from __future__ import annotations

from .dispatcher import ExecutionDispatcher, yield_thread
from .worker import PdfWorker, WorkerUnavailableError

__all__ = ["ExecutionDispatcher", "PdfWorker", "WorkerUnavailableError", "yield_thread"]
