"""Utilities shared by pdfcompose modules."""

from __future__ import annotations

import logging

ROOT_LOGGER_NAME = "pdfcompose"


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.propagate = False
    return logger


def configure_logging(level: int | str) -> None:
    """Apply ``level`` to every logger in the ``pdfcompose`` hierarchy."""

    if isinstance(level, str):
        level = level.upper()
    prefix = ROOT_LOGGER_NAME + "."
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(level)
    for name in list(logging.root.manager.loggerDict):
        if name.startswith(prefix):
            logging.getLogger(name).setLevel(level)


def format_file_size(size_bytes: float) -> str:
    """Format a byte count such as ``1536`` as ``"1.5 KB"``."""

    for unit in ("B", "KB", "MB", "GB", "TB"):
        if size_bytes < 1024.0:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.1f} PB"


def copy_bytes(data: bytes | bytearray | memoryview) -> bytes:
    """Return an owned, immutable copy of ``data``.

    Mutable buffers are copied so a caller reusing the same ``bytearray`` for a
    later operation can never change bytes a loaded document still refers to.
    """

    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    raise TypeError(f"Expected a bytes-like PDF buffer, got {type(data).__name__}")


__all__ = [
    "get_logger",
    "configure_logging",
    "copy_bytes",
    "format_file_size",
    "ROOT_LOGGER_NAME",
]
