"""In-memory PDF composition: merge, split, extract, rotate and compose pages."""

from __future__ import annotations

from typing import Mapping, Sequence

__version__ = "0.1.0"

from .config import ComposeSettings
from .core import (
    DocumentHandle,
    DocumentInfo,
    LoadCache,
    PdfInput,
    SourceDocument,
    configure_logging,
    count_pages,
    inspect_document,
    load_document,
)
from .dispatch import ExecutionDispatcher, PdfWorker
from .engine import (
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
from .exceptions import (
    CorruptedDocumentError,
    EncryptedOrCorruptedError,
    InsufficientInputsError,
    InvalidPageNumbersError,
    InvalidPageRangeError,
    InvalidRotationError,
    InvalidWatermarkError,
    LoadError,
    PageSelectionError,
    PdfComposeError,
    UnsupportedOperationError,
)
from .handoff import HandoffSlot, PendingFile
from .progress import ProgressCallback, ProgressChannel, ProgressEvent, ProgressStatus
from .ranges import PageRange, parse_page_list, parse_ranges, parse_rotations

__all__ = [
    "__version__",
    "ComposeSettings",
    "CompositionEngine",
    "ExecutionDispatcher",
    "PdfWorker",
    "DocumentHandle",
    "DocumentInfo",
    "LoadCache",
    "PdfInput",
    "SourceDocument",
    "NamedBuffer",
    "Operation",
    "OperationResult",
    "MergeOperation",
    "SplitOperation",
    "ExtractOperation",
    "RotateOperation",
    "ComposeOperation",
    "CompressOperation",
    "WatermarkOperation",
    "ProtectOperation",
    "PageReference",
    "SplitRange",
    "PageRange",
    "HandoffSlot",
    "PendingFile",
    "ProgressCallback",
    "ProgressChannel",
    "ProgressEvent",
    "ProgressStatus",
    "PdfComposeError",
    "LoadError",
    "EncryptedOrCorruptedError",
    "CorruptedDocumentError",
    "PageSelectionError",
    "InvalidPageRangeError",
    "InvalidPageNumbersError",
    "InvalidRotationError",
    "InvalidWatermarkError",
    "InsufficientInputsError",
    "UnsupportedOperationError",
    "configure_logging",
    "count_pages",
    "inspect_document",
    "load_document",
    "parse_ranges",
    "parse_page_list",
    "parse_rotations",
    "merge_pdfs",
    "split_pdf",
    "extract_pages",
    "rotate_pages",
    "compose_pages",
    "compress_pdf",
    "watermark_pdf",
    "protect_pdf",
]


def _execute(
    operation: Operation,
    on_progress: ProgressCallback | None,
    settings: ComposeSettings | None,
    dispatcher: ExecutionDispatcher | None,
) -> OperationResult:
    if dispatcher is not None:
        return dispatcher.run(operation, on_progress)
    return CompositionEngine(settings).execute(operation, on_progress)


def merge_pdfs(
    inputs: Sequence[PdfInput],
    on_progress: ProgressCallback | None = None,
    *,
    output_name: str = "merged.pdf",
    settings: ComposeSettings | None = None,
    dispatcher: ExecutionDispatcher | None = None,
) -> NamedBuffer:
    """Concatenate ``inputs`` in order into one document.

    Operations run on the calling thread unless a ``dispatcher`` is supplied.
    """

    return _execute(MergeOperation(inputs, output_name), on_progress, settings, dispatcher)


def split_pdf(
    source: PdfInput,
    ranges: str | Sequence[object],
    on_progress: ProgressCallback | None = None,
    *,
    settings: ComposeSettings | None = None,
    dispatcher: ExecutionDispatcher | None = None,
) -> list[NamedBuffer]:
    """Split ``source`` into one document per range.

    ``ranges`` may be range text such as ``"1-3,4-6"``, which is parsed against
    the document's page count first, or a sequence of ``(start, end)`` pairs,
    :class:`PageRange` or :class:`SplitRange` values validated as given.
    """

    if isinstance(ranges, str):
        ranges = parse_ranges(ranges, _page_total(source, settings, on_progress))
    return _execute(SplitOperation(source, ranges), on_progress, settings, dispatcher)


def extract_pages(
    source: PdfInput,
    pages: str | Sequence[int],
    on_progress: ProgressCallback | None = None,
    *,
    output_name: str | None = None,
    settings: ComposeSettings | None = None,
    dispatcher: ExecutionDispatcher | None = None,
) -> NamedBuffer:
    """Copy the 1-based ``pages`` of ``source`` into a new document, ascending."""

    if isinstance(pages, str):
        pages = parse_page_list(pages, _page_total(source, settings, on_progress))
    return _execute(ExtractOperation(source, pages, output_name), on_progress, settings, dispatcher)


def rotate_pages(
    source: PdfInput,
    rotations: Mapping[int, int],
    on_progress: ProgressCallback | None = None,
    *,
    output_name: str | None = None,
    settings: ComposeSettings | None = None,
    dispatcher: ExecutionDispatcher | None = None,
) -> NamedBuffer:
    return _execute(RotateOperation(source, rotations, output_name), on_progress, settings, dispatcher)


def compose_pages(
    pages: Sequence[PageReference],
    on_progress: ProgressCallback | None = None,
    *,
    output_name: str = "composed.pdf",
    settings: ComposeSettings | None = None,
    dispatcher: ExecutionDispatcher | None = None,
) -> NamedBuffer:
    return _execute(ComposeOperation(pages, output_name), on_progress, settings, dispatcher)


def compress_pdf(
    source: PdfInput,
    on_progress: ProgressCallback | None = None,
    *,
    output_name: str | None = None,
    settings: ComposeSettings | None = None,
    dispatcher: ExecutionDispatcher | None = None,
) -> NamedBuffer:
    return _execute(CompressOperation(source, output_name), on_progress, settings, dispatcher)


def watermark_pdf(
    source: PdfInput,
    text: str = "CONFIDENTIAL",
    on_progress: ProgressCallback | None = None,
    *,
    font_size: float = 48,
    opacity: float = 0.3,
    rotation: float = 45,
    color: tuple[float, float, float] = (0.5, 0.5, 0.5),
    output_name: str | None = None,
    settings: ComposeSettings | None = None,
    dispatcher: ExecutionDispatcher | None = None,
) -> NamedBuffer:
    """Stamp ``text`` diagonally across the centre of every page of ``source``."""

    operation = WatermarkOperation(source, text, font_size, opacity, rotation, color, output_name)
    return _execute(operation, on_progress, settings, dispatcher)


def protect_pdf(
    source: PdfInput,
    password: str,
    on_progress: ProgressCallback | None = None,
    *,
    settings: ComposeSettings | None = None,
    dispatcher: ExecutionDispatcher | None = None,
) -> NamedBuffer:
    """Always raises :class:`UnsupportedOperationError`."""

    return _execute(ProtectOperation(source, password), on_progress, settings, dispatcher)


def _page_total(source: PdfInput, settings: ComposeSettings | None, on_progress: ProgressCallback | None) -> int:
    try:
        return count_pages(source, strict=(settings or ComposeSettings()).strict)
    except PdfComposeError as exc:
        ProgressChannel(on_progress).fail(str(exc))
        raise
