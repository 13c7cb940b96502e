"""Page-graph composition: merge, split, extract, rotate, compose, compress and watermark.

Every operation runs the same four phases on a private load cache:

1. load each distinct source buffer once,
2. validate the page selection against the real page counts,
3. copy the selected pages into fresh output documents,
4. serialize the outputs.

Rotations are applied to the copied pages only, so cached source documents stay
untouched and can feed several differently rotated copies of the same page.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from io import BytesIO
from typing import Callable, Iterable, Iterator, Optional, Sequence

from pypdf import PdfWriter
from pypdf.generic import NameObject, NumberObject

from ..config import ComposeSettings
from ..core.info import document_metadata
from ..core.loader import STRUCTURAL_ERRORS, DocumentHandle, LoadCache, PdfInput, source_name
from ..core.utils import get_logger
from ..exceptions import (
    CorruptedDocumentError,
    InsufficientInputsError,
    InvalidPageNumbersError,
    InvalidPageRangeError,
    InvalidRotationError,
    PdfComposeError,
    UnsupportedOperationError,
)
from ..progress import ProgressCallback, ProgressChannel
from ..ranges import VALID_ROTATIONS
from .operations import (
    ComposeOperation,
    CompressOperation,
    ExtractOperation,
    MergeOperation,
    Operation,
    PageReference,
    ProtectOperation,
    RotateOperation,
    SplitOperation,
    SplitRange,
    WatermarkOperation,
)
from .registry import register_operation, registry
from .results import NamedBuffer, OperationResult
from .stamp import WatermarkStamp

LOGGER = get_logger("pdfcompose.engine")

Checkpoint = Callable[[], None]

LOAD_START, LOAD_WEIGHT = 5.0, 15.0
VALIDATE_AT = 22.0
ASSEMBLY_START, ASSEMBLY_WEIGHT = 25.0, 60.0
SERIALIZE_START, SERIALIZE_WEIGHT = 85.0, 10.0

_COMPLETION_MESSAGES = {
    "merge": "PDFs merged successfully!",
    "split": "PDF split successfully!",
    "extract": "Pages extracted successfully!",
    "rotate": "Pages rotated successfully!",
    "compose": "PDF composed successfully!",
    "compress": "PDF compressed successfully!",
    "watermark": "Watermark applied!",
}


@dataclass(frozen=True)
class _ResolvedPage:
    handle: DocumentHandle
    index: int
    rotation: Optional[int] = None


@dataclass
class _OutputPlan:
    name: str
    pages: list[_ResolvedPage] = field(default_factory=list)
    deduplicate: bool = False
    stamp: Optional[WatermarkStamp] = None


class CompositionEngine:
    """Executes operation descriptors against in-memory PDF buffers.

    Args:
        settings: Loader and metadata behaviour; defaults to ``ComposeSettings()``.
        checkpoint: Called between phases and after every copied page. The
            foreground dispatcher uses it to yield the calling thread.
    """

    def __init__(
        self,
        settings: ComposeSettings | None = None,
        *,
        checkpoint: Checkpoint | None = None,
    ) -> None:
        self.settings = settings or ComposeSettings()
        self._checkpoint = checkpoint

    # -- Public surface ------------------------------------------------------

    def execute(self, operation: Operation, on_progress: ProgressCallback | None = None) -> OperationResult:
        """Run ``operation`` and return its result.

        The final progress event is ``complete``/``100`` on success or
        ``error``/``0`` on failure; errors are re-raised unchanged.
        """

        channel = ProgressChannel(on_progress)
        kind = getattr(type(operation), "kind", type(operation).__name__)
        try:
            handler = registry.resolve(type(operation))
            result = handler(self, operation, channel)
        except Exception as exc:
            LOGGER.error("%s operation failed: %s", kind, exc)
            channel.fail(str(exc))
            raise
        channel.complete(_COMPLETION_MESSAGES.get(kind, "Operation completed successfully!"))
        LOGGER.info("%s operation produced %s", kind, _describe_result(result))
        return result

    def merge(
        self,
        inputs: Sequence[PdfInput],
        on_progress: ProgressCallback | None = None,
        *,
        output_name: str = "merged.pdf",
    ) -> NamedBuffer:
        return self.execute(MergeOperation(inputs, output_name), on_progress)

    def split(
        self,
        source: PdfInput,
        ranges: Sequence[SplitRange | Sequence[int]],
        on_progress: ProgressCallback | None = None,
    ) -> list[NamedBuffer]:
        return self.execute(SplitOperation(source, ranges), on_progress)

    def extract(
        self,
        source: PdfInput,
        pages: Sequence[int],
        on_progress: ProgressCallback | None = None,
        *,
        output_name: str | None = None,
    ) -> NamedBuffer:
        return self.execute(ExtractOperation(source, pages, output_name), on_progress)

    def rotate(
        self,
        source: PdfInput,
        rotations: dict[int, int],
        on_progress: ProgressCallback | None = None,
        *,
        output_name: str | None = None,
    ) -> NamedBuffer:
        return self.execute(RotateOperation(source, rotations, output_name), on_progress)

    def compose(
        self,
        pages: Sequence[PageReference],
        on_progress: ProgressCallback | None = None,
        *,
        output_name: str = "composed.pdf",
    ) -> NamedBuffer:
        return self.execute(ComposeOperation(pages, output_name), on_progress)

    def compress(
        self,
        source: PdfInput,
        on_progress: ProgressCallback | None = None,
        *,
        output_name: str | None = None,
    ) -> NamedBuffer:
        return self.execute(CompressOperation(source, output_name), on_progress)

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
        return self.execute(operation, on_progress)

    def protect(self, source: PdfInput, password: str, on_progress: ProgressCallback | None = None) -> NamedBuffer:
        return self.execute(ProtectOperation(source, password), on_progress)

    # -- Operation handlers --------------------------------------------------

    @register_operation(MergeOperation)
    def _merge(self, operation: MergeOperation, channel: ProgressChannel) -> NamedBuffer:
        if not operation.inputs:
            raise InsufficientInputsError("At least two PDF files are required to merge")

        cache = LoadCache(strict=self.settings.strict)
        named = [
            (source, source_name(source, f"input_{position}.pdf"))
            for position, source in enumerate(operation.inputs, 1)
        ]
        handles = self._load_phase(cache, named, channel)

        channel.emit(VALIDATE_AT, "Validating inputs...")
        usable = [handle for handle in handles if handle.page_count > 0]
        if len(usable) < 2:
            raise InsufficientInputsError(
                f"At least two PDF files with pages are required to merge (got {len(usable)})"
            )

        pages = [_ResolvedPage(handle, index) for handle in usable for index in range(handle.page_count)]
        plans = [_OutputPlan(operation.output_name, pages)]
        return self._finish(plans, channel)[0]

    @register_operation(SplitOperation)
    def _split(self, operation: SplitOperation, channel: ProgressChannel) -> list[NamedBuffer]:
        handle = self._load_single(operation.source, channel)

        channel.emit(VALIDATE_AT, "Validating page ranges...")
        total = handle.page_count
        if not operation.ranges:
            raise InvalidPageRangeError([], total_pages=total)
        invalid = [
            (item.start, item.end)
            for item in operation.ranges
            if item.start < 1 or item.end > total or item.start > item.end
        ]
        if invalid:
            raise InvalidPageRangeError(invalid, total_pages=total)

        plans = [
            _OutputPlan(
                item.name or item.default_name(ordinal),
                [_ResolvedPage(handle, number - 1) for number in range(item.start, item.end + 1)],
            )
            for ordinal, item in enumerate(operation.ranges, 1)
        ]
        return self._finish(plans, channel)

    @register_operation(ExtractOperation)
    def _extract(self, operation: ExtractOperation, channel: ProgressChannel) -> NamedBuffer:
        handle = self._load_single(operation.source, channel)

        channel.emit(VALIDATE_AT, "Validating page numbers...")
        total = handle.page_count
        if not operation.pages:
            raise InvalidPageNumbersError([], total_pages=total)
        invalid = _unique(page for page in operation.pages if page < 1 or page > total)
        if invalid:
            raise InvalidPageNumbersError(invalid, total_pages=total)

        pages = [_ResolvedPage(handle, number - 1) for number in sorted(set(operation.pages))]
        return self._finish([_OutputPlan(operation.resolved_name(), pages)], channel)[0]

    @register_operation(RotateOperation)
    def _rotate(self, operation: RotateOperation, channel: ProgressChannel) -> NamedBuffer:
        handle = self._load_single(operation.source, channel)

        channel.emit(VALIDATE_AT, "Validating rotations...")
        total = handle.page_count
        invalid_pages = sorted(page for page in operation.rotations if page < 1 or page > total)
        if invalid_pages:
            raise InvalidPageNumbersError(invalid_pages, total_pages=total)
        invalid_rotations = {
            page: value for page, value in operation.rotations.items() if not _is_valid_rotation(value)
        }
        if invalid_rotations:
            raise InvalidRotationError(invalid_rotations, total_pages=total)

        # Every page is copied into a new document, including unrotated ones.
        pages = [
            _ResolvedPage(handle, index, operation.rotations.get(index + 1))
            for index in range(total)
        ]
        return self._finish([_OutputPlan(operation.resolved_name(), pages)], channel)[0]

    @register_operation(ComposeOperation)
    def _compose(self, operation: ComposeOperation, channel: ProgressChannel) -> NamedBuffer:
        if not operation.pages:
            raise InsufficientInputsError("At least one page is required to compose a PDF")

        distinct: dict[int, PdfInput] = {}
        for reference in operation.pages:
            distinct.setdefault(id(reference.source), reference.source)
        named = [
            (source, source_name(source, f"input_{position}.pdf"))
            for position, source in enumerate(distinct.values(), 1)
        ]
        cache = LoadCache(strict=self.settings.strict)
        self._load_phase(cache, named, channel)

        channel.emit(VALIDATE_AT, "Validating page selection...")
        resolved = [
            _ResolvedPage(cache.get(reference.source), reference.page_index, reference.rotation)
            for reference in operation.pages
        ]
        for handle in _unique(page.handle for page in resolved):
            invalid = _unique(
                page.index + 1
                for page in resolved
                if page.handle is handle and not 0 <= page.index < handle.page_count
            )
            if invalid:
                raise InvalidPageNumbersError(invalid, total_pages=handle.page_count, source_name=handle.name)
            invalid_rotations = {
                page.index + 1: page.rotation
                for page in resolved
                if page.handle is handle and page.rotation is not None and not _is_valid_rotation(page.rotation)
            }
            if invalid_rotations:
                raise InvalidRotationError(
                    invalid_rotations, total_pages=handle.page_count, source_name=handle.name
                )

        return self._finish([_OutputPlan(operation.output_name, resolved)], channel)[0]

    @register_operation(CompressOperation)
    def _compress(self, operation: CompressOperation, channel: ProgressChannel) -> NamedBuffer:
        handle = self._load_single(operation.source, channel)
        channel.emit(VALIDATE_AT, "Optimizing PDF structure...")
        pages = [_ResolvedPage(handle, index) for index in range(handle.page_count)]
        plan = _OutputPlan(operation.resolved_name(), pages, deduplicate=True)
        return self._finish([plan], channel)[0]

    @register_operation(WatermarkOperation)
    def _watermark(self, operation: WatermarkOperation, channel: ProgressChannel) -> NamedBuffer:
        handle = self._load_single(operation.source, channel)
        channel.emit(VALIDATE_AT, "Validating watermark...")
        stamp = WatermarkStamp(
            operation.text,
            font_size=operation.font_size,
            opacity=operation.opacity,
            rotation=operation.rotation,
            color=operation.color,
        )
        pages = [_ResolvedPage(handle, index) for index in range(handle.page_count)]
        return self._finish([_OutputPlan(operation.resolved_name(), pages, stamp=stamp)], channel)[0]

    @register_operation(ProtectOperation)
    def _protect(self, operation: ProtectOperation, channel: ProgressChannel) -> NamedBuffer:
        raise UnsupportedOperationError(
            "Password protection is not supported: the output would not actually be encrypted"
        )

    # -- Phases --------------------------------------------------------------

    def _yield(self) -> None:
        if self._checkpoint is not None:
            self._checkpoint()

    def _load_single(self, source: PdfInput, channel: ProgressChannel) -> DocumentHandle:
        cache = LoadCache(strict=self.settings.strict)
        return self._load_phase(cache, [(source, source_name(source))], channel)[0]

    def _load_phase(
        self,
        cache: LoadCache,
        sources: Sequence[tuple[PdfInput, str]],
        channel: ProgressChannel,
    ) -> list[DocumentHandle]:
        channel.emit(LOAD_START, "Loading PDF...")
        handles: list[DocumentHandle] = []
        for position, (source, name) in enumerate(sources, 1):
            handles.append(cache.get(source, name=name))
            channel.advance(
                LOAD_START, position, len(sources), LOAD_WEIGHT, f"Loaded PDF {position} of {len(sources)}..."
            )
            self._yield()
        return handles

    def _finish(self, plans: list[_OutputPlan], channel: ProgressChannel) -> list[NamedBuffer]:
        self._yield()
        writers = self._assembly_phase(plans, channel)
        return self._serialize_phase(writers, channel)

    def _assembly_phase(
        self,
        plans: list[_OutputPlan],
        channel: ProgressChannel,
    ) -> list[tuple[_OutputPlan, PdfWriter]]:
        total = sum(len(plan.pages) for plan in plans)
        done = 0
        channel.emit(ASSEMBLY_START, "Copying pages...")
        writers: list[tuple[_OutputPlan, PdfWriter]] = []
        for plan in plans:
            writer = PdfWriter()
            for page in plan.pages:
                with _source_errors(page.handle):
                    copied = writer.add_page(page.handle.page(page.index))
                    if page.rotation is not None:
                        copied[NameObject("/Rotate")] = NumberObject(page.rotation)
                    if plan.stamp is not None:
                        plan.stamp.apply(copied)
                done += 1
                LOGGER.debug(
                    "Copied page %s of %s into %s (rotation=%s)",
                    page.index + 1,
                    page.handle.name,
                    plan.name,
                    page.rotation,
                )
                channel.advance(ASSEMBLY_START, done, total, ASSEMBLY_WEIGHT, f"Copying page {done} of {total}...")
                self._yield()
            if self.settings.copy_metadata and plan.pages:
                with _source_errors(plan.pages[0].handle):
                    metadata = document_metadata(plan.pages[0].handle)
                if metadata:
                    writer.add_metadata(metadata)
            writers.append((plan, writer))
        return writers

    def _serialize_phase(
        self,
        writers: list[tuple[_OutputPlan, PdfWriter]],
        channel: ProgressChannel,
    ) -> list[NamedBuffer]:
        channel.emit(SERIALIZE_START, "Finalizing PDF...")
        results: list[NamedBuffer] = []
        for position, (plan, writer) in enumerate(writers, 1):
            if plan.deduplicate:
                writer.compress_identical_objects(remove_identicals=True, remove_unreferenced=True)
            buffer = BytesIO()
            try:
                writer.write(buffer)
            except Exception as exc:  # pragma: no cover - serialization errors vary
                LOGGER.error("Failed to serialize %s: %s", plan.name, exc)
                raise PdfComposeError(f"Failed to serialize {plan.name}") from exc
            results.append(NamedBuffer(plan.name, buffer.getvalue()))
            channel.advance(
                SERIALIZE_START, position, len(writers), SERIALIZE_WEIGHT, f"Saved {position} of {len(writers)}..."
            )
            self._yield()
        return results


@contextmanager
def _source_errors(handle: DocumentHandle) -> Iterator[None]:
    """Report damage pypdf only finds while copying as a corrupted ``handle``."""

    try:
        yield
    except PdfComposeError:
        raise
    except STRUCTURAL_ERRORS as exc:
        LOGGER.error("Failed to copy a page of %s: %s", handle.name, exc)
        raise CorruptedDocumentError(handle.name, detail=str(exc) or None) from exc


def _is_valid_rotation(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value in VALID_ROTATIONS


def _unique(items: Iterable) -> list:
    return list(dict.fromkeys(items))


def _describe_result(result: OperationResult) -> str:
    if isinstance(result, list):
        return f"{len(result)} document(s)"
    return str(result)


__all__ = ["CompositionEngine", "Checkpoint"]
