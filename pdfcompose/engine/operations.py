"""Operation descriptors accepted by :class:`~pdfcompose.engine.CompositionEngine`.

Each operation kind is its own frozen dataclass carrying exactly the parameters
it needs; :data:`Operation` is the union of all of them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Mapping, Sequence, Union

from ..core.loader import PdfInput, source_name
from ..ranges import PageRange


@dataclass(frozen=True)
class PageReference:
    """One page of one source document.

    ``page_index`` is 0-based. ``rotation`` is an absolute rotation in degrees;
    ``None`` keeps the source page's rotation while ``0`` resets it.
    """

    source: PdfInput
    page_index: int
    rotation: int | None = None


@dataclass(frozen=True)
class SplitRange:
    """An inclusive, 1-based page run producing one split output."""

    start: int
    end: int
    name: str | None = None

    @classmethod
    def coerce(cls, value: "SplitRange | PageRange | Sequence[int]") -> "SplitRange":
        if isinstance(value, SplitRange):
            return value
        if isinstance(value, PageRange):
            return cls(value.start, value.end)
        start, end = value
        return cls(int(start), int(end))

    def default_name(self, ordinal: int) -> str:
        return f"split_{ordinal}_pages_{self.start}-{self.end}.pdf"


@dataclass(frozen=True)
class MergeOperation:
    inputs: Sequence[PdfInput]
    output_name: str = "merged.pdf"

    kind: ClassVar[str] = "merge"

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", tuple(self.inputs))


@dataclass(frozen=True)
class SplitOperation:
    source: PdfInput
    ranges: Sequence[SplitRange | PageRange | Sequence[int]]

    kind: ClassVar[str] = "split"

    def __post_init__(self) -> None:
        object.__setattr__(self, "ranges", tuple(SplitRange.coerce(item) for item in self.ranges))


@dataclass(frozen=True)
class ExtractOperation:
    """Extract 1-based ``pages`` from ``source``; output order is always ascending."""

    source: PdfInput
    pages: Sequence[int]
    output_name: str | None = None

    kind: ClassVar[str] = "extract"

    def __post_init__(self) -> None:
        object.__setattr__(self, "pages", tuple(int(page) for page in self.pages))

    def resolved_name(self) -> str:
        return self.output_name or f"extracted_pages_{source_name(self.source)}"


@dataclass(frozen=True)
class RotateOperation:
    """Rebuild ``source`` with absolute rotations keyed by 1-based page number."""

    source: PdfInput
    rotations: Mapping[int, int] = field(default_factory=dict)
    output_name: str | None = None

    kind: ClassVar[str] = "rotate"

    def __post_init__(self) -> None:
        object.__setattr__(self, "rotations", {int(page): value for page, value in self.rotations.items()})

    def resolved_name(self) -> str:
        return self.output_name or f"rotated_{source_name(self.source)}"


@dataclass(frozen=True)
class ComposeOperation:
    pages: Sequence[PageReference]
    output_name: str = "composed.pdf"

    kind: ClassVar[str] = "compose"

    def __post_init__(self) -> None:
        object.__setattr__(self, "pages", tuple(self.pages))


@dataclass(frozen=True)
class CompressOperation:
    source: PdfInput
    output_name: str | None = None

    kind: ClassVar[str] = "compress"

    def resolved_name(self) -> str:
        return self.output_name or f"compressed_{source_name(self.source)}"


@dataclass(frozen=True)
class WatermarkOperation:
    """Stamp ``text`` across the centre of every page of ``source``.

    ``rotation`` is the text angle in degrees, counter-clockwise. ``color`` is an
    RGB triple with components in ``[0, 1]`` and ``opacity`` applies to the text only.
    """

    source: PdfInput
    text: str = "CONFIDENTIAL"
    font_size: float = 48
    opacity: float = 0.3
    rotation: float = 45
    color: tuple[float, float, float] = (0.5, 0.5, 0.5)
    output_name: str | None = None

    kind: ClassVar[str] = "watermark"

    def __post_init__(self) -> None:
        object.__setattr__(self, "color", tuple(self.color))

    def resolved_name(self) -> str:
        return self.output_name or f"watermarked_{source_name(self.source)}"


@dataclass(frozen=True)
class ProtectOperation:
    source: PdfInput
    password: str = field(repr=False, default="")

    kind: ClassVar[str] = "protect"


Operation = Union[
    MergeOperation,
    SplitOperation,
    ExtractOperation,
    RotateOperation,
    ComposeOperation,
    CompressOperation,
    WatermarkOperation,
    ProtectOperation,
]

OPERATION_TYPES: tuple[type, ...] = (
    MergeOperation,
    SplitOperation,
    ExtractOperation,
    RotateOperation,
    ComposeOperation,
    CompressOperation,
    WatermarkOperation,
    ProtectOperation,
)


__all__ = [
    "PageReference",
    "SplitRange",
    "MergeOperation",
    "SplitOperation",
    "ExtractOperation",
    "RotateOperation",
    "ComposeOperation",
    "CompressOperation",
    "WatermarkOperation",
    "ProtectOperation",
    "Operation",
    "OPERATION_TYPES",
]
