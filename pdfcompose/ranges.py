"""Parsers for the comma/dash page selection syntax.

Parsing is tolerant: tokens that are malformed, reversed or outside
``1..total_pages`` are dropped and only the valid subset is returned. Deciding
whether an empty result is an error is left to the operation that consumes it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Mapping, Sequence

from .core.utils import get_logger

LOGGER = get_logger("pdfcompose.ranges")

VALID_ROTATIONS = (0, 90, 180, 270)

RangeSpec = str | Sequence[object] | None


@dataclass(frozen=True)
class PageRange:
    """Represents an inclusive, 1-based page range."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 1 or self.end < 1:
            raise ValueError("Page numbers must be positive integers")
        if self.start > self.end:
            raise ValueError("Page range start must be less than or equal to end")

    @property
    def page_count(self) -> int:
        return self.end - self.start + 1

    def pages(self) -> range:
        return range(self.start, self.end + 1)

    def label(self) -> str:
        return f"pages_{self.start}-{self.end}"


def _tokens(spec: RangeSpec) -> Iterator[str]:
    if spec is None:
        return
    if isinstance(spec, str):
        yield from (token.strip() for token in spec.split(",") if token.strip())
        return
    for item in spec:
        if isinstance(item, str):
            yield from _tokens(item)
        elif isinstance(item, PageRange):
            yield f"{item.start}-{item.end}"
        elif isinstance(item, Sequence) and len(item) == 2:
            yield f"{item[0]}-{item[1]}"
        elif isinstance(item, int) and not isinstance(item, bool):
            yield str(item)
        else:
            LOGGER.debug("Ignoring unsupported range item %r", item)


def _parse_token(token: str) -> tuple[int, int] | None:
    if "-" in token:
        start_str, end_str = token.split("-", 1)
        try:
            return int(start_str.strip()), int(end_str.strip())
        except ValueError:
            return None
    try:
        number = int(token)
    except ValueError:
        return None
    return number, number


def _valid_bounds(token: str, total_pages: int) -> tuple[int, int] | None:
    bounds = _parse_token(token)
    if bounds is None:
        LOGGER.debug("Dropping malformed page token %r", token)
        return None
    start, end = bounds
    if start < 1 or end > total_pages or start > end:
        LOGGER.debug("Dropping out-of-range page token %r (total pages: %s)", token, total_pages)
        return None
    return bounds


def parse_ranges(spec: RangeSpec, total_pages: int) -> List[PageRange]:
    """Parse ``spec`` into discrete :class:`PageRange` values.

    Each token stays its own range, in the order given; overlapping ranges are
    neither merged nor expanded because every range becomes a separate split
    output.

    Args:
        spec: Comma-separated text such as ``"1-3,4-6"``, or a sequence of
            tokens, integers, ``(start, end)`` pairs or :class:`PageRange`.
        total_pages: Page count of the document the ranges refer to.

    Returns:
        The valid ranges; possibly empty.
    """

    parsed: List[PageRange] = []
    for token in _tokens(spec):
        bounds = _valid_bounds(token, total_pages)
        if bounds is not None:
            parsed.append(PageRange(*bounds))
    return parsed


def parse_page_list(spec: RangeSpec, total_pages: int) -> List[int]:
    """Parse ``spec`` into an ascending list of unique page numbers.

    ``start-end`` tokens expand into inclusive runs.
    """

    pages: set[int] = set()
    for token in _tokens(spec):
        bounds = _valid_bounds(token, total_pages)
        if bounds is not None:
            pages.update(range(bounds[0], bounds[1] + 1))
    return sorted(pages)


def parse_rotations(rotations: Mapping[object, object], total_pages: int) -> dict[int, int]:
    """Filter a page-to-rotation mapping down to its valid entries.

    Keys may be page numbers or numeric strings. An explicit ``0`` is kept so
    callers can reset a page's rotation.
    """

    result: dict[int, int] = {}
    for raw_page, raw_rotation in rotations.items():
        try:
            page = int(str(raw_page).strip())
            rotation = int(str(raw_rotation).strip())
        except ValueError:
            LOGGER.debug("Dropping malformed rotation entry %r=%r", raw_page, raw_rotation)
            continue
        if 1 <= page <= total_pages and rotation in VALID_ROTATIONS:
            result[page] = rotation
        else:
            LOGGER.debug("Dropping rotation entry %s=%s (total pages: %s)", page, rotation, total_pages)
    return result


__all__ = [
    "PageRange",
    "RangeSpec",
    "VALID_ROTATIONS",
    "parse_ranges",
    "parse_page_list",
    "parse_rotations",
]
