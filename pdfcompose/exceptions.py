"""Custom exceptions raised by :mod:`pdfcompose`."""

from __future__ import annotations

from typing import Any, Iterable, Sequence


def _restore_error(cls: type["PdfComposeError"], message: str, state: dict[str, Any]) -> "PdfComposeError":
    error = cls.__new__(cls)
    Exception.__init__(error, message)
    error.__dict__.update(state)
    return error


class PdfComposeError(Exception):
    """Base exception for all errors raised by :mod:`pdfcompose`."""

    def __reduce__(self) -> tuple[Any, ...]:
        # Subclasses take structured constructor arguments, so rebuild from the
        # rendered message plus attributes when crossing a process boundary.
        return (_restore_error, (type(self), str(self), dict(self.__dict__)))


class LoadError(PdfComposeError):
    """Raised when a source document cannot be loaded."""

    def __init__(self, message: str, *, source_name: str | None = None) -> None:
        self.source_name = source_name
        super().__init__(message)


class EncryptedOrCorruptedError(LoadError):
    """Raised when an encrypted PDF cannot be opened even with an empty password."""

    def __init__(self, source_name: str | None = None) -> None:
        label = f'"{source_name}"' if source_name else "document"
        super().__init__(
            f"Unable to process encrypted PDF {label}. "
            "The document may be password-protected or corrupted.",
            source_name=source_name,
        )


class CorruptedDocumentError(LoadError):
    """Raised when the PDF structure cannot be parsed."""

    def __init__(self, source_name: str | None = None, *, detail: str | None = None) -> None:
        label = f'PDF file "{source_name}"' if source_name else "PDF file"
        message = f"{label} is corrupted or has an invalid structure."
        if detail:
            message = f"{message} ({detail})"
        self.detail = detail
        super().__init__(message, source_name=source_name)


class PageSelectionError(PdfComposeError):
    """Base class for page selections that do not fit the source document."""

    def __init__(self, message: str, *, total_pages: int | None, source_name: str | None = None) -> None:
        self.total_pages = total_pages
        self.source_name = source_name
        super().__init__(message)


def _describe(total_pages: int | None, source_name: str | None) -> str:
    noun = "page" if total_pages == 1 else "pages"
    if source_name:
        return f'("{source_name}" has {total_pages} {noun})'
    return f"(PDF has {total_pages} {noun})"


class InvalidPageRangeError(PageSelectionError):
    """Raised when requested page ranges are empty or out of bounds."""

    def __init__(
        self,
        ranges: Iterable[tuple[int, int]],
        *,
        total_pages: int | None = None,
        source_name: str | None = None,
    ) -> None:
        self.ranges = [(int(start), int(end)) for start, end in ranges]
        if not self.ranges:
            message = "No valid page ranges specified"
        else:
            rendered = ", ".join(f"{start}-{end}" for start, end in self.ranges)
            message = f"Invalid page range: {rendered} {_describe(total_pages, source_name)}"
        super().__init__(message, total_pages=total_pages, source_name=source_name)


class InvalidPageNumbersError(PageSelectionError):
    """Raised when requested page numbers are empty or out of bounds."""

    def __init__(
        self,
        pages: Sequence[int],
        *,
        total_pages: int | None = None,
        source_name: str | None = None,
    ) -> None:
        self.pages = [int(page) for page in pages]
        if not self.pages:
            message = "No valid page numbers specified"
        else:
            rendered = ", ".join(str(page) for page in self.pages)
            message = f"Invalid page numbers: {rendered} {_describe(total_pages, source_name)}"
        super().__init__(message, total_pages=total_pages, source_name=source_name)


class InvalidRotationError(PageSelectionError):
    """Raised when a rotation override is not a multiple of 90 in ``[0, 270]``."""

    def __init__(
        self,
        rotations: dict[int, object],
        *,
        total_pages: int | None = None,
        source_name: str | None = None,
    ) -> None:
        self.rotations = dict(rotations)
        rendered = ", ".join(f"page {page}: {value!r}" for page, value in self.rotations.items())
        super().__init__(
            f"Invalid rotation ({rendered}); expected one of 0, 90, 180, 270",
            total_pages=total_pages,
            source_name=source_name,
        )


class InsufficientInputsError(PdfComposeError):
    """Raised when an operation does not receive enough usable inputs."""


class InvalidWatermarkError(PdfComposeError):
    """Raised when watermark text or styling cannot be rendered."""


class UnsupportedOperationError(PdfComposeError):
    """Raised for operations whose guarantees cannot be honoured at all."""


__all__ = [
    "PdfComposeError",
    "LoadError",
    "EncryptedOrCorruptedError",
    "CorruptedDocumentError",
    "PageSelectionError",
    "InvalidPageRangeError",
    "InvalidPageNumbersError",
    "InvalidRotationError",
    "InsufficientInputsError",
    "InvalidWatermarkError",
    "UnsupportedOperationError",
]
