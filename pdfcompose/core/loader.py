"""Loading of source PDF buffers into read-only document handles."""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import FileNotDecryptedError, PdfReadError, PyPdfError

from ..exceptions import CorruptedDocumentError, EncryptedOrCorruptedError, LoadError
from .utils import copy_bytes, get_logger

LOGGER = get_logger("pdfcompose.loader")

# pypdf surfaces structural damage either through its own error hierarchy or as
# plain Python errors raised while walking a malformed object graph.
STRUCTURAL_ERRORS = (PyPdfError, ValueError, KeyError, TypeError, AttributeError, IndexError, AssertionError)


@dataclass(frozen=True)
class SourceDocument:
    """A named, in-memory PDF buffer supplied by a caller."""

    data: bytes
    name: str = "document.pdf"

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", copy_bytes(self.data))

    @property
    def byte_length(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: str | Path) -> "SourceDocument":
        source = Path(path).expanduser()
        return cls(source.read_bytes(), source.name)


PdfInput = SourceDocument | bytes | bytearray | memoryview


def source_name(source: PdfInput, default: str = "document.pdf") -> str:
    if isinstance(source, SourceDocument):
        return source.name
    return default


def source_bytes(source: PdfInput) -> bytes:
    if isinstance(source, SourceDocument):
        return source.data
    return copy_bytes(source)


@dataclass(frozen=True, eq=False)
class DocumentHandle:
    """Read-only view over one parsed source PDF.

    The handle owns its byte buffer and is never mutated after construction;
    pages are only ever copied out of it.
    """

    name: str
    data: bytes
    reader: PdfReader
    page_count: int
    encrypted: bool

    @property
    def byte_length(self) -> int:
        return len(self.data)

    def page(self, index: int):
        return self.reader.pages[index]


def _open_reader(data: bytes, *, strict: bool) -> PdfReader:
    # Each attempt gets its own stream over the owned copy.
    return PdfReader(BytesIO(data), strict=strict)


def _decrypt_with_empty_password(reader: PdfReader, name: str) -> None:
    LOGGER.warning("PDF %s is encrypted, attempting to load it with an empty password", name)
    try:
        status = reader.decrypt("")
    except Exception as exc:  # pragma: no cover - decrypt errors vary
        LOGGER.error("Failed to decrypt PDF %s: %s", name, exc)
        raise EncryptedOrCorruptedError(name) from exc
    if not status:
        raise EncryptedOrCorruptedError(name)


def load_document(source: PdfInput, *, name: str | None = None, strict: bool = False) -> DocumentHandle:
    """Parse ``source`` into a :class:`DocumentHandle`.

    Args:
        source: PDF bytes or a :class:`SourceDocument`.
        name: Display name used in error messages; defaults to the source name.
        strict: Enable pypdf's strict parsing.

    Raises:
        EncryptedOrCorruptedError: If the document is encrypted and cannot be
            opened with an empty password.
        CorruptedDocumentError: If the document structure cannot be parsed.
    """

    display_name = name or source_name(source)
    data = source_bytes(source)
    LOGGER.debug("Loading %s (%d bytes)", display_name, len(data))

    try:
        reader = _open_reader(data, strict=strict)
        encrypted = bool(reader.is_encrypted)
        if encrypted:
            _decrypt_with_empty_password(reader, display_name)
        page_count = len(reader.pages)
    except LoadError:
        raise
    except FileNotDecryptedError as exc:
        raise EncryptedOrCorruptedError(display_name) from exc
    except PdfReadError as exc:
        if "encrypt" in str(exc).lower():
            raise EncryptedOrCorruptedError(display_name) from exc
        LOGGER.error("Failed to read PDF %s: %s", display_name, exc)
        raise CorruptedDocumentError(display_name, detail=str(exc) or None) from exc
    except STRUCTURAL_ERRORS as exc:
        LOGGER.error("Failed to parse PDF %s: %s", display_name, exc)
        raise CorruptedDocumentError(display_name, detail=str(exc) or None) from exc

    LOGGER.debug("Loaded %s with %d page(s), encrypted=%s", display_name, page_count, encrypted)
    return DocumentHandle(
        name=display_name,
        data=data,
        reader=reader,
        page_count=page_count,
        encrypted=encrypted,
    )


class LoadCache:
    """Per-operation cache keyed by the identity of the caller's buffer object.

    A compose operation may reference the same source for many pages; each
    distinct buffer is parsed exactly once. The cache holds a reference to every
    key object so identities stay valid for the cache's lifetime.
    """

    def __init__(self, *, strict: bool = False) -> None:
        self._strict = strict
        self._handles: dict[int, tuple[PdfInput, DocumentHandle]] = {}

    def __len__(self) -> int:
        return len(self._handles)

    def get(self, source: PdfInput, *, name: str | None = None) -> DocumentHandle:
        key = id(source)
        cached = self._handles.get(key)
        if cached is not None:
            LOGGER.debug("Load cache hit for %s", cached[1].name)
            return cached[1]
        handle = load_document(source, name=name, strict=self._strict)
        self._handles[key] = (source, handle)
        return handle

    def handles(self) -> list[DocumentHandle]:
        return [handle for _, handle in self._handles.values()]


__all__ = [
    "SourceDocument",
    "PdfInput",
    "DocumentHandle",
    "LoadCache",
    "load_document",
    "source_name",
    "source_bytes",
    "STRUCTURAL_ERRORS",
]
