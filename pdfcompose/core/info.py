"""Non-destructive inspection of source PDFs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..exceptions import EncryptedOrCorruptedError
from .loader import DocumentHandle, PdfInput, load_document, source_bytes, source_name
from .utils import get_logger

LOGGER = get_logger("pdfcompose.info")


@dataclass(frozen=True)
class DocumentInfo:
    """Summary information describing a PDF document.

    ``page_count`` is ``None`` when the document is encrypted and could not be
    opened, in which case only the size and encryption flag are meaningful.
    """

    name: str
    byte_length: int
    page_count: Optional[int]
    is_encrypted: bool
    title: Optional[str] = None
    author: Optional[str] = None
    subject: Optional[str] = None
    creator: Optional[str] = None
    producer: Optional[str] = None
    creation_date: Optional[str] = None
    modification_date: Optional[str] = None


def document_metadata(handle: DocumentHandle) -> Dict[str, str]:
    """Return the string-valued document info entries of ``handle``."""

    metadata = handle.reader.metadata
    if not metadata:
        return {}
    return {
        key: str(value)
        for key, value in metadata.items()
        if isinstance(key, str) and value is not None
    }


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text or None


def describe_document(handle: DocumentHandle) -> DocumentInfo:
    metadata = handle.reader.metadata
    creation = getattr(metadata, "creation_date_raw", None) if metadata else None
    modification = getattr(metadata, "modification_date_raw", None) if metadata else None
    return DocumentInfo(
        name=handle.name,
        byte_length=handle.byte_length,
        page_count=handle.page_count,
        is_encrypted=handle.encrypted,
        title=_text(metadata.title) if metadata else None,
        author=_text(metadata.author) if metadata else None,
        subject=_text(metadata.subject) if metadata else None,
        creator=_text(metadata.creator) if metadata else None,
        producer=_text(metadata.producer) if metadata else None,
        creation_date=_text(creation),
        modification_date=_text(modification),
    )


def inspect_document(source: PdfInput, *, name: str | None = None, strict: bool = False) -> DocumentInfo:
    """Return :class:`DocumentInfo` for ``source``.

    Corrupted documents raise :class:`~pdfcompose.exceptions.CorruptedDocumentError`;
    encrypted documents that cannot be opened produce a record with
    ``is_encrypted=True`` and no page count.
    """

    display_name = name or source_name(source)
    try:
        handle = load_document(source, name=display_name, strict=strict)
    except EncryptedOrCorruptedError:
        LOGGER.info("PDF %s is encrypted; returning partial information", display_name)
        return DocumentInfo(
            name=display_name,
            byte_length=len(source_bytes(source)),
            page_count=None,
            is_encrypted=True,
        )
    info = describe_document(handle)
    LOGGER.info(
        "PDF info: name=%s, pages=%s, encrypted=%s",
        info.name,
        info.page_count,
        info.is_encrypted,
    )
    return info


def count_pages(source: PdfInput, *, strict: bool = False) -> int:
    """Return the page count of ``source``; raises on unreadable documents."""

    return load_document(source, strict=strict).page_count


__all__ = ["DocumentInfo", "describe_document", "document_metadata", "inspect_document", "count_pages"]
