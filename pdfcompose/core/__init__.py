"""Document loading and inspection shared by every pdfcompose operation."""

from __future__ import annotations

from .info import DocumentInfo, count_pages, describe_document, document_metadata, inspect_document
from .loader import DocumentHandle, LoadCache, PdfInput, SourceDocument, load_document
from .utils import configure_logging, get_logger

__all__ = [
    "DocumentHandle",
    "DocumentInfo",
    "LoadCache",
    "PdfInput",
    "SourceDocument",
    "configure_logging",
    "count_pages",
    "describe_document",
    "document_metadata",
    "get_logger",
    "inspect_document",
    "load_document",
]
