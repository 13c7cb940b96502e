from __future__ import annotations

import pytest

from conftest import PdfFactory

from pdfcompose import (
    CorruptedDocumentError,
    EncryptedOrCorruptedError,
    LoadCache,
    LoadError,
    SourceDocument,
    count_pages,
    inspect_document,
    load_document,
)
from pdfcompose.core import loader
from pdfcompose.core.utils import copy_bytes, format_file_size


def test_load_document_reads_page_count(sample_pdf: SourceDocument) -> None:
    handle = load_document(sample_pdf)

    assert handle.name == "sample.pdf"
    assert handle.page_count == 5
    assert handle.encrypted is False
    assert handle.byte_length == sample_pdf.byte_length


def test_load_document_accepts_raw_bytes(pdf_factory: PdfFactory) -> None:
    handle = load_document(pdf_factory(2), name="raw.pdf")
    assert handle.name == "raw.pdf"
    assert handle.page_count == 2


def test_load_document_corrupted(corrupt_pdf: SourceDocument) -> None:
    with pytest.raises(CorruptedDocumentError) as excinfo:
        load_document(corrupt_pdf)

    assert excinfo.value.source_name == "broken.pdf"
    assert 'PDF file "broken.pdf" is corrupted or has an invalid structure.' in str(excinfo.value)
    assert isinstance(excinfo.value, LoadError)


def test_load_document_encrypted_with_user_password(encrypted_pdf: SourceDocument) -> None:
    with pytest.raises(EncryptedOrCorruptedError) as excinfo:
        load_document(encrypted_pdf)

    message = str(excinfo.value)
    assert '"locked.pdf"' in message
    assert "password-protected or corrupted" in message


def test_load_document_retries_with_empty_password(owner_locked_pdf: SourceDocument) -> None:
    handle = load_document(owner_locked_pdf)
    assert handle.encrypted is True
    assert handle.page_count == 2


def test_source_document_copies_mutable_buffers(pdf_factory: PdfFactory) -> None:
    original = pdf_factory(2)
    buffer = bytearray(original)
    document = SourceDocument(buffer, "shelf.pdf")

    buffer[:] = b"\x00" * len(buffer)

    assert document.data == original
    assert load_document(document).page_count == 2


def test_load_document_copies_bytearray_input(pdf_factory: PdfFactory) -> None:
    original = pdf_factory(3)
    buffer = bytearray(original)
    handle = load_document(buffer)

    buffer[:10] = b"garbage..."

    assert handle.data == original
    assert len(handle.reader.pages) == 3


def test_copy_bytes_rejects_non_buffers() -> None:
    with pytest.raises(TypeError):
        copy_bytes("not bytes")  # type: ignore[arg-type]


def test_load_cache_parses_each_buffer_once(
    monkeypatch: pytest.MonkeyPatch, pdf_factory: PdfFactory
) -> None:
    calls: list[str | None] = []
    real_load = loader.load_document

    def counting_load(source, *, name=None, strict=False):
        calls.append(name)
        return real_load(source, name=name, strict=strict)

    monkeypatch.setattr(loader, "load_document", counting_load)
    first = SourceDocument(pdf_factory(2), "a.pdf")
    twin = SourceDocument(first.data, "a-copy.pdf")
    cache = LoadCache()

    assert cache.get(first) is cache.get(first)
    cache.get(twin)

    assert len(cache) == 2
    assert calls == [None, None]
    assert [handle.name for handle in cache.handles()] == ["a.pdf", "a-copy.pdf"]


def test_inspect_document_reports_metadata(sample_pdf: SourceDocument) -> None:
    info = inspect_document(sample_pdf)

    assert info.name == "sample.pdf"
    assert info.page_count == 5
    assert info.title == "Sample"
    assert info.producer == "pdfcompose-tests"
    assert info.is_encrypted is False
    assert info.byte_length == sample_pdf.byte_length


def test_inspect_document_encrypted_returns_partial_record(encrypted_pdf: SourceDocument) -> None:
    info = inspect_document(encrypted_pdf)

    assert info.is_encrypted is True
    assert info.page_count is None
    assert info.byte_length == encrypted_pdf.byte_length


def test_inspect_document_corrupted_raises(corrupt_pdf: SourceDocument) -> None:
    with pytest.raises(CorruptedDocumentError):
        inspect_document(corrupt_pdf)


def test_count_pages(sample_pdf: SourceDocument) -> None:
    assert count_pages(sample_pdf) == 5


def test_format_file_size() -> None:
    assert format_file_size(512) == "512.0 B"
    assert format_file_size(1536) == "1.5 KB"
