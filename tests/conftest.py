from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Callable, Sequence
import sys

import pytest
from pypdf import PdfReader, PdfWriter

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pdfcompose import SourceDocument  # noqa: E402

PdfFactory = Callable[..., bytes]


def build_pdf(
    pages: int = 3,
    *,
    first_width: int = 100,
    title: str | None = None,
    rotations: dict[int, int] | None = None,
) -> bytes:
    """Build a PDF whose page ``n`` (1-based) is ``first_width + 10 * (n - 1)`` wide."""

    writer = PdfWriter()
    for index in range(pages):
        page = writer.add_blank_page(width=first_width + 10 * index, height=200)
        if rotations and index + 1 in rotations:
            page.rotate(rotations[index + 1])
    if title is not None:
        writer.add_metadata({"/Producer": "pdfcompose-tests", "/Title": title})
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def page_widths(data: bytes) -> list[int]:
    return [int(page.mediabox.width) for page in PdfReader(BytesIO(data)).pages]


def page_rotations(data: bytes) -> list[int]:
    return [page.rotation for page in PdfReader(BytesIO(data)).pages]


def progress_values(events: Sequence) -> list[float]:
    return [event.progress for event in events]


@pytest.fixture()
def pdf_factory() -> PdfFactory:
    return build_pdf


@pytest.fixture()
def sample_pdf() -> SourceDocument:
    return SourceDocument(build_pdf(5, title="Sample"), "sample.pdf")


@pytest.fixture()
def sample_pdfs() -> list[SourceDocument]:
    return [
        SourceDocument(build_pdf(2, first_width=100, title="Document One"), "one.pdf"),
        SourceDocument(build_pdf(3, first_width=300), "two.pdf"),
    ]


@pytest.fixture()
def empty_pdf() -> SourceDocument:
    buffer = BytesIO()
    PdfWriter().write(buffer)
    return SourceDocument(buffer.getvalue(), "empty.pdf")


@pytest.fixture()
def corrupt_pdf() -> SourceDocument:
    return SourceDocument(b"%PDF-1.4\nthis is not really a pdf\n", "broken.pdf")


def build_pdf_with_dangling_contents() -> bytes:
    """A one-page PDF whose page ``/Contents`` points at an object that does not exist."""

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 200 200] /Contents 999 0 R >>",
    ]
    data = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, 1):
        offsets.append(len(data))
        data += b"%d 0 obj\n" % number + body + b"\nendobj\n"
    xref_offset = len(data)
    data += b"xref\n0 %d\n" % (len(objects) + 1)
    data += b"0000000000 65535 f \n"
    for offset in offsets:
        data += b"%010d 00000 n \n" % offset
    data += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_offset)
    return bytes(data)


@pytest.fixture()
def dangling_contents_pdf() -> SourceDocument:
    return SourceDocument(build_pdf_with_dangling_contents(), "lazy.pdf")


@pytest.fixture()
def encrypted_pdf() -> SourceDocument:
    writer = PdfWriter()
    writer.add_blank_page(width=100, height=100)
    writer.encrypt(user_password="secret", owner_password="owner")
    buffer = BytesIO()
    writer.write(buffer)
    return SourceDocument(buffer.getvalue(), "locked.pdf")


@pytest.fixture()
def owner_locked_pdf() -> SourceDocument:
    writer = PdfWriter()
    for _ in range(2):
        writer.add_blank_page(width=100, height=100)
    writer.encrypt(user_password="", owner_password="owner")
    buffer = BytesIO()
    writer.write(buffer)
    return SourceDocument(buffer.getvalue(), "restricted.pdf")


@pytest.fixture()
def write_pdf(tmp_path: Path) -> Callable[..., Path]:
    def _create(filename: str, pages: int = 3, **kwargs) -> Path:
        path = tmp_path / filename
        path.write_bytes(build_pdf(pages, **kwargs))
        return path

    return _create
