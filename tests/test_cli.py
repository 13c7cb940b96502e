from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Callable

import pytest
from click.testing import CliRunner
from pypdf import PdfReader

from conftest import build_pdf_with_dangling_contents, page_rotations, page_widths

from pdfcompose.cli import cli


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


def _invoke(runner: CliRunner, *args: str):
    return runner.invoke(cli, ["--foreground", *args])


def test_merge_command(runner: CliRunner, write_pdf: Callable[..., Path], tmp_path: Path) -> None:
    first = write_pdf("a.pdf", 2)
    second = write_pdf("b.pdf", 1, first_width=300)
    output = tmp_path / "out" / "merged.pdf"

    result = _invoke(runner, "merge", str(first), str(second), "-o", str(output))

    assert result.exit_code == 0, result.output
    assert page_widths(output.read_bytes()) == [100, 110, 300]
    assert "Successfully created 1 file(s)" in result.output


def test_merge_command_needs_two_files(runner: CliRunner, write_pdf: Callable[..., Path], tmp_path: Path) -> None:
    only = write_pdf("a.pdf", 2)

    result = _invoke(runner, "merge", str(only), "-o", str(tmp_path / "merged.pdf"))

    assert result.exit_code == 1
    assert "At least two" in result.output


def test_split_command(runner: CliRunner, write_pdf: Callable[..., Path], tmp_path: Path) -> None:
    source = write_pdf("book.pdf", 5)
    output_dir = tmp_path / "parts"

    result = _invoke(runner, "split", str(source), "-r", "1-2,3-5,8-9", "-o", str(output_dir))

    assert result.exit_code == 0, result.output
    assert sorted(path.name for path in output_dir.iterdir()) == [
        "split_1_pages_1-2.pdf",
        "split_2_pages_3-5.pdf",
    ]


def test_extract_command(runner: CliRunner, write_pdf: Callable[..., Path], tmp_path: Path) -> None:
    source = write_pdf("book.pdf", 5)
    output = tmp_path / "picked.pdf"

    result = _invoke(runner, "extract", str(source), "-p", "5,1,3", "-o", str(output))

    assert result.exit_code == 0, result.output
    assert page_widths(output.read_bytes()) == [100, 120, 140]


def test_extract_command_without_valid_pages(runner: CliRunner, write_pdf: Callable[..., Path], tmp_path: Path) -> None:
    source = write_pdf("book.pdf", 2)

    result = _invoke(runner, "extract", str(source), "-p", "7", "-o", str(tmp_path / "x.pdf"))

    assert result.exit_code == 1
    assert "No valid page numbers specified" in result.output


def test_rotate_command(runner: CliRunner, write_pdf: Callable[..., Path], tmp_path: Path) -> None:
    source = write_pdf("book.pdf", 3)
    output = tmp_path / "rotated.pdf"

    result = _invoke(runner, "rotate", str(source), "-r", "1,3=90", "-r", "2=180", "-o", str(output))

    assert result.exit_code == 0, result.output
    assert page_rotations(output.read_bytes()) == [90, 180, 90]


def test_rotate_command_bad_option(runner: CliRunner, write_pdf: Callable[..., Path]) -> None:
    source = write_pdf("book.pdf", 3)

    result = _invoke(runner, "rotate", str(source), "-r", "1:90")

    assert result.exit_code == 2
    assert "PAGES=DEGREES" in result.output


def test_compose_command(runner: CliRunner, write_pdf: Callable[..., Path], tmp_path: Path) -> None:
    first = write_pdf("a.pdf", 2)
    second = write_pdf("b.pdf", 2, first_width=300)
    output = tmp_path / "mixed.pdf"

    result = _invoke(runner, "compose", f"{second}:2", f"{first}:1@270", f"{second}:1", "-o", str(output))

    assert result.exit_code == 0, result.output
    data = output.read_bytes()
    assert page_widths(data) == [310, 100, 300]
    assert page_rotations(data) == [0, 270, 0]


def test_compose_command_bad_page(runner: CliRunner, write_pdf: Callable[..., Path], tmp_path: Path) -> None:
    first = write_pdf("a.pdf", 2)

    result = _invoke(runner, "compose", f"{first}:3", "-o", str(tmp_path / "out.pdf"))

    assert result.exit_code == 1
    assert "Invalid page numbers: 3" in result.output


def test_compress_command(runner: CliRunner, write_pdf: Callable[..., Path], tmp_path: Path) -> None:
    source = write_pdf("book.pdf", 2)
    output = tmp_path / "small.pdf"

    result = _invoke(runner, "compress", str(source), "-o", str(output))

    assert result.exit_code == 0, result.output
    assert page_widths(output.read_bytes()) == [100, 110]


def test_info_command(runner: CliRunner, write_pdf: Callable[..., Path]) -> None:
    source = write_pdf("book.pdf", 4, title="Handbook")

    result = _invoke(runner, "info", str(source))

    assert result.exit_code == 0, result.output
    assert "Number of Pages" in result.output
    assert "Handbook" in result.output


def test_info_command_corrupted_file(runner: CliRunner, tmp_path: Path) -> None:
    broken = tmp_path / "broken.pdf"
    broken.write_bytes(b"%PDF-1.4\nnot a pdf\n")

    result = _invoke(runner, "info", str(broken))

    assert result.exit_code == 1
    assert "Error" in result.output


def test_watermark_command(runner: CliRunner, write_pdf: Callable[..., Path], tmp_path: Path) -> None:
    source = write_pdf("book.pdf", 3)
    output = tmp_path / "draft.pdf"

    result = _invoke(
        runner, "watermark", str(source), "-t", "DRAFT", "--opacity", "0.2", "--color", "1", "0", "0", "-o", str(output)
    )

    assert result.exit_code == 0, result.output
    pages = PdfReader(BytesIO(output.read_bytes())).pages
    assert len(pages) == 3
    assert all(b"DRAFT" in page.get_contents().get_data() for page in pages)


def test_watermark_command_rejects_opacity(runner: CliRunner, write_pdf: Callable[..., Path]) -> None:
    source = write_pdf("book.pdf", 1)

    result = _invoke(runner, "watermark", str(source), "--opacity", "2")

    assert result.exit_code == 2


def test_strict_mode_names_damaged_file(runner: CliRunner, tmp_path: Path) -> None:
    damaged = tmp_path / "lazy.pdf"
    damaged.write_bytes(build_pdf_with_dangling_contents())

    args = ["--foreground", "--strict", "extract", str(damaged), "-p", "1", "-o", str(tmp_path / "x.pdf")]
    result = runner.invoke(cli, args)

    assert result.exit_code == 1
    assert "lazy.pdf" in result.output
