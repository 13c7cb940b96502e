"""
Command-line interface for pdfcompose.
"""

from __future__ import annotations

import functools
import sys
from pathlib import Path
from typing import Callable, Dict, List, Sequence

import click
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from . import __version__
from .config import ComposeSettings
from .core.info import count_pages, inspect_document
from .core.loader import SourceDocument
from .core.utils import configure_logging, format_file_size
from .dispatch import ExecutionDispatcher
from .engine import (
    ComposeOperation,
    CompressOperation,
    ExtractOperation,
    MergeOperation,
    NamedBuffer,
    Operation,
    OperationResult,
    PageReference,
    RotateOperation,
    SplitOperation,
    WatermarkOperation,
)
from .progress import ProgressEvent
from .ranges import parse_page_list, parse_ranges, parse_rotations

console = Console()


def _fail(error: object) -> None:
    console.print(f"\n[bold red]✗ Error:[/bold red] {escape(str(error))}")
    sys.exit(1)


def _load(path: str) -> SourceDocument:
    return SourceDocument.from_path(path)


def _run(settings: ComposeSettings, description: str, operation: Operation) -> OperationResult:
    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task(description, total=100)

        def update_progress(event: ProgressEvent) -> None:
            progress.update(task, completed=event.progress, description=event.message or description)

        with ExecutionDispatcher(settings) as dispatcher:
            return dispatcher.run(operation, update_progress)


def _write(result: NamedBuffer, destination: Path) -> Path:
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_bytes(result.data)
    return destination


def _report(paths: Sequence[Path]) -> None:
    console.print(f"\n[bold green]✓ Successfully created {len(paths)} file(s)[/bold green]")
    sample_size = min(5, len(paths))
    for path in paths[:sample_size]:
        console.print(f"  • {path}")
    if len(paths) > sample_size:
        console.print(f"  ... and {len(paths) - sample_size} more")
    console.print()


def _guarded(command: Callable[..., None]) -> Callable[..., None]:
    @functools.wraps(command)
    def wrapper(*args, **kwargs) -> None:
        try:
            command(*args, **kwargs)
        except click.ClickException:
            raise
        except Exception as exc:
            _fail(exc)

    return wrapper


def _parse_rotation_options(values: Sequence[str], total_pages: int) -> Dict[int, int]:
    requested: Dict[object, object] = {}
    for value in values:
        pages_spec, separator, degrees = value.partition("=")
        if not separator:
            raise click.BadParameter(f"Expected PAGES=DEGREES, got {value!r}", param_hint="--rotate")
        for page in parse_page_list(pages_spec, total_pages):
            requested[page] = degrees
    return parse_rotations(requested, total_pages)


def _parse_page_specs(specs: Sequence[str]) -> List[PageReference]:
    sources: Dict[Path, SourceDocument] = {}
    references: List[PageReference] = []
    for spec in specs:
        location, separator, page_part = spec.rpartition(":")
        if not separator or not location:
            raise click.BadParameter(f"Expected PATH:PAGE[@ROTATION], got {spec!r}", param_hint="PAGES")
        page_text, _, rotation_text = page_part.partition("@")
        try:
            page = int(page_text)
            rotation = int(rotation_text) if rotation_text else None
        except ValueError as exc:
            raise click.BadParameter(f"Invalid page reference {spec!r}", param_hint="PAGES") from exc
        path = Path(location).expanduser().resolve()
        if path not in sources:
            sources[path] = _load(str(path))
        references.append(PageReference(sources[path], page - 1, rotation))
    return references


@click.group()
@click.version_option(version=__version__)
@click.option("--foreground", is_flag=True, help="Run on the calling thread instead of a background worker")
@click.option("--strict", is_flag=True, help="Parse input PDFs in strict mode")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, foreground: bool, strict: bool, verbose: bool) -> None:
    """
    pdfcompose - Merge, split, extract, rotate, compose and watermark PDF pages.
    """
    try:
        settings = ComposeSettings.from_env().with_updates(
            execution="foreground" if foreground else None,
            strict=True if strict else None,
            log_level="DEBUG" if verbose else None,
        )
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc
    configure_logging(settings.log_level)
    ctx.obj = settings


@cli.command(name="merge")
@click.argument("inputs", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", default="merged.pdf", type=click.Path(dir_okay=False), help="Output file")
@click.pass_obj
@_guarded
def merge_command(settings: ComposeSettings, inputs: Sequence[str], output: str) -> None:
    """
    Merge PDF files in the given order.

    Example:

        pdfcompose merge a.pdf b.pdf -o merged.pdf
    """
    operation = MergeOperation([_load(path) for path in inputs], Path(output).name)
    result = _run(settings, f"Merging {len(inputs)} files", operation)
    _report([_write(result, Path(output))])


@cli.command(name="split")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@click.option("--ranges", "-r", required=True, help="Page ranges (e.g., '1-3,4-6,7-10')")
@click.option("--output-dir", "-o", default="./output", type=click.Path(file_okay=False), help="Output directory")
@click.pass_obj
@_guarded
def split_command(settings: ComposeSettings, input_pdf: str, ranges: str, output_dir: str) -> None:
    """
    Split a PDF into one file per page range.

    Example:

        pdfcompose split input.pdf -r 1-3,4-6 -o parts
    """
    source = _load(input_pdf)
    parsed = parse_ranges(ranges, count_pages(source, strict=settings.strict))
    results = _run(settings, "Splitting PDF", SplitOperation(source, parsed))
    _report([_write(result, Path(output_dir) / result.name) for result in results])


@cli.command(name="extract")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@click.option("--pages", "-p", required=True, help="Pages to extract (e.g., '1,3,5-7')")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Output file")
@click.pass_obj
@_guarded
def extract_command(settings: ComposeSettings, input_pdf: str, pages: str, output: str | None) -> None:
    """
    Extract pages into a new PDF, in ascending page order.
    """
    source = _load(input_pdf)
    selected = parse_page_list(pages, count_pages(source, strict=settings.strict))
    name = Path(output).name if output else None
    result = _run(settings, "Extracting pages", ExtractOperation(source, selected, name))
    _report([_write(result, Path(output) if output else Path(result.name))])


@cli.command(name="rotate")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--rotate",
    "-r",
    "rotations",
    multiple=True,
    required=True,
    help="PAGES=DEGREES with DEGREES one of 0, 90, 180, 270 (e.g., '1,3=90')",
)
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Output file")
@click.pass_obj
@_guarded
def rotate_command(settings: ComposeSettings, input_pdf: str, rotations: Sequence[str], output: str | None) -> None:
    """
    Set absolute page rotations; 0 resets a page.

    Example:

        pdfcompose rotate input.pdf -r 1=90 -r 2-4=180
    """
    source = _load(input_pdf)
    mapping = _parse_rotation_options(rotations, count_pages(source, strict=settings.strict))
    name = Path(output).name if output else None
    result = _run(settings, "Rotating pages", RotateOperation(source, mapping, name))
    _report([_write(result, Path(output) if output else Path(result.name))])


@cli.command(name="compose")
@click.argument("pages", nargs=-1, required=True)
@click.option("--output", "-o", default="composed.pdf", type=click.Path(dir_okay=False), help="Output file")
@click.pass_obj
@_guarded
def compose_command(settings: ComposeSettings, pages: Sequence[str], output: str) -> None:
    """
    Build a PDF from individual pages of any inputs.

    Each PAGES entry is PATH:PAGE[@ROTATION] with a 1-based PAGE.

    Example:

        pdfcompose compose a.pdf:2 b.pdf:1@90 a.pdf:1 -o mixed.pdf
    """
    operation = ComposeOperation(_parse_page_specs(pages), Path(output).name)
    result = _run(settings, f"Composing {len(pages)} pages", operation)
    _report([_write(result, Path(output))])


@cli.command(name="compress")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Output file")
@click.pass_obj
@_guarded
def compress_command(settings: ComposeSettings, input_pdf: str, output: str | None) -> None:
    """
    Rebuild a PDF and drop duplicated or unused objects.
    """
    source = _load(input_pdf)
    name = Path(output).name if output else None
    result = _run(settings, "Compressing PDF", CompressOperation(source, name))
    destination = _write(result, Path(output) if output else Path(result.name))
    console.print(
        f"[dim]{format_file_size(source.byte_length)} → {format_file_size(result.byte_length)}[/dim]"
    )
    _report([destination])


@cli.command(name="watermark")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@click.option("--text", "-t", default="CONFIDENTIAL", show_default=True, help="Watermark text")
@click.option("--font-size", default=48.0, show_default=True, type=click.FloatRange(min=0, min_open=True))
@click.option("--opacity", default=0.3, show_default=True, type=click.FloatRange(0, 1))
@click.option("--rotation", default=45.0, show_default=True, type=float, help="Text angle in degrees")
@click.option(
    "--color",
    default=(0.5, 0.5, 0.5),
    show_default=True,
    type=(click.FloatRange(0, 1), click.FloatRange(0, 1), click.FloatRange(0, 1)),
    metavar="R G B",
    help="Text colour components between 0 and 1",
)
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Output file")
@click.pass_obj
@_guarded
def watermark_command(
    settings: ComposeSettings,
    input_pdf: str,
    text: str,
    font_size: float,
    opacity: float,
    rotation: float,
    color: tuple[float, float, float],
    output: str | None,
) -> None:
    """
    Stamp diagonal text across every page.

    Example:

        pdfcompose watermark input.pdf -t DRAFT --opacity 0.2 -o draft.pdf
    """
    source = _load(input_pdf)
    name = Path(output).name if output else None
    operation = WatermarkOperation(source, text, font_size, opacity, rotation, color, name)
    result = _run(settings, "Applying watermark", operation)
    _report([_write(result, Path(output) if output else Path(result.name))])


@cli.command(name="info")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
@_guarded
def info_command(settings: ComposeSettings, input_pdf: str) -> None:
    """
    Display information about a PDF file.
    """
    info = inspect_document(_load(input_pdf), strict=settings.strict)

    table = Table(title=f"PDF Information: {info.name}")
    table.add_column("Property", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")

    table.add_row("File Path", str(Path(input_pdf).resolve()))
    table.add_row("File Size", format_file_size(info.byte_length))
    table.add_row("Number of Pages", "unknown" if info.page_count is None else str(info.page_count))
    table.add_row("Encrypted", "Yes" if info.is_encrypted else "No")
    for label, value in (
        ("Title", info.title),
        ("Author", info.author),
        ("Subject", info.subject),
        ("Creator", info.creator),
        ("Producer", info.producer),
        ("Created", info.creation_date),
        ("Modified", info.modification_date),
    ):
        if value:
            table.add_row(label, value)

    console.print()
    console.print(table)
    console.print()


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
