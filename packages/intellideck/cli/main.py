"""
Command-line interface for IntelliDeck.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .. import __version__
from ..converter import (
    convert_fodp_to_json,
    convert_json_to_fodp,
    convert_json_to_pptx,
    convert_pptx_to_json,
)
from ..engine import SUPPORTED_TARGETS, require_engine
from ..exceptions import IntelliDeckError
from ..model import Presentation
from ..pipeline import ConversionOptions, ConversionPipeline, ConversionResult
from ..utils import configure_logging, sizeof_fmt

console = Console()


def _fail(error: Exception) -> NoReturn:
    console.print(f"\n[bold red]✗ Error:[/bold red] {error}")
    sys.exit(1)


def _show_result(result: ConversionResult) -> None:
    table = Table(title="Conversion Result", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Output", str(result.output_path))
    table.add_row("Format", result.format)
    if result.output_path.exists():
        table.add_row("Size", sizeof_fmt(result.output_path.stat().st_size))
    table.add_row("Duration", f"{result.conversion_info.duration_ms:.0f} ms")
    if result.conversion_info.engine_version:
        table.add_row("Engine", result.conversion_info.engine_version)
    if result.additional_files:
        table.add_row("Bundled files", str(len(result.additional_files)))
    if result.workspace is not None:
        table.add_row("Workspace", str(result.workspace))
    console.print(table)


def _summarise(presentation: Presentation) -> None:
    table = Table(title=presentation.title)
    table.add_column("#", style="cyan", width=4)
    table.add_column("Slide", style="green")
    table.add_column("Elements", justify="right")
    for index, slide in enumerate(presentation.slides, start=1):
        table.add_row(str(index), slide.title or slide.id, str(len(slide.elements)))
    console.print(table)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """
    IntelliDeck CLI - Convert presentations between PPTX, flat XML, JSON, PDF and HTML.
    """
    configure_logging("DEBUG" if verbose else "WARNING")


@cli.command(name="convert")
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--to", "-t", "target",
    required=True,
    type=click.Choice(SUPPORTED_TARGETS, case_sensitive=False),
    help="Target format",
)
@click.option("--output-dir", "-o", default="./output", type=click.Path(file_okay=False), help="Output directory")
@click.option("--output-name", "-n", type=str, help="Output file name without extension")
@click.option("--keep-temp", is_flag=True, help="Keep the temporary workspace")
@click.option("--no-zip", is_flag=True, help="Do not bundle HTML output into a zip archive")
@click.option("--filter", "filter_name", type=str, help="Explicit LibreOffice export filter")
@click.option("--validate", is_flag=True, help="Check PDF output with pypdf")
def convert(input_file, target, output_dir, output_name, keep_temp, no_zip, filter_name, validate):
    """
    Convert a presentation with LibreOffice.

    Examples:

        intellideck convert deck.pptx --to pdf

        intellideck convert deck.pptx --to html -o site --no-zip
    """
    options = ConversionOptions(
        output_dir=output_dir,
        output_name=output_name,
        keep_temp_files=keep_temp,
        create_zip=not no_zip,
        filter_name=filter_name,
        validate_output=validate,
    )
    try:
        with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console) as progress:
            task = progress.add_task(f"Converting to {target}...", total=None)
            result = ConversionPipeline().run(input_file, target.lower(), options)
            progress.update(task, completed=True)
    except IntelliDeckError as exc:
        _fail(exc)
    console.print(f"\n[bold green]✓ Successfully created:[/bold green] {result.output_path}")
    _show_result(result)


@cli.command(name="to-json")
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write JSON here instead of stdout")
@click.option("--keep-temp", is_flag=True, help="Keep the intermediate flat XML")
def to_json(input_file, output, keep_temp):
    """
    Decode a presentation (.pptx or .fodp) into the JSON document model.
    """
    try:
        if Path(input_file).suffix.lower() == ".fodp":
            presentation = convert_fodp_to_json(input_file)
        else:
            presentation = convert_pptx_to_json(input_file, ConversionOptions(keep_temp_files=keep_temp))
    except IntelliDeckError as exc:
        _fail(exc)

    document = presentation.to_json()
    if output is None:
        click.echo(document)
        return
    destination = Path(output)
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(document, encoding="utf-8")
    console.print(f"\n[bold green]✓ JSON written to:[/bold green] {destination}")
    _summarise(presentation)


@cli.command(name="from-json")
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--to", "-t", "target",
    default="pptx",
    show_default=True,
    type=click.Choice(["pptx", "fodp"], case_sensitive=False),
    help="Target format",
)
@click.option("--output-dir", "-o", default="./output", type=click.Path(file_okay=False), help="Output directory")
@click.option("--output-name", "-n", type=str, help="Output file name without extension")
@click.option("--keep-temp", is_flag=True, help="Keep the intermediate flat XML")
def from_json(input_file, target, output_dir, output_name, keep_temp):
    """
    Encode a JSON document model as flat XML or PPTX.
    """
    options = ConversionOptions(output_dir=output_dir, output_name=output_name, keep_temp_files=keep_temp)
    try:
        if target.lower() == "fodp":
            path = convert_json_to_fodp(input_file, options)
            console.print(f"\n[bold green]✓ Successfully created:[/bold green] {path}")
            return
        result = convert_json_to_pptx(input_file, options)
    except IntelliDeckError as exc:
        _fail(exc)
    console.print(f"\n[bold green]✓ Successfully created:[/bold green] {result.output_path}")
    _show_result(result)


@cli.command(name="engine-info")
def engine_info():
    """
    Show which LibreOffice binary will be used.
    """
    try:
        info = require_engine()
    except IntelliDeckError as exc:
        _fail(exc)
    table = Table(title="Rendering Engine", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Binary", info.binary)
    table.add_row("Version", info.version or "unknown")
    console.print(table)


def main() -> None:
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
