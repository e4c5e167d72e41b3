"""
Command line interface for esf-json.

Usage:
    esf-json convert [--verbose] [--generic] INPUT_XML OUTPUT_JSON
    esf-json batch [--verbose] [--workers N] INPUT_DIR OUTPUT_DIR
    esf-json aggregate [--verbose] ARMY_DIR FINAL_JSON
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import typer

from esf_json.api import BatchPipeline
from esf_json.config import get_app_config
from esf_json.exceptions import MalformedInputError
from esf_json.services import AggregationService, ConversionService

app = typer.Typer(help="Convert ESF save dump XML to normalized JSON.")


def configure_logging(verbose: bool) -> None:
    """Route library logs to stderr; DEBUG when verbose."""
    level = logging.DEBUG if verbose else getattr(
        logging, get_app_config().log_level.upper(), logging.INFO
    )
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=1)


@app.command()
def convert(
    input_xml: Path = typer.Argument(..., help="ESF XML file"),
    output_json: Path = typer.Argument(..., help="Destination JSON file"),
    generic: bool = typer.Option(False, "--generic", help="Use the generic XML flattener"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress details"),
):
    """Convert a single XML file."""
    configure_logging(verbose)

    if not input_xml.is_file():
        _fail(f"Input file {input_xml} not found.")

    try:
        written = ConversionService().convert_file(
            input_xml, output_json, converter='generic' if generic else 'esf'
        )
    except MalformedInputError as e:
        _fail(str(e))

    typer.echo(str(written))


@app.command()
def batch(
    input_dir: Path = typer.Argument(..., help="Directory of per-faction XML folders"),
    output_dir: Path = typer.Argument(..., help="Directory for JSON output"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help="Worker processes"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress details"),
):
    """Convert every faction's army/region folders and aggregate armies."""
    configure_logging(verbose)

    if not input_dir.is_dir():
        _fail(f"Input directory '{input_dir}' not found.")

    stats = BatchPipeline().run(input_dir, output_dir, max_workers=workers)

    typer.echo(
        f"Conversion complete. {stats.converted} converted, {stats.failed} failed, "
        f"{stats.aggregated} armies aggregated. JSON files are in {output_dir}"
    )
    if stats.failed:
        raise typer.Exit(code=1)


@app.command()
def aggregate(
    army_dir: Path = typer.Argument(..., help="Directory of single-army JSON files"),
    final_json: Path = typer.Argument(..., help="Destination of the aggregated array"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress details"),
):
    """Merge single-army JSON files into one array."""
    configure_logging(verbose)

    if not army_dir.is_dir():
        _fail(f"Army directory '{army_dir}' not found.")

    count = AggregationService().aggregate_armies(army_dir, final_json)
    typer.echo(f"Aggregated {count} armies into {final_json}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
