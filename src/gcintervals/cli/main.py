"""
Command line interface for consensus interval planning.

Usage:
    gcintervals intervals <reads> [--region chr1:0-5000]
    gcintervals coverage <reads> --region chr1:0-500
    gcintervals chemistry <bam_file>

<reads> is either an indexed BAM file or a tab-separated read table with
ref_name, start, end and map_qv columns.
"""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..consensus.planner import ConsensusIntervalPlanner
from ..consensus.settings import Settings
from ..core.interval import Interval, ReferenceWindow
from ..index.bam_source import BamIntervalSource
from ..index.read_index import ReadIntervalIndex

# Set up rich console and logging
console = Console()
app = typer.Typer(help="Coverage-aware interval planning for consensus calling")

logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    handlers=[RichHandler(console=console, rich_tracebacks=True)],
)
logger = logging.getLogger(__name__)

REGION_PATTERN = re.compile(r"^(?P<name>[^:]+)(?::(?P<start>[\d,]+)-(?P<end>[\d,]+))?$")


def parse_region(region: str) -> tuple[str, Optional[Interval]]:
    """
    Parse a samtools-style region.

    Example:
        >>> parse_region("chr1:1,000-2,000")
        ('chr1', [1000, 2000))
        >>> parse_region("chr1")
        ('chr1', None)
    """
    match = REGION_PATTERN.match(region.strip())
    if match is None:
        raise ValueError(f"Invalid region: {region!r}")
    if match.group("start") is None:
        return match.group("name"), None
    start = int(match.group("start").replace(",", ""))
    end = int(match.group("end").replace(",", ""))
    return match.group("name"), Interval(start, end)


@contextmanager
def open_source(reads: Path) -> Iterator[tuple[object, list[tuple[str, int]]]]:
    """Open a BAM file or read table and list its references."""
    if reads.suffix == ".bam":
        with BamIntervalSource(reads) as source:
            yield source, source.references()
    else:
        index = ReadIntervalIndex.from_tsv(reads)
        yield index, index.get_references()


def _set_verbosity(verbose: bool) -> None:
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@app.command()
def intervals(
    reads: Path = typer.Argument(..., help="Indexed BAM file or TSV read table"),
    region: Optional[str] = typer.Option(
        None, "--region", "-r", help="Restrict to a region (chr or chr:start-end)"
    ),
    min_coverage: int = typer.Option(5, help="Reads that must span a covered interval"),
    min_map_qv: int = typer.Option(10, help="Minimum mapping quality"),
    window_span: int = typer.Option(500, help="Window size (bp)"),
    min_length: int = typer.Option(0, help="Minimum covered interval length (bp)"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Output file path (default: <input>_intervals.tsv)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """
    Plan covered intervals and holes for every reference window.

    Example:
        gcintervals intervals sample.bam \\
            --region chr1:0-100000 \\
            --min-coverage 5 \\
            --output sample_intervals.tsv
    """
    _set_verbosity(verbose)

    console.print("[bold blue]gcintervals - Interval Planning[/bold blue]")
    console.print(f"Reads: {reads}")

    if not reads.exists():
        console.print(f"[bold red]Error:[/bold red] Input not found: {reads}")
        raise typer.Exit(1)

    if output is None:
        output = reads.parent / f"{reads.stem}_intervals.tsv"

    try:
        settings = Settings(
            min_coverage=min_coverage,
            min_map_qv=min_map_qv,
            window_span=window_span,
            min_length=min_length,
        )
        ref_filter, sub_region = parse_region(region) if region else (None, None)
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    try:
        with open_source(reads) as (source, references):
            if ref_filter is not None:
                references = [ref for ref in references if ref[0] == ref_filter]
                if not references:
                    console.print(
                        f"[bold red]Error:[/bold red] Reference not found: {ref_filter}"
                    )
                    raise typer.Exit(1)

            planner = ConsensusIntervalPlanner(source, settings)
            result_df = planner.plan(references, sub_region)
            planner.save_results(result_df, output)
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[bold red]Error during planning:[/bold red] {e}")
        logger.exception("Planning failed")
        raise typer.Exit(1)

    covered = result_df[result_df["kind"] == "covered"]
    console.print("\n[bold green]Planning complete![/bold green]")
    console.print(f"References: {len(references):,}")
    console.print(f"Covered intervals: {len(covered):,}")
    console.print(f"Holes: {len(result_df) - len(covered):,}")
    console.print(f"Covered bases: {(covered['end'] - covered['start']).sum():,}")
    console.print(f"Output saved to: {output}")


@app.command()
def coverage(
    reads: Path = typer.Argument(..., help="Indexed BAM file or TSV read table"),
    region: str = typer.Option(..., "--region", "-r", help="Region (chr:start-end)"),
    min_map_qv: int = typer.Option(10, help="Minimum mapping quality"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Output file path (default: print table)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """
    Report runs of constant read depth across a region.

    Example:
        gcintervals coverage sample.bam --region chr1:1000-1500
    """
    _set_verbosity(verbose)

    if not reads.exists():
        console.print(f"[bold red]Error:[/bold red] Input not found: {reads}")
        raise typer.Exit(1)

    try:
        ref_name, sub_region = parse_region(region)
        if sub_region is None:
            raise ValueError(f"Region needs coordinates: {region!r}")
        settings = Settings(min_map_qv=min_map_qv)
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    window = ReferenceWindow(ref_name=ref_name, interval=sub_region)
    try:
        with open_source(reads) as (source, _):
            planner = ConsensusIntervalPlanner(source, settings)
            profile_df = planner.coverage_table(window)
    except Exception as e:
        console.print(f"[bold red]Error computing coverage:[/bold red] {e}")
        logger.exception("Coverage failed")
        raise typer.Exit(1)

    if output is not None:
        planner.save_results(profile_df, output)
        console.print(f"Output saved to: {output}")
        return

    table = Table(title=f"Coverage {window.region}")
    for column in profile_df.columns:
        table.add_column(column)
    for row in profile_df.itertuples(index=False):
        table.add_row(*(str(value) for value in row))
    console.print(table)


@app.command()
def chemistry(
    bam_file: Path = typer.Argument(..., help="Indexed BAM file"),
) -> None:
    """
    List the sequencing chemistry of each read group.

    Example:
        gcintervals chemistry sample.bam
    """
    try:
        with BamIntervalSource(bam_file) as source:
            chemistries = source.chemistries()
    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not chemistries:
        console.print("[yellow]No read groups found[/yellow]")
        return

    table = Table(title=f"Chemistry {bam_file.name}")
    for column in ["read_group", "binding_kit", "sequencing_kit", "version"]:
        table.add_column(column)
    for rg_id, triple in sorted(chemistries.items()):
        if triple.is_null():
            table.add_row(rg_id, "-", "-", "-")
        else:
            table.add_row(
                rg_id,
                str(triple.binding_kit),
                str(triple.sequencing_kit),
                f"{triple.major_version}.{triple.minor_version}",
            )
    console.print(table)


if __name__ == "__main__":
    app()
