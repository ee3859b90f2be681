"""
CLI Interface
=============
Command-line interface for the vampire number scanner.

Usage:
    vampire-scan <n1> <n2> [options]
    python -m vampire <n1> <n2> [options]

Result lines go to stdout; errors, progress and the summary table go to
stderr.
"""

from __future__ import annotations

import re
import sys
from typing import Optional

import click
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from . import __version__
from .chunker import DEFAULT_CHUNK_SIZE
from .engine import InvalidRangeError, ScanConfig, ScanEngine, ScanError
from .models import ExecutorKind, FailurePolicy, ReportFormat, ScanReport

err_console = Console(stderr=True)

# Plain ASCII decimal, optional minus sign
DECIMAL_PATTERN = re.compile(r"-?[0-9]+")


def _parse_bounds(bounds: tuple[str, ...]) -> tuple[int, int]:
    if len(bounds) != 2:
        raise InvalidRangeError(
            f"expected exactly two arguments n1 n2, got {len(bounds)}"
        )
    for value in bounds:
        if not DECIMAL_PATTERN.fullmatch(value):
            raise InvalidRangeError(
                f"n1 and n2 must be decimal integers, got {value!r}"
            )
    return int(bounds[0]), int(bounds[1])


def _usage_error(ctx: click.Context, error: Exception):
    """Print usage to stdout, the reason to stderr, and exit 1."""
    click.echo(ctx.get_usage())
    err_console.print(f"[red]Error:[/] {error}")
    sys.exit(1)


@click.command(context_settings={"ignore_unknown_options": True})
@click.version_option(version=__version__, prog_name="vampire-scan")
@click.argument("bounds", nargs=-1, metavar="N1 N2")
@click.option(
    "--chunk-size", "-c",
    default=DEFAULT_CHUNK_SIZE,
    type=int,
    help="Numbers per chunk (one concurrent task per chunk)",
)
@click.option(
    "--workers", "-j",
    default=None,
    type=int,
    help="Maximum concurrent chunk workers (default: CPU count, max 12)",
)
@click.option(
    "--threads",
    is_flag=True,
    default=False,
    help="Use a thread pool instead of a process pool",
)
@click.option(
    "--compact",
    is_flag=True,
    default=False,
    help="One line per number with all fangs, instead of one line per pair",
)
@click.option(
    "--on-failure",
    default=FailurePolicy.RAISE.value,
    type=click.Choice([p.value for p in FailurePolicy]),
    help="What to do when a chunk fails",
)
@click.option(
    "--summary",
    is_flag=True,
    default=False,
    help="Print a summary table to stderr",
)
@click.option(
    "--json-output",
    is_flag=True,
    default=False,
    help="Output the full report as JSON to stdout (for programmatic use)",
)
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level",
)
@click.option(
    "--log-file",
    default=None,
    help="Path to log file",
)
@click.pass_context
def cli(
    ctx: click.Context,
    bounds: tuple[str, ...],
    chunk_size: int,
    workers: Optional[int],
    threads: bool,
    compact: bool,
    on_failure: str,
    summary: bool,
    json_output: bool,
    log_level: str,
    log_file: Optional[str],
):
    """Print the vampire numbers between N1 and N2 (inclusive) with their fangs."""

    try:
        low, high = _parse_bounds(bounds)
    except InvalidRangeError as e:
        _usage_error(ctx, e)

    config = ScanConfig(
        chunk_size=chunk_size,
        max_workers=workers,
        executor=ExecutorKind.THREAD if threads else ExecutorKind.PROCESS,
        on_failure=FailurePolicy(on_failure),
        report_format=ReportFormat.COMPACT if compact else ReportFormat.PAIRS,
        log_level="ERROR" if json_output else log_level,
        log_file=log_file,
    )

    try:
        engine = ScanEngine(config)
        report = _run_scan(engine, low, high, show_progress=not json_output)

    except InvalidRangeError as e:
        _usage_error(ctx, e)
    except ScanError as e:
        err_console.print(f"[red]Scan failed:[/] {e}")
        if summary:
            _display_summary(e.report)
        sys.exit(1)
    except Exception as e:
        err_console.print(f"[red]Unexpected error:[/] {e}")
        if log_level == "DEBUG":
            err_console.print_exception()
        sys.exit(1)

    if json_output:
        click.echo(report.model_dump_json(indent=2))
    else:
        for line in report.lines(config.report_format):
            click.echo(line)

    if summary:
        _display_summary(report)


def _run_scan(engine: ScanEngine, low: int, high: int, show_progress: bool) -> ScanReport:
    """Run the scan, with a progress bar when stderr is a terminal."""
    if not (show_progress and err_console.is_terminal):
        return engine.scan(low, high)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=err_console,
        transient=True,
    ) as progress:
        task = progress.add_task("Scanning chunks...", total=None)

        def on_progress(completed: int, total: int):
            progress.update(task, completed=completed, total=total)

        return engine.scan(low, high, progress_callback=on_progress)


# ─── Display Helpers ──────────────────────────────────────────────────────────


def _display_summary(report: ScanReport):
    """Display scan statistics as a rich table."""
    table = Table(title="Scan Summary", border_style="cyan")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Range", f"{report.low}..{report.high}")
    table.add_row("Chunks", f"{report.chunk_count} x {report.chunk_size}")
    table.add_row("Vampire Numbers", str(report.vampire_count))
    table.add_row("Fang Pairs", str(report.fang_count))
    table.add_row("Elapsed", f"{report.elapsed_seconds:.2f}s")
    table.add_row(
        "Failed Chunks",
        str(len(report.failed_chunks)),
        style="red" if report.failed_chunks else None,
    )
    if report.skipped_chunks:
        table.add_row("Skipped Chunks", str(report.skipped_chunks), style="yellow")

    err_console.print()
    err_console.print(table)

    if report.failed_chunks:
        failures = Table(title="Failed Chunks", border_style="red")
        failures.add_column("Chunk", justify="right")
        failures.add_column("Range")
        failures.add_column("State")
        failures.add_column("Error")
        for outcome in report.failed_chunks:
            failures.add_row(
                str(outcome.chunk.index),
                f"{outcome.chunk.start}..{outcome.chunk.end}",
                outcome.state.value,
                outcome.error or "-",
            )
        err_console.print(failures)

    err_console.print()


def main():
    cli()


# ─── Entry point (for python -m vampire.cli) ──────────────────────────────────


if __name__ == "__main__":
    main()
