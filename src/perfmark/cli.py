"""Command-line interface for perfmark.

Works on snapshot files written by :func:`perfmark.export.write_snapshot`:

    perfmark report   Print the indented report for one or more snapshots
    perfmark merge    Combine snapshots into a single file
    perfmark export   Print per-node statistics as CSV or JSON
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import click

from perfmark import __version__
from perfmark.export import export_csv, export_json, load_snapshots, write_snapshot
from perfmark.logging import setup_logging
from perfmark.store import Benchmark

_snapshot_args = click.argument(
    "snapshots",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)


def _logging_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Add the shared -v/-q/--log-file options to a command."""
    fn = click.option(
        "--log-file",
        type=click.Path(path_type=Path),
        default=None,
        help="Also write DEBUG logs to this file.",
    )(fn)
    fn = click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")(fn)
    fn = click.option("-v", "--verbose", is_flag=True, help="Show detailed output.")(fn)
    return fn


def _load(snapshots: tuple[Path, ...]) -> Benchmark:
    try:
        return load_snapshots(list(snapshots))
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """perfmark — aggregate and report in-process benchmark results."""


@main.command()
@_snapshot_args
@_logging_options
def report(
    snapshots: tuple[Path, ...],
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Print the benchmark report for SNAPSHOTS, merged in order."""
    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)
    text = _load(snapshots).report()
    click.echo(text if text else "No benchmark data.")


@main.command()
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@_snapshot_args
@_logging_options
def merge(
    output: Path,
    snapshots: tuple[Path, ...],
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Merge SNAPSHOTS into OUTPUT (.json, .yaml or .yml)."""
    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)
    benchmark = _load(snapshots)
    write_snapshot(benchmark, output)
    click.echo(f"Merged {len(snapshots)} snapshot(s) into {output}")


@main.command("export")
@_snapshot_args
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["csv", "json"]),
    default="csv",
    show_default=True,
)
@_logging_options
def export_cmd(
    snapshots: tuple[Path, ...],
    fmt: str,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Print per-node statistics for SNAPSHOTS."""
    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)
    benchmark = _load(snapshots)
    if fmt == "json":
        click.echo(export_json(benchmark))
    else:
        click.echo(export_csv(benchmark), nl=False)
