"""Snapshot files and tabular export of benchmark data.

Snapshot files hold the output of :meth:`Benchmark.snapshot` so results can
be carried between processes (for example, one file per test worker that
is merged afterwards). The format follows the file extension: ``.json``
or ``.yaml``/``.yml``.

CSV format: one row per node that has direct samples, with the path
segments joined by `` > ``.
"""

from __future__ import annotations

import csv
import io
import json
from pathlib import Path
from typing import Any

import yaml

from perfmark.logging import get_logger
from perfmark.store import Benchmark

log = get_logger("export")

PATH_SEPARATOR = " > "

_YAML_SUFFIXES = {".yaml", ".yml"}


def _is_yaml(path: Path) -> bool:
    return path.suffix.lower() in _YAML_SUFFIXES


# ---------------------------------------------------------------------------
# Snapshot files
# ---------------------------------------------------------------------------


def write_snapshot(benchmark: Benchmark, path: Path) -> None:
    """Write *benchmark*'s tree to *path* as JSON or YAML."""
    data = benchmark.snapshot()
    path.parent.mkdir(parents=True, exist_ok=True)
    if _is_yaml(path):
        text = yaml.safe_dump(data, sort_keys=False)
    else:
        text = json.dumps(data, indent=2) + "\n"
    path.write_text(text, encoding="utf-8")
    log.info("Wrote snapshot with %d top-level node(s) to %s", len(data), path)


def read_snapshot(path: Path) -> dict[str, Any]:
    """Read a snapshot file written by :func:`write_snapshot`.

    An empty YAML file reads as an empty snapshot.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If the file does not contain a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Snapshot not found: {path}")
    text = path.read_text(encoding="utf-8")
    if _is_yaml(path):
        data = yaml.safe_load(text)
        if data is None:
            data = {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Snapshot must be a mapping, got {type(data).__name__}")
    log.info("Read snapshot from %s", path)
    return data


def load_snapshots(paths: list[Path], benchmark: Benchmark | None = None) -> Benchmark:
    """Merge several snapshot files, in order, into one store."""
    target = benchmark if benchmark is not None else Benchmark()
    for path in paths:
        target.load_snapshot(read_snapshot(path))
    return target


# ---------------------------------------------------------------------------
# Tabular export
# ---------------------------------------------------------------------------


def node_stats(benchmark: Benchmark) -> list[dict[str, Any]]:
    """Per-node summary statistics for every node with direct samples."""
    rows: list[dict[str, Any]] = []
    for path, node in benchmark.walk():
        measurement = node.measurement
        if measurement is None:
            continue
        rows.append({"path": list(path), **measurement.stats.to_dict()})
    return rows


def export_json(benchmark: Benchmark) -> str:
    """Export per-node statistics as a JSON document."""
    return json.dumps(node_stats(benchmark), indent=2)


def export_csv(benchmark: Benchmark) -> str:
    """Export per-node statistics as CSV.

    Columns:
        path, iterations, mean_ms, min_ms, max_ms, stdev_ms,
        margin_of_error_ms
    """
    output = io.StringIO()
    writer = csv.writer(output)

    writer.writerow(
        [
            "path",
            "iterations",
            "mean_ms",
            "min_ms",
            "max_ms",
            "stdev_ms",
            "margin_of_error_ms",
        ]
    )
    for row in node_stats(benchmark):
        writer.writerow(
            [
                PATH_SEPARATOR.join(row["path"]),
                row["n"],
                f"{row['mean']:.6f}",
                f"{row['min']:.6f}",
                f"{row['max']:.6f}",
                f"{row['standard_deviation']:.6f}",
                f"{row['margin_of_error']:.6f}",
            ]
        )

    return output.getvalue()
