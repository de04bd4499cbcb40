"""Tests for perfmark.export — snapshot files and tabular export."""

from __future__ import annotations

import csv
import io
import json
import tempfile
import unittest
from pathlib import Path

from perfmark.export import (
    export_csv,
    export_json,
    load_snapshots,
    node_stats,
    read_snapshot,
    write_snapshot,
)
from perfmark.measurement import Measurement
from perfmark.store import Benchmark


def _sample_benchmark() -> Benchmark:
    bench = Benchmark()
    bench.incorporate(["parser", "small"], Measurement([1.0, 2.0, 3.0]))
    bench.incorporate(["parser", "large"], Measurement([10.0, 12.0]))
    bench.incorporate("startup", Measurement([0.5]))
    return bench


class _TempDirTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmpdir.name)

    def tearDown(self) -> None:
        self._tmpdir.cleanup()


# ---------------------------------------------------------------------------
# Snapshot files
# ---------------------------------------------------------------------------


class TestSnapshotFiles(_TempDirTestCase):
    """Tests for write_snapshot() / read_snapshot()."""

    def test_json_file(self) -> None:
        bench = _sample_benchmark()
        path = self.tmp / "bench.json"
        write_snapshot(bench, path)
        self.assertEqual(json.loads(path.read_text()), bench.snapshot())
        self.assertEqual(read_snapshot(path), bench.snapshot())

    def test_yaml_file(self) -> None:
        bench = _sample_benchmark()
        for name in ("bench.yaml", "bench.yml"):
            with self.subTest(name=name):
                path = self.tmp / name
                write_snapshot(bench, path)
                self.assertNotIn("{", path.read_text().splitlines()[0])
                self.assertEqual(read_snapshot(path), bench.snapshot())

    def test_yaml_preserves_order(self) -> None:
        bench = Benchmark()
        bench.incorporate("zeta", Measurement([1.0]))
        bench.incorporate("alpha", Measurement([1.0]))
        path = self.tmp / "order.yaml"
        write_snapshot(bench, path)
        self.assertEqual(list(read_snapshot(path)), ["zeta", "alpha"])

    def test_creates_parent_directories(self) -> None:
        path = self.tmp / "nested" / "dir" / "bench.json"
        write_snapshot(_sample_benchmark(), path)
        self.assertTrue(path.exists())

    def test_read_missing(self) -> None:
        with self.assertRaises(FileNotFoundError):
            read_snapshot(self.tmp / "missing.json")

    def test_read_empty_yaml(self) -> None:
        path = self.tmp / "empty.yaml"
        path.write_text("")
        self.assertEqual(read_snapshot(path), {})

    def test_read_non_mapping(self) -> None:
        path = self.tmp / "list.json"
        path.write_text("[1, 2]")
        with self.assertRaises(ValueError):
            read_snapshot(path)

    def test_load_snapshots_merges_in_order(self) -> None:
        first = Benchmark()
        first.incorporate("a", Measurement([1.0]))
        second = Benchmark()
        second.incorporate("a", Measurement([2.0]))
        second.incorporate("b", Measurement([3.0]))
        write_snapshot(first, self.tmp / "1.json")
        write_snapshot(second, self.tmp / "2.yaml")

        merged = load_snapshots([self.tmp / "1.json", self.tmp / "2.yaml"])
        self.assertEqual(
            merged.snapshot(),
            {
                "a": {"durations": [1.0, 2.0], "children": {}},
                "b": {"durations": [3.0], "children": {}},
            },
        )

    def test_load_snapshots_into_existing(self) -> None:
        target = Benchmark()
        target.incorporate("a", Measurement([0.0]))
        write_snapshot(_sample_benchmark(), self.tmp / "s.json")
        result = load_snapshots([self.tmp / "s.json"], target)
        self.assertIs(result, target)
        self.assertIn("parser", target.root)


# ---------------------------------------------------------------------------
# Tabular export
# ---------------------------------------------------------------------------


class TestTabularExport(unittest.TestCase):
    """Tests for node_stats(), export_csv() and export_json()."""

    def test_node_stats_skips_groups(self) -> None:
        rows = node_stats(_sample_benchmark())
        self.assertEqual(
            [row["path"] for row in rows],
            [["parser", "small"], ["parser", "large"], ["startup"]],
        )
        self.assertEqual(rows[0]["n"], 3)
        self.assertEqual(rows[0]["mean"], 2.0)

    def test_csv(self) -> None:
        text = export_csv(_sample_benchmark())
        rows = list(csv.reader(io.StringIO(text)))
        self.assertEqual(rows[0][0], "path")
        self.assertEqual(len(rows), 4)
        self.assertEqual(rows[1][0], "parser > small")
        self.assertEqual(rows[1][1], "3")
        self.assertEqual(rows[1][2], "2.000000")
        self.assertEqual(rows[3][0], "startup")

    def test_csv_empty(self) -> None:
        rows = list(csv.reader(io.StringIO(export_csv(Benchmark()))))
        self.assertEqual(len(rows), 1)

    def test_json(self) -> None:
        data = json.loads(export_json(_sample_benchmark()))
        self.assertEqual(len(data), 3)
        self.assertEqual(data[2]["path"], ["startup"])
        self.assertEqual(data[2]["margin_of_error"], 0.0)
