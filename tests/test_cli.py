"""Tests for perfmark.cli — Click CLI over snapshot files."""

from __future__ import annotations

import json
import logging
import tempfile
import unittest
from pathlib import Path

from click.testing import CliRunner

from perfmark import __version__
from perfmark.cli import main
from perfmark.export import read_snapshot, write_snapshot
from perfmark.measurement import Measurement
from perfmark.store import FOOTER, HEADER, Benchmark


class _CliTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmpdir.name)

    def tearDown(self) -> None:
        self._tmpdir.cleanup()
        # setup_logging() installs handlers on the shared logger.
        logger = logging.getLogger("perfmark")
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.propagate = True

    def _snapshot(self, name: str, entries: dict[str, list[float]]) -> Path:
        bench = Benchmark()
        for key, durations in entries.items():
            bench.incorporate(key.split("/"), Measurement(durations))
        path = self.tmp / name
        write_snapshot(bench, path)
        return path


class TestHelp(unittest.TestCase):
    """Tests for the group and subcommand help."""

    def test_group_help(self) -> None:
        result = CliRunner().invoke(main, ["--help"])
        self.assertEqual(result.exit_code, 0)
        for command in ("report", "merge", "export"):
            self.assertIn(command, result.output)

    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn(__version__, result.output)

    def test_report_requires_snapshot(self) -> None:
        result = CliRunner().invoke(main, ["report"])
        self.assertNotEqual(result.exit_code, 0)


class TestReportCommand(_CliTestCase):
    """Tests for ``perfmark report``."""

    def test_report(self) -> None:
        path = self._snapshot("a.json", {"x": [1.0, 2.0, 3.0]})
        result = CliRunner().invoke(main, ["report", "-q", str(path)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn(HEADER, result.output)
        self.assertIn("  2 ms (+/- 1.13161 ms) from 3 iterations", result.output)
        self.assertIn(FOOTER, result.output)

    def test_report_merges(self) -> None:
        a = self._snapshot("a.json", {"x": [1.0]})
        b = self._snapshot("b.yaml", {"x": [3.0], "y/z": [2.0]})
        result = CliRunner().invoke(main, ["report", "-q", str(a), str(b)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("from 2 iterations", result.output)
        self.assertIn("  z:", result.output)

    def test_report_empty(self) -> None:
        path = self.tmp / "empty.json"
        path.write_text("{}")
        result = CliRunner().invoke(main, ["report", "-q", str(path)])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("No benchmark data.", result.output)

    def test_report_malformed(self) -> None:
        path = self.tmp / "bad.json"
        path.write_text(json.dumps({"x": {"durations": "nope"}}))
        result = CliRunner().invoke(main, ["report", "-q", str(path)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("durations", result.output)

    def test_report_missing_file(self) -> None:
        result = CliRunner().invoke(main, ["report", str(self.tmp / "missing.json")])
        self.assertNotEqual(result.exit_code, 0)

    def test_log_file(self) -> None:
        path = self._snapshot("a.json", {"x": [1.0]})
        log_file = self.tmp / "perfmark.log"
        result = CliRunner().invoke(
            main, ["report", "-q", "--log-file", str(log_file), str(path)]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Read snapshot", log_file.read_text())


class TestMergeCommand(_CliTestCase):
    """Tests for ``perfmark merge``."""

    def test_merge(self) -> None:
        a = self._snapshot("a.json", {"x": [1.0]})
        b = self._snapshot("b.json", {"x": [2.0]})
        out = self.tmp / "out.yaml"
        result = CliRunner().invoke(main, ["merge", "-q", str(out), str(a), str(b)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Merged 2 snapshot(s)", result.output)
        self.assertEqual(read_snapshot(out), {"x": {"durations": [1.0, 2.0], "children": {}}})


class TestExportCommand(_CliTestCase):
    """Tests for ``perfmark export``."""

    def test_export_csv(self) -> None:
        path = self._snapshot("a.json", {"x/y": [1.0, 3.0]})
        result = CliRunner().invoke(main, ["export", "-q", str(path)])
        self.assertEqual(result.exit_code, 0, result.output)
        lines = result.output.strip().splitlines()
        self.assertTrue(lines[0].startswith("path,iterations"))
        self.assertTrue(lines[1].startswith("x > y,2,2.000000"))

    def test_export_json(self) -> None:
        path = self._snapshot("a.json", {"x": [1.0, 3.0]})
        result = CliRunner().invoke(main, ["export", "-q", "--format", "json", str(path)])
        self.assertEqual(result.exit_code, 0, result.output)
        data = json.loads(result.output)
        self.assertEqual(data[0]["path"], ["x"])
        self.assertEqual(data[0]["mean"], 2.0)
