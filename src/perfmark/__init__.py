"""perfmark — in-process performance measurement for test suites.

Times repeated executions of a unit of work, checks summary statistics
against thresholds and aggregates results into a report keyed by
description paths.
"""

from __future__ import annotations

__version__ = "0.1.0"

from perfmark.store import Benchmark, BenchmarkNode  # noqa: E402
from perfmark.events import RecordChannel  # noqa: E402
from perfmark.measurement import Measurement, PerformanceError, verify_measurement  # noqa: E402
from perfmark.options import MeasureOptions  # noqa: E402
from perfmark.timing import measure, measure_sync  # noqa: E402

#: Shared store for convenience. Create your own :class:`Benchmark` to
#: avoid global state.
benchmark = Benchmark()

__all__ = [
    "Benchmark",
    "BenchmarkNode",
    "MeasureOptions",
    "Measurement",
    "PerformanceError",
    "RecordChannel",
    "benchmark",
    "measure",
    "measure_sync",
    "verify_measurement",
]
