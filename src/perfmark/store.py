"""Aggregation of measurements into a tree keyed by description paths.

Hierarchy::

    Benchmark
      → root: dict[str, BenchmarkNode]
        → durations: list[float]          (recorded directly at this path)
        → children: dict[str, BenchmarkNode]

Recording under ``("A", "B")`` creates node ``A`` (if needed) with child
``B`` and appends the samples to ``B``. A path and its prefixes can all
hold samples at the same time. Nodes are created on first use and never
removed except by :meth:`Benchmark.clear`.

Snapshot format (see :meth:`Benchmark.snapshot`)::

    {"A": {"durations": [1.2, 1.4], "children": {"B": {...}}}}
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Mapping, Sequence

from perfmark.events import RecordChannel
from perfmark.logging import get_logger
from perfmark.measurement import Measurement, PerformanceError, verify_measurement
from perfmark.options import MeasureOptions, Work, resolve_options
from perfmark.timing import run_iterations, warn_about_options

log = get_logger("benchmark")

HEADER = "=== Benchmark results ==="
FOOTER = "=" * len(HEADER)

_INDENT = "  "

Description = str | Sequence[str]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def normalize_description(description: Description) -> tuple[str, ...]:
    """Turn a description into a non-empty tuple of path segments.

    A single string is shorthand for a one-segment path.

    Raises:
        ValueError: If the description is empty or holds non-string segments.
    """
    if isinstance(description, str):
        path: tuple[Any, ...] = (description,) if description else ()
    else:
        path = tuple(description)
    if not path:
        raise ValueError("The description must not be empty")
    for segment in path:
        if not isinstance(segment, str):
            raise ValueError(
                f"Description segments must be strings, got {type(segment).__name__}"
            )
    return path


def format_number(value: float, places: int = 5) -> str:
    """Round to *places* decimals in fixed-point form without trailing zeros."""
    text = f"{round(value, places):.{places}f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


# ---------------------------------------------------------------------------
# Tree node
# ---------------------------------------------------------------------------


@dataclass
class BenchmarkNode:
    """One path segment of the aggregation tree."""

    key: str
    durations: list[float] = field(default_factory=list)
    children: dict[str, BenchmarkNode] = field(default_factory=dict)

    def child(self, key: str) -> BenchmarkNode:
        """Return the child for *key*, creating it on first use."""
        node = self.children.get(key)
        if node is None:
            node = self.children[key] = BenchmarkNode(key)
        return node

    @property
    def measurement(self) -> Measurement | None:
        """The direct samples as a Measurement, or None if there are none."""
        return Measurement(self.durations) if self.durations else None

    def to_dict(self) -> dict[str, Any]:
        """Serialize this node (and its subtree) to the snapshot shape."""
        return {
            "durations": list(self.durations),
            "children": {key: child.to_dict() for key, child in self.children.items()},
        }

    def merge_dict(self, data: Mapping[str, Any]) -> None:
        """Append the samples and children described by a snapshot entry."""
        if not isinstance(data, Mapping):
            raise ValueError(
                f"Snapshot entry for {self.key!r} must be a mapping, got {type(data).__name__}"
            )
        durations = data.get("durations", [])
        if not isinstance(durations, list):
            raise ValueError(f"Snapshot durations for {self.key!r} must be a list")
        for value in durations:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Snapshot durations for {self.key!r} must be numbers")
        self.durations.extend(float(value) for value in durations)
        _merge_level(data.get("children", {}), self.child)


def _merge_level(data: Any, get_node: Callable[[str], BenchmarkNode]) -> None:
    """Merge one snapshot level, resolving each key through *get_node*."""
    if not isinstance(data, Mapping):
        raise ValueError(f"Snapshot level must be a mapping, got {type(data).__name__}")
    for key, entry in data.items():
        if not isinstance(key, str):
            raise ValueError(f"Snapshot keys must be strings, got {type(key).__name__}")
        get_node(key).merge_dict(entry)


# ---------------------------------------------------------------------------
# Benchmark store
# ---------------------------------------------------------------------------


class Benchmark:
    """Aggregator for the performance results of a test run.

    Each instance owns its own tree and its own :attr:`events` channel.
    """

    def __init__(self) -> None:
        self.root: dict[str, BenchmarkNode] = {}
        #: Notified after every :meth:`record`, before thresholds are checked.
        self.events = RecordChannel()

    def __repr__(self) -> str:
        return f"Benchmark(nodes={sum(1 for _ in self.walk())})"

    # -- recording ----------------------------------------------------------

    async def record(
        self,
        work: Work,
        options: MeasureOptions | Mapping[str, Any] | None = None,
        *,
        description: Description | None = None,
        **overrides: Any,
    ) -> Measurement:
        """Measure *work* and store the result.

        Without a *description* the tree is left alone, but a ``record``
        event (with an empty description) is still published so listeners
        see the measurement. With one, the samples are merged into the
        tree at that path first.

        Thresholds are checked only after the tree update and the event,
        so listeners observe measurements that end up failing.

        Args:
            work: Zero-argument callable to time, sync or async.
            options: Options for the measurement (see :func:`measure`).
            description: Path in the tree: a string or a non-empty
                sequence of strings. ``None`` means do not store.
            **overrides: Individual option fields overriding *options*.

        Raises:
            ValueError: If *description* is given but empty.
            PerformanceError: If a threshold is exceeded.
        """
        path = normalize_description(description) if description is not None else ()
        resolved = resolve_options(options, overrides)

        warn_about_options(resolved)
        measurement = await run_iterations(work, resolved)

        if path:
            self._add_durations(path, measurement.durations)
        self.events.publish(path, measurement)

        try:
            verify_measurement(measurement, resolved)
        except PerformanceError as exc:
            log.warning("%s: %s", " > ".join(path) or "<no description>", exc)
            raise
        return measurement

    def record_sync(
        self,
        work: Work,
        options: MeasureOptions | Mapping[str, Any] | None = None,
        *,
        description: Description | None = None,
        **overrides: Any,
    ) -> Measurement:
        """Blocking form of :meth:`record` for code without an event loop."""
        return asyncio.run(self.record(work, options, description=description, **overrides))

    def incorporate(self, description: Description, measurement: Measurement) -> None:
        """Add an existing *measurement* to the tree without timing anything.

        No event is published and no thresholds are checked.
        """
        self._add_durations(normalize_description(description), measurement.durations)

    def _add_durations(self, path: tuple[str, ...], durations: Sequence[float]) -> None:
        node = self._root_node(path[0])
        for segment in path[1:]:
            node = node.child(segment)
        node.durations.extend(durations)
        log.debug("Merged %d duration(s) into %s", len(durations), " > ".join(path))

    # -- inspection ---------------------------------------------------------

    def node(self, description: Description) -> BenchmarkNode | None:
        """Look up the node at *description*, or None if it was never recorded."""
        path = normalize_description(description)
        node = self.root.get(path[0])
        for segment in path[1:]:
            if node is None:
                return None
            node = node.children.get(segment)
        return node

    def walk(self) -> Iterator[tuple[tuple[str, ...], BenchmarkNode]]:
        """Yield ``(path, node)`` for every node, depth-first pre-order."""
        stack: list[tuple[tuple[str, ...], BenchmarkNode]] = [
            ((node.key,), node) for node in reversed(self.root.values())
        ]
        while stack:
            path, node = stack.pop()
            yield path, node
            stack.extend(
                (path + (child.key,), child) for child in reversed(node.children.values())
            )

    def __bool__(self) -> bool:
        return bool(self.root)

    # -- snapshots ----------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Return the whole tree as plain data (a deep copy)."""
        return {key: node.to_dict() for key, node in self.root.items()}

    def load_snapshot(self, data: Mapping[str, Any]) -> None:
        """Merge a snapshot produced by :meth:`snapshot` into this store.

        Raises:
            ValueError: If *data* does not have the snapshot shape.
        """
        _merge_level(data, self._root_node)

    def _root_node(self, key: str) -> BenchmarkNode:
        node = self.root.get(key)
        if node is None:
            node = self.root[key] = BenchmarkNode(key)
        return node

    @classmethod
    def from_snapshot(cls, data: Mapping[str, Any]) -> Benchmark:
        """Build a new store holding the contents of *data*."""
        benchmark = cls()
        benchmark.load_snapshot(data)
        return benchmark

    def clear(self) -> None:
        """Drop all recorded data. Event subscriptions are kept."""
        self.root.clear()

    # -- reporting ----------------------------------------------------------

    def report(self) -> str:
        """Create a report of all the benchmark results.

        Returns an empty string if nothing has been recorded.
        """
        lines: list[str] = []
        for path, node in self.walk():
            depth = len(path) - 1
            lines.append(f"{_INDENT * depth}{node.key}:")
            measurement = node.measurement
            if measurement is not None:
                lines.append(
                    f"{_INDENT * (depth + 1)}{format_number(measurement.mean)} ms "
                    f"(+/- {format_number(measurement.margin_of_error)} ms) "
                    f"from {len(measurement)} iterations"
                )
                if node.children:
                    lines.append("")
        if not lines:
            return ""
        return "\n".join([HEADER, *lines, FOOTER])
