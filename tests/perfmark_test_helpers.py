"""Shared test fixtures for perfmark tests."""

from __future__ import annotations

from typing import Sequence


class FakeClock:
    """Stand-in for ``perfmark.timing.clock`` yielding scripted durations.

    Calls alternate between "start" (always 0.0) and "end" (the next
    duration, converted from milliseconds to seconds). Only valid when
    start/end readings do not interleave, i.e. serial mode or
    synchronous work.
    """

    def __init__(self, durations_ms: Sequence[float]) -> None:
        self._durations = list(durations_ms)
        self._index = 0
        self._started = False

    def __call__(self) -> float:
        if not self._started:
            self._started = True
            return 0.0
        self._started = False
        duration = self._durations[self._index % len(self._durations)]
        self._index += 1
        return duration / 1e3


def noop() -> None:
    """Synchronous unit of work that does nothing."""


async def async_noop() -> None:
    """Asynchronous unit of work that does nothing."""
