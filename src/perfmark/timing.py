"""Timed repeated execution of a unit of work.

Each iteration runs ``before_each``, then the timed work, then
``after_each``. Only the work itself is timed. Any of the three may be a
plain callable or one returning an awaitable; awaitables are awaited
before the iteration moves on.

In serial mode iterations run strictly one after another. In overlapped
mode every iteration is scheduled on the running event loop before any is
awaited, so awaitable work may interleave with itself. Neither mode has a
timeout: a unit of work that never completes stalls the whole call.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from typing import Any, Mapping

from perfmark.logging import get_logger
from perfmark.measurement import Measurement, verify_measurement
from perfmark.options import MeasureOptions, Work, resolve_options, validate_options

log = get_logger("timing")

#: Monotonic clock returning seconds as a float. Patched in tests.
clock = time.perf_counter


async def _call(fn: Work) -> None:
    """Call *fn* and await its result if it is awaitable."""
    result = fn()
    if inspect.isawaitable(result):
        await result


async def _run_iteration(work: Work, options: MeasureOptions) -> float:
    """Run one iteration and return the duration of *work* in milliseconds."""
    if options.before_each is not None:
        await _call(options.before_each)

    start = clock()
    await _call(work)
    elapsed_ms = (clock() - start) * 1e3

    if options.after_each is not None:
        await _call(options.after_each)

    return elapsed_ms


async def _run_serial(work: Work, options: MeasureOptions) -> list[float]:
    durations: list[float] = []
    for _ in range(options.iterations):
        durations.append(await _run_iteration(work, options))
    return durations


async def _run_overlapped(work: Work, options: MeasureOptions) -> list[float]:
    durations: list[float] = []
    failures: list[BaseException] = []

    async def iteration() -> None:
        try:
            duration = await _run_iteration(work, options)
        except Exception as exc:
            failures.append(exc)
            raise
        # Each iteration appends its own sample; completion order is arbitrary.
        durations.append(duration)

    await asyncio.gather(
        *(iteration() for _ in range(options.iterations)),
        return_exceptions=True,
    )
    if failures:
        log.debug(
            "%d of %d overlapped iterations failed; reporting the first",
            len(failures),
            options.iterations,
        )
        raise failures[0]
    return durations


async def measure(
    work: Work,
    options: MeasureOptions | Mapping[str, Any] | None = None,
    **overrides: Any,
) -> Measurement:
    """Measure how long *work* takes to execute.

    Args:
        work: Zero-argument callable to time. If it returns an awaitable,
            awaiting it is part of the timed iteration.
        options: A :class:`MeasureOptions`, an equivalent mapping, or
            ``None`` for the defaults.
        **overrides: Individual option fields overriding *options*.

    Returns:
        A Measurement with one duration per iteration.

    Raises:
        ValueError: If the options are invalid.
        PerformanceError: If ``verify`` is set and a threshold is exceeded.
        Exception: Whatever *work* or a hook raised, unchanged.
    """
    resolved = resolve_options(options, overrides)
    warn_about_options(resolved)
    measurement = await run_iterations(work, resolved)
    verify_measurement(measurement, resolved)
    return measurement


def warn_about_options(options: MeasureOptions) -> None:
    """Log a WARNING for every suspicious option combination."""
    for w in validate_options(options):
        log.warning("Option warning: %s: %s", w.field, w.message)


async def run_iterations(work: Work, options: MeasureOptions) -> Measurement:
    """Run all iterations of *work* and collect them, without verifying.

    Callers are expected to have resolved and checked *options* already.
    """
    log.debug(
        "Measuring %r: %d iteration(s), %s",
        work,
        options.iterations,
        "serial" if options.serial else "overlapped",
    )

    if options.serial:
        durations = await _run_serial(work, options)
    else:
        durations = await _run_overlapped(work, options)

    measurement = Measurement(durations)
    log.debug(
        "Measured %r: mean %.5f ms over %d iteration(s)",
        work,
        measurement.mean,
        len(measurement),
    )
    return measurement


def measure_sync(
    work: Work,
    options: MeasureOptions | Mapping[str, Any] | None = None,
    **overrides: Any,
) -> Measurement:
    """Blocking form of :func:`measure` for code without an event loop.

    Runs :func:`measure` on a fresh event loop; must not be called while
    a loop is already running in this thread.
    """
    return asyncio.run(measure(work, options, **overrides))
