"""Synchronous notification of recorded measurements.

A :class:`RecordChannel` keeps an ordered list of listeners for a single
event kind, "a measurement was recorded". Publishing calls every listener
in subscription order before returning; an exception from a listener
propagates to the publisher and the remaining listeners are skipped.
"""

from __future__ import annotations

from typing import Callable

from perfmark.logging import get_logger
from perfmark.measurement import Measurement

log = get_logger("events")

RecordListener = Callable[[tuple[str, ...], Measurement], None]


class RecordChannel:
    """Listeners for the ``record`` event of one benchmark store."""

    def __init__(self) -> None:
        # (listener, once) pairs in subscription order.
        self._listeners: list[tuple[RecordListener, bool]] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: RecordListener) -> RecordListener:
        """Call *listener* for every recorded measurement.

        Returns *listener* unchanged so this can be used as a decorator.
        Subscribing the same listener twice calls it twice.
        """
        self._listeners.append((listener, False))
        return listener

    def once(self, listener: RecordListener) -> RecordListener:
        """Call *listener* for the next recorded measurement only."""
        self._listeners.append((listener, True))
        return listener

    def unsubscribe(self, listener: RecordListener) -> bool:
        """Remove the earliest subscription of *listener*.

        Returns:
            True if a subscription was removed, False if none matched.
        """
        for index, (existing, _) in enumerate(self._listeners):
            if existing == listener:
                del self._listeners[index]
                return True
        return False

    def clear(self) -> None:
        """Remove all listeners."""
        self._listeners.clear()

    def publish(self, description: tuple[str, ...], measurement: Measurement) -> int:
        """Notify listeners that *measurement* was recorded under *description*.

        Returns:
            The number of listeners called.
        """
        # Snapshot so listeners may (un)subscribe while being notified.
        listeners = list(self._listeners)
        self._listeners = [entry for entry in self._listeners if not entry[1]]
        for listener, _ in listeners:
            listener(description, measurement)
        log.debug(
            "Published record event for %s to %d listener(s)",
            " > ".join(description) or "<no description>",
            len(listeners),
        )
        return len(listeners)
