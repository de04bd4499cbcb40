"""Measurement results and threshold verification."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Sequence

from perfmark import stats as _stats

if TYPE_CHECKING:
    from perfmark.options import MeasureOptions


class PerformanceError(AssertionError):
    """A measured statistic exceeded its configured threshold.

    Subclasses :class:`AssertionError` so test runners report it as a
    failed test rather than an error.
    """

    def __init__(self, statistic: str, key: str, value: float, threshold: float) -> None:
        self.statistic = statistic
        self.key = key
        self.value = value
        self.threshold = threshold
        super().__init__(f"{statistic} time of {value} ms exceeded threshold of {threshold} ms")


@dataclass(frozen=True, init=False)
class Measurement:
    """Durations collected from one measurement, in milliseconds.

    The sample sequence is never empty. Statistics are derived from it on
    access and are not stored.
    """

    durations: tuple[float, ...]

    def __init__(self, durations: Sequence[float]) -> None:
        if len(durations) == 0:
            raise ValueError("The list of durations must not be empty")
        object.__setattr__(self, "durations", tuple(float(d) for d in durations))

    def __len__(self) -> int:
        return len(self.durations)

    @property
    def mean(self) -> float:
        """Mean of all durations measured."""
        return _stats.mean(self.durations)

    @property
    def min(self) -> float:
        """Minimum duration measured."""
        return _stats.minimum(self.durations)

    @property
    def max(self) -> float:
        """Maximum duration measured."""
        return _stats.maximum(self.durations)

    @property
    def standard_deviation(self) -> float:
        """Sample standard deviation of all durations measured."""
        return _stats.standard_deviation(self.durations)

    @property
    def margin_of_error(self) -> float:
        """Margin of error at 95% confidence level."""
        return _stats.margin_of_error(self.durations)

    @property
    def stats(self) -> _stats.DurationStats:
        """All summary statistics at once."""
        return _stats.describe(self.durations)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "durations": list(self.durations),
            "stats": self.stats.to_dict(),
        }


# Checked in this order; only the first violation is reported.
_CHECKS: tuple[tuple[str, str, str], ...] = (
    ("mean_under", "mean", "Mean"),
    ("min_under", "min", "Minimum"),
    ("max_under", "max", "Maximum"),
    ("margin_of_error_under", "margin_of_error", "Margin of error"),
    ("standard_deviation_under", "standard_deviation", "Standard deviation"),
)


def verify_measurement(measurement: Measurement, options: MeasureOptions) -> None:
    """Check *measurement* against the thresholds set in *options*.

    Does nothing when ``options.verify`` is False. Otherwise the thresholds
    are checked in a fixed order (mean, min, max, margin of error,
    standard deviation) and the first statistic strictly greater than its
    threshold raises.

    Raises:
        PerformanceError: Describing the first violated threshold.
    """
    if not options.verify:
        return
    for key, attr, label in _CHECKS:
        threshold = getattr(options, key)
        if threshold is None:
            continue
        value = getattr(measurement, attr)
        if value > threshold:
            raise PerformanceError(label, key, value, threshold)
