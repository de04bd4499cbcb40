"""Summary statistics over duration samples.

All functions take a non-empty sequence of durations in milliseconds and
return a value in the same unit. Variance uses the sample estimator
(denominator n - 1), matching :func:`statistics.variance`; a single sample
has a variance and standard deviation of 0.0. The margin of error is the
half-width of a 95% confidence interval under a normal approximation::

    margin_of_error = 1.96 * sqrt(variance / n)

computed from that same variance.
"""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass
from typing import Sequence

#: z-score for a two-sided 95% confidence interval.
Z_95 = 1.96


def _require_samples(samples: Sequence[float]) -> None:
    if len(samples) == 0:
        raise ValueError("The list of durations must not be empty")


# ---------------------------------------------------------------------------
# Individual statistics
# ---------------------------------------------------------------------------


def mean(samples: Sequence[float]) -> float:
    """Arithmetic mean of the samples."""
    _require_samples(samples)
    return float(statistics.fmean(samples))


def minimum(samples: Sequence[float]) -> float:
    """Smallest sample."""
    _require_samples(samples)
    return float(min(samples))


def maximum(samples: Sequence[float]) -> float:
    """Largest sample."""
    _require_samples(samples)
    return float(max(samples))


def variance(samples: Sequence[float]) -> float:
    """Sample variance (n - 1 denominator), 0.0 for a single sample."""
    _require_samples(samples)
    if len(samples) < 2:
        return 0.0
    return float(statistics.variance(samples))


def standard_deviation(samples: Sequence[float]) -> float:
    """Sample standard deviation, 0.0 for a single sample."""
    return math.sqrt(variance(samples))


def margin_of_error(samples: Sequence[float]) -> float:
    """Margin of error at the 95% confidence level."""
    return Z_95 * math.sqrt(variance(samples) / len(samples))


# ---------------------------------------------------------------------------
# Combined summary
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DurationStats:
    """Summary statistics for one set of duration samples."""

    n: int
    mean: float
    min: float
    max: float
    standard_deviation: float
    margin_of_error: float

    def to_dict(self) -> dict[str, float | int]:
        """Serialize to a dict with rounded values."""
        return {
            "n": self.n,
            "mean": round(self.mean, 6),
            "min": round(self.min, 6),
            "max": round(self.max, 6),
            "standard_deviation": round(self.standard_deviation, 6),
            "margin_of_error": round(self.margin_of_error, 6),
        }


def describe(samples: Sequence[float]) -> DurationStats:
    """Compute every summary statistic for *samples* in one pass.

    Raises:
        ValueError: If *samples* is empty.
    """
    _require_samples(samples)
    var = variance(samples)
    n = len(samples)
    return DurationStats(
        n=n,
        mean=mean(samples),
        min=minimum(samples),
        max=maximum(samples),
        standard_deviation=math.sqrt(var),
        margin_of_error=Z_95 * math.sqrt(var / n),
    )
