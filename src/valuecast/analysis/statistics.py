"""Distribution statistics for simulated terminal values.

Pure computation functions over 1-D value arrays. Percentiles use
nearest-rank indexing on the sorted sample (idx = floor(p * n), clamped to
the last index) rather than interpolation, so every reported percentile is
an actual simulated value. Zero- and one-element samples are valid inputs.
"""

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np

logger = logging.getLogger(__name__)

PERCENTILE_LADDER = (0.05, 0.10, 0.25, 0.50, 0.75, 0.90, 0.95)
CVAR_TAIL = 0.05
GAIN_50_MULT = 1.5
DOUBLE_MULT = 2.0


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Percentiles:
    p5: float
    p10: float
    p25: float
    p50: float
    p75: float
    p90: float
    p95: float


@dataclass(frozen=True)
class GrowthStats:
    mean_pct: float    # mean relative to the reference value, in %
    median_pct: float  # median relative to the reference value, in %


@dataclass(frozen=True)
class RiskMetrics:
    var_95: float             # reference - p5; negative when p5 is above the reference
    var_99: float
    cvar_95: float            # expected shortfall magnitude, clamped at 0.0
    prob_loss_pct: float      # P(value < reference), in %
    prob_gain_50_pct: float   # P(value > 1.5 x reference), in %
    prob_double_pct: float    # P(value > 2 x reference), in %


@dataclass(frozen=True)
class Statistics:
    """Read-only summary of one PathSet."""

    count: int
    reference_value: float
    mean: float
    median: float
    std_dev: float
    min: float
    max: float
    percentiles: Percentiles
    growth: GrowthStats
    risk: RiskMetrics

    @property
    def ci80(self) -> tuple[float, float]:
        return (self.percentiles.p10, self.percentiles.p90)

    def to_dict(self) -> dict[str, Any]:
        """Nested plain-dict view with NaN replaced by None (JSON-safe)."""
        return nan_to_none(asdict(self))


def nan_to_none(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: nan_to_none(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [nan_to_none(v) for v in obj]
    if isinstance(obj, float) and math.isnan(obj):
        return None
    return obj


# ---------------------------------------------------------------------------
# Basic statistics
# ---------------------------------------------------------------------------


def mean(values) -> float:
    """Arithmetic mean; NaN for an empty sample."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return float("nan")
    return float(np.mean(arr))


def std_dev(values) -> float:
    """Population standard deviation; 0.0 for fewer than two values."""
    arr = np.asarray(values, dtype=float)
    if arr.size < 2:
        return 0.0
    return float(np.std(arr))


def percentile(values, p: float) -> float:
    """Nearest-rank percentile for ``p`` in [0, 1]; NaN for an empty sample."""
    return _percentile_sorted(np.sort(np.asarray(values, dtype=float)), p)


def _percentile_sorted(sorted_values: np.ndarray, p: float) -> float:
    n = len(sorted_values)
    if n == 0:
        return float("nan")
    idx = min(int(math.floor(p * n)), n - 1)
    return float(sorted_values[max(idx, 0)])


def probability_below(values, threshold: float) -> float:
    """Share of values strictly below ``threshold``, in %."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return 0.0
    return float(np.count_nonzero(arr < threshold) / arr.size * 100)


def probability_above(values, threshold: float) -> float:
    """Share of values strictly above ``threshold``, in %."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return 0.0
    return float(np.count_nonzero(arr > threshold) / arr.size * 100)


# ---------------------------------------------------------------------------
# Risk metrics
# ---------------------------------------------------------------------------


def value_at_risk(values, reference_value: float, confidence: float = 0.95) -> float:
    """Loss at the (1 - confidence) percentile: reference - percentile."""
    return reference_value - percentile(values, 1.0 - confidence)


def conditional_value_at_risk(
    values, reference_value: float, confidence: float = 0.95
) -> float:
    """Expected shortfall: reference minus the mean of the worst tail.

    The tail holds floor((1 - confidence) * n) of the lowest values, but at
    least one value for a non-empty sample. Reported as a non-negative loss
    magnitude; a tail that sits above the reference yields 0.0.
    """
    sorted_values = np.sort(np.asarray(values, dtype=float))
    return _cvar_sorted(sorted_values, reference_value, 1.0 - confidence)


def _cvar_sorted(sorted_values: np.ndarray, reference_value: float, tail: float) -> float:
    n = len(sorted_values)
    if n == 0:
        return float("nan")
    tail_size = max(1, int(math.floor(n * tail)))
    shortfall = reference_value - float(np.mean(sorted_values[:tail_size]))
    # Loss magnitude: unlike VaR, CVaR never goes negative for a tail above the reference
    return max(0.0, shortfall)


# ---------------------------------------------------------------------------
# Reporter
# ---------------------------------------------------------------------------


def compute_statistics(values, reference_value: float) -> Statistics:
    """Summarise a value sample relative to an explicit reference value.

    Args:
        values: Terminal values of one PathSet (any length, including 0).
        reference_value: Current value the growth and risk figures are
            measured against. Must be positive and finite.

    Returns:
        Statistics with percentile ladder, growth % and risk metrics.
    """
    if reference_value is None or not math.isfinite(reference_value) or reference_value <= 0:
        raise ValueError(f"reference_value must be positive and finite, got {reference_value!r}")

    arr = np.asarray(values, dtype=float)
    sorted_values = np.sort(arr)
    n = len(sorted_values)

    avg = mean(sorted_values)
    median = _percentile_sorted(sorted_values, 0.50)
    ladder = [_percentile_sorted(sorted_values, p) for p in PERCENTILE_LADDER]

    return Statistics(
        count=n,
        reference_value=float(reference_value),
        mean=avg,
        median=median,
        std_dev=std_dev(sorted_values),
        min=float(sorted_values[0]) if n else float("nan"),
        max=float(sorted_values[-1]) if n else float("nan"),
        percentiles=Percentiles(*ladder),
        growth=GrowthStats(
            mean_pct=(avg / reference_value - 1) * 100,
            median_pct=(median / reference_value - 1) * 100,
        ),
        risk=RiskMetrics(
            var_95=reference_value - _percentile_sorted(sorted_values, 0.05),
            var_99=reference_value - _percentile_sorted(sorted_values, 0.01),
            cvar_95=_cvar_sorted(sorted_values, reference_value, CVAR_TAIL),
            prob_loss_pct=probability_below(sorted_values, reference_value),
            prob_gain_50_pct=probability_above(sorted_values, reference_value * GAIN_50_MULT),
            prob_double_pct=probability_above(sorted_values, reference_value * DOUBLE_MULT),
        ),
    )
