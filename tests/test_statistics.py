"""Unit tests for distribution statistics."""

import math

import numpy as np
import pytest

from valuecast.analysis.simulation import run_ensemble
from valuecast.analysis.statistics import (
    compute_statistics,
    conditional_value_at_risk,
    mean,
    percentile,
    probability_above,
    probability_below,
    std_dev,
    value_at_risk,
)


def reference_median(values):
    ordered = sorted(values)
    return ordered[len(ordered) // 2]


class TestPercentile:
    def test_nearest_rank(self):
        values = list(range(1, 11))
        assert percentile(values, 0.5) == 6
        assert percentile(values, 0.0) == 1
        assert percentile(values, 0.1) == 2

    def test_clamped_to_last_index(self):
        assert percentile([3, 1, 2], 1.0) == 3

    def test_unsorted_input(self):
        assert percentile([9, 1, 5, 3, 7], 0.5) == 5

    def test_matches_reference_median(self):
        values = np.random.default_rng(0).lognormal(0, 0.3, 10_001)
        assert percentile(values, 0.5) == reference_median(values.tolist())

    def test_matches_reference_median_on_ensemble_paths(self, settled_input, small_config, source):
        paths = run_ensemble(settled_input, small_config, source).paths
        assert percentile(paths, 0.5) == reference_median(paths.tolist())
        assert compute_statistics(paths, 1000.0).median == reference_median(paths.tolist())

    def test_empty_is_nan(self):
        assert math.isnan(percentile([], 0.5))

    def test_single_element(self):
        assert percentile([42.0], 0.05) == 42.0
        assert percentile([42.0], 0.95) == 42.0


class TestBasicStatistics:
    def test_mean_and_std(self):
        assert mean([1, 2, 3, 4]) == pytest.approx(2.5)
        assert std_dev([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)

    def test_empty_and_single(self):
        assert math.isnan(mean([]))
        assert std_dev([]) == 0.0
        assert std_dev([5.0]) == 0.0

    def test_probabilities_in_percent(self):
        values = [50, 100, 160, 210]
        assert probability_below(values, 100) == pytest.approx(25.0)
        assert probability_above(values, 150) == pytest.approx(50.0)
        assert probability_above(values, 200) == pytest.approx(25.0)

    def test_probabilities_empty(self):
        assert probability_below([], 100) == 0.0
        assert probability_above([], 100) == 0.0


class TestRiskMetrics:
    def test_value_at_risk(self):
        values = list(range(1, 101))
        assert value_at_risk(values, 50, 0.95) == 44
        assert value_at_risk(values, 50, 0.99) == 48

    def test_conditional_value_at_risk(self):
        values = list(range(1, 101))
        # Worst 5 values: 1..5, mean 3
        assert conditional_value_at_risk(values, 50) == pytest.approx(47.0)

    def test_cvar_never_negative(self):
        values = [200.0, 210.0, 220.0]
        assert conditional_value_at_risk(values, 100) == 0.0

    def test_appreciating_sample_signs(self):
        stats = compute_statistics([200.0, 210.0, 220.0], 100.0)
        # VaR keeps its sign, CVaR is a loss magnitude
        assert stats.risk.var_95 == pytest.approx(-100.0)
        assert stats.risk.cvar_95 == 0.0

    def test_cvar_small_sample_uses_worst_value(self):
        assert conditional_value_at_risk([80.0, 120.0], 100) == pytest.approx(20.0)


class TestComputeStatistics:
    def test_fields(self):
        values = np.linspace(500, 2500, 1001)
        stats = compute_statistics(values, 1000.0)

        assert stats.count == 1001
        assert stats.min == 500
        assert stats.max == 2500
        assert stats.median == percentile(values, 0.5)
        p = stats.percentiles
        assert p.p5 <= p.p10 <= p.p25 <= p.p50 <= p.p75 <= p.p90 <= p.p95
        assert stats.ci80 == (p.p10, p.p90)
        assert stats.growth.median_pct == pytest.approx((stats.median / 1000 - 1) * 100)
        assert stats.risk.var_95 == pytest.approx(1000 - p.p5)
        assert stats.risk.cvar_95 >= 0

    def test_risk_probabilities(self):
        stats = compute_statistics([50, 100, 160, 210], 100)
        assert stats.risk.prob_loss_pct == pytest.approx(25.0)
        assert stats.risk.prob_gain_50_pct == pytest.approx(50.0)
        assert stats.risk.prob_double_pct == pytest.approx(25.0)

    def test_empty_sample(self):
        stats = compute_statistics([], 100.0)
        assert stats.count == 0
        assert math.isnan(stats.median)
        assert stats.std_dev == 0.0
        assert stats.risk.prob_loss_pct == 0.0
        assert stats.to_dict()["median"] is None

    def test_single_sample(self):
        stats = compute_statistics([120.0], 100.0)
        assert stats.median == 120.0
        assert stats.std_dev == 0.0
        assert stats.risk.var_95 == pytest.approx(-20.0)
        assert stats.risk.cvar_95 == 0.0
        assert stats.growth.median_pct == pytest.approx(20.0)

    @pytest.mark.parametrize("reference", [0, -10, float("nan"), None])
    def test_reference_must_be_positive(self, reference):
        with pytest.raises(ValueError):
            compute_statistics([1.0, 2.0], reference)

    def test_to_dict_nested(self):
        d = compute_statistics([90.0, 110.0], 100.0).to_dict()
        assert set(d) >= {"mean", "median", "percentiles", "growth", "risk"}
        assert set(d["percentiles"]) == {"p5", "p10", "p25", "p50", "p75", "p90", "p95"}
