"""Unit tests for discrete-event sampling."""

import numpy as np
import pytest

from valuecast.analysis.events import (
    NO_EVENT,
    draw_jumps,
    draw_stress_events,
    select_scenario_indices,
    select_scenarios,
)
from valuecast.analysis.random_source import RandomSource
from valuecast.config import DEFAULT_SCENARIOS, ScenarioParams, StressEventParams


class TestScenarioSelection:
    def test_proportions_over_large_sample(self):
        uniforms = np.random.default_rng(2024).random(100_000)
        indices = select_scenario_indices(uniforms, [0.25, 0.50, 0.25], default_index=1)
        shares = np.bincount(indices, minlength=3) / len(indices)
        np.testing.assert_allclose(shares, [0.25, 0.50, 0.25], atol=0.01)

    def test_boundaries(self):
        indices = select_scenario_indices(
            np.array([0.0, 0.2499, 0.25, 0.7499, 0.75, 0.9999]),
            [0.25, 0.50, 0.25],
            default_index=1,
        )
        assert indices.tolist() == [0, 0, 1, 1, 2, 2]

    def test_falls_through_to_default(self):
        indices = select_scenario_indices(
            np.array([0.1, 0.5, 0.95]), [0.3, 0.3, 0.3], default_index=1
        )
        assert indices.tolist() == [0, 1, 1]

    def test_zero_probability_regime_never_selected(self):
        uniforms = np.random.default_rng(1).random(10_000)
        indices = select_scenario_indices(uniforms, [0.5, 0.0, 0.5], default_index=0)
        assert not np.any(indices == 1)

    def test_select_scenarios_uses_names(self):
        source = RandomSource(seed=3)
        indices = select_scenarios(source, 1000, DEFAULT_SCENARIOS, "base")
        assert indices.shape == (1000,)
        assert set(indices.tolist()) <= {0, 1, 2}

    def test_unknown_default_name(self):
        with pytest.raises(ValueError):
            select_scenarios(
                RandomSource(seed=3),
                10,
                (ScenarioParams(name="only", probability=1.0, drift=0.0, volatility=0.1),),
                "missing",
            )


class TestJumps:
    def test_ineligible_never_jumps(self):
        outcome = draw_jumps(RandomSource(seed=1), 1000, 1.0, 0.3, eligible=False)
        assert not outcome.triggered.any()
        assert np.all(outcome.size == 0.0)

    def test_jump_size_range(self):
        outcome = draw_jumps(RandomSource(seed=1), 1000, 1.0, 0.3)
        assert outcome.triggered.all()
        assert np.all(outcome.size >= 0.3 * 0.3)
        assert np.all(outcome.size <= 0.3 * 0.7)

    def test_per_path_eligibility(self):
        eligible = np.array([True, False] * 50)
        outcome = draw_jumps(RandomSource(seed=1), 100, 1.0, 0.3, eligible=eligible)
        np.testing.assert_array_equal(outcome.triggered, eligible)


class TestStressEvents:
    EVENTS = (
        StressEventParams(name="crash", probability=52.0, impact=-0.4, recovery_years=1),
        StressEventParams(name="boom", probability=52.0, impact=0.5, recovery_years=1),
    )

    def test_first_event_wins(self):
        outcome = draw_stress_events(RandomSource(seed=1), 50, self.EVENTS, 52)
        assert np.all(outcome.event_index == 0)

    def test_inactive_paths_do_not_trigger(self):
        active = np.array([True, False, True, False])
        outcome = draw_stress_events(RandomSource(seed=1), 4, self.EVENTS, 52, active=active)
        assert outcome.event_index.tolist() == [0, NO_EVENT, 0, NO_EVENT]
        np.testing.assert_array_equal(outcome.triggered, active)

    def test_zero_probability(self):
        events = (StressEventParams(name="none", probability=0.0, impact=-0.4, recovery_years=1),)
        outcome = draw_stress_events(RandomSource(seed=1), 100, events, 52)
        assert not outcome.triggered.any()
