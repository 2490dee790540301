"""Stress testing: baseline walk interrupted by discrete shocks.

A triggered event moves the price immediately by its impact (dampened for
licensed assets), then the path recovers linearly toward a drift-projected
level over ``recovery_years``, with small multiplicative noise. Paths in
recovery cannot trigger a new event.
"""

import logging

import numpy as np

from valuecast.analysis.events import draw_stress_events
from valuecast.analysis.random_source import RandomSource
from valuecast.config import SimulationConfig

from . import PathSet, SimModel, SimulationInput
from .bounds import bounded_update

logger = logging.getLogger(__name__)


def simulate_stress(
    sim_input: SimulationInput,
    config: SimulationConfig,
    source: RandomSource,
) -> PathSet:
    """Run the stress-event model and return terminal values per path."""
    params = config.stress
    bounds = config.bounds_for(SimModel.STRESS)
    n = config.num_paths
    steps_per_year = config.steps_per_year
    steps = config.horizon_years * steps_per_year
    dt = 1.0 / steps_per_year
    current_value = sim_input.current_value

    base_drift = config.monte_carlo.base_drift
    base_vol = config.monte_carlo.base_volatility

    impact_mult = (
        params.licensed_impact_mult if sim_input.is_licensed else params.unlicensed_impact_mult
    )
    impacts = np.array([e.impact for e in params.events]) * impact_mult
    recovery_steps = np.array(
        [int(round(e.recovery_years * steps_per_year)) for e in params.events], dtype=int
    )

    prices = np.full(n, current_value, dtype=float)
    recovering = np.zeros(n, dtype=bool)
    steps_left = np.zeros(n, dtype=int)
    target = np.zeros(n, dtype=float)
    event_count = 0

    for t in range(steps):
        outcome = draw_stress_events(
            source, n, params.events, steps_per_year, active=~recovering
        )
        hit = outcome.triggered
        if np.any(hit):
            k = outcome.event_index[hit]
            event_count += int(np.count_nonzero(hit))
            prices[hit] = prices[hit] * (1 + impacts[k])
            steps_left[hit] = recovery_steps[k]
            recovering[hit] = recovery_steps[k] > 0
            target[hit] = current_value * (1 + base_drift * (t / steps_per_year))
            prices = bounded_update(prices, current_value, bounds)

        noise = source.standard_normal(n)
        shock = source.standard_normal(n)

        recovery_price = (
            prices
            + (target - prices) / np.maximum(steps_left, 1)
            + noise * prices * params.recovery_noise
        )
        baseline_price = prices * np.exp(base_drift * dt + base_vol * np.sqrt(dt) * shock)

        prices = bounded_update(
            np.where(recovering, recovery_price, baseline_price), current_value, bounds
        )
        steps_left = np.where(recovering, steps_left - 1, steps_left)
        recovering &= steps_left > 0

    logger.debug("Stress: %d events across %d paths over %d steps", event_count, n, steps)
    return prices
