"""GARCH(1,1) volatility clustering simulation.

Each path carries its own conditional variance:
  σ²_t = ω + α·r²_{t−1} + β·σ²_{t−1}
so a large shock raises the variance of the steps that follow it.
"""

import logging

import numpy as np

from valuecast.analysis.random_source import RandomSource
from valuecast.config import SimulationConfig

from . import PathSet, SimModel, SimulationInput
from .bounds import bounded_log_step

logger = logging.getLogger(__name__)


def simulate_garch(
    sim_input: SimulationInput,
    config: SimulationConfig,
    source: RandomSource,
) -> PathSet:
    """Run path-dependent GARCH(1,1) and return terminal values per path."""
    params = config.garch
    bounds = config.bounds_for(SimModel.GARCH)
    n = config.num_paths
    steps = config.horizon_years * config.steps_per_year
    dt = 1.0 / config.steps_per_year
    sqrt_dt = np.sqrt(dt)
    current_value = sim_input.current_value

    drift = config.monte_carlo.base_drift
    if sim_input.years_old >= config.settled_age:
        drift += config.settled_drift_bonus

    persistence = params.alpha + params.beta
    if persistence >= 1.0:
        logger.warning(
            "GARCH: α+β=%.4f ≥ 1, variance is not mean-reverting", persistence
        )

    prices = np.full(n, current_value, dtype=float)
    variance = np.full(n, params.initial_vol**2, dtype=float)
    last_return = np.zeros(n, dtype=float)

    for _ in range(steps):
        variance = params.omega + params.alpha * last_return**2 + params.beta * variance
        shock = source.standard_normal(n)
        last_return = drift * dt + np.sqrt(variance) * sqrt_dt * shock
        prices = bounded_log_step(prices, last_return, current_value, bounds)

    return prices
