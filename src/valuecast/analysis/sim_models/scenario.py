"""Scenario analysis: each path lives in one regime for its whole horizon."""

import logging

import numpy as np

from valuecast.analysis.events import select_scenarios
from valuecast.analysis.random_source import RandomSource
from valuecast.config import SimulationConfig

from . import PathSet, SimModel, SimulationInput
from .bounds import bounded_log_step

logger = logging.getLogger(__name__)


def simulate_scenario(
    sim_input: SimulationInput,
    config: SimulationConfig,
    source: RandomSource,
) -> PathSet:
    """Draw a regime per path, then run a log-normal walk with its drift/vol.

    Settled assets get a drift bonus and damped volatility in every regime.
    """
    bounds = config.bounds_for(SimModel.SCENARIO)
    n = config.num_paths
    steps = config.horizon_years * config.steps_per_year
    dt = 1.0 / config.steps_per_year
    current_value = sim_input.current_value

    regime = select_scenarios(source, n, config.scenarios, config.default_scenario)
    drift = np.array([s.drift for s in config.scenarios])[regime]
    vol = np.array([s.volatility for s in config.scenarios])[regime]

    if sim_input.years_old >= config.settled_age:
        drift = drift + config.settled_drift_bonus
        vol = vol * config.settled_vol_mult

    if n:
        counts = np.bincount(regime, minlength=len(config.scenarios))
        logger.debug(
            "Scenario: regime mix %s",
            {s.name: int(c) for s, c in zip(config.scenarios, counts)},
        )

    prices = np.full(n, current_value, dtype=float)
    diffusion_scale = vol * np.sqrt(dt)

    for _ in range(steps):
        shock = source.standard_normal(n)
        prices = bounded_log_step(
            prices, drift * dt + diffusion_scale * shock, current_value, bounds
        )

    return prices
