"""Bootstrap resampling of monthly returns.

Uses the caller's historical monthly returns when supplied; otherwise a
synthetic series centred on the clamped historical growth with a fixed,
conservative monthly volatility. Draws are made with replacement and each
drawn return is clamped before compounding.
"""

import logging

import numpy as np

from valuecast.analysis.errors import InvalidInputError
from valuecast.analysis.random_source import RandomSource
from valuecast.config import BootstrapParams, SimulationConfig

from . import PathSet, SimModel, SimulationInput
from .bounds import bounded_update

logger = logging.getLogger(__name__)


def generate_synthetic_returns(
    sim_input: SimulationInput,
    params: BootstrapParams,
    source: RandomSource,
) -> np.ndarray:
    """Monthly returns with mean growth/12 and fixed volatility, clamped."""
    annual_growth = min(
        params.synthetic_growth_max,
        max(params.synthetic_growth_min, sim_input.historical_growth),
    )
    monthly_drift = annual_growth / 12
    raw = monthly_drift + source.standard_normal(params.synthetic_length) * params.synthetic_monthly_vol
    return np.clip(raw, -params.synthetic_return_clamp, params.synthetic_return_clamp)


def resolve_return_series(
    sim_input: SimulationInput,
    params: BootstrapParams,
    source: RandomSource,
) -> np.ndarray:
    """Pick the series to resample from, failing fast when none is usable."""
    if sim_input.historical_returns:
        return np.asarray(sim_input.historical_returns, dtype=float)
    if not params.synthetic_fallback:
        raise InvalidInputError(
            "bootstrap needs historical_returns when synthetic fallback is disabled"
        )
    logger.debug("Bootstrap: no historical returns, using synthetic series")
    return generate_synthetic_returns(sim_input, params, source)


def simulate_bootstrap(
    sim_input: SimulationInput,
    config: SimulationConfig,
    source: RandomSource,
) -> PathSet:
    """Compound resampled monthly returns over the horizon."""
    params = config.bootstrap
    bounds = config.bounds_for(SimModel.BOOTSTRAP)
    n = config.num_paths
    steps = config.horizon_years * params.steps_per_year
    current_value = sim_input.current_value

    returns = resolve_return_series(sim_input, params, source)
    size = len(returns)

    prices = np.full(n, current_value, dtype=float)

    for _ in range(steps):
        idx = np.minimum((source.uniform(n) * size).astype(int), size - 1)
        sampled = np.clip(returns[idx], -params.return_clamp, params.return_clamp)
        prices = bounded_update(prices * (1 + sampled), current_value, bounds)

    return prices
