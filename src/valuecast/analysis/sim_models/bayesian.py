"""Bayesian updating: per-path drift drawn from a posterior.

Posterior = likelihood-weighted blend of a conservative prior and the
clamped observed growth. Sampling the drift per path models parameter
uncertainty on top of return uncertainty.
"""

import logging

import numpy as np

from valuecast.analysis.random_source import RandomSource
from valuecast.config import SimulationConfig

from . import PathSet, SimModel, SimulationInput
from .bounds import bounded_log_step

logger = logging.getLogger(__name__)


def posterior_drift(
    sim_input: SimulationInput, config: SimulationConfig
) -> tuple[float, float]:
    """Return (adjusted posterior mean, posterior variance) of annual drift."""
    params = config.bayesian
    observed = min(
        params.observed_growth_max,
        max(params.observed_growth_min, sim_input.historical_growth),
    )

    w = params.likelihood_weight
    posterior_mean = (1 - w) * params.prior_mean + w * observed
    posterior_var = (1 - w) * params.prior_variance + w * params.observed_variance

    if sim_input.years_old >= config.settled_age:
        posterior_mean += params.settled_bonus
    if sim_input.is_licensed:
        posterior_mean += params.licensed_bonus

    posterior_mean = min(params.drift_max, max(params.drift_min, posterior_mean))
    return posterior_mean, posterior_var


def simulate_bayesian(
    sim_input: SimulationInput,
    config: SimulationConfig,
    source: RandomSource,
) -> PathSet:
    """Sample a drift per path from the posterior, then run a log walk."""
    params = config.bayesian
    bounds = config.bounds_for(SimModel.BAYESIAN)
    n = config.num_paths
    steps = config.horizon_years * config.steps_per_year
    dt = 1.0 / config.steps_per_year
    current_value = sim_input.current_value

    mean, var = posterior_drift(sim_input, config)
    logger.debug("Bayesian: posterior mean=%.4f var=%.4f", mean, var)

    sampled_drift = np.clip(
        mean + source.standard_normal(n) * np.sqrt(var),
        params.sampled_drift_min,
        params.sampled_drift_max,
    )
    diffusion_scale = config.monte_carlo.base_volatility * np.sqrt(dt)

    prices = np.full(n, current_value, dtype=float)

    for _ in range(steps):
        shock = source.standard_normal(n)
        prices = bounded_log_step(
            prices, sampled_drift * dt + diffusion_scale * shock, current_value, bounds
        )

    return prices
