"""Monte Carlo jump-diffusion simulation with mean reversion.

Per step, in log space:
  dlnS = (μ + s_m)·dt + κ·(ln F − ln S)·dt + σ·√dt·T + J
  T ~ Student-t(ν) clamped to ±4, J = jump (maturing/settled assets only),
  F = current value × (1 + clamped historical growth), s_m = month seasonality
"""

import logging

import numpy as np

from valuecast.analysis.events import draw_jumps
from valuecast.analysis.random_source import RandomSource
from valuecast.config import SimulationConfig

from . import PathSet, SimModel, SimulationInput
from .bounds import bounded_log_step

logger = logging.getLogger(__name__)

JUMP_DAMPING = 0.5  # halves the configured intensity per step


def age_adjusted_parameters(
    sim_input: SimulationInput, config: SimulationConfig
) -> tuple[float, float, bool]:
    """Return (drift, volatility, jumps_enabled) for the asset's age tier.

    young < maturing_age <= maturing < settled_age <= settled
    """
    params = config.monte_carlo
    drift = params.base_drift
    vol = params.base_volatility

    if sim_input.years_old >= params.settled_age:
        drift *= params.settled_drift_mult
        vol *= params.settled_vol_mult
    elif sim_input.years_old >= params.maturing_age:
        drift *= params.maturing_drift_mult
        vol *= params.maturing_vol_mult

    jumps_enabled = sim_input.years_old >= params.maturing_age
    return drift, vol, jumps_enabled


def simulate_monte_carlo(
    sim_input: SimulationInput,
    config: SimulationConfig,
    source: RandomSource,
) -> PathSet:
    """Run the jump-diffusion model and return terminal values per path."""
    params = config.monte_carlo
    bounds = config.bounds_for(SimModel.MONTE_CARLO)
    n = config.num_paths
    steps_per_year = config.steps_per_year
    steps = config.horizon_years * steps_per_year
    dt = 1.0 / steps_per_year
    current_value = sim_input.current_value

    drift, vol, jumps_enabled = age_adjusted_parameters(sim_input, config)

    growth = float(np.clip(
        sim_input.historical_growth,
        params.fair_value_growth_min,
        params.fair_value_growth_max,
    ))
    log_fair_value = np.log(current_value * (1 + growth))

    seasonality = np.asarray(params.seasonality)
    jump_prob = params.jump_intensity * dt * JUMP_DAMPING
    diffusion_scale = vol * np.sqrt(dt)

    logger.debug(
        "MonteCarlo: drift=%.4f vol=%.4f jumps=%s fair=%.2f steps=%d",
        drift, vol, jumps_enabled, np.exp(log_fair_value), steps,
    )

    prices = np.full(n, current_value, dtype=float)

    for t in range(steps):
        shock = source.student_t_shock(params.degrees_of_freedom, n)
        jumps = draw_jumps(source, n, jump_prob, params.jump_mean_size, eligible=jumps_enabled)

        reversion = params.mean_reversion_speed * (log_fair_value - np.log(prices)) * dt
        month = int((t / steps_per_year) * 12) % 12

        d_log_price = (
            (drift + seasonality[month]) * dt
            + reversion
            + diffusion_scale * shock
            + jumps.size
        )
        prices = bounded_log_step(prices, d_log_price, current_value, bounds)

    return prices
