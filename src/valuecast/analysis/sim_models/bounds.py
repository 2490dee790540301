"""Bounded price update shared by all simulators.

Every step ends here: non-finite or non-positive prices are reset to the
current value, then prices are clipped to [floor, ceiling] x current value.
A degenerate path is recovered in place and never aborts the run.
"""

import logging

import numpy as np

from valuecast.config import PriceBounds

logger = logging.getLogger(__name__)


def bounded_update(
    prices: np.ndarray,
    current_value: float,
    bounds: PriceBounds,
) -> np.ndarray:
    """Sanitise and clamp a vector of path prices."""
    invalid = ~np.isfinite(prices) | (prices <= 0)
    if np.any(invalid):
        logger.debug("Resetting %d degenerate path prices", int(np.count_nonzero(invalid)))
        prices = np.where(invalid, current_value, prices)
    return np.clip(prices, current_value * bounds.floor, current_value * bounds.ceiling)


def bounded_log_step(
    prices: np.ndarray,
    d_log_price: np.ndarray,
    current_value: float,
    bounds: PriceBounds,
) -> np.ndarray:
    """Apply ``price * exp(d_log_price)`` then :func:`bounded_update`."""
    with np.errstate(over="ignore", invalid="ignore"):
        updated = prices * np.exp(d_log_price)
    return bounded_update(updated, current_value, bounds)
