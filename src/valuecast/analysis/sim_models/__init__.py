"""Stochastic valuation models package.

Provides six independent path simulators, each a pure function of
(SimulationInput, SimulationConfig, RandomSource) -> PathSet:
- MONTE_CARLO: Student-t jump diffusion with mean reversion and seasonality
- SCENARIO: per-path bull/base/bear regime selection
- STRESS: discrete stress events with linear recovery
- BOOTSTRAP: resampling of historical (or synthetic) monthly returns
- GARCH: GARCH(1,1) volatility clustering
- BAYESIAN: per-path drift sampled from a posterior
"""

import math
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from valuecast.analysis.errors import InvalidInputError

MIN_YEARS_OLD = 0.5  # avoids degenerate early-life behaviour
MIN_HISTORICAL_GROWTH = -0.5
MAX_HISTORICAL_GROWTH = 1.0

# Terminal values of one model at one horizon, one entry per simulated path.
PathSet = np.ndarray


class SimModel(str, Enum):
    MONTE_CARLO = "monte_carlo"
    SCENARIO = "scenario"
    STRESS = "stress"
    BOOTSTRAP = "bootstrap"
    GARCH = "garch"
    BAYESIAN = "bayesian"


ALL_MODELS = tuple(SimModel)


@dataclass(frozen=True)
class SimulationInput:
    """Asset state driving every simulator.

    ``years_old`` is floored at 0.5 and ``historical_growth`` is clamped to
    [-0.5, 1.0] on construction; individual models clamp growth further.
    """

    current_value: float
    years_old: float = 1.0
    is_licensed: bool = False
    historical_growth: float = 0.05
    historical_returns: tuple[float, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not math.isfinite(self.current_value) or self.current_value <= 0:
            raise InvalidInputError(
                f"current_value must be a positive finite number, got {self.current_value!r}"
            )
        if not math.isfinite(self.years_old) or self.years_old < 0:
            raise InvalidInputError(
                f"years_old must be a non-negative finite number, got {self.years_old!r}"
            )
        if not math.isfinite(self.historical_growth):
            raise InvalidInputError(
                f"historical_growth must be finite, got {self.historical_growth!r}"
            )

        returns = tuple(float(r) for r in self.historical_returns)
        if not all(math.isfinite(r) for r in returns):
            raise InvalidInputError("historical_returns must contain only finite values")

        object.__setattr__(self, "current_value", float(self.current_value))
        object.__setattr__(self, "years_old", max(MIN_YEARS_OLD, float(self.years_old)))
        object.__setattr__(
            self,
            "historical_growth",
            min(MAX_HISTORICAL_GROWTH, max(MIN_HISTORICAL_GROWTH, float(self.historical_growth))),
        )
        object.__setattr__(self, "historical_returns", returns)


__all__ = ["SimModel", "ALL_MODELS", "PathSet", "SimulationInput"]
