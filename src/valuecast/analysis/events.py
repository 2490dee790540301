"""Discrete-event sampling for the path simulators.

Each sampler consumes uniform draws for every path (so the stream position
never depends on which paths triggered) and returns a tagged outcome that
the step loop applies: no event, a jump of a given size, or a stress event
identified by its index in the configured event list.
"""

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from valuecast.analysis.random_source import RandomSource
from valuecast.config import ScenarioParams, StressEventParams

logger = logging.getLogger(__name__)

NO_EVENT = -1
JUMP_SIZE_BASE = 0.3
JUMP_SIZE_SPREAD = 0.4


@dataclass(frozen=True)
class JumpOutcome:
    triggered: np.ndarray  # bool per path
    size: np.ndarray       # log-price jump per path, 0.0 where not triggered


@dataclass(frozen=True)
class StressOutcome:
    event_index: np.ndarray  # index into the event list, NO_EVENT where none

    @property
    def triggered(self) -> np.ndarray:
        return self.event_index != NO_EVENT


# ---------------------------------------------------------------------------
# Scenario selection
# ---------------------------------------------------------------------------


def select_scenario_indices(
    uniforms: np.ndarray,
    probabilities: Sequence[float],
    default_index: int,
) -> np.ndarray:
    """Map uniform draws to regime indices by cumulative probability.

    A draw ``u`` selects the first regime whose cumulative probability
    exceeds ``u``. Draws at or beyond the cumulative total (probabilities
    summing short of 1.0) fall through to ``default_index``.
    """
    cumulative = np.cumsum(np.asarray(probabilities, dtype=float))
    indices = np.searchsorted(cumulative, np.asarray(uniforms), side="right")
    return np.where(indices >= len(cumulative), default_index, indices)


def select_scenarios(
    source: RandomSource,
    n: int,
    scenarios: Sequence[ScenarioParams],
    default_name: str,
) -> np.ndarray:
    """Draw one regime index per path."""
    names = [s.name for s in scenarios]
    default_index = names.index(default_name)
    return select_scenario_indices(
        source.uniform(n), [s.probability for s in scenarios], default_index
    )


# ---------------------------------------------------------------------------
# Jumps
# ---------------------------------------------------------------------------


def draw_jumps(
    source: RandomSource,
    n: int,
    probability: float,
    mean_size: float,
    eligible: bool | np.ndarray = True,
) -> JumpOutcome:
    """Sample upward jumps sized from a random fraction of ``mean_size``."""
    trigger_draws = source.uniform(n)
    size_draws = source.uniform(n)

    triggered = np.logical_and(eligible, trigger_draws < probability)
    size = np.where(
        triggered, mean_size * (JUMP_SIZE_BASE + JUMP_SIZE_SPREAD * size_draws), 0.0
    )
    return JumpOutcome(triggered=triggered, size=size)


# ---------------------------------------------------------------------------
# Stress events
# ---------------------------------------------------------------------------


def draw_stress_events(
    source: RandomSource,
    n: int,
    events: Sequence[StressEventParams],
    steps_per_year: int,
    active: bool | np.ndarray = True,
) -> StressOutcome:
    """Sample at most one stress event per path for a single step.

    Events are checked in configured order; each triggers with probability
    ``annual probability / steps_per_year`` and the first hit wins. Paths
    where ``active`` is False (already recovering) never trigger.
    """
    event_index = np.full(n, NO_EVENT, dtype=int)
    eligible = np.broadcast_to(np.asarray(active, dtype=bool), (n,))

    for k, event in enumerate(events):
        draws = source.uniform(n)
        hit = eligible & (event_index == NO_EVENT) & (draws < event.probability / steps_per_year)
        event_index[hit] = k

    return StressOutcome(event_index=event_index)
