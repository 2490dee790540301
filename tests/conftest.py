"""Pytest configuration and shared fixtures."""

import pytest

from valuecast.analysis.random_source import RandomSource
from valuecast.analysis.sim_models import SimulationInput
from valuecast.config import SimulationConfig


@pytest.fixture
def settled_input():
    """Three-year-old licensed asset growing 5 % a year."""
    return SimulationInput(
        current_value=1000.0,
        years_old=3,
        is_licensed=True,
        historical_growth=0.05,
    )


@pytest.fixture
def young_input():
    """Fresh unlicensed asset with negative recent growth."""
    return SimulationInput(
        current_value=250.0,
        years_old=0.2,
        is_licensed=False,
        historical_growth=-0.3,
    )


@pytest.fixture
def small_config():
    """Few paths, short horizon for test speed."""
    return SimulationConfig(num_paths=500, horizon_years=1)


@pytest.fixture
def source():
    return RandomSource(seed=12345)
