from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from valuecast.analysis.sim_models import SimModel


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class PriceBounds(_Frozen):
    """Price clamp expressed relative to the asset's current value."""

    floor: float = Field(gt=0, description="Minimum price as a fraction of current value")
    ceiling: float = Field(gt=0, description="Maximum price as a multiple of current value")

    @model_validator(mode="after")
    def _check_order(self) -> "PriceBounds":
        if self.floor >= self.ceiling:
            raise ValueError(f"floor ({self.floor}) must be below ceiling ({self.ceiling})")
        return self


class MonteCarloParams(_Frozen):
    base_drift: float = 0.05
    base_volatility: float = 0.20
    jump_intensity: float = 0.15
    jump_mean_size: float = 0.30
    mean_reversion_speed: float = 0.20
    degrees_of_freedom: int = Field(5, ge=1)

    # Age tiers: maturing assets get jumps, settled assets calm down
    maturing_age: float = 1.5
    settled_age: float = 2.5
    maturing_drift_mult: float = 1.1
    maturing_vol_mult: float = 1.2
    settled_drift_mult: float = 1.3
    settled_vol_mult: float = 0.8

    fair_value_growth_min: float = 0.0
    fair_value_growth_max: float = 0.30

    # Jan..Dec additive drift
    seasonality: tuple[float, ...] = (
        0.01, 0.015, 0.005, 0.0, -0.005, -0.01,
        -0.005, 0.0, 0.005, 0.01, 0.015, -0.01,
    )

    @model_validator(mode="after")
    def _check_seasonality(self) -> "MonteCarloParams":
        if len(self.seasonality) != 12:
            raise ValueError("seasonality needs exactly 12 monthly entries")
        return self


class ScenarioParams(_Frozen):
    name: str
    probability: float = Field(ge=0, le=1)
    drift: float
    volatility: float = Field(ge=0)


class StressEventParams(_Frozen):
    name: str
    probability: float = Field(ge=0, description="Annual probability of the event")
    impact: float = Field(gt=-1, description="Immediate fractional price change")
    recovery_years: float = Field(ge=0)


class StressParams(_Frozen):
    events: tuple[StressEventParams, ...] = (
        StressEventParams(name="market_crash", probability=0.05, impact=-0.40, recovery_years=2),
        StressEventParams(name="theme_collapse", probability=0.03, impact=-0.60, recovery_years=5),
        StressEventParams(name="liquidity_crisis", probability=0.02, impact=-0.25, recovery_years=1),
        StressEventParams(name="demand_boom", probability=0.05, impact=0.50, recovery_years=3),
    )
    licensed_impact_mult: float = 0.8
    unlicensed_impact_mult: float = 1.2
    recovery_noise: float = 0.02


class GarchParams(_Frozen):
    omega: float = Field(0.0001, ge=0)
    alpha: float = Field(0.10, ge=0)
    beta: float = Field(0.85, ge=0)
    initial_vol: float = Field(0.20, gt=0)


class BayesianParams(_Frozen):
    prior_mean: float = 0.05
    prior_variance: float = Field(0.01, ge=0)
    likelihood_weight: float = Field(0.7, ge=0, le=1)
    observed_variance: float = Field(0.02, ge=0)
    observed_growth_min: float = -0.10
    observed_growth_max: float = 0.15
    settled_bonus: float = 0.02
    licensed_bonus: float = 0.01
    drift_min: float = 0.0
    drift_max: float = 0.12
    sampled_drift_min: float = -0.05
    sampled_drift_max: float = 0.15


class BootstrapParams(_Frozen):
    steps_per_year: int = Field(12, gt=0)
    return_clamp: float = Field(0.15, gt=0)
    synthetic_fallback: bool = True
    synthetic_length: int = Field(60, gt=0)
    synthetic_monthly_vol: float = Field(0.04, ge=0)
    synthetic_growth_min: float = 0.02
    synthetic_growth_max: float = 0.10
    synthetic_return_clamp: float = Field(0.08, gt=0)


DEFAULT_WEIGHTS: dict[str, float] = {
    SimModel.MONTE_CARLO.value: 0.35,
    SimModel.SCENARIO.value: 0.15,
    SimModel.STRESS.value: 0.10,
    SimModel.BOOTSTRAP.value: 0.15,
    SimModel.GARCH.value: 0.15,
    SimModel.BAYESIAN.value: 0.10,
}

DEFAULT_BOUNDS: dict[str, PriceBounds] = {
    SimModel.MONTE_CARLO.value: PriceBounds(floor=0.4, ceiling=4.0),
    SimModel.SCENARIO.value: PriceBounds(floor=0.2, ceiling=5.0),
    SimModel.STRESS.value: PriceBounds(floor=0.1, ceiling=5.0),
    SimModel.BOOTSTRAP.value: PriceBounds(floor=0.5, ceiling=3.0),
    SimModel.GARCH.value: PriceBounds(floor=0.2, ceiling=5.0),
    SimModel.BAYESIAN.value: PriceBounds(floor=0.3, ceiling=5.0),
}

DEFAULT_SCENARIOS: tuple[ScenarioParams, ...] = (
    ScenarioParams(name="bull", probability=0.25, drift=0.12, volatility=0.15),
    ScenarioParams(name="base", probability=0.50, drift=0.05, volatility=0.20),
    ScenarioParams(name="bear", probability=0.25, drift=-0.02, volatility=0.30),
)


class SimulationConfig(_Frozen):
    """Immutable parameter set for one valuation run."""

    num_paths: int = Field(10000, ge=0)
    horizon_years: int = Field(5, ge=0)
    steps_per_year: int = Field(52, gt=0)

    # Ensemble weights (sum = 1.0)
    weights: dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    bounds: dict[str, PriceBounds] = Field(default_factory=lambda: dict(DEFAULT_BOUNDS))

    # Assets at least this old get the settled drift bonus in the
    # scenario, GARCH and Bayesian models
    settled_age: float = 2.0
    settled_drift_bonus: float = 0.03
    settled_vol_mult: float = 0.8

    monte_carlo: MonteCarloParams = Field(default_factory=MonteCarloParams)
    scenarios: tuple[ScenarioParams, ...] = DEFAULT_SCENARIOS
    default_scenario: str = "base"
    stress: StressParams = Field(default_factory=StressParams)
    garch: GarchParams = Field(default_factory=GarchParams)
    bayesian: BayesianParams = Field(default_factory=BayesianParams)
    bootstrap: BootstrapParams = Field(default_factory=BootstrapParams)

    @model_validator(mode="after")
    def _check_scenarios(self) -> "SimulationConfig":
        if not self.scenarios:
            raise ValueError("at least one scenario is required")
        if self.default_scenario not in {s.name for s in self.scenarios}:
            raise ValueError(f"default scenario {self.default_scenario!r} is not configured")
        return self

    def bounds_for(self, model: SimModel | str) -> PriceBounds:
        key = model.value if isinstance(model, SimModel) else model
        return self.bounds.get(key, DEFAULT_BOUNDS[key])


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="VC_",
    )

    # Simulation
    simulation_num_paths: int = 10000
    simulation_horizon_years: int = 5
    simulation_steps_per_year: int = 52
    simulation_seed: int | None = None

    # Ensemble weights (sum = 1.0)
    simulation_weight_monte_carlo: float = 0.35
    simulation_weight_scenario: float = 0.15
    simulation_weight_stress: float = 0.10
    simulation_weight_bootstrap: float = 0.15
    simulation_weight_garch: float = 0.15
    simulation_weight_bayesian: float = 0.10

    # Bootstrap
    simulation_bootstrap_synthetic_fallback: bool = True

    # Parallelization (horizons)
    simulation_max_workers: int = 1

    # Logging
    log_dir: str = "logs"
    log_level: str = "INFO"

    @property
    def weights(self) -> dict[str, float]:
        return {
            SimModel.MONTE_CARLO.value: self.simulation_weight_monte_carlo,
            SimModel.SCENARIO.value: self.simulation_weight_scenario,
            SimModel.STRESS.value: self.simulation_weight_stress,
            SimModel.BOOTSTRAP.value: self.simulation_weight_bootstrap,
            SimModel.GARCH.value: self.simulation_weight_garch,
            SimModel.BAYESIAN.value: self.simulation_weight_bayesian,
        }

    def to_simulation_config(self, **overrides) -> SimulationConfig:
        """Build the immutable SimulationConfig from environment settings."""
        values = {
            "num_paths": self.simulation_num_paths,
            "horizon_years": self.simulation_horizon_years,
            "steps_per_year": self.simulation_steps_per_year,
            "weights": self.weights,
            "bootstrap": BootstrapParams(
                synthetic_fallback=self.simulation_bootstrap_synthetic_fallback
            ),
        }
        values.update(overrides)
        return SimulationConfig(**values)
