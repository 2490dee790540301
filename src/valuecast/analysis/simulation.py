"""Multi-model valuation orchestrator.

Runs the six stochastic models (Monte Carlo, Scenario, Stress, Bootstrap,
GARCH, Bayesian) for each horizon, combines them via a per-path weighted
ensemble and reports distribution statistics, yearly projections, a model
agreement score and rating-based recommendations.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Sequence

import numpy as np

from valuecast.analysis.errors import InvalidInputError
from valuecast.analysis.random_source import RandomSource
from valuecast.analysis.sim_models import ALL_MODELS, PathSet, SimModel, SimulationInput
from valuecast.analysis.sim_models.bayesian import simulate_bayesian
from valuecast.analysis.sim_models.bootstrap import simulate_bootstrap
from valuecast.analysis.sim_models.ensemble import combine_paths
from valuecast.analysis.sim_models.garch import simulate_garch
from valuecast.analysis.sim_models.monte_carlo import simulate_monte_carlo
from valuecast.analysis.sim_models.scenario import simulate_scenario
from valuecast.analysis.sim_models.stress import simulate_stress
from valuecast.analysis.statistics import Statistics, compute_statistics, nan_to_none
from valuecast.config import SimulationConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MODEL_RUNNERS: dict[SimModel, Callable[[SimulationInput, SimulationConfig, RandomSource], PathSet]] = {
    SimModel.MONTE_CARLO: simulate_monte_carlo,
    SimModel.SCENARIO: simulate_scenario,
    SimModel.STRESS: simulate_stress,
    SimModel.BOOTSTRAP: simulate_bootstrap,
    SimModel.GARCH: simulate_garch,
    SimModel.BAYESIAN: simulate_bayesian,
}

HIGH_AGREEMENT = 80.0
LOW_AGREEMENT = 60.0
AGREEMENT_EPSILON = 1e-9

# (upper bound on prob_loss_pct, label)
RISK_LEVELS = ((1.0, "LOW"), (5.0, "MODERATE"), (10.0, "ELEVATED"))
# (lower bound on median growth %, label)
RETURN_LEVELS = ((30.0, "EXCELLENT"), (20.0, "GOOD"), (10.0, "MODERATE"))
MIN_LOSS_PCT_FOR_SCORE = 0.1


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class EnsembleResult:
    """Everything computed for one horizon."""

    horizon_years: int
    current_value: float
    paths: PathSet
    statistics: Statistics
    model_paths: Mapping[str, PathSet]
    model_statistics: dict[str, Statistics]
    weights: dict[str, float]
    agreement_score: float
    warnings: tuple[str, ...] = ()

    def __post_init__(self):
        self.paths.flags.writeable = False
        for paths in self.model_paths.values():
            paths.flags.writeable = False
        object.__setattr__(self, "model_paths", MappingProxyType(dict(self.model_paths)))

    def to_record(self) -> dict[str, Any]:
        return nan_to_none({
            "horizon_years": self.horizon_years,
            "current_value": self.current_value,
            "num_paths": int(len(self.paths)),
            "ensemble": self.statistics.to_dict(),
            "models": {name: s.to_dict() for name, s in self.model_statistics.items()},
            "weights": dict(self.weights),
            "agreement_score": round(self.agreement_score, 2),
            "warnings": list(self.warnings),
        })


@dataclass(frozen=True)
class YearlyProjection:
    year: int
    median: float
    growth_pct: float
    ci80: tuple[float, float]
    prob_loss_pct: float


@dataclass(frozen=True)
class Recommendations:
    risk_level: str
    return_level: str
    risk_adjusted_score: float
    confidence: str


@dataclass(frozen=True, eq=False)
class ValuationReport:
    primary: EnsembleResult
    yearly_projections: tuple[YearlyProjection, ...]
    model_ranking: tuple[dict[str, Any], ...]
    recommendations: Recommendations
    config: SimulationConfig = field(repr=False)

    def to_record(self) -> dict[str, Any]:
        """Flat, JSON-serialisable record for the persistence collaborator."""
        record = self.primary.to_record()
        record["yearly_projections"] = [
            {
                "year": p.year,
                "median": p.median,
                "growth_pct": p.growth_pct,
                "ci80": list(p.ci80),
                "prob_loss_pct": p.prob_loss_pct,
            }
            for p in self.yearly_projections
        ]
        record["model_ranking"] = [dict(r) for r in self.model_ranking]
        record["recommendations"] = {
            "risk_level": self.recommendations.risk_level,
            "return_level": self.recommendations.return_level,
            "risk_adjusted_score": self.recommendations.risk_adjusted_score,
            "confidence": self.recommendations.confidence,
        }
        record["config"] = self.config.model_dump(mode="json")
        return nan_to_none(record)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_run(
    sim_input: SimulationInput,
    config: SimulationConfig,
    models: Sequence[SimModel] = ALL_MODELS,
) -> None:
    """Fail fast on inputs no model can recover from."""
    if not isinstance(sim_input, SimulationInput):
        raise InvalidInputError(f"expected SimulationInput, got {type(sim_input).__name__}")

    if (
        SimModel.BOOTSTRAP in models
        and not sim_input.historical_returns
        and not config.bootstrap.synthetic_fallback
    ):
        raise InvalidInputError(
            "bootstrap needs historical_returns when synthetic fallback is disabled"
        )

    for name, weight in config.weights.items():
        if not np.isfinite(weight):
            raise InvalidInputError(f"weight for {name!r} must be finite, got {weight!r}")


# ---------------------------------------------------------------------------
# Single horizon
# ---------------------------------------------------------------------------


def run_models(
    sim_input: SimulationInput,
    config: SimulationConfig,
    source: RandomSource,
    models: Sequence[SimModel] = ALL_MODELS,
) -> dict[str, PathSet]:
    """Run each model on its own child stream and collect PathSets.

    Child streams are keyed by (horizon, model) so a model's output does not
    depend on which other models run or in what order.
    """
    model_paths: dict[str, PathSet] = {}

    for model in models:
        child = source.spawn(f"{config.horizon_years}:{model.value}")
        started = time.perf_counter()
        try:
            paths = MODEL_RUNNERS[model](sim_input, config, child)
        except InvalidInputError:
            raise
        except Exception as e:
            logger.warning("Model %s failed: %s", model.value, e)
            continue

        logger.debug(
            "Model %s: %d paths over %dy in %.3fs",
            model.value, len(paths), config.horizon_years, time.perf_counter() - started,
        )
        model_paths[model.value] = paths

    return model_paths


def run_ensemble(
    sim_input: SimulationInput,
    config: SimulationConfig | None = None,
    source: RandomSource | None = None,
    models: Sequence[SimModel] = ALL_MODELS,
) -> EnsembleResult:
    """Run all models for ``config.horizon_years`` and combine them.

    Args:
        sim_input: Validated asset state.
        config: Simulation parameters (default: SimulationConfig()).
        source: Random source; pass a seeded one for reproducible output.
        models: Which models to run (default: all six).

    Returns:
        EnsembleResult with combined and per-model statistics.
    """
    config = config or SimulationConfig()
    source = source or RandomSource()
    validate_run(sim_input, config, models)

    current_value = sim_input.current_value
    model_paths = run_models(sim_input, config, source, models)

    combined, warnings = combine_paths(model_paths, config.weights)
    model_statistics = {
        name: compute_statistics(paths, current_value) for name, paths in model_paths.items()
    }

    agreement = model_agreement_score(
        [s.growth.median_pct for s in model_statistics.values()]
    )
    if agreement < LOW_AGREEMENT:
        logger.warning(
            "Low model agreement at %dy horizon: %.1f (models disagree on median growth)",
            config.horizon_years, agreement,
        )

    return EnsembleResult(
        horizon_years=config.horizon_years,
        current_value=current_value,
        paths=combined,
        statistics=compute_statistics(combined, current_value),
        model_paths=model_paths,
        model_statistics=model_statistics,
        weights=dict(config.weights),
        agreement_score=agreement,
        warnings=tuple(warnings),
    )


# ---------------------------------------------------------------------------
# Multi-horizon entry point
# ---------------------------------------------------------------------------


def run_valuation(
    sim_input: SimulationInput,
    config: SimulationConfig | None = None,
    seed: int | None = None,
    models: Sequence[SimModel] = ALL_MODELS,
    max_workers: int = 1,
) -> ValuationReport:
    """Run the ensemble for the primary horizon and every year up to it.

    Each horizon is simulated independently (not sliced from one long run)
    so age-tier logic is evaluated consistently for its own length.

    Args:
        sim_input: Validated asset state.
        config: Simulation parameters; ``horizon_years`` is the primary horizon.
        seed: Seed for reproducible output; None for a fresh run.
        models: Which models to run (default: all six).
        max_workers: Horizons simulated concurrently (1 = sequential).

    Returns:
        ValuationReport with yearly projections and recommendations.
    """
    config = config or SimulationConfig()
    validate_run(sim_input, config, models)

    source = RandomSource(seed)
    primary_years = config.horizon_years
    years = list(range(1, primary_years + 1)) or [primary_years]

    # Spawned up front so unseeded runs never share a generator across threads
    horizon_sources = {y: source.spawn(f"horizon:{y}") for y in years}

    def _run(year: int) -> EnsembleResult:
        return run_ensemble(
            sim_input,
            config.model_copy(update={"horizon_years": year}),
            horizon_sources[year],
            models,
        )

    logger.info(
        "Running %d models x %d horizons (%d paths, value=%.2f)",
        len(models), len(years), config.num_paths, sim_input.current_value,
    )

    if max_workers > 1 and len(years) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            results = dict(zip(years, executor.map(_run, years)))
    else:
        results = {year: _run(year) for year in years}

    primary = results[primary_years]
    projections = tuple(
        YearlyProjection(
            year=year,
            median=result.statistics.median,
            growth_pct=result.statistics.growth.median_pct,
            ci80=result.statistics.ci80,
            prob_loss_pct=result.statistics.risk.prob_loss_pct,
        )
        for year, result in sorted(results.items())
        if year >= 1
    )

    return ValuationReport(
        primary=primary,
        yearly_projections=projections,
        model_ranking=rank_models(primary.model_statistics),
        recommendations=compute_recommendations(primary.statistics, primary.agreement_score),
        config=config,
    )


# ---------------------------------------------------------------------------
# Agreement, ranking and recommendations
# ---------------------------------------------------------------------------


def model_agreement_score(growths: Sequence[float]) -> float:
    """Agreement of per-model median growth rates, in [0, 100].

    score = 100 − std(g) / mean(|g|) × 100, clamped to [0, 100].
    When mean(|g|) is effectively zero the ratio is undefined: identical
    growths score 100, anything else scores 0.
    """
    g = np.asarray([x for x in growths if np.isfinite(x)], dtype=float)
    if len(g) < 2:
        return 100.0

    spread = float(np.std(g))
    magnitude = float(np.mean(np.abs(g)))

    if magnitude < AGREEMENT_EPSILON:
        return 100.0 if spread < AGREEMENT_EPSILON else 0.0

    score = 100.0 - spread / magnitude * 100.0
    return float(np.clip(score, 0.0, 100.0))


def rank_models(model_statistics: dict[str, Statistics]) -> tuple[dict[str, Any], ...]:
    """Models ordered by median growth, highest first."""
    ranked = sorted(
        model_statistics.items(),
        key=lambda item: item[1].growth.median_pct,
        reverse=True,
    )
    return tuple(
        {"model": name, "median": s.median, "growth_pct": s.growth.median_pct}
        for name, s in ranked
    )


def compute_recommendations(stats: Statistics, agreement: float) -> Recommendations:
    """Derive rating labels purely from ensemble risk/return figures."""
    prob_loss = stats.risk.prob_loss_pct
    median_pct = stats.growth.median_pct

    risk_level = next((label for bound, label in RISK_LEVELS if prob_loss < bound), "HIGH")
    return_level = next(
        (label for bound, label in RETURN_LEVELS if median_pct > bound), "LOW"
    )

    if agreement > HIGH_AGREEMENT:
        confidence = "high"
    elif agreement > LOW_AGREEMENT:
        confidence = "moderate"
    else:
        confidence = "low"

    return Recommendations(
        risk_level=risk_level,
        return_level=return_level,
        risk_adjusted_score=median_pct / max(prob_loss, MIN_LOSS_PCT_FOR_SCORE),
        confidence=confidence,
    )
