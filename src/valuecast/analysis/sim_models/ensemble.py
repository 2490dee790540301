"""Ensemble combiner for multiple simulation models.

Per-index weighted sum: combined[i] = Σ w[model] · paths[model][i].
Combining by path index (not by pooled samples or summary statistics)
keeps the combination linear and exactly reproducible.
"""

import logging
from typing import Mapping

import numpy as np

from . import PathSet

logger = logging.getLogger(__name__)


def combine_paths(
    path_sets: Mapping[str, PathSet],
    weights: Mapping[str, float],
) -> tuple[PathSet, list[str]]:
    """Combine model PathSets into one ensemble PathSet.

    Weights are applied as given (not renormalised). A model without a
    non-zero weight, or a weighted model without results, is skipped and
    reported in the returned warnings instead of raising.

    Args:
        path_sets: {model_name: PathSet}; all PathSets must have equal length.
        weights: {model_name: weight}.

    Returns:
        (combined PathSet, configuration warnings)
    """
    warnings: list[str] = []

    lengths = {name: len(paths) for name, paths in path_sets.items()}
    if len(set(lengths.values())) > 1:
        raise ValueError(f"PathSets must have equal length, got {lengths}")

    for name in weights:
        if name not in path_sets:
            warnings.append(f"weighted model '{name}' has no results; skipped")

    used: list[str] = []
    for name in path_sets:
        if not weights.get(name):
            warnings.append(f"model '{name}' has no weight; skipped")
        else:
            used.append(name)

    n = next(iter(lengths.values()), 0)
    combined = np.zeros(n, dtype=float)
    for name in used:
        combined += weights[name] * np.asarray(path_sets[name], dtype=float)

    for message in warnings:
        logger.warning("Ensemble configuration: %s", message)

    total_weight = sum(weights[name] for name in used)
    if used and abs(total_weight - 1.0) > 1e-6:
        logger.debug("Ensemble: applied weights sum to %.4f", total_weight)

    return combined, warnings
