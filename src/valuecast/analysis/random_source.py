"""Random variate engine shared by every path simulator.

Wraps an injectable ``numpy.random.Generator`` and derives normal and
Student-t variates from its uniform stream:
- standard normal: Box–Muller transform
- Student-t: normal / sqrt(chi²(df) / df), chi² built from df squared normals

A seeded source reproduces bit-identical draws. ``spawn`` derives
independent, key-stable child streams so that each (horizon, model) pair
draws from its own stream regardless of execution order.
"""

import hashlib
import logging

import numpy as np

logger = logging.getLogger(__name__)

LOG_GUARD = 1e-10  # keeps log(u1) finite when u1 == 0
STUDENT_T_GENERATION_BOUND = 10.0
STUDENT_T_SHOCK_BOUND = 4.0


def _shape(size: int | tuple[int, ...] | None) -> tuple[int, ...]:
    if size is None:
        return ()
    if isinstance(size, (int, np.integer)):
        return (int(size),)
    return tuple(size)


class RandomSource:
    """Seedable source of uniform, normal and Student-t variates."""

    def __init__(
        self,
        seed: int | None = None,
        generator: np.random.Generator | None = None,
    ):
        self.seed = seed
        self._rng = generator if generator is not None else np.random.default_rng(seed)

    def spawn(self, key: str) -> "RandomSource":
        """Derive an independent child stream keyed by ``key``.

        With a seed, the child depends only on (seed, key), mirroring the
        hashlib-keyed per-model seeding of the orchestrator. Without a seed,
        the child is drawn from this source's own stream.
        """
        if self.seed is not None:
            child_seed = int(
                hashlib.sha256(f"{self.seed}:{key}".encode()).hexdigest(), 16
            ) % (2**63)
        else:
            child_seed = int(self._rng.integers(2**63))
        return RandomSource(seed=child_seed)

    def uniform(self, size: int | tuple[int, ...] | None = None):
        """Uniform draws on [0, 1)."""
        return self._rng.random(size)

    def standard_normal(self, size: int | tuple[int, ...] | None = None):
        """Standard normal draws via the Box–Muller transform."""
        u1 = self._rng.random(size)
        u2 = self._rng.random(size)
        return np.sqrt(-2.0 * np.log(u1 + LOG_GUARD)) * np.cos(2.0 * np.pi * u2)

    def student_t(self, df: int, size: int | tuple[int, ...] | None = None):
        """Student-t draws with ``df`` degrees of freedom, clamped to ±10."""
        if df < 1:
            raise ValueError(f"degrees of freedom must be >= 1, got {df}")

        shape = _shape(size)
        z = np.asarray(self.standard_normal(shape))
        squares = np.asarray(self.standard_normal((df, *shape))) ** 2
        chi2 = np.maximum(np.sum(squares, axis=0), 1e-12)

        result = np.clip(
            z / np.sqrt(chi2 / df),
            -STUDENT_T_GENERATION_BOUND,
            STUDENT_T_GENERATION_BOUND,
        )
        if size is None:
            return float(result)
        return result

    def student_t_shock(self, df: int, size: int | tuple[int, ...] | None = None):
        """Student-t draws clamped to ±4 for use as a price shock."""
        shock = np.clip(
            self.student_t(df, size), -STUDENT_T_SHOCK_BOUND, STUDENT_T_SHOCK_BOUND
        )
        if size is None:
            return float(shock)
        return shock
