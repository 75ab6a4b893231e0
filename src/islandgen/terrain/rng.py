"""Seedable random stream shared by every stage of a generation run."""

from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray


class RandomStream:
    """Deterministic pseudo-random source for one generation run.

    Wraps a numpy Generator so that the same seed and the same sequence of
    calls always yields the same values, across processes as well. The
    scalar methods serve per-cell callers such as the colorizer; the array
    methods let the grid passes draw one value per cell in a single call.

    A stream is not thread-safe and must not be shared between unrelated runs.
    """

    def __init__(self, seed: int = 0):
        self._seed = seed
        self._rng = np.random.default_rng(seed)

    @property
    def initial_seed(self) -> int:
        """Seed the stream was last (re)seeded with."""
        return self._seed

    def seed(self, seed: int) -> None:
        """Reset the stream to the start of the sequence for ``seed``."""
        self._seed = seed
        self._rng = np.random.default_rng(seed)

    def next_float(self) -> float:
        """Uniform float in [0, 1)."""
        return float(self._rng.random())

    def next_int(self, lo: int, hi: int) -> int:
        """Uniform integer in [lo, hi], both ends inclusive."""
        if hi < lo:
            raise ValueError(f"empty range [{lo}, {hi}]")
        return int(self._rng.integers(lo, hi, endpoint=True))

    def next_float_range(self, lo: float, hi: float) -> float:
        """Uniform float between lo and hi."""
        return float(self._rng.uniform(lo, hi))

    def floats(self, shape: int | tuple[int, ...]) -> NDArray[np.float64]:
        """Array of uniform floats in [0, 1)."""
        return self._rng.random(shape)

    def ints(self, lo: int, hi: int, shape: int | tuple[int, ...]) -> NDArray[np.int64]:
        """Array of uniform integers in [lo, hi], both ends inclusive."""
        if hi < lo:
            raise ValueError(f"empty range [{lo}, {hi}]")
        return self._rng.integers(lo, hi, size=shape, endpoint=True)

    def uniform(
        self, lo: float, hi: float, shape: int | tuple[int, ...]
    ) -> NDArray[np.float64]:
        """Array of uniform floats between lo and hi."""
        return self._rng.uniform(lo, hi, size=shape)

    def choice(
        self,
        values: Sequence[int] | NDArray,
        size: int | tuple[int, ...],
        p: Sequence[float] | NDArray | None = None,
    ) -> NDArray:
        """Draw ``size`` values from ``values`` with optional probabilities."""
        return self._rng.choice(np.asarray(values), size=size, p=p)
