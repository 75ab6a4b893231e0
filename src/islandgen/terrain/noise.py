"""Coherent noise sampling and fractal accumulation for heightmaps."""

import numpy as np
from numpy.typing import NDArray
from opensimplex import OpenSimplex

from ..exceptions import ConfigurationError
from .config import NoiseConfig
from .rng import RandomStream

# Offsets are drawn from this range so different runs sample different regions
_OFFSET_RANGE = 1000.0


class NoiseSource:
    """Seeded 2D gradient noise, sampled at arbitrary real coordinates.

    Values lie roughly in [-1, 1] and vary smoothly with the coordinates.
    The same seed and offset always produce the same values.
    """

    def __init__(self, seed: int, offset_x: float = 0.0, offset_y: float = 0.0):
        self.seed = seed
        self.offset_x = offset_x
        self.offset_y = offset_y
        self._simplex = OpenSimplex(seed)

    @classmethod
    def from_stream(cls, rng: RandomStream) -> "NoiseSource":
        """Build a noise source whose seed and offsets come from ``rng``."""
        seed = rng.next_int(0, 2**31 - 1)
        offset_x = rng.next_float_range(0.0, _OFFSET_RANGE)
        offset_y = rng.next_float_range(0.0, _OFFSET_RANGE)
        return cls(seed, offset_x, offset_y)

    def sample_2d(self, x: float, y: float) -> float:
        """Noise value at a single point."""
        return float(self._simplex.noise2(x + self.offset_x, y + self.offset_y))

    def sample_grid(
        self,
        xs: NDArray[np.float64],
        ys: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        """Noise over the lattice spanned by ``xs`` and ``ys``.

        Args:
            xs: 1D array of x coordinates.
            ys: 1D array of y coordinates.

        Returns:
            Array of shape (len(ys), len(xs)).
        """
        return self._simplex.noise2array(xs + self.offset_x, ys + self.offset_y)


def fractal_noise(
    width: int,
    height: int,
    noise: NoiseSource,
    config: NoiseConfig,
    scale: float | None = None,
) -> NDArray[np.float32]:
    """Sum several octaves of noise over a width x height lattice.

    Cell (x, y) of octave k is sampled at ``(x / scale * f_k, y / scale * f_k)``
    and weighted by ``a_k``, where a and f start at 1 and are multiplied by
    persistence and lacunarity after each octave. The sum is not normalized.

    Args:
        width: Grid width in cells.
        height: Grid height in cells.
        noise: Noise source to sample.
        config: Octave parameters.
        scale: Cells per noise unit; defaults to ``config.base_scale``.

    Returns:
        2D array of shape (height, width).

    Raises:
        ConfigurationError: If scale is not positive or octaves is below 1.
    """
    scale = config.base_scale if scale is None else scale
    if scale <= 0:
        raise ConfigurationError(f"noise scale must be positive, got {scale}")
    if config.octaves < 1:
        raise ConfigurationError(f"octaves must be at least 1, got {config.octaves}")

    xs = np.arange(width, dtype=np.float64) / scale
    ys = np.arange(height, dtype=np.float64) / scale
    result = np.zeros((height, width), dtype=np.float64)

    amplitude = 1.0
    frequency = 1.0

    for _ in range(config.octaves):
        result += noise.sample_grid(xs * frequency, ys * frequency) * amplitude
        amplitude *= config.persistence
        frequency *= config.lacunarity

    return result.astype(np.float32)
