"""Heightmap generation: fractal noise reshaped by per-biome height curves."""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

import numpy as np
import structlog
from numpy.typing import NDArray

from ..biomes import BiomeCell
from .config import NoiseConfig
from .grid import as_grid
from .noise import NoiseSource, fractal_noise

logger = structlog.get_logger()


class CurveMode(str, Enum):
    """How a height curve maps raw noise into its band."""

    LERP = "lerp"
    CLAMP = "clamp"


@dataclass(frozen=True)
class HeightCurve:
    """Maps raw fractal noise into a biome's elevation band.

    ``lerp`` computes ``lo + (hi - lo) * t``; ``clamp`` limits t to [lo, hi].
    """

    lo: float
    hi: float
    mode: CurveMode = CurveMode.LERP

    def apply(self, values: NDArray[np.float32]) -> NDArray[np.float32]:
        """Apply the curve elementwise."""
        if self.mode == CurveMode.CLAMP:
            return np.clip(values, self.lo, self.hi)
        return self.lo + (self.hi - self.lo) * values

    def __call__(self, value: float) -> float:
        return float(self.apply(np.float32(value)))


HEIGHT_CURVES: dict[BiomeCell, HeightCurve] = {
    BiomeCell.OCEAN: HeightCurve(0.0, 0.0, CurveMode.CLAMP),
    BiomeCell.DEEP_OCEAN: HeightCurve(0.0, 0.0),
    BiomeCell.SNOWY_FOREST: HeightCurve(0.2, 0.7),
    BiomeCell.MOUNTAIN: HeightCurve(0.7, 1.0),
    BiomeCell.PLAINS: HeightCurve(0.2, 0.5),
    BiomeCell.BEACH: HeightCurve(0.03, 0.3),
    BiomeCell.COLD_BEACH: HeightCurve(0.03, 0.3),
    BiomeCell.DESERT: HeightCurve(0.2, 0.6),
    BiomeCell.RIVER: HeightCurve(0.1, 0.4),
    BiomeCell.TAIGA: HeightCurve(0.25, 0.65),
    BiomeCell.FOREST: HeightCurve(0.2, 0.7),
    BiomeCell.SWAMP: HeightCurve(0.05, 0.2),
    BiomeCell.TUNDRA: HeightCurve(0.25, 0.65),
    BiomeCell.RAINFOREST: HeightCurve(0.2, 0.55),
    BiomeCell.WOODLAND: HeightCurve(0.3, 0.5),
    BiomeCell.SAVANNAH: HeightCurve(0.2, 0.5),
    BiomeCell.HIGHLAND: HeightCurve(0.3, 0.99),
    BiomeCell.ICE_PLAINS: HeightCurve(0.1, 0.5),
    BiomeCell.ICE: HeightCurve(0.2, 0.9),
    BiomeCell.SWAMP_SHORE: HeightCurve(0.05, 0.25),
}


def interpolated_height(
    value: float,
    biome: BiomeCell | None,
    curves: Mapping[BiomeCell, HeightCurve] = HEIGHT_CURVES,
) -> float:
    """Reshape one raw noise value for a biome.

    Biomes without a curve keep the raw value.
    """
    curve = curves.get(biome) if biome is not None else None
    return value if curve is None else curve(value)


def apply_height_curves(
    raw: NDArray[np.float32],
    biomes: NDArray[np.uint8],
    curves: Mapping[BiomeCell, HeightCurve] = HEIGHT_CURVES,
) -> NDArray[np.float32]:
    """Reshape raw noise cell by cell using each cell's biome curve.

    Cells whose code has no curve, including unknown codes, keep their raw
    value. The result is not clamped.
    """
    result = raw.astype(np.float32, copy=True)
    for biome, curve in curves.items():
        mask = biomes == biome.code
        if mask.any():
            result[mask] = curve.apply(raw[mask])
    return result


def generate_height_grid(
    biomes: NDArray[np.uint8],
    noise_config: NoiseConfig,
    scale: float | None = None,
    noise: NoiseSource | None = None,
    curves: Mapping[BiomeCell, HeightCurve] = HEIGHT_CURVES,
) -> NDArray[np.float32]:
    """Generate a height grid matching a finished biome grid.

    Args:
        biomes: Grid of biome codes.
        noise_config: Octave parameters.
        scale: Cells per noise unit; overrides ``noise_config.base_scale``.
        noise: Noise source to sample; defaults to an unshifted source with
            seed 0.
        curves: Per-biome height curves.

    Returns:
        float32 grid of the same shape with values in [0, 1].

    Raises:
        GridShapeError: If the biome grid is empty or not 2D.
        ConfigurationError: If scale or octaves are degenerate.
    """
    biomes = as_grid(biomes)
    height, width = biomes.shape
    noise = noise or NoiseSource(0)

    raw = fractal_noise(width, height, noise, noise_config, scale)
    heights = np.clip(apply_height_curves(raw, biomes, curves), 0.0, 1.0)

    logger.debug(
        "height_grid_generated",
        width=width,
        height=height,
        octaves=noise_config.octaves,
        mean=round(float(heights.mean()), 4),
    )
    return heights.astype(np.float32)
