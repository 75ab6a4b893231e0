"""Terrain coloring: per-biome palettes with height branches and jitter."""

from collections.abc import Mapping
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from ..biomes import BiomeCell, biome_from_code
from .grid import as_grid, require_same_shape
from .rng import RandomStream

RGB = tuple[float, float, float]

WHITE: RGB = (1.0, 1.0, 1.0)
BLACK: RGB = (0.0, 0.0, 0.0)
UNKNOWN_COLOR: RGB = (1.0, 0.0, 0.0)


@dataclass(frozen=True)
class BiomeColor:
    """Palette entry: ``base`` below ``threshold``, ``high`` strictly above it."""

    base: RGB
    high: RGB | None = None
    threshold: float = 1.0

    def pick(self, height: float) -> RGB:
        if self.high is not None and height > self.threshold:
            return self.high
        return self.base


PALETTE: dict[BiomeCell, BiomeColor] = {
    BiomeCell.OCEAN: BiomeColor((0.0, 0.2509, 0.501)),
    BiomeCell.DEEP_OCEAN: BiomeColor((0.05, 0.19, 0.57)),
    BiomeCell.TUNDRA: BiomeColor(WHITE),
    BiomeCell.SNOWY_FOREST: BiomeColor((0.85, 0.85, 0.85)),
    BiomeCell.MOUNTAIN: BiomeColor((0.5, 0.5, 0.5), high=WHITE, threshold=0.8),
    BiomeCell.PLAINS: BiomeColor((0.24, 0.70, 0.44)),
    BiomeCell.BEACH: BiomeColor((0.82, 0.66, 0.42)),
    BiomeCell.COLD_BEACH: BiomeColor((0.627, 0.706, 0.784)),
    BiomeCell.DESERT: BiomeColor((0.82, 0.66, 0.42)),
    BiomeCell.RIVER: BiomeColor((0.50, 0.73, 0.93)),
    BiomeCell.TAIGA: BiomeColor((0.20, 0.40, 0.20), high=(0.52, 0.37, 0.26), threshold=0.5),
    BiomeCell.RAINFOREST: BiomeColor((0.13, 0.55, 0.13)),
    BiomeCell.SAVANNAH: BiomeColor((0.85, 0.75, 0.45)),
    BiomeCell.SWAMP: BiomeColor((0.47, 0.60, 0.33)),
    BiomeCell.WOODLAND: BiomeColor((0.30, 0.50, 0.28)),
    BiomeCell.FOREST: BiomeColor((0.25, 0.40, 0.18)),
    BiomeCell.HIGHLAND: BiomeColor((0.502, 0.502, 0.502), high=WHITE, threshold=0.75),
    BiomeCell.ICE_PLAINS: BiomeColor((0.90, 0.90, 0.98)),
    BiomeCell.SWAMP_SHORE: BiomeColor((0.306, 0.369, 0.224)),
    BiomeCell.LAND: BiomeColor(BLACK),
    BiomeCell.ICE: BiomeColor((0.749, 0.780, 0.839)),
}


def base_color(
    height: float,
    biome: BiomeCell | None,
    palette: Mapping[BiomeCell, BiomeColor] = PALETTE,
) -> RGB:
    """Palette color for a cell before jitter; red for unknown biomes."""
    entry = palette.get(biome) if biome is not None else None
    return UNKNOWN_COLOR if entry is None else entry.pick(height)


def color_for(
    height: float,
    biome: BiomeCell | None,
    rng: RandomStream,
    jitter: float = 0.05,
    palette: Mapping[BiomeCell, BiomeColor] = PALETTE,
) -> RGB:
    """Display color for one cell.

    Each channel is offset by a uniform draw in [-jitter, jitter] and
    clamped to [0, 1]. Three draws are taken from ``rng`` per call.
    """
    color = base_color(height, biome, palette)
    return tuple(
        min(max(channel + rng.next_float_range(-jitter, jitter), 0.0), 1.0)
        for channel in color
    )


def colorize(
    heights: NDArray[np.float32],
    biomes: NDArray[np.uint8],
    rng: RandomStream,
    jitter: float = 0.05,
    palette: Mapping[BiomeCell, BiomeColor] = PALETTE,
) -> NDArray[np.float32]:
    """Color a whole grid.

    Args:
        heights: Height grid in [0, 1].
        biomes: Biome grid of the same shape.
        rng: Random stream supplying the jitter.
        jitter: Max offset per channel.
        palette: Per-biome colors.

    Returns:
        float32 array of shape (height, width, 3) with values in [0, 1].

    Raises:
        GridShapeError: If the grids are malformed or differ in shape.
    """
    heights = as_grid(heights, dtype=np.float32)
    biomes = as_grid(biomes)
    require_same_shape(heights, biomes, "height and biome grids")

    colors = np.empty(heights.shape + (3,), dtype=np.float32)
    colors[:] = UNKNOWN_COLOR

    for code in np.unique(biomes):
        biome = biome_from_code(code)
        entry = palette.get(biome) if biome is not None else None
        if entry is None:
            continue

        mask = biomes == code
        colors[mask] = entry.base
        if entry.high is not None:
            colors[mask & (heights > entry.threshold)] = entry.high

    if jitter > 0:
        colors += rng.uniform(-jitter, jitter, colors.shape).astype(np.float32)

    return np.clip(colors, 0.0, 1.0)
