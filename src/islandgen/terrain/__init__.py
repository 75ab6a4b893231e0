"""Procedural terrain generation package.

This package grows an island biome map with a cellular automaton, derives
a heightmap from biome-shaped fractal noise and colors every cell for
rendering.
"""

from .colorizer import PALETTE, BiomeColor, color_for, colorize
from .config import (
    AutomatonConfig,
    BlurConfig,
    ColorConfig,
    NoiseConfig,
    Stage,
    TerrainConfig,
)
from .generator import GenerationResult, biome_counts, generate_terrain
from .heightmap import HEIGHT_CURVES, HeightCurve, generate_height_grid
from .noise import NoiseSource, fractal_noise
from .pipeline import (
    generate_biome_grid,
    island_pipeline,
    output_size,
    run_pipeline,
)
from .rng import RandomStream
from .smoothing import get_gaussian_filter, smooth_heights
from .validation import ValidationResult, validate_terrain

__all__ = [
    "AutomatonConfig",
    "BiomeColor",
    "BlurConfig",
    "ColorConfig",
    "GenerationResult",
    "HEIGHT_CURVES",
    "HeightCurve",
    "NoiseConfig",
    "NoiseSource",
    "PALETTE",
    "RandomStream",
    "Stage",
    "TerrainConfig",
    "ValidationResult",
    "biome_counts",
    "color_for",
    "colorize",
    "fractal_noise",
    "generate_biome_grid",
    "generate_height_grid",
    "generate_terrain",
    "get_gaussian_filter",
    "island_pipeline",
    "output_size",
    "run_pipeline",
    "smooth_heights",
    "validate_terrain",
]
