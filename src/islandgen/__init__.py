"""Procedural island terrain generator."""

from .biomes import (
    COLD_SHORE_BIOMES,
    NON_TRANSFORMABLE_BIOMES,
    TEMPERATURE_BIOMES,
    WATER_BIOMES,
    BiomeCell,
    biome_code,
    biome_from_code,
)
from .config import find_config, list_configs, load_config
from .exceptions import (
    ConfigurationError,
    GenerationCancelledError,
    GridShapeError,
    PipelineError,
    TerrainError,
)
from .terrain import (
    GenerationResult,
    TerrainConfig,
    generate_biome_grid,
    generate_height_grid,
    generate_terrain,
    validate_terrain,
)

__all__ = [
    # Biomes
    "BiomeCell",
    "WATER_BIOMES",
    "TEMPERATURE_BIOMES",
    "NON_TRANSFORMABLE_BIOMES",
    "COLD_SHORE_BIOMES",
    "biome_code",
    "biome_from_code",
    # Generation
    "TerrainConfig",
    "GenerationResult",
    "generate_terrain",
    "generate_biome_grid",
    "generate_height_grid",
    "validate_terrain",
    # Config files
    "load_config",
    "find_config",
    "list_configs",
    # Exceptions
    "TerrainError",
    "GridShapeError",
    "ConfigurationError",
    "PipelineError",
    "GenerationCancelledError",
]
