"""Terrain generation configuration models."""

import math
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from ..biomes import TEMPERATURE_BIOMES, BiomeCell


class Stage(str, Enum):
    """Named grid transforms available to the biome pipeline."""

    SEED = "seed"
    FUZZY_ZOOM = "fuzzy_zoom"
    ZOOM = "zoom"
    ADD_ISLAND = "add_island"
    ADD_ISLAND2 = "add_island2"
    REMOVE_TOO_MUCH_OCEAN = "remove_too_much_ocean"
    ADD_TEMPS = "add_temps"
    WARM_TO_TEMPERATE = "warm_to_temperate"
    FREEZING_TO_COLD = "freezing_to_cold"
    SURROUND_WITH_OCEAN = "surround_with_ocean"
    TEMPERATURE_TO_BIOME = "temperature_to_biome"
    DEEP_OCEAN = "deep_ocean"
    SHORE = "shore"

    @property
    def doubles_resolution(self) -> bool:
        """Whether this stage doubles the grid in both dimensions."""
        return self in (Stage.FUZZY_ZOOM, Stage.ZOOM)


class NoiseConfig(BaseModel):
    """Fractal noise accumulation parameters."""

    base_scale: float = Field(default=10.0, gt=0, description="Cells per noise unit")
    octaves: int = Field(default=4, ge=1, description="Number of octaves to sum")
    persistence: float = Field(
        default=0.5, gt=0, le=1, description="Amplitude multiplier per octave"
    )
    lacunarity: float = Field(
        default=2.0, ge=1, description="Frequency multiplier per octave"
    )


class BlurConfig(BaseModel):
    """Gaussian smoothing applied to the height grid after generation."""

    enabled: bool = Field(default=False, description="Run the smoothing pass")
    kernel_size: int = Field(default=3, ge=1, description="Interior kernel width (odd)")
    variance: float = Field(default=1.0, gt=0, description="Interior kernel variance")
    edge_aware: bool = Field(
        default=True, description="Use the wide kernel near biome boundaries"
    )
    edge_kernel_size: int = Field(
        default=7, ge=1, description="Boundary kernel width (odd)"
    )
    edge_variance: float = Field(default=4.0, gt=0, description="Boundary kernel variance")
    edge_distance: int = Field(
        default=2, ge=0, description="Cells around a biome edge that count as boundary"
    )

    @field_validator("kernel_size", "edge_kernel_size")
    @classmethod
    def _odd_size(cls, value: int) -> int:
        if value % 2 == 0:
            raise ValueError("kernel size must be odd")
        return value


class BiomeWeight(BaseModel):
    """One entry of a temperature-to-biome table."""

    biome: BiomeCell
    weight: float = Field(ge=0, le=1)


class TemperatureWeights(BaseModel):
    """Relative odds of each temperature band in the add_temps stage."""

    warm: float = Field(default=4.0, ge=0)
    cold: float = Field(default=1.0, ge=0)
    freezing: float = Field(default=1.0, ge=0)


def default_biome_tables() -> dict[BiomeCell, list[BiomeWeight]]:
    """Temperature band to biome odds used by temperature_to_biome."""
    return {
        BiomeCell.WARM: [
            BiomeWeight(biome=BiomeCell.DESERT, weight=0.2),
            BiomeWeight(biome=BiomeCell.PLAINS, weight=0.4),
            BiomeWeight(biome=BiomeCell.RAINFOREST, weight=0.18),
            BiomeWeight(biome=BiomeCell.SAVANNAH, weight=0.2),
            BiomeWeight(biome=BiomeCell.SWAMP, weight=0.02),
        ],
        BiomeCell.TEMPERATE: [
            BiomeWeight(biome=BiomeCell.WOODLAND, weight=0.2),
            BiomeWeight(biome=BiomeCell.FOREST, weight=0.55),
            BiomeWeight(biome=BiomeCell.HIGHLAND, weight=0.25),
        ],
        BiomeCell.COLD: [
            BiomeWeight(biome=BiomeCell.TAIGA, weight=0.5),
            BiomeWeight(biome=BiomeCell.SNOWY_FOREST, weight=0.5),
        ],
        BiomeCell.FREEZING: [
            BiomeWeight(biome=BiomeCell.TUNDRA, weight=0.7),
            BiomeWeight(biome=BiomeCell.ICE_PLAINS, weight=0.3),
        ],
    }


class AutomatonConfig(BaseModel):
    """Biome automaton parameters."""

    seed_size: int = Field(default=4, ge=1, description="Width of the initial seed board")
    seed_land_probability: float = Field(
        default=0.1, ge=0, le=1, description="Chance a seed cell starts as land"
    )
    probability_of_land: float = Field(
        default=0.5, ge=0, le=1, description="Land odds for the island passes"
    )
    ocean_to_land_probability: float = Field(
        default=0.35, ge=0, le=1, description="Chance open ocean is broken up"
    )
    temperature_weights: TemperatureWeights = Field(default_factory=TemperatureWeights)
    biome_tables: dict[BiomeCell, list[BiomeWeight]] = Field(
        default_factory=default_biome_tables,
        description="Temperature band to weighted biomes (missing bands use defaults)",
    )
    surround_with_ocean: bool = Field(
        default=False, description="Force the outer ring to ocean"
    )
    biome_zooms: int = Field(
        default=4, ge=0, description="Zoom passes between deep ocean and shore"
    )
    shore_zooms: int = Field(default=1, ge=0, description="Zoom passes after shore")
    stages: list[Stage] | None = Field(
        default=None, description="Explicit stage list (overrides the zoom counts)"
    )

    @field_validator("biome_tables")
    @classmethod
    def _check_biome_tables(
        cls, tables: dict[BiomeCell, list[BiomeWeight]]
    ) -> dict[BiomeCell, list[BiomeWeight]]:
        for band, entries in tables.items():
            if band not in TEMPERATURE_BIOMES:
                raise ValueError(
                    f"biome tables are keyed by temperature band, got {band.value}"
                )
            if not entries:
                raise ValueError(f"biome table for {band.value} is empty")
            total = sum(entry.weight for entry in entries)
            if not math.isclose(total, 1.0, abs_tol=1e-6):
                raise ValueError(
                    f"biome weights for {band.value} sum to {total}, expected 1.0"
                )
        # Bands left out keep their default table
        return {**default_biome_tables(), **tables}


class ColorConfig(BaseModel):
    """Terrain colorizer parameters."""

    jitter: float = Field(
        default=0.05, ge=0, le=1, description="Max random offset per color channel"
    )


class TerrainConfig(BaseModel):
    """Complete terrain generation configuration."""

    seed: int = Field(default=42, description="Random seed for reproducibility")
    width: int | None = Field(
        default=200, gt=0, description="Requested grid width (None = pipeline size)"
    )
    height: int | None = Field(
        default=200, gt=0, description="Requested grid height (None = pipeline size)"
    )
    fit_mode: Literal["resample", "crop"] = Field(
        default="resample", description="How pipeline output is fitted to width/height"
    )

    noise: NoiseConfig = Field(default_factory=NoiseConfig)
    blur: BlurConfig = Field(default_factory=BlurConfig)
    automaton: AutomatonConfig = Field(default_factory=AutomatonConfig)
    color: ColorConfig = Field(default_factory=ColorConfig)

    # Debug options
    debug_output_dir: str | None = Field(
        default=None, description="Directory for debug images (None = disabled)"
    )
