"""Biome categories and their grid encoding."""

from enum import Enum


class BiomeCell(str, Enum):
    """Cell categories produced by the biome automaton.

    Members are stored in grids as uint8 codes in declaration order, so new
    members must be appended at the end.
    """

    OCEAN = "ocean"
    DEEP_OCEAN = "deep_ocean"
    LAND = "land"
    WARM = "warm"
    COLD = "cold"
    FREEZING = "freezing"
    TEMPERATE = "temperate"
    DESERT = "desert"
    PLAINS = "plains"
    RAINFOREST = "rainforest"
    SAVANNAH = "savannah"
    SWAMP = "swamp"
    WOODLAND = "woodland"
    FOREST = "forest"
    HIGHLAND = "highland"
    TAIGA = "taiga"
    SNOWY_FOREST = "snowy_forest"
    TUNDRA = "tundra"
    ICE_PLAINS = "ice_plains"
    MOUNTAIN = "mountain"
    BEACH = "beach"
    COLD_BEACH = "cold_beach"
    SWAMP_SHORE = "swamp_shore"
    RIVER = "river"
    ICE = "ice"

    @property
    def code(self) -> int:
        """uint8 value used to store this category in a grid."""
        return _CODES[self]

    @property
    def is_water(self) -> bool:
        """Whether this category is open water."""
        return self in WATER_BIOMES

    @property
    def is_climate_stage(self) -> bool:
        """Whether this category only exists while the automaton runs."""
        return self in CLIMATE_STAGE_BIOMES

    @property
    def can_transform(self) -> bool:
        """Whether island-growth passes may still rewrite this category."""
        return self not in NON_TRANSFORMABLE_BIOMES


_CODES = {biome: index for index, biome in enumerate(BiomeCell)}
_BY_CODE = {index: biome for biome, index in _CODES.items()}

WATER_BIOMES = frozenset({BiomeCell.OCEAN, BiomeCell.DEEP_OCEAN})

TEMPERATURE_BIOMES = frozenset({
    BiomeCell.WARM,
    BiomeCell.COLD,
    BiomeCell.FREEZING,
    BiomeCell.TEMPERATE,
})

CLIMATE_STAGE_BIOMES = TEMPERATURE_BIOMES | {BiomeCell.LAND}

# Everything except raw Ocean/Land is frozen for the island-growth passes
NON_TRANSFORMABLE_BIOMES = frozenset(BiomeCell) - {BiomeCell.OCEAN, BiomeCell.LAND}

TERMINAL_BIOMES = frozenset(BiomeCell) - CLIMATE_STAGE_BIOMES

COLD_SHORE_BIOMES = frozenset({
    BiomeCell.TUNDRA,
    BiomeCell.ICE_PLAINS,
    BiomeCell.TAIGA,
    BiomeCell.SNOWY_FOREST,
    BiomeCell.DEEP_OCEAN,
})


def biome_code(biome: BiomeCell) -> int:
    """Convert a BiomeCell to its uint8 grid value."""
    return _CODES[biome]


def biome_from_code(value: int) -> BiomeCell | None:
    """Convert a uint8 grid value back to a BiomeCell.

    Returns None for codes that do not name a known category.
    """
    return _BY_CODE.get(int(value))


def codes_for(biomes: frozenset[BiomeCell] | set[BiomeCell]) -> list[int]:
    """Grid values for a set of categories, sorted for use with np.isin."""
    return sorted(_CODES[biome] for biome in biomes)
