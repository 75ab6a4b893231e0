"""Shared test fixtures for islandgen tests."""

import numpy as np
import pytest

from islandgen.biomes import BiomeCell
from islandgen.terrain.config import AutomatonConfig, TerrainConfig
from islandgen.terrain.rng import RandomStream


def codes(*rows: str) -> np.ndarray:
    """Build a biome grid from rows of one-letter tags.

    O = ocean, D = deep ocean, L = land, W = warm, C = cold, F = freezing,
    T = temperate, P = plains, S = swamp, G = taiga, B = beach.
    """
    tags = {
        "O": BiomeCell.OCEAN,
        "D": BiomeCell.DEEP_OCEAN,
        "L": BiomeCell.LAND,
        "W": BiomeCell.WARM,
        "C": BiomeCell.COLD,
        "F": BiomeCell.FREEZING,
        "T": BiomeCell.TEMPERATE,
        "P": BiomeCell.PLAINS,
        "S": BiomeCell.SWAMP,
        "G": BiomeCell.TAIGA,
        "B": BiomeCell.BEACH,
    }
    return np.array([[tags[ch].code for ch in row] for row in rows], dtype=np.uint8)


@pytest.fixture
def rng() -> RandomStream:
    """Random stream with a fixed seed."""
    return RandomStream(1234)


@pytest.fixture
def small_automaton() -> AutomatonConfig:
    """Automaton config producing a 64x64 grid."""
    return AutomatonConfig(biome_zooms=0, shore_zooms=0)


@pytest.fixture
def small_config(small_automaton: AutomatonConfig) -> TerrainConfig:
    """Terrain config that keeps the pipeline output at 64x64."""
    return TerrainConfig(seed=42, width=None, height=None, automaton=small_automaton)


@pytest.fixture
def island_grid() -> np.ndarray:
    """7x7 plains island in open ocean, ringed by one ocean cell."""
    return codes(
        "OOOOOOO",
        "OOOOOOO",
        "OOPPPOO",
        "OOPPPOO",
        "OOPPPOO",
        "OOOOOOO",
        "OOOOOOO",
    )


@pytest.fixture
def make_grid():
    """Factory building biome grids from rows of one-letter tags."""
    return codes
