"""Biome automaton: grid transforms from a tiny random seed to named biomes.

Every transform reads its input grid and returns a new one; the input is
never mutated, so neighbor checks always see the previous stage's values.
"""

from collections.abc import Mapping, Sequence

import numpy as np
from numpy.typing import NDArray

from ..biomes import (
    COLD_SHORE_BIOMES,
    NON_TRANSFORMABLE_BIOMES,
    TEMPERATURE_BIOMES,
    WATER_BIOMES,
    BiomeCell,
    codes_for,
)
from ..exceptions import ConfigurationError
from .config import BiomeWeight, default_biome_tables
from .grid import (
    EIGHT_NEIGHBORS,
    FOUR_NEIGHBORS,
    all_neighbors_in,
    any_neighbor_in,
    edge_cells,
    iter_neighbors,
    upscale,
)
from .rng import RandomStream

OCEAN = BiomeCell.OCEAN.code
DEEP_OCEAN = BiomeCell.DEEP_OCEAN.code
LAND = BiomeCell.LAND.code
WARM = BiomeCell.WARM.code
COLD = BiomeCell.COLD.code
FREEZING = BiomeCell.FREEZING.code
TEMPERATE = BiomeCell.TEMPERATE.code

# Zoom offsets lean towards 0 so boundaries stay coherent
ZOOM_OFFSETS = (-1, -1, 0, 0, 0, 0, 0, 0, 0, 0, 1, 1)

_WATER_CODES = codes_for(WATER_BIOMES)
_FROZEN_CODES = codes_for(NON_TRANSFORMABLE_BIOMES)

BiomeTable = Sequence[BiomeWeight] | Sequence[tuple[BiomeCell, float]]


def seed_board(
    rng: RandomStream,
    size: int = 4,
    land_probability: float = 0.1,
) -> NDArray[np.uint8]:
    """Create the initial size x size ocean board with scattered land.

    Args:
        rng: Random stream for the run.
        size: Board width and height.
        land_probability: Chance each cell starts as land.

    Returns:
        Board of biome codes.
    """
    if size < 1:
        raise ConfigurationError(f"seed size must be at least 1, got {size}")

    rolls = rng.floats((size, size))
    board = np.full((size, size), OCEAN, dtype=np.uint8)
    board[rolls <= land_probability] = LAND
    return board


def _perturb_edges(
    upscaled: NDArray[np.uint8],
    offsets: NDArray[np.int64],
) -> NDArray[np.uint8]:
    """Copy into each edge cell the value found at its (dy, dx) offset."""
    height, width = upscaled.shape
    rows, cols = np.nonzero(edge_cells(upscaled))

    src_rows = np.clip(rows + offsets[:, 0], 0, height - 1)
    src_cols = np.clip(cols + offsets[:, 1], 0, width - 1)

    result = upscaled.copy()
    result[rows, cols] = upscaled[src_rows, src_cols]
    return result


def _edge_count(upscaled: NDArray[np.uint8]) -> int:
    return int(np.count_nonzero(edge_cells(upscaled)))


def fuzzy_zoom(grid: NDArray[np.uint8], rng: RandomStream) -> NDArray[np.uint8]:
    """Double resolution, jittering edge cells by a uniform offset in {-1, 0, 1}."""
    upscaled = upscale(grid)
    offsets = rng.ints(-1, 1, (_edge_count(upscaled), 2))
    return _perturb_edges(upscaled, offsets)


def zoom(grid: NDArray[np.uint8], rng: RandomStream) -> NDArray[np.uint8]:
    """Double resolution, jittering edge cells with offsets biased towards 0."""
    upscaled = upscale(grid)
    offsets = rng.choice(ZOOM_OFFSETS, (_edge_count(upscaled), 2))
    return _perturb_edges(upscaled, offsets)


def _transformable_edges(grid: NDArray[np.uint8]) -> NDArray[np.bool_]:
    return edge_cells(grid) & ~np.isin(grid, _FROZEN_CODES)


def add_island(
    grid: NDArray[np.uint8],
    rng: RandomStream,
    probability_of_land: float = 0.5,
) -> NDArray[np.uint8]:
    """Re-roll every transformable edge cell as land or ocean.

    Grows or erodes coastlines irregularly. Cells already holding a
    temperature or biome value are left alone.
    """
    mask = _transformable_edges(grid)
    rolls = rng.floats(int(np.count_nonzero(mask)))

    result = grid.copy()
    result[mask] = np.where(rolls < probability_of_land, LAND, OCEAN)
    return result


def remove_too_much_ocean(
    grid: NDArray[np.uint8],
    rng: RandomStream,
    probability: float = 0.35,
) -> NDArray[np.uint8]:
    """Turn some fully enclosed ocean cells into land to break up open water."""
    mask = (grid == OCEAN) & all_neighbors_in(grid, [OCEAN], FOUR_NEIGHBORS)
    rolls = rng.floats(int(np.count_nonzero(mask)))

    result = grid.copy()
    result[mask] = np.where(rolls < probability, LAND, OCEAN)
    return result


def add_temps(
    grid: NDArray[np.uint8],
    rng: RandomStream,
    weights: tuple[float, float, float] = (4.0, 1.0, 1.0),
) -> NDArray[np.uint8]:
    """Assign warm, cold or freezing to every non-water cell.

    Args:
        grid: Current board.
        rng: Random stream for the run.
        weights: Relative odds of warm, cold and freezing.
    """
    odds = np.asarray(weights, dtype=np.float64)
    if odds.shape != (3,) or np.any(odds < 0) or odds.sum() <= 0:
        raise ConfigurationError(f"invalid temperature weights: {weights}")

    mask = ~np.isin(grid, _WATER_CODES)
    temps = rng.choice(
        [WARM, COLD, FREEZING], int(np.count_nonzero(mask)), p=odds / odds.sum()
    )

    result = grid.copy()
    result[mask] = temps
    return result


def add_island2(
    grid: NDArray[np.uint8],
    rng: RandomStream,
    probability: float = 0.5,
) -> NDArray[np.uint8]:
    """Let transformable edge cells adopt the dominant non-ocean neighbor.

    A transformable edge cell counts the non-ocean values among its
    4-neighbors. When one value is strictly more frequent than every other,
    the cell takes it with the given probability.
    """
    candidates = _transformable_edges(grid)
    codes = [int(code) for code in np.unique(grid) if code != OCEAN]
    if not codes or not candidates.any():
        return grid.copy()

    counts = np.zeros((len(codes),) + grid.shape, dtype=np.int8)
    for values, inside in iter_neighbors(grid, FOUR_NEIGHBORS):
        for index, code in enumerate(codes):
            counts[index] += inside & (values == code)

    best = counts.max(axis=0)
    unique_best = (counts == best).sum(axis=0) == 1
    winner = np.asarray(codes, dtype=np.uint8)[counts.argmax(axis=0)]

    mask = candidates & (best > 0) & unique_best
    rolls = rng.floats(int(np.count_nonzero(mask)))

    result = grid.copy()
    result[mask] = np.where(rolls <= probability, winner[mask], grid[mask])
    return result


def warm_to_temperate(grid: NDArray[np.uint8]) -> NDArray[np.uint8]:
    """Warm cells touching cold or freezing cells become temperate."""
    mask = (grid == WARM) & any_neighbor_in(grid, [COLD, FREEZING], FOUR_NEIGHBORS)
    result = grid.copy()
    result[mask] = TEMPERATE
    return result


def freezing_to_cold(grid: NDArray[np.uint8]) -> NDArray[np.uint8]:
    """Freezing cells touching warm or temperate cells become cold."""
    mask = (grid == FREEZING) & any_neighbor_in(grid, [WARM, TEMPERATE], FOUR_NEIGHBORS)
    result = grid.copy()
    result[mask] = COLD
    return result


def surround_with_ocean(grid: NDArray[np.uint8]) -> NDArray[np.uint8]:
    """Force the outermost rows and columns to ocean."""
    result = grid.copy()
    result[0, :] = OCEAN
    result[-1, :] = OCEAN
    result[:, 0] = OCEAN
    result[:, -1] = OCEAN
    return result


def _table_entries(entries: BiomeTable) -> tuple[list[BiomeCell], list[float]]:
    biomes: list[BiomeCell] = []
    weights: list[float] = []
    for entry in entries:
        if isinstance(entry, BiomeWeight):
            biomes.append(entry.biome)
            weights.append(entry.weight)
        else:
            biome, weight = entry
            biomes.append(BiomeCell(biome))
            weights.append(float(weight))
    return biomes, weights


def check_biome_table(biomes: Sequence[BiomeCell], weights: Sequence[float]) -> None:
    """Raise ConfigurationError unless the table is non-empty and sums to 1."""
    if not biomes or len(biomes) != len(weights):
        raise ConfigurationError("biome table needs one weight per biome")
    if any(weight < 0 for weight in weights):
        raise ConfigurationError(f"biome weights must not be negative: {weights}")
    total = float(sum(weights))
    if abs(total - 1.0) > 1e-6:
        raise ConfigurationError(f"biome weights sum to {total}, expected 1.0")


def select_biome(
    biomes: Sequence[BiomeCell],
    weights: Sequence[float],
    rng: RandomStream,
) -> BiomeCell:
    """Pick a biome by a cumulative-probability roll.

    The first biome whose cumulative weight exceeds the roll wins; the last
    biome is returned if rounding leaves the roll uncovered.
    """
    check_biome_table(biomes, weights)

    roll = rng.next_float()
    cumulative = 0.0
    for biome, weight in zip(biomes, weights):
        cumulative += weight
        if roll < cumulative:
            return biome
    return biomes[-1]


def temperature_to_biome(
    grid: NDArray[np.uint8],
    rng: RandomStream,
    tables: Mapping[BiomeCell, BiomeTable] | None = None,
) -> NDArray[np.uint8]:
    """Replace every temperature band with a biome drawn from its table.

    Args:
        grid: Board holding temperature values.
        rng: Random stream for the run.
        tables: Band to weighted biome list; bands left out use the standard
            tables.

    Raises:
        ConfigurationError: If a key is not a temperature band, or a table is
            empty or its weights do not sum to 1.
    """
    merged: dict[BiomeCell, BiomeTable] = dict(default_biome_tables())
    for band, entries in (tables or {}).items():
        band = BiomeCell(band)
        if band not in TEMPERATURE_BIOMES:
            raise ConfigurationError(
                f"biome tables are keyed by temperature band, got {band.value}"
            )
        merged[band] = entries

    result = grid.copy()
    for band, entries in merged.items():
        biomes, weights = _table_entries(entries)
        check_biome_table(biomes, weights)

        mask = grid == band.code
        rolls = rng.floats(int(np.count_nonzero(mask)))

        cumulative = np.cumsum(weights)
        picks = np.searchsorted(cumulative, rolls, side="right")
        picks = np.minimum(picks, len(biomes) - 1)

        codes = np.asarray([biome.code for biome in biomes], dtype=np.uint8)
        result[mask] = codes[picks]

    return result


def deep_ocean(grid: NDArray[np.uint8]) -> NDArray[np.uint8]:
    """Promote ocean cells whose eight neighbors are all ocean.

    Cells on the border lack some neighbors and are never promoted.
    """
    mask = (grid == OCEAN) & all_neighbors_in(
        grid, [OCEAN], EIGHT_NEIGHBORS, outside_matches=False
    )
    result = grid.copy()
    result[mask] = DEEP_OCEAN
    return result


def shore(
    grid: NDArray[np.uint8],
    cold_biomes: frozenset[BiomeCell] = COLD_SHORE_BIOMES,
) -> NDArray[np.uint8]:
    """Turn cells next to plain ocean into shoreline.

    A non-ocean cell with ocean among its eight neighbors and no deep ocean
    among them becomes a swamp shore if it was swamp, a cold beach if it is
    in ``cold_biomes``, and a beach otherwise.
    """
    near_ocean = any_neighbor_in(grid, [OCEAN], EIGHT_NEIGHBORS)
    near_deep = any_neighbor_in(grid, [DEEP_OCEAN], EIGHT_NEIGHBORS)
    mask = (grid != OCEAN) & near_ocean & ~near_deep

    shoreline = np.full(grid.shape, BiomeCell.BEACH.code, dtype=np.uint8)
    shoreline[np.isin(grid, codes_for(cold_biomes))] = BiomeCell.COLD_BEACH.code
    shoreline[grid == BiomeCell.SWAMP.code] = BiomeCell.SWAMP_SHORE.code

    result = grid.copy()
    result[mask] = shoreline[mask]
    return result
