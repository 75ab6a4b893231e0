"""Tests for the biome automaton transforms."""

import numpy as np
import pytest
from scipy import stats

from islandgen.biomes import BiomeCell, NON_TRANSFORMABLE_BIOMES, codes_for
from islandgen.exceptions import ConfigurationError
from islandgen.terrain.automaton import (
    add_island,
    add_island2,
    add_temps,
    check_biome_table,
    deep_ocean,
    freezing_to_cold,
    fuzzy_zoom,
    remove_too_much_ocean,
    seed_board,
    select_biome,
    shore,
    surround_with_ocean,
    temperature_to_biome,
    warm_to_temperate,
    zoom,
)
from islandgen.terrain.config import default_biome_tables
from islandgen.terrain.grid import edge_cells
from islandgen.terrain.rng import RandomStream

OCEAN = BiomeCell.OCEAN.code
DEEP = BiomeCell.DEEP_OCEAN.code
LAND = BiomeCell.LAND.code
WARM = BiomeCell.WARM.code
COLD = BiomeCell.COLD.code
FREEZING = BiomeCell.FREEZING.code
TEMPERATE = BiomeCell.TEMPERATE.code


class TestSeedBoard:
    """Tests for the initial board."""

    def test_shape_and_values(self, rng: RandomStream) -> None:
        """The board is square and holds only ocean or land."""
        board = seed_board(rng, 4, 0.1)
        assert board.shape == (4, 4)
        assert board.dtype == np.uint8
        assert set(np.unique(board)) <= {OCEAN, LAND}

    def test_certain_land(self, rng: RandomStream) -> None:
        """Probability 1 fills the board with land."""
        assert (seed_board(rng, 4, 1.0) == LAND).all()

    def test_invalid_size(self, rng: RandomStream) -> None:
        """A zero-sized board raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            seed_board(rng, 0)


class TestZoom:
    """Tests for the resolution-doubling transforms."""

    @pytest.mark.parametrize("transform", [fuzzy_zoom, zoom])
    def test_doubles_shape(self, transform, rng: RandomStream) -> None:
        """Output is twice the size in both dimensions."""
        grid = seed_board(rng, 4, 0.5)
        assert transform(grid, rng).shape == (8, 8)

    @pytest.mark.parametrize("transform", [fuzzy_zoom, zoom])
    def test_uniform_grid_unchanged(self, transform, rng: RandomStream) -> None:
        """A grid without edges is simply upscaled."""
        grid = np.full((3, 3), LAND, dtype=np.uint8)
        result = transform(grid, rng)
        assert (result == LAND).all()

    @pytest.mark.parametrize("transform", [fuzzy_zoom, zoom])
    def test_no_new_values(self, transform, make_grid) -> None:
        """Zooming only copies values already present."""
        grid = make_grid("OWC", "FLO", "TOO")
        result = transform(grid, RandomStream(5))
        assert set(np.unique(result)) <= set(np.unique(grid))

    @pytest.mark.parametrize("transform", [fuzzy_zoom, zoom])
    def test_interior_blocks_kept(self, transform, rng: RandomStream) -> None:
        """Cells that are not on an edge keep their upscaled value."""
        grid = np.full((4, 4), OCEAN, dtype=np.uint8)
        grid[0, 0] = LAND
        result = transform(grid, rng)
        assert (result[4:, 4:] == OCEAN).all()

    def test_input_not_mutated(self, make_grid, rng: RandomStream) -> None:
        """The source grid is left untouched."""
        grid = make_grid("OL", "LO")
        before = grid.copy()
        zoom(grid, rng)
        np.testing.assert_array_equal(grid, before)


class TestAddIsland:
    """Tests for coastline re-rolling."""

    def test_certain_land(self, make_grid, rng: RandomStream) -> None:
        """With probability 1 every edge cell becomes land."""
        grid = make_grid("OOO", "OLO", "OOO")
        expected = make_grid("OLO", "LLL", "OLO")
        np.testing.assert_array_equal(add_island(grid, rng, 1.0), expected)

    def test_certain_ocean(self, make_grid, rng: RandomStream) -> None:
        """With probability 0 every edge cell becomes ocean."""
        grid = make_grid("OOO", "OLO", "OOO")
        assert (add_island(grid, rng, 0.0) == OCEAN).all()

    def test_frozen_cells_untouched(self, make_grid, rng: RandomStream) -> None:
        """Temperature cells are never rewritten."""
        grid = make_grid("OOO", "OWO", "OOO")
        result = add_island(grid, rng, 1.0)
        assert result[1, 1] == WARM
        assert result[0, 1] == LAND

    def test_only_edges_change(self, rng: RandomStream) -> None:
        """Non-edge cells keep their value."""
        grid = seed_board(RandomStream(2), 16, 0.4)
        result = add_island(grid, rng, 0.5)
        stable = ~edge_cells(grid)
        np.testing.assert_array_equal(result[stable], grid[stable])


class TestRemoveTooMuchOcean:
    """Tests for breaking up open water."""

    def test_enclosed_ocean_becomes_land(self, make_grid, rng: RandomStream) -> None:
        """Ocean with only ocean 4-neighbors converts with probability 1."""
        grid = make_grid("OOO", "OLO", "OOO")
        expected = make_grid("LOL", "OLO", "LOL")
        np.testing.assert_array_equal(remove_too_much_ocean(grid, rng, 1.0), expected)

    def test_zero_probability(self, make_grid, rng: RandomStream) -> None:
        """Probability 0 leaves the grid unchanged."""
        grid = make_grid("OOO", "OOO", "OOO")
        np.testing.assert_array_equal(remove_too_much_ocean(grid, rng, 0.0), grid)


class TestAddTemps:
    """Tests for temperature assignment."""

    def test_water_skipped(self, make_grid, rng: RandomStream) -> None:
        """Ocean cells stay ocean and land gets a temperature."""
        grid = make_grid("OLL", "LLO")
        result = add_temps(grid, rng)
        assert result[0, 0] == OCEAN
        assert result[1, 2] == OCEAN
        land = grid == LAND
        assert set(np.unique(result[land])) <= {WARM, COLD, FREEZING}

    def test_weights_followed(self) -> None:
        """Draws follow the 4:1:1 split."""
        grid = np.full((60, 100), LAND, dtype=np.uint8)
        result = add_temps(grid, RandomStream(3), (4.0, 1.0, 1.0))
        warm_share = np.mean(result == WARM)
        assert warm_share == pytest.approx(4 / 6, abs=0.03)
        assert np.mean(result == FREEZING) == pytest.approx(1 / 6, abs=0.03)

    def test_single_band(self, rng: RandomStream) -> None:
        """Zero odds exclude a band."""
        grid = np.full((10, 10), LAND, dtype=np.uint8)
        assert (add_temps(grid, rng, (1.0, 0.0, 0.0)) == WARM).all()

    def test_invalid_weights(self, rng: RandomStream) -> None:
        """All-zero odds raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            add_temps(np.full((2, 2), LAND, dtype=np.uint8), rng, (0.0, 0.0, 0.0))


class TestAddIsland2:
    """Tests for majority adoption along edges."""

    def test_adopts_majority(self, make_grid, rng: RandomStream) -> None:
        """An ocean cell with a warm majority turns warm."""
        grid = make_grid("OWO", "WOW", "OOO")
        result = add_island2(grid, rng, 1.0)
        assert result[1, 1] == WARM
        # No non-ocean neighbors, nothing to adopt
        assert result[2, 1] == OCEAN

    def test_tie_is_not_majority(self, make_grid, rng: RandomStream) -> None:
        """A tie between two values leaves the cell alone."""
        grid = make_grid("WOC")
        np.testing.assert_array_equal(add_island2(grid, rng, 1.0), grid)

    def test_zero_probability(self, make_grid, rng: RandomStream) -> None:
        """Probability 0 leaves the grid unchanged."""
        grid = make_grid("OWO", "WOW", "OOO")
        np.testing.assert_array_equal(add_island2(grid, rng, 0.0), grid)

    def test_frozen_cells_untouched(self, make_grid, rng: RandomStream) -> None:
        """Temperature cells never adopt a neighbor."""
        grid = make_grid("CWC", "OCO")
        result = add_island2(grid, rng, 1.0)
        assert result[0, 1] == WARM


class TestClimateAdjustments:
    """Tests for warm/freezing boundary smoothing."""

    def test_warm_next_to_cold(self, make_grid) -> None:
        """Warm touching cold becomes temperate."""
        grid = make_grid("WC", "WO")
        np.testing.assert_array_equal(warm_to_temperate(grid), make_grid("TC", "WO"))

    def test_warm_diagonal_to_freezing(self, make_grid) -> None:
        """Diagonal contact does not count."""
        grid = make_grid("WO", "OF")
        np.testing.assert_array_equal(warm_to_temperate(grid), grid)

    def test_freezing_next_to_temperate(self, make_grid) -> None:
        """Freezing touching temperate or warm becomes cold."""
        grid = make_grid("FTO", "OOF", "OOW")
        expected = make_grid("CTO", "OOC", "OOW")
        np.testing.assert_array_equal(freezing_to_cold(grid), expected)

    def test_reads_previous_grid(self, make_grid) -> None:
        """A chain of warm cells only converts the one touching cold."""
        grid = make_grid("WWWC")
        np.testing.assert_array_equal(warm_to_temperate(grid), make_grid("WWTC"))


class TestSurroundWithOcean:
    """Tests for the ocean ring."""

    def test_ring(self) -> None:
        """Border becomes ocean, interior is untouched."""
        grid = np.full((5, 6), WARM, dtype=np.uint8)
        result = surround_with_ocean(grid)
        assert (result[0, :] == OCEAN).all()
        assert (result[-1, :] == OCEAN).all()
        assert (result[:, 0] == OCEAN).all()
        assert (result[:, -1] == OCEAN).all()
        assert (result[1:-1, 1:-1] == WARM).all()


class TestSelectBiome:
    """Tests for weighted biome selection."""

    def test_distribution(self) -> None:
        """10,000 draws match the table weights."""
        table = default_biome_tables()[BiomeCell.WARM]
        biomes = [entry.biome for entry in table]
        weights = [entry.weight for entry in table]
        stream = RandomStream(2024)

        draws = [select_biome(biomes, weights, stream) for _ in range(10_000)]
        observed = [draws.count(biome) for biome in biomes]
        expected = [w * len(draws) for w in weights]

        _, p_value = stats.chisquare(observed, expected)
        assert p_value > 0.001

    def test_single_entry(self, rng: RandomStream) -> None:
        """A one-entry table always returns that biome."""
        assert select_biome([BiomeCell.TUNDRA], [1.0], rng) is BiomeCell.TUNDRA

    @pytest.mark.parametrize(
        ("biomes", "weights"),
        [
            ([], []),
            ([BiomeCell.DESERT, BiomeCell.PLAINS], [0.5, 0.4]),
            ([BiomeCell.DESERT, BiomeCell.PLAINS], [1.5, -0.5]),
            ([BiomeCell.DESERT], [0.5, 0.5]),
        ],
    )
    def test_bad_tables(self, biomes, weights, rng: RandomStream) -> None:
        """Empty, mis-summed or negative tables raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            select_biome(biomes, weights, rng)

    def test_check_accepts_rounding(self) -> None:
        """Weights summing to 1 within rounding pass."""
        check_biome_table([BiomeCell.DESERT] * 3, [0.1, 0.2, 0.7])


class TestTemperatureToBiome:
    """Tests for band-to-biome conversion."""

    def test_default_tables(self, rng: RandomStream) -> None:
        """Every band cell becomes a biome from its own table."""
        grid = np.array([[WARM, COLD], [FREEZING, TEMPERATE]], dtype=np.uint8)
        grid = np.tile(grid, (20, 20))
        result = temperature_to_biome(grid, rng)

        for band, entries in default_biome_tables().items():
            allowed = codes_for({entry.biome for entry in entries})
            assert np.isin(result[grid == band.code], allowed).all()

    def test_tuple_tables(self, rng: RandomStream) -> None:
        """Tables may be given as (biome, weight) pairs."""
        grid = np.array([[OCEAN, WARM], [WARM, DEEP]], dtype=np.uint8)
        result = temperature_to_biome(grid, rng, {BiomeCell.WARM: [(BiomeCell.DESERT, 1.0)]})
        expected = np.array(
            [[OCEAN, BiomeCell.DESERT.code], [BiomeCell.DESERT.code, DEEP]], dtype=np.uint8
        )
        np.testing.assert_array_equal(result, expected)

    def test_bad_table(self, rng: RandomStream) -> None:
        """A table that does not sum to 1 raises ConfigurationError."""
        grid = np.full((2, 2), WARM, dtype=np.uint8)
        with pytest.raises(ConfigurationError):
            temperature_to_biome(grid, rng, {BiomeCell.WARM: [(BiomeCell.DESERT, 0.3)]})

    def test_non_band_key_rejected(self, rng: RandomStream) -> None:
        """Only temperature bands may key a table; ocean is never rewritten."""
        grid = np.full((2, 2), OCEAN, dtype=np.uint8)
        with pytest.raises(ConfigurationError, match="temperature band"):
            temperature_to_biome(grid, rng, {BiomeCell.OCEAN: [(BiomeCell.DESERT, 1.0)]})

    def test_partial_tables_use_defaults(self, rng: RandomStream) -> None:
        """Bands missing from the tables still convert with their default table."""
        grid = np.tile(np.array([[WARM, COLD], [FREEZING, TEMPERATE]], dtype=np.uint8), (10, 10))
        result = temperature_to_biome(grid, rng, {BiomeCell.WARM: [(BiomeCell.DESERT, 1.0)]})

        assert (result[grid == WARM] == BiomeCell.DESERT.code).all()
        assert not np.isin(result, [WARM, COLD, FREEZING, TEMPERATE]).any()
        for band in (BiomeCell.COLD, BiomeCell.FREEZING, BiomeCell.TEMPERATE):
            allowed = codes_for({entry.biome for entry in default_biome_tables()[band]})
            assert np.isin(result[grid == band.code], allowed).all()

    def test_output_is_terminal(self, rng: RandomStream) -> None:
        """No temperature values survive the default tables."""
        grid = add_temps(np.full((30, 30), LAND, dtype=np.uint8), rng)
        grid = warm_to_temperate(grid)
        result = temperature_to_biome(grid, rng)
        assert not np.isin(result, [WARM, COLD, FREEZING, TEMPERATE]).any()
        assert np.isin(result, codes_for(NON_TRANSFORMABLE_BIOMES)).all()


class TestDeepOcean:
    """Tests for deep ocean promotion."""

    def test_open_water(self) -> None:
        """Interior ocean is promoted, the border never is."""
        grid = np.full((5, 5), OCEAN, dtype=np.uint8)
        result = deep_ocean(grid)
        assert (result[1:-1, 1:-1] == DEEP).all()
        assert (result[0, :] == OCEAN).all()
        assert (result[:, -1] == OCEAN).all()

    def test_land_blocks_promotion(self) -> None:
        """Cells touching land, diagonals included, stay shallow."""
        grid = np.full((7, 7), OCEAN, dtype=np.uint8)
        grid[3, 3] = LAND
        result = deep_ocean(grid)
        assert (result[2:5, 2:5] != DEEP).all()
        assert int((result == DEEP).sum()) == 16

    def test_repeat_is_monotonic(self) -> None:
        """A second pass never turns deep ocean back into ocean."""
        grid = np.full((9, 9), OCEAN, dtype=np.uint8)
        grid[4, 4] = LAND
        once = deep_ocean(grid)
        twice = deep_ocean(once)
        assert ((once == DEEP) <= (twice == DEEP)).all()
        assert int((twice == DEEP).sum()) >= int((once == DEEP).sum())


class TestShore:
    """Tests for shoreline placement."""

    def test_island_ring(self, island_grid: np.ndarray) -> None:
        """The island's outer cells become beach, its center stays."""
        result = shore(island_grid)
        beach = BiomeCell.BEACH.code
        plains = BiomeCell.PLAINS.code
        assert result[3, 3] == plains
        ring = island_grid == plains
        ring[3, 3] = False
        assert (result[ring] == beach).all()
        np.testing.assert_array_equal(result[island_grid == OCEAN], OCEAN)

    def test_swamp_and_cold(self, make_grid) -> None:
        """Swamp becomes swamp shore and taiga becomes cold beach."""
        result = shore(make_grid("SOG"))
        assert result[0, 0] == BiomeCell.SWAMP_SHORE.code
        assert result[0, 2] == BiomeCell.COLD_BEACH.code

    def test_deep_neighbor_blocks_shore(self, make_grid) -> None:
        """A cell next to deep ocean gets no shore."""
        grid = make_grid("OPD")
        np.testing.assert_array_equal(shore(grid), grid)

    def test_isolated_deep_ocean_becomes_cold_beach(self, make_grid) -> None:
        """Deep ocean counts as cold and turns into cold beach next to ocean."""
        result = shore(make_grid("OD"))
        assert result[0, 1] == BiomeCell.COLD_BEACH.code

    def test_shore_exclusivity(self) -> None:
        """No changed cell touches deep ocean and every one touches ocean."""
        grid = temperature_to_biome(
            add_temps(seed_board(RandomStream(8), 24, 0.5), RandomStream(9)),
            RandomStream(10),
        )
        grid = deep_ocean(grid)
        result = shore(grid)

        changed = result != grid
        assert changed.any()
        padded = np.pad(grid, 1, constant_values=255)
        for y, x in zip(*np.nonzero(changed)):
            window = padded[y:y + 3, x:x + 3].copy()
            window[1, 1] = 255
            assert OCEAN in window
            assert DEEP not in window
