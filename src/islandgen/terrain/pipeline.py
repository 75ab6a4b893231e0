"""Declarative biome pipeline: stage lists, size bookkeeping, execution."""

import time
from collections.abc import Callable, Sequence

import numpy as np
import structlog
from numpy.typing import NDArray

from ..biomes import CLIMATE_STAGE_BIOMES, biome_from_code, codes_for
from ..exceptions import ConfigurationError, GenerationCancelledError, PipelineError
from . import automaton
from .config import AutomatonConfig, Stage
from .rng import RandomStream

logger = structlog.get_logger()

StageCallback = Callable[[Stage, NDArray[np.uint8]], None]
Transform = Callable[[NDArray[np.uint8], RandomStream, AutomatonConfig], NDArray[np.uint8]]


def _temperature_weights(config: AutomatonConfig) -> tuple[float, float, float]:
    weights = config.temperature_weights
    return (weights.warm, weights.cold, weights.freezing)


_TRANSFORMS: dict[Stage, Transform] = {
    Stage.FUZZY_ZOOM: lambda grid, rng, config: automaton.fuzzy_zoom(grid, rng),
    Stage.ZOOM: lambda grid, rng, config: automaton.zoom(grid, rng),
    Stage.ADD_ISLAND: lambda grid, rng, config: automaton.add_island(
        grid, rng, config.probability_of_land
    ),
    Stage.ADD_ISLAND2: lambda grid, rng, config: automaton.add_island2(
        grid, rng, config.probability_of_land
    ),
    Stage.REMOVE_TOO_MUCH_OCEAN: lambda grid, rng, config: automaton.remove_too_much_ocean(
        grid, rng, config.ocean_to_land_probability
    ),
    Stage.ADD_TEMPS: lambda grid, rng, config: automaton.add_temps(
        grid, rng, _temperature_weights(config)
    ),
    Stage.WARM_TO_TEMPERATE: lambda grid, rng, config: automaton.warm_to_temperate(grid),
    Stage.FREEZING_TO_COLD: lambda grid, rng, config: automaton.freezing_to_cold(grid),
    Stage.SURROUND_WITH_OCEAN: lambda grid, rng, config: automaton.surround_with_ocean(grid),
    Stage.TEMPERATURE_TO_BIOME: lambda grid, rng, config: automaton.temperature_to_biome(
        grid, rng, config.biome_tables
    ),
    Stage.DEEP_OCEAN: lambda grid, rng, config: automaton.deep_ocean(grid),
    Stage.SHORE: lambda grid, rng, config: automaton.shore(grid),
}


def island_pipeline(
    biome_zooms: int = 4,
    shore_zooms: int = 1,
    surround_with_ocean: bool = False,
) -> list[Stage]:
    """Build the standard islands-and-climate stage list.

    The fixed head grows the island and its temperature bands through four
    doublings; ``biome_zooms`` and ``shore_zooms`` add detail passes before
    and after the shoreline is drawn. The defaults give nine doublings.
    """
    if biome_zooms < 0 or shore_zooms < 0:
        raise PipelineError("zoom counts must not be negative")

    stages = [
        Stage.SEED,
        Stage.FUZZY_ZOOM,
        Stage.ADD_ISLAND,
        Stage.ZOOM,
        Stage.ADD_ISLAND,
        Stage.ADD_ISLAND,
        Stage.ADD_ISLAND,
        Stage.REMOVE_TOO_MUCH_OCEAN,
        Stage.ADD_TEMPS,
        Stage.ADD_ISLAND2,
        Stage.WARM_TO_TEMPERATE,
        Stage.FREEZING_TO_COLD,
        Stage.ZOOM,
        Stage.ADD_ISLAND2,
    ]
    if surround_with_ocean:
        stages.append(Stage.SURROUND_WITH_OCEAN)
    stages += [Stage.ZOOM, Stage.TEMPERATURE_TO_BIOME, Stage.DEEP_OCEAN]
    stages += [Stage.ZOOM] * biome_zooms
    stages.append(Stage.SHORE)
    stages += [Stage.ZOOM] * shore_zooms
    return stages


def stages_for(config: AutomatonConfig) -> list[Stage]:
    """Stage list described by an automaton config."""
    if config.stages is not None:
        return list(config.stages)
    return island_pipeline(
        config.biome_zooms, config.shore_zooms, config.surround_with_ocean
    )


def count_doublings(stages: Sequence[Stage]) -> int:
    """Number of stages that double the grid resolution."""
    return sum(1 for stage in stages if Stage(stage).doubles_resolution)


def output_size(stages: Sequence[Stage], seed_size: int = 4) -> int:
    """Width (and height) of the grid a stage list produces."""
    return seed_size * 2 ** count_doublings(stages)


def validate_stages(stages: Sequence[Stage]) -> None:
    """Check that a stage list can produce a finished biome grid.

    Raises:
        PipelineError: If the list does not start with the only SEED stage,
            or never converts temperatures to biomes.
    """
    if not stages or Stage(stages[0]) != Stage.SEED:
        raise PipelineError("pipeline must start with the seed stage")
    if sum(1 for stage in stages if Stage(stage) == Stage.SEED) != 1:
        raise PipelineError("pipeline must contain exactly one seed stage")
    if Stage.TEMPERATURE_TO_BIOME not in [Stage(stage) for stage in stages]:
        raise PipelineError("pipeline never converts temperatures to biomes")


def check_finalized(grid: NDArray[np.uint8]) -> None:
    """Raise PipelineError if any climate-stage value is left in the grid."""
    leftover = np.isin(grid, codes_for(CLIMATE_STAGE_BIOMES))
    if leftover.any():
        names = sorted(
            biome_from_code(code).value for code in np.unique(grid[leftover])
        )
        raise PipelineError(
            f"{int(leftover.sum())} cells still hold climate values: {', '.join(names)}"
        )


def run_pipeline(
    stages: Sequence[Stage],
    rng: RandomStream,
    config: AutomatonConfig | None = None,
    should_cancel: Callable[[], bool] | None = None,
    on_stage: StageCallback | None = None,
) -> NDArray[np.uint8]:
    """Execute a stage list and return the finished biome grid.

    Args:
        stages: Ordered stage list starting with SEED.
        rng: The run's random stream, shared by every stage.
        config: Probabilities and tables for the stages.
        should_cancel: Polled between stages; a true result aborts the run.
        on_stage: Receives each stage and the grid it produced.

    Returns:
        Grid of biome codes, output_size(stages) cells square.

    Raises:
        PipelineError: If the stage list is invalid or leaves climate values.
        GenerationCancelledError: If should_cancel returned true.
    """
    config = config or AutomatonConfig()
    stages = [Stage(stage) for stage in stages]
    validate_stages(stages)

    start_time = time.perf_counter()
    grid = automaton.seed_board(rng, config.seed_size, config.seed_land_probability)

    for index, stage in enumerate(stages):
        if index > 0:
            if should_cancel is not None and should_cancel():
                logger.info("pipeline_cancelled", stage=stage.value, index=index)
                raise GenerationCancelledError(
                    f"generation cancelled before stage {index} ({stage.value})"
                )
            grid = _TRANSFORMS[stage](grid, rng, config)

        logger.debug(
            "pipeline_stage_complete",
            stage=stage.value,
            index=index,
            width=grid.shape[1],
            height=grid.shape[0],
        )
        if on_stage is not None:
            on_stage(stage, grid)

    check_finalized(grid)

    logger.info(
        "biome_grid_generated",
        width=grid.shape[1],
        height=grid.shape[0],
        stages=len(stages),
        duration_s=round(time.perf_counter() - start_time, 3),
    )
    return grid


def generate_biome_grid(
    seed: int,
    probability_of_land: float = 0.5,
    surround_with_ocean: bool = False,
    *,
    config: AutomatonConfig | None = None,
    stages: Sequence[Stage] | None = None,
    rng: RandomStream | None = None,
    should_cancel: Callable[[], bool] | None = None,
) -> NDArray[np.uint8]:
    """Generate a finished biome grid from a seed.

    Args:
        seed: Seed for a fresh random stream (ignored when ``rng`` is given).
        probability_of_land: Land odds for the island passes.
        surround_with_ocean: Force an ocean ring in the standard pipeline.
        config: Further automaton parameters; the two arguments above
            override its matching fields.
        stages: Explicit stage list; defaults to the one the config describes.
        rng: Existing stream to draw from, for callers that continue the
            same run afterwards.
        should_cancel: Polled between stages.

    Returns:
        Grid of biome codes.
    """
    if not 0.0 <= probability_of_land <= 1.0:
        raise ConfigurationError(
            f"probability_of_land must be within [0, 1], got {probability_of_land}"
        )

    config = (config or AutomatonConfig()).model_copy(
        update={
            "probability_of_land": probability_of_land,
            "surround_with_ocean": surround_with_ocean,
        }
    )
    stages = list(stages) if stages is not None else stages_for(config)

    if surround_with_ocean and Stage.SURROUND_WITH_OCEAN not in stages:
        logger.warning("surround_stage_missing", stages=len(stages))

    rng = rng or RandomStream(seed)
    logger.debug("biome_generation_started", seed=rng.initial_seed, stages=len(stages))
    return run_pipeline(stages, rng, config, should_cancel=should_cancel)
