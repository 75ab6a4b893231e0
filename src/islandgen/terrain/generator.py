"""Main terrain generation orchestration."""

import time
from collections.abc import Callable
from pathlib import Path

import numpy as np
import structlog
from numpy.typing import NDArray

from ..biomes import BiomeCell, biome_from_code
from ..exceptions import GenerationCancelledError
from .colorizer import colorize
from .config import TerrainConfig
from .grid import fit_to_size
from .heightmap import generate_height_grid
from .noise import NoiseSource
from .pipeline import output_size, run_pipeline, stages_for
from .rng import RandomStream
from .smoothing import smooth_heights

logger = structlog.get_logger()


class GenerationResult:
    """Result of terrain generation: the three grids handed to a mesh builder."""

    def __init__(
        self,
        biomes: NDArray[np.uint8],
        heights: NDArray[np.float32],
        colors: NDArray[np.float32],
        config: TerrainConfig,
        pipeline_size: int,
    ):
        self.biomes = biomes
        self.heights = heights
        self.colors = colors
        self.config = config
        self.pipeline_size = pipeline_size

    @property
    def width(self) -> int:
        return self.biomes.shape[1]

    @property
    def height(self) -> int:
        return self.biomes.shape[0]

    def biome_at(self, x: int, y: int) -> BiomeCell | None:
        """Biome of cell (x, y), or None for an unknown code."""
        return biome_from_code(self.biomes[y, x])


def _check_cancel(should_cancel: Callable[[], bool] | None, before: str) -> None:
    if should_cancel is not None and should_cancel():
        logger.info("generation_cancelled", before=before)
        raise GenerationCancelledError(f"generation cancelled before {before}")


def generate_terrain(
    config: TerrainConfig,
    should_cancel: Callable[[], bool] | None = None,
) -> GenerationResult:
    """Generate biomes, heights and colors from configuration.

    One random stream, seeded from ``config.seed``, drives the whole run:
    the automaton first, then the noise seed and offsets, then color jitter.

    Args:
        config: Terrain generation configuration.
        should_cancel: Polled between stages; a true result aborts the run.

    Returns:
        GenerationResult with all output grids.

    Raises:
        GenerationCancelledError: If should_cancel returned true.
    """
    start_time = time.perf_counter()
    rng = RandomStream(config.seed)
    stages = stages_for(config.automaton)
    pipeline_size = output_size(stages, config.automaton.seed_size)

    logger.info(
        "terrain_generation_started",
        seed=config.seed,
        pipeline_size=pipeline_size,
        width=config.width,
        height=config.height,
    )

    # Stage A: Biome automaton
    biomes = run_pipeline(stages, rng, config.automaton, should_cancel=should_cancel)

    width = config.width or biomes.shape[1]
    height = config.height or biomes.shape[0]
    if (width, height) != (biomes.shape[1], biomes.shape[0]):
        biomes = fit_to_size(biomes, width, height, config.fit_mode)
        logger.debug("biome_grid_fitted", mode=config.fit_mode, width=width, height=height)

    # Stage B: Heightmap
    _check_cancel(should_cancel, "heightmap")
    noise = NoiseSource.from_stream(rng)
    heights = generate_height_grid(biomes, config.noise, noise=noise)

    if config.blur.enabled:
        _check_cancel(should_cancel, "smoothing")
        heights = smooth_heights(heights, biomes, config.blur)

    # Stage C: Colors
    _check_cancel(should_cancel, "colorizer")
    colors = colorize(heights, biomes, rng, config.color.jitter)

    _log_terrain_stats(biomes, heights)
    logger.info(
        "terrain_generation_complete",
        duration_s=round(time.perf_counter() - start_time, 3),
    )

    if config.debug_output_dir:
        _write_debug_images(
            Path(config.debug_output_dir),
            {"biomes": biomes, "heights": heights, "colors": colors},
        )

    return GenerationResult(
        biomes=biomes,
        heights=heights,
        colors=colors,
        config=config,
        pipeline_size=pipeline_size,
    )


def biome_counts(biomes: NDArray[np.uint8]) -> dict[str, int]:
    """Number of cells per biome name, most common first."""
    codes, counts = np.unique(biomes, return_counts=True)
    named = {}
    for code, count in zip(codes, counts):
        biome = biome_from_code(code)
        named[biome.value if biome is not None else f"unknown_{int(code)}"] = int(count)
    return dict(sorted(named.items(), key=lambda item: -item[1]))


def _log_terrain_stats(biomes: NDArray[np.uint8], heights: NDArray[np.float32]) -> None:
    """Log terrain generation statistics."""
    total = biomes.size
    logger.info(
        "terrain_stats",
        cells=total,
        height_min=round(float(heights.min()), 4),
        height_max=round(float(heights.max()), 4),
        height_mean=round(float(heights.mean()), 4),
    )
    for name, count in biome_counts(biomes).items():
        logger.debug("biome_share", biome=name, cells=count, percent=round(count / total * 100, 1))


def _image_options(grid: NDArray) -> dict:
    if grid.ndim == 3:
        return {}
    if grid.dtype == np.uint8:
        # Fixed range so a biome keeps its color from run to run
        return {"cmap": "tab20", "vmin": 0, "vmax": len(BiomeCell) - 1}
    return {"cmap": "terrain", "vmin": 0.0, "vmax": 1.0}


def _write_debug_images(output_dir: Path, grids: dict[str, NDArray]) -> None:
    """Write one PNG per grid; skipped with a warning when matplotlib is missing."""
    try:
        import matplotlib.pyplot as plt
    except ImportError:
        logger.warning("matplotlib_unavailable", skipped="debug_images")
        return

    output_dir.mkdir(parents=True, exist_ok=True)
    for name, grid in grids.items():
        plt.imsave(output_dir / f"{name}.png", grid, **_image_options(grid))

    logger.info("debug_images_saved", output_dir=str(output_dir), images=sorted(grids))
