"""Gaussian smoothing of height grids, softer across biome boundaries."""

import numpy as np
import structlog
from numpy.typing import NDArray
from scipy import ndimage

from ..exceptions import ConfigurationError
from .config import BlurConfig
from .grid import as_grid, edge_cells, require_same_shape

logger = structlog.get_logger()


def get_gaussian_filter(size: int, variance: float) -> NDArray[np.float64]:
    """Build a normalized size x size Gaussian kernel.

    ``kernel[i][j] = exp(-(i^2 + j^2) / (2 * variance)) / sum`` with i and j
    measured from the kernel center.

    Raises:
        ConfigurationError: If size is not a positive odd number or
            variance is not positive.
    """
    if size < 1 or size % 2 == 0:
        raise ConfigurationError(f"kernel size must be a positive odd number, got {size}")
    if variance <= 0:
        raise ConfigurationError(f"kernel variance must be positive, got {variance}")

    radius = size // 2
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    ii, jj = np.meshgrid(offsets, offsets, indexing="ij")

    kernel = np.exp(-(ii**2 + jj**2) / (2.0 * variance))
    return kernel / kernel.sum()


def boundary_mask(biomes: NDArray[np.uint8], distance: int) -> NDArray[np.bool_]:
    """Mark cells within ``distance`` steps of a biome boundary."""
    edges = edge_cells(biomes)
    if distance <= 0 or not edges.any():
        return edges
    return ndimage.binary_dilation(edges, iterations=distance)


def _convolve_interior(
    heights: NDArray[np.float32],
    kernel: NDArray[np.float64],
) -> tuple[NDArray[np.float32], NDArray[np.bool_]]:
    """Convolve, reporting which cells had the whole kernel inside the grid."""
    radius = kernel.shape[0] // 2
    smoothed = ndimage.convolve(heights.astype(np.float64), kernel, mode="nearest")

    inside = np.zeros(heights.shape, dtype=bool)
    height, width = heights.shape
    if height > 2 * radius and width > 2 * radius:
        inside[radius:height - radius, radius:width - radius] = True
    return smoothed.astype(np.float32), inside


def smooth_heights(
    heights: NDArray[np.float32],
    biomes: NDArray[np.uint8],
    config: BlurConfig,
) -> NDArray[np.float32]:
    """Blur a height grid, using a wider kernel near biome boundaries.

    Cells whose kernel would reach outside the grid keep their value.

    Args:
        heights: Height grid in [0, 1].
        biomes: Biome grid of the same shape.
        config: Kernel sizes, variances and boundary width.

    Returns:
        Smoothed height grid clipped to [0, 1].

    Raises:
        GridShapeError: If the grids are malformed or differ in shape.
        ConfigurationError: If a kernel size or variance is degenerate.
    """
    heights = as_grid(heights, dtype=np.float32)
    biomes = as_grid(biomes)
    require_same_shape(heights, biomes, "height and biome grids")

    narrow, narrow_inside = _convolve_interior(
        heights, get_gaussian_filter(config.kernel_size, config.variance)
    )
    result = np.where(narrow_inside, narrow, heights)

    if config.edge_aware:
        wide, wide_inside = _convolve_interior(
            heights, get_gaussian_filter(config.edge_kernel_size, config.edge_variance)
        )
        near_edge = boundary_mask(biomes, config.edge_distance)
        result = np.where(near_edge & wide_inside, wide, result)
        # Boundary cells too close to the border for the wide kernel stay put
        result = np.where(near_edge & ~wide_inside, heights, result)

        logger.debug(
            "heights_smoothed",
            boundary_cells=int(near_edge.sum()),
            kernel_size=config.kernel_size,
            edge_kernel_size=config.edge_kernel_size,
        )

    return np.clip(result, 0.0, 1.0).astype(np.float32)
