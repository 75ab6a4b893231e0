"""Grid helpers: precondition checks, neighbor queries, resizing.

All grids are numpy arrays of shape (height, width), indexed ``grid[y, x]``.
"""

from collections.abc import Iterable, Iterator
from typing import Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..exceptions import ConfigurationError, GridShapeError

# (dy, dx) offsets
FOUR_NEIGHBORS: tuple[tuple[int, int], ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))
EIGHT_NEIGHBORS: tuple[tuple[int, int], ...] = tuple(
    (dy, dx) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dy, dx) != (0, 0)
)


def as_grid(data: ArrayLike, dtype: type = np.uint8) -> NDArray:
    """Convert ``data`` to a 2D array, failing fast on malformed input.

    Args:
        data: Nested sequence or array.
        dtype: Element type of the returned grid.

    Returns:
        2D numpy array with the requested dtype.

    Raises:
        GridShapeError: If data is ragged, not 2D, or empty.
    """
    try:
        grid = np.asarray(data, dtype=dtype)
    except (ValueError, TypeError) as exc:
        raise GridShapeError(f"grid is not rectangular: {exc}") from exc

    if grid.ndim != 2:
        raise GridShapeError(f"grid must be 2D, got {grid.ndim} dimensions")
    if grid.size == 0:
        raise GridShapeError(f"grid must not be empty, got shape {grid.shape}")
    return grid


def require_same_shape(first: NDArray, second: NDArray, what: str) -> None:
    """Raise GridShapeError unless two grids cover the same cells."""
    if first.shape[:2] != second.shape[:2]:
        raise GridShapeError(
            f"{what}: shape {first.shape[:2]} does not match {second.shape[:2]}"
        )


def shifted(grid: NDArray, dy: int, dx: int, fill: object) -> NDArray:
    """Return ``out`` with ``out[y, x] = grid[y + dy, x + dx]``.

    Cells whose source lies outside the grid are set to ``fill``.
    """
    height, width = grid.shape[:2]
    out = np.full_like(grid, fill)

    dst_y = slice(max(0, -dy), min(height, height - dy))
    src_y = slice(max(0, dy), min(height, height + dy))
    dst_x = slice(max(0, -dx), min(width, width - dx))
    src_x = slice(max(0, dx), min(width, width + dx))

    out[dst_y, dst_x] = grid[src_y, src_x]
    return out


def iter_neighbors(
    grid: NDArray,
    offsets: Iterable[tuple[int, int]],
) -> Iterator[tuple[NDArray, NDArray[np.bool_]]]:
    """Yield (neighbor values, in-bounds mask) for each offset."""
    inside = np.ones(grid.shape[:2], dtype=bool)
    for dy, dx in offsets:
        yield shifted(grid, dy, dx, 0), shifted(inside, dy, dx, False)


def edge_cells(grid: NDArray) -> NDArray[np.bool_]:
    """Mark cells with at least one in-bounds 4-neighbor of a different value.

    Neighbors outside the grid never count as differing, so a uniform grid
    has no edge cells even along its border.
    """
    edges = np.zeros(grid.shape, dtype=bool)
    for values, inside in iter_neighbors(grid, FOUR_NEIGHBORS):
        edges |= inside & (values != grid)
    return edges


def any_neighbor_in(
    grid: NDArray,
    codes: Iterable[int],
    offsets: Iterable[tuple[int, int]] = FOUR_NEIGHBORS,
) -> NDArray[np.bool_]:
    """Mark cells with at least one in-bounds neighbor whose value is in ``codes``."""
    codes = list(codes)
    found = np.zeros(grid.shape, dtype=bool)
    for values, inside in iter_neighbors(grid, offsets):
        found |= inside & np.isin(values, codes)
    return found


def all_neighbors_in(
    grid: NDArray,
    codes: Iterable[int],
    offsets: Iterable[tuple[int, int]] = FOUR_NEIGHBORS,
    outside_matches: bool = True,
) -> NDArray[np.bool_]:
    """Mark cells whose neighbors all hold a value in ``codes``.

    Neighbors outside the grid are ignored when ``outside_matches`` is set,
    otherwise any missing neighbor fails the test.
    """
    codes = list(codes)
    result = np.ones(grid.shape, dtype=bool)
    for values, inside in iter_neighbors(grid, offsets):
        if outside_matches:
            result &= ~inside | np.isin(values, codes)
        else:
            result &= inside & np.isin(values, codes)
    return result


def upscale(grid: NDArray) -> NDArray:
    """Double resolution: every cell becomes a 2x2 block."""
    return np.repeat(np.repeat(grid, 2, axis=0), 2, axis=1)


def fit_to_size(
    grid: NDArray,
    width: int,
    height: int,
    mode: Literal["resample", "crop"] = "resample",
) -> NDArray:
    """Adapt a categorical grid to an exact requested size.

    ``resample`` picks the nearest source cell for every target cell, so the
    whole island is kept at any size. ``crop`` keeps the centered
    width x height window and needs a grid at least that large.

    Raises:
        ConfigurationError: On non-positive sizes, an unknown mode, or a crop
            larger than the grid.
    """
    if width <= 0 or height <= 0:
        raise ConfigurationError(f"target size must be positive, got {width}x{height}")

    src_height, src_width = grid.shape
    if (src_width, src_height) == (width, height):
        return grid.copy()

    if mode == "resample":
        rows = (np.arange(height) * src_height) // height
        cols = (np.arange(width) * src_width) // width
        return grid[np.ix_(rows, cols)]

    if mode == "crop":
        if width > src_width or height > src_height:
            raise ConfigurationError(
                f"cannot crop {src_width}x{src_height} grid to {width}x{height}"
            )
        top = (src_height - height) // 2
        left = (src_width - width) // 2
        return grid[top:top + height, left:left + width].copy()

    raise ConfigurationError(f"unknown fit mode: {mode!r}")
