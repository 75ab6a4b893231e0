"""Post-generation validation of biome and height grids."""

import numpy as np
import structlog
from numpy.typing import NDArray

from ..biomes import CLIMATE_STAGE_BIOMES, WATER_BIOMES, biome_from_code, codes_for
from .config import TerrainConfig

logger = structlog.get_logger()


class ValidationResult:
    """Result of terrain validation."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.passed = True

    def add_error(self, message: str) -> None:
        """Add validation error."""
        self.errors.append(message)
        self.passed = False

    def add_warning(self, message: str) -> None:
        """Add validation warning."""
        self.warnings.append(message)


def validate_terrain(
    biomes: NDArray[np.uint8],
    heights: NDArray[np.float32],
    config: TerrainConfig | None = None,
) -> ValidationResult:
    """Validate generated grids against the generator's invariants.

    Args:
        biomes: Biome grid.
        heights: Height grid.
        config: Generation configuration, enables the ocean ring check.

    Returns:
        ValidationResult with any errors/warnings.
    """
    result = ValidationResult()

    # Check 1: Grids line up
    if biomes.shape != heights.shape:
        result.add_error(
            f"Biome grid {biomes.shape} and height grid {heights.shape} differ in shape"
        )
    else:
        # Check 2: Heights are normalized
        _check_height_range(heights, result)

    # Check 3: Only terminal categories are left
    _check_finalized(biomes, result)

    # Check 4: Unknown codes
    _check_known_codes(biomes, result)

    # Check 5: Ocean ring when requested
    if config is not None and config.automaton.surround_with_ocean:
        _check_border_water(biomes, result)

    # Check 6: Land fraction in reasonable range
    _check_land_fraction(biomes, result)

    if result.passed:
        logger.info("terrain_validation_passed", warnings=len(result.warnings))
    else:
        logger.warning("terrain_validation_failed", errors=len(result.errors))
        for error in result.errors:
            logger.error("terrain_validation_error", detail=error)

    for warning in result.warnings:
        logger.warning("terrain_validation_warning", detail=warning)

    return result


def _check_height_range(heights: NDArray[np.float32], result: ValidationResult) -> None:
    """Check every height lies in [0, 1]."""
    if not np.all(np.isfinite(heights)):
        result.add_error("Height grid contains non-finite values")
        return

    out_of_range = int(np.sum((heights < 0.0) | (heights > 1.0)))
    if out_of_range > 0:
        result.add_error(f"{out_of_range} heights outside [0, 1]")


def _check_finalized(biomes: NDArray[np.uint8], result: ValidationResult) -> None:
    """Check no climate-stage category survived the pipeline."""
    leftover = int(np.sum(np.isin(biomes, codes_for(CLIMATE_STAGE_BIOMES))))
    if leftover > 0:
        result.add_error(f"{leftover} cells still hold climate-stage values")


def _check_known_codes(biomes: NDArray[np.uint8], result: ValidationResult) -> None:
    """Warn about codes outside the biome enum."""
    unknown = [int(code) for code in np.unique(biomes) if biome_from_code(code) is None]
    if unknown:
        result.add_warning(f"Unknown biome codes present: {unknown}")


def _check_border_water(biomes: NDArray[np.uint8], result: ValidationResult) -> None:
    """Check that the outer ring is water."""
    border = np.concatenate([biomes[0, :], biomes[-1, :], biomes[:, 0], biomes[:, -1]])
    non_water = int(np.sum(~np.isin(border, codes_for(WATER_BIOMES))))

    # Explicit stage lists may omit the ring or crop into it
    if non_water > 0:
        result.add_warning(f"Border has {non_water} non-water cells")


def _check_land_fraction(biomes: NDArray[np.uint8], result: ValidationResult) -> None:
    """Warn when the map is almost entirely water or land."""
    land_fraction = float(np.mean(~np.isin(biomes, codes_for(WATER_BIOMES))))

    if land_fraction < 0.02:
        result.add_warning(f"Land fraction {land_fraction:.1%} is nearly all water")
    elif land_fraction > 0.98:
        result.add_warning(f"Land fraction {land_fraction:.1%} leaves almost no ocean")
