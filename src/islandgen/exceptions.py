"""Custom exceptions for terrain generation."""


class TerrainError(Exception):
    """Base exception for terrain generation errors."""

    pass


class GridShapeError(TerrainError, ValueError):
    """Raised when a grid is empty, ragged, not 2D, or mismatched in size."""

    pass


class ConfigurationError(TerrainError, ValueError):
    """Raised when a generation parameter is degenerate or inconsistent."""

    pass


class PipelineError(TerrainError):
    """Raised when a stage list is invalid or leaves climate values behind."""

    pass


class GenerationCancelledError(TerrainError):
    """Raised when generation is cancelled between pipeline stages."""

    pass
