"""Terrain configuration loading from TOML files."""

import tomllib
from pathlib import Path

from .terrain.config import TerrainConfig


def load_config(config_path: Path) -> TerrainConfig:
    """Load terrain configuration from a TOML file.

    Args:
        config_path: Path to the TOML config file.

    Returns:
        Parsed TerrainConfig.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If TOML is malformed.
        pydantic.ValidationError: If a value is out of range.
    """
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return TerrainConfig.model_validate(data)


# Bundled presets live next to pyproject.toml, outside the package.
CONFIGS_DIR = Path(__file__).resolve().parents[2] / "configs"


def find_config(name: str) -> Path:
    """Resolve a preset name or a file path to a terrain config.

    A name with a directory part or a ``.toml`` suffix is taken as a path.
    A bare name is looked up among the bundled presets, with or without the
    ``.toml`` suffix.

    Raises:
        FileNotFoundError: If nothing matches, listing the bundled presets.
    """
    given = Path(name)
    if given.suffix == ".toml" or given.parent != Path("."):
        if not given.exists():
            raise FileNotFoundError(f"Terrain config not found: {name}")
        return given

    for candidate in (CONFIGS_DIR / f"{name}.toml", CONFIGS_DIR / name):
        if candidate.is_file():
            return candidate

    presets = ", ".join(list_configs()) or "none"
    raise FileNotFoundError(f"Preset '{name}' not found (bundled presets: {presets})")


def list_configs() -> list[str]:
    """Names of the bundled presets, sorted."""
    return sorted(path.stem for path in CONFIGS_DIR.glob("*.toml"))
