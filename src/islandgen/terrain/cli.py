"""Command-line interface for terrain generation."""

import argparse
import logging
import time
import tomllib

import structlog


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for the islandgen command."""
    parser = argparse.ArgumentParser(
        description="Generate a procedural island heightmap with biomes"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path or name of a terrain TOML config file",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed (overrides config)")
    parser.add_argument("--width", type=int, default=None, help="Grid width (overrides config)")
    parser.add_argument("--height", type=int, default=None, help="Grid height (overrides config)")
    parser.add_argument(
        "--land",
        type=float,
        default=None,
        help="Probability of land for the island passes (overrides config)",
    )
    parser.add_argument(
        "--surround",
        action="store_true",
        help="Force an ocean ring around the map",
    )
    parser.add_argument(
        "--debug-images",
        type=str,
        default=None,
        help="Directory to save debug images (optional)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Verbose logging"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for terrain generation."""
    args = build_parser().parse_args(argv)

    # Configure structlog
    level = logging.DEBUG if args.verbose else logging.INFO
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )
    logger = structlog.get_logger()

    # Import here to avoid slow startup for --help
    from pydantic import ValidationError

    from ..config import find_config, load_config
    from ..exceptions import TerrainError
    from .config import TerrainConfig
    from .generator import biome_counts, generate_terrain
    from .validation import validate_terrain

    if args.config:
        try:
            config_path = find_config(args.config)
        except FileNotFoundError as exc:
            logger.error("config_not_found", path=args.config, detail=str(exc))
            return 1
        try:
            config = load_config(config_path)
        except (ValidationError, tomllib.TOMLDecodeError) as exc:
            logger.error("invalid_config", path=str(config_path), detail=str(exc))
            return 1
        logger.info("config_loaded", path=str(config_path))
    else:
        config = TerrainConfig()
        logger.info("using_default_config")

    # Apply CLI overrides
    data = config.model_dump()
    if args.seed is not None:
        data["seed"] = args.seed
    if args.width is not None:
        data["width"] = args.width
    if args.height is not None:
        data["height"] = args.height
    if args.debug_images is not None:
        data["debug_output_dir"] = args.debug_images
    if args.land is not None:
        data["automaton"]["probability_of_land"] = args.land
    if args.surround:
        data["automaton"]["surround_with_ocean"] = True

    # Re-validate so overrides obey the same constraints as file values
    try:
        config = TerrainConfig.model_validate(data)
    except ValidationError as exc:
        logger.error("invalid_config", detail=str(exc))
        return 1

    start_time = time.time()
    try:
        result = generate_terrain(config)
    except TerrainError as exc:
        logger.error("generation_failed", detail=str(exc))
        return 1
    gen_time = time.time() - start_time

    validation = validate_terrain(result.biomes, result.heights, config)

    print(f"Generated {result.width}x{result.height} terrain with seed {config.seed}")
    print(f"Pipeline grid: {result.pipeline_size}x{result.pipeline_size}")
    print(f"Generation complete in {gen_time:.1f}s")
    print()
    for name, count in biome_counts(result.biomes).items():
        print(f"  {name:<14} {count:>8,} ({count / result.biomes.size:6.1%})")

    return 0 if validation.passed else 2


if __name__ == "__main__":
    raise SystemExit(main())
