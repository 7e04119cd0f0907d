"""Command-line interface for noise map generation."""

import argparse
import logging
import time
from typing import Sequence

import numpy as np
import structlog

from .config import (
    LayerConfig,
    NoiseMapConfig,
    find_config,
    generate_noise_map,
    load_config,
)
from .exceptions import NoiseMapError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a composite noise map from layered coherent noise"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path or name of noise map TOML config file",
    )
    parser.add_argument("--width", type=int, default=None, help="Map width (overrides config)")
    parser.add_argument("--height", type=int, default=None, help="Map height (overrides config)")
    parser.add_argument(
        "--kernel",
        choices=["coarse", "smooth", "extra_smooth"],
        default=None,
        help="Smoothing kernel (overrides config)",
    )
    parser.add_argument(
        "--passes", type=int, default=None, help="Smoothing passes (overrides config)"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point for noise map generation."""
    args = build_parser().parse_args(argv)

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

    if args.config:
        try:
            config_path = find_config(args.config)
        except FileNotFoundError as e:
            logger.error("config_not_found", path=args.config, error=str(e))
            return 1
        config = load_config(config_path)
        logger.info("config_loaded", path=str(config_path))
    else:
        config = NoiseMapConfig(layers=[LayerConfig()])
        logger.info("using_default_config")

    # Apply CLI overrides
    if args.width is not None:
        config.width = args.width
    if args.height is not None:
        config.height = args.height
    if args.kernel is not None:
        config.smoothing.kernel = args.kernel
    if args.passes is not None:
        config.smoothing.passes = args.passes

    start_time = time.time()
    try:
        noise_map = generate_noise_map(config)
    except NoiseMapError as e:
        logger.error("generation_failed", error=str(e))
        return 1

    logger.info(
        "noise_map_generated",
        width=config.width,
        height=config.height,
        layers=len(config.layers),
        min=float(np.min(noise_map)),
        max=float(np.max(noise_map)),
        mean=float(np.mean(noise_map)),
        duration_s=round(time.time() - start_time, 3),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
