"""Command-line entry point for biome map generation."""

from __future__ import annotations

import argparse
import json
import logging
import time
from pathlib import Path
from typing import Any, Dict

import structlog
import yaml

from biome_maker.biome_file import load_registry
from biome_maker.core.census import find_biome
from biome_maker.generate import generate_world, render_png


def configure_logging(level: int = logging.WARNING) -> None:
    """JSON log lines on stderr for the library's structlog loggers."""
    logging.basicConfig(format="%(message)s")
    logging.getLogger("biome_maker").setLevel(level)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


def load_config(path: str | None) -> Dict[str, Any]:
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        msg = f"Config must be a mapping, got {type(data).__name__}"
        raise ValueError(msg)
    return data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser("biome-maker")
    parser.add_argument("--width", type=int, default=500)
    parser.add_argument("--height", type=int, default=250)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--biomes", type=str, default=None, help="YAML/JSON biome file (default: bundled set)")
    parser.add_argument("--config", type=str, default=None, help="YAML config file")
    parser.add_argument("--out", type=str, default="out/biomes.png")
    parser.add_argument("--find", type=str, default=None, help="Report tiles of the biome whose name contains this")
    parser.add_argument("--verbose", action="store_true", help="Log debug events")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)

    config = load_config(args.config)
    registry = load_registry(args.biomes)

    t0 = time.time()
    world = generate_world(width=args.width, height=args.height, seed=args.seed, registry=registry, config=config)
    image = render_png(world, registry)
    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(out_path)

    metadata = {
        "seed": args.seed,
        "width": args.width,
        "height": args.height,
        "config": config,
        "params": world["params"],
        "stats": world["stats"],
    }
    with open(out_path.with_suffix(".json"), "w", encoding="utf-8") as fh:
        json.dump(metadata, fh, indent=2)

    elapsed = time.time() - t0
    print(f"Wrote {out_path} and {out_path.with_suffix('.json')} in {elapsed:.2f}s")

    if args.find:
        try:
            biome, tiles = find_biome(world["biome"], registry, args.find)
        except LookupError as exc:
            print(exc)
            return
        print(f"Found {len(tiles)} tiles for biome: {biome.name}")


if __name__ == "__main__":
    main()
