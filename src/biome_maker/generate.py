"""World-level helpers: noise fields, biome maps and PNG rendering."""

from __future__ import annotations

from dataclasses import asdict
from typing import Dict, Mapping

import numpy as np
from PIL import Image

from .core.biome_map import generate_layers
from .core.biomes import UNKNOWN_COLOR, BiomeRegistry
from .core.census import census
from .core.distance import LAND_THRESHOLD
from .core.noise import generate_field
from .core.spread import SpreadSettings

Array = np.ndarray

FIELD_NAMES = ("land", "temp", "humidity", "height")

# (seed offset, scale) per field.
FIELD_DEFAULTS = {
    "land": (1, 48.0),
    "temp": (2, 64.0),
    "humidity": (3, 64.0),
    "height": (4, 20.0),
}


def generate_noise_fields(width: int, height: int, seed: int, cfg: Mapping) -> Dict[str, Array]:
    fields = {}
    for name in FIELD_NAMES:
        offset, scale = FIELD_DEFAULTS[name]
        fields[name] = generate_field(
            seed + int(cfg.get(f"{name}_seed_offset", offset)),
            width,
            height,
            float(cfg.get(f"{name}_scale", scale)),
            octaves=int(cfg.get(f"{name}_octaves", cfg.get("octaves", 4))),
            persistence=float(cfg.get(f"{name}_persistence", cfg.get("persistence", 0.5))),
        )
    return fields


def generate_world(
    width: int, height: int, seed: int, registry: BiomeRegistry, config: Mapping
) -> Dict[str, Array | Dict]:
    land_threshold = float(config.get("land_threshold", LAND_THRESHOLD))
    settings = SpreadSettings.from_mapping(config.get("spread"))
    fields = generate_noise_fields(width, height, seed, config)
    layers = generate_layers(
        fields["land"],
        fields["temp"],
        fields["humidity"],
        fields["height"],
        registry,
        rng=seed,
        spread_settings=settings,
        land_threshold=land_threshold,
    )
    biome = layers["biome"]

    coast_id = registry.coast_id
    stats = {
        "land_ratio": float((layers["distance"] > 0).mean()),
        "water_ratio": float(np.isin(biome, list(registry.water_ids)).mean()),
        "coast_cells": int((biome == coast_id).sum()) if coast_id is not None else 0,
        "biomes": census(biome, registry),
    }

    return {
        **fields,
        "distance": layers["distance"],
        "biome": biome,
        "stats": stats,
        "params": {"land_threshold": land_threshold, "spread": asdict(settings)},
    }


def render_field_png(field: Array) -> Image.Image:
    """Grayscale image of a [0, 1] noise field."""
    data = (np.clip(np.asarray(field, dtype=np.float64), 0.0, 1.0) * 255.0).astype(np.uint8)
    return Image.fromarray(data)


def colorize(biome: Array, registry: BiomeRegistry) -> Array:
    """``(rows, cols, 3)`` uint8 colours; ids unknown to ``registry`` are magenta."""
    biome = np.asarray(biome)
    table = registry.color_table()
    img = table[np.clip(biome, 0, len(table) - 1)]
    img[(biome < 0) | (biome >= len(table))] = UNKNOWN_COLOR
    return img


def render_png(world: Mapping[str, Array], registry: BiomeRegistry) -> Image.Image:
    return Image.fromarray(colorize(world["biome"], registry))


__all__ = [
    "FIELD_NAMES",
    "colorize",
    "generate_noise_fields",
    "generate_world",
    "render_field_png",
    "render_png",
]
