"""Core entry point: four noise fields and a registry in, a biome grid out."""

from __future__ import annotations

from typing import Dict, Optional

import numpy as np

from .biomes import BiomeRegistry
from .classify import check_shapes, classify_grid
from .coast import resolve_coastline
from .distance import LAND_THRESHOLD, land_mask, water_distance
from .spread import SpreadSettings, spread
from .variants import apply_variants

Array = np.ndarray


def as_generator(rng: np.random.Generator | int) -> np.random.Generator:
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(int(rng))


def generate_layers(
    land: Array,
    temp: Array,
    humidity: Array,
    height: Array,
    registry: BiomeRegistry,
    *,
    rng: np.random.Generator | int = 0,
    spread_settings: SpreadSettings | None = None,
    land_threshold: float = LAND_THRESHOLD,
) -> Dict[str, Array]:
    """Run every stage and return each stage's grid by name.

    Keys: ``base``, ``coastline``, ``spread``, ``distance`` and ``biome``.
    Each grid is a fresh array; no stage writes into its predecessor.
    """
    check_shapes(land, temp, humidity, height)
    generator = as_generator(rng)

    base = classify_grid(land, temp, humidity, height, registry, generator)
    coastline = resolve_coastline(base, registry)
    spread_grid = spread(coastline, temp, humidity, height, registry, spread_settings)
    distance = water_distance(land_mask(land, land_threshold))
    biome = apply_variants(spread_grid, land, temp, humidity, height, distance, registry, generator)
    return {
        "base": base,
        "coastline": coastline,
        "spread": spread_grid,
        "distance": distance,
        "biome": biome,
    }


def generate(
    land: Array,
    temp: Array,
    humidity: Array,
    height: Array,
    registry: BiomeRegistry,
    width: Optional[int] = None,
    grid_height: Optional[int] = None,
    *,
    rng: np.random.Generator | int = 0,
    spread_settings: SpreadSettings | None = None,
    land_threshold: float = LAND_THRESHOLD,
) -> Array:
    """Classify four noise fields into a ``(rows, cols)`` int32 biome grid.

    ``rng`` supplies every probabilistic draw; pass a seeded generator (or an
    integer seed) to make the result reproducible. ``width`` and
    ``grid_height`` are optional cross-checks against the field shapes.
    """
    rows, cols = check_shapes(land, temp, humidity, height)
    if width is not None and width != cols:
        raise ValueError(f"width {width} does not match field width {cols}")
    if grid_height is not None and grid_height != rows:
        raise ValueError(f"grid_height {grid_height} does not match field height {rows}")
    layers = generate_layers(
        land,
        temp,
        humidity,
        height,
        registry,
        rng=rng,
        spread_settings=spread_settings,
        land_threshold=land_threshold,
    )
    return layers["biome"]


__all__ = ["as_generator", "generate", "generate_layers"]
