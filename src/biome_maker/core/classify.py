"""Per-cell base biome classification from the four noise fields."""

from __future__ import annotations

from typing import Tuple

import numpy as np

from .biomes import BiomeRegistry, classify_env

Array = np.ndarray

BLEND_DIVISOR = 2.72


def blend_fields(land: Array, height: Array) -> Tuple[Array, Array]:
    """Return ``(effective_land, effective_height)``.

    Height is blended with land first and the result feeds back into land, so
    both noise sources shape the coastline and the uplands.
    """
    land = np.asarray(land, dtype=np.float64)
    height = np.asarray(height, dtype=np.float64)
    effective_height = (land + 2.0 * height) / BLEND_DIVISOR
    effective_land = (2.0 * land + effective_height) / BLEND_DIVISOR
    return effective_land, effective_height


def check_shapes(*fields: Array) -> Tuple[int, int]:
    shapes = {np.shape(f) for f in fields}
    if len(shapes) != 1:
        raise ValueError(f"Noise fields must share one shape, got {sorted(shapes)}")
    shape = shapes.pop()
    if len(shape) != 2:
        raise ValueError(f"Noise fields must be 2D, got shape {shape}")
    return shape  # type: ignore[return-value]


def classify_grid(
    land: Array,
    temp: Array,
    humidity: Array,
    height: Array,
    registry: BiomeRegistry,
    rng: np.random.Generator,
) -> Array:
    check_shapes(land, temp, humidity, height)
    effective_land, effective_height = blend_fields(land, height)
    env = {
        "land": effective_land,
        "temp": temp,
        "humidity": humidity,
        "height": effective_height,
    }
    return classify_env(env, registry, rng)


__all__ = ["BLEND_DIVISOR", "blend_fields", "check_shapes", "classify_grid"]
