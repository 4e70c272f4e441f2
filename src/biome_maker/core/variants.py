"""Variant overlays (oasis, blue ice, ...) on top of the spread grid."""

from __future__ import annotations

from typing import Dict

import numpy as np
from scipy.ndimage import binary_dilation

from .biomes import BiomeDefinition, BiomeRegistry, accept_draws
from .coast import in_set

Array = np.ndarray


def water_within(water: Array, radius: int) -> Array:
    """True where a water cell lies inside the disk ``dx*dx + dy*dy <= r*r``."""
    water = np.asarray(water, dtype=bool)
    if radius == 0:
        return water.copy()
    return binary_dilation(water, structure=disk(radius), border_value=0)


def disk(radius: int) -> Array:
    dy, dx = np.mgrid[-radius : radius + 1, -radius : radius + 1]
    return dx * dx + dy * dy <= radius * radius


def _eligible(
    variant: BiomeDefinition,
    candidates: Array,
    env: Dict[str, Array],
    water: Array,
    distance: Array,
    proximity_cache: Dict[int, Array],
) -> Array:
    mask = candidates & np.broadcast_to(variant.rules_match(env), candidates.shape)
    if variant.max_distance_from_water is not None and mask.any():
        radius = variant.max_distance_from_water
        if radius not in proximity_cache:
            proximity_cache[radius] = water_within(water, radius)
        mask &= proximity_cache[radius]
    if variant.min_distance_from_land is not None and mask.any():
        mask &= np.asarray(distance) >= variant.min_distance_from_land
    return mask


def apply_variants(
    grid: Array,
    land: Array,
    temp: Array,
    humidity: Array,
    height: Array,
    distance: Array,
    registry: BiomeRegistry,
    rng: np.random.Generator,
) -> Array:
    """Replace cells with the first accepted variant of their current biome.

    Rules are checked against the raw fields, water proximity against the
    input grid and land distance against ``distance``. A variant whose
    ``base`` is not a base biome never applies.
    """
    grid = np.asarray(grid)
    out = np.array(grid, dtype=np.int32, copy=True)
    env = {
        "land": np.asarray(land, dtype=np.float64),
        "temp": np.asarray(temp, dtype=np.float64),
        "humidity": np.asarray(humidity, dtype=np.float64),
        "height": np.asarray(height, dtype=np.float64),
    }
    water = in_set(grid, registry.water_ids)
    base_ids = {d.name: d.id for d in registry.base_biomes}
    converted = np.zeros(grid.shape, dtype=bool)
    proximity_cache: Dict[int, Array] = {}

    for variant in registry.variant_biomes:
        base_id = base_ids.get(variant.base)  # type: ignore[arg-type]
        if base_id is None:
            continue
        candidates = (grid == base_id) & ~converted
        if not candidates.any():
            continue
        mask = _eligible(variant, candidates, env, water, distance, proximity_cache)
        if not mask.any():
            continue
        accepted = np.zeros(grid.shape, dtype=bool)
        accepted[mask] = accept_draws(variant.random_chance, int(mask.sum()), rng)
        out[accepted] = variant.id
        converted |= accepted
    return out


__all__ = ["apply_variants", "disk", "water_within"]
