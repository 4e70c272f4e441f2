"""Biome counts and tile lookup over a finished grid."""

from __future__ import annotations

from typing import Dict, List, Tuple

import numpy as np

from .biomes import BiomeDefinition, BiomeRegistry


def census(grid: np.ndarray, registry: BiomeRegistry) -> List[Dict[str, object]]:
    """One row per biome id present in ``grid``, ordered by id."""
    ids, counts = np.unique(np.asarray(grid), return_counts=True)
    total = int(counts.sum())
    rows = []
    for biome_id, count in zip(ids.tolist(), counts.tolist()):
        rows.append(
            {
                "id": int(biome_id),
                "name": registry.name_of(biome_id) or "unknown",
                "count": int(count),
                "fraction": count / total if total else 0.0,
            }
        )
    return rows


def find_tiles(grid: np.ndarray, biome_id: int) -> List[Tuple[int, int]]:
    """``(x, y)`` of every cell holding ``biome_id``, in row-major order."""
    ys, xs = np.nonzero(np.asarray(grid) == biome_id)
    return list(zip(xs.tolist(), ys.tolist()))


def find_biome(
    grid: np.ndarray, registry: BiomeRegistry, fragment: str
) -> Tuple[BiomeDefinition, List[Tuple[int, int]]]:
    matches = registry.search(fragment)
    if not matches:
        raise LookupError(f"No biome matches '{fragment}'")
    if len(matches) > 1:
        names = ", ".join(d.name for d in matches)
        raise LookupError(f"'{fragment}' matches several biomes: {names}")
    biome = matches[0]
    return biome, find_tiles(grid, biome.id)


__all__ = ["census", "find_biome", "find_tiles"]
