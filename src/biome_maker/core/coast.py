"""Coastline overlay for land cells bordering open water."""

from __future__ import annotations

from typing import Iterable

import numpy as np
from scipy.ndimage import binary_dilation

from .biomes import BiomeRegistry

Array = np.ndarray

EIGHT_CONNECTED = np.ones((3, 3), dtype=bool)
NEIGHBORS_ONLY = EIGHT_CONNECTED.copy()
NEIGHBORS_ONLY[1, 1] = False

NEIGHBOR_OFFSETS = (
    (-1, -1),
    (-1, 0),
    (-1, 1),
    (0, -1),
    (0, 1),
    (1, -1),
    (1, 0),
    (1, 1),
)


def shift(mask: Array, dy: int, dx: int, fill: bool = False) -> Array:
    """``out[y, x] = mask[y + dy, x + dx]``; reads off the edge give ``fill``."""
    h, w = mask.shape
    out = np.full(mask.shape, fill, dtype=mask.dtype)
    if abs(dy) >= h or abs(dx) >= w:
        return out
    ys_dst = slice(max(0, -dy), min(h, h - dy))
    xs_dst = slice(max(0, -dx), min(w, w - dx))
    ys_src = slice(max(0, dy), min(h, h + dy))
    xs_src = slice(max(0, dx), min(w, w + dx))
    out[ys_dst, xs_dst] = mask[ys_src, xs_src]
    return out


def any_neighbor(mask: Array) -> Array:
    """True where at least one of the 8 neighbours is set."""
    return binary_dilation(np.asarray(mask, dtype=bool), structure=NEIGHBORS_ONLY, border_value=0)


def in_set(grid: Array, ids: Iterable[int]) -> Array:
    return np.isin(grid, np.fromiter(ids, dtype=np.int64))


def resolve_coastline(grid: Array, registry: BiomeRegistry) -> Array:
    """Rewrite non-water cells next to coast-source water as the coast biome.

    Neighbours are read from the input grid only, so rewritten cells never
    feed back into the same pass.
    """
    out = np.array(grid, dtype=np.int32, copy=True)
    coast_id = registry.coast_id
    if coast_id is None:
        return out
    sources = in_set(grid, registry.coast_source_ids)
    water = in_set(grid, registry.water_ids)
    out[~water & any_neighbor(sources)] = coast_id
    return out


__all__ = ["EIGHT_CONNECTED", "NEIGHBOR_OFFSETS", "any_neighbor", "in_set", "resolve_coastline", "shift"]
