"""Grid-step distance from the nearest water cell."""

from __future__ import annotations

from collections import deque

import numpy as np

Array = np.ndarray

LAND_THRESHOLD = 0.56

_STEPS = ((0, 1), (0, -1), (1, 0), (-1, 0))


def land_mask(land: Array, threshold: float = LAND_THRESHOLD) -> Array:
    """Boolean land/water grid from the raw land field (``True`` is land)."""
    return np.asarray(land) >= threshold


def water_distance(is_land: Array) -> Array:
    """Multi-source BFS over the 4-connected grid.

    Every water cell starts at 0 and seeds the frontier; a neighbour is
    queued whenever its tentative distance improves. Cells with no water
    anywhere on the grid stay at ``inf``.
    """
    is_land = np.asarray(is_land, dtype=bool)
    h, w = is_land.shape
    dist = np.full((h, w), np.inf, dtype=np.float32)
    queue: deque[tuple[int, int]] = deque()
    for y, x in zip(*np.nonzero(~is_land)):
        dist[y, x] = 0.0
        queue.append((int(y), int(x)))

    while queue:
        y, x = queue.popleft()
        next_dist = dist[y, x] + 1.0
        for dy, dx in _STEPS:
            ny, nx = y + dy, x + dx
            if 0 <= ny < h and 0 <= nx < w and next_dist < dist[ny, nx]:
                dist[ny, nx] = next_dist
                queue.append((ny, nx))
    return dist


__all__ = ["LAND_THRESHOLD", "land_mask", "water_distance"]
