"""Post-classification spreading: directional bleed and radial dilation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Tuple

import numpy as np
from scipy.ndimage import binary_dilation

from .biomes import BiomeRegistry
from .coast import EIGHT_CONNECTED, NEIGHBOR_OFFSETS, in_set, shift

Array = np.ndarray


@dataclass(frozen=True)
class SpreadSettings:
    spread_names: Tuple[str, ...] = ("jungle", "mangrove_swamp")
    corrupted_name: str = "corrupted_land"
    iterations: int = 4
    min_temp: float = 0.5
    min_humidity: float = 0.6
    max_height: float = 0.55

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, object]]) -> "SpreadSettings":
        if not mapping:
            return cls()
        names = mapping.get("spread_names", cls.spread_names)
        if isinstance(names, str):
            names = (names,)
        return cls(
            spread_names=tuple(str(n) for n in names),  # type: ignore[union-attr]
            corrupted_name=str(mapping.get("corrupted_name", cls.corrupted_name)),
            iterations=int(mapping.get("iterations", cls.iterations)),  # type: ignore[arg-type]
            min_temp=float(mapping.get("min_temp", cls.min_temp)),  # type: ignore[arg-type]
            min_humidity=float(mapping.get("min_humidity", cls.min_humidity)),  # type: ignore[arg-type]
            max_height=float(mapping.get("max_height", cls.max_height)),  # type: ignore[arg-type]
        )


def bleed(
    grid: Array,
    temp: Array,
    humidity: Array,
    height: Array,
    spread_ids: Iterable[int],
    *,
    min_temp: float = 0.5,
    min_humidity: float = 0.6,
    max_height: float = 0.55,
) -> Array:
    """One pass of spreadable biomes bleeding into climatically suitable cells.

    Only interior cells are rewritten. When several neighbours hold a
    spreadable biome, the last one in row-major neighbour order wins.
    """
    grid = np.asarray(grid)
    out = np.array(grid, dtype=np.int32, copy=True)
    ids = list(spread_ids)
    h, w = grid.shape
    if not ids or h < 3 or w < 3:
        return out

    gate = (np.asarray(temp) > min_temp) & (np.asarray(humidity) > min_humidity) & (np.asarray(height) < max_height)
    gate[0, :] = False
    gate[-1, :] = False
    gate[:, 0] = False
    gate[:, -1] = False

    for dy, dx in NEIGHBOR_OFFSETS:
        neighbor = shift(grid.astype(np.int32), dy, dx, fill=-1)
        hit = gate & in_set(neighbor, ids)
        out[hit] = neighbor[hit]
    return out


def dilate(grid: Array, biome_id: int, iterations: int = 4) -> Array:
    """Grow ``biome_id`` by ``iterations`` rounds of 8-connected dilation."""
    if iterations < 0:
        raise ValueError(f"iterations must be >= 0, got {iterations}")
    out = np.array(grid, dtype=np.int32, copy=True)
    mask = out == biome_id
    if iterations == 0 or not mask.any():
        return out
    grown = binary_dilation(mask, structure=EIGHT_CONNECTED, iterations=iterations, border_value=0)
    out[grown] = biome_id
    return out


def spread(
    grid: Array,
    temp: Array,
    humidity: Array,
    height: Array,
    registry: BiomeRegistry,
    settings: SpreadSettings | None = None,
) -> Array:
    settings = settings or SpreadSettings()
    spread_ids = [registry.id_of(name) for name in settings.spread_names]
    out = bleed(
        grid,
        temp,
        humidity,
        height,
        [i for i in spread_ids if i is not None],
        min_temp=settings.min_temp,
        min_humidity=settings.min_humidity,
        max_height=settings.max_height,
    )
    corrupted_id = registry.id_of(settings.corrupted_name)
    if corrupted_id is not None:
        out = dilate(out, corrupted_id, settings.iterations)
    return out


__all__ = ["SpreadSettings", "bleed", "dilate", "spread"]
