from __future__ import annotations

import numpy as np

from biome_maker.core.biomes import BiomeRegistry
from biome_maker.core.coast import any_neighbor, resolve_coastline, shift

OCEAN, DEEP, PLAINS, COAST = 0, 1, 3, 4


def _registry(with_coast: bool = True) -> BiomeRegistry:
    records = [
        {"id": OCEAN, "name": "ocean", "color": [0, 0, 200], "water": True},
        {"id": DEEP, "name": "deep_ocean", "color": [0, 0, 90], "water": True},
        {"id": PLAINS, "name": "plains", "color": [140, 190, 90]},
    ]
    if with_coast:
        records.append({"id": COAST, "name": "coast", "color": [225, 215, 160]})
    return BiomeRegistry.from_records(records)


def test_shift_reads_neighbour_and_fills_edges():
    mask = np.arange(9).reshape(3, 3)
    np.testing.assert_array_equal(shift(mask, 0, 1, fill=-1), [[1, 2, -1], [4, 5, -1], [7, 8, -1]])
    np.testing.assert_array_equal(shift(mask, -1, 0, fill=-1), [[-1, -1, -1], [0, 1, 2], [3, 4, 5]])
    assert (shift(mask, 0, 5, fill=-1) == -1).all()


def test_any_neighbor_is_eight_connected():
    mask = np.zeros((5, 5), dtype=bool)
    mask[2, 2] = True
    expected = np.zeros((5, 5), dtype=bool)
    expected[1:4, 1:4] = True
    expected[2, 2] = False
    np.testing.assert_array_equal(any_neighbor(mask), expected)


def test_land_around_ocean_becomes_coast():
    grid = np.full((5, 5), PLAINS, dtype=np.int32)
    grid[2, 2] = OCEAN
    out = resolve_coastline(grid, _registry())
    assert out[2, 2] == OCEAN
    assert (out[1:4, 1:4][np.arange(9).reshape(3, 3) != 4] == COAST).all()
    assert (out[0, :] == PLAINS).all()
    assert (out[:, 4] == PLAINS).all()
    assert grid[1, 1] == PLAINS


def test_deep_ocean_does_not_make_coast():
    grid = np.full((4, 4), PLAINS, dtype=np.int32)
    grid[0, 0] = DEEP
    out = resolve_coastline(grid, _registry())
    np.testing.assert_array_equal(out, grid)


def test_water_next_to_water_is_kept():
    grid = np.array([[DEEP, OCEAN, PLAINS]], dtype=np.int32)
    out = resolve_coastline(grid, _registry())
    np.testing.assert_array_equal(out, [[DEEP, OCEAN, COAST]])


def test_coast_does_not_propagate_within_a_pass():
    grid = np.array([[OCEAN, PLAINS, PLAINS, PLAINS]], dtype=np.int32)
    out = resolve_coastline(grid, _registry())
    np.testing.assert_array_equal(out, [[OCEAN, COAST, PLAINS, PLAINS]])


def test_missing_coast_biome_is_a_no_op():
    grid = np.array([[OCEAN, PLAINS]], dtype=np.int32)
    out = resolve_coastline(grid, _registry(with_coast=False))
    np.testing.assert_array_equal(out, grid)
    assert out is not grid


def test_coast_does_not_wrap_around_grid():
    grid = np.full((3, 5), PLAINS, dtype=np.int32)
    grid[:, 0] = OCEAN
    out = resolve_coastline(grid, _registry())
    assert (out[:, 1] == COAST).all()
    assert (out[:, 4] == PLAINS).all()
