from __future__ import annotations

import numpy as np
import pytest

from biome_maker.core import census, find_biome, find_tiles, generate, generate_field, generate_layers
from biome_maker.core.biomes import BiomeRegistry
from biome_maker.core.coast import any_neighbor

WATER, PLAINS, COAST = 0, 1, 2


def _registry() -> BiomeRegistry:
    return BiomeRegistry.from_records(
        [
            {"id": WATER, "name": "ocean", "color": [0, 0, 200], "water": True, "rules": [{"land": "<0.2"}]},
            {"id": PLAINS, "name": "plains", "color": [140, 190, 90]},
            {"id": COAST, "name": "coast", "color": [225, 215, 160]},
        ]
    )


def _fields(seed: int, width: int, height: int):
    return [generate_field(seed + offset, width, height, scale) for offset, scale in ((1, 4.0), (2, 6.0), (3, 6.0), (4, 3.0))]


def test_seeded_ten_by_ten_grid():
    registry = _registry()
    land, temp, humidity, height = _fields(42, 10, 10)
    grid = generate(land, temp, humidity, height, registry, 10, 10, rng=42)
    assert grid.shape == (10, 10)
    assert grid.dtype == np.int32
    assert set(np.unique(grid).tolist()) <= {WATER, PLAINS, COAST}

    water = grid == WATER
    touching = ~water & any_neighbor(water)
    assert (grid[touching] == COAST).all()
    assert not (grid[~water & ~touching] == COAST).any()

    again = generate(land, temp, humidity, height, registry, rng=np.random.default_rng(42))
    np.testing.assert_array_equal(grid, again)


def test_coastline_where_water_meets_land():
    registry = _registry()
    land = np.full((6, 6), 0.9)
    land[:, :2] = 0.0
    flat = np.full((6, 6), 0.5)
    grid = generate(land, flat, flat, np.zeros((6, 6)), registry)
    assert (grid[:, :2] == WATER).all()
    assert (grid[:, 2] == COAST).all()
    assert (grid[:, 3:] == PLAINS).all()


def test_generate_checks_dimensions():
    registry = _registry()
    fields = _fields(1, 8, 4)
    with pytest.raises(ValueError):
        generate(*fields, registry, 4, 8)
    with pytest.raises(ValueError):
        generate(fields[0], fields[1], fields[2][:, :3], fields[3], registry)


def test_layers_are_independent_arrays():
    registry = _registry()
    layers = generate_layers(*_fields(3, 12, 9), registry, rng=3)
    assert set(layers) == {"base", "coastline", "spread", "distance", "biome"}
    assert not np.shares_memory(layers["base"], layers["coastline"])
    assert not (layers["base"] == COAST).any()
    assert layers["distance"].dtype == np.float32


def test_census_and_tile_lookup():
    registry = _registry()
    grid = np.array([[WATER, PLAINS], [PLAINS, PLAINS]], dtype=np.int32)
    rows = census(grid, registry)
    assert rows == [
        {"id": WATER, "name": "ocean", "count": 1, "fraction": 0.25},
        {"id": PLAINS, "name": "plains", "count": 3, "fraction": 0.75},
    ]
    assert find_tiles(grid, PLAINS) == [(1, 0), (0, 1), (1, 1)]
    biome, tiles = find_biome(grid, registry, "OCE")
    assert biome.name == "ocean"
    assert tiles == [(0, 0)]


def test_find_biome_reports_missing_and_ambiguous_names():
    registry = _registry()
    grid = np.zeros((2, 2), dtype=np.int32)
    with pytest.raises(LookupError):
        find_biome(grid, registry, "tundra")
    with pytest.raises(LookupError):
        find_biome(grid, registry, "a")
