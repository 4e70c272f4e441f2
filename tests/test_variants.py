from __future__ import annotations

import numpy as np

from biome_maker.core.biomes import BiomeRegistry
from biome_maker.core.variants import apply_variants, water_within

OCEAN, DESERT, COAST, PLAINS = 0, 1, 4, 3
OASIS, DUNES, BEACH, ICE = 20, 21, 22, 23


def _registry(variants: list) -> BiomeRegistry:
    base = [
        {"id": OCEAN, "name": "ocean", "color": [0, 0, 200], "water": True},
        {"id": DESERT, "name": "desert", "color": [230, 210, 140]},
        {"id": PLAINS, "name": "plains", "color": [140, 190, 90]},
        {"id": COAST, "name": "coast", "color": [225, 215, 160]},
    ]
    return BiomeRegistry.from_records(base + variants)


def _apply(grid, registry, humidity=0.5, distance=None, seed=0):
    shape = grid.shape
    flat = np.full(shape, 0.5)
    hum = np.full(shape, humidity)
    if distance is None:
        distance = np.zeros(shape, dtype=np.float32)
    return apply_variants(grid, flat, flat, hum, flat, distance, registry, np.random.default_rng(seed))


def test_variant_with_zero_chance_always_applies():
    registry = _registry([{"id": OASIS, "name": "oasis", "base": "desert", "color": [0, 170, 150]}])
    grid = np.array([[DESERT, PLAINS], [DESERT, DESERT]], dtype=np.int32)
    out = _apply(grid, registry)
    np.testing.assert_array_equal(out, [[OASIS, PLAINS], [OASIS, OASIS]])
    assert grid[0, 0] == DESERT


def test_variant_rules_read_raw_fields():
    registry = _registry(
        [{"id": OASIS, "name": "oasis", "base": "desert", "color": [0, 170, 150], "rules": [{"humidity": ">0.6"}]}]
    )
    grid = np.full((2, 2), DESERT, dtype=np.int32)
    assert (_apply(grid, registry, humidity=0.5) == DESERT).all()
    assert (_apply(grid, registry, humidity=0.7) == OASIS).all()


def test_first_accepted_variant_wins():
    registry = _registry(
        [
            {"id": OASIS, "name": "oasis", "base": "desert", "color": [0, 170, 150]},
            {"id": DUNES, "name": "dunes", "base": "desert", "color": [250, 230, 160]},
        ]
    )
    grid = np.full((3, 3), DESERT, dtype=np.int32)
    assert (_apply(grid, registry) == OASIS).all()


def test_rejected_variant_falls_through_to_next():
    registry = _registry(
        [
            {"id": OASIS, "name": "oasis", "base": "desert", "color": [0, 170, 150], "random_chance": 1e-12},
            {"id": DUNES, "name": "dunes", "base": "desert", "color": [250, 230, 160]},
        ]
    )
    grid = np.full((3, 3), DESERT, dtype=np.int32)
    assert (_apply(grid, registry) == DUNES).all()


def test_variant_with_unknown_base_is_inert():
    registry = _registry([{"id": OASIS, "name": "oasis", "base": "volcano", "color": [0, 170, 150]}])
    assert [d.name for d in registry.inert_variants()] == ["oasis"]
    grid = np.full((2, 2), DESERT, dtype=np.int32)
    np.testing.assert_array_equal(_apply(grid, registry), grid)


def test_water_within_uses_euclidean_disk():
    water = np.zeros((5, 5), dtype=bool)
    water[2, 2] = True
    near = water_within(water, 1)
    expected = np.zeros((5, 5), dtype=bool)
    expected[2, 1:4] = True
    expected[1:4, 2] = True
    np.testing.assert_array_equal(near, expected)
    assert water_within(water, 2)[1, 1]
    assert not water_within(water, 2)[0, 0]


def test_max_distance_from_water_checks_current_grid():
    registry = _registry(
        [{"id": BEACH, "name": "beach", "base": "coast", "color": [245, 230, 170], "max_distance_from_water": 1}]
    )
    grid = np.array(
        [
            [OCEAN, COAST, COAST],
            [COAST, COAST, COAST],
        ],
        dtype=np.int32,
    )
    out = _apply(grid, registry)
    np.testing.assert_array_equal(out, [[OCEAN, BEACH, COAST], [BEACH, COAST, COAST]])


def test_min_distance_from_land_compares_against_distance_grid():
    registry = _registry(
        [{"id": ICE, "name": "deep_ice", "base": "plains", "color": [150, 200, 240], "min_distance_from_land": 2}]
    )
    grid = np.full((1, 4), PLAINS, dtype=np.int32)
    distance = np.array([[0, 1, 2, 3]], dtype=np.float32)
    out = _apply(grid, registry, distance=distance)
    np.testing.assert_array_equal(out, [[PLAINS, PLAINS, ICE, ICE]])


def test_variants_never_chain():
    registry = _registry(
        [
            {"id": OASIS, "name": "oasis", "base": "desert", "color": [0, 170, 150]},
            {"id": DUNES, "name": "dunes", "base": "oasis", "color": [250, 230, 160]},
        ]
    )
    grid = np.full((2, 2), DESERT, dtype=np.int32)
    assert (_apply(grid, registry) == OASIS).all()


def test_water_within_does_not_wrap_at_edges():
    water = np.zeros((4, 6), dtype=bool)
    water[:, 0] = True
    near = water_within(water, 2)
    assert near[:, :3].all()
    assert not near[:, 3:].any()
    np.testing.assert_array_equal(water_within(water, 0), water)
