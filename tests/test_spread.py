from __future__ import annotations

import numpy as np
import pytest

from biome_maker.core.biomes import BiomeRegistry
from biome_maker.core.spread import SpreadSettings, bleed, dilate, spread

PLAINS, CORRUPTED, MANGROVE, JUNGLE = 3, 7, 8, 9


def _registry() -> BiomeRegistry:
    return BiomeRegistry.from_records(
        [
            {"id": PLAINS, "name": "plains", "color": [140, 190, 90]},
            {"id": CORRUPTED, "name": "corrupted_land", "color": [110, 40, 120]},
            {"id": MANGROVE, "name": "mangrove_swamp", "color": [60, 110, 70]},
            {"id": JUNGLE, "name": "jungle", "color": [30, 130, 40]},
        ]
    )


def _climate(shape, temp=0.8, humidity=0.8, height=0.3):
    return np.full(shape, temp), np.full(shape, humidity), np.full(shape, height)


def test_bleed_fills_suitable_interior_neighbour():
    grid = np.full((3, 3), PLAINS, dtype=np.int32)
    grid[0, 0] = JUNGLE
    out = bleed(grid, *_climate((3, 3)), [JUNGLE, MANGROVE])
    assert out[1, 1] == JUNGLE
    # Edge cells are never rewritten.
    assert out[0, 1] == PLAINS
    assert out[1, 0] == PLAINS
    assert grid[1, 1] == PLAINS


def test_bleed_last_neighbour_in_row_major_order_wins():
    grid = np.full((3, 3), PLAINS, dtype=np.int32)
    grid[0, 0] = JUNGLE
    grid[2, 2] = MANGROVE
    out = bleed(grid, *_climate((3, 3)), [JUNGLE, MANGROVE])
    assert out[1, 1] == MANGROVE


@pytest.mark.parametrize("climate", [{"temp": 0.5}, {"humidity": 0.6}, {"height": 0.55}])
def test_bleed_requires_climate_gate(climate):
    grid = np.full((3, 3), PLAINS, dtype=np.int32)
    grid[0, 0] = JUNGLE
    out = bleed(grid, *_climate((3, 3), **climate), [JUNGLE])
    np.testing.assert_array_equal(out, grid)


def test_bleed_is_a_single_pass():
    grid = np.full((5, 5), PLAINS, dtype=np.int32)
    grid[0, 0] = JUNGLE
    out = bleed(grid, *_climate((5, 5)), [JUNGLE])
    assert out[1, 1] == JUNGLE
    assert out[2, 2] == PLAINS


def test_dilate_grows_chebyshev_disk():
    grid = np.full((9, 9), PLAINS, dtype=np.int32)
    grid[4, 4] = CORRUPTED
    out = dilate(grid, CORRUPTED, iterations=2)
    yy, xx = np.mgrid[0:9, 0:9]
    expected = np.maximum(np.abs(yy - 4), np.abs(xx - 4)) <= 2
    np.testing.assert_array_equal(out == CORRUPTED, expected)
    assert (grid == CORRUPTED).sum() == 1


def test_dilate_zero_iterations_and_absent_biome():
    grid = np.full((4, 4), PLAINS, dtype=np.int32)
    np.testing.assert_array_equal(dilate(grid, CORRUPTED, iterations=0), grid)
    np.testing.assert_array_equal(dilate(grid, CORRUPTED, iterations=3), grid)
    with pytest.raises(ValueError):
        dilate(grid, CORRUPTED, iterations=-1)


def test_spread_runs_bleed_then_dilation():
    grid = np.full((9, 9), PLAINS, dtype=np.int32)
    grid[0, 0] = JUNGLE
    grid[8, 8] = CORRUPTED
    out = spread(grid, *_climate((9, 9)), _registry(), SpreadSettings(iterations=1))
    assert out[1, 1] == JUNGLE
    assert (out[7:, 7:] == CORRUPTED).all()
    assert out[6, 6] == PLAINS


def test_spread_skips_names_missing_from_registry():
    registry = BiomeRegistry.from_records([{"id": PLAINS, "name": "plains", "color": [0, 0, 0]}])
    grid = np.full((4, 4), PLAINS, dtype=np.int32)
    np.testing.assert_array_equal(spread(grid, *_climate((4, 4)), registry), grid)


def test_spread_settings_from_mapping():
    settings = SpreadSettings.from_mapping({"spread_names": "jungle", "iterations": 2, "min_temp": 0.4})
    assert settings.spread_names == ("jungle",)
    assert settings.iterations == 2
    assert settings.min_temp == 0.4
    assert settings.corrupted_name == "corrupted_land"
    assert SpreadSettings.from_mapping(None) == SpreadSettings()


def test_dilate_stops_at_grid_edge():
    grid = np.full((4, 4), PLAINS, dtype=np.int32)
    grid[0, 0] = CORRUPTED
    out = dilate(grid, CORRUPTED, iterations=1)
    expected = np.zeros((4, 4), dtype=bool)
    expected[:2, :2] = True
    np.testing.assert_array_equal(out == CORRUPTED, expected)
