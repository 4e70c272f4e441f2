from __future__ import annotations

import numpy as np

from biome_maker.core.distance import LAND_THRESHOLD, land_mask, water_distance


def test_land_mask_threshold_is_inclusive():
    land = np.array([[0.1, LAND_THRESHOLD, 0.9]])
    np.testing.assert_array_equal(land_mask(land), [[False, True, True]])
    np.testing.assert_array_equal(land_mask(land, threshold=0.95), [[False, False, False]])


def test_distance_counts_four_connected_steps():
    is_land = np.array([[False, True, True, True, False]])
    np.testing.assert_array_equal(water_distance(is_land), [[0, 1, 2, 1, 0]])


def test_distance_is_manhattan_around_single_lake():
    is_land = np.ones((5, 5), dtype=bool)
    is_land[2, 2] = False
    dist = water_distance(is_land)
    yy, xx = np.mgrid[0:5, 0:5]
    np.testing.assert_array_equal(dist, np.abs(yy - 2) + np.abs(xx - 2))
    assert dist.dtype == np.float32


def test_distance_without_water_is_infinite():
    dist = water_distance(np.ones((3, 4), dtype=bool))
    assert dist.shape == (3, 4)
    assert np.isinf(dist).all()


def test_all_water_is_zero():
    np.testing.assert_array_equal(water_distance(np.zeros((2, 2), dtype=bool)), np.zeros((2, 2)))


def test_distance_grows_away_from_water_row():
    is_land = np.ones((5, 5), dtype=bool)
    is_land[0, :] = False
    dist = water_distance(is_land)
    np.testing.assert_array_equal(dist, np.repeat(np.arange(5)[:, None], 5, axis=1))
