"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Tests for great-circle helpers.
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from utils.geo import EARTH_RADIUS_M, great_circle_distance_m, path_distances_m


def test_one_degree_of_latitude():
    expected = EARTH_RADIUS_M * math.pi / 180.0
    assert great_circle_distance_m(45.0, 6.0, 46.0, 6.0) == pytest.approx(expected, rel=1e-9)


def test_same_point_is_zero():
    assert great_circle_distance_m(45.0, 6.0, 45.0, 6.0) == 0.0


def test_nan_propagates():
    assert math.isnan(great_circle_distance_m(float("nan"), 6.0, 45.0, 6.0))


def test_path_distances_per_edge():
    lats = [45.0, 45.01, 45.02]
    lons = [6.0, 6.0, 6.0]
    edges = path_distances_m(lats, lons)
    assert edges.shape == (2,)
    assert edges[0] == pytest.approx(edges[1], rel=1e-6)
    assert edges.sum() == pytest.approx(great_circle_distance_m(45.0, 6.0, 45.02, 6.0), rel=1e-9)


def test_path_distances_single_point():
    assert path_distances_m([45.0], [6.0]).size == 0
    assert isinstance(path_distances_m([], []), np.ndarray)
