"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Tests for the course profile builder.
"""

from __future__ import annotations

import pytest

from conftest import make_gpx, north_track
from services.race.course_profile import CourseProfileBuilder
from services.race.models import PlanRequest
from utils.errors import InvalidInput


@pytest.fixture
def builder() -> CourseProfileBuilder:
    return CourseProfileBuilder()


def test_distance_profile(builder):
    profile = builder.from_distance(21.1, 350)
    assert profile.source == "distance"
    assert profile.distance_km == 21.1
    assert profile.elevation_gain_m == 350
    assert not profile.has_track


def test_distance_profile_floors_negative_gain(builder):
    assert builder.from_distance(10, -40).elevation_gain_m == 0.0
    assert builder.from_distance(10, None).elevation_gain_m == 0.0


@pytest.mark.parametrize("distance", [0, -5, float("nan"), float("inf"), None])
def test_distance_profile_rejects_bad_distance(builder, distance):
    with pytest.raises(InvalidInput, match="distanceKm must be > 0"):
        builder.from_distance(distance)


def test_gpx_profile_accumulates_distance(builder, flat_gpx):
    profile = builder.from_gpx(flat_gpx)
    assert profile.source == "gpx"
    assert profile.has_track
    assert profile.distance_km == pytest.approx(10.0, abs=1e-6)
    assert profile.points[-1].cumulative_distance_km == profile.distance_km
    km = [p.cumulative_distance_km for p in profile.points]
    assert km == sorted(km)
    assert profile.elevation_gain_m == 0.0


def test_gpx_profile_counts_only_rises(builder, hilly_gpx):
    profile = builder.from_gpx(hilly_gpx)
    assert profile.elevation_gain_m == pytest.approx(160.0, abs=0.5)


def test_gain_ignores_points_without_elevation(builder):
    gpx = make_gpx([(45.0, 6.0, 100.0), (45.001, 6.0, None), (45.002, 6.0, 150.0), (45.003, 6.0, 160.0)])
    profile = builder.from_gpx(gpx)
    assert profile.points[1].elevation is None
    assert profile.elevation_gain_m == pytest.approx(10.0)


def test_blank_gpx_rejected(builder):
    with pytest.raises(InvalidInput, match="gpx payload is required"):
        builder.from_gpx("   ")


def test_gpx_with_single_point_rejected(builder):
    with pytest.raises(InvalidInput, match="no usable track points"):
        builder.from_gpx(make_gpx([(45.0, 6.0, 100.0)]))


def test_gpx_without_length_rejected(builder):
    with pytest.raises(InvalidInput, match="no length"):
        builder.from_gpx(make_gpx([(45.0, 6.0, 100.0), (45.0, 6.0, 110.0)]))


def test_build_dispatches_on_mode(builder, flat_gpx):
    assert builder.build(PlanRequest(mode="distance", distance_km=5.0)).source == "distance"
    assert builder.build(PlanRequest(mode="gpx", gpx=flat_gpx)).source == "gpx"
