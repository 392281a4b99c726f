"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Tests for aid station placement.
"""

from __future__ import annotations

import pytest

from services.race.aid_stations import (
    AidStationPlanner,
    Candidate,
    climb_candidates,
    dedupe_stations,
    detect_local_peaks,
    periodic_candidates,
    periodic_spacing_km,
)
from services.race.athlete_baseline import default_baseline
from services.race.course_profile import CourseProfileBuilder
from services.race.fueling import FuelAllocator
from services.race.models import CourseProfile, RaceContext, Segment, TrackPoint
from services.race.pacing import PacingModel
from services.race.segmentation import SegmentationService


def _profile_with_elevations(elevations):
    points = tuple(
        TrackPoint(45.0 + i * 0.009, 6.0, ele, float(i)) for i, ele in enumerate(elevations)
    )
    return CourseProfile(
        source="gpx", distance_km=float(len(elevations) - 1), elevation_gain_m=0.0, points=points
    )


def _plan_segments(profile):
    athlete = default_baseline()
    context = RaceContext()
    sections = SegmentationService().segment_course(profile)
    segments = PacingModel().pace_sections(sections, athlete, context, profile.distance_km)
    return FuelAllocator().allocate(segments, athlete, context)


def test_periodic_spacing():
    assert periodic_spacing_km(30) == 7.0
    assert periodic_spacing_km(55) == 8.0
    assert periodic_spacing_km(80) == 10.0
    assert [c.at_km for c in periodic_candidates(21.0)] == [7.0, 14.0]
    assert [c.at_km for c in periodic_candidates(21.1)] == [7.0, 14.0, 21.0]


def test_dedupe_keeps_first_of_cluster():
    candidates = [Candidate(2.0, "a"), Candidate(3.0, "b"), Candidate(3.5, "c"), Candidate(5.0, "d")]
    assert [c.at_km for c in dedupe_stations(candidates, 1.4)] == [2.0, 3.5, 5.0]


def test_detect_peaks():
    elevations = [100.0] * 11
    elevations[1] = 130.0  # too close to the start
    elevations[5] = 130.0
    elevations[7] = 105.0  # not prominent enough
    peaks = detect_local_peaks(_profile_with_elevations(elevations))
    assert peaks == [Candidate(5.0, "aid_terrain_high")]


def test_detect_peaks_skips_missing_elevation():
    elevations = [100.0] * 11
    elevations[5] = 130.0
    elevations[4] = None
    assert detect_local_peaks(_profile_with_elevations(elevations)) == []


def test_peaks_are_capped():
    elevations = [100.0] * 41
    for i in range(3, 38, 2):
        elevations[i] = 150.0
    assert len(detect_local_peaks(_profile_with_elevations(elevations))) == 8


def test_flat_half_marathon_stations():
    profile = CourseProfileBuilder().from_distance(21.1, 0)
    segments = _plan_segments(profile)
    stations = AidStationPlanner().place(profile, segments, "en")
    assert [s.at_km for s in stations] == [7.0, 14.0]
    assert all(s.reason_code == "aid_periodic" for s in stations)
    assert stations[0].reason == "Periodic refill point"
    assert stations[0].hydration_ml > 120.0
    assert stations[0].carbs_g >= 15.0
    # second station covers the stretch since the first one
    assert stations[1].hydration_ml == pytest.approx(stations[0].hydration_ml, rel=0.1)


def test_stations_stay_inside_course_and_are_spaced():
    profile = CourseProfileBuilder().from_distance(120.0, 5000)
    segments = _plan_segments(profile)
    stations = AidStationPlanner().place(profile, segments, "fr")
    kms = [s.at_km for s in stations]
    assert kms == sorted(kms)
    assert len(stations) <= 14
    assert all(2.0 <= km <= 119.0 for km in kms)
    assert all(b - a >= 1.4 - 1e-9 for a, b in zip(kms, kms[1:]))
    assert all(s.hydration_ml >= 120.0 and s.carbs_g >= 15.0 for s in stations)


def test_amount_floors_apply():
    segments = (
        Segment(
            index=1, start_km=0.0, end_km=3.0, distance_km=3.0, elevation_gain_m=200.0,
            elevation_loss_m=0.0, average_grade_pct=6.7, terrain="climb", target_pace_min_per_km=8.0,
            target_pace_label="8:00/km", estimated_duration_min=24.0, effort_score=8, strategy_note="",
            start_minute=0.0, end_minute=24.0,
        ),
        Segment(
            index=2, start_km=3.0, end_km=10.0, distance_km=7.0, elevation_gain_m=0.0,
            elevation_loss_m=0.0, average_grade_pct=0.0, terrain="flat", target_pace_min_per_km=6.0,
            target_pace_label="6:00/km", estimated_duration_min=42.0, effort_score=6, strategy_note="",
            start_minute=24.0, end_minute=66.0,
        ),
    )
    assert climb_candidates(segments) == [Candidate(3.0, "aid_top_climb")]
    profile = CourseProfile(source="distance", distance_km=10.0, elevation_gain_m=200.0)
    stations = AidStationPlanner().place(profile, segments, "en")
    assert [(s.at_km, s.reason_code) for s in stations] == [(3.0, "aid_top_climb"), (7.0, "aid_periodic")]
    # no rates on these segments, so both amounts fall back to the floors
    assert stations[0].hydration_ml == 120.0
    assert stations[0].carbs_g == 15.0
