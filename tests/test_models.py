"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Tests for plan request validation and value types.
"""

from __future__ import annotations

import pytest

from services.race.models import PlanRequest, RaceContext
from utils.errors import InvalidInput


def test_distance_request_defaults():
    request = PlanRequest.from_input({"mode": "distance", "distanceKm": "21.1"})
    assert request.mode == "distance"
    assert request.distance_km == 21.1
    assert request.elevation_gain_m == 0.0
    assert request.locale == "en"
    assert request.weight_kg is None
    assert not request.has_weather_override


def test_snake_case_keys_are_accepted():
    request = PlanRequest.from_input(
        {"mode": "distance", "distance_km": 10, "elevation_gain_m": 120, "weight_kg": 64}
    )
    assert request.distance_km == 10
    assert request.elevation_gain_m == 120
    assert request.weight_kg == 64


def test_locale_and_overrides():
    request = PlanRequest.from_input(
        {"mode": "distance", "distanceKm": 10, "locale": "fr-FR", "temperatureC": 25}
    )
    assert request.locale == "fr"
    assert request.temperature_c == 25
    assert request.has_weather_override


def test_default_locale_used_when_missing():
    request = PlanRequest.from_input({"mode": "distance", "distanceKm": 10}, default_locale="fr")
    assert request.locale == "fr"


@pytest.mark.parametrize("raw", [{}, {"mode": "bike"}, {"mode": None}])
def test_bad_mode(raw):
    with pytest.raises(InvalidInput, match='mode must be "gpx" or "distance"'):
        PlanRequest.from_input(raw)


@pytest.mark.parametrize("distance", [0, -1, "abc", None, "NaN"])
def test_bad_distance(distance):
    with pytest.raises(InvalidInput, match="distanceKm must be > 0"):
        PlanRequest.from_input({"mode": "distance", "distanceKm": distance})


def test_missing_gpx_payload():
    with pytest.raises(InvalidInput, match="gpx payload is required"):
        PlanRequest.from_input({"mode": "gpx", "gpx": ""})


def test_non_numeric_override():
    with pytest.raises(InvalidInput, match="weightKg must be a finite number"):
        PlanRequest.from_input({"mode": "distance", "distanceKm": 10, "weightKg": "heavy"})


def test_invalid_input_is_a_value_error():
    with pytest.raises(ValueError):
        PlanRequest.from_input({"mode": "nope"})
    assert InvalidInput("x").status_code == 400


def test_race_context_clamps():
    context = RaceContext.from_overrides(60, 1)
    assert context.temperature_c == 45
    assert context.humidity_pct == 5
    defaults = RaceContext.from_overrides()
    assert defaults.to_dict() == {"temperatureC": 18.0, "humidityPct": 55.0}
