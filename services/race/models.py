"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Value types exchanged between the race planner stages.

All types are immutable; later stages derive new values with
``dataclasses.replace`` instead of mutating earlier ones.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Any, Literal, Mapping, Optional

import numpy as np

from utils.coercion import clamp, safe_float_optional
from utils.constants import (
    HUMIDITY_DEFAULT_PCT,
    HUMIDITY_RANGE_PCT,
    TEMPERATURE_DEFAULT_C,
    TEMPERATURE_RANGE_C,
)
from utils.errors import InvalidInput
from utils.i18n import Locale, normalize_locale

Source = Literal["gpx", "distance"]
Level = Literal["beginner", "intermediate", "advanced"]
Terrain = Literal["climb", "flat", "downhill"]
RunnerType = Literal["endurance", "speed", "balanced"]


@dataclass(frozen=True)
class TrackPoint:
    lat: float
    lon: float
    elevation: Optional[float]
    cumulative_distance_km: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "lat": self.lat,
            "lon": self.lon,
            "elevationM": self.elevation,
            "cumulativeDistanceKm": self.cumulative_distance_km,
        }


@dataclass(frozen=True)
class CourseProfile:
    """Normalized course: total distance, gain and (for tracks) the point sequence."""

    source: Source
    distance_km: float
    elevation_gain_m: float
    points: tuple[TrackPoint, ...] = ()

    @property
    def has_track(self) -> bool:
        return len(self.points) > 1

    @cached_property
    def cumulative_km(self) -> np.ndarray:
        return np.array([p.cumulative_distance_km for p in self.points], dtype=float)

    @cached_property
    def elevations(self) -> np.ndarray:
        return np.array(
            [np.nan if p.elevation is None else p.elevation for p in self.points], dtype=float
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "distanceKm": self.distance_km,
            "elevationGainM": self.elevation_gain_m,
            "pointCount": len(self.points),
        }


@dataclass(frozen=True)
class SegmentBounds:
    start_km: float
    end_km: float

    @property
    def distance_km(self) -> float:
        return max(0.0, self.end_km - self.start_km)


@dataclass(frozen=True)
class CourseSection:
    """Terrain-homogeneous stretch of the course, before any pacing."""

    start_km: float
    end_km: float
    elevation_gain_m: float
    elevation_loss_m: float
    average_grade_pct: float
    terrain: Terrain

    @property
    def distance_km(self) -> float:
        return max(0.0, self.end_km - self.start_km)

    @property
    def midpoint_km(self) -> float:
        return (self.start_km + self.end_km) / 2.0


@dataclass(frozen=True)
class Segment:
    index: int
    start_km: float
    end_km: float
    distance_km: float
    elevation_gain_m: float
    elevation_loss_m: float
    average_grade_pct: float
    terrain: Terrain
    target_pace_min_per_km: float
    target_pace_label: str
    estimated_duration_min: float
    effort_score: int
    strategy_note: str
    calories_kcal: float = 0.0
    carb_target_g: float = 0.0
    hydration_target_ml: float = 0.0
    hydration_rate_ml_per_hour: float = 0.0
    start_minute: float = 0.0
    end_minute: float = 0.0

    @property
    def duration_hours(self) -> float:
        return max(0.0, self.end_minute - self.start_minute) / 60.0

    @property
    def carb_rate_g_per_hour(self) -> float:
        hours = self.duration_hours
        return self.carb_target_g / hours if hours > 0 else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "startKm": round(self.start_km, 2),
            "endKm": round(self.end_km, 2),
            "distanceKm": round(self.distance_km, 2),
            "elevationGainM": int(round(self.elevation_gain_m)),
            "elevationLossM": int(round(self.elevation_loss_m)),
            "averageGradePercent": round(self.average_grade_pct, 2),
            "terrain": self.terrain,
            "targetPaceMinPerKm": round(self.target_pace_min_per_km, 2),
            "targetPaceLabel": self.target_pace_label,
            "estimatedDurationMin": round(self.estimated_duration_min, 1),
            "effortScore": self.effort_score,
            "strategyNote": self.strategy_note,
            "caloriesKcal": int(round(self.calories_kcal)),
            "carbTargetG": int(round(self.carb_target_g)),
            "hydrationTargetMl": int(round(self.hydration_target_ml)),
            "hydrationRateMlPerHour": int(round(self.hydration_rate_ml_per_hour)),
            "startMinute": round(self.start_minute, 1),
            "endMinute": round(self.end_minute, 1),
        }


@dataclass(frozen=True)
class AthleteBaseline:
    level: Level
    baseline_pace_min_per_km: float
    weekly_distance_km: float
    weekly_elevation_gain_m: float
    short_pace_min_per_km: float
    long_pace_min_per_km: float
    endurance_score: float
    speed_score: float
    endurance_decay_ratio: float
    runner_type: RunnerType
    estimated_weight_kg: float
    activities_sample_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "baselinePaceMinPerKm": self.baseline_pace_min_per_km,
            "weeklyDistanceKm": self.weekly_distance_km,
            "weeklyElevationGainM": self.weekly_elevation_gain_m,
            "shortPaceMinPerKm": self.short_pace_min_per_km,
            "longPaceMinPerKm": self.long_pace_min_per_km,
            "enduranceScore": self.endurance_score,
            "speedScore": self.speed_score,
            "enduranceDecayRatio": self.endurance_decay_ratio,
            "runnerType": self.runner_type,
            "estimatedWeightKg": self.estimated_weight_kg,
            "activitiesSampleCount": self.activities_sample_count,
        }


@dataclass(frozen=True)
class RaceContext:
    temperature_c: float = TEMPERATURE_DEFAULT_C
    humidity_pct: float = HUMIDITY_DEFAULT_PCT

    @classmethod
    def from_overrides(
        cls, temperature_c: Optional[float] = None, humidity_pct: Optional[float] = None
    ) -> "RaceContext":
        temperature = TEMPERATURE_DEFAULT_C if temperature_c is None else temperature_c
        humidity = HUMIDITY_DEFAULT_PCT if humidity_pct is None else humidity_pct
        return cls(
            temperature_c=clamp(temperature, *TEMPERATURE_RANGE_C),
            humidity_pct=clamp(humidity, *HUMIDITY_RANGE_PCT),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"temperatureC": self.temperature_c, "humidityPct": self.humidity_pct}


@dataclass(frozen=True)
class FuelEvent:
    at_km: float
    at_minute: float
    carbs_g: float
    kind: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "atKm": round(self.at_km, 2),
            "atMinute": round(self.at_minute, 1),
            "carbsG": int(round(self.carbs_g)),
            "type": self.kind,
        }


@dataclass(frozen=True)
class HydrationStop:
    at_km: float
    at_minute: float
    hydration_ml: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "atKm": round(self.at_km, 2),
            "atMinute": round(self.at_minute, 1),
            "hydrationMl": int(round(self.hydration_ml)),
        }


@dataclass(frozen=True)
class AidStation:
    at_km: float
    reason_code: str
    reason: str
    hydration_ml: float = 0.0
    carbs_g: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "atKm": round(self.at_km, 2),
            "reasonCode": self.reason_code,
            "reason": self.reason,
            "hydrationMl": int(round(self.hydration_ml)),
            "carbsG": int(round(self.carbs_g)),
        }


@dataclass(frozen=True)
class Zone:
    start_km: float
    end_km: float
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"startKm": self.start_km, "endKm": self.end_km, "reason": self.reason}


@dataclass(frozen=True)
class PacingGuidance:
    conservative_until_km: float
    push_from_km: float
    pace_by_terrain: dict[str, str]
    key_slow_zones: tuple[Zone, ...]
    key_push_zones: tuple[Zone, ...]
    notes: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "conservativeUntilKm": self.conservative_until_km,
            "pushFromKm": self.push_from_km,
            "paceByTerrain": dict(self.pace_by_terrain),
            "keySlowZones": [z.to_dict() for z in self.key_slow_zones],
            "keyPushZones": [z.to_dict() for z in self.key_push_zones],
            "notes": list(self.notes),
        }


@dataclass(frozen=True)
class HydrationPlan:
    total_ml: float
    average_rate_ml_per_hour: float
    guideline: str
    stops: tuple[HydrationStop, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalMl": int(round(self.total_ml)),
            "averageRateMlPerHour": int(round(self.average_rate_ml_per_hour)),
            "guideline": self.guideline,
            "stops": [s.to_dict() for s in self.stops],
        }


@dataclass(frozen=True)
class NutritionPlan:
    total_carbs_g: float
    total_calories_kcal: float
    carbs_per_hour_g: float
    guideline: str
    feeds: tuple[FuelEvent, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalCarbsG": int(round(self.total_carbs_g)),
            "totalCaloriesKcal": int(round(self.total_calories_kcal)),
            "carbsPerHourG": int(round(self.carbs_per_hour_g)),
            "guideline": self.guideline,
            "feeds": [f.to_dict() for f in self.feeds],
        }


@dataclass(frozen=True)
class PlanSummary:
    distance_km: float
    elevation_gain_m: float
    estimated_duration_min: float
    average_target_pace_min_per_km: float
    total_calories_kcal: float
    total_carbs_g: float
    total_hydration_ml: float
    runner_type: RunnerType
    distance_penalty_pct: float
    confidence_score: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "distanceKm": round(self.distance_km, 2),
            "elevationGainM": int(round(self.elevation_gain_m)),
            "estimatedDurationMin": int(round(self.estimated_duration_min)),
            "averageTargetPaceMinPerKm": round(self.average_target_pace_min_per_km, 2),
            "totalCaloriesKcal": int(round(self.total_calories_kcal)),
            "totalCarbsG": int(round(self.total_carbs_g)),
            "totalHydrationMl": int(round(self.total_hydration_ml)),
            "runnerType": self.runner_type,
            "distancePenaltyPct": round(self.distance_penalty_pct, 2),
            "confidenceScore": self.confidence_score,
        }


@dataclass(frozen=True)
class Plan:
    source: Source
    athlete: AthleteBaseline
    summary: PlanSummary
    context: RaceContext
    pacing: PacingGuidance
    hydration: HydrationPlan
    nutrition: NutritionPlan
    aid_stations: tuple[AidStation, ...]
    segments: tuple[Segment, ...]
    generated_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "athlete": self.athlete.to_dict(),
            "summary": self.summary.to_dict(),
            "context": self.context.to_dict(),
            "pacing": self.pacing.to_dict(),
            "hydration": self.hydration.to_dict(),
            "nutrition": self.nutrition.to_dict(),
            "aidStations": [a.to_dict() for a in self.aid_stations],
            "segments": [s.to_dict() for s in self.segments],
            "generatedAt": self.generated_at,
        }


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def _optional_number(raw: Mapping[str, Any], name: str, *keys: str) -> Optional[float]:
    value = _pick(raw, *keys)
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    number = safe_float_optional(value)
    if number is None:
        raise InvalidInput(f"{name} must be a finite number")
    return number


@dataclass(frozen=True)
class PlanRequest:
    """Validated planning options, built once at the boundary."""

    mode: Source
    distance_km: Optional[float] = None
    elevation_gain_m: float = 0.0
    gpx: str = ""
    locale: Locale = "en"
    weight_kg: Optional[float] = None
    temperature_c: Optional[float] = None
    humidity_pct: Optional[float] = None

    @property
    def has_weather_override(self) -> bool:
        return self.temperature_c is not None or self.humidity_pct is not None

    @classmethod
    def from_input(cls, raw: Mapping[str, Any], default_locale: str = "en") -> "PlanRequest":
        """Validate a wire-format (camelCase) input mapping.

        Raises:
            InvalidInput: bad or missing mode, non-positive distance, missing
                GPX payload, or non-numeric overrides.
        """
        if raw is None:
            raw = {}
        mode = str(_pick(raw, "mode") or "").strip().lower()
        if mode not in ("gpx", "distance"):
            raise InvalidInput('mode must be "gpx" or "distance"')

        locale_raw = _pick(raw, "locale")
        locale = normalize_locale(locale_raw if locale_raw else default_locale)
        weight_kg = _optional_number(raw, "weightKg", "weightKg", "weight_kg")
        temperature_c = _optional_number(raw, "temperatureC", "temperatureC", "temperature_c")
        humidity_pct = _optional_number(raw, "humidityPct", "humidityPct", "humidity_pct")

        if mode == "distance":
            distance_km = safe_float_optional(_pick(raw, "distanceKm", "distance_km"))
            if distance_km is None or distance_km <= 0:
                raise InvalidInput("distanceKm must be > 0")
            gain = safe_float_optional(_pick(raw, "elevationGainM", "elevation_gain_m"))
            return cls(
                mode="distance",
                distance_km=distance_km,
                elevation_gain_m=max(0.0, gain or 0.0),
                locale=locale,
                weight_kg=weight_kg,
                temperature_c=temperature_c,
                humidity_pct=humidity_pct,
            )

        gpx = _pick(raw, "gpx")
        if isinstance(gpx, bytes):
            gpx = gpx.decode("utf-8", errors="replace")
        gpx = str(gpx or "")
        if not gpx.strip():
            raise InvalidInput('gpx payload is required when mode="gpx"')
        return cls(
            mode="gpx",
            gpx=gpx,
            locale=locale,
            weight_kg=weight_kg,
            temperature_c=temperature_c,
            humidity_pct=humidity_pct,
        )
