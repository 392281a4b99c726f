"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Energy and fuel allocation.

Each paced segment gets calories, a carbohydrate target and a hydration
target, plus its [start_minute, end_minute] window on the race clock.
Hydration stops and feeds are then laid out at fixed minute intervals and
sized by what the overlapping segments consume since the previous event.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Sequence

import numpy as np
from streamlit.logger import get_logger

from services.race.models import (
    AthleteBaseline,
    FuelEvent,
    HydrationPlan,
    HydrationStop,
    Level,
    NutritionPlan,
    RaceContext,
    Segment,
    Terrain,
)
from utils.coercion import clamp
from utils.constants import (
    CARB_CAP_G_PER_HOUR,
    FEED_INTERVAL_MIN,
    HYDRATION_INTERVAL_MIN,
    HYDRATION_RANGE_ML_PER_HOUR,
    MET_RANGE,
    TERRAIN_MET_BASE,
)
from utils.i18n import translate

logger = get_logger(__name__)

RateFn = Callable[[Segment], float]


# ------------------------------------------------------------------------------
# Per-segment energy maths
# ------------------------------------------------------------------------------


def met_for(terrain: Terrain, effort: float) -> float:
    return clamp(TERRAIN_MET_BASE.get(terrain, 9.5) + 0.35 * (effort - 5.0), *MET_RANGE)


def calories_kcal(met: float, weight_kg: float, hours: float, temperature_c: float) -> float:
    heat = 1.0 + max(0.0, temperature_c - 16.0) * 0.0035
    return met * weight_kg * max(0.0, hours) * heat


def carb_target_g(calories: float, effort: float, level: Level, hours: float) -> float:
    """Carbohydrate intake target: a share of the burn, capped per hour by level."""
    oxidation = 0.45 + (effort - 1.0) / 9.0 * 0.35
    burn_g = calories * oxidation / 4.0
    cap = CARB_CAP_G_PER_HOUR.get(level, CARB_CAP_G_PER_HOUR["beginner"]) * max(0.0, hours)
    return max(0.0, min(0.82 * burn_g, cap))


def hydration_rate_ml_per_hour(effort: float, gain_per_km: float, context: RaceContext) -> float:
    rate = (
        420.0
        + 22.0 * effort
        + min(60.0, max(0.0, gain_per_km)) * 1.6
        + max(0.0, context.temperature_c - 14.0) * 18.0
        + max(0.0, context.humidity_pct - 50.0) * 2.2
    )
    return clamp(rate, *HYDRATION_RANGE_ML_PER_HOUR)


def hydration_rate(segment: Segment) -> float:
    return segment.hydration_rate_ml_per_hour


def carb_rate(segment: Segment) -> float:
    return segment.carb_rate_g_per_hour


# ------------------------------------------------------------------------------
# Timeline helpers
# ------------------------------------------------------------------------------


def total_minutes(segments: Sequence[Segment]) -> float:
    return segments[-1].end_minute if segments else 0.0


def km_at_minute(segments: Sequence[Segment], minute: float) -> float:
    """Course position at a race-clock minute, interpolated inside its segment."""
    if not segments:
        return 0.0
    for seg in segments:
        if minute <= seg.end_minute:
            span = seg.end_minute - seg.start_minute
            ratio = (minute - seg.start_minute) / span if span > 0 else 0.0
            return seg.start_km + clamp(ratio, 0.0, 1.0) * (seg.end_km - seg.start_km)
    return segments[-1].end_km


def minute_at_km(segments: Sequence[Segment], km: float) -> float:
    """Race-clock minute at a course position, interpolated inside its segment."""
    if not segments:
        return 0.0
    for seg in segments:
        if km <= seg.end_km:
            span = seg.end_km - seg.start_km
            ratio = (km - seg.start_km) / span if span > 0 else 0.0
            return seg.start_minute + clamp(ratio, 0.0, 1.0) * (seg.end_minute - seg.start_minute)
    return segments[-1].end_minute


def amount_between(
    segments: Sequence[Segment], start_min: float, end_min: float, rate_fn: RateFn
) -> float:
    """Sum of rate_per_hour * overlap_minutes / 60 over the segments overlapping a window."""
    if not segments or end_min <= start_min:
        return 0.0
    starts = np.array([s.start_minute for s in segments], dtype=float)
    ends = np.array([s.end_minute for s in segments], dtype=float)
    rates = np.array([rate_fn(s) for s in segments], dtype=float)
    overlap = np.clip(np.minimum(ends, end_min) - np.maximum(starts, start_min), 0.0, None)
    return float((rates * overlap / 60.0).sum())


def event_ticks(total_min: float, interval_min: float) -> list[float]:
    """Minutes k * interval (k >= 1) that fall within the race duration."""
    if interval_min <= 0 or total_min < interval_min:
        return []
    count = int(np.floor(total_min / interval_min + 1e-9))
    return [k * interval_min for k in range(1, count + 1)]


# ------------------------------------------------------------------------------
# Allocator
# ------------------------------------------------------------------------------


class FuelAllocator:
    """Enrich paced segments with energy targets and build fuel timelines."""

    def allocate(
        self, segments: Sequence[Segment], athlete: AthleteBaseline, context: RaceContext
    ) -> tuple[Segment, ...]:
        cursor = 0.0
        enriched = []
        for seg in segments:
            duration = max(0.0, seg.estimated_duration_min)
            hours = duration / 60.0
            met = met_for(seg.terrain, seg.effort_score)
            calories = calories_kcal(met, athlete.estimated_weight_kg, hours, context.temperature_c)
            gain_per_km = seg.elevation_gain_m / seg.distance_km if seg.distance_km > 0 else 0.0
            rate = hydration_rate_ml_per_hour(seg.effort_score, gain_per_km, context)
            enriched.append(
                replace(
                    seg,
                    calories_kcal=calories,
                    carb_target_g=carb_target_g(calories, seg.effort_score, athlete.level, hours),
                    hydration_target_ml=rate * hours,
                    hydration_rate_ml_per_hour=rate,
                    start_minute=cursor,
                    end_minute=cursor + duration,
                )
            )
            cursor += duration
        logger.debug("Allocated fuel over %d segments (%.1f min)", len(enriched), cursor)
        return tuple(enriched)

    def hydration_stops(self, segments: Sequence[Segment], level: Level) -> tuple[HydrationStop, ...]:
        interval = HYDRATION_INTERVAL_MIN.get(level, HYDRATION_INTERVAL_MIN["beginner"])
        stops = []
        previous = 0.0
        for tick in event_ticks(total_minutes(segments), interval):
            stops.append(
                HydrationStop(
                    at_km=km_at_minute(segments, tick),
                    at_minute=tick,
                    hydration_ml=amount_between(segments, previous, tick, hydration_rate),
                )
            )
            previous = tick
        return tuple(stops)

    def feed_events(
        self, segments: Sequence[Segment], level: Level, locale: str = "en"
    ) -> tuple[FuelEvent, ...]:
        interval = FEED_INTERVAL_MIN.get(level, FEED_INTERVAL_MIN["beginner"])
        kind = translate(locale, "feed_kind")
        feeds = []
        previous = 0.0
        for tick in event_ticks(total_minutes(segments), interval):
            feeds.append(
                FuelEvent(
                    at_km=km_at_minute(segments, tick),
                    at_minute=tick,
                    carbs_g=amount_between(segments, previous, tick, carb_rate),
                    kind=kind,
                )
            )
            previous = tick
        return tuple(feeds)

    def hydration_plan(
        self, segments: Sequence[Segment], athlete: AthleteBaseline, locale: str = "en"
    ) -> HydrationPlan:
        total_ml = sum(s.hydration_target_ml for s in segments)
        hours = total_minutes(segments) / 60.0
        average_rate = total_ml / hours if hours > 0 else 0.0
        return HydrationPlan(
            total_ml=total_ml,
            average_rate_ml_per_hour=average_rate,
            guideline=translate(locale, "hydration_guideline", rate=int(round(average_rate))),
            stops=self.hydration_stops(segments, athlete.level),
        )

    def nutrition_plan(
        self, segments: Sequence[Segment], athlete: AthleteBaseline, locale: str = "en"
    ) -> NutritionPlan:
        total_carbs = sum(s.carb_target_g for s in segments)
        total_calories = sum(s.calories_kcal for s in segments)
        hours = total_minutes(segments) / 60.0
        carbs_per_hour = total_carbs / hours if hours > 0 else 0.0
        return NutritionPlan(
            total_carbs_g=total_carbs,
            total_calories_kcal=total_calories,
            carbs_per_hour_g=carbs_per_hour,
            guideline=translate(locale, "nutrition_guideline", rate=int(round(carbs_per_hour))),
            feeds=self.feed_events(segments, athlete.level, locale),
        )
