"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Pacing model: per-segment target paces, effort scores and race guidance.

The target pace is the athlete's baseline pace multiplied by a chain of
factors (grade, level, terrain, distance penalty, drift, race phase and
weather). All factors are bounded so the result stays finite.
"""

from __future__ import annotations

import math
from typing import Sequence

from streamlit.logger import get_logger

from services.race.models import (
    AthleteBaseline,
    CourseSection,
    Level,
    PacingGuidance,
    RaceContext,
    Segment,
    Terrain,
    Zone,
)
from services.race.segmentation import resolve_terrain
from utils.coercion import clamp, clamp01
from utils.constants import (
    CONSERVATIVE_PROGRESS,
    EFFORT_LEVEL_ADJUSTMENT,
    GRADE_FACTORS_DOWN,
    GRADE_FACTORS_UP,
    LEVEL_PACE_FACTORS,
    MAX_GUIDANCE_ZONES,
    PUSH_ZONE_GRADE_PCT,
    SLOW_ZONE_GRADE_PCT,
    TERRAIN_LABEL_FACTORS,
    TERRAIN_PACE_FACTORS,
    TERRAINS,
)
from utils.formatting import fmt_km, format_pace, round2
from utils.i18n import translate

logger = get_logger(__name__)

START_PHASE_END = 0.12
FADE_PHASE_START = 0.72
KICK_PHASE_START = 0.82


# ------------------------------------------------------------------------------
# Pace factors
# ------------------------------------------------------------------------------


def grade_factor(grade_pct: float) -> float:
    for min_grade, factor in GRADE_FACTORS_UP:
        if grade_pct >= min_grade:
            return factor
    for max_grade, factor in GRADE_FACTORS_DOWN:
        if grade_pct <= max_grade:
            return factor
    return 1.0


def level_factor(level: Level) -> float:
    return LEVEL_PACE_FACTORS.get(level, 1.0)


def terrain_factor(terrain: Terrain, level: Level) -> float:
    return TERRAIN_PACE_FACTORS.get(terrain, {}).get(level, 1.0)


def distance_penalty_pct(distance_km: float, endurance_score: float) -> float:
    """Extra slowdown (%) for races longer than 10 km, softened by endurance above 50."""
    if distance_km <= 10:
        return 0.0
    resilience = 1.0 - max(0.0, endurance_score - 50.0) / 100.0
    return 6.0 * math.log(distance_km / 10.0) * resilience


def drift_factor(progress: float, distance_km: float, endurance_score: float) -> float:
    drift_pct = min(12.0, max(0.0, distance_km - 18.0) * 0.08 * (1.0 - endurance_score / 200.0))
    return 1.0 + clamp01(progress) * drift_pct / 100.0


def phase_factor(progress: float, athlete: AthleteBaseline) -> float:
    """Race-phase multiplier: cautious start, late fade and a closing kick."""
    factor = 1.0
    if progress < START_PHASE_END:
        factor *= 1.03
    if progress > FADE_PHASE_START:
        decay = clamp(athlete.endurance_decay_ratio, 1.0, 1.3)
        fade = (progress - FADE_PHASE_START) / (1.0 - FADE_PHASE_START)
        factor *= 1.0 + (decay - 1.0) * 0.5 * fade
    if progress > KICK_PHASE_START and athlete.speed_score - athlete.endurance_score >= 10:
        factor *= 0.98
    return factor


def weather_factor(context: RaceContext) -> float:
    heat = 1.0 + max(0.0, context.temperature_c - 14.0) * 0.006
    humidity = 1.0 + max(0.0, context.humidity_pct - 55.0) * 0.0015
    return heat * humidity


def target_pace(
    segment_grade_pct: float,
    athlete: AthleteBaseline,
    race_distance_km: float,
    progress_ratio: float,
    context: RaceContext,
    terrain: Terrain | None = None,
) -> float:
    """Target pace (min/km) for one segment.

    Args:
        segment_grade_pct: Net grade of the segment in percent
        athlete: Athlete baseline
        race_distance_km: Total race distance
        progress_ratio: Segment midpoint divided by the race distance
        context: Race-day weather
        terrain: Terrain class; derived from the grade when omitted

    Returns:
        float: Target pace in minutes per km
    """
    if terrain is None:
        terrain = resolve_terrain(segment_grade_pct)
    progress = clamp01(progress_ratio)
    pace = athlete.baseline_pace_min_per_km
    pace *= grade_factor(segment_grade_pct)
    pace *= level_factor(athlete.level)
    pace *= terrain_factor(terrain, athlete.level)
    pace *= 1.0 + distance_penalty_pct(race_distance_km, athlete.endurance_score) / 100.0
    pace *= drift_factor(progress, race_distance_km, athlete.endurance_score)
    pace *= phase_factor(progress, athlete)
    pace *= weather_factor(context)
    return pace


def effort_score(grade_pct: float, level: Level) -> int:
    if grade_pct >= 6:
        base = 8.0
    elif grade_pct >= 3:
        base = 7.0
    elif grade_pct <= -3:
        base = 5.0
    else:
        base = 6.0
    return int(clamp(round(base + EFFORT_LEVEL_ADJUSTMENT.get(level, 0.0)), 1, 10))


def strategy_note(index: int, segment_count: int, grade_pct: float, locale: str) -> str:
    """Position- and grade-aware advice for a 1-based segment index."""
    if index <= max(1, math.floor(segment_count * 0.15)):
        return translate(locale, "strategy_start")
    if grade_pct >= 5:
        return translate(locale, "strategy_climb")
    if index >= math.floor(segment_count * 0.75) and grade_pct <= 1.5:
        return translate(locale, "strategy_push")
    return translate(locale, "strategy_steady")


# ------------------------------------------------------------------------------
# Pacing model
# ------------------------------------------------------------------------------


class PacingModel:
    """Turn course sections into paced segments and a guidance block."""

    def pace_sections(
        self,
        sections: Sequence[CourseSection],
        athlete: AthleteBaseline,
        context: RaceContext,
        distance_km: float,
        locale: str = "en",
    ) -> tuple[Segment, ...]:
        count = len(sections)
        segments = []
        for idx, section in enumerate(sections, start=1):
            progress = section.midpoint_km / distance_km if distance_km > 0 else 0.0
            pace = target_pace(
                section.average_grade_pct, athlete, distance_km, progress, context, section.terrain
            )
            segments.append(
                Segment(
                    index=idx,
                    start_km=section.start_km,
                    end_km=section.end_km,
                    distance_km=round2(section.distance_km),
                    elevation_gain_m=section.elevation_gain_m,
                    elevation_loss_m=section.elevation_loss_m,
                    average_grade_pct=section.average_grade_pct,
                    terrain=section.terrain,
                    target_pace_min_per_km=pace,
                    target_pace_label=format_pace(pace),
                    estimated_duration_min=pace * section.distance_km,
                    effort_score=effort_score(section.average_grade_pct, athlete.level),
                    strategy_note=strategy_note(idx, count, section.average_grade_pct, locale),
                )
            )
        logger.debug("Paced %d segments for a %.2f km course", len(segments), distance_km)
        return tuple(segments)

    def pace_by_terrain(self, athlete: AthleteBaseline) -> dict[str, str]:
        flat = athlete.baseline_pace_min_per_km * level_factor(athlete.level)
        return {
            terrain: format_pace(flat * TERRAIN_LABEL_FACTORS[terrain][athlete.level])
            for terrain in TERRAINS
        }

    def build_guidance(
        self,
        segments: Sequence[Segment],
        athlete: AthleteBaseline,
        distance_km: float,
        locale: str = "en",
    ) -> PacingGuidance:
        conservative_until = round2(distance_km * CONSERVATIVE_PROGRESS)
        push_ratio = FADE_PHASE_START if athlete.level == "advanced" else KICK_PHASE_START
        push_from = round2(distance_km * push_ratio)

        slow_zones = [
            Zone(round2(s.start_km), round2(s.end_km), translate(locale, "slow_zone_reason"))
            for s in segments
            if s.average_grade_pct >= SLOW_ZONE_GRADE_PCT
        ][:MAX_GUIDANCE_ZONES]
        push_zones = [
            Zone(round2(s.start_km), round2(s.end_km), translate(locale, "push_zone_reason"))
            for s in segments
            if s.average_grade_pct <= PUSH_ZONE_GRADE_PCT and s.end_km >= push_from
        ][:MAX_GUIDANCE_ZONES]

        notes = (
            translate(locale, "note_start_controlled", km=fmt_km(conservative_until, locale)),
            translate(locale, "note_keep_fueling"),
            translate(locale, "note_manage_climbs"),
        )
        return PacingGuidance(
            conservative_until_km=conservative_until,
            push_from_km=push_from,
            pace_by_terrain=self.pace_by_terrain(athlete),
            key_slow_zones=tuple(slow_zones),
            key_push_zones=tuple(push_zones),
            notes=notes,
        )
