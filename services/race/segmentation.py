"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Adaptive course segmentation.

Track courses are cut into terrain-homogeneous sections by probing the
grade ahead of the current segment end. Distance-only courses get a
synthesized layout whose elevation comes from a TerrainSynthesizer.
"""

from __future__ import annotations

from typing import Protocol, Sequence

import numpy as np
from streamlit.logger import get_logger

from services.race.models import CourseProfile, CourseSection, SegmentBounds, Terrain
from utils.coercion import clamp01
from utils.constants import CLIMB_GRADE_PCT, DOWNHILL_GRADE_PCT

logger = get_logger(__name__)

MIN_SEGMENT_KM = 0.9
PROBE_KM = 0.7
STEP_KM = 0.35
MIN_PROBE_KM = 0.2
END_TOLERANCE_KM = 0.05
MIN_BOUND_KM = 0.05
RUGGEDNESS_REFERENCE_M_PER_KM = 55.0
DISTANCE_WAVE = (0.78, 1.22, 0.92, 1.35, 0.86, 1.12)


def resolve_terrain(grade_pct: float) -> Terrain:
    if grade_pct >= CLIMB_GRADE_PCT:
        return "climb"
    if grade_pct <= DOWNHILL_GRADE_PCT:
        return "downhill"
    return "flat"


def grade_pct(gain_m: float, loss_m: float, distance_km: float) -> float:
    """Net grade in percent; 0 for empty distances."""
    if distance_km <= 0:
        return 0.0
    return (gain_m - loss_m) / (distance_km * 1000.0) * 100.0


def max_segment_km(total_km: float) -> float:
    if total_km <= 20:
        return 2.1
    if total_km <= 45:
        return 2.8
    return 3.6


def base_segment_km(total_km: float) -> float:
    if total_km <= 20:
        return 1.8
    if total_km <= 45:
        return 2.5
    return 3.2


def elevation_stats_on_interval(
    profile: CourseProfile, start_km: float, end_km: float
) -> tuple[float, float]:
    """Elevation gain and loss (m) of a track inside [start_km, end_km].

    Each edge's elevation delta is pro-rated by the fraction of the edge that
    overlaps the window, so windows need not align with track points.
    """
    if not profile.has_track or end_km <= start_km:
        return 0.0, 0.0

    km = profile.cumulative_km
    ele = profile.elevations
    prev_km = km[:-1]
    curr_km = km[1:]
    edge_km = np.maximum(1e-5, curr_km - prev_km)
    overlap_km = np.clip(np.minimum(end_km, curr_km) - np.maximum(start_km, prev_km), 0.0, None)

    with np.errstate(invalid="ignore"):
        delta = (ele[1:] - ele[:-1]) * (overlap_km / edge_km)
    usable = (overlap_km > 0) & np.isfinite(delta)
    gain = float(delta[usable & (delta > 0)].sum())
    loss = float(-delta[usable & (delta < 0)].sum())
    return gain, loss


class TerrainSynthesizer(Protocol):
    """Spreads the course elevation gain over distance-only segments."""

    def allocate(
        self, bounds: Sequence[SegmentBounds], total_gain_m: float
    ) -> tuple[list[float], list[float]]:
        ...


class SinusoidalTerrainSynthesizer:
    """Placeholder terrain synthesis for courses without a track.

    Gain and loss are spread with two independent sinusoidal weight sequences
    and an assumed loss of 86% of the gain. This has no physical basis: it
    only avoids a perfectly uniform profile until a real elevation model is
    plugged in through the TerrainSynthesizer protocol.
    """

    loss_ratio = 0.86

    def allocate(
        self, bounds: Sequence[SegmentBounds], total_gain_m: float
    ) -> tuple[list[float], list[float]]:
        if not bounds:
            return [], []
        idx = np.arange(1, len(bounds) + 1, dtype=float)
        gain_weights = np.maximum(0.2, 0.9 + np.sin(idx * 1.15))
        loss_weights = np.maximum(0.2, 0.9 + np.sin(idx * 0.95 + 1.8))
        total_loss_m = total_gain_m * self.loss_ratio
        gains = gain_weights / gain_weights.sum() * total_gain_m
        losses = loss_weights / loss_weights.sum() * total_loss_m
        return gains.tolist(), losses.tolist()


def normalize_bounds(bounds: Sequence[SegmentBounds], total_km: float) -> list[SegmentBounds]:
    """Make bounds contiguous from 0 and force the last end onto the total distance."""
    total = round(total_km, 2)
    if not bounds:
        return [SegmentBounds(0.0, total)]

    out: list[SegmentBounds] = []
    cursor = 0.0
    for item in bounds:
        start = round(max(cursor, item.start_km), 2)
        end = round(max(start + MIN_BOUND_KM, item.end_km), 2)
        out.append(SegmentBounds(start, min(end, total)))
        cursor = out[-1].end_km
    out[-1] = SegmentBounds(out[-1].start_km, total)
    return [b for b in out if b.end_km > b.start_km]


class SegmentationService:
    """Partition a course profile into terrain-homogeneous sections."""

    def __init__(self, synthesizer: TerrainSynthesizer | None = None) -> None:
        self.synthesizer = synthesizer or SinusoidalTerrainSynthesizer()

    def segment_course(self, profile: CourseProfile) -> list[CourseSection]:
        bounds = self.build_bounds(profile)
        if profile.has_track:
            stats = [elevation_stats_on_interval(profile, b.start_km, b.end_km) for b in bounds]
        else:
            gains, losses = self.synthesizer.allocate(bounds, profile.elevation_gain_m)
            stats = list(zip(gains, losses))

        sections = []
        for bound, (gain, loss) in zip(bounds, stats):
            grade = grade_pct(gain, loss, bound.distance_km)
            sections.append(
                CourseSection(
                    start_km=bound.start_km,
                    end_km=bound.end_km,
                    elevation_gain_m=gain,
                    elevation_loss_m=loss,
                    average_grade_pct=grade,
                    terrain=resolve_terrain(grade),
                )
            )
        logger.debug("Segmented %s course into %d sections", profile.source, len(sections))
        return sections

    def build_bounds(self, profile: CourseProfile) -> list[SegmentBounds]:
        if profile.has_track:
            return self._bounds_from_track(profile)
        return self._bounds_from_distance(profile.distance_km, profile.elevation_gain_m)

    def _window_terrain(self, profile: CourseProfile, start_km: float) -> Terrain:
        total = profile.distance_km
        gain, loss = elevation_stats_on_interval(profile, start_km, min(total, start_km + PROBE_KM))
        window_km = max(MIN_PROBE_KM, min(total - start_km, PROBE_KM))
        return resolve_terrain(grade_pct(gain, loss, window_km))

    def _bounds_from_track(self, profile: CourseProfile) -> list[SegmentBounds]:
        total = profile.distance_km
        max_len = max_segment_km(total)
        bounds: list[SegmentBounds] = []
        start = 0.0

        while start < total - END_TOLERANCE_KM:
            base_terrain = self._window_terrain(profile, start)
            end = min(total, start + MIN_SEGMENT_KM)

            while end < total:
                next_end = min(total, end + STEP_KM)
                length = end - start
                if length >= MIN_SEGMENT_KM - 1e-9 and self._window_terrain(profile, end) != base_terrain:
                    break
                if length >= max_len:
                    break
                end = next_end

            bounds.append(SegmentBounds(round(start, 2), round(end, 2)))
            start = end

        return normalize_bounds(bounds, total)

    def _bounds_from_distance(self, total_km: float, elevation_gain_m: float) -> list[SegmentBounds]:
        base_len = base_segment_km(total_km)
        gain_per_km = elevation_gain_m / total_km if total_km > 0 else 0.0
        ruggedness = clamp01(gain_per_km / RUGGEDNESS_REFERENCE_M_PER_KM)
        amplitude = 1 + ruggedness * 0.35

        bounds: list[SegmentBounds] = []
        cursor = 0.0
        idx = 0
        while cursor < total_km - END_TOLERANCE_KM:
            length = base_len * DISTANCE_WAVE[idx % len(DISTANCE_WAVE)] * amplitude
            next_cursor = min(total_km, cursor + length)
            bounds.append(SegmentBounds(round(cursor, 2), round(next_cursor, 2)))
            cursor = next_cursor
            idx += 1

        return normalize_bounds(bounds, total_km)
