"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Aid station placement: periodic refills, climb tops and terrain highs.
"""

from __future__ import annotations

from typing import NamedTuple, Sequence

import numpy as np
from streamlit.logger import get_logger

from services.race.fueling import amount_between, carb_rate, hydration_rate, minute_at_km
from services.race.models import AidStation, CourseProfile, Segment
from utils.constants import (
    AID_CLIMB_GRADE_PCT,
    AID_MAX_PEAKS,
    AID_MAX_STATIONS,
    AID_MIN_CARBS_G,
    AID_MIN_GAP_KM,
    AID_MIN_HYDRATION_ML,
    AID_PEAK_PROMINENCE_M,
)
from utils.formatting import round2
from utils.i18n import translate

logger = get_logger(__name__)

PEAK_EDGE_MARGIN_KM = 1.5
FIRST_STATION_KM = 2.0
LAST_STATION_MARGIN_KM = 1.0


class Candidate(NamedTuple):
    at_km: float
    reason_code: str


def periodic_spacing_km(total_km: float) -> float:
    if total_km <= 30:
        return 7.0
    if total_km <= 55:
        return 8.0
    return 10.0


def periodic_candidates(total_km: float) -> list[Candidate]:
    every = periodic_spacing_km(total_km)
    count = int(np.ceil(total_km / every)) if total_km > 0 else 0
    return [
        Candidate(round2(k * every), "aid_periodic")
        for k in range(1, count + 1)
        if k * every < total_km
    ]


def climb_candidates(segments: Sequence[Segment]) -> list[Candidate]:
    return [
        Candidate(round2(s.end_km), "aid_top_climb")
        for s in segments
        if s.average_grade_pct >= AID_CLIMB_GRADE_PCT
    ]


def detect_local_peaks(profile: CourseProfile) -> list[Candidate]:
    """Track points standing more than the prominence threshold above both neighbours."""
    if len(profile.points) <= 2:
        return []
    ele = profile.elevations
    km = profile.cumulative_km
    prev, curr, nxt = ele[:-2], ele[1:-1], ele[2:]
    with np.errstate(invalid="ignore"):
        is_peak = (
            np.isfinite(prev)
            & np.isfinite(curr)
            & np.isfinite(nxt)
            & (curr > prev + AID_PEAK_PROMINENCE_M)
            & (curr > nxt + AID_PEAK_PROMINENCE_M)
        )
    total = profile.distance_km
    peaks = []
    for at_km in np.round(km[1:-1][is_peak], 2):
        if PEAK_EDGE_MARGIN_KM < at_km < total - PEAK_EDGE_MARGIN_KM:
            peaks.append(Candidate(float(at_km), "aid_terrain_high"))
    return peaks[:AID_MAX_PEAKS]


def dedupe_stations(candidates: Sequence[Candidate], min_gap_km: float) -> list[Candidate]:
    """Keep the first candidate of every cluster closer than min_gap_km."""
    out: list[Candidate] = []
    for candidate in candidates:
        if not out or candidate.at_km - out[-1].at_km >= min_gap_km:
            out.append(candidate)
    return out


class AidStationPlanner:
    """Propose resupply positions and the amounts to take at each of them."""

    def candidates(self, profile: CourseProfile, segments: Sequence[Segment]) -> list[Candidate]:
        total = profile.distance_km
        pool = periodic_candidates(total) + climb_candidates(segments) + detect_local_peaks(profile)
        in_range = [
            c for c in pool if FIRST_STATION_KM <= c.at_km <= total - LAST_STATION_MARGIN_KM
        ]
        # sorted() is stable, so equal positions keep their source order
        ordered = sorted(in_range, key=lambda c: c.at_km)
        return dedupe_stations(ordered, AID_MIN_GAP_KM)[:AID_MAX_STATIONS]

    def place(
        self, profile: CourseProfile, segments: Sequence[Segment], locale: str = "en"
    ) -> tuple[AidStation, ...]:
        """Place stations on fuel-enriched segments.

        Each station's amounts cover what is due since the previous station,
        floored so that every stop is worth making.
        """
        if profile.distance_km <= 0:
            return ()
        stations = []
        previous_minute = 0.0
        for candidate in self.candidates(profile, segments):
            minute = minute_at_km(segments, candidate.at_km)
            hydration = amount_between(segments, previous_minute, minute, hydration_rate)
            carbs = amount_between(segments, previous_minute, minute, carb_rate)
            stations.append(
                AidStation(
                    at_km=candidate.at_km,
                    reason_code=candidate.reason_code,
                    reason=translate(locale, candidate.reason_code),
                    hydration_ml=max(AID_MIN_HYDRATION_ML, hydration),
                    carbs_g=max(AID_MIN_CARBS_G, carbs),
                )
            )
            previous_minute = minute
        logger.debug("Placed %d aid stations on a %.2f km course", len(stations), profile.distance_km)
        return tuple(stations)
