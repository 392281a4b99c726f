"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Athlete baseline estimation from recent running history.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Callable, Iterable, Mapping, Optional

import numpy as np
import pandas as pd
from streamlit.logger import get_logger

from services.activity_history import ActivityHistoryProvider, matches_sport
from services.race.models import AthleteBaseline, Level, RunnerType
from utils.coercion import clamp
from utils.constants import (
    BEGINNER_DEFAULTS,
    HISTORY_DAYS_DEFAULT,
    HISTORY_LIMIT_DEFAULT,
    LEVEL_THRESHOLDS,
    LONG_PACE_FALLBACK_RATIO,
    LONG_RUN_MIN_KM,
    LONG_RUN_SCORE_KM,
    SHORT_RUN_MAX_KM,
    SUPPORTED_SPORTS,
    WEIGHT_BASE_KG,
    WEIGHT_HEURISTIC_RANGE_KG,
    WEIGHT_USER_RANGE_KG,
)
from utils.errors import UpstreamUnavailable
from utils.time import utc_now

logger = get_logger(__name__)

ACTIVITY_COLUMNS = [
    "distanceM",
    "movingTimeSec",
    "totalElevationGainM",
    "averageHeartRate",
    "startDate",
    "relativeEffortScore",
    "sportType",
]
NUMERIC_COLUMNS = [
    "distanceM",
    "movingTimeSec",
    "totalElevationGainM",
    "averageHeartRate",
    "relativeEffortScore",
]

RUNNER_TYPE_MARGIN = 12.0


def activities_frame(records: Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    """Build a typed activity DataFrame keeping only usable running efforts."""
    df = pd.DataFrame(list(records))
    for col in ACTIVITY_COLUMNS:
        if col not in df.columns:
            df[col] = pd.Series(dtype="object")
    df = df[ACTIVITY_COLUMNS].copy()

    for col in NUMERIC_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    df["startDate"] = pd.to_datetime(df["startDate"], errors="coerce", utc=True)

    if df["sportType"].notna().any():
        df = df[df["sportType"].isna() | df["sportType"].map(matches_sport)]

    df = df[(df["distanceM"] > 0) & (df["movingTimeSec"] > 0)].copy()
    df["distanceKm"] = df["distanceM"] / 1000.0
    df["paceMinPerKm"] = (df["movingTimeSec"] / 60.0) / df["distanceKm"]
    df = df[np.isfinite(df["paceMinPerKm"]) & (df["paceMinPerKm"] > 0)]
    return df.reset_index(drop=True)


def weekly_medians(df: pd.DataFrame) -> tuple[float, float]:
    """Median ISO-week distance (km) and elevation gain (m)."""
    dated = df[df["startDate"].notna()]
    if dated.empty:
        return 0.0, 0.0
    iso = dated["startDate"].dt.isocalendar()
    week_key = iso["year"].astype(int) * 100 + iso["week"].astype(int)
    weekly = (
        dated.assign(weekKey=week_key.to_numpy())
        .groupby("weekKey")
        .agg(distanceKm=("distanceKm", "sum"), elevationM=("totalElevationGainM", "sum"))
    )
    distances = weekly.loc[weekly["distanceKm"] > 0, "distanceKm"]
    elevations = weekly.loc[weekly["elevationM"] >= 0, "elevationM"]
    weekly_km = float(distances.median()) if not distances.empty else 0.0
    weekly_gain = float(elevations.median()) if not elevations.empty else 0.0
    return weekly_km, weekly_gain


def resolve_level(weekly_km: float, pace_min_per_km: float) -> Level:
    for level, min_weekly_km, max_pace in LEVEL_THRESHOLDS:
        if weekly_km >= min_weekly_km or pace_min_per_km <= max_pace:
            return level  # type: ignore[return-value]
    return "beginner"


def _score(value: float) -> float:
    return clamp(value, 0.0, 100.0)


def endurance_score(weekly_km: float, decay_ratio: float, long_runs: int) -> float:
    volume = _score(weekly_km / 80.0 * 100.0)
    decay_quality = _score((1.25 - decay_ratio) / 0.25 * 100.0)
    long_run_volume = _score(long_runs / 8.0 * 100.0)
    return _score(0.50 * volume + 0.35 * decay_quality + 0.15 * long_run_volume)


def speed_score(baseline_pace: float, short_pace: float) -> float:
    if short_pace <= 0:
        return 50.0
    reserve = baseline_pace / short_pace - 1.0
    return _score(50.0 + reserve * 400.0 + (5.5 - short_pace) * 8.0)


def resolve_runner_type(endurance: float, speed: float) -> RunnerType:
    if endurance - speed >= RUNNER_TYPE_MARGIN:
        return "endurance"
    if speed - endurance >= RUNNER_TYPE_MARGIN:
        return "speed"
    return "balanced"


def estimate_weight_kg(
    level: Level, weekly_km: float, pace_min_per_km: float, user_weight_kg: Optional[float] = None
) -> float:
    """User weight when plausible, otherwise a level/volume/pace heuristic."""
    low, high = WEIGHT_USER_RANGE_KG
    if user_weight_kg is not None and low <= user_weight_kg <= high:
        return round(float(user_weight_kg), 2)
    heuristic = WEIGHT_BASE_KG[level] - (weekly_km - 30.0) * 0.05 + (pace_min_per_km - 5.5) * 2.0
    return round(clamp(heuristic, *WEIGHT_HEURISTIC_RANGE_KG), 2)


def default_baseline(user_weight_kg: Optional[float] = None) -> AthleteBaseline:
    """Beginner baseline used when no running history is available."""
    pace = BEGINNER_DEFAULTS["baselinePaceMinPerKm"]
    weekly_km = BEGINNER_DEFAULTS["weeklyDistanceKm"]
    return AthleteBaseline(
        level="beginner",
        baseline_pace_min_per_km=pace,
        weekly_distance_km=weekly_km,
        weekly_elevation_gain_m=BEGINNER_DEFAULTS["weeklyElevationGainM"],
        short_pace_min_per_km=pace,
        long_pace_min_per_km=round(pace * LONG_PACE_FALLBACK_RATIO, 2),
        endurance_score=BEGINNER_DEFAULTS["enduranceScore"],
        speed_score=BEGINNER_DEFAULTS["speedScore"],
        endurance_decay_ratio=LONG_PACE_FALLBACK_RATIO,
        runner_type="balanced",
        estimated_weight_kg=estimate_weight_kg("beginner", weekly_km, pace, user_weight_kg),
        activities_sample_count=0,
    )


def estimate_baseline(df: pd.DataFrame, user_weight_kg: Optional[float] = None) -> AthleteBaseline:
    """Reduce a cleaned activity frame into an AthleteBaseline."""
    if df.empty:
        return default_baseline(user_weight_kg)

    baseline_pace = float(df["paceMinPerKm"].median())
    weekly_km, weekly_gain = weekly_medians(df)
    level = resolve_level(weekly_km, baseline_pace)

    short = df.loc[df["distanceKm"] <= SHORT_RUN_MAX_KM, "paceMinPerKm"]
    long = df.loc[df["distanceKm"] >= LONG_RUN_MIN_KM, "paceMinPerKm"]
    short_pace = float(short.median()) if not short.empty else baseline_pace
    long_pace = float(long.median()) if not long.empty else baseline_pace * LONG_PACE_FALLBACK_RATIO
    decay_ratio = long_pace / short_pace if short_pace > 0 else LONG_PACE_FALLBACK_RATIO

    long_runs = int((df["distanceKm"] >= LONG_RUN_SCORE_KM).sum())
    endurance = endurance_score(weekly_km, decay_ratio, long_runs)
    speed = speed_score(baseline_pace, short_pace)

    return AthleteBaseline(
        level=level,
        baseline_pace_min_per_km=round(baseline_pace, 2),
        weekly_distance_km=round(weekly_km, 2),
        weekly_elevation_gain_m=float(round(weekly_gain)),
        short_pace_min_per_km=round(short_pace, 2),
        long_pace_min_per_km=round(long_pace, 2),
        endurance_score=round(endurance, 1),
        speed_score=round(speed, 1),
        endurance_decay_ratio=round(decay_ratio, 2),
        runner_type=resolve_runner_type(endurance, speed),
        estimated_weight_kg=estimate_weight_kg(level, weekly_km, baseline_pace, user_weight_kg),
        activities_sample_count=int(len(df)),
    )


class AthleteBaselineEstimator:
    """Fetch recent running history and reduce it into an AthleteBaseline."""

    def __init__(
        self,
        history: ActivityHistoryProvider,
        history_days: int = HISTORY_DAYS_DEFAULT,
        history_limit: int = HISTORY_LIMIT_DEFAULT,
        clock: Callable[[], dt.datetime] = utc_now,
    ) -> None:
        self.history = history
        self.history_days = history_days
        self.history_limit = history_limit
        self.clock = clock

    def fetch_activities(self, user_id: str) -> pd.DataFrame:
        start_date = self.clock() - dt.timedelta(days=self.history_days)
        try:
            records = self.history.get_activity_history(
                user_id,
                start_date=start_date,
                sport_filter=SUPPORTED_SPORTS,
                limit=self.history_limit,
            )
            df = activities_frame(records)
        except UpstreamUnavailable:
            raise
        except (OSError, RuntimeError) as exc:
            logger.warning("Activity history fetch failed for user %s: %s", user_id, exc)
            raise UpstreamUnavailable("Activity history is temporarily unavailable") from exc
        logger.debug("Loaded %d usable activities for user %s", len(df), user_id)
        return df

    def estimate(self, user_id: str, user_weight_kg: Optional[float] = None) -> AthleteBaseline:
        return estimate_baseline(self.fetch_activities(user_id), user_weight_kg)
