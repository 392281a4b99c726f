"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Course profile builder: turns a plan request into a normalized CourseProfile.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
from streamlit.logger import get_logger

from services.race.models import CourseProfile, PlanRequest, TrackPoint
from utils.errors import InvalidInput
from utils.geo import path_distances_m
from utils.gpx_parser import parse_gpx_track_points

logger = get_logger(__name__)


class CourseProfileBuilder:
    """Build course profiles from a bare distance or a GPX track."""

    def build(self, request: PlanRequest) -> CourseProfile:
        if request.mode == "distance":
            return self.from_distance(request.distance_km, request.elevation_gain_m)
        return self.from_gpx(request.gpx)

    def from_distance(self, distance_km: float | None, elevation_gain_m: float | None = 0.0) -> CourseProfile:
        if distance_km is None or not np.isfinite(distance_km) or distance_km <= 0:
            logger.warning("Rejected distance profile: distanceKm=%r", distance_km)
            raise InvalidInput("distanceKm must be > 0")
        gain = float(elevation_gain_m or 0.0)
        if not np.isfinite(gain):
            gain = 0.0
        return CourseProfile(
            source="distance",
            distance_km=float(distance_km),
            elevation_gain_m=max(0.0, gain),
        )

    def from_gpx(self, gpx: str | bytes) -> CourseProfile:
        if not gpx or not gpx.strip():
            raise InvalidInput('gpx payload is required when mode="gpx"')
        track_df = parse_gpx_track_points(gpx)
        if len(track_df) < 2:
            logger.warning("Rejected GPX: %d usable track points", len(track_df))
            raise InvalidInput("Invalid GPX: no usable track points")
        return self.from_track(track_df)

    def from_track(self, track_df: pd.DataFrame) -> CourseProfile:
        """Accumulate haversine distance and positive elevation deltas over a track.

        Args:
            track_df: DataFrame with lat, lon and optional elevationM columns

        Returns:
            CourseProfile whose last cumulative distance equals its distance_km
        """
        lats = track_df["lat"].astype(float).to_numpy()
        lons = track_df["lon"].astype(float).to_numpy()
        if "elevationM" in track_df.columns:
            elevations = pd.to_numeric(track_df["elevationM"], errors="coerce").to_numpy(dtype=float)
        else:
            elevations = np.full(len(track_df), np.nan)

        edges_m = path_distances_m(lats, lons)
        cumulative_km = np.concatenate([[0.0], np.cumsum(edges_m) / 1000.0])

        deltas = np.diff(elevations)
        # Only rises between two known elevations count; loss is interval-local later
        elevation_gain_m = float(np.nansum(np.where(deltas > 0, deltas, 0.0)))

        points = tuple(
            TrackPoint(
                lat=float(lat),
                lon=float(lon),
                elevation=None if np.isnan(ele) else float(ele),
                cumulative_distance_km=float(km),
            )
            for lat, lon, ele, km in zip(lats, lons, elevations, cumulative_km)
        )
        distance_km = float(cumulative_km[-1])
        logger.debug(
            "Track profile: %d points, %.3f km, %.0f m gain", len(points), distance_km, elevation_gain_m
        )
        if distance_km <= 0:
            raise InvalidInput("Invalid GPX: track has no length")
        return CourseProfile(
            source="gpx",
            distance_km=distance_km,
            elevation_gain_m=elevation_gain_m,
            points=points,
        )
