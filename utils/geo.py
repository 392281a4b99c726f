"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Great-circle helpers over geographic points.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from haversine import Unit, haversine

EARTH_RADIUS_M = 6_371_000.0


def great_circle_distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in meters on a sphere of radius 6,371 km.

    NaN inputs propagate to the result; callers validate coordinates.
    """
    angle = haversine((lat1, lon1), (lat2, lon2), unit=Unit.RADIANS, check=False)
    return float(angle) * EARTH_RADIUS_M


def path_distances_m(lats: Sequence[float], lons: Sequence[float]) -> np.ndarray:
    """Distance in meters of every edge of a point sequence (len(points) - 1 values)."""
    if len(lats) < 2:
        return np.zeros(0)
    return np.array(
        [
            great_circle_distance_m(lat1, lon1, lat2, lon2)
            for lat1, lon1, lat2, lon2 in zip(lats[:-1], lons[:-1], lats[1:], lons[1:])
        ],
        dtype=float,
    )
