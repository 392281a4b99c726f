"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later
"""

from __future__ import annotations

# ==============================================================================
# ACTIVITY HISTORY
# ==============================================================================

SUPPORTED_SPORTS = ("Run", "TrailRun")
HISTORY_DAYS_DEFAULT = 120
HISTORY_LIMIT_DEFAULT = 3000

# ==============================================================================
# ATHLETE LEVELS & TERRAIN
# ==============================================================================

TERRAINS = ("climb", "flat", "downhill")

BEGINNER_DEFAULTS = {
    "baselinePaceMinPerKm": 6.5,
    "weeklyDistanceKm": 20.0,
    "weeklyElevationGainM": 250.0,
    "enduranceScore": 35.0,
    "speedScore": 35.0,
}

LONG_PACE_FALLBACK_RATIO = 1.07
SHORT_RUN_MAX_KM = 12.0
LONG_RUN_MIN_KM = 22.0
LONG_RUN_SCORE_KM = 18.0

# Weekly km / pace thresholds per level, checked from the top down
LEVEL_THRESHOLDS = [
    ("advanced", 60.0, 4.9),
    ("intermediate", 30.0, 5.8),
]

WEIGHT_BASE_KG = {"advanced": 68.0, "intermediate": 72.0, "beginner": 76.0}
WEIGHT_USER_RANGE_KG = (40.0, 130.0)
WEIGHT_HEURISTIC_RANGE_KG = (52.0, 92.0)

# ==============================================================================
# PACING TABLES
# ==============================================================================

# (min grade %, factor) for climbs, checked from the steepest down
GRADE_FACTORS_UP = [(8.0, 1.45), (6.0, 1.32), (4.0, 1.22), (2.0, 1.12)]
# (max grade %, factor) for descents, checked from the steepest up
GRADE_FACTORS_DOWN = [(-6.0, 0.86), (-3.0, 0.92), (-1.0, 0.96)]

LEVEL_PACE_FACTORS = {"advanced": 0.96, "intermediate": 1.0, "beginner": 1.05}

TERRAIN_PACE_FACTORS = {
    "climb": {"advanced": 1.14, "intermediate": 1.18, "beginner": 1.24},
    "downhill": {"advanced": 0.90, "intermediate": 0.93, "beginner": 0.96},
    "flat": {"advanced": 1.0, "intermediate": 1.0, "beginner": 1.0},
}

# Coarser multipliers for the terrain pace labels of the guidance block
TERRAIN_LABEL_FACTORS = {
    "climb": {"advanced": 1.18, "intermediate": 1.23, "beginner": 1.28},
    "downhill": {"advanced": 0.90, "intermediate": 0.93, "beginner": 0.96},
    "flat": {"advanced": 1.0, "intermediate": 1.0, "beginner": 1.0},
}

CLIMB_GRADE_PCT = 2.8
DOWNHILL_GRADE_PCT = -2.0

EFFORT_LEVEL_ADJUSTMENT = {"advanced": 0.0, "intermediate": 0.4, "beginner": 0.8}

# ==============================================================================
# RACE CONTEXT
# ==============================================================================

TEMPERATURE_DEFAULT_C = 18.0
TEMPERATURE_RANGE_C = (-10.0, 45.0)
HUMIDITY_DEFAULT_PCT = 55.0
HUMIDITY_RANGE_PCT = (5.0, 100.0)

# ==============================================================================
# ENERGY & FUEL
# ==============================================================================

TERRAIN_MET_BASE = {"downhill": 8.2, "flat": 9.5, "climb": 10.8}
MET_RANGE = (6.5, 16.0)
CARB_CAP_G_PER_HOUR = {"beginner": 60.0, "intermediate": 75.0, "advanced": 90.0}
HYDRATION_RANGE_ML_PER_HOUR = (450.0, 1250.0)

HYDRATION_INTERVAL_MIN = {"beginner": 22.0, "intermediate": 20.0, "advanced": 18.0}
FEED_INTERVAL_MIN = {"beginner": 30.0, "intermediate": 27.0, "advanced": 24.0}

# ==============================================================================
# AID STATIONS
# ==============================================================================

AID_CLIMB_GRADE_PCT = 4.5
AID_MIN_GAP_KM = 1.4
AID_MAX_STATIONS = 14
AID_MAX_PEAKS = 8
AID_PEAK_PROMINENCE_M = 8.0
AID_MIN_HYDRATION_ML = 120.0
AID_MIN_CARBS_G = 15.0

# ==============================================================================
# GUIDANCE
# ==============================================================================

SLOW_ZONE_GRADE_PCT = 4.5
PUSH_ZONE_GRADE_PCT = 1.2
MAX_GUIDANCE_ZONES = 4
CONSERVATIVE_PROGRESS = 0.12

# ==============================================================================
# CHART COLORS
# ==============================================================================

TERRAIN_COLORS = {"climb": "#d62728", "flat": "#2ca02c", "downhill": "#1f77b4"}
AID_STATION_COLOR = "#ff7f0e"
