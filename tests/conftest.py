import datetime as dt
import sys
from pathlib import Path
from typing import Iterable, Optional, Tuple

import pytest


# Ensure project root is importable for tests
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


from services.activity_history import InMemoryActivityHistory  # noqa: E402

FIXED_NOW = dt.datetime(2025, 6, 2, 8, 0, tzinfo=dt.timezone.utc)

# One degree of latitude on a 6,371 km sphere
KM_PER_DEG_LAT = 6371.0 * 3.141592653589793 / 180.0


def make_gpx(points: Iterable[Tuple[float, float, Optional[float]]]) -> str:
    """Build a GPX 1.1 document from (lat, lon, elevation) tuples."""
    trkpts = []
    for lat, lon, ele in points:
        ele_xml = f"<ele>{ele}</ele>" if ele is not None else ""
        trkpts.append(f'<trkpt lat="{lat}" lon="{lon}">{ele_xml}</trkpt>')
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<gpx version="1.1" creator="tests" xmlns="http://www.topografix.com/GPX/1/1">'
        f"<trk><trkseg>{''.join(trkpts)}</trkseg></trk></gpx>"
    )


def north_track(distance_km: float, step_km: float = 0.1, elevation_fn=None):
    """Points heading due north from (45, 6), one every step_km."""
    count = int(round(distance_km / step_km))
    points = []
    for i in range(count + 1):
        km = i * step_km
        ele = elevation_fn(km) if elevation_fn else 500.0
        points.append((45.0 + km / KM_PER_DEG_LAT, 6.0, ele))
    return points


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def flat_gpx() -> str:
    return make_gpx(north_track(10.0))


@pytest.fixture
def hilly_gpx() -> str:
    def elevation(km: float) -> float:
        # 0-3 km flat, 3-5 km climbing 8 %, 5-7 km descending 8 %, then flat
        if km <= 3.0:
            return 500.0
        if km <= 5.0:
            return 500.0 + (km - 3.0) * 80.0
        if km <= 7.0:
            return 660.0 - (km - 5.0) * 80.0
        return 500.0

    return make_gpx(north_track(12.0, elevation_fn=elevation))


def _run(days_ago: int, distance_km: float, pace_min_per_km: float, gain_m: float = 50.0, sport="Run"):
    start = FIXED_NOW - dt.timedelta(days=days_ago)
    return {
        "distanceM": distance_km * 1000.0,
        "movingTimeSec": distance_km * pace_min_per_km * 60.0,
        "totalElevationGainM": gain_m,
        "averageHeartRate": 150,
        "startDate": start.isoformat(),
        "relativeEffortScore": 40,
        "sportType": sport,
    }


@pytest.fixture
def make_run():
    return _run


@pytest.fixture
def intermediate_activities():
    """Eight weeks of ~36 km, a few long runs and some trail sessions."""
    runs = []
    for week in range(8):
        base = 7 * week + 1
        runs.append(_run(base, 10.0, 5.5))
        runs.append(_run(base + 2, 8.0, 5.4))
        runs.append(_run(base + 4, 18.0, 6.0, gain_m=300.0, sport="TRAIL_RUN"))
    return runs


@pytest.fixture
def empty_history():
    return InMemoryActivityHistory([])
