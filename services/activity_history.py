"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Activity history collaborators feeding the athlete baseline.

Every provider returns plain mappings with the keys ``distanceM``,
``movingTimeSec``, ``totalElevationGainM``, ``averageHeartRate``,
``startDate``, ``relativeEffortScore`` and ``sportType``. An empty result
means "no history"; failures raise UpstreamUnavailable.
"""

from __future__ import annotations

import datetime as dt
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Protocol, Sequence

import pandas as pd
import requests
from streamlit.logger import get_logger

from persistence.csv_storage import CsvStorage
from persistence.repositories import ActivitiesRepo
from utils.constants import HISTORY_LIMIT_DEFAULT, SUPPORTED_SPORTS
from utils.errors import UpstreamUnavailable

logger = get_logger(__name__)

API_BASE = "https://www.strava.com/api/v3"
ACTIVITIES_URL = f"{API_BASE}/athlete/activities"
PAGE_SIZE = 200


def _sport_key(value: Any) -> str:
    return str(value or "").replace("_", "").replace(" ", "").lower()


def matches_sport(value: Any, sports: Sequence[str] = SUPPORTED_SPORTS) -> bool:
    """Case- and underscore-insensitive sport match (``TRAIL_RUN`` matches ``TrailRun``)."""
    key = _sport_key(value)
    return bool(key) and key in {_sport_key(s) for s in sports}


def _as_utc(moment: dt.datetime) -> dt.datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=dt.timezone.utc)
    return moment.astimezone(dt.timezone.utc)


class ActivityHistoryProvider(Protocol):
    def get_activity_history(
        self,
        user_id: str,
        *,
        start_date: dt.datetime,
        sport_filter: Sequence[str],
        limit: int,
    ) -> Iterable[Mapping[str, Any]]:
        ...


@dataclass
class InMemoryActivityHistory:
    """Fixed activity list, for tests and offline planning."""

    activities: List[Dict[str, Any]] = field(default_factory=list)

    def get_activity_history(
        self,
        user_id: str,
        *,
        start_date: dt.datetime,
        sport_filter: Sequence[str] = SUPPORTED_SPORTS,
        limit: int = HISTORY_LIMIT_DEFAULT,
    ) -> List[Dict[str, Any]]:
        start = pd.Timestamp(_as_utc(start_date))
        selected = []
        for item in self.activities:
            sport = item.get("sportType")
            if sport is not None and not matches_sport(sport, sport_filter):
                continue
            started = pd.to_datetime(item.get("startDate"), errors="coerce", utc=True)
            if pd.notna(started) and started < start:
                continue
            selected.append(dict(item))
        return selected[:limit]


@dataclass
class CsvActivityHistory:
    """Reads the local CSV activity store (``activities.csv``)."""

    storage: CsvStorage

    def __post_init__(self) -> None:
        self.activities = ActivitiesRepo(self.storage)

    def get_activity_history(
        self,
        user_id: str,
        *,
        start_date: dt.datetime,
        sport_filter: Sequence[str] = SUPPORTED_SPORTS,
        limit: int = HISTORY_LIMIT_DEFAULT,
    ) -> List[Dict[str, Any]]:
        try:
            df = self.activities.list_for_athlete(user_id)
        except OSError as exc:
            raise UpstreamUnavailable(f"Activity store unreadable: {exc}") from exc
        if df.empty:
            return []

        df = df[df["sportType"].map(lambda s: matches_sport(s, sport_filter))].copy()
        df["startTime"] = pd.to_datetime(df["startTime"], errors="coerce", utc=True)
        df = df[df["startTime"] >= pd.Timestamp(_as_utc(start_date))]
        df = df.sort_values("startTime", ascending=False).head(limit)
        logger.debug("CSV history: %d activities for athlete %s", len(df), user_id)
        return [self._to_record(row) for row in df.to_dict(orient="records")]

    @staticmethod
    def _to_record(row: Dict[str, Any]) -> Dict[str, Any]:
        distance_km = pd.to_numeric(row.get("distanceKm"), errors="coerce")
        return {
            "distanceM": float(distance_km) * 1000.0 if pd.notna(distance_km) else None,
            "movingTimeSec": row.get("movingSec"),
            "totalElevationGainM": row.get("ascentM"),
            "averageHeartRate": row.get("avgHr"),
            "startDate": row["startTime"].isoformat() if pd.notna(row.get("startTime")) else None,
            "relativeEffortScore": row.get("relativeEffort"),
            "sportType": row.get("sportType"),
        }


@dataclass
class StravaActivityHistory:
    """Pages ``GET /athlete/activities`` with a caller-supplied access token."""

    access_token: str
    session: Optional[requests.Session] = None
    max_retries: int = 3
    sleep_fn: Callable[[float], None] = time.sleep

    def __post_init__(self) -> None:
        self.session = self.session or requests.Session()

    def get_activity_history(
        self,
        user_id: str,
        *,
        start_date: dt.datetime,
        sport_filter: Sequence[str] = SUPPORTED_SPORTS,
        limit: int = HISTORY_LIMIT_DEFAULT,
    ) -> List[Dict[str, Any]]:
        after_ts = int(_as_utc(start_date).timestamp())
        records: List[Dict[str, Any]] = []
        for summary in self._iter_recent_activities(after_ts):
            if not matches_sport(summary.get("sport_type") or summary.get("type"), sport_filter):
                continue
            records.append(self._map_summary(summary))
            if len(records) >= limit:
                break
        logger.info("Strava history: %d activities for user %s", len(records), user_id)
        return records

    def _iter_recent_activities(self, after_ts: int) -> Iterator[Dict[str, Any]]:
        page = 1
        while True:
            params = {"after": after_ts, "per_page": PAGE_SIZE, "page": page}
            data = self._request_json("GET", ACTIVITIES_URL, params=params)
            if not data:
                break
            if not isinstance(data, list):
                raise UpstreamUnavailable("Unexpected response from Strava activities endpoint")
            for item in data:
                if isinstance(item, dict):
                    yield item
            if len(data) < PAGE_SIZE:
                break
            page += 1

    def _request_json(self, method: str, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        for attempt in range(self.max_retries):
            try:
                response = self.session.request(
                    method=method,
                    url=url,
                    headers=self._auth_headers(),
                    params=params,
                    timeout=30,
                )
            except requests.RequestException as exc:
                raise UpstreamUnavailable(f"Strava request failed: {exc}") from exc
            if response.status_code == 429 and attempt < self.max_retries - 1:
                retry_after = int(response.headers.get("Retry-After", "1"))
                self.sleep_fn(min(retry_after, 60))
                continue
            if 200 <= response.status_code < 300:
                if response.content and response.content.strip():
                    try:
                        return response.json()
                    except ValueError as exc:
                        raise UpstreamUnavailable("Strava API returned non-JSON response") from exc
                return []
            if response.status_code in (401, 403):
                raise UpstreamUnavailable(
                    f"Strava API rejected the access token ({response.status_code})", retryable=False
                )
            if response.status_code == 429:
                raise UpstreamUnavailable("Strava API rate limit exceeded")
            raise UpstreamUnavailable(
                f"Strava API error {response.status_code}",
                retryable=response.status_code >= 500,
            )
        raise UpstreamUnavailable("Strava API rate limited; retries exhausted")

    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}

    @staticmethod
    def _map_summary(summary: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "distanceM": summary.get("distance"),
            "movingTimeSec": summary.get("moving_time"),
            "totalElevationGainM": summary.get("total_elevation_gain"),
            "averageHeartRate": summary.get("average_heartrate"),
            "startDate": summary.get("start_date"),
            "relativeEffortScore": summary.get("suffer_score"),
            "sportType": summary.get("sport_type") or summary.get("type"),
        }
