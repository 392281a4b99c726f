"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Repository layer for the CSV activity store.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List

import pandas as pd

from persistence.csv_storage import CsvStorage


def _ensure_headers(df: pd.DataFrame, headers: List[str]) -> pd.DataFrame:
    for h in headers:
        if h not in df.columns:
            df[h] = pd.Series(dtype="object")
    return df[headers]


@dataclass
class BaseRepo:
    storage: CsvStorage
    file_name: str
    headers: List[str]

    def list(self, **filters: Any) -> pd.DataFrame:
        df = self.storage.read_csv(self.file_name)
        df = _ensure_headers(df, self.headers)
        for k, v in filters.items():
            if k in df.columns:
                df = df[df[k].astype(str) == str(v)]
        return df.reset_index(drop=True)


class ActivitiesRepo(BaseRepo):
    """Imported activities, one row per effort."""

    def __init__(self, storage: CsvStorage):
        super().__init__(
            storage,
            "activities.csv",
            [
                "activityId",
                "athleteId",
                "source",
                "sportType",
                "name",
                "startTime",
                "distanceKm",
                "movingSec",
                "ascentM",
                "avgHr",
                "relativeEffort",
            ],
        )

    def list_for_athlete(self, athlete_id: str) -> pd.DataFrame:
        return self.list(athleteId=athlete_id)
