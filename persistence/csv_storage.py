"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

CSV storage for the local activity store, using pandas and portalocker.

Notes:
- CSV files use '.' decimals; locale formatting only
  happens when strings are rendered for the plan.
- Reads take a shared, non-blocking lock so a planner run never reads a
  file that an import is still writing.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import pandas as pd
import portalocker
from pandas.errors import EmptyDataError

LOCK_TIMEOUT_SEC = 10


def _lock(path: Path, mode: str, flags: portalocker.LockFlags) -> portalocker.Lock:
    return portalocker.Lock(str(path), mode=mode, timeout=LOCK_TIMEOUT_SEC, flags=flags | portalocker.LOCK_NB)


@dataclass
class CsvStorage:
    base_dir: Path

    def _path(self, relative: str | Path) -> Path:
        p = self.base_dir / Path(relative)
        p.parent.mkdir(parents=True, exist_ok=True)
        return p

    def _empty(self, dtypes: Optional[Dict[str, str]]) -> pd.DataFrame:
        if dtypes:
            return pd.DataFrame(columns=list(dtypes.keys())).astype(dtypes)
        return pd.DataFrame()

    def read_csv(
        self, relative: str | Path, dtypes: Optional[Dict[str, str]] = None
    ) -> pd.DataFrame:
        path = self._path(relative)
        if not path.exists():
            return self._empty(dtypes)
        with _lock(path, "r", portalocker.LOCK_SH):
            try:
                df = pd.read_csv(path)
            except EmptyDataError:
                return self._empty(dtypes)
        if dtypes:
            for col, typ in dtypes.items():
                if col in df.columns:
                    try:
                        df[col] = df[col].astype(typ)
                    except (TypeError, ValueError):
                        # Mixed columns stay as read; callers coerce what they use
                        continue
                else:
                    df[col] = pd.Series(dtype=typ)
        return df
