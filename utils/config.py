"""
Configuration loading utilities.

Loads environment variables from `.env`, applies planner defaults, and ensures
the data directory exists. Secrets are never logged.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from streamlit.logger import get_logger

from utils.constants import HISTORY_DAYS_DEFAULT, HISTORY_LIMIT_DEFAULT
from utils.i18n import Locale, normalize_locale

logger = get_logger(__name__)


@dataclass(frozen=True)
class Config:
    data_dir: Path
    history_days: int = HISTORY_DAYS_DEFAULT
    history_limit: int = HISTORY_LIMIT_DEFAULT
    default_locale: Locale = "en"
    strava_access_token: Optional[str] = None


def _ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except (ValueError, TypeError):
        logger.warning("Ignoring non-integer %s=%r", name, raw)
        return default
    return value if value > 0 else default


def load_config() -> Config:
    """Load configuration from environment and provision directories."""
    load_dotenv(find_dotenv(usecwd=True), override=False)

    data_dir = Path(os.getenv("DATA_DIR", "./data")).expanduser().resolve()
    strava_access_token = os.getenv("STRAVA_ACCESS_TOKEN") or None
    logger.debug("STRAVA_ACCESS_TOKEN: %s", redact(strava_access_token))

    _ensure_dir(data_dir)

    return Config(
        data_dir=data_dir,
        history_days=_int_env("PLANNER_HISTORY_DAYS", HISTORY_DAYS_DEFAULT),
        history_limit=_int_env("PLANNER_HISTORY_LIMIT", HISTORY_LIMIT_DEFAULT),
        default_locale=normalize_locale(os.getenv("PLANNER_LOCALE", "en")),
        strava_access_token=strava_access_token,
    )


def redact(value: Optional[str], keep_last: int = 4) -> str:
    """Return a redacted string suitable for logs (never log raw secrets)."""
    if not value:
        return ""
    if len(value) <= keep_last:
        return "***"
    return "***" + value[-keep_last:]
