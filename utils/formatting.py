"""
Locale display helpers for decimals, distances and paces.

Numeric plan fields stay plain floats; these helpers only build the
human-readable strings (notes, guidelines, labels).
"""

from __future__ import annotations

import math
from typing import Optional

from babel import numbers

BABEL_LOCALES = {"en": "en_US", "fr": "fr_FR"}


def _nbsp() -> str:
    return "\u00A0"


def _babel_locale(locale: str) -> str:
    return BABEL_LOCALES.get(locale, "en_US")


def fmt_decimal(value: Optional[float], digits: Optional[int] = None, locale: str = "en") -> str:
    if value is None:
        return ""
    fmt = None
    if digits is not None:
        fmt = "#,##0" if digits == 0 else "#,##0." + ("0" * digits)
    return numbers.format_decimal(value, format=fmt, locale=_babel_locale(locale))


def fmt_km(km: Optional[float], locale: str = "en") -> str:
    if km is None:
        return ""
    return f"{fmt_decimal(km, 1, locale)}{_nbsp()}km"


def fmt_int(value: Optional[float], locale: str = "en") -> str:
    if value is None:
        return ""
    return numbers.format_decimal(int(round(value)), locale=_babel_locale(locale))


def format_pace(pace_min_per_km: Optional[float]) -> str:
    """Format a pace in min/km as ``m:ss/km``."""
    if pace_min_per_km is None or not math.isfinite(pace_min_per_km) or pace_min_per_km <= 0:
        return "0:00/km"
    total_seconds = int(round(pace_min_per_km * 60))
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}:{seconds:02d}/km"


def round2(value: float) -> float:
    return round(float(value), 2)
