"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Type coercion utilities for converting loosely-typed input to numbers.
"""

from __future__ import annotations

import math
from typing import Any, Optional


def safe_float_optional(value: object) -> Optional[float]:
    """Safely convert a value to a finite float, returning None on failure.

    Handles None, empty strings, "NaN", booleans and infinities by returning None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and value.strip() in ("", "NaN", "nan"):
        return None
    try:
        result = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]; NaN collapses to low."""
    if math.isnan(value):
        return low
    return max(low, min(high, value))


def clamp01(value: Any) -> float:
    result = safe_float_optional(value)
    if result is None:
        return 0.0
    return clamp(result, 0.0, 1.0)
