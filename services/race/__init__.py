"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from services.race_plan_service import RacePlanService as RacePlanService


def __getattr__(name: str) -> object:
    if name == "RacePlanService":
        from services.race_plan_service import RacePlanService

        return RacePlanService
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["RacePlanService"]
