"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Error types surfaced by the race planner to its callers.
"""

from __future__ import annotations


class PlannerError(Exception):
    """Base error carrying an HTTP-like classification."""

    status_code = 500
    retryable = False

    def __init__(self, message: str, *, retryable: bool | None = None) -> None:
        super().__init__(message)
        self.message = message
        if retryable is not None:
            self.retryable = retryable


class InvalidInput(PlannerError, ValueError):
    """Raised when the plan request cannot be honoured as given."""

    status_code = 400


class UpstreamUnavailable(PlannerError, RuntimeError):
    """Raised when the activity history collaborator cannot answer."""

    status_code = 503
    retryable = True
