# src/studiorank/exceptions.py

"""Custom exception hierarchy for StudioRank.

This module provides a structured exception hierarchy that enables:
1. Proper HTTP status code mapping at the trigger endpoint
2. Detailed error context for logging and debugging
3. A clear line between "the run failed" and "the run degraded"

Empty populations, unrecognized categories and zero denominators are not
errors and have no exception type here.
"""

from __future__ import annotations


class StudioRankError(Exception):
    """Base exception for all StudioRank errors.

    Attributes:
        message: Human-readable error description
        details: Optional dict with additional context for logging/debugging
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


# =============================================================================
# Resource Not Found Errors (HTTP 404)
# =============================================================================


class ResourceNotFoundError(StudioRankError):
    """Base class for resource not found errors."""

    pass


class LeaderboardNotFoundError(ResourceNotFoundError):
    """Raised when a leaderboard ID does not exist."""

    def __init__(self, leaderboard_id: str) -> None:
        super().__init__(
            message=f"Leaderboard with ID {leaderboard_id} not found",
            details={"leaderboard_id": leaderboard_id},
        )


class PeriodNotFoundError(ResourceNotFoundError):
    """Raised when a period does not exist or belongs to another leaderboard."""

    def __init__(self, period_id: str, leaderboard_id: str | None = None) -> None:
        details: dict = {"period_id": period_id}
        if leaderboard_id:
            details["leaderboard_id"] = leaderboard_id
        super().__init__(
            message=f"Period with ID {period_id} not found",
            details=details,
        )


# =============================================================================
# Validation Errors (HTTP 422)
# =============================================================================


class ValidationError(StudioRankError):
    """Base class for validation errors."""

    pass


class InvalidPeriodError(ValidationError):
    """Raised when a stored period's window cannot be scored."""

    def __init__(self, period_id: str, reason: str) -> None:
        super().__init__(
            message=f"Invalid period {period_id}: {reason}",
            details={"period_id": period_id, "reason": reason},
        )


# =============================================================================
# Scoring Engine Errors (HTTP 503 or 500 depending on cause)
# =============================================================================


class ScoringEngineError(StudioRankError):
    """Base class for failures that abort a computation run."""

    pass


class FactCollectionError(ScoringEngineError):
    """Raised when an activity fact source cannot be read.

    Collection happens before any write, so the period's previous snapshot
    is untouched when this is raised. Callers are expected to retry the
    whole run later.
    """

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(
            message=f"Failed to collect {source} facts: {reason}",
            details={"source": source, "reason": reason},
        )
        self.source = source
