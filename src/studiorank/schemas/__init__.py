# src/studiorank/schemas/__init__.py

"""Pydantic schemas for computation inputs, outputs and API serialization."""

from .breakdown import MetricsBreakdown
from .leaderboard import ComputeResult, LeaderboardConfig, PeriodWindow, ScoreEntry

__all__ = [
    # Breakdown
    "MetricsBreakdown",
    # Leaderboard
    "ComputeResult",
    "LeaderboardConfig",
    "PeriodWindow",
    "ScoreEntry",
]
