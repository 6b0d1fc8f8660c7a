# src/studiorank/schemas/leaderboard.py

"""Input and output contracts of a leaderboard computation run."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from studiorank.scoring.categories import ParticipantType

from .breakdown import MetricsBreakdown


class LeaderboardConfig(BaseModel):
    """What a leaderboard measures and how it ranks.

    Attributes:
        category: Category name. Kept as a string so unknown categories
            reach the scorer, which falls back to ``metric_name``.
        participant_type: STUDIO or TEACHER
        higher_is_better: Rank 1 goes to the highest score when True
        metric_name: Free-text hint, only read when the category is unknown
        minimum_entries: Informational threshold, logged but not enforced
    """

    id: str
    category: str
    participant_type: ParticipantType
    higher_is_better: bool = True
    metric_name: str = ""
    minimum_entries: int = Field(0, ge=0)

    model_config = ConfigDict(from_attributes=True, frozen=True)


class PeriodWindow(BaseModel):
    """A period's inclusive [start_date, end_date] window."""

    id: str
    start_date: datetime
    end_date: datetime

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @model_validator(mode="after")
    def check_window_order(self) -> "PeriodWindow":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ScoreEntry(BaseModel):
    """One ranked participant, before persistence.

    Exactly one of ``studio_id`` / ``teacher_id`` is set.
    """

    studio_id: str | None = None
    teacher_id: str | None = None
    score: float = Field(..., ge=0)
    previous_score: float | None = None
    rank: int = Field(..., ge=1, description="Position in leaderboard (1-indexed)")
    previous_rank: int | None = None
    metrics_breakdown: MetricsBreakdown

    model_config = ConfigDict(frozen=True)

    @property
    def participant_id(self) -> str:
        return self.studio_id or self.teacher_id or ""


class ComputeResult(BaseModel):
    """Outcome of a computation run."""

    entries_created: int = Field(..., ge=0)
