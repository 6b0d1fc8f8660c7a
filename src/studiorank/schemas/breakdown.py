# src/studiorank/schemas/breakdown.py

"""The per-entry metrics breakdown persisted alongside each score."""

from pydantic import BaseModel, ConfigDict, Field


class MetricsBreakdown(BaseModel):
    """Every intermediate metric behind a participant's score.

    Stored as JSON on the leaderboard entry for auditing and display.
    Money, rates and averages are rounded to 2 decimal places.
    """

    bookings_current: int = Field(0, ge=0)
    bookings_previous: int = Field(0, ge=0)
    booking_growth_percent: float = 0.0
    revenue: float = 0.0
    classes: int = Field(0, ge=0)
    attendance_rate: float = Field(0.0, ge=0)

    new_clients: int = Field(0, ge=0)
    previous_new_clients: int = Field(0, ge=0)
    client_growth_percent: float = 0.0
    retention: float = Field(0.0, ge=0)

    social_posts: int = Field(0, ge=0)
    social_triggered: int = Field(0, ge=0)
    social_responded: int = Field(0, ge=0)
    social_booked: int = Field(0, ge=0, description="Funnel conversions")
    social_engagement_rate: float = Field(0.0, ge=0)
    content_consistency_days: int = Field(0, ge=0)

    courses_created: int = Field(0, ge=0)
    course_enrollments: int = Field(0, ge=0)
    courses_completed: int = Field(0, ge=0)
    average_rating: float = Field(0.0, ge=0)

    community_messages: int = Field(0, ge=0)
    top_reviewer: int = Field(0, ge=0)
    referrals: int = Field(0, ge=0)

    newcomer_score: float = Field(0.0, ge=0)
    comeback_score: float = Field(0.0, ge=0)

    model_config = ConfigDict(frozen=True)
