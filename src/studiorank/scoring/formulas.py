# src/studiorank/scoring/formulas.py

"""Category scoring: turn a participant's metrics into one score.

Each category resolves to exactly one pure formula. The table below must
cover every LeaderboardCategory member; categories stored upstream that
are not members fall back to a metric-name heuristic.
"""

from __future__ import annotations

import logging
import math
from typing import Callable

from studiorank.schemas.breakdown import MetricsBreakdown

from .categories import LeaderboardCategory, parse_category
from .constants import BREAKDOWN_PRECISION, SCORE_PRECISION
from .reducer import ParticipantMetrics, round_to
from .windows import ScoringWindow

logger = logging.getLogger(__name__)

Formula = Callable[[ParticipantMetrics, ScoringWindow], float]


# ===============================================
# == Content & Social
# ===============================================


def social_posts(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return m.social_posts


def social_views(m: ParticipantMetrics, window: ScoringWindow) -> float:
    """View proxy: each trigger is worth three views, each reply one more."""
    return m.social_triggered * 3 + m.social_responded


def social_likes(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return m.social_responded


def social_triggered(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return m.social_triggered


def social_engagement(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return m.social_engagement_rate


def content_consistency(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return m.content_consistency_days


# ===============================================
# == Growth & Clients
# ===============================================


def fastest_growth(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return m.fastest_growth


def booking_growth(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return m.booking_growth_percent


def new_clients(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return m.new_clients


def retention(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return m.retention


# ===============================================
# == Education
# ===============================================


def courses_completed(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return m.courses_completed


def course_enrollments(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return m.course_enrollments


def courses_created(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return m.courses_created


def average_rating(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return m.average_rating


# ===============================================
# == Operations
# ===============================================


def bookings(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return m.bookings_current


def attendance_rate(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return m.attendance_rate


def classes(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return m.classes


def revenue(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return m.revenue


# ===============================================
# == Community
# ===============================================


def community_messages(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return m.community_messages


def top_reviewer(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return m.top_reviewer


def referrals(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return m.referrals


# ===============================================
# == Special
# ===============================================


def newcomer_score(m: ParticipantMetrics, window: ScoringWindow) -> float:
    """Bookings plus double-weighted new clients, for newcomers only."""
    if not window.is_newcomer(m.created_at):
        return 0
    return m.bookings_current + m.new_clients * 2


def comeback_score(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return max(0, m.bookings_current - m.bookings_previous)


def all_rounder(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return (
        m.bookings_current
        + m.revenue / 100
        + m.new_clients * 10
        + m.social_converted * 8
        + m.course_enrollments * 3
    )


def zero(m: ParticipantMetrics, window: ScoringWindow) -> float:
    return 0


CATEGORY_FORMULAS: dict[LeaderboardCategory, Formula] = {
    LeaderboardCategory.MOST_CONTENT_POSTED: social_posts,
    LeaderboardCategory.MOST_SOCIAL_VIEWS: social_views,
    LeaderboardCategory.MOST_SOCIAL_LIKES: social_likes,
    LeaderboardCategory.MOST_SOCIAL_ENGAGEMENT: social_engagement,
    LeaderboardCategory.CONTENT_CONSISTENCY: content_consistency,
    LeaderboardCategory.FASTEST_GROWING: fastest_growth,
    LeaderboardCategory.BIGGEST_GROWTH_MONTHLY: booking_growth,
    LeaderboardCategory.BIGGEST_GROWTH_QUARTERLY: booking_growth,
    LeaderboardCategory.MOST_NEW_CLIENTS: new_clients,
    LeaderboardCategory.HIGHEST_RETENTION: retention,
    LeaderboardCategory.MOST_COURSES_COMPLETED: courses_completed,
    LeaderboardCategory.MOST_COURSE_ENROLLMENTS: course_enrollments,
    LeaderboardCategory.TOP_COURSE_CREATOR: courses_created,
    LeaderboardCategory.BEST_COURSE_RATINGS: average_rating,
    LeaderboardCategory.MOST_BOOKINGS: bookings,
    LeaderboardCategory.HIGHEST_ATTENDANCE_RATE: attendance_rate,
    LeaderboardCategory.MOST_CLASSES_TAUGHT: classes,
    LeaderboardCategory.TOP_REVENUE: revenue,
    LeaderboardCategory.MOST_ACTIVE_COMMUNITY: community_messages,
    LeaderboardCategory.TOP_REVIEWER: top_reviewer,
    LeaderboardCategory.MOST_REFERRALS: referrals,
    LeaderboardCategory.NEWCOMER_OF_MONTH: newcomer_score,
    LeaderboardCategory.COMEBACK_CHAMPION: comeback_score,
    LeaderboardCategory.ALL_ROUNDER: all_rounder,
}

# First matching substring wins
METRIC_NAME_HINTS: tuple[tuple[str, Formula], ...] = (
    ("book", bookings),
    ("revenue", revenue),
    ("class", classes),
    ("client", new_clients),
    ("engage", social_engagement),
    ("social", social_triggered),
)


def resolve_formula(category: str, metric_name: str = "") -> Formula:
    """Pick the formula for a leaderboard, once per run.

    Unknown categories degrade to the metric-name heuristic and, failing
    that, to a constant 0. Both paths log a warning because an all-zero
    leaderboard otherwise looks exactly like one with no activity.
    """
    known = parse_category(category)
    if known is not None:
        return CATEGORY_FORMULAS[known]

    hint = (metric_name or "").lower()
    for needle, formula in METRIC_NAME_HINTS:
        if needle in hint:
            logger.warning(
                "Unrecognized leaderboard category, scoring by metric name",
                extra={
                    "category": category,
                    "metric_name": metric_name,
                    "fallback_formula": formula.__name__,
                },
            )
            return formula

    logger.warning(
        "Unrecognized leaderboard category and no metric name match, scoring 0",
        extra={"category": category, "metric_name": metric_name},
    )
    return zero


def normalize_score(raw: float) -> float:
    """Clamp to a finite, non-negative value at score precision."""
    if not math.isfinite(raw) or raw < 0:
        return 0.0
    return round_to(raw, SCORE_PRECISION)


def build_breakdown(m: ParticipantMetrics, window: ScoringWindow) -> MetricsBreakdown:
    """Snapshot every metric for display, rates rounded to 2 places."""

    def display(value: float) -> float:
        return round_to(value, BREAKDOWN_PRECISION)

    return MetricsBreakdown(
        bookings_current=m.bookings_current,
        bookings_previous=m.bookings_previous,
        booking_growth_percent=display(m.booking_growth_percent),
        revenue=display(m.revenue),
        classes=m.classes,
        attendance_rate=display(m.attendance_rate),
        new_clients=m.new_clients,
        previous_new_clients=m.previous_new_clients,
        client_growth_percent=display(m.client_growth_percent),
        retention=display(m.retention),
        social_posts=m.social_posts,
        social_triggered=m.social_triggered,
        social_responded=m.social_responded,
        social_booked=m.social_converted,
        social_engagement_rate=display(m.social_engagement_rate),
        content_consistency_days=m.content_consistency_days,
        courses_created=m.courses_created,
        course_enrollments=m.course_enrollments,
        courses_completed=m.courses_completed,
        average_rating=display(m.average_rating),
        community_messages=m.community_messages,
        top_reviewer=m.top_reviewer,
        referrals=m.referrals,
        newcomer_score=newcomer_score(m, window),
        comeback_score=comeback_score(m, window),
    )


def score_participant(
    m: ParticipantMetrics, window: ScoringWindow, formula: Formula
) -> tuple[float, MetricsBreakdown]:
    """Evaluate ``formula`` for one participant.

    Returns:
        (score, breakdown) with the score normalized to 4 decimal places.
    """
    return normalize_score(formula(m, window)), build_breakdown(m, window)
