# tests/test_formulas.py

"""Unit tests for category score formulas."""

import logging
import math
from datetime import datetime, timedelta, timezone

import pytest
from studiorank.scoring.categories import LeaderboardCategory
from studiorank.scoring.formulas import (
    CATEGORY_FORMULAS,
    all_rounder,
    bookings,
    build_breakdown,
    comeback_score,
    newcomer_score,
    normalize_score,
    resolve_formula,
    score_participant,
    social_views,
    zero,
)
from studiorank.scoring.reducer import StudioMetrics, TeacherMetrics
from studiorank.scoring.windows import ScoringWindow

PERIOD_START = datetime(2026, 10, 1, tzinfo=timezone.utc)
PERIOD_END = datetime(2026, 10, 31, 23, 59, 59, 999999, tzinfo=timezone.utc)
WINDOW = ScoringWindow.for_period(PERIOD_START, PERIOD_END)


def studio(**metrics) -> StudioMetrics:
    """Helper to build studio metrics created long before the period."""
    metrics.setdefault("created_at", datetime(2024, 1, 1, tzinfo=timezone.utc))
    return StudioMetrics(participant_id="studio-1", **metrics)


# =============================================================================
# Category Table
# =============================================================================


def test_every_category_has_a_formula():
    """Every LeaderboardCategory member must resolve to a formula."""
    assert set(CATEGORY_FORMULAS) == set(LeaderboardCategory)


def test_known_category_resolves_without_warning(caplog):
    """A known category never touches the metric-name heuristic."""
    with caplog.at_level(logging.WARNING):
        formula = resolve_formula("MOST_BOOKINGS", "revenue")

    assert formula is bookings
    assert caplog.records == []


# =============================================================================
# Special Formulas
# =============================================================================


def test_newcomer_outside_window_scores_zero():
    """A participant created 200 days before period end is not a newcomer."""
    m = studio(
        created_at=PERIOD_END - timedelta(days=200), bookings_current=50, new_clients=9
    )

    assert newcomer_score(m, WINDOW) == 0


def test_newcomer_inside_window_scores_bookings_plus_double_clients():
    """Created 10 days before period end with 5 bookings and 2 new clients -> 9."""
    m = studio(
        created_at=PERIOD_END - timedelta(days=10), bookings_current=5, new_clients=2
    )
    formula = resolve_formula(LeaderboardCategory.NEWCOMER_OF_MONTH.value)

    score, breakdown = score_participant(m, WINDOW, formula)

    assert score == 9
    assert breakdown.newcomer_score == 9


def test_comeback_never_negative():
    """Fewer bookings than last period floors at 0."""
    m = studio(bookings_current=3, bookings_previous=10)

    assert comeback_score(m, WINDOW) == 0


def test_comeback_counts_recovered_bookings():
    m = studio(bookings_current=12, bookings_previous=4)

    assert comeback_score(m, WINDOW) == 8


def test_all_rounder_weights():
    """bookings + revenue/100 + new_clients*10 + conversions*8 + enrollments*3."""
    m = studio(
        bookings_current=10,
        revenue=500.0,
        new_clients=1,
        social_converted=2,
        course_enrollments=1,
    )

    # 10 + 5 + 10 + 16 + 3
    assert all_rounder(m, WINDOW) == pytest.approx(44)


def test_social_views_proxy():
    """Each trigger counts as three views and each reply as one more."""
    m = studio(social_triggered=4, social_responded=2)

    assert social_views(m, WINDOW) == 14


# =============================================================================
# Participant-Type Specific Categories
# =============================================================================


def test_fastest_growing_uses_clients_for_studios_and_bookings_for_teachers():
    created = datetime(2024, 1, 1, tzinfo=timezone.utc)
    common = dict(
        created_at=created,
        bookings_current=4,
        bookings_previous=2,
        new_clients=9,
        previous_new_clients=3,
    )
    formula = CATEGORY_FORMULAS[LeaderboardCategory.FASTEST_GROWING]

    studio_score = formula(StudioMetrics(participant_id="s", **common), WINDOW)
    teacher_score = formula(TeacherMetrics(participant_id="t", **common), WINDOW)

    assert studio_score == pytest.approx(200.0)  # (9 - 3) / 3
    assert teacher_score == pytest.approx(100.0)  # (4 - 2) / 2


def test_top_reviewer_counts_received_for_studios_and_authored_for_teachers():
    created = datetime(2024, 1, 1, tzinfo=timezone.utc)
    common = dict(created_at=created, review_count=7, reviews_authored=2)
    formula = CATEGORY_FORMULAS[LeaderboardCategory.TOP_REVIEWER]

    assert formula(StudioMetrics(participant_id="s", **common), WINDOW) == 7
    assert formula(TeacherMetrics(participant_id="t", **common), WINDOW) == 2


# =============================================================================
# Unknown Category Fallback
# =============================================================================


@pytest.mark.parametrize(
    "metric_name, expected",
    [
        ("Total Bookings", 6),
        ("Monthly Revenue", 120.5),
        ("Classes taught", 3),
        ("New clients", 2),
        ("Engagement rate", 50.0),
        ("Social reach", 4),
    ],
)
def test_unknown_category_uses_metric_name_heuristic(metric_name, expected, caplog):
    m = studio(
        bookings_current=6,
        revenue=120.5,
        classes=3,
        new_clients=2,
        social_triggered=4,
        social_responded=2,
    )

    with caplog.at_level(logging.WARNING, logger="studiorank.scoring.formulas"):
        formula = resolve_formula("MOST_LIVESTREAMS", metric_name)

    assert formula(m, WINDOW) == pytest.approx(expected)
    assert "scoring by metric name" in caplog.text


def test_heuristic_checks_bookings_before_revenue():
    """First matching hint wins: 'booking revenue' scores bookings."""
    assert resolve_formula("UNKNOWN", "Booking revenue") is bookings


def test_unknown_category_without_hint_scores_zero_and_warns(caplog):
    with caplog.at_level(logging.WARNING, logger="studiorank.scoring.formulas"):
        formula = resolve_formula("MOST_LIVESTREAMS", "Hours streamed")

    assert formula is zero
    assert "no metric name match" in caplog.text
    assert formula(studio(bookings_current=99), WINDOW) == 0


# =============================================================================
# Normalization and Breakdown
# =============================================================================


@pytest.mark.parametrize("raw", [-5.0, math.nan, math.inf])
def test_normalize_score_clamps_invalid_values(raw):
    assert normalize_score(raw) == 0.0


def test_normalize_score_rounds_to_four_places():
    assert normalize_score(1.23456) == pytest.approx(1.2346)


def test_breakdown_rounds_display_values_to_two_places():
    m = studio(
        attended=1,
        capacity=3,
        revenue=10.005,
        review_count=3,
        review_rating_sum=14,
        social_converted=5,
    )

    breakdown = build_breakdown(m, WINDOW)

    assert breakdown.attendance_rate == pytest.approx(33.33)
    assert breakdown.average_rating == pytest.approx(4.67)
    assert breakdown.social_booked == 5


def test_zero_activity_participant_has_all_zero_breakdown():
    """Zero denominators yield 0, never an error."""
    score, breakdown = score_participant(
        studio(), WINDOW, CATEGORY_FORMULAS[LeaderboardCategory.HIGHEST_RETENTION]
    )

    assert score == 0
    assert breakdown.retention == 0
    assert breakdown.attendance_rate == 0
    assert breakdown.average_rating == 0
    assert breakdown.social_engagement_rate == 0
