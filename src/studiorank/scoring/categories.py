# src/studiorank/scoring/categories.py

"""Closed enums describing what a leaderboard measures and who competes."""

from enum import Enum


class ParticipantType(str, Enum):
    """Which population competes on a leaderboard."""

    STUDIO = "STUDIO"
    TEACHER = "TEACHER"


class LeaderboardTimeframe(str, Enum):
    """Recurrence of a leaderboard's periods."""

    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"
    ALL_TIME = "ALL_TIME"


class LeaderboardCategory(str, Enum):
    """Every category with a wired-up score formula."""

    # Content & social
    MOST_CONTENT_POSTED = "MOST_CONTENT_POSTED"
    MOST_SOCIAL_VIEWS = "MOST_SOCIAL_VIEWS"
    MOST_SOCIAL_LIKES = "MOST_SOCIAL_LIKES"
    MOST_SOCIAL_ENGAGEMENT = "MOST_SOCIAL_ENGAGEMENT"
    CONTENT_CONSISTENCY = "CONTENT_CONSISTENCY"

    # Growth
    FASTEST_GROWING = "FASTEST_GROWING"
    BIGGEST_GROWTH_MONTHLY = "BIGGEST_GROWTH_MONTHLY"
    BIGGEST_GROWTH_QUARTERLY = "BIGGEST_GROWTH_QUARTERLY"

    # Clients
    MOST_NEW_CLIENTS = "MOST_NEW_CLIENTS"
    HIGHEST_RETENTION = "HIGHEST_RETENTION"

    # Education
    MOST_COURSES_COMPLETED = "MOST_COURSES_COMPLETED"
    MOST_COURSE_ENROLLMENTS = "MOST_COURSE_ENROLLMENTS"
    TOP_COURSE_CREATOR = "TOP_COURSE_CREATOR"
    BEST_COURSE_RATINGS = "BEST_COURSE_RATINGS"

    # Operations
    MOST_BOOKINGS = "MOST_BOOKINGS"
    HIGHEST_ATTENDANCE_RATE = "HIGHEST_ATTENDANCE_RATE"
    MOST_CLASSES_TAUGHT = "MOST_CLASSES_TAUGHT"
    TOP_REVENUE = "TOP_REVENUE"

    # Community
    MOST_ACTIVE_COMMUNITY = "MOST_ACTIVE_COMMUNITY"
    TOP_REVIEWER = "TOP_REVIEWER"
    MOST_REFERRALS = "MOST_REFERRALS"

    # Special
    NEWCOMER_OF_MONTH = "NEWCOMER_OF_MONTH"
    COMEBACK_CHAMPION = "COMEBACK_CHAMPION"
    ALL_ROUNDER = "ALL_ROUNDER"


def parse_category(value: str) -> LeaderboardCategory | None:
    """Return the category for a stored value, or None if it is not known."""
    try:
        return LeaderboardCategory(value)
    except ValueError:
        return None
