# src/studiorank/scoring/facts.py

"""Flat, read-only fact rows handed from the collector to the reducer.

Rows keep every owner id the source query exposes, unresolved. Deciding
which of them identifies the participant is the reducer's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class Participant:
    """A studio or teacher competing in the run."""

    id: str
    created_at: datetime


@dataclass(frozen=True)
class BookingFact:
    """A non-cancelled booking whose session starts in the window."""

    studio_id: str | None
    teacher_id: str | None
    paid_amount: float | None = None
    list_price: float | None = None

    @property
    def revenue(self) -> float:
        """Paid amount, falling back to the class type's list price."""
        if self.paid_amount is not None:
            return self.paid_amount
        if self.list_price is not None:
            return self.list_price
        return 0.0


@dataclass(frozen=True)
class SessionFact:
    """A class session in the window with its attended-booking count."""

    studio_id: str | None
    teacher_id: str | None
    capacity: int = 0
    attended: int = 0


@dataclass(frozen=True)
class NewClientFact:
    """A client record created in the window."""

    studio_id: str | None


@dataclass(frozen=True)
class ActiveClientFact:
    """An active client, flagged if they booked anything in the window."""

    studio_id: str | None
    booked_in_window: bool = False


@dataclass(frozen=True)
class SocialAccountFact:
    """An active social account and its lifetime post count."""

    studio_id: str | None
    teacher_id: str | None
    posts_count: int = 0


@dataclass(frozen=True)
class SocialEventFact:
    """A social funnel event, with the owning account's ids unresolved.

    ``teacher_studio_id`` is the studio of the account's teacher and is
    only used when the account has no studio of its own.
    """

    occurred_at: datetime
    account_studio_id: str | None
    account_teacher_id: str | None
    teacher_studio_id: str | None = None
    responded: bool = False
    converted: bool = False


@dataclass(frozen=True)
class CourseFact:
    """A course created in the window."""

    studio_id: str | None
    creator_id: str | None


@dataclass(frozen=True)
class EnrollmentFact:
    """An enrollment (or completion) in the window.

    ``teacher_id`` is the enrolled teacher; the course ids are the course's
    publishing studio and authoring teacher.
    """

    teacher_id: str | None
    course_studio_id: str | None
    course_creator_id: str | None


@dataclass(frozen=True)
class ReviewFact:
    """A course review left in the window by ``teacher_id``."""

    rating: float
    teacher_id: str | None
    course_studio_id: str | None
    course_creator_id: str | None


@dataclass(frozen=True)
class CommunityMessageFact:
    """A chat message, resolved to the plan's studio and subscriber teacher."""

    studio_id: str | None
    teacher_id: str | None


@dataclass(frozen=True)
class AffiliateSaleFact:
    """An affiliate sale, resolved to the course studio and link teacher."""

    studio_id: str | None
    teacher_id: str | None


@dataclass(frozen=True)
class PriorStanding:
    """A participant's result in the leaderboard's previous period."""

    score: float
    rank: int


@dataclass(frozen=True)
class ActivityFacts:
    """Everything one run reads, for every fact domain."""

    participants: list[Participant]
    bookings_current: list[BookingFact] = field(default_factory=list)
    bookings_previous: list[BookingFact] = field(default_factory=list)
    sessions: list[SessionFact] = field(default_factory=list)
    new_clients_current: list[NewClientFact] = field(default_factory=list)
    new_clients_previous: list[NewClientFact] = field(default_factory=list)
    active_clients: list[ActiveClientFact] = field(default_factory=list)
    social_accounts: list[SocialAccountFact] = field(default_factory=list)
    social_events: list[SocialEventFact] = field(default_factory=list)
    courses: list[CourseFact] = field(default_factory=list)
    enrollments: list[EnrollmentFact] = field(default_factory=list)
    completions: list[EnrollmentFact] = field(default_factory=list)
    reviews: list[ReviewFact] = field(default_factory=list)
    community_messages: list[CommunityMessageFact] = field(default_factory=list)
    affiliate_sales: list[AffiliateSaleFact] = field(default_factory=list)
    # Keyed by participant id
    prior_standings: dict[str, PriorStanding] = field(default_factory=dict)

    def domain_counts(self) -> dict[str, int]:
        """Row count per fact domain, for logging."""
        return {
            "bookings_current": len(self.bookings_current),
            "bookings_previous": len(self.bookings_previous),
            "sessions": len(self.sessions),
            "new_clients_current": len(self.new_clients_current),
            "new_clients_previous": len(self.new_clients_previous),
            "active_clients": len(self.active_clients),
            "social_accounts": len(self.social_accounts),
            "social_events": len(self.social_events),
            "courses": len(self.courses),
            "enrollments": len(self.enrollments),
            "completions": len(self.completions),
            "reviews": len(self.reviews),
            "community_messages": len(self.community_messages),
            "affiliate_sales": len(self.affiliate_sales),
        }
