# src/studiorank/scoring/reducer.py

"""Metric reduction: fold raw fact rows into per-participant metrics.

The participant type is resolved once per run into an ``Attribution``
strategy that knows which owner id of each fact row identifies a
participant. The folds themselves never branch on participant type.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable

from .categories import ParticipantType
from .facts import (
    ActiveClientFact,
    ActivityFacts,
    AffiliateSaleFact,
    BookingFact,
    CommunityMessageFact,
    CourseFact,
    EnrollmentFact,
    NewClientFact,
    ReviewFact,
    SessionFact,
    SocialAccountFact,
    SocialEventFact,
)
from .windows import ensure_utc


def round_to(value: float, precision: int = 2) -> float:
    """Round half up, away from the banker's rounding of ``round()``."""
    factor = 10**precision
    return math.floor(value * factor + 0.5) / factor


def ratio_percentage(numerator: float, denominator: float, precision: int = 4) -> float:
    """numerator / denominator as a percentage, 0 when the denominator is not positive."""
    if denominator <= 0:
        return 0.0
    return round_to(numerator / denominator * 100, precision)


def growth_percentage(current: float, previous: float) -> float:
    """Period-over-period change, with the previous value floored at 1."""
    return ratio_percentage(current - previous, max(1, previous))


# ===============================================
# == Accumulated Metrics
# ===============================================


@dataclass(frozen=True)
class ParticipantMetrics(ABC):
    """Every reduced metric for one participant in one run."""

    participant_id: str
    created_at: datetime

    bookings_current: int = 0
    bookings_previous: int = 0
    revenue: float = 0.0
    classes: int = 0
    attended: int = 0
    capacity: int = 0

    new_clients: int = 0
    previous_new_clients: int = 0
    active_clients: int = 0
    active_booked_clients: int = 0

    social_posts: int = 0
    social_triggered: int = 0
    social_responded: int = 0
    social_converted: int = 0
    content_consistency_days: int = 0

    courses_created: int = 0
    course_enrollments: int = 0
    courses_completed: int = 0
    review_count: int = 0
    review_rating_sum: float = 0.0
    reviews_authored: int = 0

    community_messages: int = 0
    referrals: int = 0

    @property
    def attendance_rate(self) -> float:
        return ratio_percentage(self.attended, self.capacity)

    @property
    def retention(self) -> float:
        return ratio_percentage(self.active_booked_clients, self.active_clients)

    @property
    def social_engagement_rate(self) -> float:
        return ratio_percentage(
            self.social_responded + self.social_converted, self.social_triggered
        )

    @property
    def average_rating(self) -> float:
        if self.review_count <= 0:
            return 0.0
        return self.review_rating_sum / self.review_count

    @property
    def booking_growth_percent(self) -> float:
        return growth_percentage(self.bookings_current, self.bookings_previous)

    @property
    def client_growth_percent(self) -> float:
        return growth_percentage(self.new_clients, self.previous_new_clients)

    @property
    @abstractmethod
    def fastest_growth(self) -> float:
        """The growth figure used by FASTEST_GROWING."""

    @property
    @abstractmethod
    def top_reviewer(self) -> int:
        """The review count used by TOP_REVIEWER."""


@dataclass(frozen=True)
class StudioMetrics(ParticipantMetrics):
    """Studios grow by clients and are credited for reviews they receive."""

    @property
    def fastest_growth(self) -> float:
        return self.client_growth_percent

    @property
    def top_reviewer(self) -> int:
        return self.review_count


@dataclass(frozen=True)
class TeacherMetrics(ParticipantMetrics):
    """Teachers grow by bookings and are credited for reviews they write."""

    @property
    def fastest_growth(self) -> float:
        return self.booking_growth_percent

    @property
    def top_reviewer(self) -> int:
        return self.reviews_authored


# ===============================================
# == Attribution Strategies
# ===============================================


class Attribution(ABC):
    """Maps each kind of fact row to the participant id that owns it.

    Returning None drops the row for this participant type.
    """

    participant_type: ParticipantType
    metrics_class: type[ParticipantMetrics]

    @abstractmethod
    def booking(self, fact: BookingFact) -> str | None:
        pass

    @abstractmethod
    def session(self, fact: SessionFact) -> str | None:
        pass

    def new_client(self, fact: NewClientFact) -> str | None:
        return None

    def active_client(self, fact: ActiveClientFact) -> str | None:
        return None

    @abstractmethod
    def social_account(self, fact: SocialAccountFact) -> str | None:
        pass

    @abstractmethod
    def social_event(self, fact: SocialEventFact) -> str | None:
        pass

    @abstractmethod
    def course(self, fact: CourseFact) -> str | None:
        pass

    @abstractmethod
    def enrollment(self, fact: EnrollmentFact) -> str | None:
        pass

    @abstractmethod
    def completion(self, fact: EnrollmentFact) -> str | None:
        pass

    @abstractmethod
    def review_received(self, fact: ReviewFact) -> str | None:
        pass

    def review_authored(self, fact: ReviewFact) -> str | None:
        return None

    @abstractmethod
    def community_message(self, fact: CommunityMessageFact) -> str | None:
        pass

    @abstractmethod
    def affiliate_sale(self, fact: AffiliateSaleFact) -> str | None:
        pass


class StudioAttribution(Attribution):
    participant_type = ParticipantType.STUDIO
    metrics_class = StudioMetrics

    def booking(self, fact: BookingFact) -> str | None:
        return fact.studio_id

    def session(self, fact: SessionFact) -> str | None:
        return fact.studio_id

    def new_client(self, fact: NewClientFact) -> str | None:
        return fact.studio_id

    def active_client(self, fact: ActiveClientFact) -> str | None:
        return fact.studio_id

    def social_account(self, fact: SocialAccountFact) -> str | None:
        return fact.studio_id

    def social_event(self, fact: SocialEventFact) -> str | None:
        # Teacher-owned accounts count toward the teacher's studio
        return fact.account_studio_id or fact.teacher_studio_id

    def course(self, fact: CourseFact) -> str | None:
        return fact.studio_id

    def enrollment(self, fact: EnrollmentFact) -> str | None:
        return fact.course_studio_id

    def completion(self, fact: EnrollmentFact) -> str | None:
        return fact.course_studio_id

    def review_received(self, fact: ReviewFact) -> str | None:
        return fact.course_studio_id

    def community_message(self, fact: CommunityMessageFact) -> str | None:
        return fact.studio_id

    def affiliate_sale(self, fact: AffiliateSaleFact) -> str | None:
        return fact.studio_id


class TeacherAttribution(Attribution):
    participant_type = ParticipantType.TEACHER
    metrics_class = TeacherMetrics

    def booking(self, fact: BookingFact) -> str | None:
        return fact.teacher_id

    def session(self, fact: SessionFact) -> str | None:
        return fact.teacher_id

    def social_account(self, fact: SocialAccountFact) -> str | None:
        return fact.teacher_id

    def social_event(self, fact: SocialEventFact) -> str | None:
        return fact.account_teacher_id

    def course(self, fact: CourseFact) -> str | None:
        return fact.creator_id

    def enrollment(self, fact: EnrollmentFact) -> str | None:
        return fact.course_creator_id

    def completion(self, fact: EnrollmentFact) -> str | None:
        # Completions credit the teacher who finished the course
        return fact.teacher_id

    def review_received(self, fact: ReviewFact) -> str | None:
        return fact.course_creator_id

    def review_authored(self, fact: ReviewFact) -> str | None:
        return fact.teacher_id

    def community_message(self, fact: CommunityMessageFact) -> str | None:
        return fact.teacher_id

    def affiliate_sale(self, fact: AffiliateSaleFact) -> str | None:
        return fact.teacher_id


_ATTRIBUTIONS: dict[ParticipantType, Attribution] = {
    ParticipantType.STUDIO: StudioAttribution(),
    ParticipantType.TEACHER: TeacherAttribution(),
}


def attribution_for(participant_type: ParticipantType) -> Attribution:
    return _ATTRIBUTIONS[participant_type]


# ===============================================
# == Folds
# ===============================================


def tally(keys: Iterable[str | None]) -> Counter[str]:
    """Count occurrences per participant id, skipping unattributed rows."""
    return Counter(key for key in keys if key)


def total(pairs: Iterable[tuple[str | None, float]]) -> Counter[str]:
    """Sum amounts per participant id, skipping unattributed rows."""
    sums: Counter[str] = Counter()
    for key, amount in pairs:
        if key:
            sums[key] += amount
    return sums


def distinct_days(pairs: Iterable[tuple[str | None, datetime]]) -> dict[str, frozenset[date]]:
    """The set of UTC calendar days each participant was active on."""
    days: dict[str, set[date]] = {}
    for key, moment in pairs:
        if key:
            days.setdefault(key, set()).add(ensure_utc(moment).date())
    return {key: frozenset(values) for key, values in days.items()}


def reduce_facts(
    facts: ActivityFacts, attribution: Attribution
) -> dict[str, ParticipantMetrics]:
    """Fold every fact domain into one metrics record per participant.

    Participants with no activity still get a record, with every metric 0.
    """
    a = attribution
    sums: dict[str, Counter[str]] = {
        "bookings_current": tally(a.booking(f) for f in facts.bookings_current),
        "bookings_previous": tally(a.booking(f) for f in facts.bookings_previous),
        "revenue": total((a.booking(f), f.revenue) for f in facts.bookings_current),
        "classes": tally(a.session(f) for f in facts.sessions),
        "attended": total((a.session(f), f.attended) for f in facts.sessions),
        "capacity": total((a.session(f), f.capacity) for f in facts.sessions),
        "new_clients": tally(a.new_client(f) for f in facts.new_clients_current),
        "previous_new_clients": tally(
            a.new_client(f) for f in facts.new_clients_previous
        ),
        "active_clients": tally(a.active_client(f) for f in facts.active_clients),
        "active_booked_clients": tally(
            a.active_client(f) for f in facts.active_clients if f.booked_in_window
        ),
        "social_posts": total(
            (a.social_account(f), f.posts_count) for f in facts.social_accounts
        ),
        "social_triggered": tally(a.social_event(f) for f in facts.social_events),
        "social_responded": tally(
            a.social_event(f) for f in facts.social_events if f.responded
        ),
        "social_converted": tally(
            a.social_event(f) for f in facts.social_events if f.converted
        ),
        "courses_created": tally(a.course(f) for f in facts.courses),
        "course_enrollments": tally(a.enrollment(f) for f in facts.enrollments),
        "courses_completed": tally(a.completion(f) for f in facts.completions),
        "review_count": tally(a.review_received(f) for f in facts.reviews),
        "review_rating_sum": total(
            (a.review_received(f), f.rating) for f in facts.reviews
        ),
        "reviews_authored": tally(a.review_authored(f) for f in facts.reviews),
        "community_messages": tally(
            a.community_message(f) for f in facts.community_messages
        ),
        "referrals": tally(a.affiliate_sale(f) for f in facts.affiliate_sales),
    }
    active_days = distinct_days(
        (a.social_event(f), f.occurred_at) for f in facts.social_events
    )

    return {
        participant.id: a.metrics_class(
            participant_id=participant.id,
            created_at=participant.created_at,
            content_consistency_days=len(active_days.get(participant.id, ())),
            **{name: by_id.get(participant.id, 0) for name, by_id in sums.items()},
        )
        for participant in facts.participants
    }
