# src/studiorank/scoring/collector.py

"""Fact collection: the read phase of a computation run.

Every query here is scoped only by timestamp range (and, for teachers,
active status). No category-specific filtering happens at this stage, so
one pull serves every category. Nothing in this module writes.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from studiorank.db import models
from studiorank.exceptions import FactCollectionError

from .categories import ParticipantType
from .constants import ATTENDED_BOOKING_STATUSES, CANCELLED_BOOKING_STATUS
from .facts import (
    ActiveClientFact,
    ActivityFacts,
    AffiliateSaleFact,
    BookingFact,
    CommunityMessageFact,
    CourseFact,
    EnrollmentFact,
    NewClientFact,
    Participant,
    PriorStanding,
    ReviewFact,
    SessionFact,
    SocialAccountFact,
    SocialEventFact,
)
from .windows import ScoringWindow, ensure_utc

logger = logging.getLogger(__name__)


async def _read(db: AsyncSession, source: str, stmt: Select) -> list[Any]:
    """Execute a read, translating driver failures into FactCollectionError."""
    try:
        result = await db.execute(stmt)
        return list(result.all())
    except SQLAlchemyError as e:
        raise FactCollectionError(source, str(e)) from e


# ===============================================
# == Participants
# ===============================================


async def fetch_participants(
    db: AsyncSession, participant_type: ParticipantType
) -> list[Participant]:
    """All studios, or all active teachers, oldest first."""
    if participant_type == ParticipantType.STUDIO:
        stmt = select(models.Studio.id, models.Studio.created_at).order_by(
            models.Studio.created_at, models.Studio.id
        )
    else:
        stmt = (
            select(models.Teacher.id, models.Teacher.created_at)
            .where(models.Teacher.is_active.is_(True))
            .order_by(models.Teacher.created_at, models.Teacher.id)
        )
    rows = await _read(db, "participants", stmt)
    return [Participant(id=pid, created_at=ensure_utc(created)) for pid, created in rows]


# ===============================================
# == Operations
# ===============================================


async def fetch_bookings(db: AsyncSession, start, end) -> list[BookingFact]:
    """Non-cancelled bookings whose session starts inside [start, end]."""
    stmt = (
        select(
            models.Booking.studio_id,
            models.ClassSession.teacher_id,
            models.Booking.paid_amount,
            models.ClassType.price,
        )
        .join(
            models.ClassSession,
            models.Booking.class_session_id == models.ClassSession.id,
        )
        .outerjoin(
            models.ClassType, models.ClassSession.class_type_id == models.ClassType.id
        )
        .where(
            models.Booking.status != CANCELLED_BOOKING_STATUS,
            models.ClassSession.start_time.between(start, end),
        )
    )
    rows = await _read(db, "bookings", stmt)
    return [
        BookingFact(
            studio_id=studio_id,
            teacher_id=teacher_id,
            paid_amount=paid_amount,
            list_price=price,
        )
        for studio_id, teacher_id, paid_amount, price in rows
    ]


async def fetch_sessions(db: AsyncSession, window: ScoringWindow) -> list[SessionFact]:
    """Sessions in the window, each with its count of attended bookings."""
    attended = (
        select(func.count(models.Booking.id))
        .where(
            models.Booking.class_session_id == models.ClassSession.id,
            models.Booking.status.in_(sorted(ATTENDED_BOOKING_STATUSES)),
        )
        .correlate(models.ClassSession)
        .scalar_subquery()
    )
    stmt = select(
        models.ClassSession.studio_id,
        models.ClassSession.teacher_id,
        models.ClassSession.capacity,
        attended,
    ).where(models.ClassSession.start_time.between(window.start, window.end))
    rows = await _read(db, "class_sessions", stmt)
    return [
        SessionFact(
            studio_id=studio_id,
            teacher_id=teacher_id,
            capacity=capacity or 0,
            attended=attended_count or 0,
        )
        for studio_id, teacher_id, capacity, attended_count in rows
    ]


async def fetch_new_clients(db: AsyncSession, start, end) -> list[NewClientFact]:
    stmt = select(models.Client.studio_id).where(
        models.Client.created_at.between(start, end)
    )
    rows = await _read(db, "clients", stmt)
    return [NewClientFact(studio_id=studio_id) for (studio_id,) in rows]


async def fetch_active_clients(
    db: AsyncSession, window: ScoringWindow
) -> list[ActiveClientFact]:
    """Active clients, flagged when they hold a booking in the window."""
    booked = (
        select(models.Booking.id)
        .join(
            models.ClassSession,
            models.Booking.class_session_id == models.ClassSession.id,
        )
        .where(
            models.Booking.client_id == models.Client.id,
            models.Booking.status != CANCELLED_BOOKING_STATUS,
            models.ClassSession.start_time.between(window.start, window.end),
        )
        .correlate(models.Client)
        .exists()
    )
    stmt = select(models.Client.studio_id, booked.label("booked")).where(
        models.Client.is_active.is_(True)
    )
    rows = await _read(db, "active_clients", stmt)
    return [
        ActiveClientFact(studio_id=studio_id, booked_in_window=bool(has_booking))
        for studio_id, has_booking in rows
    ]


# ===============================================
# == Social Media
# ===============================================


async def fetch_social_accounts(db: AsyncSession) -> list[SocialAccountFact]:
    stmt = select(
        models.SocialMediaAccount.studio_id,
        models.SocialMediaAccount.teacher_id,
        models.SocialMediaAccount.posts_count,
    ).where(models.SocialMediaAccount.is_active.is_(True))
    rows = await _read(db, "social_accounts", stmt)
    return [
        SocialAccountFact(studio_id=studio_id, teacher_id=teacher_id, posts_count=posts)
        for studio_id, teacher_id, posts in rows
    ]


async def fetch_social_events(
    db: AsyncSession, window: ScoringWindow
) -> list[SocialEventFact]:
    """Funnel events in the window with the owning account's ids attached."""
    event = models.SocialMediaFlowEvent
    account = models.SocialMediaAccount
    stmt = (
        select(
            event.created_at,
            event.response_sent,
            event.converted,
            account.studio_id,
            account.teacher_id,
            models.Teacher.studio_id,
        )
        .join(models.SocialMediaFlow, event.flow_id == models.SocialMediaFlow.id)
        .join(account, models.SocialMediaFlow.account_id == account.id)
        .outerjoin(models.Teacher, account.teacher_id == models.Teacher.id)
        .where(event.created_at.between(window.start, window.end))
    )
    rows = await _read(db, "social_events", stmt)
    return [
        SocialEventFact(
            occurred_at=ensure_utc(created_at),
            account_studio_id=studio_id,
            account_teacher_id=teacher_id,
            teacher_studio_id=teacher_studio_id,
            responded=bool(responded),
            converted=bool(converted),
        )
        for created_at, responded, converted, studio_id, teacher_id, teacher_studio_id in rows
    ]


# ===============================================
# == Education
# ===============================================


async def fetch_courses(db: AsyncSession, window: ScoringWindow) -> list[CourseFact]:
    stmt = select(models.VaultCourse.studio_id, models.VaultCourse.creator_id).where(
        models.VaultCourse.created_at.between(window.start, window.end)
    )
    rows = await _read(db, "courses", stmt)
    return [CourseFact(studio_id=s, creator_id=c) for s, c in rows]


async def fetch_enrollments(
    db: AsyncSession, window: ScoringWindow, *, completed: bool = False
) -> list[EnrollmentFact]:
    """Enrollments started in the window, or completed in it."""
    enrollment = models.VaultEnrollment
    timestamp = enrollment.completed_at if completed else enrollment.enrolled_at
    stmt = (
        select(
            enrollment.teacher_id,
            models.VaultCourse.studio_id,
            models.VaultCourse.creator_id,
        )
        .join(models.VaultCourse, enrollment.course_id == models.VaultCourse.id)
        .where(timestamp.between(window.start, window.end))
    )
    rows = await _read(db, "completions" if completed else "enrollments", stmt)
    return [
        EnrollmentFact(teacher_id=t, course_studio_id=s, course_creator_id=c)
        for t, s, c in rows
    ]


async def fetch_reviews(db: AsyncSession, window: ScoringWindow) -> list[ReviewFact]:
    stmt = (
        select(
            models.VaultReview.rating,
            models.VaultReview.teacher_id,
            models.VaultCourse.studio_id,
            models.VaultCourse.creator_id,
        )
        .join(models.VaultCourse, models.VaultReview.course_id == models.VaultCourse.id)
        .where(models.VaultReview.created_at.between(window.start, window.end))
    )
    rows = await _read(db, "reviews", stmt)
    return [
        ReviewFact(
            rating=rating,
            teacher_id=teacher_id,
            course_studio_id=studio_id,
            course_creator_id=creator_id,
        )
        for rating, teacher_id, studio_id, creator_id in rows
    ]


# ===============================================
# == Community & Affiliates
# ===============================================


async def fetch_community_messages(
    db: AsyncSession, window: ScoringWindow
) -> list[CommunityMessageFact]:
    """Chat messages resolved through member -> subscriber -> plan."""
    stmt = (
        select(models.VaultSubscriptionPlan.studio_id, models.VaultSubscriber.teacher_id)
        .select_from(models.VaultChatMessage)
        .join(
            models.VaultChatMember,
            models.VaultChatMessage.member_id == models.VaultChatMember.id,
        )
        .join(
            models.VaultSubscriber,
            models.VaultChatMember.subscriber_id == models.VaultSubscriber.id,
        )
        .join(
            models.VaultSubscriptionPlan,
            models.VaultSubscriber.plan_id == models.VaultSubscriptionPlan.id,
        )
        .where(models.VaultChatMessage.created_at.between(window.start, window.end))
    )
    rows = await _read(db, "community_messages", stmt)
    return [CommunityMessageFact(studio_id=s, teacher_id=t) for s, t in rows]


async def fetch_affiliate_sales(
    db: AsyncSession, window: ScoringWindow
) -> list[AffiliateSaleFact]:
    stmt = (
        select(models.VaultCourse.studio_id, models.VaultAffiliateLink.teacher_id)
        .select_from(models.VaultAffiliateSale)
        .join(
            models.VaultAffiliateLink,
            models.VaultAffiliateSale.affiliate_link_id == models.VaultAffiliateLink.id,
        )
        .join(
            models.VaultCourse,
            models.VaultAffiliateLink.course_id == models.VaultCourse.id,
        )
        .where(models.VaultAffiliateSale.created_at.between(window.start, window.end))
    )
    rows = await _read(db, "affiliate_sales", stmt)
    return [AffiliateSaleFact(studio_id=s, teacher_id=t) for s, t in rows]


# ===============================================
# == Previous Standings
# ===============================================


async def fetch_prior_standings(
    db: AsyncSession,
    participant_type: ParticipantType,
    leaderboard_id: str,
    period_id: str,
    window: ScoringWindow,
) -> dict[str, PriorStanding]:
    """Entries of the leaderboard's latest period starting before this one."""
    period = models.LeaderboardPeriod
    previous_period_id = (
        select(period.id)
        .where(
            period.leaderboard_id == leaderboard_id,
            period.id != period_id,
            period.start_date < window.start,
        )
        .order_by(period.start_date.desc())
        .limit(1)
        .scalar_subquery()
    )
    entry = models.LeaderboardEntry
    participant_column = (
        entry.studio_id
        if participant_type == ParticipantType.STUDIO
        else entry.teacher_id
    )
    stmt = select(participant_column, entry.score, entry.rank).where(
        entry.period_id == previous_period_id,
        participant_column.is_not(None),
    )
    rows = await _read(db, "prior_standings", stmt)
    return {pid: PriorStanding(score=score, rank=rank) for pid, score, rank in rows}


async def collect_facts(
    db: AsyncSession,
    participant_type: ParticipantType,
    window: ScoringWindow,
    *,
    leaderboard_id: str,
    period_id: str,
) -> ActivityFacts:
    """Read every fact domain for one run.

    Returns an ActivityFacts with only ``participants`` set (empty) when
    there is nobody to rank, without issuing the remaining reads.

    Raises:
        FactCollectionError: If any source read fails.
    """
    participants = await fetch_participants(db, participant_type)
    if not participants:
        return ActivityFacts(participants=[])

    # One AsyncSession cannot run statements concurrently; reads are sequential
    facts = ActivityFacts(
        participants=participants,
        bookings_current=await fetch_bookings(db, window.start, window.end),
        bookings_previous=await fetch_bookings(
            db, window.previous_start, window.previous_end
        ),
        sessions=await fetch_sessions(db, window),
        new_clients_current=await fetch_new_clients(db, window.start, window.end),
        new_clients_previous=await fetch_new_clients(
            db, window.previous_start, window.previous_end
        ),
        active_clients=await fetch_active_clients(db, window),
        social_accounts=await fetch_social_accounts(db),
        social_events=await fetch_social_events(db, window),
        courses=await fetch_courses(db, window),
        enrollments=await fetch_enrollments(db, window),
        completions=await fetch_enrollments(db, window, completed=True),
        reviews=await fetch_reviews(db, window),
        community_messages=await fetch_community_messages(db, window),
        affiliate_sales=await fetch_affiliate_sales(db, window),
        prior_standings=await fetch_prior_standings(
            db, participant_type, leaderboard_id, period_id, window
        ),
    )
    logger.debug(
        "Collected activity facts",
        extra={"participant_count": len(participants), **facts.domain_counts()},
    )
    return facts
