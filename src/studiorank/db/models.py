# src/studiorank/db/models.py

"""Database models for the StudioRank leaderboard engine.

Two groups of tables live here:

1. Activity facts owned by the studio-management product (studios, teachers,
   bookings, social automation, courses, community, affiliates). The engine
   only ever reads these.
2. Leaderboard tables owned by the engine (leaderboards, periods, entries).
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import (
    Mapped,
    declarative_base,
    mapped_column,
    relationship,
)

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ===============================================
# Mixins for Common Columns
# ===============================================


class StringIdMixin:
    """Mixin providing a UUID string primary key.

    Leaderboard ties are broken by lexical id order, so every participant
    table uses string ids rather than integers.
    """

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)


class TimestampMixin:
    """Mixin providing a created_at timestamp column."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False, index=True
    )


# ===============================================
# Participants: Studio and Teacher
# ===============================================


class Studio(Base, StringIdMixin, TimestampMixin):
    """A tenant studio. Competes on STUDIO leaderboards."""

    __tablename__ = "studios"
    name: Mapped[str] = mapped_column(String, nullable=False)

    teachers: Mapped[List["Teacher"]] = relationship(back_populates="studio")


class Teacher(Base, StringIdMixin, TimestampMixin):
    """A teacher employed by a studio. Competes on TEACHER leaderboards."""

    __tablename__ = "teachers"
    studio_id: Mapped[str] = mapped_column(
        ForeignKey("studios.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False, default="")
    # Deactivated teachers drop out of the population on the next computation
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False, index=True)

    studio: Mapped["Studio"] = relationship(back_populates="teachers")


# ===============================================
# Operations: Classes, Sessions, Bookings, Clients
# ===============================================


class ClassType(Base, StringIdMixin):
    """A bookable class offering with a list price."""

    __tablename__ = "class_types"
    studio_id: Mapped[str] = mapped_column(
        ForeignKey("studios.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False, default="")
    price: Mapped[float | None] = mapped_column(nullable=True)


class ClassSession(Base, StringIdMixin):
    """A scheduled occurrence of a class type."""

    __tablename__ = "class_sessions"
    studio_id: Mapped[str] = mapped_column(
        ForeignKey("studios.id"), nullable=False, index=True
    )
    teacher_id: Mapped[str | None] = mapped_column(
        ForeignKey("teachers.id"), nullable=True, index=True
    )
    class_type_id: Mapped[str | None] = mapped_column(
        ForeignKey("class_types.id"), nullable=True
    )
    start_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    capacity: Mapped[int] = mapped_column(default=0, nullable=False)

    bookings: Mapped[List["Booking"]] = relationship(back_populates="class_session")


class Client(Base, StringIdMixin, TimestampMixin):
    """A studio's customer record."""

    __tablename__ = "clients"
    studio_id: Mapped[str] = mapped_column(
        ForeignKey("studios.id"), nullable=False, index=True
    )
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    bookings: Mapped[List["Booking"]] = relationship(back_populates="client")


class Booking(Base, StringIdMixin, TimestampMixin):
    """A client's seat in a class session.

    Status is one of CONFIRMED, COMPLETED, NO_SHOW or CANCELLED.
    """

    __tablename__ = "bookings"
    studio_id: Mapped[str] = mapped_column(
        ForeignKey("studios.id"), nullable=False, index=True
    )
    class_session_id: Mapped[str] = mapped_column(
        ForeignKey("class_sessions.id"), nullable=False, index=True
    )
    client_id: Mapped[str | None] = mapped_column(
        ForeignKey("clients.id"), nullable=True, index=True
    )
    status: Mapped[str] = mapped_column(String, default="CONFIRMED", nullable=False)
    # None when no explicit payment was recorded; revenue falls back to list price
    paid_amount: Mapped[float | None] = mapped_column(nullable=True)

    class_session: Mapped["ClassSession"] = relationship(back_populates="bookings")
    client: Mapped["Client"] = relationship(back_populates="bookings")


# ===============================================
# Social Media Automation
# ===============================================


class SocialMediaAccount(Base, StringIdMixin):
    """A connected social account, owned by a studio or a teacher."""

    __tablename__ = "social_media_accounts"
    studio_id: Mapped[str | None] = mapped_column(
        ForeignKey("studios.id"), nullable=True, index=True
    )
    teacher_id: Mapped[str | None] = mapped_column(
        ForeignKey("teachers.id"), nullable=True, index=True
    )
    posts_count: Mapped[int] = mapped_column(default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    teacher: Mapped["Teacher"] = relationship()


class SocialMediaFlow(Base, StringIdMixin):
    """An automation flow (e.g. comment-to-DM) attached to an account."""

    __tablename__ = "social_media_flows"
    account_id: Mapped[str] = mapped_column(
        ForeignKey("social_media_accounts.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False, default="")

    account: Mapped["SocialMediaAccount"] = relationship()


class SocialMediaFlowEvent(Base, StringIdMixin, TimestampMixin):
    """A single trigger of a flow and how far down the funnel it went."""

    __tablename__ = "social_media_flow_events"
    flow_id: Mapped[str] = mapped_column(
        ForeignKey("social_media_flows.id"), nullable=False, index=True
    )
    response_sent: Mapped[bool] = mapped_column(default=False, nullable=False)
    converted: Mapped[bool] = mapped_column(default=False, nullable=False)

    flow: Mapped["SocialMediaFlow"] = relationship()


# ===============================================
# Education: Courses, Enrollments, Reviews
# ===============================================


class VaultCourse(Base, StringIdMixin, TimestampMixin):
    """An online course published by a studio and authored by a teacher."""

    __tablename__ = "vault_courses"
    studio_id: Mapped[str | None] = mapped_column(
        ForeignKey("studios.id"), nullable=True, index=True
    )
    creator_id: Mapped[str | None] = mapped_column(
        ForeignKey("teachers.id"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String, nullable=False, default="")


class VaultEnrollment(Base, StringIdMixin):
    """A teacher's enrollment in a course."""

    __tablename__ = "vault_enrollments"
    course_id: Mapped[str] = mapped_column(
        ForeignKey("vault_courses.id"), nullable=False, index=True
    )
    teacher_id: Mapped[str | None] = mapped_column(
        ForeignKey("teachers.id"), nullable=True, index=True
    )
    enrolled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False, index=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )

    course: Mapped["VaultCourse"] = relationship()


class VaultReview(Base, StringIdMixin, TimestampMixin):
    """A rating left on a course. teacher_id is the reviewing teacher."""

    __tablename__ = "vault_reviews"
    course_id: Mapped[str] = mapped_column(
        ForeignKey("vault_courses.id"), nullable=False, index=True
    )
    teacher_id: Mapped[str | None] = mapped_column(
        ForeignKey("teachers.id"), nullable=True, index=True
    )
    rating: Mapped[int] = mapped_column(nullable=False)

    course: Mapped["VaultCourse"] = relationship()


# ===============================================
# Community: Subscription Chat
# ===============================================


class VaultSubscriptionPlan(Base, StringIdMixin):
    """A paid community plan offered by a studio."""

    __tablename__ = "vault_subscription_plans"
    studio_id: Mapped[str] = mapped_column(
        ForeignKey("studios.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False, default="")


class VaultSubscriber(Base, StringIdMixin):
    """A subscription to a plan, optionally held by a teacher."""

    __tablename__ = "vault_subscribers"
    plan_id: Mapped[str] = mapped_column(
        ForeignKey("vault_subscription_plans.id"), nullable=False, index=True
    )
    teacher_id: Mapped[str | None] = mapped_column(
        ForeignKey("teachers.id"), nullable=True, index=True
    )

    plan: Mapped["VaultSubscriptionPlan"] = relationship()


class VaultChatMember(Base, StringIdMixin):
    """A subscriber's membership in the plan's community chat."""

    __tablename__ = "vault_chat_members"
    subscriber_id: Mapped[str] = mapped_column(
        ForeignKey("vault_subscribers.id"), nullable=False, index=True
    )

    subscriber: Mapped["VaultSubscriber"] = relationship()


class VaultChatMessage(Base, StringIdMixin, TimestampMixin):
    """A message posted in a community chat."""

    __tablename__ = "vault_chat_messages"
    member_id: Mapped[str] = mapped_column(
        ForeignKey("vault_chat_members.id"), nullable=False, index=True
    )
    body: Mapped[str] = mapped_column(String, nullable=False, default="")

    member: Mapped["VaultChatMember"] = relationship()


# ===============================================
# Affiliates
# ===============================================


class VaultAffiliateLink(Base, StringIdMixin):
    """A teacher's referral link for a course."""

    __tablename__ = "vault_affiliate_links"
    course_id: Mapped[str] = mapped_column(
        ForeignKey("vault_courses.id"), nullable=False, index=True
    )
    teacher_id: Mapped[str | None] = mapped_column(
        ForeignKey("teachers.id"), nullable=True, index=True
    )

    course: Mapped["VaultCourse"] = relationship()


class VaultAffiliateSale(Base, StringIdMixin, TimestampMixin):
    """A sale attributed to an affiliate link."""

    __tablename__ = "vault_affiliate_sales"
    affiliate_link_id: Mapped[str] = mapped_column(
        ForeignKey("vault_affiliate_links.id"), nullable=False, index=True
    )

    affiliate_link: Mapped["VaultAffiliateLink"] = relationship()


# ===============================================
# Leaderboard Tables (engine-owned)
# ===============================================


class Leaderboard(Base, StringIdMixin, TimestampMixin):
    """A competition definition.

    ``category`` is stored as a plain string rather than an enum column so
    a category added upstream before its formula exists can still be
    loaded; the scorer degrades to the metric-name heuristic for it.
    """

    __tablename__ = "leaderboards"
    name: Mapped[str] = mapped_column(String, nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False)
    participant_type: Mapped[str] = mapped_column(String, nullable=False)
    timeframe: Mapped[str] = mapped_column(String, default="MONTHLY", nullable=False)
    metric_name: Mapped[str] = mapped_column(String, default="", nullable=False)
    higher_is_better: Mapped[bool] = mapped_column(default=True, nullable=False)
    minimum_entries: Mapped[int] = mapped_column(default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    last_calculated: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    periods: Mapped[List["LeaderboardPeriod"]] = relationship(
        back_populates="leaderboard", cascade="all, delete-orphan"
    )


class LeaderboardPeriod(Base, StringIdMixin, TimestampMixin):
    """A concrete [start_date, end_date] window of a leaderboard."""

    __tablename__ = "leaderboard_periods"
    leaderboard_id: Mapped[str] = mapped_column(
        ForeignKey("leaderboards.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False, default="")
    start_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String, default="ACTIVE", nullable=False)

    leaderboard: Mapped["Leaderboard"] = relationship(back_populates="periods")
    entries: Mapped[List["LeaderboardEntry"]] = relationship(
        back_populates="period", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint(
            "leaderboard_id", "start_date", "end_date", name="_period_window_uc"
        ),
    )


class LeaderboardEntry(Base, StringIdMixin):
    """One participant's ranked score within a period.

    Rows are only ever replaced wholesale per period, never patched.
    """

    __tablename__ = "leaderboard_entries"
    period_id: Mapped[str] = mapped_column(
        ForeignKey("leaderboard_periods.id"), nullable=False, index=True
    )
    studio_id: Mapped[str | None] = mapped_column(
        ForeignKey("studios.id"), nullable=True, index=True
    )
    teacher_id: Mapped[str | None] = mapped_column(
        ForeignKey("teachers.id"), nullable=True, index=True
    )
    score: Mapped[float] = mapped_column(nullable=False)
    previous_score: Mapped[float | None] = mapped_column(nullable=True)
    rank: Mapped[int] = mapped_column(nullable=False)
    previous_rank: Mapped[int | None] = mapped_column(nullable=True)

    # See schemas.breakdown.MetricsBreakdown for the structure
    metrics_breakdown: Mapped[dict] = mapped_column(JSON, default=lambda: {})
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    period: Mapped["LeaderboardPeriod"] = relationship(back_populates="entries")

    __table_args__ = (
        UniqueConstraint("period_id", "studio_id", name="_entry_period_studio_uc"),
        UniqueConstraint("period_id", "teacher_id", name="_entry_period_teacher_uc"),
        CheckConstraint(
            "(studio_id IS NULL) <> (teacher_id IS NULL)",
            name="ck_entry_single_participant",
        ),
    )
