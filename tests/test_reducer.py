# tests/test_reducer.py

"""Unit tests for metric reduction and attribution."""

from datetime import datetime, timezone

import pytest
from studiorank.scoring.categories import ParticipantType
from studiorank.scoring.facts import (
    ActiveClientFact,
    ActivityFacts,
    BookingFact,
    EnrollmentFact,
    NewClientFact,
    Participant,
    ReviewFact,
    SessionFact,
    SocialAccountFact,
    SocialEventFact,
)
from studiorank.scoring.reducer import (
    Attribution,
    ParticipantMetrics,
    StudioMetrics,
    TeacherMetrics,
    attribution_for,
    distinct_days,
    growth_percentage,
    ratio_percentage,
    reduce_facts,
    round_to,
)

CREATED = datetime(2024, 1, 1, tzinfo=timezone.utc)


def event(day: int, hour: int = 12, **owners) -> SocialEventFact:
    """Helper to build a social funnel event on a day of October 2026."""
    owners.setdefault("account_studio_id", None)
    owners.setdefault("account_teacher_id", None)
    owners.setdefault("teacher_studio_id", None)
    return SocialEventFact(
        occurred_at=datetime(2026, 10, day, hour, tzinfo=timezone.utc),
        responded=owners.pop("responded", False),
        converted=owners.pop("converted", False),
        **owners,
    )


# =============================================================================
# Numeric Helpers
# =============================================================================


def test_round_to_rounds_half_up():
    """0.125 rounds up to 0.13, where round() would give 0.12."""
    assert round_to(0.125, 2) == pytest.approx(0.13)


def test_ratio_percentage_guards_zero_denominator():
    assert ratio_percentage(5, 0) == 0.0
    assert ratio_percentage(1, 3) == pytest.approx(33.3333)


def test_growth_floors_previous_at_one():
    """Growth from zero is a large positive number, not a division error."""
    assert growth_percentage(5, 0) == pytest.approx(500.0)
    assert growth_percentage(3, 10) == pytest.approx(-70.0)
    assert growth_percentage(0, 0) == 0.0


def test_distinct_days_counts_calendar_days_in_utc():
    days = distinct_days(
        [
            ("a", datetime(2026, 10, 1, 9, tzinfo=timezone.utc)),
            ("a", datetime(2026, 10, 1, 21, tzinfo=timezone.utc)),
            ("a", datetime(2026, 10, 2, 8)),  # naive is read as UTC
            (None, datetime(2026, 10, 3, 8, tzinfo=timezone.utc)),
        ]
    )

    assert set(days) == {"a"}
    assert len(days["a"]) == 2


# =============================================================================
# Reduction
# =============================================================================


def test_every_participant_gets_a_record_even_without_activity():
    facts = ActivityFacts(
        participants=[Participant("a", CREATED), Participant("b", CREATED)],
        bookings_current=[BookingFact(studio_id="a", teacher_id=None)],
    )

    metrics = reduce_facts(facts, attribution_for(ParticipantType.STUDIO))

    assert set(metrics) == {"a", "b"}
    assert isinstance(metrics["a"], StudioMetrics)
    assert metrics["a"].bookings_current == 1
    assert metrics["b"].bookings_current == 0
    assert metrics["b"].attendance_rate == 0


def test_revenue_falls_back_to_list_price():
    facts = ActivityFacts(
        participants=[Participant("a", CREATED)],
        bookings_current=[
            BookingFact(studio_id="a", teacher_id=None, paid_amount=30.0, list_price=20.0),
            BookingFact(studio_id="a", teacher_id=None, paid_amount=None, list_price=20.0),
            BookingFact(studio_id="a", teacher_id=None, paid_amount=0.0, list_price=20.0),
            BookingFact(studio_id="a", teacher_id=None),
        ],
    )

    metrics = reduce_facts(facts, attribution_for(ParticipantType.STUDIO))

    # 30 paid + 20 list price + 0 explicitly paid + 0 with no price
    assert metrics["a"].revenue == pytest.approx(50.0)
    assert metrics["a"].bookings_current == 4


def test_rates_and_retention_for_studio():
    facts = ActivityFacts(
        participants=[Participant("a", CREATED)],
        sessions=[
            SessionFact(studio_id="a", teacher_id="t1", capacity=10, attended=7),
            SessionFact(studio_id="a", teacher_id="t2", capacity=10, attended=3),
        ],
        active_clients=[
            ActiveClientFact(studio_id="a", booked_in_window=True),
            ActiveClientFact(studio_id="a", booked_in_window=False),
            ActiveClientFact(studio_id="a", booked_in_window=True),
            ActiveClientFact(studio_id="a", booked_in_window=False),
        ],
        new_clients_current=[NewClientFact("a")] * 3,
        new_clients_previous=[NewClientFact("a")],
    )

    m = reduce_facts(facts, attribution_for(ParticipantType.STUDIO))["a"]

    assert m.classes == 2
    assert m.attendance_rate == pytest.approx(50.0)
    assert m.retention == pytest.approx(50.0)
    assert m.client_growth_percent == pytest.approx(200.0)


def test_teachers_have_no_client_metrics():
    facts = ActivityFacts(
        participants=[Participant("t1", CREATED)],
        new_clients_current=[NewClientFact("a")],
        active_clients=[ActiveClientFact(studio_id="a", booked_in_window=True)],
    )

    m = reduce_facts(facts, attribution_for(ParticipantType.TEACHER))["t1"]

    assert isinstance(m, TeacherMetrics)
    assert m.new_clients == 0
    assert m.retention == 0


# =============================================================================
# Attribution
# =============================================================================


def test_teacher_owned_social_account_counts_toward_teacher_studio():
    facts = ActivityFacts(
        participants=[Participant("a", CREATED), Participant("t1", CREATED)],
        social_accounts=[
            SocialAccountFact(studio_id="a", teacher_id=None, posts_count=4),
            SocialAccountFact(studio_id=None, teacher_id="t1", posts_count=6),
        ],
        social_events=[
            event(1, account_studio_id="a", responded=True),
            event(1, account_teacher_id="t1", teacher_studio_id="a", converted=True),
            event(2, account_teacher_id="t1", teacher_studio_id="a"),
        ],
    )

    studios = reduce_facts(facts, attribution_for(ParticipantType.STUDIO))
    teachers = reduce_facts(facts, attribution_for(ParticipantType.TEACHER))

    assert studios["a"].social_triggered == 3
    assert studios["a"].social_posts == 4
    assert studios["a"].content_consistency_days == 2
    assert studios["a"].social_engagement_rate == pytest.approx(66.6667)

    assert teachers["t1"].social_triggered == 2
    assert teachers["t1"].social_posts == 6
    assert teachers["t1"].social_converted == 1


def test_completions_credit_the_enrolled_teacher():
    """Enrollments credit the course creator, completions the learner."""
    facts = ActivityFacts(
        participants=[Participant("creator", CREATED), Participant("learner", CREATED)],
        enrollments=[
            EnrollmentFact(
                teacher_id="learner", course_studio_id="a", course_creator_id="creator"
            )
        ],
        completions=[
            EnrollmentFact(
                teacher_id="learner", course_studio_id="a", course_creator_id="creator"
            )
        ],
    )

    metrics = reduce_facts(facts, attribution_for(ParticipantType.TEACHER))

    assert metrics["creator"].course_enrollments == 1
    assert metrics["creator"].courses_completed == 0
    assert metrics["learner"].courses_completed == 1


def test_reviews_received_versus_authored():
    facts = ActivityFacts(
        participants=[Participant("creator", CREATED), Participant("reviewer", CREATED)],
        reviews=[
            ReviewFact(
                rating=5,
                teacher_id="reviewer",
                course_studio_id="a",
                course_creator_id="creator",
            ),
            ReviewFact(
                rating=4,
                teacher_id="reviewer",
                course_studio_id="a",
                course_creator_id="creator",
            ),
        ],
    )

    metrics = reduce_facts(facts, attribution_for(ParticipantType.TEACHER))

    assert metrics["creator"].average_rating == pytest.approx(4.5)
    assert metrics["creator"].top_reviewer == 0
    assert metrics["reviewer"].top_reviewer == 2


def test_unattributed_rows_are_dropped():
    """Rows whose owner id is missing for this participant type count for nobody."""
    facts = ActivityFacts(
        participants=[Participant("t1", CREATED)],
        bookings_current=[BookingFact(studio_id="a", teacher_id=None)],
    )

    metrics = reduce_facts(facts, attribution_for(ParticipantType.TEACHER))

    assert metrics["t1"].bookings_current == 0


def test_attribution_for_covers_every_participant_type():
    for participant_type in ParticipantType:
        attribution = attribution_for(participant_type)

        assert attribution.participant_type == participant_type
        assert issubclass(attribution.metrics_class, ParticipantMetrics)


def test_base_classes_cannot_be_instantiated():
    """Only the per-type metrics and attributions are concrete."""
    with pytest.raises(TypeError):
        Attribution()

    with pytest.raises(TypeError):
        ParticipantMetrics(participant_id="s", created_at=CREATED)
