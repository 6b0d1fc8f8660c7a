# src/studiorank/services/leaderboard_service.py

"""Business logic for computing a leaderboard period."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession

from studiorank.db import models
from studiorank.exceptions import (
    InvalidPeriodError,
    LeaderboardNotFoundError,
    PeriodNotFoundError,
)
from studiorank.schemas.leaderboard import (
    ComputeResult,
    LeaderboardConfig,
    PeriodWindow,
    ScoreEntry,
)
from studiorank.scoring.categories import ParticipantType
from studiorank.scoring.collector import collect_facts
from studiorank.scoring.facts import ActivityFacts
from studiorank.scoring.formulas import resolve_formula, score_participant
from studiorank.scoring.ranking import ScoredParticipant, rank_scores
from studiorank.scoring.reducer import attribution_for, reduce_facts
from studiorank.scoring.windows import ScoringWindow, ensure_utc

logger = logging.getLogger(__name__)


def build_entries(
    leaderboard: LeaderboardConfig, window: ScoringWindow, facts: ActivityFacts
) -> list[ScoreEntry]:
    """
    Reduce, score and rank the collected facts into the period's entries.

    Pure: reads nothing and writes nothing, so identical facts always give
    identical entries.
    """
    if not facts.participants:
        return []

    metrics = reduce_facts(facts, attribution_for(leaderboard.participant_type))
    formula = resolve_formula(leaderboard.category, leaderboard.metric_name)

    scored = []
    for participant_id, participant_metrics in metrics.items():
        score, breakdown = score_participant(participant_metrics, window, formula)
        scored.append(ScoredParticipant(participant_id, score, breakdown))

    ranked = rank_scores(scored, leaderboard.higher_is_better)

    scoring_count = sum(1 for item in scored if item.score > 0)
    if scoring_count < leaderboard.minimum_entries:
        logger.warning(
            "Fewer scoring participants than the leaderboard minimum",
            extra={
                "leaderboard_id": leaderboard.id,
                "scoring_participants": scoring_count,
                "minimum_entries": leaderboard.minimum_entries,
            },
        )

    is_studio = leaderboard.participant_type == ParticipantType.STUDIO
    entries = []
    for row in ranked:
        participant = row.participant
        prior = facts.prior_standings.get(participant.participant_id)
        entries.append(
            ScoreEntry(
                studio_id=participant.participant_id if is_studio else None,
                teacher_id=None if is_studio else participant.participant_id,
                score=participant.score,
                previous_score=prior.score if prior else None,
                rank=row.rank,
                previous_rank=prior.rank if prior else None,
                metrics_breakdown=participant.breakdown,
            )
        )
    return entries


async def _stamp_last_calculated(
    db: AsyncSession, leaderboard_id: str, calculated_at: datetime
) -> None:
    await db.execute(
        update(models.Leaderboard)
        .where(models.Leaderboard.id == leaderboard_id)
        .values(last_calculated=calculated_at)
    )


async def replace_period_entries(
    db: AsyncSession, leaderboard_id: str, period_id: str, entries: list[ScoreEntry]
) -> None:
    """
    Atomically swap the period's stored entries for ``entries``.

    Delete, insert and the last-calculated stamp share one transaction, so
    readers see either the old snapshot or the new one. An empty list still
    clears the period and stamps the leaderboard.
    """
    now = datetime.now(timezone.utc)

    await db.execute(
        delete(models.LeaderboardEntry).where(
            models.LeaderboardEntry.period_id == period_id
        )
    )

    if entries:
        db.add_all(
            [
                models.LeaderboardEntry(
                    id=str(uuid.uuid4()),
                    period_id=period_id,
                    studio_id=entry.studio_id,
                    teacher_id=entry.teacher_id,
                    score=entry.score,
                    previous_score=entry.previous_score,
                    rank=entry.rank,
                    previous_rank=entry.previous_rank,
                    metrics_breakdown=entry.metrics_breakdown.model_dump(),
                    last_updated=now,
                )
                for entry in entries
            ]
        )
        await db.flush()

    await _stamp_last_calculated(db, leaderboard_id, now)
    await db.commit()


async def compute_leaderboard_period(
    db: AsyncSession, leaderboard: LeaderboardConfig, period: PeriodWindow
) -> ComputeResult:
    """
    Compute and persist the canonical ranking for one leaderboard period.

    This service is responsible for:
    1. Collecting activity facts for the period and its comparison window
    2. Reducing them into per-participant metrics
    3. Scoring each participant with the category's formula
    4. Ranking deterministically and replacing the period's entries

    Reads all happen before the first write. Any failure rolls the whole
    run back, leaving the previous snapshot in place.

    Raises:
        FactCollectionError: If a fact source cannot be read
        SQLAlchemyError: If persisting the new snapshot fails
    """
    logger.info(
        "Computing leaderboard period",
        extra={
            "leaderboard_id": leaderboard.id,
            "period_id": period.id,
            "category": leaderboard.category,
            "participant_type": leaderboard.participant_type.value,
        },
    )

    window = ScoringWindow.for_period(period.start_date, period.end_date)

    try:
        facts = await collect_facts(
            db,
            leaderboard.participant_type,
            window,
            leaderboard_id=leaderboard.id,
            period_id=period.id,
        )
        if not facts.participants:
            logger.info(
                "No eligible participants, clearing period",
                extra={"leaderboard_id": leaderboard.id, "period_id": period.id},
            )

        entries = build_entries(leaderboard, window, facts)
        await replace_period_entries(db, leaderboard.id, period.id, entries)

    except Exception as e:
        logger.error(
            "Failed to compute leaderboard period",
            extra={
                "leaderboard_id": leaderboard.id,
                "period_id": period.id,
                "error": str(e),
            },
            exc_info=True,
        )
        await db.rollback()
        raise

    logger.info(
        "Leaderboard period computed",
        extra={
            "leaderboard_id": leaderboard.id,
            "period_id": period.id,
            "participant_count": len(facts.participants),
            "entries_created": len(entries),
        },
    )
    return ComputeResult(entries_created=len(entries))


async def compute_leaderboard_period_by_id(
    db: AsyncSession, leaderboard_id: str, period_id: str
) -> ComputeResult:
    """
    Load a stored leaderboard and period, then compute the period.

    Raises:
        LeaderboardNotFoundError: If the leaderboard doesn't exist
        PeriodNotFoundError: If the period doesn't exist or belongs to
            another leaderboard
        InvalidPeriodError: If the period ends before it starts
    """
    leaderboard_row = await db.get(models.Leaderboard, leaderboard_id)
    if not leaderboard_row:
        raise LeaderboardNotFoundError(leaderboard_id)

    period_row = await db.get(models.LeaderboardPeriod, period_id)
    if not period_row or period_row.leaderboard_id != leaderboard_id:
        raise PeriodNotFoundError(period_id, leaderboard_id)

    if ensure_utc(period_row.end_date) < ensure_utc(period_row.start_date):
        raise InvalidPeriodError(period_id, "end_date is before start_date")

    leaderboard = LeaderboardConfig.model_validate(leaderboard_row)
    period = PeriodWindow.model_validate(period_row)
    return await compute_leaderboard_period(db, leaderboard, period)
