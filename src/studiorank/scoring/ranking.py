# src/studiorank/scoring/ranking.py

"""Deterministic ranking of scored participants."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from studiorank.schemas.breakdown import MetricsBreakdown


@dataclass(frozen=True)
class ScoredParticipant:
    participant_id: str
    score: float
    breakdown: MetricsBreakdown


@dataclass(frozen=True)
class RankedParticipant:
    rank: int
    participant: ScoredParticipant


def ranking_key(higher_is_better: bool):
    """Sort key: score in the configured direction, then id ascending.

    Ids are unique, so the key defines a strict total order and no two
    participants ever share a rank.
    """

    def key(item: ScoredParticipant) -> tuple[float, str]:
        score = -item.score if higher_is_better else item.score
        return (score, item.participant_id)

    return key


def rank_scores(
    scored: Iterable[ScoredParticipant], higher_is_better: bool = True
) -> list[RankedParticipant]:
    """Assign dense 1-based ranks, independent of input order."""
    ordered = sorted(scored, key=ranking_key(higher_is_better))
    return [
        RankedParticipant(rank=index, participant=item)
        for index, item in enumerate(ordered, start=1)
    ]
