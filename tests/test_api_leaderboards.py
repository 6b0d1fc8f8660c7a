# tests/test_api_leaderboards.py

"""Tests for the leaderboard computation endpoint."""

from datetime import datetime, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from studiorank.db import models

UTC = timezone.utc

# =============================================================================
# Helper Functions
# =============================================================================


async def create_leaderboard_with_period(
    db: AsyncSession, participant_type: str = "STUDIO", *, inverted: bool = False
):
    """Helper to create a leaderboard and its October 2026 period."""
    leaderboard = models.Leaderboard(
        name="Most Bookings", category="MOST_BOOKINGS", participant_type=participant_type
    )
    db.add(leaderboard)
    await db.flush()
    start = datetime(2026, 10, 1, tzinfo=UTC)
    end = datetime(2026, 10, 31, 23, 59, 59, 999999, tzinfo=UTC)
    if inverted:
        start, end = end, start
    period = models.LeaderboardPeriod(
        leaderboard_id=leaderboard.id, start_date=start, end_date=end
    )
    db.add(period)
    await db.commit()
    return leaderboard, period


def compute_url(leaderboard_id: str, period_id: str) -> str:
    return f"/leaderboards/{leaderboard_id}/periods/{period_id}/compute"


# =============================================================================
# Successful Computation
# =============================================================================


@pytest.mark.asyncio
async def test_compute_returns_entries_created(
    async_client: AsyncClient, db_session: AsyncSession
):
    # 1. ARRANGE: Three studios and a leaderboard.
    db_session.add_all([models.Studio(name=f"Studio {i}") for i in range(3)])
    await db_session.commit()
    leaderboard, period = await create_leaderboard_with_period(db_session)

    # 2. ACT: Trigger the computation.
    response = await async_client.post(compute_url(leaderboard.id, period.id))

    # 3. ASSERT: Every studio gets an entry with ranks 1..3.
    assert response.status_code == 200
    assert response.json() == {"entries_created": 3}

    result = await db_session.execute(
        select(models.LeaderboardEntry.rank).where(
            models.LeaderboardEntry.period_id == period.id
        )
    )
    assert sorted(result.scalars().all()) == [1, 2, 3]


@pytest.mark.asyncio
async def test_compute_with_no_participants_returns_zero(
    async_client: AsyncClient, db_session: AsyncSession
):
    leaderboard, period = await create_leaderboard_with_period(db_session, "TEACHER")

    response = await async_client.post(compute_url(leaderboard.id, period.id))

    assert response.status_code == 200
    assert response.json() == {"entries_created": 0}


@pytest.mark.asyncio
async def test_response_carries_request_id(
    async_client: AsyncClient, db_session: AsyncSession
):
    """An inbound X-Request-ID is echoed back; otherwise one is generated."""
    leaderboard, period = await create_leaderboard_with_period(db_session)

    echoed = await async_client.post(
        compute_url(leaderboard.id, period.id), headers={"X-Request-ID": "cron-42"}
    )
    generated = await async_client.get("/health")

    assert echoed.headers["X-Request-ID"] == "cron-42"
    assert generated.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_health_check(async_client: AsyncClient):
    response = await async_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


# =============================================================================
# Error Responses
# =============================================================================


@pytest.mark.asyncio
async def test_unknown_leaderboard_returns_404(async_client: AsyncClient):
    response = await async_client.post(compute_url("missing", "missing"))

    assert response.status_code == 404
    assert "not found" in response.json()["detail"].lower()


@pytest.mark.asyncio
async def test_unknown_period_returns_404(
    async_client: AsyncClient, db_session: AsyncSession
):
    leaderboard, _ = await create_leaderboard_with_period(db_session)

    response = await async_client.post(compute_url(leaderboard.id, "missing"))

    assert response.status_code == 404
    assert "period" in response.json()["detail"].lower()


@pytest.mark.asyncio
async def test_period_from_other_leaderboard_returns_404(
    async_client: AsyncClient, db_session: AsyncSession
):
    mine, _ = await create_leaderboard_with_period(db_session)
    _, foreign_period = await create_leaderboard_with_period(db_session)

    response = await async_client.post(compute_url(mine.id, foreign_period.id))

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_inverted_period_returns_422(
    async_client: AsyncClient, db_session: AsyncSession
):
    leaderboard, period = await create_leaderboard_with_period(
        db_session, inverted=True
    )

    response = await async_client.post(compute_url(leaderboard.id, period.id))

    assert response.status_code == 422
    assert "invalid period" in response.json()["detail"].lower()
