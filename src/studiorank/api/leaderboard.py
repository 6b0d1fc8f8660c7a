# src/studiorank/api/leaderboard.py

"""API endpoint for triggering leaderboard period computation."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from studiorank.db.session import get_db
from studiorank.exceptions import (
    FactCollectionError,
    ResourceNotFoundError,
    ValidationError,
)
from studiorank.schemas.leaderboard import ComputeResult
from studiorank.services import leaderboard_service

router = APIRouter(prefix="/leaderboards", tags=["Leaderboards"])


@router.post(
    "/{leaderboard_id}/periods/{period_id}/compute",
    response_model=ComputeResult,
)
async def compute_period(
    leaderboard_id: str, period_id: str, db: AsyncSession = Depends(get_db)
) -> ComputeResult:
    """
    Recompute the canonical ranking for one leaderboard period.

    Replaces every stored entry for the period. Safe to call repeatedly:
    with unchanged activity the resulting entries are identical.

    Raises:
        404: If the leaderboard or period doesn't exist
        422: If the period's window is invalid
        503: If an activity source could not be read (nothing was written)
    """
    try:
        return await leaderboard_service.compute_leaderboard_period_by_id(
            db, leaderboard_id, period_id
        )

    except ResourceNotFoundError as e:
        # LeaderboardNotFoundError, PeriodNotFoundError -> 404
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=e.message,
        )

    except ValidationError as e:
        # InvalidPeriodError -> 422
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.message,
        )

    except FactCollectionError as e:
        # Read failures are transient, previous snapshot is intact -> 503
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Could not read {e.source} activity. Please try again.",
        )
