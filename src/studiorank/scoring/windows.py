# src/studiorank/scoring/windows.py

"""Time windows used by a computation run, and canonical period templates."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from .categories import LeaderboardTimeframe
from .constants import NEWCOMER_WINDOW_DAYS, WINDOW_RESOLUTION


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    SQLite hands back naive datetimes for timezone-aware columns; every
    timestamp the engine stores is UTC, so naive values are read as UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class ScoringWindow:
    """The current window of a period plus its equal-length predecessor.

    Both ranges are inclusive on each end. The comparison window ends one
    resolution step before the period starts, so the two never overlap.
    """

    start: datetime
    end: datetime
    previous_start: datetime
    previous_end: datetime
    newcomer_threshold: datetime

    @classmethod
    def for_period(cls, start_date: datetime, end_date: datetime) -> "ScoringWindow":
        start = ensure_utc(start_date)
        end = ensure_utc(end_date)
        duration = max(WINDOW_RESOLUTION, end - start + WINDOW_RESOLUTION)
        return cls(
            start=start,
            end=end,
            previous_start=start - duration,
            previous_end=start - WINDOW_RESOLUTION,
            newcomer_threshold=end - timedelta(days=NEWCOMER_WINDOW_DAYS),
        )

    def is_newcomer(self, created_at: datetime) -> bool:
        """Whether a participant created at ``created_at`` counts as new."""
        return ensure_utc(created_at) >= self.newcomer_threshold


# ===============================================
# == Period Templates
# ===============================================


@dataclass(frozen=True)
class PeriodTemplate:
    """The canonical window and display name for a timeframe."""

    start_date: datetime
    end_date: datetime
    name: str


def _start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def _end_of_day(value: datetime) -> datetime:
    return value.replace(hour=23, minute=59, second=59, microsecond=999999)


def _first_of_month(year: int, month: int) -> datetime:
    # month may run one past December when computing an exclusive end
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return datetime(year, month, 1, tzinfo=timezone.utc)


def build_period_template(
    timeframe: LeaderboardTimeframe, now: datetime
) -> PeriodTemplate:
    """Build the UTC period containing ``now`` for the given timeframe.

    Weeks run Monday to Sunday. Every window ends at 23:59:59.999999 of its
    last day. ALL_TIME is a fixed, very wide window.
    """
    now = ensure_utc(now)

    if timeframe == LeaderboardTimeframe.WEEKLY:
        start = _start_of_day(now) - timedelta(days=now.weekday())
        end = _end_of_day(start + timedelta(days=6))
        return PeriodTemplate(
            start_date=start,
            end_date=end,
            name=f"Week of {start:%b} {start.day}, {start.year}",
        )

    if timeframe == LeaderboardTimeframe.MONTHLY:
        start = _first_of_month(now.year, now.month)
        end = _first_of_month(now.year, now.month + 1) - WINDOW_RESOLUTION
        return PeriodTemplate(start_date=start, end_date=end, name=f"{now:%B %Y}")

    if timeframe == LeaderboardTimeframe.QUARTERLY:
        quarter = (now.month - 1) // 3
        start = _first_of_month(now.year, quarter * 3 + 1)
        end = _first_of_month(now.year, quarter * 3 + 4) - WINDOW_RESOLUTION
        return PeriodTemplate(
            start_date=start, end_date=end, name=f"Q{quarter + 1} {now.year}"
        )

    if timeframe == LeaderboardTimeframe.YEARLY:
        start = datetime(now.year, 1, 1, tzinfo=timezone.utc)
        end = _end_of_day(datetime(now.year, 12, 31, tzinfo=timezone.utc))
        return PeriodTemplate(start_date=start, end_date=end, name=str(now.year))

    # ALL_TIME
    return PeriodTemplate(
        start_date=datetime(2020, 1, 1, tzinfo=timezone.utc),
        end_date=_end_of_day(datetime(2100, 1, 1, tzinfo=timezone.utc)),
        name="All Time",
    )


def period_matches_template(
    start_date: datetime, end_date: datetime, template: PeriodTemplate
) -> bool:
    """Check whether a stored period covers exactly the template's window."""
    return (
        ensure_utc(start_date) == template.start_date
        and ensure_utc(end_date) == template.end_date
    )
