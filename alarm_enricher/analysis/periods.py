"""Pure functions aligning query windows to CloudWatch period boundaries."""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

SECONDS_PER_DAY = 86_400


def _as_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def align_to_period(instant: datetime, period_secs: int) -> datetime:
    """Round ``instant`` down to the start of its period, in UTC.

    CloudWatch returns no data for daily metrics unless the window itself
    runs midnight to midnight, so periods of a day or more align to
    midnight UTC. Shorter periods are truncated to a multiple of the period
    since the epoch. Naive datetimes are treated as UTC.
    """
    utc = _as_utc(instant)
    if period_secs >= SECONDS_PER_DAY:
        return utc.replace(hour=0, minute=0, second=0, microsecond=0)
    if period_secs <= 0:
        return utc.replace(microsecond=0)

    epoch_secs = math.floor(utc.timestamp())
    aligned = (epoch_secs // period_secs) * period_secs
    return datetime.fromtimestamp(aligned, tz=timezone.utc)


def evaluation_window(
    now: datetime,
    period_secs: int,
    evaluation_periods: int,
) -> tuple[datetime, datetime]:
    """Return ``(start, end)`` covering ``evaluation_periods`` periods ending at an aligned boundary."""
    end = align_to_period(now, period_secs)
    span = timedelta(seconds=max(period_secs, 0) * max(evaluation_periods, 0))
    return end - span, end
