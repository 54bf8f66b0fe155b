"""TemporalBucketer — calendar week buckets for time-windowed points.

A stored point lands in the bucket of its window start.  A query scans
every bucket its own window overlaps.

Week numbering (UTC)::

    week = ceil((days_since_jan1 + jan1_weekday + 1) / 7)

``days_since_jan1`` is fractional and ``jan1_weekday`` counts from
Sunday = 0.  The week is always paired with the start instant's plain
calendar year, so late-December instants never roll into week 1 of the
next year.  This is not ISO-8601 week numbering; keys written by other
clients of the same table depend on it, so it must not be "corrected".
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone

from geoscan.contracts.common import ensure_utc
from geoscan.contracts.geo import TimeWindow

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)
EPSILON = timedelta(microseconds=1)


def week_number(instant: datetime) -> int:
    instant = ensure_utc(instant)
    jan1 = datetime(instant.year, 1, 1, tzinfo=timezone.utc)
    past_days = (instant - jan1) / ONE_DAY
    jan1_weekday = (jan1.weekday() + 1) % 7
    return math.ceil((past_days + jan1_weekday + 1) / 7)


def last_week_of_year(year: int) -> int:
    return week_number(datetime(year + 1, 1, 1, tzinfo=timezone.utc) - EPSILON)


def temporal_key(year: int, week: int) -> str:
    return f"{year}{week:02d}"


class TemporalBucketer:
    """Derives temporal keys and composite partition keys."""

    def __init__(self, lookback_weeks: int = 0):
        self.lookback_weeks = lookback_weeks

    def bucket_for(self, instant: datetime) -> str:
        instant = ensure_utc(instant)
        return temporal_key(instant.year, week_number(instant))

    def composite_key(self, partition_key: int, window: TimeWindow) -> str:
        """Equality key of a write: ``{year}{week:02d}{partition_key}``."""
        return f"{self.bucket_for(window.start)}{partition_key}"

    def buckets_for(self, window: TimeWindow) -> list[str]:
        """Every (year, week) bucket overlapping ``[start, end)``, in order.

        With ``lookback_weeks`` the enumeration starts that many weeks
        before the window, to reach points whose validity began earlier.
        """
        first = window.start - timedelta(weeks=self.lookback_weeks)
        last = window.end - EPSILON

        year, week = first.year, week_number(first)
        end = (last.year, week_number(last))
        keys: list[str] = []
        while True:
            keys.append(temporal_key(year, week))
            if (year, week) >= end:
                break
            if week < last_week_of_year(year):
                week += 1
            else:
                year, week = year + 1, 1

        logger.debug(
            "Window %s..%s spans %d temporal bucket(s)",
            window.start.isoformat(),
            window.end.isoformat(),
            len(keys),
        )
        return keys
