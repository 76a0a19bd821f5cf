"""Date helpers for Shopify timestamps.

Shopify returns ISO-8601 strings with an offset (``2024-03-01T10:00:00-05:00``).
All comparisons happen on timezone-aware UTC datetimes.
"""

import math
from datetime import datetime
from typing import Optional, Union

import pytz
from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

from revenue_optimizer.config.constants import SECONDS_PER_DAY

UTC = pytz.UTC
EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

DateLike = Union[str, datetime, None]


def now_utc() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def parse_timestamp(value: DateLike) -> Optional[datetime]:
    """Parse a Shopify timestamp into an aware UTC datetime.

    Naive values are assumed to be UTC. Returns None for empty or
    unparseable input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = isoparse(str(value))
        except (ValueError, OverflowError):
            return None
    if dt.tzinfo is None:
        return UTC.localize(dt)
    return dt.astimezone(UTC)


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from ``start`` to ``end``."""
    return (end - start).total_seconds() / SECONDS_PER_DAY


def ceil_days_between(start: datetime, end: datetime) -> int:
    """Whole days from ``start`` to ``end``, rounded up."""
    return math.ceil(days_between(start, end))


def months_ago(months: int, now: Optional[datetime] = None) -> datetime:
    """Calendar-aware ``now - months``."""
    return (now or now_utc()) - relativedelta(months=months)


def to_epoch_millis(value: DateLike) -> Optional[int]:
    """Epoch milliseconds for a timestamp, or None."""
    dt = parse_timestamp(value)
    if dt is None:
        return None
    return int(dt.timestamp() * 1000)
