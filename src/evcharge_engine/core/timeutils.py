"""UTC normalization helpers.

Every timestamp entering the builder or the planner passes through
``ensure_utc`` so comparisons never mix naive and aware datetimes.
Naive values are taken to already be UTC.
"""

from datetime import datetime, timezone
from typing import Any, Optional

import pandas as pd


def ensure_utc(dt: datetime) -> datetime:
    """Return ``dt`` as a timezone-aware UTC datetime."""
    if isinstance(dt, pd.Timestamp):
        dt = dt.to_pydatetime()
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def floor_to_hour(dt: datetime) -> datetime:
    """Round a UTC datetime down to the start of its hour."""
    return ensure_utc(dt).replace(minute=0, second=0, microsecond=0)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a raw timestamp into a UTC datetime.

    Accepts datetimes, pandas Timestamps and ISO-8601 style strings, with or
    without an offset.

    Returns:
        UTC datetime, or None if the value is missing or unparseable
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None

    try:
        ts = pd.Timestamp(value)
    except (ValueError, TypeError, OverflowError):
        return None

    if pd.isna(ts):
        return None

    return ensure_utc(ts.to_pydatetime())
