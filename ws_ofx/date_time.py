from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, Union

import pandas as pd


# ---------- datetime helpers ----------
def _coerce_to_timestamp(
    dt: Union[pd.Timestamp, datetime, str, None]
) -> Optional[pd.Timestamp]:
    """Return a timezone-aware ``Timestamp`` in UTC or ``None``.

    Activity timestamps arrive as ISO-8601 strings with an offset; naive
    values are taken to be UTC.
    """

    if dt is None:
        return None

    if isinstance(dt, pd.Timestamp):
        ts = dt
    else:
        try:
            ts = pd.to_datetime(dt, errors="coerce")
        except (TypeError, ValueError, pd.errors.OutOfBoundsDatetime):
            return None

    if ts is pd.NaT or pd.isna(ts):
        return None

    if ts.tzinfo is None:
        ts = ts.tz_localize(timezone.utc)
    else:
        ts = ts.tz_convert(timezone.utc)
    return ts


def ofx_datetime(dt: Union[pd.Timestamp, datetime, str, None]) -> Optional[str]:
    """Format a datetime-like value as a 14-character OFX date.

    The calendar date is taken in the local time zone, matching what the
    account holder sees in the web app, and the time of day is always
    ``000000``.  ``None`` or unparseable input returns ``None``.
    """

    ts = _coerce_to_timestamp(dt)
    if ts is None:
        return None

    local = ts.to_pydatetime().astimezone()
    return f"{local.strftime('%Y%m%d')}000000"


def parse_date(val) -> pd.Timestamp:
    # robust parse -> UTC
    return pd.to_datetime(val, errors="coerce", utc=True)


def utc_now() -> pd.Timestamp:
    return pd.Timestamp.now(tz="UTC")


# ---------- export ranges ----------
class DateRangePreset(Enum):
    LAST_2_WEEKS = "last-2-weeks"
    THIS_MONTH = "this-month"
    ALL = "all"

    def from_date(self, now: Optional[datetime] = None) -> Optional[datetime]:
        """Lower bound for the export, or ``None`` for an unbounded range."""

        now = (now or datetime.now(timezone.utc)).astimezone()
        if self is DateRangePreset.LAST_2_WEEKS:
            return now - timedelta(days=14)
        if self is DateRangePreset.THIS_MONTH:
            return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        return None
