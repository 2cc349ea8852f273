"""
Timezone Helper for OfficeDesk
Keeps every stored timestamp as naive UTC

Local time is used for the lead id year and the ledger year start.
Timezone: UTC to local office time (Asia/Dhaka unless TIMEZONE is set)
"""

import os
from datetime import datetime, date, timezone
import pytz

# Local office timezone
LOCAL_TZ = pytz.timezone(os.environ.get('TIMEZONE') or 'Asia/Dhaka')


def set_local_timezone(name):
    """Switch the office timezone (called from the app factory)"""
    global LOCAL_TZ
    LOCAL_TZ = pytz.timezone(name)
    return LOCAL_TZ


def utc_now():
    """
    Current time as a naive UTC datetime

    All model timestamps are stored this way so that SQLite and MySQL
    compare them identically.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(dt):
    """Normalize an aware or naive datetime to naive UTC"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(pytz.utc).replace(tzinfo=None)


def utc_to_local(dt):
    """
    Convert a stored UTC datetime to the local office timezone

    Args:
        dt: datetime object (naive values are treated as UTC)

    Returns:
        datetime: timezone-aware datetime in the local zone
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=pytz.utc)
    return dt.astimezone(LOCAL_TZ)


def local_to_utc(dt):
    """
    Convert a naive local office datetime to the naive UTC used for storage

    Aware values are converted as is.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = LOCAL_TZ.localize(dt)
    return to_utc_naive(dt)


def isoformat_utc(dt):
    """Serialize a stored UTC datetime for JSON responses"""
    if dt is None:
        return None
    if isinstance(dt, datetime):
        return to_utc_naive(dt).isoformat(timespec="seconds") + "Z"
    return dt.isoformat()


def parse_iso_datetime(value):
    """
    Parse '2025-08-10', '2025-08-10T10:30:00Z' or '2025-08-10 10:30:00+06:00'

    Returns:
        datetime: naive UTC datetime, or None when the value is empty
    Raises:
        ValueError: when the value is present but not a recognizable date
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_utc_naive(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    s = str(value).strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    parsed = datetime.fromisoformat(s)
    return to_utc_naive(parsed)
