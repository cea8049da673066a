# filename: time_utils.py

from datetime import datetime, timedelta
import pytz
from typing import Optional, Union

from pydantic import TypeAdapter

DAY = timedelta(hours=24)
_DATETIME = TypeAdapter(datetime)


def utc_now() -> datetime:
    return datetime.now(pytz.UTC)


def format_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Format datetime for JSON serialization"""
    return dt.isoformat() if dt else None


def parse_datetime(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse datetime from a JSON/database string.
    Naive values are treated as UTC, a trailing 'Z' is accepted.
    """
    if value is None or value == "":
        return None
    # pydantic accepts any fraction length, PostgREST trims trailing zeros
    dt = value if isinstance(value, datetime) else _DATETIME.validate_python(value)
    if dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)


def has_elapsed(since: Optional[datetime], now: datetime, period: timedelta = DAY) -> bool:
    """True when `period` has passed since `since` (or `since` is unknown)"""
    if since is None:
        return True
    return now - since >= period
