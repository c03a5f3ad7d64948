from datetime import datetime, date
from typing import Optional

import pytz

UTC = pytz.utc


def get_timezone(tz_name: Optional[str]):
    """Resolve an IANA name, falling back to UTC for empty or unknown names"""
    if not tz_name:
        return UTC
    try:
        return pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        return UTC


def is_valid_timezone(tz_name: str) -> bool:
    if not tz_name:
        return False
    try:
        pytz.timezone(tz_name)
        return True
    except pytz.UnknownTimeZoneError:
        return False


def now_utc() -> datetime:
    return datetime.now(UTC)


def to_local(instant: datetime, tz_name: Optional[str]) -> datetime:
    """Convert an instant to wall-clock time in ``tz_name``; naive instants are UTC"""
    if instant.tzinfo is None:
        instant = UTC.localize(instant)
    return instant.astimezone(get_timezone(tz_name))


def local_today(tz_name: Optional[str], instant: Optional[datetime] = None) -> date:
    return to_local(instant or now_utc(), tz_name).date()


def sunday_weekday(d: date) -> int:
    """Day of week with 0 = Sunday ... 6 = Saturday"""
    return d.isoweekday() % 7
