# backend/slotbook/services/slots/timezone.py
"""
Business-local wall clock <-> UTC conversion.

Bookings are stored as UTC instants; working hours, closures and "today"
are business-local. The UTC offset is resolved for the specific date, so
DST changes and non-whole-hour zones (Asia/Kathmandu, UTC+5:45) are
handled by zoneinfo.

Local times inside a DST gap or overlap are not detected: the naive
wall-clock reading is interpreted with fold=0 and whatever offset zoneinfo
gives it is used.
"""

from datetime import date, datetime, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..errors import BookingValidationError
from .config import minutes_to_time_str, parse_date, time_str_to_minutes


@lru_cache(maxsize=256)
def resolve_timezone(name: str) -> ZoneInfo:
    """Get ZoneInfo for an IANA name or raise BookingValidationError."""
    if not name:
        raise BookingValidationError("Timezone is required")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise BookingValidationError(f"Unknown timezone {name!r}")


def local_to_utc(local_date: str | date, local_time: str, tz_name: str) -> datetime:
    """
    Convert a business-local date and "HH:MM" to an aware UTC datetime.

    Example:
        local_to_utc("2025-01-15", "09:00", "Asia/Kathmandu")
        -> 2025-01-15 03:15:00+00:00
    """
    target_date = parse_date(local_date)
    minutes = time_str_to_minutes(local_time)
    tz = resolve_timezone(tz_name)

    local_dt = datetime(
        target_date.year, target_date.month, target_date.day,
        minutes // 60, minutes % 60,
        tzinfo=tz,
    )
    return local_dt.astimezone(timezone.utc)


def utc_to_local(instant: datetime, tz_name: str) -> tuple[date, str]:
    """Convert an aware instant to (local date, "HH:MM") in tz_name."""
    if instant.tzinfo is None:
        raise BookingValidationError("Instant must be timezone-aware")
    local_dt = instant.astimezone(resolve_timezone(tz_name))
    return local_dt.date(), minutes_to_time_str(local_dt.hour * 60 + local_dt.minute)


def local_now(now: datetime, tz_name: str) -> datetime:
    return now.astimezone(resolve_timezone(tz_name))


def local_today(now: datetime, tz_name: str) -> date:
    return local_now(now, tz_name).date()


def local_day_bounds(target_date: date, tz_name: str) -> tuple[datetime, datetime]:
    """UTC instants of local midnight of target_date and of the next day."""
    start = local_to_utc(target_date, "00:00", tz_name)
    end = local_to_utc(target_date + timedelta(days=1), "00:00", tz_name)
    return start, end


def local_minutes_on(instant: datetime, target_date: date, tz_name: str) -> int:
    """
    Minutes since local midnight of target_date for instant, clipped to
    [0, 1440]: instants on an earlier day give 0, on a later day 1440.
    """
    local_dt = instant.astimezone(resolve_timezone(tz_name))
    if local_dt.date() < target_date:
        return 0
    if local_dt.date() > target_date:
        return 24 * 60
    return local_dt.hour * 60 + local_dt.minute
