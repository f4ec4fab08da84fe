# backend/slotbook/services/slots/config.py
"""
Booking configuration and "HH:MM" / "YYYY-MM-DD" helpers.
"""

import re
from dataclasses import dataclass
from datetime import date
from functools import lru_cache

from ..errors import BookingValidationError

MINUTES_PER_DAY = 24 * 60

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration handed to the slot engine and reservation code.

    Attributes:
        default_timezone: IANA zone used when a business has none set
        horizon_days: How many days ahead the public API accepts dates
        app_url: Base URL of the client pages, for manage links
    """
    default_timezone: str = "Europe/Skopje"
    horizon_days: int = 60
    app_url: str = "http://localhost:3000"

    def __post_init__(self):
        if self.horizon_days < 1:
            raise ValueError(f"horizon_days must be positive, got {self.horizon_days}")


@lru_cache
def get_booking_config() -> BookingConfig:
    """Booking configuration built once from settings."""
    from ...config import settings

    return BookingConfig(
        default_timezone=settings.default_timezone,
        horizon_days=settings.horizon_days,
        app_url=settings.app_url,
    )


def time_str_to_minutes(value: str) -> int:
    """'09:30' -> 570. Raises BookingValidationError on malformed input."""
    match = _TIME_RE.match(value or "")
    if not match:
        raise BookingValidationError(f"Invalid time {value!r}, use HH:MM format")
    return int(match.group(1)) * 60 + int(match.group(2))


def minutes_to_time_str(minutes: int) -> str:
    """570 -> '09:30'. 1440 is rendered as '24:00'."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_date(value: str | date) -> date:
    """Accept a date or an ISO 'YYYY-MM-DD' string."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _DATE_RE.match(value):
        raise BookingValidationError(f"Invalid date {value!r}, use YYYY-MM-DD format")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise BookingValidationError(f"Invalid date {value!r}, use YYYY-MM-DD format")


def day_of_week(target_date: date) -> int:
    """0 = Sunday ... 6 = Saturday, from the local calendar date."""
    return (target_date.weekday() + 1) % 7
