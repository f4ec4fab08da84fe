# backend/slotbook/services/slots/availability.py
"""
Service availability calculation.

Produces the bookable slots of one service on one local date:

  working hours of the weekday
  − BREAK closures of the date          (a HOLIDAY closure empties the day)
  − CONFIRMED bookings of the date      (PENDING bookings do not block)
  → walked in steps of duration + buffer
  → lead-time filter when the date is today

Read-only and lock-free. Every "can't book" cause (missing, inactive or
foreign service, inactive business, closed day, past date) yields an empty
list so the public page can't tell them apart.
"""

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session

from ... import repositories
from ...models import BookingStatus, Businesses, ClosureType
from ..clock import Clock, system_clock
from ..errors import BookingValidationError
from .config import (
    BookingConfig,
    day_of_week,
    get_booking_config,
    minutes_to_time_str,
    parse_date,
)
from .intervals import TimeRange, merge_ranges, subtract_ranges
from .timezone import (
    local_day_bounds,
    local_minutes_on,
    local_now,
    local_today,
    resolve_timezone,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class AvailableSlot:
    start: int  # minutes since local midnight
    end: int

    @property
    def start_time(self) -> str:
        return minutes_to_time_str(self.start)

    @property
    def end_time(self) -> str:
        return minutes_to_time_str(self.end)


def get_available_slots(
    db: Session,
    business_id: int,
    target_date: str | date,
    service_id: int,
    clock: Clock | None = None,
    config: BookingConfig | None = None,
) -> list[AvailableSlot]:
    """
    Calculate available slots for a service on a business-local date.

    Returns:
        Slots ascending by start, no duplicates. Empty when nothing is
        bookable for any reason.

    Raises:
        BookingValidationError: target_date is malformed (checked before
        any data access).
    """
    target_date = parse_date(target_date)
    config = config or get_booking_config()
    clock = clock or system_clock

    # Step 1: service and business, fail closed
    service = repositories.get_service(db, service_id)
    if not service or service.business_id != business_id or not service.is_active:
        return []

    business = repositories.get_business(db, business_id)
    if not business or not business.is_active:
        return []

    tz_name = business_timezone(business, config)
    if tz_name is None:
        return []

    now = clock.now()
    today = local_today(now, tz_name)
    if target_date < today:
        return []

    # Step 2: slot stride
    duration = service.duration_minutes
    stride = duration + (service.buffer_minutes or 0)

    # Step 3: working hours of the local weekday (split shifts allowed)
    hours = repositories.list_working_hours(db, business_id, day_of_week(target_date))
    if not hours:
        return []

    open_ranges = merge_ranges(_working_ranges(hours))

    # Step 4: closures of the date
    blocked: list[TimeRange] = []
    for closure in repositories.list_closures(db, business_id, target_date):
        if closure.type == ClosureType.HOLIDAY.value:
            return []
        if closure.type == ClosureType.BREAK.value and closure.start_time and closure.end_time:
            rng = _safe_range(closure.start_time, closure.end_time, f"closure {closure.id}")
            if rng:
                blocked.append(rng)

    open_ranges = subtract_ranges(open_ranges, blocked)

    # Step 5: confirmed bookings overlapping the local day
    day_start, day_end = local_day_bounds(target_date, tz_name)
    bookings = repositories.list_bookings_between(
        db, business_id, day_start, day_end, [BookingStatus.CONFIRMED.value]
    )
    open_ranges = subtract_ranges(
        open_ranges, _booked_ranges(bookings, target_date, tz_name)
    )

    # Step 6: walk each free range in stride steps
    slots = _walk_slots(open_ranges, duration, stride)

    # Step 7: lead time, only for today
    if target_date == today:
        earliest = _now_minutes(now, tz_name) + (business.min_lead_time_minutes or 0)
        slots = [s for s in slots if s.start >= earliest]

    return slots


def business_timezone(business: Businesses, config: BookingConfig) -> str | None:
    """Zone of the business, default when unset, None when invalid."""
    tz_name = business.timezone or config.default_timezone
    try:
        resolve_timezone(tz_name)
    except BookingValidationError:
        logger.warning(f"Business {business.id} has invalid timezone {tz_name!r}")
        return None
    return tz_name


# ── Helpers ──────────────────────────────────────────────────────────────


def _safe_range(start: str, end: str, label: str) -> TimeRange | None:
    """Build a TimeRange from stored strings, skipping broken rows."""
    try:
        return TimeRange.from_strings(start, end)
    except BookingValidationError:
        logger.warning(f"Skipping invalid range {start}-{end} in {label}")
        return None


def _working_ranges(hours: list) -> list[TimeRange]:
    ranges = []
    for row in hours:
        rng = _safe_range(row.start_time, row.end_time, f"working_hours {row.id}")
        if rng:
            ranges.append(rng)
    return ranges


def _booked_ranges(bookings: list, target_date: date, tz_name: str) -> list[TimeRange]:
    """Local-minute ranges of bookings on target_date, clipped to the day."""
    ranges = []
    for booking in bookings:
        start = local_minutes_on(booking.start_at, target_date, tz_name)
        end = local_minutes_on(booking.end_at, target_date, tz_name)
        if end <= start:
            continue
        ranges.append(TimeRange(start, end))
    return ranges


def _walk_slots(ranges: list[TimeRange], duration: int, stride: int) -> list[AvailableSlot]:
    """
    Emit [cursor, cursor + duration) while it fits in the range, advancing
    by stride each step.
    """
    slots: set[AvailableSlot] = set()
    for rng in ranges:
        cursor = rng.start
        while cursor + duration <= rng.end:
            slots.add(AvailableSlot(cursor, cursor + duration))
            cursor += stride
    return sorted(slots)


def _now_minutes(now, tz_name: str) -> int:
    """Local minutes since midnight, rounded up to the next whole minute."""
    local = local_now(now, tz_name)
    minutes = local.hour * 60 + local.minute
    if local.second or local.microsecond:
        minutes += 1
    return minutes
