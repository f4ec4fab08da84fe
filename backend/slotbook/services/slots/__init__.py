# backend/slotbook/services/slots/__init__.py
"""
Slots calculation module.

timezone      : business-local wall clock <-> UTC
intervals     : [start, end) minute ranges and subtraction
availability  : bookable slots of a service on a date
"""

from .config import BookingConfig, get_booking_config
from .intervals import TimeRange, merge_ranges, subtract_ranges
from .timezone import local_to_utc, utc_to_local
from .availability import AvailableSlot, get_available_slots

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "TimeRange",
    "merge_ranges",
    "subtract_ranges",
    "local_to_utc",
    "utc_to_local",
    "AvailableSlot",
    "get_available_slots",
]
