from .tables import (
    ACTIVE_STATUSES,
    Base,
    BookingStatus,
    Bookings,
    Businesses,
    Closures,
    ClosureType,
    Services,
    WorkingHours,
)

__all__ = [
    "ACTIVE_STATUSES",
    "Base",
    "BookingStatus",
    "Bookings",
    "Businesses",
    "Closures",
    "ClosureType",
    "Services",
    "WorkingHours",
]
