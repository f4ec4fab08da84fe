# backend/slotbook/services/booking_status.py
"""
Booking status lifecycle.

    PENDING ──► CONFIRMED ──► COMPLETED
       │            │    └──► NO_SHOW
       │            └───────► CANCELLED_BY_BUSINESS
       └────────────────────► CANCELLED_BY_BUSINESS

    PENDING / CONFIRMED ──(client, manage token)──► CANCELLED_BY_CLIENT

COMPLETED, NO_SHOW and both CANCELLED_* states are terminal. Owner/staff
move bookings along the table; the client can only cancel, and only
outside the business's cancel window.
"""

import logging
from datetime import datetime
from enum import Enum

from sqlalchemy.orm import Session

from .. import repositories
from ..models import BookingStatus, Bookings, Businesses
from .clock import Clock, system_clock
from .email import booking_approved_email, booking_cancelled_email, notify_customer
from .errors import (
    BookingValidationError,
    InvalidTransitionError,
    PolicyViolationError,
    TerminalStateError,
)
from .notifications import NotificationSender
from .slots.config import BookingConfig

logger = logging.getLogger(__name__)


class Actor(str, Enum):
    OWNER = "owner"
    STAFF = "staff"
    CLIENT = "client"


BUSINESS_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({
        BookingStatus.CONFIRMED,
        BookingStatus.CANCELLED_BY_BUSINESS,
    }),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.COMPLETED,
        BookingStatus.NO_SHOW,
        BookingStatus.CANCELLED_BY_BUSINESS,
    }),
}

CLIENT_CANCELLABLE = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})

TERMINAL_STATUSES = frozenset({
    BookingStatus.COMPLETED,
    BookingStatus.NO_SHOW,
    BookingStatus.CANCELLED_BY_CLIENT,
    BookingStatus.CANCELLED_BY_BUSINESS,
})


def initial_status(business: Businesses, manual: bool = False) -> BookingStatus:
    """Manual (owner/staff) bookings are always CONFIRMED, others follow auto_confirm."""
    if manual or business.auto_confirm:
        return BookingStatus.CONFIRMED
    return BookingStatus.PENDING


def can_transition(current: str, target: str) -> bool:
    """Whether owner/staff may move a booking from current to target."""
    return target in BUSINESS_TRANSITIONS.get(current, frozenset())


def transition_status(
    db: Session,
    booking: Bookings,
    new_status: str,
    actor: str,
    clock: Clock | None = None,
    notifier: NotificationSender | None = None,
    config: BookingConfig | None = None,
) -> Bookings:
    """
    Apply a status change requested by actor.

    A client may only ask for CANCELLED_BY_CLIENT, which goes through
    cancel_by_client() with the clock's current time.

    Raises:
        BookingValidationError: unknown status or actor
        InvalidTransitionError: change not in the transition table
        PolicyViolationError / TerminalStateError: client cancellation rules
        SlotConflictError: status changed concurrently
    """
    target = _parse_enum(BookingStatus, new_status, "status")
    actor = _parse_enum(Actor, actor, "actor")

    if actor == Actor.CLIENT:
        if target != BookingStatus.CANCELLED_BY_CLIENT:
            raise InvalidTransitionError(booking.status, target.value)
        now = (clock or system_clock).now()
        return cancel_by_client(db, booking, now, notifier=notifier, config=config)

    current = booking.status
    if not can_transition(current, target):
        raise InvalidTransitionError(current, target.value)

    repositories.update_booking_status(db, booking, current, target.value)
    logger.info(f"Booking {booking.id}: {current} → {target.value} by {actor.value}")

    if current == BookingStatus.PENDING and target == BookingStatus.CONFIRMED:
        notify_customer(db, booking, notifier, booking_approved_email, config)
    elif target == BookingStatus.CANCELLED_BY_BUSINESS:
        notify_customer(
            db, booking, notifier,
            lambda data: booking_cancelled_email(data, cancelled_by="business"),
            config,
        )

    return booking


def cancel_by_client(
    db: Session,
    booking: Bookings,
    now: datetime,
    notifier: NotificationSender | None = None,
    config: BookingConfig | None = None,
) -> Bookings:
    """
    Client self-service cancellation (manage token flow).

    Allowed from PENDING or CONFIRMED when at least cancel_window_hours
    remain before the appointment (0 = no restriction). The cancellation
    email is fire-and-forget and never undoes the cancellation.
    """
    current = booking.status
    if current not in CLIENT_CANCELLABLE:
        raise TerminalStateError(current)

    business = repositories.get_business(db, booking.business_id)
    window = (business.cancel_window_hours or 0) if business else 0
    if window > 0:
        hours_until = (booking.start_at - now).total_seconds() / 3600
        if hours_until < window:
            raise PolicyViolationError(
                f"Cancellation must be at least {window} hour(s) before the appointment."
            )

    repositories.update_booking_status(
        db, booking, current, BookingStatus.CANCELLED_BY_CLIENT.value
    )
    logger.info(f"Booking {booking.id}: {current} → CANCELLED_BY_CLIENT by client")

    notify_customer(
        db, booking, notifier,
        lambda data: booking_cancelled_email(data, cancelled_by="client"),
        config,
    )
    return booking


def _parse_enum(enum_cls, value, label: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise BookingValidationError(f"Unknown {label} {value!r}")
