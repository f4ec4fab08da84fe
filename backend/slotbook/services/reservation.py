# backend/slotbook/services/reservation.py
"""
Slot reservation: turning a selected slot into a Booking.

1. Validate date / time / customer (no data access yet)
2. Open a write-serialized transaction (begin_reservation)
3. Lock the business row, load the service, 404 when missing / inactive / foreign
4. Recompute availability under that lock, the slot must still be in it
5. Insert through the conditional insert guard and commit

Steps 3 and 4 run one writer per business at a time (row lock, or the
BEGIN IMMEDIATE write lock on SQLite), so the re-check sees every booking
committed before it. The step 5 guard and the partial unique index reject
anything that still slips through with SlotConflictError.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy.orm import Session

from .. import repositories
from ..database import begin_reservation
from ..models import Bookings
from .booking_status import initial_status
from .clock import Clock, system_clock
from .email import booking_created_email, notify_customer
from .errors import BookingValidationError, NotFoundError, SlotConflictError
from .manage_token import build_manage_url, generate_manage_token
from .notifications import NotificationSender
from .slots.availability import business_timezone, get_available_slots
from .slots.config import BookingConfig, get_booking_config, parse_date, time_str_to_minutes
from .slots.timezone import local_to_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomerInfo:
    full_name: str
    phone: str
    email: str | None = None


@dataclass
class BookingResult:
    booking: Bookings
    # raw manage token, only returned once (public bookings)
    manage_token: str | None = None


def create_booking(
    db: Session,
    business_id: int,
    service_id: int,
    target_date: str | date,
    start_time: str,
    customer: CustomerInfo,
    note: str | None = None,
    manual: bool = False,
    clock: Clock | None = None,
    config: BookingConfig | None = None,
    notifier: NotificationSender | None = None,
) -> BookingResult:
    """
    Reserve start_time on target_date for service and create the booking.

    manual=True is the owner/staff entry flow: always CONFIRMED, no manage
    token. Otherwise the status follows the business's auto_confirm.

    Raises:
        BookingValidationError: malformed input
        NotFoundError: business or service missing, inactive or foreign
        SlotConflictError: slot not available (any more)
    """
    target_date = parse_date(target_date)
    time_str_to_minutes(start_time)
    _validate_customer(customer)

    config = config or get_booking_config()
    clock = clock or system_clock

    begin_reservation(db)
    try:
        # every reservation of this business waits here until the previous one commits
        business = repositories.lock_business(db, business_id)
        if not business or not business.is_active:
            raise NotFoundError("Business not found or inactive.")

        service = repositories.get_service(db, service_id)
        if not service or service.business_id != business.id or not service.is_active:
            raise NotFoundError("Service not found or inactive.")

        tz_name = business_timezone(business, config)
        if tz_name is None:
            raise BookingValidationError("Business timezone is not configured correctly.")

        # authoritative re-check, inside this transaction
        slots = get_available_slots(db, business_id, target_date, service_id, clock, config)
        if not any(slot.start_time == start_time for slot in slots):
            raise SlotConflictError(repositories.SLOT_TAKEN_MESSAGE)

        start_at = local_to_utc(target_date, start_time, tz_name)
        end_at = start_at + timedelta(minutes=service.duration_minutes)

        raw_token, token_hash = (None, None) if manual else generate_manage_token()

        booking = Bookings(
            business_id=business.id,
            service_id=service.id,
            start_at=start_at,
            end_at=end_at,
            status=initial_status(business, manual=manual).value,
            source="manual" if manual else "public",
            customer_name=customer.full_name.strip(),
            customer_phone=customer.phone.strip(),
            customer_email=(customer.email or "").strip().lower() or None,
            note=(note or "").strip() or None,
            manage_token_hash=token_hash,
        )
        repositories.insert_booking_if_free(db, booking)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(booking)
    logger.info(
        f"Booking created: booking_id={booking.id}, business={business_id}, "
        f"service={service_id}, time={target_date} {start_time}, "
        f"status={booking.status}, source={booking.source}"
    )

    manage_url = build_manage_url(config.app_url, raw_token) if raw_token else None
    notify_customer(db, booking, notifier, booking_created_email, config, manage_url)

    return BookingResult(booking=booking, manage_token=raw_token)


def _validate_customer(customer: CustomerInfo) -> None:
    if not customer.full_name or not customer.full_name.strip():
        raise BookingValidationError("Customer name is required.")
    if not customer.phone or not customer.phone.strip():
        raise BookingValidationError("Customer phone is required.")
