# backend/slotbook/routers/public.py
"""
Public booking flow (no auth, business identified by slug).

GET  /public/{slug}/availability    - slots of a service on a day
POST /public/{slug}/bookings        - book a slot, returns the manage token once
GET  /public/manage/{token}         - client view of a booking
POST /public/manage/{token}/cancel  - client cancellation
"""

from datetime import date, timedelta
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import repositories
from ..database import get_db
from ..models import Bookings, Businesses
from ..schemas.bookings import BookingCreate, BookingCreated, BookingRead, ManagedBookingRead
from ..schemas.slots import SlotsDayResponse
from ..services.booking_status import CLIENT_CANCELLABLE, cancel_by_client
from ..services.clock import Clock, get_clock
from ..services.errors import NotFoundError
from ..services.manage_token import hash_token
from ..services.notifications import NotificationSender, get_notification_sender
from ..services.reservation import CustomerInfo, create_booking
from ..services.slots import get_available_slots, get_booking_config
from ..services.slots.availability import business_timezone
from ..services.slots.timezone import local_today, utc_to_local
from .slots import slots_response

router = APIRouter(prefix="/public", tags=["public"])


def _check_bookable_date(target_date: date, tz_name: str, clock: Clock, horizon_days: int) -> None:
    today = local_today(clock.now(), tz_name)
    if target_date < today:
        raise HTTPException(status_code=400, detail="Date cannot be in the past")
    if target_date > today + timedelta(days=horizon_days):
        raise HTTPException(
            status_code=400,
            detail=f"Date cannot be more than {horizon_days} days ahead",
        )


@router.get("/{slug}/availability", response_model=SlotsDayResponse)
def get_public_availability(
    slug: str,
    service_id: int,
    target_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    config = get_booking_config()

    business = repositories.get_business_by_slug(db, slug)
    tz_name = business_timezone(business, config) if business and business.is_active else None

    # unknown businesses get the same date errors and the same empty day as real ones
    _check_bookable_date(target_date, tz_name or config.default_timezone, clock, config.horizon_days)
    if tz_name is None:
        return slots_response(service_id, target_date, [], config.horizon_days)

    slots = get_available_slots(db, business.id, target_date, service_id, clock, config)
    return slots_response(service_id, target_date, slots, config.horizon_days)


@router.post("/{slug}/bookings", response_model=BookingCreated, status_code=status.HTTP_201_CREATED)
def create_public_booking(
    slug: str,
    data: BookingCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    notifier: NotificationSender = Depends(get_notification_sender),
):
    config = get_booking_config()

    business = repositories.get_business_by_slug(db, slug)
    if not business or not business.is_active:
        raise NotFoundError("Business not found or inactive.")

    tz_name = business_timezone(business, config)
    if tz_name:
        _check_bookable_date(date.fromisoformat(data.date), tz_name, clock, config.horizon_days)

    result = create_booking(
        db,
        business.id,
        data.service_id,
        data.date,
        data.start_time,
        CustomerInfo(**data.customer.model_dump()),
        note=data.note,
        clock=clock,
        config=config,
        notifier=notifier,
    )

    message = (
        "Booking confirmed."
        if result.booking.status == "CONFIRMED"
        else "Booking received, waiting for the business to confirm."
    )
    return BookingCreated(
        booking=BookingRead.from_booking(result.booking),
        manage_token=result.manage_token,
        message=message,
    )


def _booking_by_token(db: Session, token: str) -> Bookings:
    booking = repositories.get_booking_by_token_hash(db, hash_token(token))
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


def _managed_view(db: Session, booking: Bookings, clock: Clock) -> ManagedBookingRead:
    config = get_booking_config()
    business: Businesses | None = repositories.get_business(db, booking.business_id)
    service = repositories.get_service(db, booking.service_id)

    tz_name = (business_timezone(business, config) if business else None) or "UTC"
    local_date, local_time = utc_to_local(booking.start_at, tz_name)

    can_cancel = booking.status in CLIENT_CANCELLABLE
    window = (business.cancel_window_hours or 0) if business else 0
    if can_cancel and window > 0:
        hours_until = (booking.start_at - clock.now()).total_seconds() / 3600
        can_cancel = hours_until >= window

    return ManagedBookingRead(
        id=booking.id,
        status=booking.status,
        start_at=booking.start_at,
        end_at=booking.end_at,
        local_date=local_date.isoformat(),
        local_time=local_time,
        service_name=service.name if service else "",
        business_name=business.name if business else "",
        can_cancel=can_cancel,
    )


@router.get("/manage/{token}", response_model=ManagedBookingRead)
def get_managed_booking(
    token: str,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    return _managed_view(db, _booking_by_token(db, token), clock)


@router.post("/manage/{token}/cancel", response_model=ManagedBookingRead)
def cancel_managed_booking(
    token: str,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    notifier: NotificationSender = Depends(get_notification_sender),
):
    booking = _booking_by_token(db, token)
    booking = cancel_by_client(db, booking, clock.now(), notifier=notifier)
    return _managed_view(db, booking, clock)
