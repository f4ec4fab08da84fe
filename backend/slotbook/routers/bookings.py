# backend/slotbook/routers/bookings.py
# Owner/staff bookings. Bookings are never deleted, only cancelled.

from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import repositories
from ..database import get_db
from ..models import Bookings, BookingStatus, Businesses
from ..schemas.bookings import BookingCreate, BookingRead, BookingStatusUpdate
from ..services.booking_status import transition_status
from ..services.clock import Clock, get_clock
from ..services.errors import BookingValidationError
from ..services.notifications import NotificationSender, get_notification_sender
from ..services.reservation import CustomerInfo, create_booking
from ..services.slots import get_booking_config
from ..services.slots.availability import business_timezone
from ..services.slots.timezone import local_day_bounds
from .deps import get_business_or_404

router = APIRouter(prefix="/businesses/{business_id}/bookings", tags=["bookings"])


def _own_booking(db: Session, business: Businesses, booking_id: int) -> Bookings:
    booking = repositories.get_booking(db, booking_id)
    # other tenants' bookings look the same as missing ones
    if not booking or booking.business_id != business.id:
        raise HTTPException(status_code=404, detail="Not found")
    return booking


@router.get("/", response_model=list[BookingRead])
def list_bookings(
    date_from: date | None = None,
    date_to: date | None = None,
    status_filter: BookingStatus | None = Query(None, alias="status"),
    business: Businesses = Depends(get_business_or_404),
    db: Session = Depends(get_db),
):
    """Bookings starting between date_from and date_to (business-local, inclusive)."""
    start = end = None
    if date_from or date_to:
        tz_name = business_timezone(business, get_booking_config())
        if tz_name is None:
            raise BookingValidationError("Business timezone is not configured correctly.")
        if date_from:
            start = local_day_bounds(date_from, tz_name)[0]
        if date_to:
            end = local_day_bounds(date_to, tz_name)[1]

    bookings = repositories.list_bookings(
        db, business.id, start, end, status_filter.value if status_filter else None
    )
    return [BookingRead.from_booking(b) for b in bookings]


@router.get("/{id}", response_model=BookingRead)
def get_booking(
    id: int,
    business: Businesses = Depends(get_business_or_404),
    db: Session = Depends(get_db),
):
    return BookingRead.from_booking(_own_booking(db, business, id))


@router.post("/manual", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
def create_manual_booking(
    data: BookingCreate,
    business: Businesses = Depends(get_business_or_404),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    notifier: NotificationSender = Depends(get_notification_sender),
):
    """Owner/staff entry (phone, walk-in). Always CONFIRMED."""
    result = create_booking(
        db,
        business.id,
        data.service_id,
        data.date,
        data.start_time,
        CustomerInfo(**data.customer.model_dump()),
        note=data.note,
        manual=True,
        clock=clock,
        notifier=notifier,
    )
    return BookingRead.from_booking(result.booking)


@router.patch("/{id}/status", response_model=BookingRead)
def update_booking_status(
    id: int,
    data: BookingStatusUpdate,
    business: Businesses = Depends(get_business_or_404),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    notifier: NotificationSender = Depends(get_notification_sender),
):
    booking = _own_booking(db, business, id)
    booking = transition_status(
        db, booking, data.status.value, data.actor, clock=clock, notifier=notifier
    )
    return BookingRead.from_booking(booking)


@router.delete("/{id}")
def delete_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )
