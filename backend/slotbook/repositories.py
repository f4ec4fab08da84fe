# backend/slotbook/repositories.py
"""
Data access used by the slot engine and booking services.

Plain functions over a SQLAlchemy Session. Tenant checks (service belongs
to business, etc.) are left to the callers.
"""

import logging
from datetime import date, datetime, timezone
from typing import Iterable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models import (
    ACTIVE_STATUSES,
    Bookings,
    Businesses,
    Closures,
    Services,
    WorkingHours,
)
from .services.errors import SlotConflictError

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = "This time slot is no longer available. Please choose another."


# ── Lookups ──────────────────────────────────────────────────────────────


def get_business(db: Session, business_id: int) -> Optional[Businesses]:
    return db.get(Businesses, business_id)


def lock_business(db: Session, business_id: int) -> Optional[Businesses]:
    """SELECT ... FOR UPDATE on the business row (no-op lock on SQLite)."""
    return (
        db.query(Businesses)
        .filter(Businesses.id == business_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def get_business_by_slug(db: Session, slug: str) -> Optional[Businesses]:
    return db.query(Businesses).filter(Businesses.slug == slug).first()


def get_service(db: Session, service_id: int) -> Optional[Services]:
    return db.get(Services, service_id)


def get_booking(db: Session, booking_id: int) -> Optional[Bookings]:
    return db.get(Bookings, booking_id)


def get_booking_by_token_hash(db: Session, token_hash: str) -> Optional[Bookings]:
    return (
        db.query(Bookings)
        .filter(Bookings.manage_token_hash == token_hash)
        .first()
    )


def list_working_hours(
    db: Session,
    business_id: int,
    day_of_week: int | None = None,
) -> list[WorkingHours]:
    query = db.query(WorkingHours).filter(WorkingHours.business_id == business_id)
    if day_of_week is not None:
        query = query.filter(WorkingHours.day_of_week == day_of_week)
    return query.order_by(WorkingHours.day_of_week, WorkingHours.start_time).all()


def list_closures(
    db: Session,
    business_id: int,
    target_date: date | None = None,
) -> list[Closures]:
    query = db.query(Closures).filter(Closures.business_id == business_id)
    if target_date is not None:
        query = query.filter(Closures.date == target_date.isoformat())
    return query.order_by(Closures.date, Closures.start_time).all()


def list_bookings_between(
    db: Session,
    business_id: int,
    start: datetime,
    end: datetime,
    statuses: Iterable[str],
) -> list[Bookings]:
    """Bookings of a business overlapping [start, end) with one of statuses."""
    return (
        db.query(Bookings)
        .filter(
            Bookings.business_id == business_id,
            Bookings.status.in_(list(statuses)),
            Bookings.start_at < end,
            Bookings.end_at > start,
        )
        .order_by(Bookings.start_at)
        .all()
    )


def list_bookings(
    db: Session,
    business_id: int,
    start: datetime | None = None,
    end: datetime | None = None,
    status: str | None = None,
) -> list[Bookings]:
    """Owner listing: bookings starting in [start, end), optionally by status."""
    query = db.query(Bookings).filter(Bookings.business_id == business_id)
    if start is not None:
        query = query.filter(Bookings.start_at >= start)
    if end is not None:
        query = query.filter(Bookings.start_at < end)
    if status is not None:
        query = query.filter(Bookings.status == status)
    return query.order_by(Bookings.start_at).all()


# ── Writes ───────────────────────────────────────────────────────────────


def insert_booking_if_free(db: Session, booking: Bookings) -> Bookings:
    """
    Insert booking unless an active booking of the same business and
    service overlaps its time range.

    The business row is locked first (FOR UPDATE; SQLite ignores it and
    relies on the reservation transaction holding the write lock), so two
    writers for the same business run the check and the insert one after
    the other. The partial unique index on active (business, service,
    start_at) catches anything that slips through.

    Flushes but does not commit.
    """
    (
        db.query(Businesses.id)
        .filter(Businesses.id == booking.business_id)
        .with_for_update()
        .one()
    )

    clash = (
        db.query(Bookings.id)
        .filter(
            Bookings.business_id == booking.business_id,
            Bookings.service_id == booking.service_id,
            Bookings.status.in_(ACTIVE_STATUSES),
            Bookings.start_at < booking.end_at,
            Bookings.end_at > booking.start_at,
        )
        .first()
    )
    if clash is not None:
        logger.info(
            f"Slot conflict: business={booking.business_id} service={booking.service_id} "
            f"start={booking.start_at.isoformat()} overlaps booking={clash.id}"
        )
        raise SlotConflictError(SLOT_TAKEN_MESSAGE)

    db.add(booking)
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        logger.info(f"Slot conflict at insert (unique index): {e.orig}")
        raise SlotConflictError(SLOT_TAKEN_MESSAGE) from e

    return booking


def update_booking_status(
    db: Session,
    booking: Bookings,
    expected: str,
    new: str,
) -> Bookings:
    """
    Compare-and-set the status of one booking and commit.

    Raises SlotConflictError when the stored status is no longer `expected`.
    """
    updated = (
        db.query(Bookings)
        .filter(Bookings.id == booking.id, Bookings.status == expected)
        .update(
            {Bookings.status: new, Bookings.updated_at: datetime.now(timezone.utc)},
            synchronize_session=False,
        )
    )
    if updated == 0:
        db.rollback()
        raise SlotConflictError("Booking status was changed by someone else. Please reload.")

    db.commit()
    db.refresh(booking)
    return booking


def replace_working_hours(
    db: Session,
    business_id: int,
    rows: Iterable[tuple[int, str, str]],
) -> list[WorkingHours]:
    """
    Replace the whole weekly template of a business in one transaction.

    rows: (day_of_week, start_time, end_time) tuples.
    """
    try:
        db.query(WorkingHours).filter(
            WorkingHours.business_id == business_id
        ).delete(synchronize_session=False)

        objs = [
            WorkingHours(
                business_id=business_id,
                day_of_week=day,
                start_time=start,
                end_time=end,
            )
            for day, start, end in rows
        ]
        db.add_all(objs)
        db.commit()
    except Exception:
        db.rollback()
        raise

    return list_working_hours(db, business_id)

