# backend/slotbook/schemas/bookings.py

import re
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from ..models import BookingStatus

TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def check_date(v: str) -> str:
    if not DATE_RE.match(v):
        raise ValueError("Date must be in YYYY-MM-DD format")
    try:
        datetime.strptime(v, "%Y-%m-%d")
    except ValueError:
        raise ValueError("Date must be in YYYY-MM-DD format")
    return v


def check_time(v: str) -> str:
    if not TIME_RE.match(v):
        raise ValueError("Time must be in HH:MM format")
    return v


class CustomerIn(BaseModel):
    full_name: str = Field(min_length=2)
    phone: str = Field(min_length=6)
    email: Optional[EmailStr] = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class BookingCreate(BaseModel):
    service_id: int
    date: str = Field(description="Date in YYYY-MM-DD format")
    start_time: str = Field(description="Time in HH:MM format")
    customer: CustomerIn
    note: Optional[str] = Field(None, max_length=1000)

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        return check_date(v)

    @field_validator("start_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        return check_time(v)


class BookingStatusUpdate(BaseModel):
    status: BookingStatus
    actor: Literal["owner", "staff"] = "owner"


class CustomerRead(BaseModel):
    full_name: str
    phone: str
    email: Optional[str] = None


class BookingRead(BaseModel):
    id: int
    business_id: int
    service_id: int

    start_at: datetime
    end_at: datetime

    status: str
    source: str
    customer: CustomerRead
    note: Optional[str] = None

    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_booking(cls, booking) -> "BookingRead":
        return cls(
            id=booking.id,
            business_id=booking.business_id,
            service_id=booking.service_id,
            start_at=booking.start_at,
            end_at=booking.end_at,
            status=booking.status,
            source=booking.source,
            customer=CustomerRead(
                full_name=booking.customer_name,
                phone=booking.customer_phone,
                email=booking.customer_email,
            ),
            note=booking.note,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
        )


class BookingCreated(BaseModel):
    booking: BookingRead
    manage_token: Optional[str] = Field(
        None, description="Shown once; the client uses it to view or cancel"
    )
    message: str


class ManagedBookingRead(BaseModel):
    """What the client sees on the manage page."""
    id: int
    status: str
    start_at: datetime
    end_at: datetime
    local_date: str
    local_time: str
    service_name: str
    business_name: str
    can_cancel: bool
