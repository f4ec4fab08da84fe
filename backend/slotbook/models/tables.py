from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    Text,
    text,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.types import TypeDecorator

Base = declarative_base()

class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"
    CANCELLED_BY_CLIENT = "CANCELLED_BY_CLIENT"
    CANCELLED_BY_BUSINESS = "CANCELLED_BY_BUSINESS"


class ClosureType(str, Enum):
    HOLIDAY = "HOLIDAY"
    BREAK = "BREAK"


# statuses that hold a slot for the reservation guard
ACTIVE_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)
ACTIVE_STATUSES_SQL = "status IN ('PENDING', 'CONFIRMED')"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Stores naive UTC, returns aware UTC. Naive input is rejected."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("UTCDateTime requires a timezone-aware datetime")
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


class Businesses(Base):
    __tablename__ = 'businesses'

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    timezone = Column(Text)
    phone = Column(Text)
    address = Column(Text)
    email = Column(Text)
    is_active = Column(Boolean, nullable=False, server_default=text('1'))

    # policies
    auto_confirm = Column(Boolean, nullable=False, server_default=text('1'))
    cancel_window_hours = Column(Integer, nullable=False, server_default=text('0'))
    min_lead_time_minutes = Column(Integer, nullable=False, server_default=text('0'))

    created_at = Column(UTCDateTime, nullable=False, default=_utcnow)

    services = relationship('Services', back_populates='business')
    working_hours = relationship('WorkingHours', back_populates='business')
    closures = relationship('Closures', back_populates='business')
    bookings = relationship('Bookings', back_populates='business')


class Services(Base):
    __tablename__ = 'services'
    __table_args__ = (
        CheckConstraint('duration_minutes >= 5', name='ck_services_duration'),
        CheckConstraint('buffer_minutes >= 0', name='ck_services_buffer'),
    )

    id = Column(Integer, primary_key=True)
    business_id = Column(ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(Text, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    buffer_minutes = Column(Integer, nullable=False, server_default=text('0'))
    price = Column(Numeric(10, 2))
    # soft delete only, past bookings keep referencing the row
    is_active = Column(Boolean, nullable=False, server_default=text('1'))

    business = relationship('Businesses', back_populates='services')
    bookings = relationship('Bookings', back_populates='service')


class WorkingHours(Base):
    __tablename__ = 'working_hours'
    __table_args__ = (
        CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_working_hours_day'),
        Index('ix_working_hours_business_day', 'business_id', 'day_of_week'),
    )

    id = Column(Integer, primary_key=True)
    business_id = Column(ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday, 6 = Saturday
    start_time = Column(Text, nullable=False)  # "HH:MM" local
    end_time = Column(Text, nullable=False)

    business = relationship('Businesses', back_populates='working_hours')


class Closures(Base):
    __tablename__ = 'closures'
    __table_args__ = (
        Index('ix_closures_business_date', 'business_id', 'date'),
    )

    id = Column(Integer, primary_key=True)
    business_id = Column(ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False)
    type = Column(Text, nullable=False)  # HOLIDAY | BREAK
    date = Column(Text, nullable=False)  # "YYYY-MM-DD" local
    start_time = Column(Text)  # BREAK only
    end_time = Column(Text)
    note = Column(Text)

    business = relationship('Businesses', back_populates='closures')


class Bookings(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        Index('ix_bookings_business_start', 'business_id', 'start_at'),
        # Backstop for the reservation guard: one active booking per
        # (business, service, start instant).
        Index(
            'uq_bookings_active_slot',
            'business_id', 'service_id', 'start_at',
            unique=True,
            sqlite_where=text(ACTIVE_STATUSES_SQL),
            postgresql_where=text(ACTIVE_STATUSES_SQL),
        ),
    )

    id = Column(Integer, primary_key=True)
    business_id = Column(ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False)
    service_id = Column(ForeignKey('services.id'), nullable=False)
    start_at = Column(UTCDateTime, nullable=False)
    end_at = Column(UTCDateTime, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'PENDING'"))
    source = Column(Text, nullable=False, server_default=text("'public'"))

    customer_name = Column(Text, nullable=False)
    customer_phone = Column(Text, nullable=False)
    customer_email = Column(Text)
    note = Column(Text)

    # sha256 of the client's manage token, the raw token is never stored
    manage_token_hash = Column(Text, unique=True)

    created_at = Column(UTCDateTime, nullable=False, default=_utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    business = relationship('Businesses', back_populates='bookings')
    service = relationship('Services', back_populates='bookings')
