# backend/tests/conftest.py

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import Session, sessionmaker

from slotbook.database import make_engine
from slotbook.models import Base, Bookings, Businesses, Closures, Services, WorkingHours
from slotbook.services.clock import FixedClock
from slotbook.services.slots.config import BookingConfig
from slotbook.services.slots.timezone import local_to_utc

TZ = "Europe/Skopje"  # UTC+1 in January

# 2030-01-07 is a Monday
MONDAY = date(2030, 1, 7)
SUNDAY_BEFORE = MONDAY - timedelta(days=1)


class RecordingSender:
    """NotificationSender that keeps what it was given."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send(self, recipient_email, message):
        if self.fail:
            raise RuntimeError("queue unavailable")
        self.sent.append((recipient_email, message))
        return True


@pytest.fixture
def engine(tmp_path):
    # file database so separate connections (threads, requests) share it
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}", connect_args={"timeout": 30})
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(engine):
    # Seeding session. Objects stay readable after commit without
    # re-selecting, so it holds no open read transaction between steps.
    session = Session(bind=engine, autoflush=False, expire_on_commit=False)
    yield session
    session.close()


@pytest.fixture
def clock():
    # Sunday 2030-01-06 13:00 local, the day before MONDAY
    return FixedClock(datetime(2030, 1, 6, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def config():
    return BookingConfig(default_timezone=TZ, horizon_days=60, app_url="https://book.test")


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def make_business(db):
    counter = iter(range(1, 1000))

    def _make(**kwargs) -> Businesses:
        n = next(counter)
        values = dict(
            name=f"Studio {n}",
            slug=f"studio-{n}",
            timezone=TZ,
            phone="+389 2 000 000",
            address="Main street 1",
            is_active=True,
            auto_confirm=True,
            cancel_window_hours=0,
            min_lead_time_minutes=0,
        )
        values.update(kwargs)
        business = Businesses(**values)
        db.add(business)
        db.commit()
        return business

    return _make


@pytest.fixture
def make_service(db):
    def _make(business: Businesses, duration=30, buffer=0, **kwargs) -> Services:
        values = dict(name="Haircut", is_active=True)
        values.update(kwargs)
        service = Services(
            business_id=business.id,
            duration_minutes=duration,
            buffer_minutes=buffer,
            **values,
        )
        db.add(service)
        db.commit()
        return service

    return _make


@pytest.fixture
def add_hours(db):
    def _add(business: Businesses, day_of_week: int, start: str, end: str) -> WorkingHours:
        row = WorkingHours(
            business_id=business.id, day_of_week=day_of_week, start_time=start, end_time=end
        )
        db.add(row)
        db.commit()
        return row

    return _add


@pytest.fixture
def add_closure(db):
    def _add(business, closure_type, day, start=None, end=None) -> Closures:
        row = Closures(
            business_id=business.id,
            type=closure_type,
            date=day.isoformat(),
            start_time=start,
            end_time=end,
        )
        db.add(row)
        db.commit()
        return row

    return _add


@pytest.fixture
def add_booking(db):
    def _add(business, service, day, start_time, status="CONFIRMED", duration=None, **kwargs) -> Bookings:
        start_at = local_to_utc(day, start_time, business.timezone or TZ)
        values = dict(
            customer_name="Existing Client",
            customer_phone="070000000",
            source="manual",
        )
        values.update(kwargs)
        booking = Bookings(
            business_id=business.id,
            service_id=service.id,
            start_at=start_at,
            end_at=start_at + timedelta(minutes=duration or service.duration_minutes),
            status=status,
            **values,
        )
        db.add(booking)
        db.commit()
        return booking

    return _add


@pytest.fixture
def salon(make_business, make_service, add_hours):
    """Business open Monday 09:00-17:00 with a 30 minute service."""
    business = make_business()
    service = make_service(business)
    add_hours(business, 1, "09:00", "17:00")
    return business, service
