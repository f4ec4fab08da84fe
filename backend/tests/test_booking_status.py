from datetime import datetime, timedelta, timezone

import pytest

from slotbook.models import BookingStatus
from slotbook.services.booking_status import (
    TERMINAL_STATUSES,
    can_transition,
    cancel_by_client,
    initial_status,
    transition_status,
)
from slotbook.services.errors import (
    BookingValidationError,
    InvalidTransitionError,
    PolicyViolationError,
    SlotConflictError,
    TerminalStateError,
)
from slotbook.services.slots import get_available_slots

from .conftest import MONDAY, RecordingSender

ALLOWED = [
    ("PENDING", "CONFIRMED"),
    ("PENDING", "CANCELLED_BY_BUSINESS"),
    ("CONFIRMED", "COMPLETED"),
    ("CONFIRMED", "NO_SHOW"),
    ("CONFIRMED", "CANCELLED_BY_BUSINESS"),
]


class TestTransitionTable:

    @pytest.mark.parametrize("current,target", ALLOWED)
    def test_allowed(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize("current", [s.value for s in BookingStatus])
    @pytest.mark.parametrize("target", [s.value for s in BookingStatus])
    def test_everything_else_rejected(self, current, target):
        if (current, target) not in ALLOWED:
            assert not can_transition(current, target)

    @pytest.mark.parametrize("current", sorted(s.value for s in TERMINAL_STATUSES))
    def test_terminal_states_have_no_exits(self, current):
        assert not any(can_transition(current, s.value) for s in BookingStatus)

    def test_initial_status(self, make_business):
        assert initial_status(make_business(auto_confirm=True)) == BookingStatus.CONFIRMED
        assert initial_status(make_business(auto_confirm=False)) == BookingStatus.PENDING
        assert initial_status(make_business(auto_confirm=False), manual=True) == BookingStatus.CONFIRMED


class TestOwnerTransitions:

    def test_approve_pending(self, db, salon, add_booking, sender, config):
        business, service = salon
        booking = add_booking(business, service, MONDAY, "10:00", status="PENDING", customer_email="c@example.com")

        transition_status(db, booking, "CONFIRMED", "owner", notifier=sender, config=config)

        assert booking.status == "CONFIRMED"
        assert [m.kind for _, m in sender.sent] == ["booking_approved"]

    def test_complete_confirmed(self, db, salon, add_booking, sender):
        business, service = salon
        booking = add_booking(business, service, MONDAY, "10:00", customer_email="c@example.com")

        transition_status(db, booking, BookingStatus.COMPLETED, "staff", notifier=sender)

        assert booking.status == "COMPLETED"
        assert sender.sent == []

    def test_business_cancel_notifies(self, db, salon, add_booking, sender, config):
        business, service = salon
        booking = add_booking(business, service, MONDAY, "10:00", customer_email="c@example.com")

        transition_status(db, booking, "CANCELLED_BY_BUSINESS", "owner", notifier=sender, config=config)

        assert booking.status == "CANCELLED_BY_BUSINESS"
        assert [m.kind for _, m in sender.sent] == ["booking_cancelled"]
        assert business.name in sender.sent[0][1].html

    def test_terminal_status_cannot_move(self, db, salon, add_booking):
        business, service = salon
        booking = add_booking(business, service, MONDAY, "10:00", status="COMPLETED")

        with pytest.raises(InvalidTransitionError) as exc:
            transition_status(db, booking, "CONFIRMED", "owner")

        assert str(exc.value) == "Cannot transition from COMPLETED to CONFIRMED"
        assert booking.status == "COMPLETED"

    def test_pending_cannot_complete(self, db, salon, add_booking):
        business, service = salon
        booking = add_booking(business, service, MONDAY, "10:00", status="PENDING")

        with pytest.raises(InvalidTransitionError):
            transition_status(db, booking, "COMPLETED", "owner")

    def test_owner_cannot_cancel_as_client(self, db, salon, add_booking):
        business, service = salon
        booking = add_booking(business, service, MONDAY, "10:00")

        with pytest.raises(InvalidTransitionError):
            transition_status(db, booking, "CANCELLED_BY_CLIENT", "owner")

    def test_client_may_only_cancel(self, db, salon, add_booking, clock):
        business, service = salon
        booking = add_booking(business, service, MONDAY, "10:00", status="PENDING")

        with pytest.raises(InvalidTransitionError):
            transition_status(db, booking, "CONFIRMED", "client", clock=clock)

        transition_status(db, booking, "CANCELLED_BY_CLIENT", "client", clock=clock)
        assert booking.status == "CANCELLED_BY_CLIENT"

    def test_unknown_status_or_actor(self, db, salon, add_booking):
        business, service = salon
        booking = add_booking(business, service, MONDAY, "10:00")

        with pytest.raises(BookingValidationError):
            transition_status(db, booking, "ARCHIVED", "owner")
        with pytest.raises(BookingValidationError):
            transition_status(db, booking, "COMPLETED", "robot")

    def test_stale_status_rejected(self, db, salon, add_booking):
        business, service = salon
        booking = add_booking(business, service, MONDAY, "10:00", status="PENDING")
        db.query(type(booking)).filter_by(id=booking.id).update({"status": "CANCELLED_BY_BUSINESS"})
        db.commit()

        # in-memory copy still says PENDING
        booking.status = "PENDING"
        with pytest.raises(SlotConflictError):
            transition_status(db, booking, "CONFIRMED", "owner")

    def test_notification_failure_is_swallowed(self, db, salon, add_booking):
        business, service = salon
        booking = add_booking(business, service, MONDAY, "10:00", status="PENDING", customer_email="c@example.com")

        transition_status(db, booking, "CONFIRMED", "owner", notifier=RecordingSender(fail=True))

        assert booking.status == "CONFIRMED"


class TestClientCancel:

    def now_hours_before(self, booking, hours) -> datetime:
        return booking.start_at - timedelta(hours=hours)

    def test_cancel_pending_and_confirmed(self, db, salon, add_booking):
        business, service = salon
        pending = add_booking(business, service, MONDAY, "10:00", status="PENDING")
        confirmed = add_booking(business, service, MONDAY, "11:00")

        for booking in (pending, confirmed):
            cancel_by_client(db, booking, self.now_hours_before(booking, 1))
            assert booking.status == "CANCELLED_BY_CLIENT"

    def test_inside_cancel_window(self, db, make_business, make_service, add_booking):
        business = make_business(cancel_window_hours=24)
        service = make_service(business)
        booking = add_booking(business, service, MONDAY, "10:00")

        with pytest.raises(PolicyViolationError) as exc:
            cancel_by_client(db, booking, self.now_hours_before(booking, 10))

        assert "24 hour(s)" in exc.value.detail
        assert booking.status == "CONFIRMED"

    def test_outside_cancel_window(self, db, make_business, make_service, add_booking):
        business = make_business(cancel_window_hours=24)
        service = make_service(business)
        booking = add_booking(business, service, MONDAY, "10:00")

        cancel_by_client(db, booking, self.now_hours_before(booking, 24))

        assert booking.status == "CANCELLED_BY_CLIENT"

    @pytest.mark.parametrize("status", ["COMPLETED", "NO_SHOW", "CANCELLED_BY_CLIENT", "CANCELLED_BY_BUSINESS"])
    def test_terminal_states(self, db, salon, add_booking, status):
        business, service = salon
        booking = add_booking(business, service, MONDAY, "10:00", status=status)

        with pytest.raises(TerminalStateError) as exc:
            cancel_by_client(db, booking, datetime(2030, 1, 1, tzinfo=timezone.utc))

        assert exc.value.detail == f'Cannot cancel a booking with status "{status}".'

    def test_cancel_email_sent(self, db, salon, add_booking, sender, config):
        business, service = salon
        booking = add_booking(business, service, MONDAY, "10:00", customer_email="c@example.com")

        cancel_by_client(db, booking, self.now_hours_before(booking, 48), notifier=sender, config=config)

        assert [m.kind for _, m in sender.sent] == ["booking_cancelled"]
        assert "You have cancelled" in sender.sent[0][1].html

    def test_cancelled_slot_is_free_again(self, db, salon, add_booking, clock, config):
        business, service = salon
        booking = add_booking(business, service, MONDAY, "10:00")
        cancel_by_client(db, booking, clock.now())

        slots = get_available_slots(db, business.id, MONDAY, service.id, clock, config)
        assert "10:00" in [s.start_time for s in slots]
