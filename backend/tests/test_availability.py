from datetime import datetime, timedelta, timezone

import pytest

from slotbook.services.clock import FixedClock
from slotbook.services.errors import BookingValidationError
from slotbook.services.slots import get_available_slots

from .conftest import MONDAY, SUNDAY_BEFORE


def starts(slots) -> list[str]:
    return [s.start_time for s in slots]


def half_hours(first: str, last: str) -> list[str]:
    h, m = map(int, first.split(":"))
    cur = h * 60 + m
    h, m = map(int, last.split(":"))
    end = h * 60 + m
    out = []
    while cur <= end:
        out.append(f"{cur // 60:02d}:{cur % 60:02d}")
        cur += 30
    return out


class TestWorkingDay:

    def test_full_day_thirty_minute_service(self, db, salon, clock, config):
        business, service = salon
        slots = get_available_slots(db, business.id, MONDAY, service.id, clock, config)

        assert starts(slots) == half_hours("09:00", "16:30")
        assert slots[0].end_time == "09:30"
        assert slots[-1].end_time == "17:00"

    def test_buffer_widens_the_stride(self, db, make_business, make_service, add_hours, clock, config):
        business = make_business()
        service = make_service(business, duration=30, buffer=15)
        add_hours(business, 1, "09:00", "17:00")

        slots = get_available_slots(db, business.id, MONDAY, service.id, clock, config)

        assert starts(slots)[:3] == ["09:00", "09:45", "10:30"]
        assert starts(slots)[-1] == "16:30"
        assert all(s.end - s.start == 30 for s in slots)

    def test_date_string_accepted(self, db, salon, clock, config):
        business, service = salon
        assert get_available_slots(db, business.id, MONDAY.isoformat(), service.id, clock, config)

    def test_split_shift(self, db, make_business, make_service, add_hours, clock, config):
        business = make_business()
        service = make_service(business, duration=60)
        add_hours(business, 1, "09:00", "11:00")
        add_hours(business, 1, "14:00", "16:00")

        slots = get_available_slots(db, business.id, MONDAY, service.id, clock, config)

        assert starts(slots) == ["09:00", "10:00", "14:00", "15:00"]

    def test_touching_shifts_are_merged(self, db, make_business, make_service, add_hours, clock, config):
        business = make_business()
        service = make_service(business, duration=60)
        add_hours(business, 1, "09:00", "10:30")
        add_hours(business, 1, "10:30", "12:00")

        slots = get_available_slots(db, business.id, MONDAY, service.id, clock, config)

        assert starts(slots) == ["09:00", "10:00", "11:00"]

    def test_results_are_sorted_and_unique(self, db, salon, clock, config):
        business, service = salon
        slots = get_available_slots(db, business.id, MONDAY, service.id, clock, config)
        assert slots == sorted(set(slots))

    def test_repeated_calls_match(self, db, salon, clock, config):
        business, service = salon
        first = get_available_slots(db, business.id, MONDAY, service.id, clock, config)
        second = get_available_slots(db, business.id, MONDAY, service.id, clock, config)
        assert first == second


class TestBlocking:

    def test_confirmed_booking_blocks(self, db, salon, add_booking, clock, config):
        business, service = salon
        add_booking(business, service, MONDAY, "10:00", status="CONFIRMED")

        slots = get_available_slots(db, business.id, MONDAY, service.id, clock, config)

        assert "10:00" not in starts(slots)
        assert "09:30" in starts(slots)
        assert "10:30" in starts(slots)

    def test_pending_booking_does_not_block(self, db, salon, add_booking, clock, config):
        business, service = salon
        add_booking(business, service, MONDAY, "10:00", status="PENDING")

        slots = get_available_slots(db, business.id, MONDAY, service.id, clock, config)

        assert "10:00" in starts(slots)

    def test_confirmed_blocks_while_pending_does_not(self, db, salon, add_booking, clock, config):
        business, service = salon
        add_booking(business, service, MONDAY, "10:00", status="CONFIRMED")
        add_booking(business, service, MONDAY, "11:00", status="PENDING")

        result = starts(get_available_slots(db, business.id, MONDAY, service.id, clock, config))

        assert "10:00" not in result
        assert "11:00" in result

    @pytest.mark.parametrize("status", ["CANCELLED_BY_CLIENT", "CANCELLED_BY_BUSINESS", "NO_SHOW"])
    def test_inactive_bookings_do_not_block(self, db, salon, add_booking, clock, config, status):
        business, service = salon
        add_booking(business, service, MONDAY, "10:00", status=status)

        slots = get_available_slots(db, business.id, MONDAY, service.id, clock, config)

        assert "10:00" in starts(slots)

    def test_booking_of_another_service_blocks_business_time(
        self, db, salon, make_service, add_booking, clock, config
    ):
        business, service = salon
        other = make_service(business, duration=60, name="Colour")
        add_booking(business, other, MONDAY, "10:00", status="CONFIRMED")

        slots = get_available_slots(db, business.id, MONDAY, service.id, clock, config)

        assert "10:00" not in starts(slots)
        assert "10:30" not in starts(slots)
        assert "11:00" in starts(slots)

    def test_holiday_empties_the_day(self, db, salon, add_closure, clock, config):
        business, service = salon
        add_closure(business, "HOLIDAY", MONDAY)

        assert get_available_slots(db, business.id, MONDAY, service.id, clock, config) == []

    def test_holiday_wins_over_breaks(self, db, salon, add_closure, clock, config):
        business, service = salon
        add_closure(business, "BREAK", MONDAY, "12:00", "13:00")
        add_closure(business, "HOLIDAY", MONDAY)

        assert get_available_slots(db, business.id, MONDAY, service.id, clock, config) == []

    def test_break_is_removed(self, db, salon, add_closure, clock, config):
        business, service = salon
        add_closure(business, "BREAK", MONDAY, "12:00", "13:00")

        result = starts(get_available_slots(db, business.id, MONDAY, service.id, clock, config))

        assert "11:30" in result
        assert "12:00" not in result
        assert "12:30" not in result
        assert "13:00" in result

    def test_closure_on_other_date_ignored(self, db, salon, add_closure, clock, config):
        business, service = salon
        add_closure(business, "HOLIDAY", MONDAY + timedelta(days=7))

        assert len(get_available_slots(db, business.id, MONDAY, service.id, clock, config)) == 16

    def test_overnight_booking_is_clipped(self, db, make_business, make_service, add_hours, add_booking, clock, config):
        business = make_business()
        service = make_service(business, duration=60)
        add_hours(business, 0, "20:00", "00:00")
        add_hours(business, 1, "00:00", "03:00")
        # Sunday 23:00 to Monday 01:00
        add_booking(business, service, SUNDAY_BEFORE + timedelta(days=7), "23:00", duration=120)

        monday_after = MONDAY + timedelta(days=7)
        slots = get_available_slots(db, business.id, monday_after, service.id, clock, config)

        assert starts(slots) == ["01:00", "02:00"]


    def test_weekday_comes_from_local_date(self, db, make_business, make_service, add_hours, clock, config):
        # 2030-01-06 12:00Z is already Monday 01:00 in Auckland
        business = make_business(timezone="Pacific/Auckland")
        service = make_service(business)
        add_hours(business, 1, "09:00", "17:00")
        add_hours(business, 0, "09:00", "17:00")

        slots = starts(get_available_slots(db, business.id, MONDAY, service.id, clock, config))

        assert slots == half_hours("09:00", "16:30")
        assert get_available_slots(db, business.id, SUNDAY_BEFORE, service.id, clock, config) == []


class TestFailClosed:

    def test_day_without_hours(self, db, salon, clock, config):
        business, service = salon
        tuesday = MONDAY + timedelta(days=1)
        assert get_available_slots(db, business.id, tuesday, service.id, clock, config) == []

    def test_inactive_service(self, db, salon, make_service, clock, config):
        business, _ = salon
        retired = make_service(business, is_active=False)
        assert get_available_slots(db, business.id, MONDAY, retired.id, clock, config) == []

    def test_service_of_another_business(self, db, salon, make_business, make_service, clock, config):
        business, _ = salon
        foreign = make_service(make_business())
        assert get_available_slots(db, business.id, MONDAY, foreign.id, clock, config) == []

    def test_missing_service(self, db, salon, clock, config):
        business, _ = salon
        assert get_available_slots(db, business.id, MONDAY, 9999, clock, config) == []

    def test_inactive_business(self, db, make_business, make_service, add_hours, clock, config):
        business = make_business(is_active=False)
        service = make_service(business)
        add_hours(business, 1, "09:00", "17:00")
        assert get_available_slots(db, business.id, MONDAY, service.id, clock, config) == []

    def test_invalid_business_timezone(self, db, make_business, make_service, add_hours, clock, config):
        business = make_business(timezone="Nowhere/Special")
        service = make_service(business)
        add_hours(business, 1, "09:00", "17:00")
        assert get_available_slots(db, business.id, MONDAY, service.id, clock, config) == []

    def test_past_date(self, db, salon, clock, config):
        business, service = salon
        last_monday = MONDAY - timedelta(days=7)
        assert get_available_slots(db, business.id, last_monday, service.id, clock, config) == []

    def test_malformed_date_raises(self, db, salon, clock, config):
        business, service = salon
        with pytest.raises(BookingValidationError):
            get_available_slots(db, business.id, "07/01/2030", service.id, clock, config)


class TestLeadTime:

    def monday_clock(self, hour_utc, minute_utc, second=0):
        return FixedClock(datetime(2030, 1, 7, hour_utc, minute_utc, second, tzinfo=timezone.utc))

    def test_today_drops_started_slots(self, db, salon, config):
        business, service = salon
        # 10:10 local
        slots = get_available_slots(db, business.id, MONDAY, service.id, self.monday_clock(9, 10), config)
        assert starts(slots)[0] == "10:30"

    def test_min_lead_time(self, db, make_business, make_service, add_hours, config):
        business = make_business(min_lead_time_minutes=60)
        service = make_service(business)
        add_hours(business, 1, "09:00", "17:00")

        # 10:10 local, earliest start 11:10
        slots = get_available_slots(db, business.id, MONDAY, service.id, self.monday_clock(9, 10), config)
        assert starts(slots)[0] == "11:30"

    def test_partial_minute_rounds_up(self, db, salon, config):
        business, service = salon
        # 10:30:05 local, 10:30 has already started
        slots = get_available_slots(db, business.id, MONDAY, service.id, self.monday_clock(9, 30, 5), config)
        assert starts(slots)[0] == "11:00"

    def test_lead_time_ignored_for_future_dates(self, db, make_business, make_service, add_hours, clock, config):
        business = make_business(min_lead_time_minutes=24 * 60)
        service = make_service(business)
        add_hours(business, 1, "09:00", "17:00")

        slots = get_available_slots(db, business.id, MONDAY, service.id, clock, config)
        assert starts(slots)[0] == "09:00"
