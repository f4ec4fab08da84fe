# backend/slotbook/services/errors.py
"""
Booking error taxonomy.

Every error carries the HTTP status the API layer answers with and a
user-facing message. Messages may name statuses and policy thresholds but
never internal identifiers the caller does not already own.
"""


class BookingError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class BookingValidationError(BookingError):
    """Malformed date, time, timezone or range."""
    status_code = 400


class NotFoundError(BookingError):
    status_code = 404


class SlotConflictError(BookingError):
    status_code = 409


class InvalidTransitionError(BookingError):
    status_code = 400

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot transition from {current} to {target}")
        self.current = current
        self.target = target


class PolicyViolationError(BookingError):
    status_code = 400


class TerminalStateError(BookingError):
    status_code = 400

    def __init__(self, current: str):
        super().__init__(f'Cannot cancel a booking with status "{current}".')
        self.current = current
