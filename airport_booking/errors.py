"""Exception hierarchy for the booking system."""
from __future__ import annotations

from typing import Optional


class BookingError(RuntimeError):
    """Base class for every error raised by the booking layer."""


class NotFound(BookingError):
    """Raised when a requested record does not exist."""


class FlightNotFound(NotFound):
    def __init__(self, flight_id: object) -> None:
        super().__init__("Flight not found")
        self.flight_id = flight_id


class BookingNotFound(NotFound):
    def __init__(self, booking_reference: str) -> None:
        super().__init__("Booking not found")
        self.booking_reference = booking_reference


class FlightFull(BookingError):
    """Raised when a flight has no remaining capacity."""

    def __init__(self, flight_number: str, capacity: int) -> None:
        super().__init__("Flight is fully booked")
        self.flight_number = flight_number
        self.capacity = capacity


CapacityExceeded = FlightFull


class ValidationError(BookingError):
    """Raised when caller input is malformed or violates a flight rule."""


class Collision(BookingError):
    """Raised when a unique value clashes with one already stored."""


class ReferenceCollision(Collision):
    def __init__(self, booking_reference: str) -> None:
        super().__init__(f"Booking reference {booking_reference} is already in use")
        self.booking_reference = booking_reference


class SeatCollision(Collision):
    def __init__(self, flight_id: int, seat_number: str) -> None:
        super().__init__(f"Seat {seat_number} on flight {flight_id} is already taken")
        self.flight_id = flight_id
        self.seat_number = seat_number


class Contention(BookingError):
    """Raised when concurrent updates kept a flight busy past the retry bound."""

    def __init__(self, flight_id: object, attempts: int) -> None:
        super().__init__(
            f"Flight {flight_id} is busy after {attempts} attempt(s), please try again"
        )
        self.flight_id = flight_id
        self.attempts = attempts


class ReferenceExhausted(BookingError):
    def __init__(self, attempts: int) -> None:
        super().__init__(f"Unable to issue a unique booking reference after {attempts} attempts")
        self.attempts = attempts


class PersistenceError(BookingError):
    """Raised when the storage layer fails.

    ``booking_reference`` is set when the failure happened after a reference
    was issued. The booking may or may not have been stored, so callers should
    look the reference up before retrying.
    """

    def __init__(
        self,
        operation: str,
        flight_id: object,
        cause: BaseException,
        *,
        booking_reference: Optional[str] = None,
    ) -> None:
        target = f"flight {flight_id}" if flight_id is not None else f"booking {booking_reference}"
        super().__init__(f"{operation} failed for {target}: {cause}")
        self.operation = operation
        self.flight_id = flight_id
        self.cause = cause
        self.booking_reference = booking_reference


__all__ = [
    "BookingError",
    "BookingNotFound",
    "CapacityExceeded",
    "Collision",
    "Contention",
    "FlightFull",
    "FlightNotFound",
    "NotFound",
    "PersistenceError",
    "ReferenceCollision",
    "ReferenceExhausted",
    "SeatCollision",
    "ValidationError",
]
