"""The booking transaction: capacity check, seat, reference and counter update.

Every change to a flight's ``booked_seats`` goes through
:class:`BookingCoordinator`. Three layers keep the counter and the passenger
rows consistent when bookings race:

* an in-process lock per flight serializes callers inside this process;
* the flight row is read ``FOR UPDATE`` where the database supports it;
* the counter is moved with a compare-and-swap ``UPDATE`` that only applies
  if the stored value still equals the one the seat was derived from.

The passenger insert and the counter update share one transaction, and the
passenger row is flushed first.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Mapping, Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, sessionmaker
from sqlalchemy.orm.attributes import set_committed_value

from .config import Settings
from .database import begin_write
from .errors import (
    BookingError,
    BookingNotFound,
    Contention,
    FlightFull,
    FlightNotFound,
    PersistenceError,
    ReferenceCollision,
    ReferenceExhausted,
    SeatCollision,
    ValidationError,
)
from .locking import FlightLocks
from .models import CANCELLED, CHECKED_IN, CONFIRMED, Flight, Passenger
from .references import generate_booking_reference, normalize_booking_reference
from .repository import FlightRepository, PassengerRepository
from .seating import SeatAllocator

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = (
    ("first_name", "firstName"),
    ("last_name", "lastName"),
    ("email", "email"),
)
_OPTIONAL_FIELDS = (
    ("phone", "phone"),
    ("passport_number", "passportNumber"),
)


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class PassengerInfo:
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    passport_number: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "PassengerInfo":
        """Validate raw passenger fields given in snake_case or camelCase."""

        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ValidationError("passengerInfo must be an object")

        values = {}
        missing = []
        for attr, alias in _REQUIRED_FIELDS:
            value = _clean(data.get(attr, data.get(alias)))
            if value is None:
                missing.append(alias)
            values[attr] = value
        if missing:
            raise ValidationError("Missing required passenger fields: " + ", ".join(missing))
        for attr, alias in _OPTIONAL_FIELDS:
            values[attr] = _clean(data.get(attr, data.get(alias)))
        return cls(**values)


@dataclass
class BookingResult:
    passenger: Passenger
    booking_reference: str


class _CounterMoved(Exception):
    """The flight counter changed between the read and the compare-and-swap."""


class BookingCoordinator:
    """Books, cancels and checks in passengers against a session factory."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        settings: Optional[Settings] = None,
        reference_fn: Optional[Callable[[], str]] = None,
        locks: Optional[FlightLocks] = None,
    ) -> None:
        self.session_factory = session_factory
        self.settings = settings or Settings()
        self.reference_fn = reference_fn or partial(
            generate_booking_reference, prefix=self.settings.reference_prefix
        )
        self.locks = locks or FlightLocks()

    def book(
        self,
        flight_id: Optional[int],
        passenger_info: Union[PassengerInfo, Mapping[str, Any], None],
    ) -> BookingResult:
        """Book one passenger onto ``flight_id``.

        Raises:
            ValidationError: flight id or a required passenger field is missing.
            FlightNotFound: no flight has ``flight_id``.
            FlightFull: the flight is at capacity.
            ReferenceExhausted: every generated reference was already taken.
            Contention: the counter kept moving under concurrent writers.
            PersistenceError: the database failed or timed out.
        """

        if flight_id is None:
            raise ValidationError("flightId is required")

        attempts = self.settings.contention_retries
        with self.locks.hold(flight_id, timeout=self.settings.lock_timeout):
            for attempt in range(1, attempts + 1):
                try:
                    result = self._book_once(flight_id, passenger_info)
                except _CounterMoved:
                    logger.warning(
                        "Seat counter for flight %s moved during booking (attempt %d/%d)",
                        flight_id,
                        attempt,
                        attempts,
                    )
                    continue
                logger.info(
                    "Booked %s on flight %s seat %s",
                    result.booking_reference,
                    result.passenger.flight_number,
                    result.passenger.seat_number,
                )
                return result
        raise Contention(flight_id, attempts)

    def _book_once(
        self,
        flight_id: int,
        passenger_info: Union[PassengerInfo, Mapping[str, Any], None],
    ) -> BookingResult:
        reference: Optional[str] = None
        with self.session_factory() as session:
            flights = FlightRepository(session)
            passengers = PassengerRepository(session)
            try:
                begin_write(session)
                flight = flights.get_by_id(flight_id, for_update=True)
                if flight is None:
                    raise FlightNotFound(flight_id)
                if flight.booked_seats >= flight.capacity:
                    raise FlightFull(flight.flight_number, flight.capacity)
                if isinstance(passenger_info, PassengerInfo):
                    info = passenger_info
                else:
                    info = PassengerInfo.from_mapping(passenger_info)

                observed = flight.booked_seats
                seat = SeatAllocator.next_available_seat(
                    observed,
                    flight.capacity,
                    passengers.active_seats(flight.id),
                    flight_number=flight.flight_number,
                )
                passenger = self._insert_passenger(passengers, flight, seat, info)
                reference = passenger.booking_reference

                if not flights.increment_booked_seats(flight.id, observed):
                    session.rollback()
                    raise _CounterMoved()
                session.commit()
            except SeatCollision:
                session.rollback()
                raise _CounterMoved()
            except BookingError:
                session.rollback()
                raise
            except SQLAlchemyError as exc:
                session.rollback()
                logger.error("Booking on flight %s failed in storage: %s", flight_id, exc)
                raise PersistenceError("book", flight_id, exc, booking_reference=reference) from exc
            set_committed_value(flight, "booked_seats", observed + 1)
            set_committed_value(passenger, "flight", flight)
        return BookingResult(passenger=passenger, booking_reference=passenger.booking_reference)

    def _insert_passenger(
        self,
        passengers: PassengerRepository,
        flight: Flight,
        seat: str,
        info: PassengerInfo,
    ) -> Passenger:
        limit = self.settings.reference_retries
        for attempt in range(1, limit + 1):
            passenger = Passenger(
                first_name=info.first_name,
                last_name=info.last_name,
                email=info.email,
                phone=info.phone,
                passport_number=info.passport_number,
                flight_id=flight.id,
                flight_number=flight.flight_number,
                seat_number=seat,
                booking_reference=self.reference_fn(),
                status=CONFIRMED,
            )
            try:
                return passengers.insert_unique(passenger)
            except ReferenceCollision as exc:
                logger.warning(
                    "Booking reference %s already issued, regenerating (attempt %d/%d)",
                    exc.booking_reference,
                    attempt,
                    limit,
                )
        raise ReferenceExhausted(limit)

    def cancel(self, booking_reference: str) -> Passenger:
        """Cancel a booking and release its seat; cancelling twice is a no-op."""

        reference = normalize_booking_reference(booking_reference)
        flight_id = self.find_booking(reference).flight_id
        attempts = self.settings.contention_retries
        with self.locks.hold(flight_id, timeout=self.settings.lock_timeout):
            for attempt in range(1, attempts + 1):
                try:
                    return self._cancel_once(reference, flight_id)
                except _CounterMoved:
                    logger.warning(
                        "Seat counter for flight %s moved during cancellation (attempt %d/%d)",
                        flight_id,
                        attempt,
                        attempts,
                    )
        raise Contention(flight_id, attempts)

    def _cancel_once(self, reference: str, flight_id: int) -> Passenger:
        with self.session_factory() as session:
            flights = FlightRepository(session)
            passengers = PassengerRepository(session)
            try:
                begin_write(session)
                passenger = passengers.find_by_reference(reference, for_update=True)
                if passenger is None:
                    raise BookingNotFound(reference)
                flight = flights.get_by_id(passenger.flight_id, for_update=True)
                if passenger.status != CANCELLED:
                    observed = flight.booked_seats
                    passenger.status = CANCELLED
                    session.flush()
                    if observed == 0:
                        logger.warning(
                            "Flight %s counter already at zero while cancelling %s",
                            flight.flight_number,
                            reference,
                        )
                    elif not flights.decrement_booked_seats(flight.id, observed):
                        session.rollback()
                        raise _CounterMoved()
                    session.commit()
                    if observed:
                        set_committed_value(flight, "booked_seats", observed - 1)
                    logger.info("Cancelled %s on flight %s", reference, flight.flight_number)
            except BookingError:
                session.rollback()
                raise
            except SQLAlchemyError as exc:
                session.rollback()
                raise PersistenceError("cancel", flight_id, exc, booking_reference=reference) from exc
            set_committed_value(passenger, "flight", flight)
        return passenger

    def check_in(self, booking_reference: str) -> Passenger:
        reference = normalize_booking_reference(booking_reference)
        with self.session_factory() as session:
            passengers = PassengerRepository(session)
            try:
                begin_write(session)
                passenger = passengers.find_by_reference(reference, for_update=True)
                if passenger is None:
                    raise BookingNotFound(reference)
                if passenger.status == CANCELLED:
                    raise ValidationError("Cancelled bookings cannot be checked in")
                flight = session.get(Flight, passenger.flight_id)
                if passenger.status == CONFIRMED:
                    passenger.status = CHECKED_IN
                    session.commit()
                    logger.info("Checked in %s on flight %s", reference, passenger.flight_number)
            except BookingError:
                session.rollback()
                raise
            except SQLAlchemyError as exc:
                session.rollback()
                raise PersistenceError("check-in", None, exc, booking_reference=reference) from exc
            set_committed_value(passenger, "flight", flight)
        return passenger

    def find_booking(self, booking_reference: str) -> Passenger:
        """Look a booking up by reference, with its flight loaded."""

        reference = normalize_booking_reference(booking_reference)
        with self.session_factory() as session:
            try:
                passenger = session.scalars(
                    select(Passenger)
                    .options(joinedload(Passenger.flight))
                    .where(Passenger.booking_reference == reference)
                ).first()
            except SQLAlchemyError as exc:
                raise PersistenceError("lookup", None, exc, booking_reference=reference) from exc
        if passenger is None:
            raise BookingNotFound(reference)
        return passenger


__all__ = ["BookingCoordinator", "BookingResult", "PassengerInfo"]
