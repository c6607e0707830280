"""Session-bound repositories for flights and passengers."""
from __future__ import annotations

from typing import List, Optional, Set

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import ReferenceCollision, SeatCollision
from .models import CANCELLED, Flight, Passenger, utcnow


class FlightRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_id(self, flight_id: int, *, for_update: bool = False) -> Optional[Flight]:
        """Load a flight, optionally taking a row lock where the database has them."""

        if for_update:
            return self.session.get(
                Flight, flight_id, with_for_update=True, populate_existing=True
            )
        return self.session.get(Flight, flight_id)

    def save(self, flight: Flight) -> Flight:
        self.session.add(flight)
        self.session.flush()
        return flight

    def increment_booked_seats(self, flight_id: int, expected: int) -> bool:
        """Compare-and-swap ``booked_seats`` from ``expected`` to ``expected + 1``.

        Returns ``False`` when another writer moved the counter first or the
        flight is already at capacity.
        """

        stmt = (
            update(Flight)
            .where(
                Flight.id == flight_id,
                Flight.booked_seats == expected,
                Flight.booked_seats < Flight.capacity,
            )
            .values(booked_seats=Flight.booked_seats + 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def decrement_booked_seats(self, flight_id: int, expected: int) -> bool:
        stmt = (
            update(Flight)
            .where(
                Flight.id == flight_id,
                Flight.booked_seats == expected,
                Flight.booked_seats > 0,
            )
            .values(booked_seats=Flight.booked_seats - 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def reset_booked_seats(self, flight_id: int, expected: int, value: int) -> bool:
        stmt = (
            update(Flight)
            .where(Flight.id == flight_id, Flight.booked_seats == expected)
            .values(booked_seats=value, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1


class PassengerRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def insert_unique(self, passenger: Passenger) -> Passenger:
        """Insert ``passenger`` inside a savepoint.

        A clash on the booking reference raises ``ReferenceCollision`` and a
        clash on an active seat raises ``SeatCollision``. Either way the
        enclosing transaction stays usable.
        """

        try:
            with self.session.begin_nested():
                self.session.add(passenger)
                self.session.flush()
        except IntegrityError as exc:
            message = str(exc.orig)
            if "booking_reference" in message:
                raise ReferenceCollision(passenger.booking_reference) from exc
            if "seat" in message:
                raise SeatCollision(passenger.flight_id, passenger.seat_number) from exc
            raise
        return passenger

    def find_by_reference(self, booking_reference: str, *, for_update: bool = False) -> Optional[Passenger]:
        stmt = select(Passenger).where(Passenger.booking_reference == booking_reference)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.session.scalars(stmt).first()

    def active_seats(self, flight_id: int) -> Set[str]:
        return set(
            self.session.scalars(
                select(Passenger.seat_number).where(
                    Passenger.flight_id == flight_id, Passenger.status != CANCELLED
                )
            )
        )

    def count_active(self, flight_id: int) -> int:
        return self.session.scalar(
            select(func.count(Passenger.id)).where(
                Passenger.flight_id == flight_id, Passenger.status != CANCELLED
            )
        ) or 0

    def list_for_flight(self, flight_id: int) -> List[Passenger]:
        return list(
            self.session.scalars(
                select(Passenger)
                .where(Passenger.flight_id == flight_id)
                .order_by(Passenger.created_at, Passenger.id)
            )
        )
