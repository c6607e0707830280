"""Detect and repair drift between seat counters and passenger records."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from .database import session_scope
from .locking import FlightLocks
from .models import CANCELLED, Flight, Passenger
from .repository import FlightRepository, PassengerRepository

logger = logging.getLogger(__name__)


@dataclass
class CounterDrift:
    flight_id: int
    flight_number: str
    booked_seats: int
    active_bookings: int
    capacity: int

    @property
    def delta(self) -> int:
        return self.active_bookings - self.booked_seats


def find_counter_drift(session: Session) -> List[CounterDrift]:
    """Return flights whose counter disagrees with their non-cancelled passengers."""

    active = (
        select(Passenger.flight_id, func.count(Passenger.id).label("active"))
        .where(Passenger.status != CANCELLED)
        .group_by(Passenger.flight_id)
        .subquery()
    )
    active_count = func.coalesce(active.c.active, 0)
    rows = session.execute(
        select(
            Flight.id,
            Flight.flight_number,
            Flight.booked_seats,
            Flight.capacity,
            active_count.label("active"),
        )
        .outerjoin(active, active.c.flight_id == Flight.id)
        .where(Flight.booked_seats != active_count)
        .order_by(Flight.id)
    ).all()
    return [
        CounterDrift(
            flight_id=row.id,
            flight_number=row.flight_number,
            booked_seats=row.booked_seats,
            active_bookings=row.active,
            capacity=row.capacity,
        )
        for row in rows
    ]


def repair_counter_drift(
    session_factory: sessionmaker[Session],
    *,
    locks: Optional[FlightLocks] = None,
    lock_timeout: float = 10.0,
) -> List[CounterDrift]:
    """Reset drifting counters to the active passenger count.

    Each flight is recounted under its lock, so a booking cannot slip in
    between the count and the reset. A count above capacity cannot be stored,
    so the counter is clamped to capacity and a warning is logged.
    """

    locks = locks or FlightLocks()
    with session_factory() as session:
        drifts = find_counter_drift(session)

    repaired: List[CounterDrift] = []
    for drift in drifts:
        with locks.hold(drift.flight_id, timeout=lock_timeout):
            with session_scope(session_factory, write=True) as session:
                flights = FlightRepository(session)
                flight = flights.get_by_id(drift.flight_id, for_update=True)
                if flight is None:
                    continue
                active = PassengerRepository(session).count_active(flight.id)
                target = min(active, flight.capacity)
                if active > flight.capacity:
                    logger.warning(
                        "Flight %s has %d active bookings for %d seats; clamping counter to capacity",
                        flight.flight_number,
                        active,
                        flight.capacity,
                    )
                if target == flight.booked_seats:
                    continue
                if flights.reset_booked_seats(flight.id, flight.booked_seats, target):
                    logger.warning(
                        "Reset seat counter for flight %s from %d to %d",
                        flight.flight_number,
                        flight.booked_seats,
                        target,
                    )
                    repaired.append(
                        CounterDrift(
                            flight_id=flight.id,
                            flight_number=flight.flight_number,
                            booked_seats=flight.booked_seats,
                            active_bookings=active,
                            capacity=flight.capacity,
                        )
                    )
    return repaired


def reconcile_loop(
    stop_event: threading.Event,
    session_factory: sessionmaker[Session],
    *,
    locks: Optional[FlightLocks] = None,
    poll_interval: float = 60.0,
) -> None:
    """Run counter repair until ``stop_event`` is set."""

    locks = locks or FlightLocks()
    while not stop_event.is_set():
        repaired = repair_counter_drift(session_factory, locks=locks)
        if repaired:
            logger.info("Repaired %d flight counter(s)", len(repaired))
        stop_event.wait(poll_interval)


__all__ = ["CounterDrift", "find_counter_drift", "reconcile_loop", "repair_counter_drift"]
