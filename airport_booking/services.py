"""Flight management and booking lookups."""
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import Select, delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from .errors import FlightNotFound, ValidationError
from .models import CANCELLED, FLIGHT_STATUSES, ON_TIME, Flight, Passenger
from .repository import FlightRepository, PassengerRepository

EDITABLE_FLIGHT_FIELDS = frozenset(
    {
        "flight_number",
        "airline",
        "departure_airport",
        "departure_city",
        "departure_time",
        "arrival_airport",
        "arrival_city",
        "arrival_time",
        "aircraft",
        "gate",
        "status",
        "capacity",
        "price",
    }
)


def _check_flight_values(values: Dict[str, Any]) -> None:
    for name in ("flight_number", "airline"):
        if name in values and not (values[name] or "").strip():
            raise ValidationError(f"{name.replace('_', ' ')} is required")
    if "capacity" in values:
        capacity = values["capacity"]
        if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity <= 0:
            raise ValidationError("capacity must be a positive integer")
    if "status" in values and values["status"] not in FLIGHT_STATUSES:
        raise ValidationError(
            f"status must be one of: {', '.join(FLIGHT_STATUSES)}"
        )
    if values.get("price") is not None and values["price"] < 0:
        raise ValidationError("price must not be negative")


def _flush_flight(session: Session, flight: Flight) -> Flight:
    try:
        FlightRepository(session).save(flight)
    except IntegrityError as exc:
        session.rollback()
        if "flight_number" in str(exc.orig):
            raise ValidationError(f"Flight number {flight.flight_number} already exists") from exc
        raise ValidationError(f"Invalid flight data: {exc.orig}") from exc
    return flight


def add_flight(
    session: Session,
    *,
    flight_number: str,
    airline: str,
    capacity: int,
    departure_airport: Optional[str] = None,
    departure_city: Optional[str] = None,
    departure_time: Optional[datetime] = None,
    arrival_airport: Optional[str] = None,
    arrival_city: Optional[str] = None,
    arrival_time: Optional[datetime] = None,
    aircraft: Optional[str] = None,
    gate: Optional[str] = None,
    status: str = ON_TIME,
    price: Optional[float] = None,
) -> Flight:
    """Create a flight entry with no seats booked."""

    values = dict(
        flight_number=flight_number,
        airline=airline,
        capacity=capacity,
        departure_airport=departure_airport,
        departure_city=departure_city,
        departure_time=departure_time,
        arrival_airport=arrival_airport,
        arrival_city=arrival_city,
        arrival_time=arrival_time,
        aircraft=aircraft,
        gate=gate,
        status=status,
        price=price,
    )
    _check_flight_values(values)
    flight = Flight(booked_seats=0, **values)
    return _flush_flight(session, flight)


def get_flight(session: Session, flight_id: int) -> Flight:
    flight = FlightRepository(session).get_by_id(flight_id)
    if flight is None:
        raise FlightNotFound(flight_id)
    return flight


def list_flights(session: Session) -> List[Flight]:
    return list(session.scalars(select(Flight).order_by(Flight.departure_time, Flight.id)))


def search_flights(
    session: Session,
    *,
    origin: Optional[str] = None,
    destination: Optional[str] = None,
    departure_date: Optional[Union[date, datetime]] = None,
) -> List[Flight]:
    """Match cities or airport codes case-insensitively, optionally on one day."""

    stmt: Select[tuple[Flight]] = select(Flight)
    if origin:
        stmt = stmt.where(
            or_(
                Flight.departure_city.icontains(origin, autoescape=True),
                Flight.departure_airport.icontains(origin, autoescape=True),
            )
        )
    if destination:
        stmt = stmt.where(
            or_(
                Flight.arrival_city.icontains(destination, autoescape=True),
                Flight.arrival_airport.icontains(destination, autoescape=True),
            )
        )
    if departure_date:
        start = datetime(departure_date.year, departure_date.month, departure_date.day)
        end = start + timedelta(days=1)
        stmt = stmt.where(Flight.departure_time >= start, Flight.departure_time < end)
    return list(session.scalars(stmt.order_by(Flight.departure_time, Flight.id)))


def update_flight(session: Session, flight_id: int, **changes: Any) -> Flight:
    """Apply a partial update. ``booked_seats`` is owned by the booking transaction."""

    if "booked_seats" in changes:
        raise ValidationError("bookedSeats cannot be changed directly")
    unknown = set(changes) - EDITABLE_FLIGHT_FIELDS
    if unknown:
        raise ValidationError(f"Unknown flight fields: {', '.join(sorted(unknown))}")
    _check_flight_values(changes)

    flight = FlightRepository(session).get_by_id(flight_id, for_update=True)
    if flight is None:
        raise FlightNotFound(flight_id)
    if "capacity" in changes and changes["capacity"] < flight.booked_seats:
        raise ValidationError(
            f"capacity cannot be lower than the {flight.booked_seats} seats already booked"
        )
    for name, value in changes.items():
        setattr(flight, name, value)
    return _flush_flight(session, flight)


def delete_flight(session: Session, flight_id: int) -> None:
    flight = FlightRepository(session).get_by_id(flight_id, for_update=True)
    if flight is None:
        raise FlightNotFound(flight_id)
    active = PassengerRepository(session).count_active(flight_id)
    if active:
        raise ValidationError(
            f"Flight {flight.flight_number} still has {active} active booking(s)"
        )
    session.execute(delete(Passenger).where(Passenger.flight_id == flight_id))
    session.delete(flight)
    session.flush()


def list_bookings(session: Session) -> List[Passenger]:
    return list(
        session.scalars(
            select(Passenger)
            .options(joinedload(Passenger.flight))
            .order_by(Passenger.created_at, Passenger.id)
        )
    )


def flight_manifest(session: Session, flight_id: int) -> List[Passenger]:
    get_flight(session, flight_id)
    return PassengerRepository(session).list_for_flight(flight_id)


def summarize_capacity(session: Session) -> List[dict]:
    active = (
        select(Passenger.flight_id, func.count(Passenger.id).label("bookings"))
        .where(Passenger.status != CANCELLED)
        .group_by(Passenger.flight_id)
        .subquery()
    )
    rows = session.execute(
        select(
            Flight.id,
            Flight.flight_number,
            Flight.departure_airport,
            Flight.arrival_airport,
            Flight.status,
            Flight.booked_seats,
            Flight.capacity,
            func.coalesce(active.c.bookings, 0).label("bookings"),
        )
        .outerjoin(active, active.c.flight_id == Flight.id)
        .order_by(Flight.departure_time, Flight.id)
    ).all()
    return [
        {
            "id": row.id,
            "flight": row.flight_number,
            "route": f"{row.departure_airport or '?'}-{row.arrival_airport or '?'}",
            "status": row.status,
            "booked": row.booked_seats,
            "capacity": row.capacity,
            "available": row.capacity - row.booked_seats,
            "bookings": row.bookings,
        }
        for row in rows
    ]
