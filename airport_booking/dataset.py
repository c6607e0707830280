"""Utilities to populate the database with sample data for tests and demos."""
from __future__ import annotations

import random
from datetime import datetime, timedelta
from typing import Dict, List, Sequence

from sqlalchemy import func, select

from .booking import BookingCoordinator
from .database import session_scope
from .errors import FlightFull
from .models import BOARDING, DELAYED, ON_TIME, Flight
from .services import add_flight

SAMPLE_FLIGHTS: List[dict] = [
    dict(
        flight_number="AI101",
        airline="Air India",
        departure_airport="DEL",
        departure_city="Delhi",
        departure_time=datetime(2025, 7, 25, 6, 0),
        arrival_airport="BOM",
        arrival_city="Mumbai",
        arrival_time=datetime(2025, 7, 25, 8, 30),
        aircraft="Boeing 737",
        gate="A12",
        status=ON_TIME,
        capacity=180,
        price=8500,
    ),
    dict(
        flight_number="UK202",
        airline="Vistara",
        departure_airport="BOM",
        departure_city="Mumbai",
        departure_time=datetime(2025, 7, 25, 10, 0),
        arrival_airport="BLR",
        arrival_city="Bangalore",
        arrival_time=datetime(2025, 7, 25, 11, 30),
        aircraft="Airbus A320",
        gate="B05",
        status=BOARDING,
        capacity=150,
        price=6500,
    ),
    dict(
        flight_number="SG303",
        airline="SpiceJet",
        departure_airport="CCU",
        departure_city="Kolkata",
        departure_time=datetime(2025, 7, 25, 14, 0),
        arrival_airport="DEL",
        arrival_city="Delhi",
        arrival_time=datetime(2025, 7, 25, 16, 30),
        aircraft="Boeing 737",
        gate="C08",
        status=DELAYED,
        capacity=189,
        price=7200,
    ),
]

AIRPORTS: Sequence[tuple] = (
    ("DEL", "Delhi"),
    ("BOM", "Mumbai"),
    ("BLR", "Bangalore"),
    ("CCU", "Kolkata"),
    ("MAA", "Chennai"),
    ("HYD", "Hyderabad"),
)
AIRLINES = ("Air India", "Vistara", "SpiceJet", "IndiGo")
AIRCRAFT = ("Boeing 737", "Airbus A320", "Airbus A321")
FIRST_NAMES = ("Ava", "Noah", "Liam", "Mia", "Lucas", "Emma", "Ethan", "Isabella")
LAST_NAMES = ("Johnson", "Williams", "Smith", "Brown", "Garcia", "Lee")


def insert_sample_data(coordinator: BookingCoordinator) -> int:
    """Insert the demo flights when the flights table is empty."""

    with session_scope(coordinator.session_factory, write=True) as session:
        if session.scalar(select(func.count(Flight.id))):
            return 0
        for values in SAMPLE_FLIGHTS:
            add_flight(session, **values)
    return len(SAMPLE_FLIGHTS)


def generate_sample_data(
    coordinator: BookingCoordinator,
    *,
    flights: int = 25,
    bookings: int = 200,
) -> Dict[str, int]:
    """Populate the database with deterministic pseudo-random data."""

    rng = random.Random(42)
    base = datetime(2025, 8, 1)
    flight_ids: List[int] = []
    with session_scope(coordinator.session_factory, write=True) as session:
        for index in range(flights):
            (origin, origin_city), (destination, destination_city) = rng.sample(AIRPORTS, 2)
            departure = base + timedelta(days=rng.randint(0, 10), hours=rng.randint(5, 22))
            flight = add_flight(
                session,
                flight_number=f"AB{1000 + index}",
                airline=rng.choice(AIRLINES),
                departure_airport=origin,
                departure_city=origin_city,
                departure_time=departure,
                arrival_airport=destination,
                arrival_city=destination_city,
                arrival_time=departure + timedelta(hours=rng.randint(1, 4)),
                aircraft=rng.choice(AIRCRAFT),
                gate=f"{rng.choice('ABC')}{rng.randint(1, 20):02d}",
                capacity=rng.choice((12, 60, 180)),
                price=rng.randint(3000, 12000),
            )
            flight_ids.append(flight.id)

    booked = 0
    for index in range(bookings if flight_ids else 0):
        try:
            coordinator.book(
                rng.choice(flight_ids),
                {
                    "firstName": rng.choice(FIRST_NAMES),
                    "lastName": rng.choice(LAST_NAMES),
                    "email": f"passenger{index}@example.com",
                },
            )
        except FlightFull:
            continue
        booked += 1
    return {"flights": len(flight_ids), "bookings": booked}
