from __future__ import annotations

from datetime import datetime
from itertools import count

import pytest

from airport_booking.booking import BookingCoordinator
from airport_booking.config import Settings
from airport_booking.database import init_db, session_scope
from airport_booking.services import add_flight


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+pysqlite:///{tmp_path / 'airport-test.db'}"


@pytest.fixture
def session_factory(database_url):
    return init_db(database_url)


@pytest.fixture
def coordinator(session_factory, database_url):
    return BookingCoordinator(session_factory, settings=Settings(database_url=database_url))


@pytest.fixture
def make_flight(session_factory):
    numbers = count(100)

    def _make(capacity: int = 180, **overrides):
        values = dict(
            flight_number=f"TS{next(numbers)}",
            airline="Test Air",
            departure_airport="DEL",
            departure_city="Delhi",
            departure_time=datetime(2025, 7, 25, 6, 0),
            arrival_airport="BOM",
            arrival_city="Mumbai",
            arrival_time=datetime(2025, 7, 25, 8, 30),
            aircraft="Boeing 737",
            gate="A12",
            capacity=capacity,
            price=8500,
        )
        values.update(overrides)
        with session_scope(session_factory, write=True) as session:
            flight = add_flight(session, **values)
        return flight

    return _make

