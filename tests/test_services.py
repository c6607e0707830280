from datetime import date

import pytest

from airport_booking.database import session_scope
from airport_booking.errors import FlightNotFound, ValidationError
from airport_booking.services import (
    add_flight,
    delete_flight,
    get_flight,
    list_bookings,
    search_flights,
    summarize_capacity,
    update_flight,
)

PASSENGER = {"firstName": "Kabir", "lastName": "Shah", "email": "kabir@example.com"}


def test_duplicate_flight_number_is_rejected(session_factory, make_flight):
    make_flight(flight_number="AI101")

    with session_scope(session_factory) as session:
        with pytest.raises(ValidationError, match="already exists"):
            add_flight(session, flight_number="AI101", airline="Air India", capacity=10)


@pytest.mark.parametrize(
    "overrides",
    [{"capacity": 0}, {"airline": " "}, {"status": "Landed"}, {"price": -5}],
)
def test_invalid_flight_values(session_factory, overrides):
    values = dict(flight_number="XX1", airline="Air X", capacity=10)
    values.update(overrides)
    with session_scope(session_factory) as session:
        with pytest.raises(ValidationError):
            add_flight(session, **values)


def test_search_matches_city_or_airport_and_date(session_factory, make_flight):
    delhi = make_flight(flight_number="AI101")
    make_flight(
        flight_number="UK202",
        departure_airport="BOM",
        departure_city="Mumbai",
        arrival_airport="BLR",
        arrival_city="Bangalore",
    )

    with session_scope(session_factory) as session:
        by_city = search_flights(session, origin="delhi")
        by_code = search_flights(session, origin="del", destination="mum")
        on_day = search_flights(session, departure_date=date(2025, 7, 25))
        other_day = search_flights(session, departure_date=date(2025, 7, 26))

    assert [f.id for f in by_city] == [delhi.id]
    assert [f.id for f in by_code] == [delhi.id]
    assert len(on_day) == 2
    assert other_day == []


def test_update_flight_guards_booked_seats(session_factory, coordinator, make_flight):
    flight = make_flight(capacity=4)
    coordinator.book(flight.id, PASSENGER)
    coordinator.book(flight.id, dict(PASSENGER, email="second@example.com"))

    with session_scope(session_factory) as session:
        with pytest.raises(ValidationError, match="bookedSeats"):
            update_flight(session, flight.id, booked_seats=0)
    with session_scope(session_factory) as session:
        with pytest.raises(ValidationError, match="capacity"):
            update_flight(session, flight.id, capacity=1)
    with session_scope(session_factory) as session:
        updated = update_flight(session, flight.id, gate="D4", status="Delayed", capacity=2)
        assert updated.gate == "D4"
        assert updated.booked_seats == 2


def test_update_unknown_flight(session_factory):
    with session_scope(session_factory) as session:
        with pytest.raises(FlightNotFound):
            update_flight(session, 404, gate="A1")


def test_delete_is_refused_while_bookings_are_active(session_factory, coordinator, make_flight):
    flight = make_flight()
    reference = coordinator.book(flight.id, PASSENGER).booking_reference

    with session_scope(session_factory) as session:
        with pytest.raises(ValidationError, match="active booking"):
            delete_flight(session, flight.id)

    coordinator.cancel(reference)
    with session_scope(session_factory) as session:
        delete_flight(session, flight.id)
    with session_scope(session_factory) as session:
        with pytest.raises(FlightNotFound):
            get_flight(session, flight.id)
        assert list_bookings(session) == []


def test_summarize_capacity(session_factory, coordinator, make_flight):
    flight = make_flight(flight_number="SG303", capacity=3)
    coordinator.book(flight.id, PASSENGER)

    with session_scope(session_factory) as session:
        rows = summarize_capacity(session)

    assert rows == [
        {
            "id": flight.id,
            "flight": "SG303",
            "route": "DEL-BOM",
            "status": "On Time",
            "booked": 1,
            "capacity": 3,
            "available": 2,
            "bookings": 1,
        }
    ]
