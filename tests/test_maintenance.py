import logging

from sqlalchemy import update

from airport_booking.database import session_scope
from airport_booking.dataset import generate_sample_data, insert_sample_data
from airport_booking.maintenance import find_counter_drift, repair_counter_drift
from airport_booking.models import Flight, Passenger
from airport_booking.services import list_flights

PASSENGER = {"firstName": "Ira", "lastName": "Das", "email": "ira@example.com"}


def test_orphaned_passenger_is_detected_and_repaired(session_factory, coordinator, make_flight):
    flight = make_flight(capacity=6)
    coordinator.book(flight.id, PASSENGER)
    # A passenger written without its counter increment, as after a crash.
    with session_scope(session_factory) as session:
        session.add(
            Passenger(
                first_name="Orphan",
                last_name="Row",
                email="orphan@example.com",
                flight_id=flight.id,
                flight_number=flight.flight_number,
                seat_number="1B",
                booking_reference="BKORPHAN01",
            )
        )

    with session_scope(session_factory) as session:
        drifts = find_counter_drift(session)
    assert [(d.flight_id, d.booked_seats, d.active_bookings, d.delta) for d in drifts] == [
        (flight.id, 1, 2, 1)
    ]

    repaired = repair_counter_drift(session_factory, locks=coordinator.locks)

    assert [d.flight_id for d in repaired] == [flight.id]
    with session_scope(session_factory) as session:
        assert find_counter_drift(session) == []
        assert session.get(Flight, flight.id).booked_seats == 2
    assert coordinator.book(flight.id, PASSENGER).passenger.seat_number == "1C"


def test_counter_above_bookings_is_lowered(session_factory, make_flight):
    flight = make_flight(capacity=6)
    with session_scope(session_factory) as session:
        session.execute(update(Flight).where(Flight.id == flight.id).values(booked_seats=3))

    repaired = repair_counter_drift(session_factory)

    assert repaired[0].active_bookings == 0
    with session_scope(session_factory) as session:
        assert session.get(Flight, flight.id).booked_seats == 0


def test_sample_data_is_inserted_once(session_factory, coordinator):
    assert insert_sample_data(coordinator) == 3
    assert insert_sample_data(coordinator) == 0
    with session_scope(session_factory) as session:
        numbers = [f.flight_number for f in list_flights(session)]
    assert numbers == ["AI101", "UK202", "SG303"]


def test_generated_bookings_keep_counters_consistent(session_factory, coordinator):
    summary = generate_sample_data(coordinator, flights=4, bookings=30)

    assert summary["flights"] == 4
    assert 0 < summary["bookings"] <= 30
    with session_scope(session_factory) as session:
        assert find_counter_drift(session) == []
        total = sum(f.booked_seats for f in list_flights(session))
    assert total == summary["bookings"]


def test_counter_is_clamped_when_bookings_exceed_capacity(session_factory, make_flight, caplog):
    flight = make_flight(capacity=2)
    with session_scope(session_factory) as session:
        for index, seat in enumerate(("1A", "1B", "1C")):
            session.add(
                Passenger(
                    first_name="Extra",
                    last_name=f"Row{index}",
                    email=f"extra{index}@example.com",
                    flight_id=flight.id,
                    flight_number=flight.flight_number,
                    seat_number=seat,
                    booking_reference=f"BKEXTRA00{index}",
                )
            )

    with caplog.at_level(logging.WARNING, logger="airport_booking.maintenance"):
        repaired = repair_counter_drift(session_factory)

    assert [(d.booked_seats, d.active_bookings) for d in repaired] == [(0, 3)]
    assert "clamping counter to capacity" in caplog.text
    with session_scope(session_factory) as session:
        assert session.get(Flight, flight.id).booked_seats == 2
    # Already at capacity: nothing left to reset.
    assert repair_counter_drift(session_factory) == []
