import pytest

from airport_booking.errors import FlightFull
from airport_booking.seating import SeatAllocator, seat_label


def test_seat_labels_follow_booking_order():
    assert [seat_label(k) for k in range(7)] == ["1A", "1B", "1C", "1D", "1E", "1F", "2A"]
    assert seat_label(179) == "30F"
    assert SeatAllocator.allocate(6) == "2A"


def test_negative_index_is_rejected():
    with pytest.raises(ValueError):
        seat_label(-1)


def test_next_seat_is_the_counter_when_nothing_was_cancelled():
    taken = {seat_label(k) for k in range(10)}
    assert SeatAllocator.next_available_seat(10, 180, taken) == seat_label(10)


def test_next_seat_skips_labels_still_held():
    # 1B was cancelled, so the counter is 2 while 1C is still occupied.
    assert SeatAllocator.next_available_seat(2, 6, {"1A", "1C"}) == "1D"


def test_next_seat_wraps_within_capacity():
    assert SeatAllocator.next_available_seat(3, 4, {"1A", "1C", "1D"}) == "1B"


def test_no_free_label_means_full():
    with pytest.raises(FlightFull):
        SeatAllocator.next_available_seat(1, 2, {"1A", "1B"}, flight_number="AI101")
