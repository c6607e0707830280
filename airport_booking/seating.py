"""Seat labelling derived from booking order."""
from __future__ import annotations

from typing import AbstractSet, Sequence

from .errors import FlightFull

SEAT_LETTERS: Sequence[str] = tuple("ABCDEF")


def seat_label(index: int) -> str:
    """Map a zero-based booking sequence number to a seat label.

    >>> seat_label(0), seat_label(5), seat_label(6)
    ('1A', '1F', '2A')
    """

    if index < 0:
        raise ValueError("seat index must be non-negative")
    row, column = divmod(index, len(SEAT_LETTERS))
    return f"{row + 1}{SEAT_LETTERS[column]}"


class SeatAllocator:
    """Seat allocation helper that ensures deterministic seat numbering.

    Labels ignore the physical cabin: every row has six seats A-F and rows
    are filled in booking order.
    """

    seat_letters: Sequence[str] = SEAT_LETTERS

    @staticmethod
    def allocate(sequence_index: int) -> str:
        return seat_label(sequence_index)

    @classmethod
    def next_available_seat(
        cls,
        booked_seats: int,
        capacity: int,
        taken: AbstractSet[str],
        *,
        flight_number: str = "",
    ) -> str:
        """Return the label for ``booked_seats``, probing forward past held seats.

        Without cancellations the first probe always wins. Once a booking is
        cancelled the counter drops below the highest label in use, so the
        probe skips seats that active passengers still hold, wrapping within
        ``capacity``.
        """

        for offset in range(capacity):
            label = cls.allocate((booked_seats + offset) % capacity)
            if label not in taken:
                return label
        raise FlightFull(flight_number, capacity)
