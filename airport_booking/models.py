"""SQLAlchemy models for flights and passenger bookings."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

ON_TIME = "On Time"
DELAYED = "Delayed"
FLIGHT_CANCELLED = "Cancelled"
BOARDING = "Boarding"
FLIGHT_STATUSES = (ON_TIME, DELAYED, FLIGHT_CANCELLED, BOARDING)

CONFIRMED = "Confirmed"
CANCELLED = "Cancelled"
CHECKED_IN = "Checked-in"
BOOKING_STATUSES = (CONFIRMED, CANCELLED, CHECKED_IN)

_ACTIVE_SEAT_CLAUSE = text("status != 'Cancelled'")


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class Flight(Base):
    __tablename__ = "flights"
    __table_args__ = (
        UniqueConstraint("flight_number", name="uq_flight_number"),
        CheckConstraint("capacity > 0", name="ck_capacity_positive"),
        CheckConstraint("booked_seats >= 0", name="ck_booked_non_negative"),
        CheckConstraint("booked_seats <= capacity", name="ck_booked_within_capacity"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    flight_number: Mapped[str] = mapped_column(String(10), nullable=False)
    airline: Mapped[str] = mapped_column(String(80), nullable=False)
    departure_airport: Mapped[Optional[str]] = mapped_column(String(4))
    departure_city: Mapped[Optional[str]] = mapped_column(String(80))
    departure_time: Mapped[Optional[datetime]] = mapped_column(DateTime)
    arrival_airport: Mapped[Optional[str]] = mapped_column(String(4))
    arrival_city: Mapped[Optional[str]] = mapped_column(String(80))
    arrival_time: Mapped[Optional[datetime]] = mapped_column(DateTime)
    aircraft: Mapped[Optional[str]] = mapped_column(String(40))
    gate: Mapped[Optional[str]] = mapped_column(String(8))
    status: Mapped[str] = mapped_column(
        Enum(*FLIGHT_STATUSES, name="flight_status"), default=ON_TIME, nullable=False
    )
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    booked_seats: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    price: Mapped[Optional[float]] = mapped_column(Numeric(10, 2, asdecimal=False))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    passengers: Mapped[List["Passenger"]] = relationship(back_populates="flight")

    @property
    def available_seats(self) -> int:
        return self.capacity - self.booked_seats


class Passenger(Base):
    """A passenger record; one row is created per successful booking."""

    __tablename__ = "passengers"
    __table_args__ = (
        UniqueConstraint("booking_reference", name="uq_passenger_booking_reference"),
        Index(
            "uq_passenger_active_seat",
            "flight_id",
            "seat_number",
            unique=True,
            sqlite_where=_ACTIVE_SEAT_CLAUSE,
            postgresql_where=_ACTIVE_SEAT_CLAUSE,
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    first_name: Mapped[str] = mapped_column(String(80), nullable=False)
    last_name: Mapped[str] = mapped_column(String(80), nullable=False)
    email: Mapped[str] = mapped_column(String(120), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(30))
    passport_number: Mapped[Optional[str]] = mapped_column(String(20))
    flight_id: Mapped[int] = mapped_column(ForeignKey("flights.id"), nullable=False, index=True)
    flight_number: Mapped[str] = mapped_column(String(10), nullable=False)
    seat_number: Mapped[str] = mapped_column(String(4), nullable=False)
    booking_reference: Mapped[str] = mapped_column(String(12), nullable=False)
    status: Mapped[str] = mapped_column(
        Enum(*BOOKING_STATUSES, name="booking_status"), default=CONFIRMED, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    flight: Mapped[Flight] = relationship(back_populates="passengers")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
