"""Request and response bodies for the HTTP API (camelCase on the wire)."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import Flight, Passenger

FlightStatus = Literal["On Time", "Delayed", "Cancelled", "Boarding"]
BookingStatus = Literal["Confirmed", "Cancelled", "Checked-in"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class Endpoint(CamelModel):
    airport: Optional[str] = None
    city: Optional[str] = None
    time: Optional[datetime] = None


class FlightIn(CamelModel):
    flight_number: str
    airline: str
    departure: Endpoint = Field(default_factory=Endpoint)
    arrival: Endpoint = Field(default_factory=Endpoint)
    aircraft: Optional[str] = None
    gate: Optional[str] = None
    status: FlightStatus = "On Time"
    capacity: int = Field(gt=0)
    price: Optional[float] = Field(default=None, ge=0)

    def to_fields(self) -> Dict[str, Any]:
        data = self.model_dump(exclude={"departure", "arrival"})
        data.update(_endpoint_fields("departure", self.departure))
        data.update(_endpoint_fields("arrival", self.arrival))
        return data


class FlightUpdate(CamelModel):
    flight_number: Optional[str] = None
    airline: Optional[str] = None
    departure: Optional[Endpoint] = None
    arrival: Optional[Endpoint] = None
    aircraft: Optional[str] = None
    gate: Optional[str] = None
    status: Optional[FlightStatus] = None
    capacity: Optional[int] = Field(default=None, gt=0)
    price: Optional[float] = Field(default=None, ge=0)
    booked_seats: Optional[int] = None

    def to_fields(self) -> Dict[str, Any]:
        data = self.model_dump(exclude_unset=True, exclude={"departure", "arrival"})
        for prefix in ("departure", "arrival"):
            endpoint = getattr(self, prefix)
            if endpoint is not None:
                data.update(
                    _endpoint_fields(prefix, endpoint, only=endpoint.model_fields_set)
                )
        return data


def _endpoint_fields(prefix: str, endpoint: Endpoint, only=None) -> Dict[str, Any]:
    names = ("airport", "city", "time") if only is None else tuple(only)
    return {f"{prefix}_{name}": getattr(endpoint, name) for name in names}


class FlightOut(CamelModel):
    id: int
    flight_number: str
    airline: str
    departure: Endpoint
    arrival: Endpoint
    aircraft: Optional[str] = None
    gate: Optional[str] = None
    status: FlightStatus
    capacity: int
    booked_seats: int
    available_seats: int
    price: Optional[float] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_flight(cls, flight: Flight) -> "FlightOut":
        return cls(
            id=flight.id,
            flight_number=flight.flight_number,
            airline=flight.airline,
            departure=Endpoint(
                airport=flight.departure_airport,
                city=flight.departure_city,
                time=flight.departure_time,
            ),
            arrival=Endpoint(
                airport=flight.arrival_airport,
                city=flight.arrival_city,
                time=flight.arrival_time,
            ),
            aircraft=flight.aircraft,
            gate=flight.gate,
            status=flight.status,
            capacity=flight.capacity,
            booked_seats=flight.booked_seats,
            available_seats=flight.available_seats,
            price=flight.price,
            created_at=flight.created_at,
            updated_at=flight.updated_at,
        )


class PassengerOut(CamelModel):
    id: int
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    passport_number: Optional[str] = None
    flight_id: int
    flight_number: str
    seat_number: str
    booking_reference: str
    status: BookingStatus
    created_at: datetime
    updated_at: datetime


class BookingDetail(PassengerOut):
    flight: Optional[FlightOut] = None

    @classmethod
    def from_passenger(cls, passenger: Passenger) -> "BookingDetail":
        fields = PassengerOut.model_validate(passenger).model_dump()
        flight = passenger.flight
        return cls(**fields, flight=FlightOut.from_flight(flight) if flight is not None else None)


class BookingRequest(CamelModel):
    flight_id: Optional[int] = None
    passenger_info: Optional[Dict[str, Any]] = None


class BookingOut(CamelModel):
    passenger: PassengerOut
    booking_reference: str


class MessageOut(CamelModel):
    message: str
