"""FastAPI application exposing flights and the booking transaction."""
from __future__ import annotations

import logging
from datetime import date
from io import BytesIO, StringIO
from pathlib import Path
from typing import Dict, Iterable, List, Literal, Optional

import pandas as pd
from fastapi import FastAPI, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, StreamingResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .booking import BookingCoordinator
from .config import Settings, configure_logging
from .database import init_db, session_scope
from .errors import (
    BookingError,
    Contention,
    FlightFull,
    NotFound,
    PersistenceError,
    ReferenceExhausted,
    ValidationError,
)
from .models import Passenger
from .schemas import (
    BookingDetail,
    BookingOut,
    BookingRequest,
    FlightIn,
    FlightOut,
    FlightUpdate,
    MessageOut,
    PassengerOut,
)
from .services import (
    add_flight,
    delete_flight,
    flight_manifest,
    get_flight,
    list_bookings,
    list_flights,
    search_flights,
    update_flight,
)

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

_ERROR_STATUS: Dict[type, int] = {
    NotFound: 404,
    FlightFull: 400,
    ValidationError: 400,
    Contention: 500,
    ReferenceExhausted: 500,
    PersistenceError: 500,
}


def _status_for(exc: BookingError) -> int:
    for exc_type in type(exc).__mro__:
        if exc_type in _ERROR_STATUS:
            return _ERROR_STATUS[exc_type]
    return 500


def _as_dataframe(passengers: Iterable[Passenger]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Seat": passenger.seat_number,
                "Booking Reference": passenger.booking_reference,
                "First Name": passenger.first_name,
                "Last Name": passenger.last_name,
                "Email": passenger.email,
                "Phone": passenger.phone,
                "Passport": passenger.passport_number,
                "Status": passenger.status,
            }
            for passenger in passengers
        ],
        columns=[
            "Seat",
            "Booking Reference",
            "First Name",
            "Last Name",
            "Email",
            "Phone",
            "Passport",
            "Status",
        ],
    )


def create_app(
    coordinator: Optional[BookingCoordinator] = None,
    *,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Return an application bound to ``coordinator``.

    Without one, settings are read from the environment and the schema is
    created on the configured database.
    """

    if coordinator is None:
        settings = settings or Settings.from_env()
        configure_logging(settings.log_level)
        factory = init_db(
            settings.database_url, echo=settings.echo_sql, timeout=settings.db_timeout
        )
        coordinator = BookingCoordinator(factory, settings=settings)
    session_factory: sessionmaker[Session] = coordinator.session_factory

    app = FastAPI(title="Airport Booking", description="Flight inventory and passenger bookings")
    app.state.coordinator = coordinator

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
        status_code = _status_for(exc)
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"error": str(exc)})

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error("%s %s failed in storage: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.get("/", response_class=HTMLResponse)
    def index(
        request: Request,
        reference: str = Query("", description="Booking reference to look up"),
    ) -> HTMLResponse:
        context = {"booking": None, "error": None, "reference": reference}
        with session_scope(session_factory) as session:
            context["flights"] = [FlightOut.from_flight(f) for f in list_flights(session)]
        if reference:
            try:
                context["booking"] = BookingDetail.from_passenger(coordinator.find_booking(reference))
            except NotFound as exc:
                context["error"] = f"{exc} for reference '{reference}'."
        return templates.TemplateResponse(request, "index.html", context)

    @app.get("/api/flights", response_model=List[FlightOut])
    def all_flights() -> List[FlightOut]:
        with session_scope(session_factory) as session:
            return [FlightOut.from_flight(f) for f in list_flights(session)]

    @app.get("/api/flights/{flight_id}", response_model=FlightOut)
    def one_flight(flight_id: int) -> FlightOut:
        with session_scope(session_factory) as session:
            return FlightOut.from_flight(get_flight(session, flight_id))

    @app.post("/api/flights", response_model=FlightOut, status_code=201)
    def create_flight(payload: FlightIn) -> FlightOut:
        with session_scope(session_factory, write=True) as session:
            flight = add_flight(session, **payload.to_fields())
            session.commit()
            return FlightOut.from_flight(flight)

    @app.put("/api/flights/{flight_id}", response_model=FlightOut)
    def edit_flight(flight_id: int, payload: FlightUpdate) -> FlightOut:
        with session_scope(session_factory, write=True) as session:
            flight = update_flight(session, flight_id, **payload.to_fields())
            session.commit()
            return FlightOut.from_flight(flight)

    @app.delete("/api/flights/{flight_id}", response_model=MessageOut)
    def remove_flight(flight_id: int) -> MessageOut:
        with session_scope(session_factory, write=True) as session:
            delete_flight(session, flight_id)
        return MessageOut(message="Flight deleted successfully")

    @app.get("/api/flights/{flight_id}/manifest/{file_format}")
    def download_manifest(flight_id: int, file_format: Literal["csv", "xlsx"]) -> StreamingResponse:
        with session_scope(session_factory) as session:
            flight = get_flight(session, flight_id)
            dataframe = _as_dataframe(flight_manifest(session, flight_id))
            filename = f"{flight.flight_number.lower()}_manifest.{file_format}"
        headers = {"Content-Disposition": f"attachment; filename=\"{filename}\""}

        if file_format == "csv":
            buffer = StringIO()
            dataframe.to_csv(buffer, index=False)
            buffer.seek(0)
            return StreamingResponse(
                iter([buffer.getvalue()]), media_type="text/csv", headers=headers
            )

        buffer = BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            dataframe.to_excel(writer, index=False, sheet_name="Manifest")
        buffer.seek(0)
        return StreamingResponse(
            buffer,
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers=headers,
        )

    @app.get("/api/search", response_model=List[FlightOut])
    def search(
        origin: Optional[str] = Query(None, alias="from"),
        destination: Optional[str] = Query(None, alias="to"),
        departure_date: Optional[date] = Query(None, alias="date"),
    ) -> List[FlightOut]:
        with session_scope(session_factory) as session:
            flights = search_flights(
                session,
                origin=origin,
                destination=destination,
                departure_date=departure_date,
            )
            return [FlightOut.from_flight(f) for f in flights]

    @app.post("/api/bookings", response_model=BookingOut, status_code=201)
    def book(payload: BookingRequest) -> BookingOut:
        result = coordinator.book(payload.flight_id, payload.passenger_info)
        return BookingOut(
            passenger=PassengerOut.model_validate(result.passenger),
            booking_reference=result.booking_reference,
        )

    @app.get("/api/bookings", response_model=List[BookingDetail])
    def all_bookings() -> List[BookingDetail]:
        with session_scope(session_factory) as session:
            return [BookingDetail.from_passenger(p) for p in list_bookings(session)]

    @app.get("/api/bookings/{reference}", response_model=BookingDetail)
    def one_booking(reference: str) -> BookingDetail:
        return BookingDetail.from_passenger(coordinator.find_booking(reference))

    @app.post("/api/bookings/{reference}/cancel", response_model=BookingDetail)
    def cancel_booking(reference: str) -> BookingDetail:
        return BookingDetail.from_passenger(coordinator.cancel(reference))

    @app.post("/api/bookings/{reference}/check-in", response_model=BookingDetail)
    def check_in(reference: str) -> BookingDetail:
        return BookingDetail.from_passenger(coordinator.check_in(reference))

    return app


__all__ = ["create_app"]
