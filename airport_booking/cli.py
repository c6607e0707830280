"""Command line interface for managing flights and bookings."""
from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from typing import Iterable, List

from tabulate import tabulate

from . import dataset, maintenance
from .booking import BookingCoordinator
from .config import Settings, configure_logging
from .database import init_db, session_scope
from .errors import BookingError
from .models import Passenger
from .services import flight_manifest, summarize_capacity


def _render_passengers(passengers: Iterable[Passenger]) -> str:
    rows = [
        (
            p.seat_number,
            p.booking_reference,
            f"{p.first_name} {p.last_name}",
            p.email,
            p.status,
        )
        for p in passengers
    ]
    return tabulate(rows, headers=["Seat", "Reference", "Passenger", "Email", "Status"], tablefmt="github")


def _describe(passenger: Passenger) -> str:
    return (
        f"{passenger.booking_reference}: {passenger.full_name} on {passenger.flight_number}"
        f" seat {passenger.seat_number} ({passenger.status})"
    )


def parse_args(argv: Iterable[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage flights and passenger bookings.")
    parser.add_argument(
        "--database-url",
        help="SQLAlchemy database URL (default: $AIRPORT_BOOKING_DATABASE_URL or a local SQLite file).",
    )
    parser.add_argument("--log-level", help="Logging level (default: $AIRPORT_BOOKING_LOG_LEVEL or INFO).")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Create the database tables.")

    seed = commands.add_parser("seed", help="Insert the sample flights when the database is empty.")
    seed.add_argument("--random-flights", type=int, default=0, help="Also generate this many random flights.")
    seed.add_argument("--bookings", type=int, default=0, help="Random bookings to spread over the random flights.")

    commands.add_parser("flights", help="Show seat usage for every flight.")

    book = commands.add_parser("book", help="Book a passenger onto a flight.")
    book.add_argument("flight_id", type=int)
    book.add_argument("--first-name", required=True)
    book.add_argument("--last-name", required=True)
    book.add_argument("--email", required=True)
    book.add_argument("--phone")
    book.add_argument("--passport")

    lookup = commands.add_parser("lookup", help="Show a booking by reference.")
    lookup.add_argument("reference")

    cancel = commands.add_parser("cancel", help="Cancel a booking by reference.")
    cancel.add_argument("reference")

    manifest = commands.add_parser("manifest", help="List the passengers booked on a flight.")
    manifest.add_argument("flight_id", type=int)

    reconcile = commands.add_parser("reconcile", help="Compare seat counters with passenger records.")
    reconcile.add_argument("--repair", action="store_true", help="Reset drifting counters.")

    serve = commands.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=3000)

    return parser.parse_args(list(argv))


def _settings_from(args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.database_url:
        overrides["database_url"] = args.database_url
    if args.log_level:
        overrides["log_level"] = args.log_level.upper()
    return replace(Settings.from_env(), **overrides)


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    settings = _settings_from(args)
    configure_logging(settings.log_level)
    session_factory = init_db(settings.database_url, echo=settings.echo_sql, timeout=settings.db_timeout)
    coordinator = BookingCoordinator(session_factory, settings=settings)

    try:
        if args.command == "init-db":
            print(f"Database ready at {settings.database_url}")
        elif args.command == "seed":
            inserted = dataset.insert_sample_data(coordinator)
            print(f"Inserted {inserted} sample flight(s)")
            if args.random_flights:
                summary = dataset.generate_sample_data(
                    coordinator, flights=args.random_flights, bookings=args.bookings
                )
                print(f"Generated {summary['flights']} flight(s) and {summary['bookings']} booking(s)")
        elif args.command == "flights":
            with session_scope(session_factory) as session:
                rows: List[dict] = summarize_capacity(session)
            print(tabulate(rows, headers="keys", tablefmt="github"))
        elif args.command == "book":
            result = coordinator.book(
                args.flight_id,
                {
                    "first_name": args.first_name,
                    "last_name": args.last_name,
                    "email": args.email,
                    "phone": args.phone,
                    "passport_number": args.passport,
                },
            )
            print(f"Booked {_describe(result.passenger)}")
        elif args.command == "lookup":
            print(_describe(coordinator.find_booking(args.reference)))
        elif args.command == "cancel":
            print(f"Cancelled {_describe(coordinator.cancel(args.reference))}")
        elif args.command == "manifest":
            with session_scope(session_factory) as session:
                output = _render_passengers(flight_manifest(session, args.flight_id))
            print(output)
        elif args.command == "reconcile":
            if args.repair:
                drifts = maintenance.repair_counter_drift(
                    session_factory, locks=coordinator.locks, lock_timeout=settings.lock_timeout
                )
            else:
                with session_scope(session_factory) as session:
                    drifts = maintenance.find_counter_drift(session)
            if not drifts:
                print("All seat counters match their bookings")
            for drift in drifts:
                print(
                    f"{drift.flight_number}: counter {drift.booked_seats},"
                    f" active bookings {drift.active_bookings}"
                )
        elif args.command == "serve":  # pragma: no cover - runs a server
            import uvicorn

            from .web import create_app

            uvicorn.run(create_app(coordinator), host=args.host, port=args.port)
    except BookingError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
