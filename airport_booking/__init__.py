"""Flight inventory and passenger booking system."""
from typing import TYPE_CHECKING, Any

from .booking import BookingCoordinator, BookingResult, PassengerInfo
from .cli import main as cli_main
from .config import Settings, configure_logging
from .database import begin_write, create_session_factory, init_db, session_scope
from .errors import (
    BookingError,
    BookingNotFound,
    CapacityExceeded,
    Contention,
    FlightFull,
    FlightNotFound,
    PersistenceError,
    ReferenceExhausted,
    ValidationError,
)
from .locking import FlightLocks
from .references import generate_booking_reference
from .seating import SeatAllocator, seat_label

if TYPE_CHECKING:  # pragma: no cover - import for type hints only
    from .web import create_app as _create_app
    from .worker import main as _worker_main


def create_app(*args: Any, **kwargs: Any):  # pragma: no cover - thin wrapper
    from .web import create_app as _create_app

    return _create_app(*args, **kwargs)


def worker_main(*args: Any, **kwargs: Any) -> None:  # pragma: no cover - thin wrapper
    from .worker import main as _worker_main

    _worker_main(*args, **kwargs)


__all__ = [
    "BookingCoordinator",
    "BookingError",
    "BookingNotFound",
    "BookingResult",
    "CapacityExceeded",
    "Contention",
    "FlightFull",
    "FlightLocks",
    "FlightNotFound",
    "PassengerInfo",
    "PersistenceError",
    "ReferenceExhausted",
    "SeatAllocator",
    "begin_write",
    "Settings",
    "ValidationError",
    "cli_main",
    "configure_logging",
    "create_app",
    "create_session_factory",
    "generate_booking_reference",
    "init_db",
    "seat_label",
    "session_scope",
    "worker_main",
]
