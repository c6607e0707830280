"""Booking reference generation."""
from __future__ import annotations

import random
import secrets
import string
from typing import Optional

REFERENCE_PREFIX = "BK"
REFERENCE_LENGTH = 8
REFERENCE_ALPHABET = string.ascii_uppercase + string.digits

_system_random = secrets.SystemRandom()


def generate_booking_reference(
    *,
    prefix: str = REFERENCE_PREFIX,
    length: int = REFERENCE_LENGTH,
    rng: Optional[random.Random] = None,
) -> str:
    """Return ``prefix`` followed by ``length`` random uppercase alphanumerics.

    Uniqueness is not guaranteed here; it is enforced by the unique constraint
    on ``passengers.booking_reference`` and the caller's retry loop.
    """

    source = rng or _system_random
    return prefix + "".join(source.choices(REFERENCE_ALPHABET, k=length))


def normalize_booking_reference(value: str) -> str:
    return value.strip().upper()
