import random
import re

from airport_booking.references import generate_booking_reference, normalize_booking_reference


def test_reference_format():
    for _ in range(50):
        assert re.fullmatch(r"BK[A-Z0-9]{8}", generate_booking_reference())


def test_custom_prefix_and_seeded_source_are_deterministic():
    first = generate_booking_reference(prefix="ZZ", rng=random.Random(7))
    second = generate_booking_reference(prefix="ZZ", rng=random.Random(7))

    assert first == second
    assert first.startswith("ZZ")
    assert len(first) == 10


def test_normalize_booking_reference():
    assert normalize_booking_reference("  bkab12cd34 ") == "BKAB12CD34"
