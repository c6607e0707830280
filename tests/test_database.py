import pytest
from sqlalchemy.exc import OperationalError

from airport_booking.database import begin_write, init_db, session_scope
from airport_booking.services import list_flights


@pytest.fixture
def impatient_factory(database_url):
    return init_db(database_url, timeout=0.2)


def test_readers_do_not_wait_for_a_writer(impatient_factory):
    writer = begin_write(impatient_factory())
    try:
        with session_scope(impatient_factory) as reader:
            assert list_flights(reader) == []
    finally:
        writer.close()


def test_second_writer_waits_for_the_write_lock(impatient_factory):
    writer = begin_write(impatient_factory())
    blocked = impatient_factory()
    try:
        with pytest.raises(OperationalError):
            begin_write(blocked)
    finally:
        blocked.close()
        writer.close()

    with session_scope(impatient_factory, write=True) as session:
        assert list_flights(session) == []
