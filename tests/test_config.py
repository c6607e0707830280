import pytest

from airport_booking.config import DEFAULT_DATABASE_URL, Settings


def test_defaults_when_environment_is_empty():
    settings = Settings.from_env({})

    assert settings.database_url == DEFAULT_DATABASE_URL
    assert settings.reference_retries == 5
    assert settings.contention_retries == 3
    assert settings.echo_sql is False


def test_values_are_read_from_prefixed_variables():
    settings = Settings.from_env(
        {
            "AIRPORT_BOOKING_DATABASE_URL": "sqlite+pysqlite:///other.db",
            "AIRPORT_BOOKING_LOCK_TIMEOUT": "2.5",
            "AIRPORT_BOOKING_REFERENCE_PREFIX": "pn",
            "AIRPORT_BOOKING_LOG_LEVEL": "debug",
            "AIRPORT_BOOKING_ECHO_SQL": "yes",
        }
    )

    assert settings.database_url == "sqlite+pysqlite:///other.db"
    assert settings.lock_timeout == 2.5
    assert settings.reference_prefix == "PN"
    assert settings.log_level == "DEBUG"
    assert settings.echo_sql is True


@pytest.mark.parametrize(
    "name, value",
    [
        ("AIRPORT_BOOKING_REFERENCE_PREFIX", "BKX"),
        ("AIRPORT_BOOKING_CONTENTION_RETRIES", "0"),
        ("AIRPORT_BOOKING_DB_TIMEOUT", "-1"),
    ],
)
def test_invalid_values_are_rejected(name, value):
    with pytest.raises(ValueError):
        Settings.from_env({name: value})
