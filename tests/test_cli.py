from airport_booking import cli


def test_seed_book_and_list(database_url, capsys):
    assert cli.main(["--database-url", database_url, "seed"]) == 0
    assert "Inserted 3 sample flight(s)" in capsys.readouterr().out

    assert cli.main(
        [
            "--database-url",
            database_url,
            "book",
            "1",
            "--first-name",
            "Neha",
            "--last-name",
            "Kapoor",
            "--email",
            "neha@example.com",
        ]
    ) == 0
    booked = capsys.readouterr().out
    assert "Neha Kapoor on AI101 seat 1A (Confirmed)" in booked

    assert cli.main(["--database-url", database_url, "flights"]) == 0
    table = capsys.readouterr().out
    assert "AI101" in table
    assert "SG303" in table

    assert cli.main(["--database-url", database_url, "manifest", "1"]) == 0
    assert "neha@example.com" in capsys.readouterr().out

    assert cli.main(["--database-url", database_url, "reconcile"]) == 0
    assert "All seat counters match" in capsys.readouterr().out


def test_errors_return_non_zero(database_url, capsys):
    assert cli.main(["--database-url", database_url, "cancel", "BKMISSING1"]) == 1
    assert "Error: Booking not found" in capsys.readouterr().err
