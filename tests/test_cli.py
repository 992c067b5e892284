from __future__ import annotations

from airline_ops import cli


def _run(capsys, db_url, *argv):
    code = cli.main(["--db-url", db_url, "--log-level", "WARNING", *argv])
    captured = capsys.readouterr()
    return code, captured.out, captured.err


def test_cli_round_trip(tmp_path, capsys):
    db_url = f"sqlite+pysqlite:///{tmp_path / 'cli.db'}"

    code, out, _ = _run(capsys, db_url, "seed", "--flights", "2", "--days", "1", "--customers", "2", "--bookings", "3")
    assert code == 0
    assert "bookings" in out

    code, out, _ = _run(capsys, db_url, "create-user", "alice", "pw", "customer")
    assert code == 0
    assert "role ID 3" in out

    code, out, _ = _run(capsys, db_url, "--username", "alice", "--password", "pw", "report", "ticket_cost", "flight_number=AO100")
    assert code == 0
    assert "ticket_cost" in out


def test_cli_reports_typed_errors(tmp_path, capsys):
    db_url = f"sqlite+pysqlite:///{tmp_path / 'cli.db'}"
    _run(capsys, db_url, "create-user", "alice", "pw", "customer")

    code, _, err = _run(capsys, db_url, "--username", "alice", "--password", "pw", "book", "FI404")
    assert code == 1
    assert "Flight instance FI404 not found." in err

    code, _, err = _run(capsys, db_url, "--username", "alice", "--password", "pw", "submit-request", "PL1", "ENG")
    assert code == 1
    assert "Customer may not submit_request" in err

    code, _, err = _run(capsys, db_url, "--username", "alice", "--password", "bad", "book", "FI404")
    assert code == 1
    assert "invalid username or password" in err

    code, _, err = _run(capsys, db_url, "book", "FI404")
    assert code == 1
    assert "--username" in err
