from __future__ import annotations

import pytest

from airline_ops.config import DEFAULT_DB_URL, get_settings
from airline_ops.errors import NotFound, TransientUnavailable, retry_transient


def test_retry_transient_retries_with_backoff():
    calls = []
    delays = []

    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise TransientUnavailable("locked")
        return "ok"

    assert retry_transient(flaky, attempts=3, backoff=0.5, sleep=delays.append) == "ok"
    assert delays == [0.5, 1.0]


def test_retry_transient_does_not_retry_business_errors():
    calls = []

    def missing():
        calls.append(1)
        raise NotFound("FI404")

    with pytest.raises(NotFound):
        retry_transient(missing, attempts=5, sleep=lambda _: None)
    assert len(calls) == 1


def test_retry_transient_gives_up():
    def always():
        raise TransientUnavailable("down")

    with pytest.raises(TransientUnavailable):
        retry_transient(always, attempts=2, sleep=lambda _: None)


def test_settings_from_environment():
    settings = get_settings(
        {
            "AIRLINE_OPS_DB_URL": "sqlite+pysqlite:///other.db",
            "AIRLINE_OPS_DB_TIMEOUT": "2.5",
            "AIRLINE_OPS_LOG_LEVEL": "debug",
            "AIRLINE_OPS_ECHO_SQL": "yes",
        }
    )
    assert settings.db_url == "sqlite+pysqlite:///other.db"
    assert settings.db_timeout == 2.5
    assert settings.log_level == "DEBUG"
    assert settings.echo_sql is True
    assert get_settings({}).db_url == DEFAULT_DB_URL


def test_settings_reject_bad_timeout():
    with pytest.raises(ValueError):
        get_settings({"AIRLINE_OPS_DB_TIMEOUT": "soon"})
    with pytest.raises(ValueError):
        get_settings({"AIRLINE_OPS_DB_TIMEOUT": "0"})
