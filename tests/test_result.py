# tests/test_result.py

import psycopg2

from probes import ProbeResult, describe_error
from db import PoolTimeoutError


def test_success_carries_payload_without_error():
    result = ProbeResult.success(elapsed_ms=12, sleepSec=0)

    assert result.ok is True
    assert result.error is None
    assert result.to_dict() == {"ok": True, "elapsed_ms": 12, "sleepSec": 0}
    assert list(result.to_dict()) == ["ok", "elapsed_ms", "sleepSec"]


def test_failure_carries_error_without_payload():
    result = ProbeResult.failure(psycopg2.OperationalError("server closed the connection unexpectedly"))

    assert result.ok is False
    assert result.to_dict() == {
        "ok": False,
        "error": "OperationalError: server closed the connection unexpectedly",
    }


def test_describe_error_keeps_first_line_only():
    error = psycopg2.OperationalError(
        'connection to server at "db" failed: Connection refused\n'
        '\tIs the server running on that host?\n'
    )

    assert describe_error(error) == (
        'OperationalError: connection to server at "db" failed: Connection refused'
    )


def test_describe_error_without_message():
    assert describe_error(RuntimeError()) == "RuntimeError"


def test_describe_error_names_pool_timeout():
    message = describe_error(PoolTimeoutError("no connection available within 1.0s (pool max=2)"))

    assert message == "PoolTimeoutError: no connection available within 1.0s (pool max=2)"
