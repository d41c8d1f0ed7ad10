"""Tests for the access-log polling filter."""
import logging

import pytest

from app.core.logging_config import SuppressHealthPollingFilter, configure_logging


def _access_record(method: str, path: str, status: int) -> logging.LogRecord:
    return logging.LogRecord(
        name="uvicorn.access",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg='%s - "%s %s HTTP/%s" %d',
        args=("127.0.0.1:5000", method, path, "1.1", status),
        exc_info=None,
    )


@pytest.mark.parametrize("method,path,status,kept", [
    ("GET", "/api/health", 200, False),
    ("GET", "/api/healthz?probe=1", 200, False),
    ("GET", "/api/health", 503, True),
    ("OPTIONS", "/api/dreams", 200, False),
    ("GET", "/api/dreams", 200, True),
    ("POST", "/api/generate-story", 429, True),
])
def test_filter(method, path, status, kept):
    assert SuppressHealthPollingFilter().filter(_access_record(method, path, status)) is kept


def test_non_access_records_are_kept():
    record = logging.LogRecord("app", logging.INFO, __file__, 1, "plain message", None, None)
    assert SuppressHealthPollingFilter().filter(record) is True


def test_configure_logging_quiets_client_libraries():
    configure_logging()

    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("openai").level == logging.WARNING
    assert logging.getLogger("app.services").level == logging.DEBUG
