"""Tests for the structlog setup."""

import logging

import pytest
from asgi_correlation_id.context import correlation_id

from sales_challenge.core.logging import (
    QUIET_LOGGERS,
    SERVICE_NAME,
    add_correlation_id,
    add_service,
    configure_structlog,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    quiet = {name: logging.getLogger(name).level for name in QUIET_LOGGERS}
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, previous in quiet.items():
        logging.getLogger(name).setLevel(previous)


def test_service_is_added_without_overriding():
    processor = add_service(SERVICE_NAME)

    assert processor(None, "info", {"event": "x"})["service"] == "sales-challenge"
    assert processor(None, "info", {"event": "x", "service": "cron"})["service"] == "cron"


def test_correlation_id_only_inside_a_request():
    assert "correlation_id" not in add_correlation_id(None, "info", {"event": "x"})

    token = correlation_id.set("abc123")
    try:
        event = add_correlation_id(None, "info", {"event": "x"})
    finally:
        correlation_id.reset(token)

    assert event["correlation_id"] == "abc123"


def test_driver_loggers_are_quieted(restore_logging):
    configure_structlog(log_level="DEBUG", json_logs=True)

    assert logging.getLogger().level == logging.DEBUG
    for name in QUIET_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING
