"""Tests for logging setup and correlation ids."""

import logging

from iotdash.observability import RequestIdFilter
from iotdash.utils.correlation import get_request_id, set_request_id


def _record():
    return logging.LogRecord("iotdash", logging.INFO, __file__, 1, "ticker.tick", None, None)


def test_request_id_filter_uses_context():
    """Records pick up the current correlation id."""
    set_request_id("abc")
    record = _record()
    assert RequestIdFilter().filter(record) is True
    assert record.req_id == "abc"
    set_request_id("")


def test_request_id_filter_defaults_to_dash():
    """Outside a request the id is a placeholder."""
    set_request_id("")
    record = _record()
    RequestIdFilter().filter(record)
    assert record.req_id == "-"
    assert get_request_id() == ""


def test_request_id_filter_keeps_explicit_extra():
    """An explicit req_id in extra wins."""
    set_request_id("ctx")
    record = _record()
    record.req_id = "explicit"
    RequestIdFilter().filter(record)
    assert record.req_id == "explicit"
    set_request_id("")
