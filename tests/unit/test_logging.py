import json
import logging

from rich.logging import RichHandler

from chronicle.main.logging import ContextJSONFormatter, SimpleLogger
from chronicle.main.request_context import (
    get_request_context,
    request_scope,
    set_request_context,
)


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "chronicle.audit", logging.ERROR, __file__, 10, "Failed to write audit log", None, None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_and_request_context():
    set_request_context(correlation_id="req-1", user_id="U1")

    line = ContextJSONFormatter().format(
        make_record(table_name="reservations", record_id="R1", operation="UPDATE")
    )
    payload = json.loads(line)

    assert payload["message"] == "Failed to write audit log"
    assert payload["level"] == "error"
    assert payload["correlation_id"] == "req-1"
    assert payload["user_id"] == "U1"
    assert payload["table_name"] == "reservations"
    assert payload["record_id"] == "R1"
    assert "lineno" not in payload


def test_json_formatter_serializes_unknown_types():
    payload = json.loads(ContextJSONFormatter().format(make_record(records=[{"id": object()}])))

    assert isinstance(payload["records"], list)


def test_logger_handler_follows_json_switch():
    assert isinstance(SimpleLogger("x", json_logs=False).handlers[0], RichHandler)
    json_handler = SimpleLogger("y", json_logs=True).handlers[0]
    assert isinstance(json_handler.formatter, ContextJSONFormatter)


def test_request_scope_restores_previous_values():
    set_request_context(correlation_id="outer")

    with request_scope(correlation_id="inner", user_id="U1") as scoped:
        assert scoped == {"correlation_id": "inner", "user_id": "U1"}
        assert get_request_context()["correlation_id"] == "inner"

    assert get_request_context() == {"correlation_id": "outer"}


def test_set_request_context_none_removes_key():
    set_request_context(user_id="U1", correlation_id="req-1")
    set_request_context(user_id=None)

    assert get_request_context() == {"correlation_id": "req-1"}
