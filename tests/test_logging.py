import json
import logging

from shared.core import get_logger, set_request_context, clear_request_context, setup_logging
from shared.core.logging_config import SecurityFilter, StructuredFormatter

def _record(msg, *args, **attrs):
    record = logging.LogRecord("inventory_service.test", logging.WARNING, __file__, 10, msg, args, None)
    for key, value in attrs.items():
        setattr(record, key, value)
    return record

def test_structured_formatter_emits_json_with_context():
    set_request_context(request_id="req-1", correlation_id="corr-9")
    try:
        line = StructuredFormatter().format(
            _record("Inventory adjusted for %s", "P1", extra_fields={"quantity": 4}, duration_ms=1.5)
        )
    finally:
        clear_request_context()

    payload = json.loads(line)
    assert payload["level"] == "WARNING"
    assert payload["message"] == "Inventory adjusted for P1"
    assert payload["trace"] == {"request_id": "req-1", "correlation_id": "corr-9"}
    assert payload["custom"] == {"quantity": 4}
    assert payload["performance"] == {"duration_ms": 1.5}

def test_formatter_omits_trace_outside_requests():
    clear_request_context()
    payload = json.loads(StructuredFormatter().format(_record("startup")))
    assert "trace" not in payload

def test_security_filter_redacts_sensitive_values():
    record = _record("connecting with password=hunter2 and token: abc123, user=eci")

    assert SecurityFilter().filter(record) is True
    message = record.getMessage()
    assert "hunter2" not in message
    assert "abc123" not in message
    assert "user=eci" in message

def test_setup_logging_keeps_foreign_handlers():
    root = logging.getLogger()
    foreign = logging.NullHandler()
    root.addHandler(foreign)
    try:
        setup_logging("inventory-service", level="INFO")
        setup_logging("inventory-service", level="INFO")

        structured = [h for h in root.handlers if isinstance(h.formatter, StructuredFormatter)]
        assert len(structured) == 1
        assert foreign in root.handlers
    finally:
        root.removeHandler(foreign)

def test_adapter_injects_request_id(caplog):
    set_request_context(request_id="req-42")
    try:
        with caplog.at_level(logging.INFO):
            get_logger("inventory_service.test").info("hello")
    finally:
        clear_request_context()

    assert caplog.records[-1].request_id == "req-42"
