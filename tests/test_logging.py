"""Tests for log formatting and redaction."""

from __future__ import annotations

import json
import logging

from marketdesk.core.logging import (
    SensitiveDataFilter,
    StructuredFormatter,
    get_logger,
    redact,
    request_id_var,
)


def make_record(msg: str, *args) -> logging.LogRecord:
    return logging.LogRecord("marketdesk.test", logging.INFO, __file__, 1, msg, args, None)


class TestSensitiveDataFilter:
    def test_redacts_api_key_query_parameter(self):
        record = make_record("GET /stable/quote?symbol=AAPL&apikey=%s", "abc123")

        assert SensitiveDataFilter().filter(record)

        assert "abc123" not in record.getMessage()
        assert "symbol=AAPL" in record.getMessage()

    def test_leaves_plain_messages_alone(self):
        record = make_record("quote AAPL answered by fmp")

        SensitiveDataFilter().filter(record)

        assert record.getMessage() == "quote AAPL answered by fmp"


def test_redact_handles_json_style_pairs():
    assert redact('{"token": "abc", "symbol": "AAPL"}') == '{"token": "[REDACTED]", "symbol": "AAPL"}'


class TestStructuredFormatter:
    def test_includes_request_id(self):
        token = request_id_var.set("req-1")
        try:
            payload = json.loads(StructuredFormatter().format(make_record("hello")))
        finally:
            request_id_var.reset(token)

        assert payload["message"] == "hello"
        assert payload["request_id"] == "req-1"


def test_logger_names_are_prefixed():
    assert get_logger("edgar.http").name == "marketdesk.edgar.http"
