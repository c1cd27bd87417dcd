"""Unit tests for JSON line logging"""
import json
import logging

from core.logging import JsonFormatter


class TestJsonFormatter:

    def make_record(self, **extra) -> logging.LogRecord:
        record = logging.LogRecord("analysis.aggregator", logging.INFO, __file__, 1, "processing %s", ("acc",), None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_known_extra_fields_are_emitted(self):
        line = JsonFormatter().format(self.make_record(trace_id="t-1", account_id="acc", records_processed=3))

        payload = json.loads(line)
        assert payload["msg"] == "processing acc"
        assert payload["level"] == "INFO"
        assert payload["trace_id"] == "t-1"
        assert payload["records_processed"] == 3

    def test_unknown_extras_are_ignored(self):
        payload = json.loads(JsonFormatter().format(self.make_record(password="secret")))
        assert "password" not in payload
