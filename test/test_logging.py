"""Tests for structured logging."""

import json
import logging

from leadcall.shared.logging import StructuredFormatter, correlation_id_var


class TestStructuredFormatter:
    def _record(self, **extra) -> logging.LogRecord:
        record = logging.LogRecord("leadcall.test", logging.INFO, __file__, 1, "Lead created", None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_emits_json_with_extra_fields(self) -> None:
        data = json.loads(StructuredFormatter().format(self._record(lead_id="abc")))

        assert data["message"] == "Lead created"
        assert data["level"] == "INFO"
        assert data["logger"] == "leadcall.test"
        assert data["lead_id"] == "abc"

    def test_includes_correlation_id(self) -> None:
        token = correlation_id_var.set("req-1")
        try:
            data = json.loads(StructuredFormatter().format(self._record()))
        finally:
            correlation_id_var.reset(token)

        assert data["correlation_id"] == "req-1"
