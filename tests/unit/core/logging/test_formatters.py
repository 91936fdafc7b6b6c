"""
Tests for log formatters and filters.
"""

import json
import logging

import pytest

from src.api_client.core.logging.filters import (
    CorrelationIdFilter,
    ExtraFieldsFilter,
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from src.api_client.core.logging.formatters import (
    ColoredFormatter,
    JSONFormatter,
    TextFormatter,
    get_formatter,
)


def _record(msg="Request completed", **extra):
    record = logging.LogRecord("api_client", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    """Test formatters."""

    def test_json(self):
        data = json.loads(JSONFormatter().format(_record(status_code=200)))
        assert data["message"] == "Request completed"
        assert data["level"] == "INFO"
        assert data["status_code"] == 200

    def test_text_appends_fields(self):
        line = TextFormatter().format(_record(method="GET"))
        assert "[INFO] [api_client] Request completed method=GET" in line

    def test_colored_restores_levelname(self):
        record = _record()
        line = ColoredFormatter().format(record)
        assert "\033[32mINFO\033[0m" in line
        assert record.levelname == "INFO"

    @pytest.mark.parametrize("name,cls", [("json", JSONFormatter), ("TEXT", TextFormatter), ("colored", ColoredFormatter)])
    def test_get_formatter(self, name, cls):
        assert isinstance(get_formatter(name), cls)

    def test_get_formatter_unknown(self):
        with pytest.raises(ValueError):
            get_formatter("xml")


class TestFilters:
    """Test correlation id and extra fields filters."""

    def test_correlation_id(self):
        set_correlation_id("rid")
        try:
            record = _record()
            CorrelationIdFilter().filter(record)
            assert record.correlation_id == "rid"
        finally:
            clear_correlation_id()
        assert get_correlation_id() is None

    def test_no_correlation_id(self):
        record = _record()
        CorrelationIdFilter().filter(record)
        assert not hasattr(record, "correlation_id")

    def test_extra_fields_do_not_override(self):
        record = _record(service="own")
        ExtraFieldsFilter({"service": "api", "env": "test"}).filter(record)
        assert record.service == "own"
        assert record.env == "test"
