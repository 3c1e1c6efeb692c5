"""Unit tests for query_perms.logging_config."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from query_perms.config import load_settings
from query_perms.logging_config import JSONFormatter, configure_logging


def _record(message: str = "hello", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("query_perms.test", logging.WARNING, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self):
        payload = json.loads(JSONFormatter().format(_record()))
        assert payload["level"] == "WARNING"
        assert payload["logger"] == "query_perms.test"
        assert payload["message"] == "hello"
        assert "timestamp" in payload
        assert "exc_info" not in payload

    def test_query_context(self):
        payload = json.loads(JSONFormatter().format(_record(query={"type": "native", "database": 1})))
        assert payload["query"] == {"type": "native", "database": 1}

    def test_exception(self):
        try:
            raise ValueError("bad query")
        except ValueError:
            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())
        payload = json.loads(JSONFormatter().format(record))
        assert "ValueError: bad query" in payload["exc_info"]


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def _restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_structured(self):
        handler = configure_logging(load_settings(structured_logging=True))
        assert isinstance(handler.formatter, JSONFormatter)
        assert handler in logging.getLogger().handlers

    def test_text(self):
        handler = configure_logging(load_settings(log_level="debug"))
        assert not isinstance(handler.formatter, JSONFormatter)
        assert logging.getLogger().level == logging.DEBUG

    def test_idempotent(self):
        configure_logging(load_settings())
        configure_logging(load_settings())
        named = [h for h in logging.getLogger().handlers if h.get_name() == "query_perms"]
        assert len(named) == 1
