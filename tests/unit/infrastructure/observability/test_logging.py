"""Tests for structured logging."""

import json
import logging

import pytest

from apple_music_api.infrastructure.observability.logging import (
    CompactExceptionFormatter,
    CustomJsonFormatter,
    RequestIdFilter,
    configure_logging,
    get_request_id,
    request_id_var,
    request_scope,
    set_request_id,
)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """Put root handlers and the request ID back after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    token = request_id_var.set("")
    yield
    request_id_var.reset(token)
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(msg: str = "hello", exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="apple_music_api.test",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


class TestRequestId:
    """Test request ID functionality."""

    def test_set_and_get_request_id(self):
        """Test setting and getting request ID."""
        result = set_request_id("req-123")
        assert result == "req-123"
        assert get_request_id() == "req-123"

    def test_set_request_id_generates_when_none(self):
        """Test that setting None generates an ID."""
        result = set_request_id(None)
        assert result
        assert get_request_id() == result

    def test_request_scope_restores_previous(self):
        """Test that a scope never leaks its ID to the caller."""
        set_request_id("outer")
        with request_scope() as scoped:
            assert scoped != "outer"
            assert get_request_id() == scoped
        assert get_request_id() == "outer"

    def test_request_scope_explicit_id(self):
        with request_scope("fixed-id") as scoped:
            assert scoped == "fixed-id"

    def test_filter_stamps_record(self):
        """Test that RequestIdFilter copies the context ID onto records."""
        record = _record()
        with request_scope("abc123"):
            assert RequestIdFilter().filter(record) is True
        assert record.request_id == "abc123"


class TestFormatters:
    """Test text and JSON formatters."""

    def test_compact_formatter_includes_request_tag(self):
        formatter = CompactExceptionFormatter(fmt="%(request_tag)s%(message)s")
        record = _record()
        record.request_id = "abc123"
        assert formatter.format(record) == "[abc123] hello"

    def test_compact_formatter_shows_cause_chain(self):
        """Test that chained exceptions are rendered root cause first."""
        formatter = CompactExceptionFormatter(fmt="%(message)s")
        try:
            try:
                raise ConnectionError("refused")
            except ConnectionError as e:
                raise RuntimeError("request failed") from e
        except RuntimeError as e:
            rendered = formatter.formatException((type(e), e, e.__traceback__))

        assert rendered.index("ConnectionError") < rendered.index("RuntimeError")

    def test_json_formatter_fields(self):
        formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
        record = _record()
        record.request_id = "abc123"

        data = json.loads(formatter.format(record))

        assert data["message"] == "hello"
        assert data["level"] == "WARNING"
        assert data["logger"] == "apple_music_api.test"
        assert data["request_id"] == "abc123"


class TestLoggingConfiguration:
    """Test logging configuration."""

    def test_configure_logging_debug_level(self):
        """Test configuring logging with DEBUG level."""
        configure_logging(log_level="DEBUG", json_format=False, app_name="test-app")
        logger = logging.getLogger("test")
        assert logger.getEffectiveLevel() <= logging.DEBUG

    def test_configure_logging_json_format(self):
        """Test configuring logging with JSON format."""
        configure_logging(log_level="INFO", json_format=True, app_name="test-app")
        root_logger = logging.getLogger()
        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0].formatter, CustomJsonFormatter)

    def test_configure_logging_quiets_httpx(self):
        configure_logging(log_level="DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING
