"""Tests for the structured logging system (inventory_kernel/logging_config.py)."""

import json
import logging
from io import StringIO
from uuid import uuid4

import pytest

from inventory_kernel.domain.item_ref import ItemRef
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests, then restore the suite's setup."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    """Parse all JSON log lines from a stream."""
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "inventory_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("adjusted", extra={"new_quantity": 7, "delta": -5})

        record = _parse_log(stream)
        assert record["new_quantity"] == 7
        assert record["delta"] == -5

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        LogContext.set(correlation_id="abc-123", item_ref="external:9780131103627")
        logger.info("test_msg")

        record = _parse_log(stream)
        assert record["correlation_id"] == "abc-123"
        assert record["item_ref"] == "external:9780131103627"

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        try:
            raise ValueError("boom")
        except ValueError:
            logger.error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_kernel_exception_fields_extracted(self):
        """Kernel exceptions carry .code and structured attributes."""
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        from inventory_kernel.exceptions import NegativeStockRejectedError

        try:
            raise NegativeStockRejectedError("external:X1", 3, -10)
        except NegativeStockRejectedError:
            logger.error("adjust_error", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "NEGATIVE_STOCK_REJECTED"
        assert record["exc_type"] == "NegativeStockRejectedError"
        assert record["exc_current_quantity"] == 3
        assert record["exc_attempted_delta"] == -10
        assert record["exc_resulting_quantity"] == -7

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("bare_message")

        record = _parse_log(stream)
        assert "correlation_id" not in record
        assert "item_ref" not in record

    def test_uuid_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        uid = uuid4()
        logger.info("with_uuid", extra={"alert_id": uid})

        record = _parse_log(stream)
        assert record["alert_id"] == str(uid)

    def test_item_ref_enum_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("with_source", extra={"source": ItemRef.external("x1").source})

        record = _parse_log(stream)
        assert record["source"] == "external"

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        # Default level is INFO, so the debug line is dropped
        assert len(logs) == 2
        for record in logs:
            assert "ts" in record
            assert "level" in record
            assert "logger" in record
            assert "message" in record


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context propagation."""

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", alert_id="y")
        ctx = LogContext.get_all()
        assert ctx == {"correlation_id": "x", "alert_id": "y"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        LogContext.set(operation="outer")
        with LogContext.bind(operation="inner"):
            assert LogContext.get_all()["operation"] == "inner"
        assert LogContext.get_all()["operation"] == "outer"

    def test_bind_restores_none(self):
        """bind() restores to None if there was no previous value."""
        assert "actor_id" not in LogContext.get_all()
        with LogContext.bind(actor_id="temp"):
            assert LogContext.get_all()["actor_id"] == "temp"
        assert "actor_id" not in LogContext.get_all()

    def test_bind_ignores_unknown_fields(self):
        with LogContext.bind(operation="op", not_a_field="x"):
            assert LogContext.get_all() == {"operation": "op"}

    def test_all_fields(self):
        LogContext.set(
            correlation_id="c",
            actor_id="a",
            item_ref="i",
            alert_id="l",
            operation="o",
        )
        ctx = LogContext.get_all()
        assert len(ctx) == 5
        assert ctx["item_ref"] == "i"


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)  # second call is no-op
        root = logging.getLogger("inventory_kernel")
        assert h1 in root.handlers
        assert h2 not in root.handlers
        structured = [h for h in root.handlers if isinstance(h.formatter, StructuredFormatter)]
        assert structured == [h1]

    def test_get_logger_returns_child(self):
        logger = get_logger("services.stock_ledger")
        assert logger.name == "inventory_kernel.services.stock_ledger"

    def test_logger_hierarchy(self):
        """Child loggers inherit the inventory_kernel root config."""
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        child = get_logger("deep.nested.module")
        child.debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "inventory_kernel.deep.nested.module"

    def test_level_name_accepted(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level="WARNING")
        get_logger("test").info("dropped")
        get_logger("test").warning("kept")

        assert [r["message"] for r in _parse_all_logs(stream)] == ["kept"]
