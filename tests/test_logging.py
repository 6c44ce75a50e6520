"""Tests for the structured logging system (bullion_kernel/logging_config.py)."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from bullion_kernel.logging_config import (
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
    configure_logging(level=logging.DEBUG, handler=logging.NullHandler())


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
        assert record["logger"] == "bullion.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("sale_allocated", extra={"lot_count": 2, "counterparty": "X"})

        record = _parse_log(stream)
        assert record["lot_count"] == 2
        assert record["counterparty"] == "X"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        LogContext.set(correlation_id="abc-123", transaction_id="tx-456")
        logger.info("test_msg")

        record = _parse_log(stream)
        assert record["correlation_id"] == "abc-123"
        assert record["transaction_id"] == "tx-456"

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

    def test_ledger_exception_code_extracted(self):
        """Ledger exceptions carry a .code attribute."""
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        from bullion_kernel.exceptions import LockedPeriodError

        try:
            raise LockedPeriodError("2024-01-15", "2024-01-31")
        except LockedPeriodError:
            logger.error("locked", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "LOCKED_PERIOD"
        assert record["exc_type"] == "LockedPeriodError"
        assert record["exc_transaction_date"] == "2024-01-15"
        assert record["exc_lock_date"] == "2024-01-31"

    def test_stock_exception_decimals_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        from bullion_kernel.exceptions import InsufficientStockError

        try:
            raise InsufficientStockError(Decimal("40"), Decimal("10.5"))
        except InsufficientStockError:
            logger.error("short", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "INSUFFICIENT_STOCK"
        assert record["exc_requested"] == "40"
        assert record["exc_available"] == "10.5"

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("bare_message")

        record = _parse_log(stream)
        assert "correlation_id" not in record
        assert "transaction_id" not in record

    def test_uuid_and_decimal_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        uid = uuid4()
        logger.info("with_values", extra={"entry_id": uid, "cogs": Decimal("240000.50")})

        record = _parse_log(stream)
        assert record["entry_id"] == str(uid)
        assert record["cogs"] == "240000.50"

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        # default level is INFO, so the debug line is dropped
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
        LogContext.set(correlation_id="x", transaction_id="y")
        ctx = LogContext.get_all()
        assert ctx == {"correlation_id": "x", "transaction_id": "y"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        LogContext.set(correlation_id="outer")
        with LogContext.bind(correlation_id="inner"):
            assert LogContext.get_all()["correlation_id"] == "inner"
        assert LogContext.get_all()["correlation_id"] == "outer"

    def test_bind_restores_none(self):
        """bind() restores to None if there was no previous value."""
        assert "transaction_id" not in LogContext.get_all()
        with LogContext.bind(transaction_id="temp"):
            assert LogContext.get_all()["transaction_id"] == "temp"
        assert "transaction_id" not in LogContext.get_all()

    def test_additive_set(self):
        LogContext.set(correlation_id="a")
        LogContext.set(transaction_id="b")
        ctx = LogContext.get_all()
        assert ctx == {"correlation_id": "a", "transaction_id": "b"}

    def test_unknown_bind_key_ignored(self):
        with LogContext.bind(transaction_id="tx-1", actor_id="someone"):
            assert LogContext.get_all() == {"transaction_id": "tx-1"}
        assert LogContext.get_all() == {}

    def test_bound_transaction_reaches_formatter(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        with LogContext.bind(correlation_id="req-1", transaction_id="tx-0001"):
            get_logger("services.ledger").info("lot_opened", extra={"quantity": Decimal("100")})
        get_logger("services.ledger").info("after")

        first, second = _parse_all_logs(stream)
        assert first["transaction_id"] == "tx-0001"
        assert first["correlation_id"] == "req-1"
        assert first["quantity"] == "100"
        assert "transaction_id" not in second


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
        root = logging.getLogger("bullion")
        assert len(root.handlers) == 1

    def test_get_logger_returns_child(self):
        logger = get_logger("services.ledger")
        assert logger.name == "bullion.services.ledger"

    def test_logger_hierarchy(self):
        """Child loggers inherit the bullion root config."""
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        child = get_logger("deep.nested.module")
        child.debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "bullion.deep.nested.module"
