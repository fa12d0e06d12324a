"""Tests for fleet_kernel.logging_config: JSON records, context fields, setup."""

import json
import logging
from decimal import Decimal
from io import StringIO

import pytest

from fleet_kernel.exceptions import ErrorKind, TruckNotFoundError
from fleet_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)

log = get_logger("test")


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()
    configure_logging(level=logging.DEBUG)


@pytest.fixture
def emitted():
    """Configure logging into a buffer; call the fixture value to read records."""
    buffer = StringIO()
    configure_logging(level=logging.DEBUG, stream=buffer)

    def read() -> list[dict]:
        return [json.loads(line) for line in buffer.getvalue().splitlines() if line]

    return read


class TestRecordShape:
    def test_core_fields(self, emitted):
        """Each record carries time, level, logger and message."""
        log.info("hello")

        [record] = emitted()
        assert record["message"] == "hello"
        assert record["level"] == "INFO"
        assert record["logger"] == "fleet_kernel.test"
        assert record["ts"].endswith("+00:00")

    def test_extra_fields(self, emitted):
        """Fields passed as extra appear in the record."""
        log.info("trip_created", extra={"truck_id": 42, "status": "InProgress"})

        [record] = emitted()
        assert (record["truck_id"], record["status"]) == (42, "InProgress")

    def test_decimal_and_enum_values(self, emitted):
        """Decimals and enums render as JSON strings."""
        log.info("x", extra={"profit": Decimal("800.00"), "kind": ErrorKind.NOT_FOUND})

        [record] = emitted()
        assert record["profit"] == "800.00"
        assert record["kind"] == "not_found"

    def test_context_fields(self, emitted):
        """Bound context fields appear in the record."""
        LogContext.set(correlation_id="abc-123", trip_id="7")
        log.info("with_context")

        [record] = emitted()
        assert record["correlation_id"] == "abc-123"
        assert record["trip_id"] == "7"
        assert "operation" not in record

    def test_plain_exception(self, emitted):
        """Exceptions add their type, message and traceback."""
        try:
            raise ValueError("boom")
        except ValueError:
            log.error("failed", exc_info=True)

        [record] = emitted()
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "exc_code" not in record
        assert "Traceback" in record["traceback"]

    def test_kernel_exception_fields(self, emitted):
        """Kernel errors add their code, kind and context."""
        try:
            raise TruckNotFoundError("ABC1234")
        except TruckNotFoundError:
            log.warning("lookup_failed", exc_info=True)

        [record] = emitted()
        assert record["exc_type"] == "TruckNotFoundError"
        assert record["exc_code"] == "TRUCK_NOT_FOUND"
        assert record["exc_kind"] == "not_found"
        assert record["exc_entity"] == "truck"
        assert record["exc_key"] == "ABC1234"

    def test_formatter_standalone(self):
        """The formatter works without configure_logging."""
        record = logging.LogRecord("fleet_kernel.x", logging.WARNING, __file__, 1, "m %s", ("a",), None)
        assert json.loads(StructuredFormatter().format(record))["message"] == "m a"


class TestLogContext:
    def test_set_ignores_none(self):
        """None leaves a context field unchanged."""
        LogContext.set(correlation_id="c1")
        LogContext.set(correlation_id=None, operation="create_trip")
        assert LogContext.get_all() == {"correlation_id": "c1", "operation": "create_trip"}

    def test_clear(self):
        """clear removes every context field."""
        LogContext.set(actor_id="a1")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_unknown_field_rejected(self):
        """Only known context fields may be set."""
        with pytest.raises(TypeError):
            LogContext.set(request_id="r1")

    def test_bind_skips_none(self):
        """bind ignores None values."""
        LogContext.set(trip_id="9")
        with LogContext.bind(operation="get_trip", trip_id=None):
            assert LogContext.get_all() == {"trip_id": "9", "operation": "get_trip"}

    def test_bind_restores_previous_values(self):
        """Leaving a bind block restores the outer context."""
        LogContext.set(operation="outer")
        with LogContext.bind(operation="inner", trip_id="3"):
            assert LogContext.get_all() == {"operation": "inner", "trip_id": "3"}
        assert LogContext.get_all() == {"operation": "outer"}

    def test_bind_restores_after_error(self):
        """The context is restored when the block raises."""
        with pytest.raises(RuntimeError):
            with LogContext.bind(operation="finalize_trip"):
                raise RuntimeError
        assert LogContext.get_all() == {}


class TestConfigureLogging:
    def test_second_call_is_ignored(self):
        """Only the first configure_logging call takes effect."""
        first, second = StringIO(), StringIO()
        configure_logging(stream=first)
        configure_logging(stream=second)
        log.info("once")

        assert len(first.getvalue().splitlines()) == 1
        assert second.getvalue() == ""

    def test_level_by_name(self):
        """Levels may be given by name."""
        buffer = StringIO()
        configure_logging(level="warning", stream=buffer)
        log.info("hidden")
        log.warning("shown")

        messages = [json.loads(line)["message"] for line in buffer.getvalue().splitlines()]
        assert messages == ["shown"]

    def test_explicit_handler(self):
        """A supplied handler gets the JSON formatter."""
        handler = logging.NullHandler()
        configure_logging(handler=handler)
        namespace = logging.getLogger("fleet_kernel")
        assert handler in namespace.handlers
        assert isinstance(handler.formatter, StructuredFormatter)
        assert namespace.propagate is False

    def test_reset_detaches_handlers(self):
        """reset_logging removes installed handlers."""
        configure_logging(handler=logging.NullHandler())
        reset_logging()
        assert logging.getLogger("fleet_kernel").handlers == []
