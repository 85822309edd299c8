"""JSON log lines and the record-id context (rental_kernel/logging_config.py)."""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from rental_kernel.exceptions import PaymentAlreadyCollectedError
from rental_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def log_stream():
    """Configure the rental_kernel logger at DEBUG and return its output buffer."""
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    configure_logging(handler=handler, level=logging.DEBUG)
    return stream


def _lines(stream: StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


class TestJsonLines:

    def test_envelope(self, log_stream):
        get_logger("modules.collections.service").info("payment_collected")

        (line,) = _lines(log_stream)
        assert line["level"] == "INFO"
        assert line["message"] == "payment_collected"
        assert line["logger"] == "rental_kernel.modules.collections.service"
        assert line["ts"].endswith("+00:00")

    def test_extra_values_are_serialized(self, log_stream):
        tenant_id = uuid4()
        get_logger("test").info(
            "receipt_issued",
            extra={
                "receipt_number": "REC-2025-000001",
                "tenant_id": tenant_id,
                "amount": Decimal("912.50"),
                "collection_date": date(2025, 3, 15),
                "days_late": 3,
            },
        )

        (line,) = _lines(log_stream)
        assert line["receipt_number"] == "REC-2025-000001"
        assert line["tenant_id"] == str(tenant_id)
        assert line["amount"] == "912.50"
        assert line["collection_date"] == "2025-03-15"
        assert line["days_late"] == 3

    def test_bound_ids_appear_on_every_line(self, log_stream):
        logger = get_logger("batch.runner")
        with LogContext.bind(batch_run_id="run-7", contract_id="c-1"):
            logger.info("item_started")
            logger.warning("item_skipped")
        logger.info("run_finished")

        started, skipped, finished = _lines(log_stream)
        assert started["batch_run_id"] == skipped["batch_run_id"] == "run-7"
        assert skipped["contract_id"] == "c-1"
        assert "batch_run_id" not in finished
        assert "contract_id" not in finished

    def test_plain_exception(self, log_stream):
        try:
            raise RuntimeError("disk on fire")
        except RuntimeError:
            get_logger("test").exception("item_failed")

        (line,) = _lines(log_stream)
        assert line["level"] == "ERROR"
        assert line["exc_type"] == "RuntimeError"
        assert line["exc_message"] == "disk on fire"
        assert "exc_code" not in line
        assert "RuntimeError: disk on fire" in line["traceback"]

    def test_domain_error_fields(self, log_stream):
        try:
            raise PaymentAlreadyCollectedError("pay-1", date(2025, 3, 1))
        except PaymentAlreadyCollectedError:
            get_logger("test").error("collect_failed", exc_info=True)

        (line,) = _lines(log_stream)
        assert line["exc_code"] == "PAYMENT_ALREADY_COLLECTED"
        assert line["exc_type"] == "PaymentAlreadyCollectedError"
        assert line["exc_payment_id"] == "pay-1"
        assert line["exc_collection_date"] == "2025-03-01"

    def test_level_filter(self):
        stream = StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(StructuredFormatter())
        configure_logging(handler=handler)

        logger = get_logger("test")
        logger.debug("dropped")
        logger.info("kept")

        assert [line["message"] for line in _lines(stream)] == ["kept"]


class TestLogContext:

    def test_set_keeps_values_until_cleared(self):
        LogContext.set(correlation_id="req-1", payment_id="pay-1")
        assert LogContext.get_all() == {"correlation_id": "req-1", "payment_id": "pay-1"}

        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_set_ignores_none(self):
        LogContext.set(actor_id=None, contract_id="c-1")
        assert LogContext.get_all() == {"contract_id": "c-1"}

    def test_nested_bind_restores_outer_value(self):
        with LogContext.bind(contract_id="outer"):
            with LogContext.bind(contract_id="inner", payment_id="p"):
                assert LogContext.get_all() == {"contract_id": "inner", "payment_id": "p"}
            assert LogContext.get_all() == {"contract_id": "outer"}
        assert LogContext.get_all() == {}

    def test_bind_stringifies_uuids(self):
        actor = uuid4()
        with LogContext.bind(actor_id=actor):
            assert LogContext.get_all()["actor_id"] == str(actor)

    @pytest.mark.parametrize("field", ["entry_id", "tenant_name"])
    def test_unknown_field_rejected(self, field):
        with pytest.raises(ValueError):
            LogContext.bind(**{field: "x"})
        with pytest.raises(ValueError):
            LogContext.set(**{field: "x"})

    def test_every_declared_field_is_accepted(self):
        LogContext.set(
            correlation_id="c",
            actor_id="a",
            contract_id="k",
            payment_id="p",
            batch_run_id="b",
        )
        assert set(LogContext.get_all()) == {
            "correlation_id", "actor_id", "contract_id", "payment_id", "batch_run_id",
        }


class TestConfigureLogging:

    def test_second_call_is_ignored(self):
        configure_logging(handler=logging.NullHandler())
        configure_logging(handler=logging.NullHandler())
        assert len(logging.getLogger("rental_kernel").handlers) == 1

    def test_reset_allows_reconfiguring(self):
        configure_logging(handler=logging.NullHandler())
        reset_logging()
        assert logging.getLogger("rental_kernel").handlers == []

        configure_logging(handler=logging.NullHandler())
        assert len(logging.getLogger("rental_kernel").handlers) == 1

    def test_lines_do_not_reach_the_root_logger(self):
        configure_logging(handler=logging.NullHandler())
        assert logging.getLogger("rental_kernel").propagate is False
