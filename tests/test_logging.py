"""Tests for structured JSON logging."""

import json
import logging
from datetime import UTC, datetime
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from recon_kernel.domain.dtos import CheckSeverity
from recon_kernel.exceptions import TransferNotFoundError
from recon_kernel.logging_config import LogContext, StructuredFormatter, get_logger


def render(record_logger, level, message, **kwargs):
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    record_logger.addHandler(handler)
    try:
        record_logger.log(level, message, **kwargs)
    finally:
        record_logger.removeHandler(handler)
    return json.loads(stream.getvalue().strip().split("\n")[-1])


class TestStructuredFormatter:
    def test_basic_fields(self):
        payload = render(get_logger("test.basic"), logging.INFO, "something_happened")

        assert payload["message"] == "something_happened"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "recon_kernel.test.basic"
        assert "ts" in payload

    def test_extra_values_serialized(self):
        batch_id = uuid4()
        payload = render(
            get_logger("test.extra"),
            logging.INFO,
            "values",
            extra={
                "batch_id": batch_id,
                "qty": Decimal("1.50"),
                "at": datetime(2022, 1, 31, tzinfo=UTC),
            },
        )

        assert payload["batch_id"] == str(batch_id)
        assert payload["qty"] == "1.50"
        assert payload["at"].startswith("2022-01-31")

    def test_context_fields(self):
        period_id = str(uuid4())
        with LogContext.bind(period_id=period_id, actor_id=None):
            payload = render(get_logger("test.ctx"), logging.INFO, "scoped")

        assert payload["period_id"] == period_id
        assert "actor_id" not in payload

    def test_context_restored_after_bind(self):
        with LogContext.bind(ledger_batch_id="abc"):
            pass

        assert "ledger_batch_id" not in LogContext.get_all()

    def test_exception_fields(self):
        transfer_id = str(uuid4())
        try:
            raise TransferNotFoundError(transfer_id)
        except TransferNotFoundError:
            payload = render(get_logger("test.exc"), logging.ERROR, "failed", exc_info=True)

        assert payload["exc_type"] == "TransferNotFoundError"
        assert payload["exc_code"] == "TRANSFER_NOT_FOUND"
        assert payload["exc_transfer_id"] == transfer_id
        assert "traceback" in payload

    def test_context_wins_over_extra(self):
        with LogContext.bind(period_id="bound"):
            payload = render(
                get_logger("test.precedence"),
                logging.INFO,
                "scoped",
                extra={"period_id": "from-extra"},
            )

        assert payload["period_id"] == "bound"

    def test_enum_logged_by_value(self):
        payload = render(
            get_logger("test.enum"),
            logging.INFO,
            "finding",
            extra={"severity": CheckSeverity.WARNING},
        )

        assert payload["severity"] == CheckSeverity.WARNING.value


class TestLogContext:
    def test_unknown_field_rejected(self):
        with pytest.raises(KeyError):
            with LogContext.bind(warehouse="north"):
                pass

    def test_restored_after_error(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(actor_id="clerk"):
                raise RuntimeError("boom")

        assert LogContext.get_all() == {}
