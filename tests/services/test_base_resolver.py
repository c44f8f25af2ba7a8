"""
Tests for base batch resolution.

Covers the ledger decision table, stock and invoice resolution, caller
supplied batches, and the degraded dimensions reported on faults.
"""

from uuid import uuid4

import pytest

from recon_kernel.domain.dtos import CheckSeverity
from recon_kernel.exceptions import AmbiguousBaseBatchError, PeriodNotFoundError
from recon_kernel.models.source_batch import BatchType, SourceBatch
from recon_kernel.services.base_resolver import BaseResolver


def codes(resolution):
    return [f.code for f in resolution.findings]


@pytest.fixture
def resolver(session):
    return BaseResolver(session)


class TestLedgerResolution:
    def test_single_base(self, resolver, period_service, period):
        ledger = period_service.create_batch(BatchType.LEDGER, "l", period.id, is_base=True)
        period_service.create_batch(BatchType.LEDGER, "draft", period.id)

        resolution = resolver.resolve_base(period.id)

        assert resolution.ledger_batch_id == ledger.id
        assert "ledger" not in resolution.degraded_dimensions

    def test_fallback_to_only_linked(self, resolver, period_service, period):
        ledger = period_service.create_batch(BatchType.LEDGER, "l", period.id)

        resolution = resolver.resolve_base(period.id)

        assert resolution.ledger_batch_id == ledger.id
        assert "LEDGER_BASE_FALLBACK" in codes(resolution)
        assert resolution.degraded_dimensions == ()

    def test_several_linked_none_base_is_ambiguous(self, resolver, period_service, period):
        a = period_service.create_batch(BatchType.LEDGER, "a", period.id)
        b = period_service.create_batch(BatchType.LEDGER, "b", period.id)

        resolution = resolver.resolve_base(period.id)

        assert resolution.ledger_batch_id is None
        assert resolution.degraded_dimensions == ("ledger",)
        finding = next(f for f in resolution.findings if f.code == "LEDGER_BASE_AMBIGUOUS")
        assert finding.severity == CheckSeverity.ERROR
        assert set(finding.details["candidate_ids"]) == {str(a.id), str(b.id)}

        with pytest.raises(AmbiguousBaseBatchError):
            resolution.require_ledger()

    def test_several_base_flags_is_ambiguous(self, resolver, session, period_service, period):
        a = period_service.create_batch(BatchType.LEDGER, "a", period.id, is_base=True)
        b = period_service.create_batch(BatchType.LEDGER, "b", period.id)
        # Bypass the service to simulate a store that violates single-base.
        session.get(SourceBatch, b.id).is_base = True
        session.flush()

        resolution = resolver.resolve_base(period.id)

        assert resolution.ledger_batch_id is None
        assert "LEDGER_BASE_AMBIGUOUS" in codes(resolution)
        assert a.id != b.id

    def test_nothing_linked(self, resolver, period):
        resolution = resolver.resolve_base(period.id)

        assert resolution.ledger_batch_id is None
        assert "LEDGER_BASE_MISSING" in codes(resolution)
        assert resolution.degraded_dimensions == ("ledger",)

    def test_batch_of_other_period_ignored(self, resolver, period_service, period):
        feb = period_service.get_or_create(2022, 2)
        period_service.create_batch(BatchType.LEDGER, "feb", feb.id, is_base=True)

        resolution = resolver.resolve_base(period.id)

        assert resolution.ledger_batch_id is None


class TestCallerSuppliedBatch:
    def test_same_period_batch_honoured(self, resolver, period_service, period):
        period_service.create_batch(BatchType.LEDGER, "base", period.id, is_base=True)
        review = period_service.create_batch(BatchType.LEDGER, "review", period.id)

        resolution = resolver.resolve_base(period.id, ledger_batch_id=review.id)

        assert resolution.ledger_batch_id == review.id

    def test_other_period_batch_replaced(self, resolver, period_service, period):
        base = period_service.create_batch(BatchType.LEDGER, "base", period.id, is_base=True)
        feb = period_service.get_or_create(2022, 2)
        foreign = period_service.create_batch(BatchType.LEDGER, "feb", feb.id)

        resolution = resolver.resolve_base(period.id, ledger_batch_id=foreign.id)

        assert resolution.ledger_batch_id == base.id
        assert "BATCH_PERIOD_MISMATCH" in codes(resolution)

    def test_wrong_type_replaced(self, resolver, period_service, period):
        stock = period_service.create_batch(BatchType.STOCK, "s", period.id, is_base=True)

        resolution = resolver.resolve_base(period.id, ledger_batch_id=stock.id)

        assert resolution.ledger_batch_id is None
        assert "BATCH_PERIOD_MISMATCH" in codes(resolution)

    def test_caller_stock_batch(self, resolver, period_service, period):
        period_service.create_batch(BatchType.STOCK, "base", period.id, is_base=True)
        other = period_service.create_batch(BatchType.STOCK, "other", period.id)

        resolution = resolver.resolve_base(period.id, stock_batch_id=other.id)

        assert resolution.stock_batch_id == other.id


class TestStockAndInvoices:
    def test_stock_missing_is_info(self, resolver, period):
        resolution = resolver.resolve_base(period.id)

        assert resolution.stock_batch_id is None
        finding = next(f for f in resolution.findings if f.code == "STOCK_BASE_MISSING")
        assert finding.severity == CheckSeverity.INFO
        assert "stock" not in resolution.degraded_dimensions

    def test_stock_ambiguous_degrades_stock(self, resolver, session, period_service, period):
        period_service.create_batch(BatchType.STOCK, "a", period.id, is_base=True)
        b = period_service.create_batch(BatchType.STOCK, "b", period.id)
        session.get(SourceBatch, b.id).is_base = True
        session.flush()

        resolution = resolver.resolve_base(period.id)

        assert resolution.stock_batch_id is None
        assert "stock" in resolution.degraded_dimensions
        assert "STOCK_BASE_AMBIGUOUS" in codes(resolution)

    def test_invoice_bases_unioned(self, resolver, period_service, period):
        a = period_service.create_batch(BatchType.INVOICE, "a", period.id, is_base=True)
        b = period_service.create_batch(BatchType.INVOICE, "b", period.id, is_base=True)
        period_service.create_batch(BatchType.INVOICE, "draft", period.id)

        resolution = resolver.resolve_base(period.id)

        assert set(resolution.invoice_batch_ids) == {a.id, b.id}

    def test_no_invoices_is_info(self, resolver, period):
        resolution = resolver.resolve_base(period.id)

        assert resolution.invoice_batch_ids == ()
        assert "INVOICE_BASE_MISSING" in codes(resolution)


class TestErrors:
    def test_unknown_period(self, resolver, engine):
        with pytest.raises(PeriodNotFoundError):
            resolver.resolve_base(uuid4())

    def test_logs_resolution(self, resolver, period, captured_logs):
        resolver.resolve_base(period.id)

        records = [r for r in captured_logs() if r["message"] == "base_resolved"]
        assert len(records) == 1
        assert records[0]["degraded_dimensions"] == ["ledger"]
