"""
End-to-end tests for ReconciliationService.

Scenario (January 2022):

    code    stock        entries            exits        theoretical
    000010  10 @ 2       1 CX x10 = 10, 40  6, 30        14 @ 3
    000020  5 @ 4        -                  8, 40        -3 @ 4
    000030  -            4, 12              -            4 @ 3
    000040  -            -                  2, 10        -2, no cost
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from recon_config.schema import ReconConfig
from recon_kernel.domain.dtos import CheckSeverity
from recon_kernel.exceptions import (
    BaseBatchNotFoundError,
    DonorOverdrawError,
    PeriodNotFoundError,
    SameItemCodeError,
    UnknownItemCodeError,
)
from recon_kernel.selectors.line_selector import LineSelector
from recon_kernel.services.entry_override_service import EntryOverrideService
from recon_services.reconciliation_service import ReconciliationService
from recon_services.sped_export import build_block_h


@pytest.fixture
def service(session, deterministic_clock):
    return ReconciliationService(session, config=ReconConfig(), clock=deterministic_clock)


@pytest.fixture
def scenario(load_stock, load_ledger, load_invoices):
    stock = load_stock([("10", "10", "2"), ("20", "5", "4")])
    ledger = load_ledger(
        [("10", "1", "40", "CX"), ("30", "4", "12")],
        conversions=[("10", "CX", "10")],
    )
    invoices = load_invoices([("10", "6", "30"), ("20", "8", "40"), ("40", "2", "10")])
    return {
        "stock": stock.batch_id,
        "ledger": ledger.batch_id,
        "invoices": invoices.batch_id,
    }


class TestConsolidate:
    def test_rows(self, service, period, scenario):
        result = service.consolidate(period.id)

        assert [r.cod_item for r in result.rows] == ["000010", "000020", "000030", "000040"]

        row = result.row_for("000010")
        assert row.initial_qty == Decimal("10")
        assert row.entries_qty == Decimal("10")
        assert row.exits_qty == Decimal("6")
        assert row.theoretical_qty == Decimal("14")
        assert row.weighted_avg_cost == Decimal("3")
        assert row.final_value == Decimal("42")

        assert result.row_for("000020").final_qty == Decimal("-3")
        assert result.row_for("000020").final_value == Decimal("-12")
        assert result.row_for("000030").final_value == Decimal("12")
        assert result.row_for("000040").weighted_avg_cost is None
        assert result.row_for("000040").final_value == Decimal("-10")

    def test_resolution_and_findings(self, service, period, scenario):
        result = service.consolidate(period.id)

        assert result.resolution.ledger_batch_id == scenario["ledger"]
        assert result.resolution.stock_batch_id == scenario["stock"]
        assert result.resolution.invoice_batch_ids == (scenario["invoices"],)
        assert not result.is_degraded
        assert result.error_count == 0

    def test_summary(self, service, period, scenario):
        summary = service.consolidate(period.id).summary

        assert summary.item_count == 4
        assert summary.final_qty == Decimal("13")
        assert summary.final_value == Decimal("32")

    def test_unknown_period(self, service, engine):
        with pytest.raises(PeriodNotFoundError):
            service.consolidate(uuid4())

    def test_recomputed_on_every_call(self, service, period, scenario, load_invoices):
        before = service.consolidate(period.id).row_for("000010").exits_qty

        load_invoices([("10", "1", "5")], label="late")

        after = service.consolidate(period.id).row_for("000010").exits_qty
        assert (before, after) == (Decimal("6"), Decimal("7"))

    def test_override_changes_entries(self, session, service, period, scenario):
        lines = LineSelector(session).entry_lines(scenario["ledger"])
        line = next(entry for entry in lines if entry.cod_item == "000030")
        EntryOverrideService(session).set_override(line.id, "2")

        row = service.consolidate(period.id).row_for("000030")

        assert row.entries_qty == Decimal("2")
        assert row.entries_value == Decimal("12")
        assert row.weighted_avg_cost == Decimal("6")

    def test_review_ledger_of_same_period(self, service, period, scenario, load_ledger):
        review = load_ledger([("50", "1", "1")], label="review", is_base=False)

        result = service.consolidate(period.id, ledger_batch_id=review.batch_id)

        assert result.resolution.ledger_batch_id == review.batch_id
        assert result.row_for("000050") is not None
        assert result.row_for("000030") is None

    def test_catalog_description(self, service, period, scenario, load_catalog):
        load_catalog([("40", "Candles", "CX")])

        row = service.consolidate(period.id).row_for("000040")

        assert (row.description, row.unit) == ("Candles", "CX")

    def test_logs_completion(self, service, period, scenario, captured_logs):
        service.consolidate(period.id)

        record = next(r for r in captured_logs() if r["message"] == "consolidation_completed")
        assert record["item_count"] == 4
        assert record["period_id"] == str(period.id)
        assert record["ledger_batch_id"] == str(scenario["ledger"])


class TestDegradedConsolidation:
    def test_missing_ledger_still_consolidates(self, service, period, load_stock, load_invoices):
        load_stock([("10", "10", "2")])
        load_invoices([("10", "3", "15")])

        result = service.consolidate(period.id)

        assert result.degraded_dimensions == ("ledger",)
        assert result.row_for("000010").theoretical_qty == Decimal("7")
        assert any(f.code == "LEDGER_BASE_MISSING" for f in result.findings)

    def test_ambiguous_ledger(self, service, period, load_ledger):
        load_ledger([("1", "1", "1")], label="a", is_base=False)
        load_ledger([("2", "1", "1")], label="b", is_base=False)

        result = service.consolidate(period.id)

        assert result.rows == ()
        assert result.error_count == 1

    def test_empty_period(self, service, period):
        result = service.consolidate(period.id)

        assert result.rows == ()
        assert result.summary.item_count == 0

    def test_small_pages_read_every_exit(self, session, period, load_invoices, deterministic_clock):
        load_invoices([(str(i), "1", "1") for i in range(1, 12)])
        service = ReconciliationService(
            session,
            config=ReconConfig(page_size=2, batch_chunk_size=1),
            clock=deterministic_clock,
        )

        result = service.consolidate(period.id)

        assert result.summary.exits_qty == Decimal("11")


class TestTransfers:
    def test_create_and_apply(self, service, period, scenario):
        outcome = service.create_transfer(period.id, "20", "10", 3, 4)

        assert outcome.findings == ()
        assert outcome.transfer.ledger_batch_id == scenario["ledger"]
        assert outcome.transfer.total_value == Decimal("12")

        result = service.consolidate(period.id)
        assert result.row_for("000010").final_qty == Decimal("11")
        assert result.row_for("000010").final_value == Decimal("33")
        assert result.row_for("000020").final_qty == Decimal("0")
        assert result.row_for("000020").final_value == Decimal("0")

    def test_overdraw_rejected_by_default(self, service, period, scenario):
        with pytest.raises(DonorOverdrawError):
            service.create_transfer(period.id, "40", "30", 5, 3)

        assert service.list_transfers(period.id) == []

    def test_overdraw_counts_previous_transfers(self, service, period, scenario):
        service.create_transfer(period.id, "40", "30", 3, 3)

        with pytest.raises(DonorOverdrawError):
            service.create_transfer(period.id, "20", "30", 2, 3)

    def test_overdraw_warn_policy(self, session, period, scenario, deterministic_clock):
        service = ReconciliationService(
            session,
            config=ReconConfig(overdraw_policy="warn"),
            clock=deterministic_clock,
        )

        outcome = service.create_transfer(period.id, "40", "30", 5, 3)

        assert [f.code for f in outcome.findings] == ["DONOR_OVERDRAW"]
        assert outcome.findings[0].severity == CheckSeverity.WARNING
        assert service.consolidate(period.id).row_for("000030").final_qty == Decimal("-1")

    def test_unknown_receiver(self, service, period, scenario):
        with pytest.raises(UnknownItemCodeError) as exc_info:
            service.create_transfer(period.id, "99", "10", 1, 1)

        assert exc_info.value.role == "receiver"

    def test_unknown_donor(self, service, period, scenario):
        with pytest.raises(UnknownItemCodeError) as exc_info:
            service.create_transfer(period.id, "20", "99", 1, 1)

        assert exc_info.value.role == "donor"

    def test_input_validated_first(self, service, engine):
        """Bad input fails before the period is even looked up."""
        with pytest.raises(SameItemCodeError):
            service.create_transfer(uuid4(), "10", "010", 1, 1)

    def test_requires_ledger(self, service, period, load_stock):
        load_stock([("10", "10", "2"), ("20", "1", "1")])

        with pytest.raises(BaseBatchNotFoundError):
            service.create_transfer(period.id, "20", "10", 1, 1)

    def test_list_newest_first(self, service, period, scenario, deterministic_clock):
        first = service.create_transfer(period.id, "20", "10", 1, 1).transfer
        deterministic_clock.advance(10)
        second = service.create_transfer(period.id, "40", "10", 1, 1).transfer

        assert [t.id for t in service.list_transfers(period.id)] == [second.id, first.id]

    def test_delete_restores_balance(self, service, period, scenario):
        transfer = service.create_transfer(period.id, "20", "10", 3, 4).transfer

        service.delete_transfer(transfer.id)

        assert service.consolidate(period.id).row_for("000010").final_qty == Decimal("14")

    def test_transfers_scoped_to_ledger(self, service, period, scenario, load_ledger):
        service.create_transfer(period.id, "20", "10", 1, 1)
        other = load_ledger([("10", "1", "1"), ("20", "1", "1")], label="v2")

        assert service.list_transfers(period.id, ledger_batch_id=other.batch_id) == []
        assert service.consolidate(period.id).resolution.ledger_batch_id == other.batch_id
        assert service.consolidate(period.id).row_for("000010").adjustments_given == Decimal("0")


class TestReports:
    def test_final_inventory(self, service, period, scenario, deterministic_clock):
        inventory = service.final_inventory(period.id)

        values = {row.cod_item: row.final_value for row in inventory.rows}
        assert values == {
            "000010": Decimal("42"),
            "000020": Decimal("0"),
            "000030": Decimal("12"),
            "000040": Decimal("0"),
        }
        assert inventory.summary.total_value == Decimal("54")
        assert inventory.summary.total_qty == Decimal("13")
        assert inventory.summary.negative_count == 2
        assert inventory.ledger_batch_id == scenario["ledger"]
        assert inventory.generated_at == deterministic_clock.now()

    def test_block_h_declares_positive_finals(self, service, period, scenario):
        lines = build_block_h(service.final_inventory(period.id))

        assert lines[0] == "|H005|20220131|54,00|01|"
        declared = [line.split("|") for line in lines[1:-1]]
        assert [(f[2], f[4], f[5], f[6]) for f in declared] == [
            ("000010", "14,000000", "3,000000", "42,00"),
            ("000030", "4,000000", "3,000000", "12,00"),
        ]
        assert lines[-1] == "|H990|4|"

    def test_final_inventory_signed_values(self, session, period, scenario, deterministic_clock):
        service = ReconciliationService(
            session,
            config=ReconConfig(value_negative_final_as_zero=False),
            clock=deterministic_clock,
        )

        values = {row.cod_item: row.final_value for row in service.final_inventory(period.id).rows}

        assert values["000020"] == Decimal("-12")

    def test_adjustments_report(self, service, period, scenario, load_catalog):
        load_catalog([("10", "Soap", "UN")])
        service.create_transfer(period.id, "20", "10", 2, 4)
        service.create_transfer(period.id, "40", "10", 1, 4)

        report = service.adjustments_report(period.id)

        assert report.transfer_count == 2
        assert report.total_qty == Decimal("3")
        assert report.total_value == Decimal("12")
        assert {line.description_positivo for line in report.lines} == {"Soap"}
        donors = {impact.cod_item: impact for impact in report.impact_by_donor}
        assert donors["000010"].qty_total == Decimal("3")
        assert donors["000010"].description == "Soap"
        assert {impact.cod_item for impact in report.impact_by_receiver} == {"000020", "000040"}


class TestPeriodIsolation:
    def test_other_period_batches_ignored(self, service, period, period_service, load_stock, load_invoices):
        feb = period_service.get_or_create(2022, 2)
        load_stock([("10", "10", "2")])
        load_invoices([("10", "99", "1")], period_id=feb.id)

        row = service.consolidate(period.id).row_for("000010")

        assert row.exits_qty == Decimal("0")

    def test_active_period_not_used(self, service, period, period_service, load_stock):
        feb = period_service.get_or_create(2022, 2)
        period_service.activate(feb.id)
        load_stock([("10", "10", "2")])

        assert service.consolidate(period.id).row_for("000010") is not None
        assert service.consolidate(feb.id).rows == ()
