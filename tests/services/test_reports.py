"""Tests for the final inventory and adjustments report builders."""

from datetime import UTC, datetime
from decimal import Decimal
from uuid import uuid4

from recon_engines.results import ConsolidatedRow
from recon_kernel.domain.dtos import TransferRecord
from recon_services.reports import build_adjustments_report, build_final_inventory

ZERO = Decimal("0")


def row(cod_item, final_qty, final_value, cost=None):
    return ConsolidatedRow(
        cod_item=cod_item,
        description=f"Item {cod_item}",
        unit="UN",
        initial_qty=ZERO,
        initial_value=ZERO,
        entries_qty=ZERO,
        entries_value=ZERO,
        exits_qty=ZERO,
        exits_value=ZERO,
        theoretical_qty=Decimal(final_qty),
        weighted_avg_cost=Decimal(cost) if cost is not None else None,
        adjustments_received=ZERO,
        adjustments_given=ZERO,
        final_qty=Decimal(final_qty),
        final_value=Decimal(final_value),
    )


def transfer(receiver, donor, qty, cost):
    qty, cost = Decimal(qty), Decimal(cost)
    return TransferRecord(
        id=uuid4(),
        ledger_batch_id=uuid4(),
        cod_negativo=receiver,
        cod_positivo=donor,
        qty_baixada=qty,
        unit_cost=cost,
        total_value=qty * cost,
        created_at=datetime(2022, 1, 31, tzinfo=UTC),
    )


class TestFinalInventory:
    def test_negative_balances_valued_at_zero(self):
        inventory = build_final_inventory(
            [row("000001", "5", "10", "2"), row("000002", "-3", "-6", "2"), row("000003", "0", "0")],
            period_id=uuid4(),
            ledger_batch_id=None,
        )

        values = [r.final_value for r in inventory.rows]
        assert values == [Decimal("10"), ZERO, ZERO]
        assert inventory.summary.total_value == Decimal("10")
        assert inventory.summary.total_qty == Decimal("2")
        assert (
            inventory.summary.positive_count,
            inventory.summary.negative_count,
            inventory.summary.zero_count,
        ) == (1, 1, 1)

    def test_positive_qty_with_negative_value_zeroed(self):
        """Movement-valued rows can go negative in value with positive quantity."""
        inventory = build_final_inventory(
            [row("000001", "2", "-4")], period_id=uuid4(), ledger_batch_id=None
        )

        assert inventory.rows[0].final_value == ZERO

    def test_signed_values_when_disabled(self):
        inventory = build_final_inventory(
            [row("000001", "5", "10"), row("000002", "-3", "-6")],
            period_id=uuid4(),
            ledger_batch_id=None,
            value_negative_final_as_zero=False,
        )

        assert [r.final_value for r in inventory.rows] == [Decimal("10"), Decimal("-6")]
        assert inventory.summary.total_value == Decimal("10")

    def test_every_row_listed(self):
        rows = [row(f"{i:06d}", "0", "0") for i in range(1, 6)]

        inventory = build_final_inventory(rows, period_id=uuid4(), ledger_batch_id=None)

        assert inventory.summary.item_count == 5
        assert [r.cod_item for r in inventory.rows] == [r.cod_item for r in rows]

    def test_unit_cost_carried(self):
        inventory = build_final_inventory(
            [row("000001", "1", "2", "2")], period_id=uuid4(), ledger_batch_id=None
        )

        assert inventory.rows[0].unit_cost == Decimal("2")


class TestAdjustmentsReport:
    def test_totals_and_grouping(self):
        report = build_adjustments_report(
            [
                transfer("000001", "000009", "2", "3"),
                transfer("000002", "000009", "1", "3"),
                transfer("000001", "000008", "4", "1"),
            ],
            describe=lambda code: f"desc {code}",
        )

        assert report.transfer_count == 3
        assert report.total_qty == Decimal("7")
        assert report.total_value == Decimal("13")

        receivers = {i.cod_item: i for i in report.impact_by_receiver}
        assert receivers["000001"].qty_total == Decimal("6")
        assert receivers["000001"].value_total == Decimal("10")
        assert receivers["000001"].description == "desc 000001"

        donors = {i.cod_item: i for i in report.impact_by_donor}
        assert donors["000009"].qty_total == Decimal("3")

    def test_lines_keep_given_order(self):
        transfers = [transfer("000001", "000002", "1", "1"), transfer("000003", "000004", "1", "1")]

        report = build_adjustments_report(transfers, describe=str)

        assert [line.transfer_id for line in report.lines] == [t.id for t in transfers]

    def test_empty(self):
        report = build_adjustments_report([], describe=str)

        assert report.transfer_count == 0
        assert report.total_value == ZERO
        assert report.impact_by_donor == ()
