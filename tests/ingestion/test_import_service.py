"""
Tests for BatchImportService.

Covers:
- Code normalization at the boundary
- Per-record rejection without losing the batch
- Ledger documents, products and conversions
- Catalog upsert
"""

from decimal import Decimal

import pytest

from recon_config.schema import ReconConfig
from recon_ingestion.domain.types import (
    RawCatalogProduct,
    RawEntryLine,
    RawExitLine,
    RawLedgerDocument,
    RawStockRecord,
    RawUnitConversion,
)
from recon_ingestion.services.import_service import BatchImportService
from recon_kernel.models.source_batch import BatchType
from recon_kernel.selectors.batch_selector import BatchSelector
from recon_kernel.selectors.catalog_selector import CatalogSelector
from recon_kernel.selectors.line_selector import LineSelector


class TestStockImport:
    def test_imports_and_normalizes(self, session, importer, period):
        result = importer.import_stock(
            "snapshot",
            [
                RawStockRecord(" 12", "10", "2,50", "UN", "Soap"),
                RawStockRecord(345, 4, Decimal("1.5")),
            ],
            period_id=period.id,
            is_base=True,
        )

        assert result.is_clean
        assert result.accepted == 2
        lines = LineSelector(session).stock_lines(result.batch_id)
        by_code = {line.cod_item: line for line in lines}
        assert set(by_code) == {"000012", "000345"}
        assert by_code["000012"].unit_cost == Decimal("2.5")
        assert by_code["000012"].description == "Soap"

        batch = BatchSelector(session).get_batch(result.batch_id)
        assert batch.batch_type == BatchType.STOCK.value
        assert batch.is_base

    def test_bad_records_rejected_alone(self, importer):
        result = importer.import_stock(
            "snapshot",
            [
                RawStockRecord("", "1", "1"),
                RawStockRecord("2", "abc", "1", row=7),
                RawStockRecord("3", "1", None),
                RawStockRecord("4", "1", "1"),
            ],
        )

        assert result.accepted == 1
        assert result.rejected_count == 3
        assert [r.code for r in result.rejected] == [
            "INVALID_ITEM_CODE", "INVALID_NUMBER", "INVALID_NUMBER",
        ]
        assert result.rejected[0].row == 1
        assert result.rejected[1].row == 7
        assert result.rejected[1].field == "quantity"
        assert result.rejected[2].field == "unit_cost"

    def test_configured_code_width(self, session, period):
        importer = BatchImportService(session, config=ReconConfig(code_width=4))

        result = importer.import_stock("s", [RawStockRecord("7", "1", "1")])

        assert LineSelector(session).stock_lines(result.batch_id)[0].cod_item == "0007"


class TestLedgerImport:
    def test_documents_lines_products_conversions(self, session, load_ledger):
        result = load_ledger(
            [("1", "2", "24", "CX"), ("2", "5", "10")],
            products=[("1", "Juice", "UN"), ("1", "Juice duplicate", "CX")],
            conversions=[("1", "CX", "6"), ("1", "cx", "12")],
        )

        assert result.is_clean
        selector = LineSelector(session)
        lines = selector.entry_lines(result.batch_id)
        documents = selector.ledger_documents(result.batch_id)
        assert len(lines) == 2
        assert {line.document_id for line in lines} == {documents[0].id}
        assert documents[0].partner_name == "Supplier One"

        products = selector.ledger_products(result.batch_id)
        assert products["000001"].description == "Juice"

        conversions = selector.unit_conversions(result.batch_id)
        assert len(conversions) == 1
        assert conversions[0].factor == Decimal("12")

    def test_unknown_document_key_stored_unlinked(self, session, importer, period):
        result = importer.import_ledger(
            "ledger",
            [RawLedgerDocument(key="A")],
            [RawEntryLine("A", "1", "1", "1"), RawEntryLine("MISSING", "2", "1", "1")],
            period_id=period.id,
        )

        lines = {line.cod_item: line for line in LineSelector(session).entry_lines(result.batch_id)}
        assert lines["000001"].document_id is not None
        assert lines["000002"].document_id is None

    def test_duplicate_document_key_rejected(self, session, importer, period):
        """A repeated key is refused; lines stay on the first document."""
        result = importer.import_ledger(
            "ledger",
            [
                RawLedgerDocument(key="A", number="1"),
                RawLedgerDocument(key="A", number="2"),
            ],
            [RawEntryLine("A", "1", "1", "1")],
            period_id=period.id,
        )

        assert [(r.code, r.row, r.field) for r in result.rejected] == [
            ("DUPLICATE_DOCUMENT_KEY", 2, "key"),
        ]
        selector = LineSelector(session)
        documents = selector.ledger_documents(result.batch_id)
        assert [d.number for d in documents] == ["1"]
        assert selector.entry_lines(result.batch_id)[0].document_id == documents[0].id

    def test_conversion_without_unit_rejected(self, importer, period):
        result = importer.import_ledger(
            "ledger",
            [],
            [],
            conversions=[RawUnitConversion("1", " ", "12")],
            period_id=period.id,
        )

        assert [r.code for r in result.rejected] == ["MISSING_UNIT"]

    def test_blank_factor_kept_as_none(self, session, importer, period):
        result = importer.import_ledger(
            "ledger",
            [],
            [],
            conversions=[RawUnitConversion("1", "CX", "")],
            period_id=period.id,
        )

        assert LineSelector(session).unit_conversions(result.batch_id)[0].factor is None


class TestInvoiceImport:
    def test_imports_exit_lines(self, session, importer, period):
        result = importer.import_invoices(
            "jan",
            [RawExitLine("1", "-2", "10", "UN", "Soap", invoice_key="NF-1")],
            period_id=period.id,
            is_base=True,
        )

        line = next(LineSelector(session).iter_exit_lines([result.batch_id]))
        assert line.cod_item == "000001"
        assert line.quantity == Decimal("-2")

    def test_logs_rejections_at_warning(self, importer, captured_logs):
        importer.import_invoices("jan", [RawExitLine(None, "1", "1")])

        record = next(r for r in captured_logs() if r["message"] == "batch_imported")
        assert record["level"] == "WARNING"
        assert record["rejected"] == 1


class TestCatalogImport:
    def test_upsert_by_code(self, session, importer):
        importer.import_catalog([RawCatalogProduct("1", "Rice", "KG")])
        result = importer.import_catalog([
            RawCatalogProduct("01", "Rice 5kg", "PCT"),
            RawCatalogProduct("2", "Beans", "KG"),
        ])

        assert result.batch_id is None
        assert result.accepted == 2
        products = CatalogSelector(session).products()
        assert products["000001"].description == "Rice 5kg"
        assert products["000001"].unit == "PCT"
        assert set(products) == {"000001", "000002"}

    def test_later_record_wins_within_import(self, session, importer):
        importer.import_catalog([
            RawCatalogProduct("1", "First", "UN"),
            RawCatalogProduct("1", "Second", "UN"),
        ])

        assert CatalogSelector(session).products()["000001"].description == "Second"

    @pytest.mark.parametrize("code", [None, "  "])
    def test_empty_code_rejected(self, importer, code):
        result = importer.import_catalog([RawCatalogProduct(code, "x", "UN")])

        assert result.accepted == 0
        assert result.rejected[0].code == "INVALID_ITEM_CODE"
