"""
Sales import tests.

Verifies:
- Each sales row becomes one "Inventory Adjustment" removal
- Bad rows are reported with row numbers and do not block good rows
- CSV (with BOM) and XLSX files are both accepted
"""

import io

import openpyxl
import pytest
from sqlalchemy import select

from inventory_kernel.ingestion.sales_import import (
    import_sales_csv,
    import_sales_file,
    import_sales_xlsx,
)
from inventory_kernel.models.audit_entry import AuditAction, AuditEntry
from inventory_kernel.selectors.item_selector import load_item


def _quantity(session, ref):
    return load_item(session, ref).quantity_on_hand


def _write_xlsx(path, rows):
    wb = openpyxl.Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    wb.save(path)
    return path


class TestCsvImport:
    def test_rows_applied(self, session, ledger, make_item, test_actor_id):
        a = make_item(quantity=10, item_code="978-1-11")
        b = make_item(quantity=4, item_code="978-2-22")
        data = "item_id,quantity_sold\n978-1-11,3\n978-2-22,4\n"

        summary = import_sales_csv(io.StringIO(data), ledger, test_actor_id, "sales.csv")

        assert summary.processed == 2
        assert summary.successful == 2
        assert summary.errors == []
        assert _quantity(session, a) == 7
        assert _quantity(session, b) == 0

    def test_audit_entry_reason_and_notes(self, session, ledger, make_item, test_actor_id):
        ref = make_item(quantity=10, item_code="SKU1")
        data = "item_id,quantity_sold\nSKU1,2\n"

        import_sales_csv(io.StringIO(data), ledger, test_actor_id, "march.csv")

        entry = session.execute(
            select(AuditEntry).where(
                AuditEntry.item_id == load_item(session, ref).id,
                AuditEntry.action == AuditAction.ADJUST_STOCK.value,
            )
        ).scalar_one()
        assert entry.reason == "Inventory Adjustment"
        assert entry.notes == "Sales import: march.csv (row 2)"
        assert entry.quantity_delta == -2

    def test_errors_reported_per_row(self, session, ledger, make_item, test_actor_id):
        ok = make_item(quantity=5, item_code="OK1")
        short = make_item(quantity=1, item_code="SHORT1")
        data = (
            "item_id,quantity_sold\n"
            "OK1,2\n"
            ",3\n"
            "GHOST,1\n"
            "SHORT1,5\n"
            "OK1,abc\n"
            "OK1,-1\n"
            "OK1,0\n"
            "OK1,1\n"
        )

        summary = import_sales_csv(io.StringIO(data), ledger, test_actor_id, "s.csv")

        assert summary.processed == 8
        assert summary.successful == 2
        assert summary.skipped == 1
        assert [(e.row_number, e.code) for e in summary.errors] == [
            (3, "MISSING_ITEM_ID"),
            (4, "ITEM_NOT_FOUND"),
            (5, "NEGATIVE_STOCK_REJECTED"),
            (6, "INVALID_QUANTITY"),
            (7, "INVALID_QUANTITY"),
        ]
        assert _quantity(session, ok) == 2
        assert _quantity(session, short) == 1

    def test_quantity_sc_column(self, session, ledger, make_item, test_actor_id):
        ref = make_item(quantity=3, item_code="SC1")
        data = "item_id,title,quantity_sc\nSC1,Reader,1\n"
        import_sales_csv(io.StringIO(data), ledger, test_actor_id, "s.csv")
        assert _quantity(session, ref) == 2

    def test_blank_rows_ignored(self, ledger, make_item, test_actor_id):
        make_item(quantity=3, item_code="B1")
        data = "item_id,quantity_sold\n,\nB1,1\n"
        summary = import_sales_csv(io.StringIO(data), ledger, test_actor_id, "s.csv")
        assert summary.processed == 1
        assert summary.successful == 1

    @pytest.mark.parametrize(
        "header", ["sku,quantity_sold\n", "item_id,qty\n", ""]
    )
    def test_missing_columns(self, ledger, test_actor_id, header):
        with pytest.raises(ValueError):
            import_sales_csv(io.StringIO(header), ledger, test_actor_id, "s.csv")


class TestFileImport:
    def test_csv_file_with_bom(self, tmp_path, session, ledger, make_item, test_actor_id):
        ref = make_item(quantity=6, item_code="BOM1")
        path = tmp_path / "sales.csv"
        path.write_bytes("\ufeffitem_id,quantity_sold\nBOM1,2\n".encode("utf-8"))

        summary = import_sales_file(path, ledger, test_actor_id)

        assert summary.source_name == "sales.csv"
        assert summary.successful == 1
        assert _quantity(session, ref) == 4

    def test_xlsx_file(self, tmp_path, session, ledger, make_item, test_actor_id):
        a = make_item(quantity=6, item_code="X1")
        b = make_item(quantity=6, item_code="X2")
        path = _write_xlsx(
            tmp_path / "sales.xlsx",
            [
                ["item_id", "quantity_sold"],
                ["X1", 2],
                [None, None],
                ["X2", 6.0],
                ["X3", 1],
            ],
        )

        summary = import_sales_file(path, ledger, test_actor_id)

        assert summary.successful == 2
        assert [(e.row_number, e.code) for e in summary.errors] == [(5, "ITEM_NOT_FOUND")]
        assert _quantity(session, a) == 4
        assert _quantity(session, b) == 0

    def test_xlsx_numeric_item_ids(self, tmp_path, session, ledger, make_item, test_actor_id):
        ref = make_item(quantity=2, item_code="9780131103627")
        path = _write_xlsx(
            tmp_path / "isbn.xlsx",
            [["item_id", "quantity_sold"], [9780131103627, 1]],
        )
        import_sales_xlsx(path, ledger, test_actor_id)
        assert _quantity(session, ref) == 1

    def test_empty_workbook(self, tmp_path, ledger, test_actor_id):
        path = tmp_path / "empty.xlsx"
        openpyxl.Workbook().save(path)
        with pytest.raises(ValueError):
            import_sales_xlsx(path, ledger, test_actor_id)
