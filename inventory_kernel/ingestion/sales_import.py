"""
Sales import -- removes sold quantities through the stock ledger.

Reads a sales export (``item_id`` plus ``quantity_sold`` or ``quantity_sc``
columns) from CSV (csv.DictReader) or XLSX (openpyxl) and applies one
removal per row via ``StockLedgerService.adjust_stock`` with reason
"Inventory Adjustment".

Rows never clamp stock: a row that would go negative, names an unknown
item or carries a bad quantity is reported in ``SalesImportSummary.errors``
and the other rows still apply.  Rows with a zero or blank quantity are
skipped.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Iterable, Iterator, Sequence
from uuid import UUID

import openpyxl

from inventory_kernel.domain.item_ref import ItemRef
from inventory_kernel.exceptions import InventoryKernelError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.services.stock_ledger_service import StockLedgerService

logger = get_logger("ingestion.sales")

SALES_REASON = "Inventory Adjustment"
ITEM_COLUMN = "item_id"
QUANTITY_COLUMNS = ("quantity_sold", "quantity_sc")


@dataclass(frozen=True)
class SalesRowError:
    row_number: int
    item_id: str | None
    code: str
    message: str


@dataclass
class SalesImportSummary:
    source_name: str
    processed: int = 0
    successful: int = 0
    skipped: int = 0
    errors: list[SalesRowError] = field(default_factory=list)


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value == int(value):
        value = int(value)
    return str(value).strip()


def _parse_quantity(raw: Any) -> int:
    text = _cell_text(raw)
    if not text:
        return 0
    quantity = int(text)
    if quantity < 0:
        raise ValueError(f"negative quantity {quantity}")
    return quantity


def _quantity_column(columns: Sequence[str]) -> str:
    if ITEM_COLUMN not in columns:
        raise ValueError(f"sales file is missing the {ITEM_COLUMN!r} column")
    for name in QUANTITY_COLUMNS:
        if name in columns:
            return name
    raise ValueError(f"sales file needs one of the columns {QUANTITY_COLUMNS}")


def import_sales_rows(
    rows: Iterable[dict[str, Any]],
    columns: Sequence[str],
    ledger: StockLedgerService,
    actor_id: UUID,
    source_name: str,
) -> SalesImportSummary:
    """
    Apply parsed sales rows to the ledger.  Row numbers count the header as
    row 1.

    Raises:
        ValueError: ``columns`` lacks the item or quantity column.
    """
    quantity_column = _quantity_column(columns)
    summary = SalesImportSummary(source_name=source_name)
    logger.info("sales_import_started", extra={"source_name": source_name})

    for row_number, row in enumerate(rows, start=2):
        if not any(_cell_text(v) for v in row.values()):
            continue
        summary.processed += 1
        item_id = _cell_text(row.get(ITEM_COLUMN)) or None
        if item_id is None:
            summary.errors.append(
                SalesRowError(row_number, None, "MISSING_ITEM_ID", "item_id is empty")
            )
            continue

        try:
            item_ref = ItemRef.external(item_id)
        except ValueError as exc:
            summary.errors.append(
                SalesRowError(row_number, item_id, "INVALID_ITEM_ID", str(exc))
            )
            continue

        try:
            quantity = _parse_quantity(row.get(quantity_column))
        except ValueError as exc:
            summary.errors.append(
                SalesRowError(row_number, item_id, "INVALID_QUANTITY", str(exc))
            )
            continue

        if quantity == 0:
            summary.skipped += 1
            continue

        try:
            ledger.adjust_stock(
                item_ref,
                -quantity,
                SALES_REASON,
                actor_id,
                notes=f"Sales import: {source_name} (row {row_number})",
            )
        except InventoryKernelError as exc:
            summary.errors.append(SalesRowError(row_number, item_id, exc.code, str(exc)))
            continue
        summary.successful += 1

    logger.info(
        "sales_import_completed",
        extra={
            "source_name": source_name,
            "processed": summary.processed,
            "successful": summary.successful,
            "skipped": summary.skipped,
            "errors": len(summary.errors),
        },
    )
    return summary


def import_sales_csv(
    stream: IO[str],
    ledger: StockLedgerService,
    actor_id: UUID,
    source_name: str,
) -> SalesImportSummary:
    """Import a sales CSV read from ``stream``."""
    reader = csv.DictReader(stream)
    return import_sales_rows(reader, reader.fieldnames or [], ledger, actor_id, source_name)


def _xlsx_rows(path: Path) -> tuple[list[str], Iterator[dict[str, Any]]]:
    wb = openpyxl.load_workbook(path, read_only=True, data_only=True)
    try:
        rows = list(wb.active.iter_rows(values_only=True))
    finally:
        wb.close()
    if not rows:
        return [], iter(())
    headers = [_cell_text(v) for v in rows[0]]
    return headers, (dict(zip(headers, values)) for values in rows[1:])


def import_sales_xlsx(
    path: Path,
    ledger: StockLedgerService,
    actor_id: UUID,
    source_name: str | None = None,
) -> SalesImportSummary:
    """Import the active sheet of an .xlsx sales export (first row is the header)."""
    headers, rows = _xlsx_rows(Path(path))
    return import_sales_rows(
        rows, headers, ledger, actor_id, source_name or Path(path).name
    )


def import_sales_file(
    path: Path,
    ledger: StockLedgerService,
    actor_id: UUID,
) -> SalesImportSummary:
    """Import ``path`` as XLSX or CSV (BOM tolerant) by its extension."""
    path = Path(path)
    if path.suffix.lower() == ".xlsx":
        return import_sales_xlsx(path, ledger, actor_id)
    with path.open("r", encoding="utf-8-sig", newline="") as f:
        return import_sales_csv(f, ledger, actor_id, source_name=path.name)
