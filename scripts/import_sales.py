#!/usr/bin/env python3
"""
Apply a sales file (CSV or XLSX) to stock: each row removes ``quantity_sold`` units of
``item_id`` through the stock ledger.

Usage:
    python3 scripts/import_sales.py --file Sales_by_Item.csv [options]
    python3 scripts/import_sales.py --file march_sales.xlsx

Rows that would take stock below zero or name unknown items are reported
and skipped; the remaining rows still apply.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from uuid import UUID, uuid4

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Remove sold quantities from stock using a sales CSV or XLSX file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--file", required=True, type=Path, help="Path to the sales CSV or XLSX file.")
    parser.add_argument("--config", type=Path, default=None, help="YAML settings file.")
    parser.add_argument("--db-url", default=None, help="Database URL (default: from settings).")
    parser.add_argument(
        "--actor-id",
        default=None,
        help="Actor UUID for audit (default: IMPORT_ACTOR_ID env or new UUID).",
    )
    return parser.parse_args()


def main() -> int:
    args = _parse_args()

    source_path = args.file.resolve()
    if not source_path.is_file():
        print(f"ERROR: File not found: {source_path}", file=sys.stderr)
        return 1

    from inventory_kernel.config import load_settings
    from inventory_kernel.db.engine import get_session, init_engine_from_url
    from inventory_kernel.db.immutability import register_immutability_listeners
    from inventory_kernel.domain.clock import SystemClock
    from inventory_kernel.ingestion.sales_import import import_sales_file
    from inventory_kernel.logging_config import configure_logging
    from inventory_kernel.services.stock_ledger_service import StockLedgerService

    try:
        settings = load_settings(args.config)
    except (OSError, ValueError) as e:
        print(f"ERROR: Failed to load settings: {e}", file=sys.stderr)
        return 1

    configure_logging(level=settings.log_level)
    actor_id = (
        UUID(args.actor_id)
        if args.actor_id
        else UUID(os.environ.get("IMPORT_ACTOR_ID", str(uuid4())))
    )
    init_engine_from_url(args.db_url or settings.database_url, echo=settings.echo_sql)
    register_immutability_listeners()

    session = get_session()
    try:
        ledger = StockLedgerService(session, clock=SystemClock(), settings=settings)
        try:
            summary = import_sales_file(source_path, ledger, actor_id)
        except ValueError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1
    finally:
        session.close()

    print(f"Processed: {summary.processed}")
    print(f"Applied:   {summary.successful}")
    print(f"Skipped:   {summary.skipped}")
    print(f"Errors:    {len(summary.errors)}")
    for err in summary.errors[:20]:
        print(f"  Row {err.row_number} [{err.code}] {err.item_id}: {err.message}")
    if len(summary.errors) > 20:
        print(f"  ... and {len(summary.errors) - 20} more.")
    return 0 if not summary.errors else 2


if __name__ == "__main__":
    sys.exit(main())
