#!/usr/bin/env python3
"""
Run the low-stock threshold sweep: raise or refresh alerts for every item
under its reorder level, and optionally resolve alerts for recovered items.

Usage:
    python3 scripts/run_threshold_sweep.py [--config settings.yaml] [options]

Examples:
    # Sweep using INVENTORY_DATABASE_URL or the packaged default database
    python3 scripts/run_threshold_sweep.py

    # Also resolve alerts whose items were restocked
    python3 scripts/run_threshold_sweep.py --resolve-recovered

    # List open alerts for one grade after the sweep
    python3 scripts/run_threshold_sweep.py --show-open --grade "Grade 3"
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
        description="Evaluate low-stock thresholds and maintain alerts.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML settings file overlaid on the packaged defaults.",
    )
    parser.add_argument(
        "--db-url",
        default=None,
        help="Database URL (default: from settings).",
    )
    parser.add_argument(
        "--actor-id",
        default=None,
        help="Actor UUID recorded on alerts (default: SWEEP_ACTOR_ID env or new UUID).",
    )
    parser.add_argument(
        "--resolve-recovered",
        action="store_true",
        help="Resolve open alerts whose items are back above the recovery margin.",
    )
    parser.add_argument(
        "--show-open",
        action="store_true",
        help="Print open alerts after the sweep.",
    )
    parser.add_argument(
        "--grade",
        default=None,
        help="Restrict --show-open to one grade level.",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before sweeping (development databases).",
    )
    return parser.parse_args()


def main() -> int:
    args = _parse_args()

    # Lazy imports so we fail fast on args first
    from inventory_kernel.config import load_settings
    from inventory_kernel.db.engine import create_tables, get_session, init_engine_from_url
    from inventory_kernel.db.immutability import register_immutability_listeners
    from inventory_kernel.domain.clock import SystemClock
    from inventory_kernel.exceptions import InventoryKernelError
    from inventory_kernel.logging_config import configure_logging
    from inventory_kernel.selectors.alert_selector import AlertSelector
    from inventory_kernel.services.alert_engine import AlertEngine

    try:
        settings = load_settings(args.config)
    except (OSError, ValueError) as e:
        print(f"ERROR: Failed to load settings: {e}", file=sys.stderr)
        return 1

    configure_logging(level=settings.log_level)
    actor_id = (
        UUID(args.actor_id)
        if args.actor_id
        else UUID(os.environ.get("SWEEP_ACTOR_ID", str(uuid4())))
    )

    init_engine_from_url(
        args.db_url or settings.database_url,
        echo=settings.echo_sql,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
    )
    if args.create_tables:
        create_tables()
    register_immutability_listeners()

    session = get_session()
    try:
        engine = AlertEngine(session, clock=SystemClock(), settings=settings)
        result = engine.evaluate_thresholds(actor_id)
        print(
            f"Low-stock items: {result.total_low_stock}  "
            f"created: {result.alerts_created}  refreshed: {result.alerts_updated}"
        )

        if args.resolve_recovered:
            resolved = engine.resolve_recovered(actor_id)
            print(f"Resolved recovered alerts: {resolved}")

        if args.show_open:
            alerts = AlertSelector(session).list_open_alerts(grade_level=args.grade)
            for a in alerts:
                flag = "CRITICAL" if a.is_critical else ""
                print(
                    f"  {a.status:<18} {flag:<8} {a.item_ref}  "
                    f"qty={a.quantity_on_hand}/{a.reorder_level}  {a.item_name}"
                )
            if not alerts:
                print("  (no open alerts)")
    except InventoryKernelError as e:
        print(f"ERROR [{e.code}]: {e}", file=sys.stderr)
        return 1
    finally:
        session.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
