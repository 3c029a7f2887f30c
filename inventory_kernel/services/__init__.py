"""
Kernel services -- the write side.

Each service takes a Session (plus optional Clock and LedgerSettings) and
runs every public operation in its own savepoint.
"""

from inventory_kernel.services.alert_engine import (
    AlertEngine,
    AlertTransition,
    SweepResult,
    ThresholdResult,
)
from inventory_kernel.services.catalogue_service import (
    EDITABLE_FIELDS,
    CatalogueService,
    ItemUpdateResult,
)
from inventory_kernel.services.stock_ledger_service import (
    AdjustmentRequest,
    BulkAdjustmentOutcome,
    StockAdjustment,
    StockLedgerService,
)

__all__ = [
    "AlertEngine",
    "AlertTransition",
    "SweepResult",
    "ThresholdResult",
    "CatalogueService",
    "ItemUpdateResult",
    "EDITABLE_FIELDS",
    "StockLedgerService",
    "StockAdjustment",
    "AdjustmentRequest",
    "BulkAdjustmentOutcome",
]
