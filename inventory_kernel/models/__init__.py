"""
SQLAlchemy ORM models for the inventory kernel.

Importing this package registers every table on ``Base.metadata``.
"""

from inventory_kernel.models.alert import (
    OPEN_STATUSES,
    AlertHistoryEntry,
    AlertStatus,
    LowStockAlert,
)
from inventory_kernel.models.audit_entry import AuditAction, AuditEntry
from inventory_kernel.models.item import InventoryItem
from inventory_kernel.models.price_history import PriceHistoryEntry

__all__ = [
    "InventoryItem",
    "AuditAction",
    "AuditEntry",
    "PriceHistoryEntry",
    "AlertStatus",
    "OPEN_STATUSES",
    "LowStockAlert",
    "AlertHistoryEntry",
]
