"""
Module: inventory_kernel.models.audit_entry
Responsibility: Append-only audit trail of every catalogue mutation.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Rows are never updated or deleted (db/immutability.py).
    - quantity_delta is set only for ADJUST_STOCK entries.
    - id is assigned in insertion order; readers use it to break
      timestamp ties.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import AppendOnlyBase, UTCDateTime, UUIDString


class AuditAction(str, Enum):
    """Kinds of catalogue mutation the audit trail records."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    ADJUST_STOCK = "ADJUST_STOCK"
    PRICE_UPDATE = "PRICE_UPDATE"


class AuditEntry(AppendOnlyBase):
    """
    One recorded change to an item.

    ``old_value``/``new_value`` are text: quantities for ADJUST_STOCK, prices
    for PRICE_UPDATE, JSON snapshots for CREATE and combined UPDATE entries.
    """

    __tablename__ = "catalogue_audit_log"

    __table_args__ = (
        Index("idx_audit_item_recorded", "item_id", "recorded_at"),
        Index("idx_audit_action", "action"),
    )

    item_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("inventory_items.id"),
        nullable=False,
    )

    actor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    action: Mapped[str] = mapped_column(String(20), nullable=False)

    field_changed: Mapped[str | None] = mapped_column(String(255), nullable=True)

    old_value: Mapped[str | None] = mapped_column(Text, nullable=True)

    new_value: Mapped[str | None] = mapped_column(Text, nullable=True)

    quantity_delta: Mapped[int | None] = mapped_column(Integer, nullable=True)

    reason: Mapped[str | None] = mapped_column(String(255), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    recorded_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    def __repr__(self) -> str:
        return f"<AuditEntry {self.id} {self.action} item={self.item_id}>"
