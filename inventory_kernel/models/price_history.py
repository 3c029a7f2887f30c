"""
Module: inventory_kernel.models.price_history
Responsibility: Authoritative, append-only timeline of item price changes.
Architecture position: Kernel > Models.  May import from db/base.py only.

Every price change writes one row here and one PRICE_UPDATE audit entry in
the same transaction.  History readers treat this table as the source of
truth for prices.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import AppendOnlyBase, Price, UTCDateTime, UUIDString


class PriceHistoryEntry(AppendOnlyBase):
    """One price change for one item."""

    __tablename__ = "price_history"

    __table_args__ = (
        Index("idx_price_history_item_changed", "item_id", "changed_at"),
    )

    item_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("inventory_items.id"),
        nullable=False,
    )

    old_price: Mapped[Decimal] = mapped_column(Price, nullable=False)

    new_price: Mapped[Decimal] = mapped_column(Price, nullable=False)

    changed_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    changed_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    def __repr__(self) -> str:
        return f"<PriceHistoryEntry {self.id} {self.old_price} -> {self.new_price}>"
