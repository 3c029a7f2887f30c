"""
Module: inventory_kernel.models.alert
Responsibility: Low-stock alerts and their append-only transition history.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - At most one non-resolved alert per item: partial unique index
      ``uq_alert_open_per_item`` (PostgreSQL and SQLite both honour the
      WHERE clause), backed by the item row lock the AlertEngine takes.
    - ``resolved`` is terminal.  A later breach creates a new alert row.
    - AlertHistoryEntry rows are never updated or deleted.

Lifecycle:
    pending -> acknowledged -> reorder_initiated -> resolved
    (any open state may move to any other state, including resolved)
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import AppendOnlyBase, Base, UTCDateTime, UUIDString


class AlertStatus(str, Enum):
    """Alert workflow states."""

    PENDING = "pending"
    ACKNOWLEDGED = "acknowledged"
    REORDER_INITIATED = "reorder_initiated"
    RESOLVED = "resolved"

    @classmethod
    def values(cls) -> list[str]:
        return [s.value for s in cls]


OPEN_STATUSES: tuple[str, ...] = (
    AlertStatus.PENDING.value,
    AlertStatus.ACKNOWLEDGED.value,
    AlertStatus.REORDER_INITIATED.value,
)

_OPEN_PREDICATE = text("status <> 'resolved'")


class LowStockAlert(Base):
    """
    A low-stock alert for one item.

    ``threshold`` and ``current_quantity`` are snapshots taken when the alert
    was raised.  Sweeps that find the alert still open only refresh
    ``last_updated``.
    """

    __tablename__ = "low_stock_alerts"

    __table_args__ = (
        Index(
            "uq_alert_open_per_item",
            "item_id",
            unique=True,
            postgresql_where=_OPEN_PREDICATE,
            sqlite_where=_OPEN_PREDICATE,
        ),
        Index("idx_alert_status", "status"),
    )

    item_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("inventory_items.id"),
        nullable=False,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=AlertStatus.PENDING.value,
    )

    is_critical: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    threshold: Mapped[int] = mapped_column(Integer, nullable=False)

    current_quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    created_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    last_updated: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    acknowledged_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    acknowledged_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    resolved_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    @property
    def is_open(self) -> bool:
        return self.status != AlertStatus.RESOLVED.value

    def __repr__(self) -> str:
        return f"<LowStockAlert {self.id} item={self.item_id} {self.status}>"


class AlertHistoryEntry(AppendOnlyBase):
    """One recorded status transition of an alert."""

    __tablename__ = "low_stock_history"

    __table_args__ = (
        Index("idx_alert_history_alert", "alert_id"),
    )

    alert_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("low_stock_alerts.id"),
        nullable=False,
    )

    status: Mapped[str] = mapped_column(String(20), nullable=False)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    actor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    recorded_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    def __repr__(self) -> str:
        return f"<AlertHistoryEntry {self.id} alert={self.alert_id} {self.status}>"
