"""
Module: inventory_kernel.selectors.history_selector
Responsibility: Merged, newest-first change history of one item drawn from
    the audit trail and the price history.
Architecture position: Kernel > Selectors.

Merge policy:
    - Price changes come from ``price_history`` only.  Audit entries with
      action PRICE_UPDATE are always left out, so each price change appears
      once.
    - Order: timestamp descending.  On an exact timestamp tie audit records
      come before price records, each source by insertion id descending.
    - At most ``history_page_size`` records (or ``limit`` if smaller).

ItemHistory is lazy and restartable: each iteration runs fresh queries in
the caller's session, so it reflects whatever that transaction can see at
that moment.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterator
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.config import LedgerSettings
from inventory_kernel.domain.item_ref import ItemRef
from inventory_kernel.models.audit_entry import AuditAction, AuditEntry
from inventory_kernel.models.price_history import PriceHistoryEntry
from inventory_kernel.selectors.base import BaseSelector
from inventory_kernel.selectors.item_selector import load_item


class HistorySource(str, Enum):
    AUDIT = "audit"
    PRICE = "price_history"


@dataclass(frozen=True)
class HistoryRecord:
    """One row of an item's merged history."""

    source: HistorySource
    entry_id: int
    timestamp: datetime
    action: str
    actor_id: UUID
    field_changed: str | None
    old_value: str | None
    new_value: str | None
    quantity_delta: int | None = None
    reason: str | None = None
    notes: str | None = None


class ItemHistory:
    """Lazy, finite, restartable view of one item's history."""

    def __init__(self, session: Session, item_id: UUID, item_ref: ItemRef, limit: int):
        self._session = session
        self.item_id = item_id
        self.item_ref = item_ref
        self.limit = limit

    def _audit_records(self) -> list[HistoryRecord]:
        stmt = (
            select(AuditEntry)
            .where(
                AuditEntry.item_id == self.item_id,
                AuditEntry.action != AuditAction.PRICE_UPDATE.value,
            )
            .order_by(AuditEntry.recorded_at.desc(), AuditEntry.id.desc())
            .limit(self.limit)
        )
        return [
            HistoryRecord(
                source=HistorySource.AUDIT,
                entry_id=e.id,
                timestamp=e.recorded_at,
                action=e.action,
                actor_id=e.actor_id,
                field_changed=e.field_changed,
                old_value=e.old_value,
                new_value=e.new_value,
                quantity_delta=e.quantity_delta,
                reason=e.reason,
                notes=e.notes,
            )
            for e in self._session.execute(stmt).scalars()
        ]

    def _price_records(self) -> list[HistoryRecord]:
        stmt = (
            select(PriceHistoryEntry)
            .where(PriceHistoryEntry.item_id == self.item_id)
            .order_by(PriceHistoryEntry.changed_at.desc(), PriceHistoryEntry.id.desc())
            .limit(self.limit)
        )
        return [
            HistoryRecord(
                source=HistorySource.PRICE,
                entry_id=p.id,
                timestamp=p.changed_at,
                action=AuditAction.PRICE_UPDATE.value,
                actor_id=p.changed_by_id,
                field_changed="price",
                old_value=str(p.old_price),
                new_value=str(p.new_price),
            )
            for p in self._session.execute(stmt).scalars()
        ]

    def __iter__(self) -> Iterator[HistoryRecord]:
        records = self._audit_records() + self._price_records()
        records.sort(
            key=lambda r: (r.timestamp, r.source is HistorySource.AUDIT, r.entry_id),
            reverse=True,
        )
        return iter(records[: self.limit])


class HistorySelector(BaseSelector):
    """Read access to item change history."""

    def __init__(self, session: Session, settings: LedgerSettings | None = None):
        super().__init__(session)
        self._settings = settings or LedgerSettings()

    def get_history(self, item_ref: ItemRef, limit: int | None = None) -> ItemHistory:
        """
        History of one item, newest first.

        Raises:
            ItemNotFoundError: the reference does not resolve.
            ValueError: ``limit`` is not positive.
        """
        page_size = self._settings.history_page_size
        if limit is not None:
            if limit < 1:
                raise ValueError(f"limit must be positive, got {limit}")
            page_size = min(limit, page_size)
        item = load_item(self.session, item_ref)
        return ItemHistory(self.session, item.id, item.ref, page_size)
