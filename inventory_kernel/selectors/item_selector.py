"""
Module: inventory_kernel.selectors.item_selector
Responsibility: Resolve ItemRef values to catalogue rows, and read-only item
    snapshots for callers.
Architecture position: Kernel > Selectors.

``load_item`` is the single lookup routine every service and selector uses,
so generated and external references resolve the same way everywhere.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.domain.item_ref import ItemRef
from inventory_kernel.exceptions import ItemNotFoundError
from inventory_kernel.models.item import InventoryItem
from inventory_kernel.selectors.base import BaseSelector


def load_item(
    session: Session,
    item_ref: ItemRef,
    *,
    for_update: bool = False,
) -> InventoryItem:
    """
    Fetch the item addressed by ``item_ref`` with a fresh read.

    With ``for_update=True`` the row is locked (SELECT ... FOR UPDATE) until
    the surrounding transaction ends.

    Raises:
        ItemNotFoundError: no item matches both source and code.
    """
    stmt = select(InventoryItem).where(
        InventoryItem.ref_source == item_ref.source.value,
        InventoryItem.item_code == item_ref.code,
    )
    if for_update:
        stmt = stmt.with_for_update()
    stmt = stmt.execution_options(populate_existing=True)
    item = session.execute(stmt).scalar_one_or_none()
    if item is None:
        raise ItemNotFoundError(str(item_ref))
    return item


def lock_item_by_id(session: Session, item_id: UUID) -> InventoryItem:
    """Lock and fresh-read an item by primary key (sweep paths)."""
    stmt = (
        select(InventoryItem)
        .where(InventoryItem.id == item_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return session.execute(stmt).scalar_one()


@dataclass(frozen=True)
class ItemDTO:
    """Read-only snapshot of a catalogue item."""

    id: UUID
    ref: ItemRef
    name: str
    category: str | None
    grade_level: str | None
    unit_price: Decimal
    quantity_on_hand: int
    reorder_level: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, item: InventoryItem) -> "ItemDTO":
        return cls(
            id=item.id,
            ref=item.ref,
            name=item.name,
            category=item.category,
            grade_level=item.grade_level,
            unit_price=item.unit_price,
            quantity_on_hand=item.quantity_on_hand,
            reorder_level=item.reorder_level,
            created_at=item.created_at,
            updated_at=item.updated_at,
        )


class ItemSelector(BaseSelector):
    """Read-only access to catalogue items."""

    def get_item(self, item_ref: ItemRef) -> ItemDTO:
        """Raises ItemNotFoundError when the reference does not resolve."""
        return ItemDTO.from_model(load_item(self.session, item_ref))

    def find_item(self, item_ref: ItemRef) -> ItemDTO | None:
        try:
            return self.get_item(item_ref)
        except ItemNotFoundError:
            return None

    def list_below_threshold(self) -> list[ItemDTO]:
        """Items with a positive reorder level and quantity under it."""
        stmt = (
            select(InventoryItem)
            .where(
                InventoryItem.reorder_level > 0,
                InventoryItem.quantity_on_hand < InventoryItem.reorder_level,
            )
            .order_by(InventoryItem.quantity_on_hand, InventoryItem.item_code)
        )
        return [ItemDTO.from_model(i) for i in self.session.execute(stmt).scalars()]
