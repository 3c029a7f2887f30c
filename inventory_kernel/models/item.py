"""
Module: inventory_kernel.models.item
Responsibility: ORM persistence for catalogue items and their current stock.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/item_ref.py only.

Invariants enforced:
    - quantity_on_hand >= 0 (CHECK constraint; StockLedgerService rejects
      before the database would).
    - reorder_level >= 0 (CHECK constraint).
    - item_code is unique across both reference sources.

Failure modes:
    - IntegrityError on duplicate item_code or a CHECK violation.
"""

from decimal import Decimal

from sqlalchemy import CheckConstraint, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Price, TrackedBase
from inventory_kernel.domain.item_ref import ItemRef, ItemSource


class InventoryItem(TrackedBase):
    """
    A catalogue entry with its on-hand quantity, reorder threshold and price.

    Quantity is only ever mutated by StockLedgerService.  Price and
    descriptive fields are mutated by CatalogueService.  ``grade_level`` is
    advisory metadata derived from the name.
    """

    __tablename__ = "inventory_items"

    __table_args__ = (
        CheckConstraint("quantity_on_hand >= 0", name="ck_item_quantity_non_negative"),
        CheckConstraint("reorder_level >= 0", name="ck_item_reorder_level_non_negative"),
        Index("idx_item_source_code", "ref_source", "item_code"),
        Index("idx_item_grade", "grade_level"),
    )

    item_code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    # ItemSource value: "generated" or "external"
    ref_source: Mapped[str] = mapped_column(String(20), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    category: Mapped[str | None] = mapped_column(String(100), nullable=True)

    grade_level: Mapped[str | None] = mapped_column(String(50), nullable=True)

    unit_price: Mapped[Decimal] = mapped_column(Price, nullable=False)

    quantity_on_hand: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    reorder_level: Mapped[int] = mapped_column(Integer, nullable=False, default=10)

    @property
    def ref(self) -> ItemRef:
        """The tagged reference callers use to address this item."""
        return ItemRef(ItemSource(self.ref_source), self.item_code)

    @property
    def is_below_threshold(self) -> bool:
        return self.reorder_level > 0 and self.quantity_on_hand < self.reorder_level

    def __repr__(self) -> str:
        return f"<InventoryItem {self.ref_source}:{self.item_code} qty={self.quantity_on_hand}>"
