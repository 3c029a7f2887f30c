"""
CatalogueService -- item creation and descriptive/price edits.

Responsibility:
    Creates catalogue items and applies partial edits to name, category,
    reorder level and price.  Every change is written to the audit trail;
    price changes also go to the authoritative price history.

Architecture position:
    Kernel > Services.  Never touches quantity_on_hand after creation
    (StockLedgerService owns it).

Audit rules:
    - Price differs              -> one PRICE_UPDATE entry + one price-history row.
    - Only other fields differ   -> one combined UPDATE entry with JSON
                                    snapshots of the changed fields.
    - Price and other fields     -> every field persisted, only the
                                    PRICE_UPDATE entry + price-history row.
    - Nothing differs            -> no writes.

Failure modes:
    - InvalidFieldError for keys outside the editable set.
    - InvalidPriceError / InvalidThresholdError for bad values.
    - ItemNotFoundError, DuplicateIdentifierError, StorageFailureError.
"""

import json
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from inventory_kernel.domain.grade import extract_grade
from inventory_kernel.domain.item_ref import ItemRef
from inventory_kernel.domain.values import parse_price
from inventory_kernel.exceptions import (
    DuplicateIdentifierError,
    InvalidFieldError,
    InvalidThresholdError,
    InventoryKernelError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.audit_entry import AuditAction, AuditEntry
from inventory_kernel.models.item import InventoryItem
from inventory_kernel.models.price_history import PriceHistoryEntry
from inventory_kernel.selectors.item_selector import load_item
from inventory_kernel.services.base import BaseService

logger = get_logger("services.catalogue")

EDITABLE_FIELDS: tuple[str, ...] = ("name", "category", "reorder_level", "price")

_SLUG_MAX = 24
_SLUG_STRIP = re.compile(r"[^A-Z0-9]")


@dataclass(frozen=True)
class ItemUpdateResult:
    changed_fields: tuple[str, ...]
    price_changed: bool


def validate_threshold(value: object) -> int:
    """Reorder levels are non-negative ints."""
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise InvalidThresholdError(value)
    return value


def generate_item_code(name: str, now) -> str:
    """Slug of the name plus a UTC second-resolution suffix."""
    slug = _SLUG_STRIP.sub("", name.upper())[:_SLUG_MAX] or "ITEM"
    return f"{slug}-{now.strftime('%Y%m%d%H%M%S')}"


def _snapshot(values: Mapping[str, Any]) -> str:
    return json.dumps(dict(values), sort_keys=True, default=str)


class CatalogueService(BaseService):
    """Creates and edits catalogue items."""

    def create_item(
        self,
        name: str,
        price: str | int | Decimal,
        actor_id: UUID,
        category: str | None = None,
        reorder_level: int | None = None,
        item_code: str | None = None,
        grade_level: str | None = None,
    ) -> ItemRef:
        """
        Create an item with zero stock.

        ``item_code`` given: the item is addressed as an external reference.
        Otherwise a code is generated from the name and the clock.

        Returns:
            The ItemRef that addresses the new item.
        """
        try:
            name = (name or "").strip()
            if not name:
                raise InvalidFieldError(
                    ["name"], list(EDITABLE_FIELDS), "name cannot be empty"
                )
            unit_price = parse_price(price)
            if reorder_level is None:
                reorder_level = self._settings.default_reorder_level
            validate_threshold(reorder_level)
            if item_code is not None:
                ref = ItemRef.external(item_code)
            else:
                ref = ItemRef.generated(generate_item_code(name, self._clock.now()))
        except InventoryKernelError as exc:
            logger.warning("create_item_rejected", extra={"error_code": exc.code})
            raise

        with self._operation(
            "create_item", actor_id=actor_id, item_ref=ref
        ) as log_fields:
            existing = self.session.execute(
                select(InventoryItem.id).where(InventoryItem.item_code == ref.code)
            ).first()
            if existing is not None:
                raise DuplicateIdentifierError(ref.code)

            item = InventoryItem(
                item_code=ref.code,
                ref_source=ref.source.value,
                name=name,
                category=category,
                grade_level=grade_level if grade_level is not None else extract_grade(name),
                unit_price=unit_price,
                quantity_on_hand=0,
                reorder_level=reorder_level,
                created_by_id=actor_id,
            )
            self.session.add(item)
            try:
                self.session.flush()
            except IntegrityError as exc:
                # Lost a race with a concurrent create of the same code
                raise DuplicateIdentifierError(ref.code) from exc

            self.session.add(
                AuditEntry(
                    item_id=item.id,
                    actor_id=actor_id,
                    action=AuditAction.CREATE.value,
                    new_value=_snapshot(
                        {
                            "item_code": item.item_code,
                            "name": item.name,
                            "category": item.category,
                            "grade_level": item.grade_level,
                            "price": str(item.unit_price),
                            "quantity_on_hand": 0,
                            "reorder_level": item.reorder_level,
                        }
                    ),
                    recorded_at=self._clock.now(),
                )
            )
            self.session.flush()
            log_fields.update(item_id=item.id, grade_level=item.grade_level)

        return ref

    def _normalize_fields(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        unknown = sorted(set(fields) - set(EDITABLE_FIELDS))
        if unknown:
            raise InvalidFieldError(unknown, list(EDITABLE_FIELDS))

        normalized: dict[str, Any] = {}
        if "name" in fields:
            name = (fields["name"] or "").strip()
            if not name:
                raise InvalidFieldError(
                    ["name"], list(EDITABLE_FIELDS), "name cannot be empty"
                )
            normalized["name"] = name
        if "category" in fields:
            normalized["category"] = fields["category"]
        if "reorder_level" in fields:
            normalized["reorder_level"] = validate_threshold(fields["reorder_level"])
        if "price" in fields:
            normalized["price"] = parse_price(fields["price"])
        return normalized

    def update_item(
        self,
        item_ref: ItemRef,
        fields: Mapping[str, Any],
        actor_id: UUID,
    ) -> ItemUpdateResult:
        """
        Apply a partial edit; values equal to the stored ones are ignored.

        A rename re-derives ``grade_level`` only when the stored grade is the
        one derived from the old name; an explicitly supplied grade is kept.
        """
        try:
            changes = self._normalize_fields(fields)
        except InventoryKernelError as exc:
            logger.warning("update_item_rejected", extra={"error_code": exc.code})
            raise

        with self._operation(
            "update_item", actor_id=actor_id, item_ref=item_ref
        ) as log_fields:
            item = load_item(self.session, item_ref, for_update=True)

            old_values: dict[str, Any] = {}
            new_values: dict[str, Any] = {}
            for field, value in changes.items():
                if field == "price":
                    continue
                current = getattr(item, field)
                if current != value:
                    old_values[field] = current
                    new_values[field] = value

            old_price = item.unit_price
            new_price = changes.get("price", old_price)
            price_changed = new_price != old_price

            for field, value in new_values.items():
                setattr(item, field, value)
            if "name" in new_values and item.grade_level == extract_grade(old_values["name"]):
                item.grade_level = extract_grade(item.name)
            if price_changed:
                item.unit_price = new_price
            if new_values or price_changed:
                item.updated_by_id = actor_id

            now = self._clock.now()
            if price_changed:
                self.session.add(
                    AuditEntry(
                        item_id=item.id,
                        actor_id=actor_id,
                        action=AuditAction.PRICE_UPDATE.value,
                        field_changed="price",
                        old_value=str(old_price),
                        new_value=str(new_price),
                        recorded_at=now,
                    )
                )
                self.session.add(
                    PriceHistoryEntry(
                        item_id=item.id,
                        old_price=old_price,
                        new_price=new_price,
                        changed_by_id=actor_id,
                        changed_at=now,
                    )
                )
            elif new_values:
                self.session.add(
                    AuditEntry(
                        item_id=item.id,
                        actor_id=actor_id,
                        action=AuditAction.UPDATE.value,
                        field_changed=",".join(sorted(new_values)),
                        old_value=_snapshot(old_values),
                        new_value=_snapshot(new_values),
                        recorded_at=now,
                    )
                )
            self.session.flush()

            changed = sorted(new_values) + (["price"] if price_changed else [])
            log_fields.update(changed_fields=sorted(changed), price_changed=price_changed)

        return ItemUpdateResult(
            changed_fields=tuple(sorted(changed)),
            price_changed=price_changed,
        )
