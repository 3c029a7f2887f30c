"""
Module: inventory_kernel.selectors.alert_selector
Responsibility: Read-only views of low-stock alerts and their transitions.
Architecture position: Kernel > Selectors.

Open alerts are listed in workflow order (pending, acknowledged,
reorder_initiated), critical first, then by lowest on-hand quantity.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import case, select

from inventory_kernel.domain.item_ref import ItemRef
from inventory_kernel.exceptions import AlertNotFoundError
from inventory_kernel.models.alert import (
    OPEN_STATUSES,
    AlertHistoryEntry,
    AlertStatus,
    LowStockAlert,
)
from inventory_kernel.models.item import InventoryItem
from inventory_kernel.selectors.base import BaseSelector

_STATUS_RANK = case(
    (LowStockAlert.status == AlertStatus.PENDING.value, 0),
    (LowStockAlert.status == AlertStatus.ACKNOWLEDGED.value, 1),
    (LowStockAlert.status == AlertStatus.REORDER_INITIATED.value, 2),
    else_=3,
)


@dataclass(frozen=True)
class AlertDTO:
    """An alert joined with the item's current state."""

    id: UUID
    item_ref: ItemRef
    item_name: str
    grade_level: str | None
    status: str
    is_critical: bool
    threshold: int
    current_quantity: int
    quantity_on_hand: int
    reorder_level: int
    created_at: datetime
    last_updated: datetime
    acknowledged_by_id: UUID | None
    acknowledged_at: datetime | None
    resolved_at: datetime | None


@dataclass(frozen=True)
class AlertHistoryDTO:
    id: int
    alert_id: UUID
    status: str
    notes: str | None
    actor_id: UUID
    recorded_at: datetime


def _to_dto(alert: LowStockAlert, item: InventoryItem) -> AlertDTO:
    return AlertDTO(
        id=alert.id,
        item_ref=item.ref,
        item_name=item.name,
        grade_level=item.grade_level,
        status=alert.status,
        is_critical=alert.is_critical,
        threshold=alert.threshold,
        current_quantity=alert.current_quantity,
        quantity_on_hand=item.quantity_on_hand,
        reorder_level=item.reorder_level,
        created_at=alert.created_at,
        last_updated=alert.last_updated,
        acknowledged_by_id=alert.acknowledged_by_id,
        acknowledged_at=alert.acknowledged_at,
        resolved_at=alert.resolved_at,
    )


class AlertSelector(BaseSelector):
    """Read access to alerts."""

    def list_open_alerts(self, grade_level: str | None = None) -> list[AlertDTO]:
        stmt = (
            select(LowStockAlert, InventoryItem)
            .join(InventoryItem, InventoryItem.id == LowStockAlert.item_id)
            .where(LowStockAlert.status.in_(OPEN_STATUSES))
        )
        if grade_level is not None:
            stmt = stmt.where(InventoryItem.grade_level == grade_level)
        stmt = stmt.order_by(
            _STATUS_RANK,
            LowStockAlert.is_critical.desc(),
            InventoryItem.quantity_on_hand.asc(),
            InventoryItem.item_code.asc(),
        )
        return [_to_dto(alert, item) for alert, item in self.session.execute(stmt).all()]

    def get_alert(self, alert_id: UUID) -> AlertDTO:
        """Raises AlertNotFoundError when no alert has ``alert_id``."""
        row = self.session.execute(
            select(LowStockAlert, InventoryItem)
            .join(InventoryItem, InventoryItem.id == LowStockAlert.item_id)
            .where(LowStockAlert.id == alert_id)
        ).first()
        if row is None:
            raise AlertNotFoundError(str(alert_id))
        return _to_dto(row[0], row[1])

    def get_alert_history(self, alert_id: UUID) -> list[AlertHistoryDTO]:
        """Transitions of one alert, most recent first."""
        stmt = (
            select(AlertHistoryEntry)
            .where(AlertHistoryEntry.alert_id == alert_id)
            .order_by(AlertHistoryEntry.recorded_at.desc(), AlertHistoryEntry.id.desc())
        )
        return [
            AlertHistoryDTO(
                id=h.id,
                alert_id=h.alert_id,
                status=h.status,
                notes=h.notes,
                actor_id=h.actor_id,
                recorded_at=h.recorded_at,
            )
            for h in self.session.execute(stmt).scalars()
        ]
