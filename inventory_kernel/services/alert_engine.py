"""
AlertEngine -- low-stock alert lifecycle.

Responsibility:
    Raises alerts for items whose quantity is under their reorder level,
    keeps at most one open alert per item, and moves alerts through
    pending -> acknowledged -> reorder_initiated -> resolved with an
    append-only transition history.

Architecture position:
    Kernel > Services.  Invoked explicitly (per item when a threshold is
    configured, or as a sweep).  Stock writes never trigger it.

Invariants enforced:
    - At most one open alert per item: the item row is locked before the
      open alert is looked up, and the partial unique index backs it.
    - ``resolved`` is terminal; a later breach creates a new alert.
    - Each status change appends exactly one AlertHistoryEntry in the same
      transaction.
    - Sweeps are idempotent: a second run only refreshes ``last_updated``.

Failure modes:
    - InvalidThresholdError, InvalidStatusError before storage access.
    - ItemNotFoundError, AlertNotFoundError, AlertResolvedError.
    - StorageFailureError (rolled back).
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from inventory_kernel.domain.item_ref import ItemRef
from inventory_kernel.exceptions import (
    AlertNotFoundError,
    AlertResolvedError,
    InvalidStatusError,
    InventoryKernelError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.alert import (
    OPEN_STATUSES,
    AlertHistoryEntry,
    AlertStatus,
    LowStockAlert,
)
from inventory_kernel.models.item import InventoryItem
from inventory_kernel.selectors.item_selector import load_item, lock_item_by_id
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.catalogue_service import validate_threshold

logger = get_logger("services.alert_engine")


@dataclass(frozen=True)
class SweepResult:
    alerts_created: int
    alerts_updated: int
    total_low_stock: int


@dataclass(frozen=True)
class ThresholdResult:
    """Outcome of configuring one item's reorder level."""

    item_ref: ItemRef
    threshold: int
    is_low_stock: bool
    alert_id: UUID | None
    alert_created: bool
    is_critical: bool | None
    alert_resolved: bool = False


@dataclass(frozen=True)
class AlertTransition:
    alert_id: UUID
    old_status: str
    new_status: str
    history_entry_id: int
    changed_at: datetime


def _normalize_status(new_status: AlertStatus | str) -> AlertStatus:
    try:
        return AlertStatus(new_status)
    except ValueError:
        raise InvalidStatusError(str(new_status), AlertStatus.values())


class AlertEngine(BaseService):
    """
    Low-stock alert engine.

    Usage:
        engine = AlertEngine(session, clock=clock)
        result = engine.evaluate_thresholds(actor_id)
        engine.acknowledge(alert_id, actor_id, notes="reviewed by manager")
    """

    def compute_critical(self, quantity: int, threshold: int) -> bool:
        """Critical when out of stock or under ``threshold * critical_ratio``."""
        if quantity == 0:
            return True
        return Decimal(quantity) < Decimal(threshold) * self._settings.critical_ratio

    def _open_alert_for(self, item_id: UUID) -> LowStockAlert | None:
        stmt = (
            select(LowStockAlert)
            .where(
                LowStockAlert.item_id == item_id,
                LowStockAlert.status.in_(OPEN_STATUSES),
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def _raise_or_refresh(
        self,
        item: InventoryItem,
        actor_id: UUID,
        is_critical: bool | None = None,
    ) -> tuple[LowStockAlert, bool]:
        """
        Create a pending alert for a locked, below-threshold item, or refresh
        the open one.  Returns (alert, created).
        """
        now = self._clock.now()
        alert = self._open_alert_for(item.id)
        if alert is not None:
            alert.last_updated = now
            if is_critical is not None and alert.is_critical != is_critical:
                alert.is_critical = is_critical
            return alert, False

        if is_critical is None:
            is_critical = self.compute_critical(item.quantity_on_hand, item.reorder_level)
        alert = LowStockAlert(
            item_id=item.id,
            status=AlertStatus.PENDING.value,
            is_critical=is_critical,
            threshold=item.reorder_level,
            current_quantity=item.quantity_on_hand,
            created_by_id=actor_id,
            created_at=now,
            last_updated=now,
        )
        self.session.add(alert)
        self.session.flush()
        logger.info(
            "alert_raised",
            extra={
                "alert_id": alert.id,
                "item_ref": str(item.ref),
                "is_critical": is_critical,
                "current_quantity": item.quantity_on_hand,
                "threshold": item.reorder_level,
            },
        )
        return alert, True

    def evaluate_thresholds(self, actor_id: UUID) -> SweepResult:
        """
        Sweep every item under its reorder level.

        Candidates are found without locks, then each is locked and
        re-checked before an alert is raised or refreshed.
        """
        created = updated = low = 0
        with self._operation("evaluate_thresholds", actor_id=actor_id) as log_fields:
            candidate_ids = self.session.execute(
                select(InventoryItem.id)
                .where(
                    InventoryItem.reorder_level > 0,
                    InventoryItem.quantity_on_hand < InventoryItem.reorder_level,
                )
                .order_by(InventoryItem.id)
            ).scalars().all()

            for item_id in candidate_ids:
                item = lock_item_by_id(self.session, item_id)
                if not item.is_below_threshold:
                    continue
                low += 1
                _, was_created = self._raise_or_refresh(item, actor_id)
                if was_created:
                    created += 1
                else:
                    updated += 1
            self.session.flush()
            log_fields.update(
                alerts_created=created,
                alerts_updated=updated,
                total_low_stock=low,
            )

        return SweepResult(
            alerts_created=created,
            alerts_updated=updated,
            total_low_stock=low,
        )

    def configure_threshold(
        self,
        item_ref: ItemRef,
        threshold: int,
        actor_id: UUID,
        is_critical: bool | None = None,
    ) -> ThresholdResult:
        """
        Set an item's reorder level and evaluate that item alone.

        ``is_critical`` overrides the computed flag on a new alert and, when
        it differs, updates an existing open alert.  When the item is no
        longer under the new level its open alert is resolved.
        """
        try:
            validate_threshold(threshold)
        except InventoryKernelError as exc:
            logger.warning("configure_threshold_rejected", extra={"error_code": exc.code})
            raise

        with self._operation(
            "configure_threshold", actor_id=actor_id, item_ref=item_ref
        ) as log_fields:
            item = load_item(self.session, item_ref, for_update=True)
            item.reorder_level = threshold
            item.updated_by_id = actor_id
            self.session.flush()

            alert: LowStockAlert | None = None
            created = resolved = False
            if item.is_below_threshold:
                alert, created = self._raise_or_refresh(item, actor_id, is_critical)
            else:
                alert = self._open_alert_for(item.id)
                if alert is not None:
                    self._apply_transition(
                        alert,
                        AlertStatus.RESOLVED,
                        actor_id,
                        notes=(
                            f"Stock {item.quantity_on_hand} at or above "
                            f"reorder level {threshold}"
                        ),
                    )
                    resolved = True
            self.session.flush()

            result = ThresholdResult(
                item_ref=item.ref,
                threshold=threshold,
                is_low_stock=item.is_below_threshold,
                alert_id=alert.id if alert is not None else None,
                alert_created=created,
                is_critical=alert.is_critical if alert is not None else None,
                alert_resolved=resolved,
            )
            log_fields.update(
                threshold=threshold,
                is_low_stock=result.is_low_stock,
                alert_created=created,
                alert_resolved=resolved,
            )
        return result

    def configure_grade_threshold(
        self,
        grade_level: str,
        threshold: int,
        actor_id: UUID,
    ) -> int:
        """
        Set the reorder level of every item at ``grade_level``.

        Returns the number of items updated.  Alerts are not evaluated; run
        ``evaluate_thresholds`` afterwards.
        """
        try:
            validate_threshold(threshold)
        except InventoryKernelError as exc:
            logger.warning(
                "configure_grade_threshold_rejected", extra={"error_code": exc.code}
            )
            raise

        with self._operation(
            "configure_grade_threshold", actor_id=actor_id
        ) as log_fields:
            items = self.session.execute(
                select(InventoryItem)
                .where(InventoryItem.grade_level == grade_level)
                .order_by(InventoryItem.id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalars().all()
            for item in items:
                item.reorder_level = threshold
                item.updated_by_id = actor_id
            self.session.flush()
            log_fields.update(grade_level=grade_level, items_updated=len(items))
        return len(items)

    def transition(
        self,
        alert_id: UUID,
        new_status: AlertStatus | str,
        actor_id: UUID,
        notes: str | None = None,
    ) -> AlertTransition:
        """
        Move an alert to ``new_status`` and record the change.

        Raises:
            InvalidStatusError: ``new_status`` is not an AlertStatus.
            AlertNotFoundError: no alert with ``alert_id``.
            AlertResolvedError: the alert is already resolved.
        """
        return self._transition(alert_id, new_status, actor_id, notes)

    def acknowledge(
        self,
        alert_id: UUID,
        actor_id: UUID,
        notes: str | None = None,
    ) -> AlertTransition:
        return self._transition(
            alert_id, AlertStatus.ACKNOWLEDGED, actor_id, notes, record_ack=True
        )

    def mark_for_reorder(
        self,
        alert_id: UUID,
        actor_id: UUID,
        notes: str | None = None,
    ) -> AlertTransition:
        return self._transition(
            alert_id, AlertStatus.REORDER_INITIATED, actor_id, notes, record_ack=True
        )

    def _transition(
        self,
        alert_id: UUID,
        new_status: AlertStatus | str,
        actor_id: UUID,
        notes: str | None,
        record_ack: bool = False,
    ) -> AlertTransition:
        try:
            status = _normalize_status(new_status)
        except InventoryKernelError as exc:
            logger.warning(
                "alert_transition_rejected",
                extra={"error_code": exc.code, "alert_id": str(alert_id)},
            )
            raise

        with self._operation(
            "alert_transition", actor_id=actor_id, alert_id=alert_id
        ) as log_fields:
            alert = self.session.execute(
                select(LowStockAlert)
                .where(LowStockAlert.id == alert_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
            if alert is None:
                raise AlertNotFoundError(str(alert_id))
            if alert.status == AlertStatus.RESOLVED.value:
                raise AlertResolvedError(str(alert_id), status.value)

            result = self._apply_transition(alert, status, actor_id, notes, record_ack)
            log_fields.update(old_status=result.old_status, new_status=result.new_status)
        return result

    def _apply_transition(
        self,
        alert: LowStockAlert,
        status: AlertStatus,
        actor_id: UUID,
        notes: str | None,
        record_ack: bool = False,
    ) -> AlertTransition:
        now = self._clock.now()
        old_status = alert.status
        alert.status = status.value
        alert.last_updated = now
        if status is AlertStatus.RESOLVED:
            alert.resolved_at = now
        if record_ack:
            alert.acknowledged_by_id = actor_id
            alert.acknowledged_at = now

        entry = AlertHistoryEntry(
            alert_id=alert.id,
            status=status.value,
            notes=notes,
            actor_id=actor_id,
            recorded_at=now,
        )
        self.session.add(entry)
        self.session.flush()

        return AlertTransition(
            alert_id=alert.id,
            old_status=old_status,
            new_status=status.value,
            history_entry_id=entry.id,
            changed_at=now,
        )

    def resolve_recovered(self, actor_id: UUID) -> int:
        """
        Resolve every open alert whose item has recovered to at least
        ``reorder_level * recovery_ratio``.  Returns the number resolved.
        """
        resolved = 0
        ratio = self._settings.recovery_ratio
        with self._operation("resolve_recovered", actor_id=actor_id) as log_fields:
            rows = self.session.execute(
                select(LowStockAlert.id, LowStockAlert.item_id)
                .where(LowStockAlert.status.in_(OPEN_STATUSES))
                .order_by(LowStockAlert.item_id)
            ).all()

            for alert_id, item_id in rows:
                item = lock_item_by_id(self.session, item_id)
                if Decimal(item.quantity_on_hand) < Decimal(item.reorder_level) * ratio:
                    continue
                alert = self._open_alert_for(item_id)
                if alert is None or alert.id != alert_id:
                    continue
                self._apply_transition(
                    alert,
                    AlertStatus.RESOLVED,
                    actor_id,
                    notes=(
                        f"Stock recovered to {item.quantity_on_hand} "
                        f"(reorder level {item.reorder_level})"
                    ),
                )
                resolved += 1
            log_fields.update(alerts_resolved=resolved)
        return resolved
