"""
StockLedgerService -- the only writer of on-hand quantity.

Responsibility:
    Applies signed quantity changes to catalogue items and appends exactly
    one ADJUST_STOCK audit entry per change, in one transaction.

Architecture position:
    Kernel > Services -- imperative shell, owns the stock write path.

Invariants enforced:
    - quantity_on_hand never goes below zero: the decision is made on a
      fresh read under the item row lock, and the CHECK constraint backs it.
    - One successful adjustment == one audit entry, written atomically.
    - Rejected adjustments leave no trace in storage.
    - Alerts are never evaluated here; see AlertEngine.evaluate_thresholds.

Failure modes:
    - InvalidReasonError / InvalidAdjustmentError before any storage access.
    - ItemNotFoundError when the reference does not resolve.
    - NegativeStockRejectedError with current/attempted/resulting values.
    - StorageFailureError if the transaction fails (everything rolled back).
"""

from dataclasses import dataclass
from uuid import UUID

from inventory_kernel.domain.item_ref import ItemRef
from inventory_kernel.domain.reasons import validate_reason
from inventory_kernel.domain.values import AdjustmentMode
from inventory_kernel.exceptions import (
    InvalidAdjustmentError,
    InventoryKernelError,
    NegativeStockRejectedError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.audit_entry import AuditAction, AuditEntry
from inventory_kernel.selectors.item_selector import load_item
from inventory_kernel.services.base import BaseService

logger = get_logger("services.stock_ledger")


@dataclass(frozen=True)
class StockAdjustment:
    """Outcome of one applied adjustment."""

    item_ref: ItemRef
    old_quantity: int
    new_quantity: int
    delta: int
    audit_entry_id: int


@dataclass(frozen=True)
class AdjustmentRequest:
    """One line of a bulk adjustment."""

    item_ref: ItemRef
    delta: int
    reason: str
    notes: str | None = None


@dataclass(frozen=True)
class BulkAdjustmentOutcome:
    """Result of one request in ``adjust_many``: either applied or the error."""

    request: AdjustmentRequest
    adjustment: StockAdjustment | None = None
    error: InventoryKernelError | None = None

    @property
    def is_success(self) -> bool:
        return self.adjustment is not None


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class StockLedgerService(BaseService):
    """
    Applies stock adjustments.

    Usage:
        ledger = StockLedgerService(session, clock=clock)
        result = ledger.adjust_stock(
            ItemRef.external("9780131103627"), -5, "Physical Stocktake", actor_id,
        )
    """

    def _validate_notes(self, notes: str | None) -> None:
        limit = self._settings.max_notes_length
        if notes is not None and len(notes) > limit:
            raise InvalidAdjustmentError(f"notes exceed {limit} characters")

    def _reject(self, operation: str, exc: InventoryKernelError, item_ref: ItemRef):
        logger.warning(
            f"{operation}_rejected",
            extra={"error_code": exc.code, "item_ref": str(item_ref)},
        )
        raise exc

    def adjust_stock(
        self,
        item_ref: ItemRef,
        delta: int,
        reason: str,
        actor_id: UUID,
        notes: str | None = None,
    ) -> StockAdjustment:
        """
        Apply ``delta`` to the item's quantity.

        Preconditions:
            - ``delta`` is a nonzero int.
            - ``reason`` is in ADJUSTMENT_REASONS or ``"Other: <text>"``.

        Postconditions:
            - quantity_on_hand == old + delta >= 0.
            - One ADJUST_STOCK audit entry with old/new value and delta.

        Raises:
            InvalidReasonError, InvalidAdjustmentError, ItemNotFoundError,
            NegativeStockRejectedError, StorageFailureError.
        """
        try:
            validate_reason(reason)
            if not _is_int(delta) or delta == 0:
                raise InvalidAdjustmentError(
                    f"delta must be a nonzero integer, got {delta!r}"
                )
            self._validate_notes(notes)
        except InventoryKernelError as exc:
            self._reject("adjust_stock", exc, item_ref)

        with self._operation(
            "adjust_stock", actor_id=actor_id, item_ref=item_ref
        ) as log_fields:
            result = self._apply(item_ref, delta, reason, actor_id, notes)
            log_fields.update(
                old_quantity=result.old_quantity,
                new_quantity=result.new_quantity,
                delta=result.delta,
            )
        return result

    def adjust(
        self,
        item_ref: ItemRef,
        mode: AdjustmentMode,
        amount: int,
        reason: str,
        actor_id: UUID,
        notes: str | None = None,
    ) -> StockAdjustment:
        """
        Adjust by mode: ADD/REMOVE ``amount`` units, or SET the quantity to
        ``amount``.

        For SET the delta is computed from the quantity read under the same
        row lock that protects the write, so a concurrent change cannot slip
        in between.  A SET to the current quantity is a zero delta and is
        rejected.
        """
        try:
            mode = AdjustmentMode(mode)
            validate_reason(reason)
            if not _is_int(amount) or amount < 0:
                raise InvalidAdjustmentError(
                    f"amount must be a non-negative integer, got {amount!r}"
                )
            if mode is not AdjustmentMode.SET and amount == 0:
                raise InvalidAdjustmentError(f"{mode.value} amount must be positive")
            self._validate_notes(notes)
        except ValueError as exc:
            # Unknown mode string
            self._reject("adjust", InvalidAdjustmentError(str(exc)), item_ref)
        except InventoryKernelError as exc:
            self._reject("adjust", exc, item_ref)

        with self._operation(
            "adjust", actor_id=actor_id, item_ref=item_ref
        ) as log_fields:
            if mode is AdjustmentMode.SET:
                current = load_item(self.session, item_ref, for_update=True)
                delta = amount - current.quantity_on_hand
                if delta == 0:
                    raise InvalidAdjustmentError(
                        f"quantity is already {amount}; nothing to adjust"
                    )
            elif mode is AdjustmentMode.ADD:
                delta = amount
            else:
                delta = -amount
            result = self._apply(item_ref, delta, reason, actor_id, notes)
            log_fields.update(
                mode=mode.value,
                old_quantity=result.old_quantity,
                new_quantity=result.new_quantity,
                delta=result.delta,
            )
        return result

    def adjust_many(
        self,
        requests: list[AdjustmentRequest],
        actor_id: UUID,
    ) -> list[BulkAdjustmentOutcome]:
        """
        Apply each request independently.

        Each request runs in its own savepoint; a failed request never undoes
        the others.  Outcomes are returned in request order.
        """
        outcomes: list[BulkAdjustmentOutcome] = []
        for request in requests:
            try:
                adjustment = self.adjust_stock(
                    request.item_ref,
                    request.delta,
                    request.reason,
                    actor_id,
                    notes=request.notes,
                )
            except InventoryKernelError as exc:
                outcomes.append(BulkAdjustmentOutcome(request=request, error=exc))
            else:
                outcomes.append(
                    BulkAdjustmentOutcome(request=request, adjustment=adjustment)
                )

        logger.info(
            "adjust_many_completed",
            extra={
                "requested": len(requests),
                "succeeded": sum(1 for o in outcomes if o.is_success),
            },
        )
        return outcomes

    def _apply(
        self,
        item_ref: ItemRef,
        delta: int,
        reason: str,
        actor_id: UUID,
        notes: str | None,
    ) -> StockAdjustment:
        item = load_item(self.session, item_ref, for_update=True)
        old_quantity = item.quantity_on_hand
        new_quantity = old_quantity + delta
        if new_quantity < 0:
            raise NegativeStockRejectedError(
                item_ref=str(item_ref),
                current_quantity=old_quantity,
                attempted_delta=delta,
            )

        item.quantity_on_hand = new_quantity
        item.updated_by_id = actor_id

        entry = AuditEntry(
            item_id=item.id,
            actor_id=actor_id,
            action=AuditAction.ADJUST_STOCK.value,
            field_changed="quantity_on_hand",
            old_value=str(old_quantity),
            new_value=str(new_quantity),
            quantity_delta=delta,
            reason=reason,
            notes=notes,
            recorded_at=self._clock.now(),
        )
        self.session.add(entry)
        self.session.flush()

        return StockAdjustment(
            item_ref=item.ref,
            old_quantity=old_quantity,
            new_quantity=new_quantity,
            delta=delta,
            audit_entry_id=entry.id,
        )
