"""
ORM-level append-only enforcement for the inventory logs.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity              | When Immutable          | Why
--------------------|-------------------------|--------------------------------
AuditEntry          | ALWAYS (from creation)  | Catalogue audit trail
PriceHistoryEntry   | ALWAYS (from creation)  | Authoritative price timeline
AlertHistoryEntry   | ALWAYS (from creation)  | Alert workflow trail

SQLAlchemy fires ``before_update``/``before_delete`` during flush, before the
SQL reaches the database.  The listeners below raise
ImmutabilityViolationError there, which aborts the flush and leaves the
database untouched.  Bulk ``UPDATE``/``DELETE`` statements bypass mapper
events and are not covered.

===============================================================================
USAGE
===============================================================================

    from inventory_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
    ...
    register_immutability_listeners()
"""

from sqlalchemy import event

from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _block(target, operation: str, reason: str) -> None:
    entity_type = type(target).__name__
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _check_log_row_update(mapper, connection, target):
    """Prevent any update to an append-only log row."""
    _block(target, "UPDATE", "Append-only log rows cannot be modified")


def _check_log_row_delete(mapper, connection, target):
    """Prevent deletion of an append-only log row."""
    _block(target, "DELETE", "Append-only log rows cannot be deleted")


def _protected_models():
    from inventory_kernel.models.alert import AlertHistoryEntry
    from inventory_kernel.models.audit_entry import AuditEntry
    from inventory_kernel.models.price_history import PriceHistoryEntry

    return (AuditEntry, PriceHistoryEntry, AlertHistoryEntry)


def register_immutability_listeners():
    """
    Register the append-only event listeners.

    Idempotent: a listener already registered is not added twice.
    """
    for model in _protected_models():
        if not event.contains(model, "before_update", _check_log_row_update):
            event.listen(model, "before_update", _check_log_row_update)
        if not event.contains(model, "before_delete", _check_log_row_delete):
            event.listen(model, "before_delete", _check_log_row_delete)


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if not registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove the append-only listeners.

    WARNING: Only use this in tests that must violate the rule on purpose.
    """
    for model in _protected_models():
        _safe_remove_listener(model, "before_update", _check_log_row_update)
        _safe_remove_listener(model, "before_delete", _check_log_row_delete)
