"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (catalogue UI, import pipeline, sweep job) must react to failures
without parsing message strings.  Every error therefore:
  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE attribute (machine-readable, API-safe)
  3. Carries structured DATA (the values a caller needs for display)

Example:
    try:
        ledger.adjust_stock(ref, -10, "Theft/Shrinkage", actor_id)
    except NegativeStockRejectedError as e:
        api_response(
            code=e.code,
            current=e.current_quantity,
            attempted=e.attempted_delta,
            resulting=e.resulting_quantity,
        )

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryKernelError (base)
    |
    +-- NotFoundError
    |   +-- ItemNotFoundError
    |   +-- AlertNotFoundError
    |
    +-- ItemError
    |   +-- DuplicateIdentifierError
    |   +-- InvalidPriceError
    |   +-- InvalidThresholdError
    |   +-- InvalidFieldError
    |
    +-- AdjustmentError
    |   +-- InvalidReasonError
    |   +-- InvalidAdjustmentError
    |   +-- NegativeStockRejectedError
    |
    +-- AlertError
    |   +-- InvalidStatusError
    |   +-- AlertResolvedError
    |
    +-- StorageError
    |   +-- StorageFailureError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category    | Code                     | When Raised
------------|--------------------------|--------------------------------------
Not found   | ITEM_NOT_FOUND           | Item reference does not resolve
            | ALERT_NOT_FOUND          | Alert id does not resolve
------------|--------------------------|--------------------------------------
Item        | DUPLICATE_IDENTIFIER     | Item code already exists
            | INVALID_PRICE            | Price string unparseable or negative
            | INVALID_THRESHOLD        | Reorder level negative / not integer
            | INVALID_FIELD            | Unknown field in a partial update
------------|--------------------------|--------------------------------------
Adjustment  | INVALID_REASON           | Reason not in the fixed vocabulary
            | INVALID_ADJUSTMENT       | Zero/non-integer delta, notes too long
            | NEGATIVE_STOCK_REJECTED  | Quantity would drop below zero
------------|--------------------------|--------------------------------------
Alert       | INVALID_STATUS           | Target status not one of the four
            | ALERT_RESOLVED           | Transition out of terminal state
------------|--------------------------|--------------------------------------
Storage     | STORAGE_FAILURE          | Transaction/commit failed (rolled back)
------------|--------------------------|--------------------------------------
Immutability| IMMUTABILITY_VIOLATION   | Update/delete of an append-only row

===============================================================================
"""


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"


# Resolution failures


class NotFoundError(InventoryKernelError):
    """Base exception for references that do not resolve."""

    code: str = "NOT_FOUND"


class ItemNotFoundError(NotFoundError):
    """Item reference does not resolve to a catalogue item."""

    code: str = "ITEM_NOT_FOUND"

    def __init__(self, item_ref: str):
        self.item_ref = item_ref
        super().__init__(f"Item not found: {item_ref}")


class AlertNotFoundError(NotFoundError):
    """Low-stock alert with given ID was not found."""

    code: str = "ALERT_NOT_FOUND"

    def __init__(self, alert_id: str):
        self.alert_id = alert_id
        super().__init__(f"Alert not found: {alert_id}")


# Item-related exceptions


class ItemError(InventoryKernelError):
    """Base exception for catalogue item errors."""

    code: str = "ITEM_ERROR"


class DuplicateIdentifierError(ItemError):
    """Item code (supplied or generated) already exists."""

    code: str = "DUPLICATE_IDENTIFIER"

    def __init__(self, item_code: str):
        self.item_code = item_code
        super().__init__(f"Item identifier already exists: {item_code}")


class InvalidPriceError(ItemError):
    """Price could not be parsed or is negative."""

    code: str = "INVALID_PRICE"

    def __init__(self, raw_value: str, reason: str):
        self.raw_value = raw_value
        self.reason = reason
        super().__init__(f"Invalid price {raw_value!r}: {reason}")


class InvalidThresholdError(ItemError):
    """Reorder threshold is not a non-negative integer."""

    code: str = "INVALID_THRESHOLD"

    def __init__(self, threshold: object):
        self.threshold = threshold
        super().__init__(
            f"Threshold must be a non-negative integer, got {threshold!r}"
        )


class InvalidFieldError(ItemError):
    """Partial update names a field that cannot be edited, or an empty name."""

    code: str = "INVALID_FIELD"

    def __init__(
        self,
        field_names: list[str],
        allowed: list[str],
        reason: str | None = None,
    ):
        self.field_names = field_names
        self.allowed = allowed
        self.reason = reason or "not editable"
        if reason:
            super().__init__(f"Invalid value for {field_names}: {reason}")
        else:
            super().__init__(
                f"Unknown item field(s) {field_names}; editable fields are {allowed}"
            )


# Adjustment-related exceptions


class AdjustmentError(InventoryKernelError):
    """Base exception for stock adjustment errors."""

    code: str = "ADJUSTMENT_ERROR"


class InvalidReasonError(AdjustmentError):
    """Adjustment reason is not in the fixed vocabulary nor a valid 'Other:'."""

    code: str = "INVALID_REASON"

    def __init__(self, reason: str | None):
        self.reason = reason
        super().__init__(f"Invalid adjustment reason: {reason!r}")


class InvalidAdjustmentError(AdjustmentError):
    """Adjustment request is malformed (zero delta, bad amount, long notes)."""

    code: str = "INVALID_ADJUSTMENT"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid adjustment: {reason}")


class NegativeStockRejectedError(AdjustmentError):
    """
    Adjustment would drive on-hand quantity below zero.

    Carries the values the caller needs to explain the rejection.
    """

    code: str = "NEGATIVE_STOCK_REJECTED"

    def __init__(
        self,
        item_ref: str,
        current_quantity: int,
        attempted_delta: int,
    ):
        self.item_ref = item_ref
        self.current_quantity = current_quantity
        self.attempted_delta = attempted_delta
        self.resulting_quantity = current_quantity + attempted_delta
        super().__init__(
            f"Cannot reduce stock below zero for {item_ref}. "
            f"Current: {current_quantity}, Attempted: {attempted_delta}, "
            f"Would be: {self.resulting_quantity}"
        )


# Alert-related exceptions


class AlertError(InventoryKernelError):
    """Base exception for low-stock alert errors."""

    code: str = "ALERT_ERROR"


class InvalidStatusError(AlertError):
    """Transition target is not one of the enumerated alert statuses."""

    code: str = "INVALID_STATUS"

    def __init__(self, status: str, valid_statuses: list[str]):
        self.status = status
        self.valid_statuses = valid_statuses
        super().__init__(
            f"Invalid alert status {status!r}; expected one of {valid_statuses}"
        )


class AlertResolvedError(AlertError):
    """Resolved alerts are terminal and cannot transition again."""

    code: str = "ALERT_RESOLVED"

    def __init__(self, alert_id: str, requested_status: str):
        self.alert_id = alert_id
        self.requested_status = requested_status
        super().__init__(
            f"Alert {alert_id} is resolved and cannot move to {requested_status!r}"
        )


# Storage exceptions


class StorageError(InventoryKernelError):
    """Base exception for persistence failures."""

    code: str = "STORAGE_ERROR"


class StorageFailureError(StorageError):
    """
    Transaction or commit failed.

    The operation's writes have been rolled back before this is raised.
    """

    code: str = "STORAGE_FAILURE"

    def __init__(self, operation: str, cause: Exception):
        self.operation = operation
        self.cause_type = type(cause).__name__
        self.cause_message = str(cause)
        super().__init__(
            f"Storage failure during {operation}: {self.cause_type}: {self.cause_message}"
        )


# Immutability exceptions


class ImmutabilityError(InventoryKernelError):
    """Base exception for append-only violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to update or delete an append-only log row."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify {entity_type} {entity_id}: {reason}"
        )
