"""
Adjustment reasons -- the fixed vocabulary every stock change is filed under.

A reason is either one of ``ADJUSTMENT_REASONS`` verbatim or a free-text
``"Other: <text>"`` with non-empty text.  Validation is pure so services can
reject a request before touching storage.
"""

from inventory_kernel.exceptions import InvalidReasonError

ADJUSTMENT_REASONS: tuple[str, ...] = (
    "Stock Count Discrepancy",
    "Damaged/Defective",
    "Lost/Missing",
    "Theft/Shrinkage",
    "Inventory Adjustment",
    "Return from Customer",
    "Physical Stocktake",
    "System Correction",
    "Expired/Obsolete",
)

OTHER_PREFIX = "Other:"


def is_valid_reason(reason: object) -> bool:
    if not isinstance(reason, str):
        return False
    if reason in ADJUSTMENT_REASONS:
        return True
    if reason.startswith(OTHER_PREFIX):
        return bool(reason[len(OTHER_PREFIX):].strip())
    return False


def validate_reason(reason: object) -> str:
    """Return ``reason`` unchanged or raise InvalidReasonError."""
    if not is_valid_reason(reason):
        raise InvalidReasonError(reason if isinstance(reason, str) else repr(reason))
    return reason
