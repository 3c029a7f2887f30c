"""
Pure domain layer.

Value objects and validation with NO dependencies on the ORM, the database
or I/O (SystemClock aside).
"""

from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_kernel.domain.grade import extract_grade
from inventory_kernel.domain.item_ref import ItemRef, ItemSource
from inventory_kernel.domain.reasons import ADJUSTMENT_REASONS, validate_reason
from inventory_kernel.domain.values import AdjustmentMode, parse_price

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "ItemRef",
    "ItemSource",
    "ADJUSTMENT_REASONS",
    "validate_reason",
    "AdjustmentMode",
    "parse_price",
    "extract_grade",
]
