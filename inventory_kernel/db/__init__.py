"""Database layer - engine, base classes, types, and append-only guards."""

from inventory_kernel.db.base import UUID, AppendOnlyBase, Base, TrackedBase, UUIDString
from inventory_kernel.db.engine import create_tables, get_engine, get_session

__all__ = [
    "get_engine",
    "get_session",
    "create_tables",
    "Base",
    "TrackedBase",
    "AppendOnlyBase",
    "UUIDString",
    "UUID",
]
