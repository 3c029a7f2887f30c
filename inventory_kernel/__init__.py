"""
Inventory Kernel - bookstore stock ledger

The transactional core of the bookstore inventory manager:
- Non-negative on-hand quantity with row-locked adjustments
- Append-only audit trail and authoritative price timeline
- Low-stock alert lifecycle with its own transition history
"""

__version__ = "0.1.0"
