"""Read-only selectors -- the query side of the kernel."""

from inventory_kernel.selectors.alert_selector import (
    AlertDTO,
    AlertHistoryDTO,
    AlertSelector,
)
from inventory_kernel.selectors.history_selector import (
    HistoryRecord,
    HistorySelector,
    HistorySource,
    ItemHistory,
)
from inventory_kernel.selectors.item_selector import ItemDTO, ItemSelector

__all__ = [
    "AlertSelector",
    "AlertDTO",
    "AlertHistoryDTO",
    "HistorySelector",
    "HistoryRecord",
    "HistorySource",
    "ItemHistory",
    "ItemSelector",
    "ItemDTO",
]
