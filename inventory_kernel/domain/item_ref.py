"""
ItemRef -- tagged reference to a catalogue item.

Items are addressed two ways: by an identifier the kernel generated for a
manually entered item, or by an identifier an outside system supplied
(ISBN / item id from a bulk import).  ``ItemRef`` carries the source tag so
every service resolves both kinds through one lookup.

Architecture position:
    Kernel > Domain -- pure value objects, zero I/O.
"""

from dataclasses import dataclass
from enum import Enum


class ItemSource(str, Enum):
    """Where an item's identifier came from."""

    GENERATED = "generated"
    EXTERNAL = "external"


def normalize_external_code(code: str) -> str:
    """Strip whitespace and dashes and upper-case, e.g. ISBN 978-0-13 -> 978013."""
    return code.strip().replace("-", "").replace(" ", "").upper()


@dataclass(frozen=True)
class ItemRef:
    """
    Reference to one catalogue item.

    Guarantees:
        - ``code`` is non-empty.
        - External codes are stored normalized, so equal ISBNs written with
          or without dashes compare equal.
    """

    source: ItemSource
    code: str

    def __post_init__(self):
        if not isinstance(self.source, ItemSource):
            object.__setattr__(self, "source", ItemSource(self.source))
        code = (self.code or "").strip()
        if self.source is ItemSource.EXTERNAL:
            code = normalize_external_code(code)
        if not code:
            raise ValueError("ItemRef code must be non-empty")
        object.__setattr__(self, "code", code)

    @classmethod
    def generated(cls, code: str) -> "ItemRef":
        return cls(ItemSource.GENERATED, code)

    @classmethod
    def external(cls, code: str) -> "ItemRef":
        return cls(ItemSource.EXTERNAL, code)

    def __str__(self) -> str:
        return f"{self.source.value}:{self.code}"
