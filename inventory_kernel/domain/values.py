"""
Value helpers for the ledger: price parsing and adjustment modes.

Prices arrive from forms and CSV imports as currency-formatted strings
("$1,234.50", "JMD 950.00", "12").  They are parsed to ``Decimal`` and
quantized to cents.  Floats are never used for money.
"""

import re
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from inventory_kernel.exceptions import InvalidPriceError

CENTS = Decimal("0.01")

# Optional leading currency: a 3-letter code ("JMD"), "$" with up to two
# letters ("US$", "J$"), or a pound/euro sign
_CURRENCY_PREFIX = re.compile(r"^(?:[A-Za-z]{3}|[A-Za-z]{0,2}\$|[\u00a3\u20ac])\s*")

# Plain decimal, commas only as thousands separators
_AMOUNT = re.compile(r"-?(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?")


class AdjustmentMode(str, Enum):
    """How an ``amount`` is turned into a signed quantity delta."""

    ADD = "add"
    REMOVE = "remove"
    SET = "set"


def parse_price(raw: str | int | Decimal) -> Decimal:
    """
    Parse a price into a non-negative Decimal rounded to cents.

    Raises:
        InvalidPriceError: empty, unparseable, non-finite or negative input.
    """
    if isinstance(raw, bool) or isinstance(raw, float):
        raise InvalidPriceError(repr(raw), "use a string or Decimal, not a float")

    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, int):
        value = Decimal(raw)
    elif isinstance(raw, str):
        text = _CURRENCY_PREFIX.sub("", raw.strip(), count=1)
        if not text:
            raise InvalidPriceError(raw, "no numeric value")
        if not _AMOUNT.fullmatch(text):
            raise InvalidPriceError(raw, "not a number")
        value = Decimal(text.replace(",", ""))
    else:
        raise InvalidPriceError(repr(raw), f"unsupported type {type(raw).__name__}")

    if not value.is_finite():
        raise InvalidPriceError(str(raw), "not a finite number")
    if value < 0:
        raise InvalidPriceError(str(raw), "price cannot be negative")

    return value.quantize(CENTS, rounding=ROUND_HALF_UP)
