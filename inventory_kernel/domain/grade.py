"""
Grade classifier -- derives an advisory grade level from a book title.

Recognized labels: ``K1``-``K3``, ``Pre-K``, ``Grade 1``-``Grade 13``,
``CSEC`` and ``CAPE``.  The result is metadata only; an unrecognized title
yields ``None`` and never blocks an edit.
"""

import re

_KINDERGARTEN = re.compile(
    r"\bkindergarten\s*([1-3])?\b|\bkinder\s*([1-3])\b|\bk\s*([1-3])\b"
)
_PRE_K = re.compile(r"\b(pre-?k|pre-?school|infant\s+book\s+1)\b")

_GRADE_WORDS = {
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
    "eleven": 11,
    "twelve": 12,
    "thirteen": 13,
}

_GRADE = re.compile(
    r"\bgrade\s+(\d{1,2}|" + "|".join(_GRADE_WORDS) + r")\b"
    r"|\b(\d{1,2}|" + "|".join(_GRADE_WORDS) + r")\s+grade\b"
)

_CSEC = re.compile(r"\bcsec\b")
_CAPE = re.compile(r"\bcape\b")


def _grade_number(token: str) -> int | None:
    number = _GRADE_WORDS.get(token)
    if number is None and token.isdigit():
        number = int(token)
    if number is not None and 1 <= number <= 13:
        return number
    return None


def extract_grade(title: str | None) -> str | None:
    """Return the grade label for ``title`` or None when none is recognized."""
    if not title:
        return None
    text = title.lower()

    match = _KINDERGARTEN.search(text)
    if match:
        digit = next((g for g in match.groups() if g), None)
        return f"K{digit or 1}"

    if _PRE_K.search(text):
        return "Pre-K"

    for match in _GRADE.finditer(text):
        number = _grade_number(match.group(1) or match.group(2))
        if number is not None:
            return f"Grade {number}"

    if _CSEC.search(text):
        return "CSEC"
    if _CAPE.search(text):
        return "CAPE"

    return None
