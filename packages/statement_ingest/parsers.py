"""Field parsers for bank CSV cells (dates and amounts).

Both parsers are pure and never raise on bad input: they return ``None`` so
row mappers can drop the row and the pipeline can record a parse error.
Neither ever substitutes a default ("today", ``0.00``) for a value it could
not read.
"""

from __future__ import annotations

import calendar
import datetime as dt
import re
import unicodedata
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

MIN_YEAR = 1900
MAX_YEAR = 2100
TWO_DIGIT_YEAR_PIVOT = 50

# (label, pattern, component order). Tried in this order; the first pattern
# that yields a valid calendar day wins. ISO-8601 leads and may carry a time
# part, which is ignored.
_DATE_FORMATS: tuple[tuple[str, re.Pattern[str], str], ...] = (
    ("iso-8601", re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ].*)?$"), "ymd"),
    ("dd/MM/yyyy", re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$"), "dmy"),
    ("dd-MM-yyyy", re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$"), "dmy"),
    ("dd/MM/yy", re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2})$"), "dmy"),
    ("dd-MM-yy", re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{2})$"), "dmy"),
    ("yyyy-MM-dd", re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$"), "ymd"),
    ("MM/dd/yyyy", re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$"), "mdy"),
)


def _expand_year(raw: str) -> int:
    year = int(raw)
    if len(raw) == 2:
        return 1900 + year if year >= TWO_DIGIT_YEAR_PIVOT else 2000 + year
    return year


def _build_date(year: int, month: int, day: int) -> dt.date | None:
    if not (MIN_YEAR <= year <= MAX_YEAR and 1 <= month <= 12 and 1 <= day <= 31):
        return None
    if day > calendar.monthrange(year, month)[1]:
        return None
    # Built from the numeric parts only; nothing here knows about timezones.
    return dt.date(year, month, day)


def parse_date(value: str | None) -> dt.date | None:
    """Parse a bank date cell into a calendar day, or ``None``.

    Accepted encodings, in priority order: ISO-8601 (``YYYY-MM-DD``, optional
    time suffix), ``dd/MM/yyyy``, ``dd-MM-yyyy``, ``dd/MM/yy``, ``dd-MM-yy``,
    ``yyyy-MM-dd``, ``MM/dd/yyyy``. Two-digit years pivot at 50 (``75`` →
    1975, ``24`` → 2024). Values outside day 1–31, month 1–12 or year
    1900–2100, and impossible days such as 31 February, fall through to the
    next format and finally to ``None``.
    """

    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    for _label, pattern, order in _DATE_FORMATS:
        m = pattern.match(s)
        if m is None:
            continue
        parts = dict(zip(order, m.groups()[:3], strict=True))
        parsed = _build_date(_expand_year(parts["y"]), int(parts["m"]), int(parts["d"]))
        if parsed is not None:
            return parsed
    return None


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------

_NUMERIC = re.compile(r"^(?:\d+(?:\.\d*)?|\.\d+)$")
_CENT = Decimal("0.01")


def _strip_noise(raw: str) -> str:
    # Currency symbols ($, €, £, ...), thousands separators and any whitespace.
    return "".join(
        ch
        for ch in raw
        if ch != "," and not ch.isspace() and unicodedata.category(ch) != "Sc"
    )


def parse_amount(value: str | None) -> Decimal | None:
    """Parse a money cell into a signed 2dp ``Decimal``, or ``None``.

    ``"$1,234.56"`` → ``1234.56``; ``"(150.00)"`` → ``-150.00``;
    ``"-$5"`` → ``-5.00``. Parentheses (accounting notation) mean negative
    regardless of any sign inside them. Empty or non-numeric cells return
    ``None``; a genuine ``0.00`` is returned as such and is the caller's to
    flag as suspect.
    """

    if value is None:
        return None
    s = _strip_noise(value)
    if not s:
        return None

    # At most one sign and one parenthesis pair; "(-3)" and "-(3)" are both
    # accepted, "--5" and "-(-5)" are not.
    negative = False
    signed = s[:1] in ("+", "-")
    if signed:
        negative = s[0] == "-"
        s = s[1:]
    if len(s) >= 2 and s.startswith("(") and s.endswith(")"):
        negative = True
        s = s[1:-1]
        if not signed and s[:1] in ("+", "-"):
            s = s[1:]

    if not _NUMERIC.match(s):
        return None
    try:
        d = Decimal(s)
    except InvalidOperation:
        return None
    d = d.quantize(_CENT, rounding=ROUND_HALF_UP)
    # "(0.00)" stays 0.00 so zero never hashes differently by sign.
    return -d if negative and d else d


def clean_text(value: str | None) -> str | None:
    """Collapse internal whitespace and trim; empty strings become ``None``."""

    if value is None:
        return None
    cleaned = re.sub(r"\s+", " ", value).strip()
    return cleaned if cleaned else None


__all__ = ["clean_text", "parse_amount", "parse_date"]
