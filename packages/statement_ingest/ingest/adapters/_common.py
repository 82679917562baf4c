"""Shared helpers for bank row mappers.

Bank exports are inconsistent about header casing and about which optional
columns are present row to row, so every lookup here is case-insensitive and
treats missing and empty cells alike.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping

from ...ctv import UNKNOWN_PAYEE, CanonicalTransaction
from ...parsers import clean_text, parse_amount, parse_date

type RawRow = Mapping[str, str]
type RowMapper = Callable[[RawRow, int], CanonicalTransaction | None]


def _lowered(row: RawRow) -> dict[str, str]:
    out: dict[str, str] = {}
    for key, value in row.items():
        if key is None:
            continue
        # First occurrence wins when two headers differ only by case.
        out.setdefault(key.strip().lower(), value or "")
    return out


def lookup(row: RawRow, *aliases: str) -> str | None:
    """Return the first non-empty cell among ``aliases`` (case-insensitive)."""

    cells = _lowered(row)
    for alias in aliases:
        value = cells.get(alias.lower())
        if value is not None and value.strip():
            return value
    return None


def find_column(row: RawRow, *needles: str) -> str | None:
    """Return the first header (in file order) containing any of ``needles``."""

    for key in row:
        if key is None:
            continue
        lowered = key.lower()
        if any(n in lowered for n in needles):
            return key
    return None


def make_transaction(
    row_number: int,
    *,
    date_raw: str | None,
    amount_raw: str | None,
    payee_raw: str | None = None,
    particulars: str | None = None,
    code: str | None = None,
    reference: str | None = None,
    transaction_type: str | None = None,
    balance_raw: str | None = None,
) -> CanonicalTransaction | None:
    """Build a :class:`CanonicalTransaction` or ``None`` when date/amount fail."""

    date = parse_date(date_raw)
    if date is None:
        return None
    amount = parse_amount(amount_raw)
    if amount is None:
        return None
    return CanonicalTransaction(
        row_number=row_number,
        date=date,
        amount=amount,
        payee=clean_text(payee_raw) or UNKNOWN_PAYEE,
        particulars=clean_text(particulars),
        code=clean_text(code),
        reference=clean_text(reference),
        transaction_type=clean_text(transaction_type),
        balance=parse_amount(balance_raw),
    )


__all__ = ["RawRow", "RowMapper", "find_column", "lookup", "make_transaction"]
