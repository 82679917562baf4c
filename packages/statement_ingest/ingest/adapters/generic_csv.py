"""Fallback row mapper for exports no specific mapper claims.

Columns are discovered by substring match on the header name, first match in
file order: ``date``; ``amount``; ``description``/``details``/``payee`` for
the counterparty; ``balance``. Reference, particulars, code and type are
picked up the same way when present.
"""

from __future__ import annotations

from ...ctv import CanonicalTransaction
from ._common import RawRow, find_column, make_transaction


def _cell(row: RawRow, *needles: str) -> str | None:
    key = find_column(row, *needles)
    return row.get(key) if key is not None else None


def to_ctv_row(row: RawRow, row_number: int) -> CanonicalTransaction | None:
    if find_column(row, "date") is None or find_column(row, "amount") is None:
        return None
    return make_transaction(
        row_number,
        date_raw=_cell(row, "date"),
        amount_raw=_cell(row, "amount"),
        payee_raw=_cell(row, "description", "details", "payee"),
        particulars=_cell(row, "particulars"),
        code=_cell(row, "code"),
        reference=_cell(row, "reference"),
        transaction_type=_cell(row, "type"),
        balance_raw=_cell(row, "balance"),
    )


__all__ = ["to_ctv_row"]
