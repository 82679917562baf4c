"""Row mapper for ANZ CSV exports.

Typical header::

    Type,Details,Particulars,Code,Reference,Amount,Date,ForeignCurrencyAmount,ConversionCharge

``Details`` carries the counterparty; ``Type`` is kept verbatim (``Debit``,
``Eft-Pos``, ``Direct Credit``...) as the transaction type.
"""

from __future__ import annotations

from ...ctv import CanonicalTransaction
from ._common import RawRow, lookup, make_transaction


def to_ctv_row(row: RawRow, row_number: int) -> CanonicalTransaction | None:
    return make_transaction(
        row_number,
        date_raw=lookup(row, "Date", "Transaction Date", "Processed Date"),
        amount_raw=lookup(row, "Amount"),
        payee_raw=lookup(row, "Details", "Description", "Payee"),
        particulars=lookup(row, "Particulars"),
        code=lookup(row, "Code"),
        reference=lookup(row, "Reference"),
        transaction_type=lookup(row, "Type"),
        balance_raw=lookup(row, "Balance"),
    )


__all__ = ["to_ctv_row"]
