"""Row mapper for BNZ (Bank of New Zealand) CSV exports.

Typical header::

    Date,Amount,Payee,Particulars,Code,Reference,Tran Type,This Party Account,...

Columns are matched case-insensitively; ``Payee`` falls back to
``Description`` and the transaction type to ``Transaction Type``/``Type``.
"""

from __future__ import annotations

from ...ctv import CanonicalTransaction
from ._common import RawRow, lookup, make_transaction


def to_ctv_row(row: RawRow, row_number: int) -> CanonicalTransaction | None:
    return make_transaction(
        row_number,
        date_raw=lookup(row, "Date"),
        amount_raw=lookup(row, "Amount"),
        payee_raw=lookup(row, "Payee", "Description"),
        particulars=lookup(row, "Particulars"),
        code=lookup(row, "Code"),
        reference=lookup(row, "Reference"),
        transaction_type=lookup(row, "Tran Type", "Transaction Type", "Type"),
        balance_raw=lookup(row, "Balance"),
    )


__all__ = ["to_ctv_row"]
