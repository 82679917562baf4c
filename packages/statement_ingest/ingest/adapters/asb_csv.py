"""Row mapper for ASB CSV exports.

Typical header::

    Date,Unique Id,Tran Type,Cheque Number,Payee,Memo,Amount

Business/credit-card exports use ``Tran Date`` and ``Transaction
Description`` instead; both spellings are accepted. ``Unique Id`` stands in
for a missing ``Reference``. The pipeline reads the first non-blank line as
the header, so an export with an account-details preamble above it has to be
trimmed before upload.
"""

from __future__ import annotations

from ...ctv import CanonicalTransaction
from ._common import RawRow, lookup, make_transaction


def to_ctv_row(row: RawRow, row_number: int) -> CanonicalTransaction | None:
    return make_transaction(
        row_number,
        date_raw=lookup(row, "Tran Date", "Date"),
        amount_raw=lookup(row, "Amount"),
        payee_raw=lookup(row, "Transaction Description", "Description", "Payee"),
        particulars=lookup(row, "Memo", "Particulars"),
        code=lookup(row, "Cheque Number", "Code"),
        reference=lookup(row, "Reference", "Unique Id"),
        transaction_type=lookup(row, "Tran Type", "Type"),
        balance_raw=lookup(row, "Balance"),
    )


__all__ = ["to_ctv_row"]
