"""Canonical Transaction View (CTV) record.

The bank-format-independent normalized representation of one parsed CSV row.
Every row mapper in :mod:`statement_ingest.ingest.adapters` produces this
shape, and everything downstream (hashing, staging, commit) consumes only it.

Field order (exact):
    - row_number: 1-based position among the file's non-blank data rows
    - date: calendar day (no time, no timezone)
    - amount: signed 2dp ``Decimal``; positive = credit/inflow
    - payee: counterparty display string, ``"Unknown"`` when absent
    - particulars, code, reference, transaction_type: optional bank-specific
      free text, kept for display/reconciliation, never part of identity
    - balance: running balance reported by the bank after this row, if any
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from decimal import Decimal

UNKNOWN_PAYEE = "Unknown"


@dataclass(frozen=True, slots=True)
class CanonicalTransaction:
    """A single canonicalized transaction row.

    Instances exist only when both ``date`` and ``amount`` parsed; mappers
    return ``None`` instead of coercing a bad cell to zero or epoch.
    """

    row_number: int
    date: dt.date
    amount: Decimal
    payee: str = UNKNOWN_PAYEE
    particulars: str | None = None
    code: str | None = None
    reference: str | None = None
    transaction_type: str | None = None
    balance: Decimal | None = None


__all__ = ["UNKNOWN_PAYEE", "CanonicalTransaction"]
