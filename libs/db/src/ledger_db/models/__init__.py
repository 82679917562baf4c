"""Shared SQLAlchemy models registry for the ledger database.

Holds the ledger, account and CSV import workflow tables used by
``statement_ingest``.
"""

from .finance import (
    Account,
    Base,
    Category,
    LedgerTransaction,
    StagingTransaction,
    Upload,
)

__all__ = [
    "Account",
    "Base",
    "Category",
    "LedgerTransaction",
    "StagingTransaction",
    "Upload",
]
