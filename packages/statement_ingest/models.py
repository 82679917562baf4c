"""Boundary DTOs for ``statement_ingest``.

These pydantic models are the record shapes the import workflow hands to its
callers (HTTP handlers, the CLI). They serialize with camelCase aliases
(``model_dump(by_alias=True)``) so the wire shape stays
``{uploadId, rowCount, stagedCount, duplicateCount}`` and friends, while the
Python side keeps snake_case attribute names.

Dates are always ``YYYY-MM-DD`` on the wire; amounts are decimals serialized
as strings in JSON mode to avoid float rounding.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _Dto(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        extra="forbid",
    )


# ---------------------------------------------------------------------------
# Stage / commit results
# ---------------------------------------------------------------------------


class StageResult(_Dto):
    """Outcome of uploading and staging one CSV file."""

    upload_id: int
    row_count: int
    staged_count: int
    duplicate_count: int
    bank: str
    # Row-level parse errors ("Row N: ..."); the rows were skipped, not staged.
    errors: list[str] = []


class CommitResult(_Dto):
    success: bool = True
    imported: int


class ErrorResponse(_Dto):
    """Structured, human-readable error for request-fatal failures."""

    error: str
    code: str
    details: Any | None = None


# ---------------------------------------------------------------------------
# Review and history views
# ---------------------------------------------------------------------------


class StagingRow(_Dto):
    id: int
    upload_id: int
    row_number: int
    date: dt.date
    amount: Decimal
    payee: str
    particulars: str | None = None
    code: str | None = None
    reference: str | None = None
    transaction_type: str | None = None
    balance: Decimal | None = None
    transaction_hash: str
    is_duplicate: bool
    duplicate_reason: str | None = None
    duplicate_of: int | None = None
    will_import: bool
    suggested_category: str | None = None


class UploadSummary(_Dto):
    id: int
    account_id: int | None = None
    filename: str
    file_size: int
    bank_format: str | None = None
    row_count: int
    duplicates_found: int
    transactions_imported: int | None = None
    status: str
    error_message: str | None = None
    uploaded_at: dt.datetime | None = None
    imported_at: dt.datetime | None = None


class LedgerEntry(_Dto):
    id: int
    account_id: int
    upload_id: int | None = None
    date: dt.date
    amount: Decimal
    payee: str
    particulars: str | None = None
    code: str | None = None
    reference: str | None = None
    transaction_type: str | None = None
    balance: Decimal | None = None
    transaction_hash: str
    category: str | None = None


# ---------------------------------------------------------------------------
# Dry-run parse preview (no database)
# ---------------------------------------------------------------------------


class ParsedTransaction(_Dto):
    row_number: int
    date: dt.date
    amount: Decimal
    payee: str
    particulars: str | None = None
    code: str | None = None
    reference: str | None = None
    transaction_type: str | None = None
    balance: Decimal | None = None


class ParsePreview(_Dto):
    bank: str
    row_count: int
    delimiter: str
    transactions: list[ParsedTransaction]
    errors: list[str] = []


__all__ = [
    "CommitResult",
    "ErrorResponse",
    "LedgerEntry",
    "ParsePreview",
    "ParsedTransaction",
    "StageResult",
    "StagingRow",
    "UploadSummary",
]
