"""Public API for the ``statement_ingest`` package.

Each function here is one request: it opens a transactional scope via
``ledger_db.client.session_scope`` (commit on success, rollback on error),
delegates to the workflow modules, and returns pydantic DTOs from
:mod:`statement_ingest.models`. Request-fatal problems surface as
:class:`~statement_ingest.errors.IngestError` subclasses; hosts turn them into
wire errors with :func:`error_response`.

``owner_id`` is the authenticated caller as established by the host's auth
layer; this package never authenticates, it only checks ownership.
"""

from __future__ import annotations

from ledger_db.client import session_scope

from . import staging as _staging
from .accounts import get_owned_account
from .commit import commit_upload
from .config import Settings
from .errors import IngestError, ValidationError
from .ingest.utils import parse_statement
from .ledger import list_account_transactions
from .logging_setup import get_logger
from .models import (
    CommitResult,
    ErrorResponse,
    LedgerEntry,
    StageResult,
    StagingRow,
    UploadSummary,
)
from .staging import CategorySuggester

logger = get_logger(__name__)


def upload_csv(
    content: bytes | str | None,
    *,
    filename: str,
    owner_id: str,
    account_id: int | None,
    database_url: str | None = None,
    suggest_category: CategorySuggester | None = None,
    settings: Settings | None = None,
) -> StageResult:
    """Parse an uploaded CSV/TSV statement and stage it for review.

    Rejects a missing/empty file, a missing account id, an account the
    caller does not own, and files with no parseable transaction (the row
    errors are returned as ``details``). Nothing is written in those cases.
    """

    if not content:
        raise ValidationError("No file provided")
    if account_id is None:
        raise ValidationError("No account ID provided")

    with session_scope(database_url=database_url) as session:
        get_owned_account(session, owner_id=owner_id, account_id=account_id)
        parsed = parse_statement(content)
        if not parsed.transactions:
            raise ValidationError(
                "Failed to parse CSV" if parsed.errors else "CSV contains no transactions",
                details=parsed.errors,
            )
        size = len(content.encode("utf-8")) if isinstance(content, str) else len(content)
        upload = _staging.create_upload(
            session,
            owner_id=owner_id,
            filename=filename,
            file_size=size,
            account_id=account_id,
        )
        return _staging.stage_upload(
            session, upload, parsed, suggest_category=suggest_category, settings=settings
        )


def import_staging(
    upload_id: int,
    *,
    owner_id: str,
    database_url: str | None = None,
    settings: Settings | None = None,
) -> CommitResult:
    """Commit the reviewed staging rows of ``upload_id`` into the ledger."""

    with session_scope(database_url=database_url) as session:
        return commit_upload(session, owner_id=owner_id, upload_id=upload_id, settings=settings)


def review_upload(
    upload_id: int,
    *,
    owner_id: str,
    database_url: str | None = None,
) -> list[StagingRow]:
    with session_scope(database_url=database_url) as session:
        rows = _staging.list_staging_transactions(session, owner_id=owner_id, upload_id=upload_id)
        return [StagingRow.model_validate(r) for r in rows]


def set_will_import(
    staging_id: int,
    will_import: bool,
    *,
    owner_id: str,
    database_url: str | None = None,
) -> StagingRow:
    with session_scope(database_url=database_url) as session:
        row = _staging.set_will_import(
            session, owner_id=owner_id, staging_id=staging_id, will_import=will_import
        )
        return StagingRow.model_validate(row)


def delete_staging_transaction(
    staging_id: int,
    *,
    owner_id: str,
    database_url: str | None = None,
) -> UploadSummary:
    """Delete one staging row; returns the upload with refreshed counters."""

    with session_scope(database_url=database_url) as session:
        upload = _staging.delete_staging_transaction(
            session, owner_id=owner_id, staging_id=staging_id
        )
        session.refresh(upload)
        return UploadSummary.model_validate(upload)


def delete_upload(
    upload_id: int,
    *,
    owner_id: str,
    database_url: str | None = None,
) -> int:
    with session_scope(database_url=database_url) as session:
        return _staging.delete_upload(session, owner_id=owner_id, upload_id=upload_id)


def list_uploads(
    *,
    owner_id: str,
    account_id: int | None = None,
    limit: int | None = None,
    database_url: str | None = None,
) -> list[UploadSummary]:
    with session_scope(database_url=database_url) as session:
        uploads = _staging.list_uploads(
            session, owner_id=owner_id, account_id=account_id, limit=limit
        )
        return [UploadSummary.model_validate(u) for u in uploads]


def list_transactions(
    account_id: int,
    *,
    owner_id: str,
    limit: int | None = None,
    database_url: str | None = None,
) -> list[LedgerEntry]:
    with session_scope(database_url=database_url) as session:
        rows = list_account_transactions(
            session, owner_id=owner_id, account_id=account_id, limit=limit
        )
        return [LedgerEntry.model_validate(r) for r in rows]


def error_response(exc: IngestError) -> ErrorResponse:
    """Structured wire error for a request-fatal failure."""

    logger.debug("Request failed: %s (%s)", exc.message, exc.code)
    return exc.to_response()


__all__ = [
    "delete_staging_transaction",
    "delete_upload",
    "error_response",
    "import_staging",
    "list_transactions",
    "list_uploads",
    "review_upload",
    "set_will_import",
    "upload_csv",
]
