"""Staging store: parsed rows held for human review before commit.

An Upload moves ``pending → staged`` here (or ``pending → failed`` when the
bulk insert fails). While ``staged`` the owner can list its rows, toggle
``will_import``, delete single rows or drop the whole batch.

Transaction boundaries
----------------------
``stage_upload`` commits twice on purpose: once to make the ``pending``
Upload durable, and once more after marking it ``failed`` if the staging
insert blows up, so the failure record survives the caller's rollback.
Every other function only flushes; the caller commits (see
``ledger_db.client.session_scope``), which keeps deletes all-or-nothing.

Every entry point checks ownership first: an unknown id raises
``NotFoundError``, someone else's upload raises ``AuthorizationError``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from ledger_db.models.finance import Category, StagingTransaction, Upload
from sqlalchemy import case, delete, func, select
from sqlalchemy.orm import Session

from .accounts import get_owned_account, resolve_import_account
from .config import Settings
from .ctv import CanonicalTransaction
from .duplicates import annotate_duplicates, fetch_existing_hashes
from .errors import AuthorizationError, NotFoundError, StagingError, StateConflictError
from .ingest.utils import ParseResult
from .logging_setup import get_logger
from .models import StageResult
from .persistence import chunked, insert_batch, scalars_in_pages

logger = get_logger(__name__)

type CategorySuggester = Callable[[CanonicalTransaction], str | None]
"""Optional hook returning a category code to pre-fill on a staging row."""


def get_owned_upload(session: Session, *, owner_id: str, upload_id: int) -> Upload:
    upload = session.get(Upload, upload_id)
    if upload is None:
        raise NotFoundError("upload not found", details={"upload_id": upload_id})
    if upload.user_id != owner_id:
        raise AuthorizationError(details={"upload_id": upload_id})
    return upload


def _get_owned_row(session: Session, *, owner_id: str, staging_id: int) -> StagingTransaction:
    row = session.get(StagingTransaction, staging_id)
    if row is None:
        raise NotFoundError("staging transaction not found", details={"staging_id": staging_id})
    get_owned_upload(session, owner_id=owner_id, upload_id=row.upload_id)
    return row


def create_upload(
    session: Session,
    *,
    owner_id: str,
    filename: str,
    file_size: int,
    account_id: int | None = None,
) -> Upload:
    """Insert a ``pending`` Upload after checking the target account's owner."""

    if account_id is not None:
        get_owned_account(session, owner_id=owner_id, account_id=account_id)
    upload = Upload(
        user_id=owner_id,
        account_id=account_id,
        filename=filename,
        file_size=file_size,
        status="pending",
    )
    session.add(upload)
    session.flush()
    return upload


def _suggestions(
    session: Session,
    transactions: list[CanonicalTransaction],
    suggest_category: CategorySuggester | None,
) -> list[str | None]:
    if suggest_category is None:
        return [None] * len(transactions)
    known = set(session.scalars(select(Category.code).where(Category.is_active.is_(True))))
    out: list[str | None] = []
    for tx in transactions:
        code = suggest_category(tx)
        if code is not None and code not in known:
            logger.debug("Row %d: ignoring unknown category suggestion %r", tx.row_number, code)
            code = None
        out.append(code)
    return out


def _staging_payloads(
    session: Session,
    upload: Upload,
    parsed: ParseResult,
    *,
    suggest_category: CategorySuggester | None,
    settings: Settings,
) -> tuple[list[dict[str, Any]], int]:
    account = resolve_import_account(
        session, owner_id=upload.user_id, account_id=upload.account_id, create=False
    )
    existing = fetch_existing_hashes(
        session,
        account_id=account.id if account is not None else None,
        page_size=settings.fetch_page_size,
    )
    checks = annotate_duplicates(parsed.transactions, existing)
    categories = _suggestions(session, parsed.transactions, suggest_category)

    payloads: list[dict[str, Any]] = []
    for check, category in zip(checks, categories, strict=True):
        tx = check.transaction
        payloads.append(
            {
                "upload_id": upload.id,
                "row_number": tx.row_number,
                "date": tx.date,
                "amount": tx.amount,
                "payee": tx.payee,
                "particulars": tx.particulars,
                "code": tx.code,
                "reference": tx.reference,
                "transaction_type": tx.transaction_type,
                "balance": tx.balance,
                "transaction_hash": check.transaction_hash,
                "is_duplicate": check.is_duplicate,
                "duplicate_reason": check.reason,
                "duplicate_of": check.duplicate_of,
                "will_import": not check.is_duplicate,
                "suggested_category": category,
            }
        )
    return payloads, sum(1 for c in checks if c.is_duplicate)


def stage_upload(
    session: Session,
    upload: Upload,
    parsed: ParseResult,
    *,
    suggest_category: CategorySuggester | None = None,
    settings: Settings | None = None,
) -> StageResult:
    """Persist ``parsed`` as staging rows for ``upload`` and mark it ``staged``.

    Duplicate scope is the upload's account or, when the upload has none yet,
    the account the committer would pick (looked up without creating one).
    Once the pending Upload is committed, any failure (duplicate lookup,
    category hook, bulk insert) leaves no staging rows, marks the Upload
    ``failed`` with the error message, and raises ``StagingError``.
    """

    settings = settings or Settings.from_env()
    if upload.status != "pending":
        raise StateConflictError(
            f"upload is {upload.status}, not pending",
            details={"upload_id": upload.id, "status": upload.status},
        )
    upload_id = upload.id
    # Make the pending record durable before attempting the bulk insert.
    session.commit()

    try:
        payloads, duplicate_count = _staging_payloads(
            session, upload, parsed, suggest_category=suggest_category, settings=settings
        )
        for batch in chunked(payloads, settings.insert_batch_size):
            insert_batch(session, StagingTransaction, batch)
        upload.status = "staged"
        upload.bank_format = parsed.bank.value
        upload.row_count = parsed.row_count
        upload.duplicates_found = duplicate_count
        upload.error_message = None
        upload.updated_at = func.now()
        session.flush()
    except Exception as exc:
        session.rollback()
        message = str(getattr(exc, "orig", None) or exc)
        failed = session.get(Upload, upload_id)
        assert failed is not None  # committed above
        failed.status = "failed"
        failed.error_message = message
        failed.updated_at = func.now()
        session.commit()
        logger.error("Staging upload %s failed: %s", upload_id, message)
        raise StagingError(
            "failed to stage transactions",
            details={"upload_id": upload_id, "reason": message},
        ) from exc

    logger.info(
        "Staged upload %s: %d rows, %d staged, %d duplicates (%s)",
        upload_id,
        parsed.row_count,
        len(payloads),
        duplicate_count,
        parsed.bank.value,
    )
    return StageResult(
        upload_id=upload_id,
        row_count=parsed.row_count,
        staged_count=len(payloads),
        duplicate_count=duplicate_count,
        bank=parsed.bank.value,
        errors=list(parsed.errors),
    )


def list_staging_transactions(
    session: Session,
    *,
    owner_id: str,
    upload_id: int,
    settings: Settings | None = None,
) -> list[StagingTransaction]:
    """Staging rows of one upload ordered by original row number."""

    settings = settings or Settings.from_env()
    get_owned_upload(session, owner_id=owner_id, upload_id=upload_id)
    stmt = (
        select(StagingTransaction)
        .where(StagingTransaction.upload_id == upload_id)
        .order_by(StagingTransaction.row_number, StagingTransaction.id)
    )
    return list(scalars_in_pages(session, stmt, page_size=settings.fetch_page_size))


def set_will_import(
    session: Session,
    *,
    owner_id: str,
    staging_id: int,
    will_import: bool,
) -> StagingTransaction:
    """Reviewer override for one row. Duplicates stay excluded at commit."""

    row = _get_owned_row(session, owner_id=owner_id, staging_id=staging_id)
    upload = session.get(Upload, row.upload_id)
    assert upload is not None  # checked by _get_owned_row
    if upload.status != "staged":
        raise StateConflictError(
            f"upload is {upload.status}, not staged",
            details={"upload_id": upload.id, "status": upload.status},
        )
    row.will_import = will_import
    session.flush()
    return row


def _recount(session: Session, upload: Upload) -> None:
    total, duplicates = session.execute(
        select(
            func.count(StagingTransaction.id),
            func.coalesce(
                func.sum(case((StagingTransaction.is_duplicate.is_(True), 1), else_=0)), 0
            ),
        ).where(StagingTransaction.upload_id == upload.id)
    ).one()
    upload.row_count = int(total)
    upload.duplicates_found = int(duplicates)
    upload.updated_at = func.now()


def delete_staging_transaction(session: Session, *, owner_id: str, staging_id: int) -> Upload:
    """Delete one staging row and refresh the upload's counters from the rest."""

    row = _get_owned_row(session, owner_id=owner_id, staging_id=staging_id)
    upload = session.get(Upload, row.upload_id)
    assert upload is not None  # checked by _get_owned_row
    session.delete(row)
    session.flush()
    _recount(session, upload)
    session.flush()
    logger.info(
        "Deleted staging row %s; upload %s now has %d rows (%d duplicates)",
        staging_id,
        upload.id,
        upload.row_count,
        upload.duplicates_found,
    )
    return upload


def delete_upload(session: Session, *, owner_id: str, upload_id: int) -> int:
    """Delete an upload and all of its staging rows; returns rows removed.

    Both deletes run in the caller's transaction, so either everything goes
    or nothing does.
    """

    upload = get_owned_upload(session, owner_id=owner_id, upload_id=upload_id)
    result = session.execute(
        delete(StagingTransaction).where(StagingTransaction.upload_id == upload_id)
    )
    session.delete(upload)
    session.flush()
    removed = result.rowcount or 0
    logger.info("Deleted upload %s with %d staging rows", upload_id, removed)
    return removed


def list_uploads(
    session: Session,
    *,
    owner_id: str,
    account_id: int | None = None,
    limit: int | None = None,
) -> list[Upload]:
    """Upload history for the owner, newest first."""

    stmt = select(Upload).where(Upload.user_id == owner_id)
    if account_id is not None:
        get_owned_account(session, owner_id=owner_id, account_id=account_id)
        stmt = stmt.where(Upload.account_id == account_id)
    stmt = stmt.order_by(Upload.uploaded_at.desc(), Upload.id.desc())
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(session.scalars(stmt))


__all__ = [
    "CategorySuggester",
    "create_upload",
    "delete_staging_transaction",
    "delete_upload",
    "get_owned_upload",
    "list_staging_transactions",
    "list_uploads",
    "set_will_import",
    "stage_upload",
]
