"""Import committer: move a reviewed staging batch into the ledger.

State machine per Upload: ``staged --commit--> imported`` (terminal). On any
failure the Upload stays ``staged`` and its staging rows stay put; nothing
partial is ever visible.

Steps
-----
1. Ownership check, then reject ``imported`` uploads before touching data.
2. Select rows with ``will_import AND NOT is_duplicate`` in offset pages.
3. No rows → ``NothingToImportError``.
4. Resolve the target account (upload's, else owner's first, else a new
   default checking account).
5. Insert into the ledger in fixed-size batches, collecting returned ids.
6. Reconcile: returned ids and a recount of ledger rows tagged with this
   upload must both equal the selected count.
7. Mark the Upload ``imported``, refresh the account balance, delete all of
   the upload's staging rows. Steps 5–7 share one database transaction, so
   cleanup is only durable together with the inserted rows.
"""

from __future__ import annotations

import datetime as dt
from typing import Any

from ledger_db.models.finance import LedgerTransaction, StagingTransaction
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .accounts import refresh_balance, resolve_import_account
from .config import Settings
from .errors import (
    AlreadyImportedError,
    BatchInsertError,
    IngestError,
    NothingToImportError,
    ReconciliationError,
    StateConflictError,
    StorageError,
)
from .logging_setup import get_logger
from .models import CommitResult
from .persistence import chunked, insert_batch, scalars_in_pages
from .staging import get_owned_upload

logger = get_logger(__name__)


def _ledger_payload(row: StagingTransaction, *, account_id: int) -> dict[str, Any]:
    tx_type = row.transaction_type or ("credit" if row.amount >= 0 else "debit")
    return {
        "account_id": account_id,
        "upload_id": row.upload_id,
        "date": row.date,
        "amount": row.amount,
        "payee": row.payee,
        "particulars": row.particulars,
        "code": row.code,
        "reference": row.reference,
        "transaction_type": tx_type,
        "balance": row.balance,
        "transaction_hash": row.transaction_hash,
        "category": row.suggested_category,
        "needs_review": True,
    }


def _insert_in_batches(
    session: Session,
    payloads: list[dict[str, Any]],
    *,
    batch_size: int,
) -> int:
    inserted = 0
    for number, batch in enumerate(chunked(payloads, batch_size), start=1):
        try:
            ids = insert_batch(session, LedgerTransaction, batch)
        except SQLAlchemyError as exc:
            reason = str(getattr(exc, "orig", None) or exc)
            logger.error("Ledger batch %d (%d rows) failed: %s", number, len(batch), reason)
            raise BatchInsertError(number, batch_size=len(batch), reason=reason) from exc
        inserted += len(ids)
    return inserted


def commit_upload(
    session: Session,
    *,
    owner_id: str,
    upload_id: int,
    settings: Settings | None = None,
) -> CommitResult:
    """Commit an upload's reviewed staging rows into the ledger.

    On failure the session is rolled back before the error propagates, so
    the Upload keeps its prior status and its staging rows regardless of how
    the caller handles the exception. On success the caller commits.
    """

    settings = settings or Settings.from_env()
    upload = get_owned_upload(session, owner_id=owner_id, upload_id=upload_id)
    if upload.status == "imported":
        raise AlreadyImportedError(upload_id)
    if upload.status != "staged":
        raise StateConflictError(
            f"upload is {upload.status}, not staged",
            details={"upload_id": upload_id, "status": upload.status},
        )

    stmt = (
        select(StagingTransaction)
        .where(
            StagingTransaction.upload_id == upload_id,
            StagingTransaction.will_import.is_(True),
            StagingTransaction.is_duplicate.is_(False),
        )
        .order_by(StagingTransaction.row_number, StagingTransaction.id)
    )
    rows = list(scalars_in_pages(session, stmt, page_size=settings.fetch_page_size))
    if not rows:
        raise NothingToImportError(upload_id)
    expected = len(rows)

    try:
        account = resolve_import_account(
            session, owner_id=owner_id, account_id=upload.account_id, create=True
        )
        assert account is not None  # create=True always yields an account
        payloads = [_ledger_payload(r, account_id=account.id) for r in rows]
        inserted = _insert_in_batches(
            session, payloads, batch_size=settings.insert_batch_size
        )
        stored = session.execute(
            select(func.count(LedgerTransaction.id)).where(
                LedgerTransaction.upload_id == upload_id
            )
        ).scalar_one()
        if inserted != expected or stored != expected:
            logger.error(
                "Upload %s reconciliation failed: returned=%d stored=%d expected=%d",
                upload_id,
                inserted,
                stored,
                expected,
            )
            raise ReconciliationError(
                inserted if inserted != expected else stored,
                expected,
                details={"returned": inserted, "stored": stored, "upload_id": upload_id},
            )

        refresh_balance(session, account, ((r.date, r.row_number, r.balance) for r in rows))
        upload.status = "imported"
        upload.account_id = account.id
        upload.transactions_imported = inserted
        upload.imported_at = dt.datetime.now(dt.UTC)
        upload.updated_at = func.now()
        session.execute(
            delete(StagingTransaction).where(StagingTransaction.upload_id == upload_id)
        )
        session.flush()
    except IngestError:
        session.rollback()
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        raise StorageError(
            "import failed", details={"upload_id": upload_id, "reason": str(exc)}
        ) from exc

    logger.info(
        "Imported %d transactions from upload %s into account %s",
        inserted,
        upload_id,
        account.id,
    )
    return CommitResult(success=True, imported=inserted)


__all__ = ["commit_upload"]
