"""Read side of the ledger: an account's history, newest first."""

from __future__ import annotations

from ledger_db.models.finance import LedgerTransaction
from sqlalchemy import select
from sqlalchemy.orm import Session

from .accounts import get_owned_account
from .config import Settings
from .persistence import scalars_in_pages


def list_account_transactions(
    session: Session,
    *,
    owner_id: str,
    account_id: int,
    limit: int | None = None,
    settings: Settings | None = None,
) -> list[LedgerTransaction]:
    """Return ledger rows for one owned account ordered by date descending.

    Reads in pages of ``fetch_page_size``; ``limit`` caps the total returned.
    Same-day rows are ordered by id descending so the order is stable.
    """

    if limit is not None and limit <= 0:
        return []
    settings = settings or Settings.from_env()
    get_owned_account(session, owner_id=owner_id, account_id=account_id)
    stmt = (
        select(LedgerTransaction)
        .where(LedgerTransaction.account_id == account_id)
        .order_by(LedgerTransaction.date.desc(), LedgerTransaction.id.desc())
    )
    page_size = settings.fetch_page_size if limit is None else min(limit, settings.fetch_page_size)
    out: list[LedgerTransaction] = []
    for tx in scalars_in_pages(session, stmt, page_size=page_size):
        out.append(tx)
        if limit is not None and len(out) >= limit:
            break
    return out


__all__ = ["list_account_transactions"]
