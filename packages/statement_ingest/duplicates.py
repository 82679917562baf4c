"""Duplicate detection against an account's ledger.

Public surface:
- ``DuplicateCheck``: per-transaction verdict (hash, flag, colliding ledger id).
- ``fetch_existing_hashes``: page through one account's ledger and return a
  ``hash -> ledger id`` index.
- ``annotate_duplicates``: mark each canonical transaction against that index.

Matching is exact-hash only. Two genuinely distinct purchases with the same
day, amount and payee (two identical coffees) are reported as duplicates
and are not imported; the staging row keeps the colliding ledger id so the
reviewer can see why. Rows within the same file are not compared with
each other, only with the ledger.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from ledger_db.models.finance import LedgerTransaction
from sqlalchemy import select
from sqlalchemy.orm import Session

from .ctv import CanonicalTransaction
from .logging_setup import get_logger
from .persistence import rows_in_pages, transaction_hash

logger = get_logger(__name__)

EXACT_MATCH_REASON = "Exact match: date, amount, and payee"


@dataclass(frozen=True, slots=True)
class DuplicateCheck:
    transaction: CanonicalTransaction
    transaction_hash: str
    is_duplicate: bool
    duplicate_of: int | None = None
    reason: str | None = None


def fetch_existing_hashes(
    session: Session,
    *,
    account_id: int | None,
    page_size: int,
) -> dict[str, int]:
    """Return ``{transaction_hash: ledger id}`` for every row in the account.

    Reads in offset pages ordered by id, so the lowest (oldest) ledger id is
    kept when several rows share a hash. ``account_id=None`` means the account
    does not exist yet and has no history.
    """

    if account_id is None:
        return {}
    stmt = (
        select(LedgerTransaction.transaction_hash, LedgerTransaction.id)
        .where(LedgerTransaction.account_id == account_id)
        .order_by(LedgerTransaction.id)
    )
    existing: dict[str, int] = {}
    for tx_hash, tx_id in rows_in_pages(session, stmt, page_size=page_size):
        existing.setdefault(tx_hash, tx_id)
    logger.debug("Loaded %d distinct ledger hashes for account %s", len(existing), account_id)
    return existing


def annotate_duplicates(
    transactions: Iterable[CanonicalTransaction],
    existing: dict[str, int],
) -> list[DuplicateCheck]:
    """Pair each transaction with its hash and duplicate verdict, in order."""

    out: list[DuplicateCheck] = []
    for tx in transactions:
        h = transaction_hash(tx)
        match = existing.get(h)
        if match is not None:
            out.append(
                DuplicateCheck(
                    transaction=tx,
                    transaction_hash=h,
                    is_duplicate=True,
                    duplicate_of=match,
                    reason=EXACT_MATCH_REASON,
                )
            )
        else:
            out.append(DuplicateCheck(transaction=tx, transaction_hash=h, is_duplicate=False))
    return out


__all__ = [
    "EXACT_MATCH_REASON",
    "DuplicateCheck",
    "annotate_duplicates",
    "fetch_existing_hashes",
]
