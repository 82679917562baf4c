"""Persistence primitives shared by staging, commit and ledger reads.

Scope:
- Compute the transaction identity hash used for duplicate detection.
- Read large result sets in offset-bounded pages (fixed page size, sequential
  offsets) so no single query is unbounded.
- Bulk-insert rows in fixed-size batches with ``INSERT .. RETURNING id`` so
  callers can reconcile how many rows were actually stored.

Functions here never commit; transaction boundaries belong to the caller.
"""

from __future__ import annotations

import datetime as dt
import hashlib
import json
import re
from collections.abc import Iterator, Mapping, Sequence
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Select, insert
from sqlalchemy.orm import Session

from .ctv import CanonicalTransaction


def normalize_payee(payee: str | None) -> str:
    """Lower-case (casefold), collapse internal whitespace and trim."""

    if payee is None:
        return ""
    return re.sub(r"\s+", " ", payee).strip().casefold()


def _amount_2dp(amount: Decimal | str | int | float) -> str:
    try:
        d = Decimal(str(amount))
    except InvalidOperation as exc:
        raise ValueError(f"invalid amount for hashing: {amount!r}") from exc
    q = d.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    # -0.00 and 0.00 are the same money.
    return f"{q:.2f}" if q else "0.00"


def _iso_day(value: dt.date | str) -> str:
    if isinstance(value, dt.datetime):
        value = value.date()
    if isinstance(value, dt.date):
        return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
    return dt.date.fromisoformat(str(value).strip()[:10]).isoformat()


def compute_transaction_hash(
    date: dt.date | str,
    amount: Decimal | str | int | float,
    payee: str | None,
) -> str:
    """Compute a stable SHA-256 over ``(date, amount, normalized payee)``.

    Fields used: date (``YYYY-MM-DD``), amount (2dp string, ASCII dot),
    payee (see :func:`normalize_payee`). Particulars, code, reference, type
    and balance are deliberately excluded. Two distinct transactions with the
    same day, amount and payee hash equal; that false positive is accepted.
    """

    payload = {
        "date": _iso_day(date),
        "amount": _amount_2dp(amount),
        "payee": normalize_payee(payee),
    }
    # Ensure deterministic JSON serialization
    data = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def transaction_hash(tx: CanonicalTransaction) -> str:
    return compute_transaction_hash(tx.date, tx.amount, tx.payee)


# ---------------------------------------------------------------------------
# Paged reads
# ---------------------------------------------------------------------------


def rows_in_pages(session: Session, stmt: Select[Any], *, page_size: int) -> Iterator[Any]:
    """Yield result rows of ``stmt`` one page at a time.

    ``stmt`` must carry a deterministic ``ORDER BY``; otherwise rows may be
    skipped or repeated between pages.
    """

    if page_size <= 0:
        raise ValueError("page_size must be positive")
    offset = 0
    while True:
        page = session.execute(stmt.limit(page_size).offset(offset)).all()
        yield from page
        if len(page) < page_size:
            return
        offset += page_size


def scalars_in_pages(session: Session, stmt: Select[Any], *, page_size: int) -> Iterator[Any]:
    """Like :func:`rows_in_pages` but yields the first column of each row."""

    for row in rows_in_pages(session, stmt, page_size=page_size):
        yield row[0]


# ---------------------------------------------------------------------------
# Batched inserts
# ---------------------------------------------------------------------------


def chunked[T](items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    if size <= 0:
        raise ValueError("batch size must be positive")
    for start in range(0, len(items), size):
        yield items[start : start + size]


def insert_batch(
    session: Session,
    model: type[Any],
    payloads: Sequence[Mapping[str, Any]],
) -> list[int]:
    """Insert ``payloads`` into ``model``'s table and return the new ids."""

    if not payloads:
        return []
    result = session.execute(insert(model).returning(model.id), [dict(p) for p in payloads])
    return list(result.scalars().all())


__all__ = [
    "chunked",
    "compute_transaction_hash",
    "insert_batch",
    "normalize_payee",
    "rows_in_pages",
    "scalars_in_pages",
    "transaction_hash",
]
