from __future__ import annotations

import datetime as dt
from decimal import Decimal

from ledger_db.client import session_scope

from statement_ingest.ctv import CanonicalTransaction
from statement_ingest.duplicates import (
    EXACT_MATCH_REASON,
    annotate_duplicates,
    fetch_existing_hashes,
)
from statement_ingest.persistence import compute_transaction_hash, normalize_payee
from tests.helpers.db import seed_account, seed_ledger


def _tx(row: int, day: str, amount: str, payee: str) -> CanonicalTransaction:
    return CanonicalTransaction(
        row_number=row,
        date=dt.date.fromisoformat(day),
        amount=Decimal(amount),
        payee=payee,
    )


# ---- Hashing -----------------------------------------------------------------


def test_hash_is_hex_sha256_and_deterministic() -> None:
    h1 = compute_transaction_hash(dt.date(2024, 3, 15), Decimal("-4.50"), "Coffee Co")
    h2 = compute_transaction_hash(dt.date(2024, 3, 15), Decimal("-4.50"), "Coffee Co")
    assert h1 == h2
    assert len(h1) == 64
    int(h1, 16)


def test_hash_ignores_payee_case_and_whitespace() -> None:
    base = compute_transaction_hash(dt.date(2024, 3, 15), Decimal("-4.50"), "Coffee Co")
    assert compute_transaction_hash("2024-03-15", "-4.5", "  COFFEE   co ") == base


def test_hash_uses_two_decimal_amount() -> None:
    a = compute_transaction_hash("2024-03-15", Decimal("10"), "Shop")
    b = compute_transaction_hash("2024-03-15", Decimal("10.00"), "Shop")
    assert a == b


def test_hash_changes_with_any_identity_field() -> None:
    base = compute_transaction_hash("2024-03-15", "-4.50", "Coffee Co")
    assert compute_transaction_hash("2024-03-16", "-4.50", "Coffee Co") != base
    assert compute_transaction_hash("2024-03-15", "4.50", "Coffee Co") != base
    assert compute_transaction_hash("2024-03-15", "-4.50", "Coffee Co Ltd") != base


def test_normalize_payee() -> None:
    assert normalize_payee("  Coffee\t\tCO  ") == "coffee co"
    assert normalize_payee(None) == ""


# ---- Annotation ----------------------------------------------------------------


def test_annotate_flags_exact_matches_only() -> None:
    seen = _tx(1, "2024-03-15", "-4.50", "Coffee Co")
    fresh = _tx(2, "2024-03-15", "-4.60", "Coffee Co")
    existing = {compute_transaction_hash("2024-03-15", "-4.50", "coffee co"): 42}

    checks = annotate_duplicates([seen, fresh], existing)

    assert [c.is_duplicate for c in checks] == [True, False]
    assert checks[0].duplicate_of == 42
    assert checks[0].reason == EXACT_MATCH_REASON
    assert checks[1].duplicate_of is None
    assert checks[1].reason is None


def test_identical_same_day_purchases_are_reported_as_duplicates() -> None:
    """Known limitation: two real coffees on one day share one identity."""

    first = _tx(1, "2024-03-15", "-4.50", "Coffee Co")
    second = _tx(2, "2024-03-15", "-4.50", "Coffee Co")
    existing = {compute_transaction_hash("2024-03-15", "-4.50", "Coffee Co"): 7}

    checks = annotate_duplicates([first, second], existing)

    assert all(c.is_duplicate for c in checks)
    assert checks[0].transaction_hash == checks[1].transaction_hash


def test_rows_within_one_file_are_not_compared_with_each_other() -> None:
    rows = [
        _tx(1, "2024-03-15", "-4.50", "Coffee Co"),
        _tx(2, "2024-03-15", "-4.50", "Coffee Co"),
    ]

    checks = annotate_duplicates(rows, {})

    assert not any(c.is_duplicate for c in checks)


# ---- Ledger lookup -------------------------------------------------------------


def test_fetch_existing_hashes_pages_and_keeps_lowest_id(database_url: str) -> None:
    account_id = seed_account(database_url=database_url)
    other_id = seed_account(database_url=database_url, owner_id="user-1", name="Savings")
    ids = seed_ledger(
        database_url=database_url,
        account_id=account_id,
        rows=[
            ("2024-03-01", "-1.00", "A"),
            ("2024-03-02", "-2.00", "B"),
            ("2024-03-02", "-2.00", "b"),
            ("2024-03-03", "-3.00", "C"),
            ("2024-03-04", "-4.00", "D"),
        ],
    )
    seed_ledger(database_url=database_url, account_id=other_id, rows=[("2024-03-09", "-9", "Z")])

    with session_scope(database_url=database_url) as session:
        existing = fetch_existing_hashes(session, account_id=account_id, page_size=2)

    assert len(existing) == 4
    assert existing[compute_transaction_hash("2024-03-02", "-2.00", "B")] == ids[1]
    # Another account's history is out of scope.
    assert compute_transaction_hash("2024-03-09", "-9", "Z") not in existing


def test_fetch_existing_hashes_without_account_is_empty(database_url: str) -> None:
    with session_scope(database_url=database_url) as session:
        assert fetch_existing_hashes(session, account_id=None, page_size=10) == {}
