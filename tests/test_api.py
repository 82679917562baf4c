from __future__ import annotations

import textwrap
from decimal import Decimal

import pytest
from ledger_db.models.finance import Upload

from statement_ingest import api
from statement_ingest.errors import (
    AuthorizationError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from statement_ingest.models import ErrorResponse
from tests.helpers.db import count_rows, seed_account, seed_ledger

ANZ_CSV = textwrap.dedent(
    """\
    Type,Details,Particulars,Code,Reference,Amount,Date
    Eft-Pos,Countdown,,,,-62.10,15/03/2024
    Eft-Pos,Coffee Co,,,,-4.50,16/03/2024
    Direct Credit,Acme Payroll,Wages,,,2100.00,17/03/2024
    """
).encode("utf-8")


def test_upload_review_import_round_trip(database_url: str) -> None:
    account_id = seed_account(database_url=database_url)

    staged = api.upload_csv(
        ANZ_CSV,
        filename="anz.csv",
        owner_id="user-1",
        account_id=account_id,
        database_url=database_url,
    )
    assert staged.model_dump(by_alias=True) == {
        "uploadId": staged.upload_id,
        "rowCount": 3,
        "stagedCount": 3,
        "duplicateCount": 0,
        "bank": "ANZ",
        "errors": [],
    }

    rows = api.review_upload(staged.upload_id, owner_id="user-1", database_url=database_url)
    assert [r.payee for r in rows] == ["Countdown", "Coffee Co", "Acme Payroll"]
    assert rows[0].transaction_type == "Eft-Pos"

    skipped = api.set_will_import(
        rows[1].id, False, owner_id="user-1", database_url=database_url
    )
    assert skipped.will_import is False

    committed = api.import_staging(
        staged.upload_id, owner_id="user-1", database_url=database_url
    )
    assert committed.model_dump(by_alias=True) == {"success": True, "imported": 2}

    history = api.list_transactions(account_id, owner_id="user-1", database_url=database_url)
    assert [(e.payee, e.amount) for e in history] == [
        ("Acme Payroll", Decimal("2100.00")),
        ("Countdown", Decimal("-62.10")),
    ]
    assert history[0].model_dump(mode="json", by_alias=True)["date"] == "2024-03-17"

    (summary,) = api.list_uploads(owner_id="user-1", database_url=database_url)
    assert summary.status == "imported"
    assert summary.transactions_imported == 2
    assert summary.filename == "anz.csv"
    assert summary.file_size == len(ANZ_CSV)


def test_upload_requires_file_and_account(database_url: str) -> None:
    with pytest.raises(ValidationError, match="No file provided"):
        api.upload_csv(b"", filename="x.csv", owner_id="user-1", account_id=1)
    with pytest.raises(ValidationError, match="No account ID provided"):
        api.upload_csv(ANZ_CSV, filename="x.csv", owner_id="user-1", account_id=None)


def test_upload_rejects_file_without_transactions(database_url: str) -> None:
    account_id = seed_account(database_url=database_url)
    bad = b"Date,Amount,Payee\nnot-a-date,1.00,X\n"

    with pytest.raises(ValidationError) as excinfo:
        api.upload_csv(
            bad,
            filename="bad.csv",
            owner_id="user-1",
            account_id=account_id,
            database_url=database_url,
        )

    assert excinfo.value.details == [
        "Row 1: Could not parse transaction (invalid date or amount)"
    ]
    assert count_rows(database_url, Upload) == 0


def test_upload_checks_account_ownership(database_url: str) -> None:
    account_id = seed_account(database_url=database_url, owner_id="user-2")

    with pytest.raises(AuthorizationError):
        api.upload_csv(
            ANZ_CSV,
            filename="anz.csv",
            owner_id="user-1",
            account_id=account_id,
            database_url=database_url,
        )
    with pytest.raises(NotFoundError):
        api.upload_csv(
            ANZ_CSV,
            filename="anz.csv",
            owner_id="user-1",
            account_id=account_id + 100,
            database_url=database_url,
        )


def test_delete_row_and_upload_through_api(database_url: str) -> None:
    account_id = seed_account(database_url=database_url)
    seed_ledger(
        database_url=database_url,
        account_id=account_id,
        rows=[("2024-03-16", "-4.50", "Coffee Co")],
    )
    staged = api.upload_csv(
        ANZ_CSV,
        filename="anz.csv",
        owner_id="user-1",
        account_id=account_id,
        database_url=database_url,
    )
    assert staged.duplicate_count == 1
    duplicate = next(
        r
        for r in api.review_upload(staged.upload_id, owner_id="user-1", database_url=database_url)
        if r.is_duplicate
    )

    summary = api.delete_staging_transaction(
        duplicate.id, owner_id="user-1", database_url=database_url
    )
    assert (summary.row_count, summary.duplicates_found) == (2, 0)

    removed = api.delete_upload(staged.upload_id, owner_id="user-1", database_url=database_url)
    assert removed == 2
    assert api.list_uploads(owner_id="user-1", database_url=database_url) == []


def test_list_transactions_limit_and_ownership(database_url: str) -> None:
    account_id = seed_account(database_url=database_url)
    seed_ledger(
        database_url=database_url,
        account_id=account_id,
        rows=[
            ("2024-03-01", "-1.00", "A"),
            ("2024-03-03", "-3.00", "C"),
            ("2024-03-02", "-2.00", "B"),
        ],
    )

    newest = api.list_transactions(
        account_id, owner_id="user-1", limit=2, database_url=database_url
    )
    assert [e.payee for e in newest] == ["C", "B"]

    with pytest.raises(AuthorizationError):
        api.list_transactions(account_id, owner_id="user-2", database_url=database_url)


def test_error_response_shape() -> None:
    response = api.error_response(StateConflictError("already imported", details={"upload_id": 3}))

    assert isinstance(response, ErrorResponse)
    assert response.model_dump() == {
        "error": "already imported",
        "code": "state_conflict",
        "details": {"upload_id": 3},
    }
