"""DB helpers for tests: bootstrap a temporary SQLite DB and seed fixtures."""

from __future__ import annotations

import datetime as dt
import os
from collections.abc import Iterable
from decimal import Decimal
from pathlib import Path
from typing import Any

from ledger_db.client import create_schema, session_scope
from ledger_db.models.finance import (
    Account,
    Category,
    LedgerTransaction,
    StagingTransaction,
    Upload,
)
from sqlalchemy import func, select

from statement_ingest.config import Settings
from statement_ingest.ingest import parse_statement
from statement_ingest.models import StageResult
from statement_ingest.persistence import compute_transaction_hash
from statement_ingest.staging import create_upload, stage_upload


def bootstrap_sqlite_db(db_file: Path, *, set_default_env: bool = False) -> str:
    """Create a SQLite database file, initialize schema, and return the URL.

    Using a file-backed SQLite DB ensures multiple SQLAlchemy connections share
    the same state (in-memory DBs are per-connection by default).
    """

    url = f"sqlite+pysqlite:///{db_file}"
    db_file.parent.mkdir(parents=True, exist_ok=True)
    create_schema(database_url=url)

    if set_default_env:
        os.environ.setdefault("DATABASE_URL", url)
    return url


def seed_account(
    *,
    database_url: str,
    owner_id: str = "user-1",
    name: str = "Everyday",
    account_type: str = "checking",
    balance: str = "0.00",
) -> int:
    with session_scope(database_url=database_url) as session:
        account = Account(
            user_id=owner_id,
            name=name,
            account_type=account_type,
            current_balance=Decimal(balance),
        )
        session.add(account)
        session.flush()
        return account.id


def seed_categories(*, database_url: str, codes: Iterable[str]) -> None:
    with session_scope(database_url=database_url) as session:
        for order, code in enumerate(codes):
            session.add(Category(code=code, display_name=code, sort_order=order))


def seed_ledger(
    *,
    database_url: str,
    account_id: int,
    rows: Iterable[tuple[str, str, str]],
) -> list[int]:
    """Insert ``(iso_date, amount, payee)`` ledger rows with their hashes."""

    ids: list[int] = []
    with session_scope(database_url=database_url) as session:
        for day, amount, payee in rows:
            tx = LedgerTransaction(
                account_id=account_id,
                date=dt.date.fromisoformat(day),
                amount=Decimal(amount),
                payee=payee,
                transaction_hash=compute_transaction_hash(day, amount, payee),
            )
            session.add(tx)
            session.flush()
            ids.append(tx.id)
    return ids


def count_rows(database_url: str, model: type[Any], **filters: Any) -> int:
    with session_scope(database_url=database_url) as session:
        stmt = select(func.count()).select_from(model)
        for column, value in filters.items():
            stmt = stmt.where(getattr(model, column) == value)
        return session.execute(stmt).scalar_one()


def load_upload(database_url: str, upload_id: int) -> Upload | None:
    with session_scope(database_url=database_url) as session:
        return session.get(Upload, upload_id)


def load_account(database_url: str, account_id: int) -> Account | None:
    with session_scope(database_url=database_url) as session:
        return session.get(Account, account_id)


def staging_rows(database_url: str, upload_id: int) -> list[StagingTransaction]:
    with session_scope(database_url=database_url) as session:
        return list(
            session.scalars(
                select(StagingTransaction)
                .where(StagingTransaction.upload_id == upload_id)
                .order_by(StagingTransaction.row_number)
            )
        )


def stage_csv(
    database_url: str,
    csv_text: str,
    *,
    owner_id: str = "user-1",
    account_id: int | None = None,
    settings: Settings | None = None,
    suggest_category: Any = None,
) -> StageResult:
    """Create a pending upload for ``csv_text`` and stage it in one scope."""

    with session_scope(database_url=database_url) as session:
        upload = create_upload(
            session,
            owner_id=owner_id,
            filename="statement.csv",
            file_size=len(csv_text),
            account_id=account_id,
        )
        return stage_upload(
            session,
            upload,
            parse_statement(csv_text),
            suggest_category=suggest_category,
            settings=settings,
        )
