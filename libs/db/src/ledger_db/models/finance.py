from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import (
    CHAR,
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import expression as sa_expr

# BIGINT identity on Postgres; SQLite only autoincrements an INTEGER PRIMARY KEY.
_PK = BigInteger().with_variant(Integer, "sqlite")

ACCOUNT_TYPES = ("checking", "savings", "credit_card", "bucket")
UPLOAD_STATUSES = ("pending", "staged", "imported", "failed")


class Base(DeclarativeBase):
    pass


# ---------------------------
# Reference: categories
# ---------------------------


class Category(Base):
    __tablename__ = "categories"

    code: Mapped[str] = mapped_column(String, primary_key=True)
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=sa_expr.true()
    )
    sort_order: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


# ---------------------------
# Core: accounts
# ---------------------------


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    # Opaque owner identifier issued by the auth collaborator.
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    account_type: Mapped[str] = mapped_column(String, nullable=False)
    account_number: Mapped[str | None] = mapped_column(String, nullable=True)
    institution: Mapped[str | None] = mapped_column(String, nullable=True)
    current_balance: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, server_default="0"
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=sa_expr.true()
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "account_type in ('checking','savings','credit_card','bucket')",
            name="ck_accounts_account_type",
        ),
    )


# ---------------------------
# Core: transactions (ledger)
# ---------------------------


class LedgerTransaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        _PK, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    # Provenance of bulk imports; the committer reconciles on this column.
    upload_id: Mapped[int | None] = mapped_column(
        _PK, ForeignKey("csv_uploads.id", ondelete="SET NULL"), nullable=True, index=True
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    payee: Mapped[str] = mapped_column(Text, nullable=False)
    particulars: Mapped[str | None] = mapped_column(Text, nullable=True)
    code: Mapped[str | None] = mapped_column(Text, nullable=True)
    reference: Mapped[str | None] = mapped_column(Text, nullable=True)
    transaction_type: Mapped[str | None] = mapped_column(String, nullable=True)
    balance: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    # sha256 over (date, amount, normalized payee); see
    # ``statement_ingest.persistence.compute_transaction_hash``.
    transaction_hash: Mapped[str] = mapped_column(CHAR(64), nullable=False)
    category: Mapped[str | None] = mapped_column(
        String,
        ForeignKey("categories.code", deferrable=True, initially="DEFERRED"),
        nullable=True,
    )
    needs_review: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=sa_expr.true()
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    # Not unique: identical same-day purchases legitimately share a hash.
    __table_args__ = (
        Index("ix_transactions_account_hash", "account_id", "transaction_hash"),
        Index("ix_transactions_account_date", "account_id", "date"),
    )


# ---------------------------
# Import workflow: csv_uploads
# ---------------------------


class Upload(Base):
    __tablename__ = "csv_uploads"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    account_id: Mapped[int | None] = mapped_column(
        _PK, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )
    filename: Mapped[str] = mapped_column(Text, nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default="0")
    bank_format: Mapped[str | None] = mapped_column(String, nullable=True)
    row_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    duplicates_found: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    transactions_imported: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, server_default="pending")
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    uploaded_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    imported_at: Mapped[dt.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "status in ('pending','staged','imported','failed')",
            name="ck_csv_uploads_status",
        ),
    )


# ---------------------------
# Import workflow: staging_transactions
# ---------------------------


class StagingTransaction(Base):
    __tablename__ = "staging_transactions"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    upload_id: Mapped[int] = mapped_column(
        _PK, ForeignKey("csv_uploads.id", ondelete="CASCADE"), nullable=False
    )
    row_number: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    payee: Mapped[str] = mapped_column(Text, nullable=False)
    particulars: Mapped[str | None] = mapped_column(Text, nullable=True)
    code: Mapped[str | None] = mapped_column(Text, nullable=True)
    reference: Mapped[str | None] = mapped_column(Text, nullable=True)
    transaction_type: Mapped[str | None] = mapped_column(String, nullable=True)
    balance: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    transaction_hash: Mapped[str] = mapped_column(CHAR(64), nullable=False)
    is_duplicate: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=sa_expr.false()
    )
    duplicate_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    duplicate_of: Mapped[int | None] = mapped_column(
        _PK, ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True
    )
    will_import: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=sa_expr.true()
    )
    suggested_category: Mapped[str | None] = mapped_column(
        String,
        ForeignKey("categories.code", deferrable=True, initially="DEFERRED"),
        nullable=True,
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (Index("ix_staging_upload_row", "upload_id", "row_number"),)


__all__ = [
    "ACCOUNT_TYPES",
    "UPLOAD_STATUSES",
    "Account",
    "Base",
    "Category",
    "LedgerTransaction",
    "StagingTransaction",
    "Upload",
]
