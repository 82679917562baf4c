# ruff: noqa: I001
"""Ledger, accounts and CSV import workflow tables.

Revision ID: 0001_ingest_core
Revises: None
Create Date: 2026-10-19
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_ingest_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("now()"),
    )


def upgrade() -> None:
    # categories
    op.create_table(
        "categories",
        sa.Column("code", sa.Text(), primary_key=True),
        sa.Column("display_name", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("sort_order", sa.Integer(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )

    # accounts
    op.create_table(
        "accounts",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("account_type", sa.Text(), nullable=False),
        sa.Column("account_number", sa.Text(), nullable=True),
        sa.Column("institution", sa.Text(), nullable=True),
        sa.Column(
            "current_balance",
            sa.Numeric(18, 2),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "account_type in ('checking','savings','credit_card','bucket')",
            name="ck_accounts_account_type",
        ),
    )
    op.create_index("ix_accounts_user_id", "accounts", ["user_id"], unique=False)

    # csv_uploads
    op.create_table(
        "csv_uploads",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column(
            "account_id",
            sa.BigInteger(),
            sa.ForeignKey("accounts.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("filename", sa.Text(), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column("bank_format", sa.Text(), nullable=True),
        sa.Column("row_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("duplicates_found", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("transactions_imported", sa.Integer(), nullable=True),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("error_message", sa.Text(), nullable=True),
        _timestamp("uploaded_at"),
        sa.Column("imported_at", sa.DateTime(timezone=True), nullable=True),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "status in ('pending','staged','imported','failed')",
            name="ck_csv_uploads_status",
        ),
    )
    op.create_index("ix_csv_uploads_user_id", "csv_uploads", ["user_id"], unique=False)

    # transactions (ledger)
    op.create_table(
        "transactions",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "account_id",
            sa.BigInteger(),
            sa.ForeignKey("accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "upload_id",
            sa.BigInteger(),
            sa.ForeignKey("csv_uploads.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("payee", sa.Text(), nullable=False),
        sa.Column("particulars", sa.Text(), nullable=True),
        sa.Column("code", sa.Text(), nullable=True),
        sa.Column("reference", sa.Text(), nullable=True),
        sa.Column("transaction_type", sa.Text(), nullable=True),
        sa.Column("balance", sa.Numeric(18, 2), nullable=True),
        sa.Column("transaction_hash", sa.CHAR(64), nullable=False),
        sa.Column("category", sa.Text(), nullable=True),
        sa.Column("needs_review", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(
            ["category"],
            ["categories.code"],
            name="fk_transactions_category",
            deferrable=True,
            initially="DEFERRED",
        ),
    )
    op.create_index("ix_transactions_upload_id", "transactions", ["upload_id"], unique=False)
    # Not unique: identical same-day purchases share a hash.
    op.create_index(
        "ix_transactions_account_hash",
        "transactions",
        ["account_id", "transaction_hash"],
        unique=False,
    )
    op.create_index(
        "ix_transactions_account_date", "transactions", ["account_id", "date"], unique=False
    )

    # staging_transactions
    op.create_table(
        "staging_transactions",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "upload_id",
            sa.BigInteger(),
            sa.ForeignKey("csv_uploads.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("row_number", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("payee", sa.Text(), nullable=False),
        sa.Column("particulars", sa.Text(), nullable=True),
        sa.Column("code", sa.Text(), nullable=True),
        sa.Column("reference", sa.Text(), nullable=True),
        sa.Column("transaction_type", sa.Text(), nullable=True),
        sa.Column("balance", sa.Numeric(18, 2), nullable=True),
        sa.Column("transaction_hash", sa.CHAR(64), nullable=False),
        sa.Column("is_duplicate", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("duplicate_reason", sa.Text(), nullable=True),
        sa.Column(
            "duplicate_of",
            sa.BigInteger(),
            sa.ForeignKey("transactions.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("will_import", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("suggested_category", sa.Text(), nullable=True),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(
            ["suggested_category"],
            ["categories.code"],
            name="fk_staging_suggested_category",
            deferrable=True,
            initially="DEFERRED",
        ),
    )
    op.create_index(
        "ix_staging_upload_row", "staging_transactions", ["upload_id", "row_number"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_staging_upload_row", table_name="staging_transactions")
    op.drop_table("staging_transactions")
    op.drop_index("ix_transactions_account_date", table_name="transactions")
    op.drop_index("ix_transactions_account_hash", table_name="transactions")
    op.drop_index("ix_transactions_upload_id", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("ix_csv_uploads_user_id", table_name="csv_uploads")
    op.drop_table("csv_uploads")
    op.drop_index("ix_accounts_user_id", table_name="accounts")
    op.drop_table("accounts")
    op.drop_table("categories")
