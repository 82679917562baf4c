"""Account lookups used by the import workflow.

Account CRUD lives elsewhere; the import workflow only needs to verify
ownership, pick the account an upload lands in, and refresh the account's
balance from the bank-reported running balance.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable
from decimal import Decimal

from ledger_db.models.finance import Account
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .errors import AuthorizationError, NotFoundError
from .logging_setup import get_logger

logger = get_logger(__name__)

DEFAULT_ACCOUNT_NAME = "Main Account"
DEFAULT_ACCOUNT_TYPE = "checking"


def get_owned_account(session: Session, *, owner_id: str, account_id: int) -> Account:
    """Return the account or raise ``NotFoundError``/``AuthorizationError``."""

    account = session.get(Account, account_id)
    if account is None:
        raise NotFoundError("account not found", details={"account_id": account_id})
    if account.user_id != owner_id:
        raise AuthorizationError(details={"account_id": account_id})
    return account


def first_account(session: Session, *, owner_id: str) -> Account | None:
    return session.scalars(
        select(Account).where(Account.user_id == owner_id).order_by(Account.id).limit(1)
    ).first()


def create_default_account(session: Session, *, owner_id: str) -> Account:
    account = Account(
        user_id=owner_id,
        name=DEFAULT_ACCOUNT_NAME,
        account_type=DEFAULT_ACCOUNT_TYPE,
        current_balance=Decimal("0.00"),
    )
    session.add(account)
    session.flush()
    logger.info(
        "Created default %s account %s for owner %s", DEFAULT_ACCOUNT_TYPE, account.id, owner_id
    )
    return account


def resolve_import_account(
    session: Session,
    *,
    owner_id: str,
    account_id: int | None,
    create: bool = True,
) -> Account | None:
    """Pick the account an upload imports into.

    Order: the upload's explicit account; else the owner's first account
    (lowest id); else, when ``create`` is true, a new default checking
    account. With ``create=False`` the last step returns ``None`` instead,
    which lets staging preview duplicates without side effects.
    """

    if account_id is not None:
        return get_owned_account(session, owner_id=owner_id, account_id=account_id)
    account = first_account(session, owner_id=owner_id)
    if account is not None or not create:
        return account
    return create_default_account(session, owner_id=owner_id)


def latest_balance(
    entries: Iterable[tuple[dt.date, int, Decimal | None]],
) -> Decimal | None:
    """Pick the running balance of the latest-dated entry that has one.

    ``entries`` are ``(date, row_number, balance)``. Ties on date go to the
    largest row number.
    """

    best: tuple[dt.date, int] | None = None
    balance: Decimal | None = None
    for day, row_number, value in entries:
        if value is None:
            continue
        key = (day, row_number)
        if best is None or key > best:
            best = key
            balance = value
    return balance


def refresh_balance(
    session: Session,
    account: Account,
    entries: Iterable[tuple[dt.date, int, Decimal | None]],
) -> Decimal | None:
    """Set ``account.current_balance`` from :func:`latest_balance`, if any."""

    balance = latest_balance(entries)
    if balance is None:
        return None
    account.current_balance = balance
    account.updated_at = func.now()
    session.flush()
    logger.info("Account %s balance refreshed to %s", account.id, balance)
    return balance


__all__ = [
    "DEFAULT_ACCOUNT_NAME",
    "DEFAULT_ACCOUNT_TYPE",
    "create_default_account",
    "first_account",
    "get_owned_account",
    "latest_balance",
    "refresh_balance",
    "resolve_import_account",
]
