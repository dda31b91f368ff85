# Overview: Service-layer operations for buyer accounts.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Account
from .concurrency import lock_for_update
from .integrity import DecrementExceedsBalance, NullEntity, UnknownAccount


def get_account(account_id: int, *, lock: bool = False) -> Account | None:
    query = db.session.query(Account).filter_by(id=account_id)
    if lock:
        query = lock_for_update(query)
    return query.first()


def save_account(account: Account | None) -> Account:
    if account is None:
        raise NullEntity("account cannot be None")
    db.session.add(account)
    db.session.flush()
    current_app.logger.debug("Saved account id=%s", account.id)
    return account


def create_account(*, balance: int, commit: bool = True) -> Account:
    """Create a buyer account. Balance must already be validated as >= 0."""
    account = save_account(Account(balance=balance))
    if commit:
        db.session.commit()
    return account


def decrease_balance(account_id: int, decrement: int) -> Account:
    """
    Take money from an account as part of a settlement.

    Does not commit: the caller owns the transaction so the decrement lands
    together with the ledger and stock writes or not at all.
    """
    account = get_account(account_id)
    if account is None:
        current_app.logger.error("Cannot decrease balance of account %s - account not found", account_id)
        raise UnknownAccount(f"Invalid account ID {account_id}", details={"account_id": account_id})

    if decrement > account.balance:
        current_app.logger.error(
            "Cannot decrease balance of account %s by %s - balance is %s",
            account_id, decrement, account.balance,
        )
        raise DecrementExceedsBalance(
            "Decrement is greater than account balance",
            details={"account_id": account_id, "balance": account.balance, "decrement": decrement},
        )

    current_app.logger.debug("Reducing balance for account %s by %s", account_id, decrement)
    account.balance = account.balance - decrement
    db.session.flush()
    return account
