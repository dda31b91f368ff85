# Overview: Purchase ledger (account-book entries); upserts cumulative quantities.

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..extensions import db
from ..models import AccountBook
from .account_service import get_account
from .book_service import get_book
from .integrity import NullEntity, UnknownAccount, UnknownBook
"""
Ledger invariants (authoritative)

- At most one AccountBook row per LedgerKey(account_id, book_id).
- The key is the book, not the product: buying the same title again after it
  was relisted accumulates on the same row.
- Amounts only grow. Rows disappear only on full reset or account deletion.
- add_purchase writes inside the caller's transaction and never commits.
"""


@dataclass(frozen=True)
class LedgerKey:
    account_id: int
    book_id: int


def find_entry(key: LedgerKey) -> AccountBook | None:
    return (
        db.session.query(AccountBook)
        .filter_by(account_id=key.account_id, book_id=key.book_id)
        .first()
    )


def find_or_null(account_id: int, book_id: int) -> AccountBook | None:
    """Exact lookup on both ids; None when the account never bought the book."""
    return find_entry(LedgerKey(account_id, book_id))


def list_entries(account_id: int) -> list[AccountBook]:
    return (
        db.session.query(AccountBook)
        .filter_by(account_id=account_id)
        .order_by(AccountBook.id.asc())
        .all()
    )


def save_entry(entry: AccountBook | None) -> AccountBook:
    if entry is None:
        raise NullEntity("account-book entry cannot be None")
    db.session.add(entry)
    db.session.flush()
    return entry


def add_purchase(account_id: int, book_id: int, quantity: int) -> AccountBook:
    """
    Record `quantity` more units of a book bought by an account.

    Missing account or book ids are integrity violations: settlement has
    already resolved both by the time this runs.
    """
    if quantity <= 0:
        raise ValueError("quantity must be positive")

    account = get_account(account_id)
    if account is None:
        current_app.logger.error(
            "Can't add book %s to account %s - invalid account ID", book_id, account_id
        )
        raise UnknownAccount(f"Invalid account ID {account_id}", details={"account_id": account_id})

    book = get_book(book_id)
    if book is None:
        current_app.logger.error(
            "Can't add book %s to account %s - invalid book ID", book_id, account_id
        )
        raise UnknownBook(f"Invalid book ID {book_id}", details={"book_id": book_id})

    key = LedgerKey(account.id, book.id)
    entry = find_entry(key)
    if entry is None:
        current_app.logger.debug("Creating account-book entry for %s", key)
        entry = save_entry(AccountBook(account=account, book=book, amount=0))

    current_app.logger.debug("Updating account-book entry for %s by quantity %s", key, quantity)
    entry.amount = entry.amount + quantity
    return save_entry(entry)
