"""
Deal settlement: exchange buyer money for product stock and record the purchase.

Validation order is fixed; the first failing check decides the rejection:
1. product exists           -> ProductNotFound
2. buyer account exists     -> AccountUnresolvable
3. amount <= stock          -> InsufficientStock
4. price * amount <= money  -> InsufficientFunds

Only when all four pass are the three writes applied: ledger upsert, balance
decrement, stock decrement (which may delete the product). They share one
session transaction; any failure rolls all of them back.

Concurrency: product and account rows are read with SELECT ... FOR UPDATE
before validation. Where the backend ignores row locks (SQLite), the
version_id columns turn a racing write into StaleDataError at flush and the
whole settlement (read, validate, write) runs again under run_with_retry.
Two racing first purchases of one title collide on the ledger unique key
instead; that IntegrityError is retried too, and the rerun updates the row
the other deal inserted.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from . import account_service, ledger_service, product_service
from .concurrency import run_with_retry

# Unique key of the purchase ledger. SQLite names the columns, not the constraint.
LEDGER_KEY_CONSTRAINT = "uq_account_books_account_book"
LEDGER_KEY_SQLITE_MESSAGE = "UNIQUE constraint failed: account_books.account_id, account_books.book_id"


class DealError(Exception):
    """Raised when a deal is rejected before any write."""
    code = "DEAL_REJECTED"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ProductNotFound(DealError):
    code = "PRODUCT_NOT_FOUND"


class AccountUnresolvable(DealError):
    code = "ACCOUNT_UNRESOLVABLE"


class InsufficientStock(DealError):
    code = "INSUFFICIENT_STOCK"


class InsufficientFunds(DealError):
    code = "INSUFFICIENT_FUNDS"


@dataclass(frozen=True)
class SettledDeal:
    account_id: int
    product_id: int
    book_id: int
    quantity: int
    total_price: int
    balance: int
    remaining_stock: int
    product_depleted: bool
    ledger_amount: int

    def to_dict(self) -> dict:
        return asdict(self)


def _settle_in_transaction(product_id: int, quantity: int, account_id: int) -> SettledDeal:
    product = product_service.get_product(product_id, lock=True)
    if product is None:
        current_app.logger.info("Deal for product %s rejected - product not found", product_id)
        raise ProductNotFound(
            f"Product ID {product_id} invalid - product not found",
            details={"product_id": product_id},
        )

    account = account_service.get_account(account_id, lock=True)
    if account is None:
        current_app.logger.info("Deal for product %s rejected - account %s unknown", product_id, account_id)
        raise AccountUnresolvable(
            "Couldn't get account information",
            details={"account_id": account_id},
        )

    if product.amount < quantity:
        current_app.logger.info("Deal for product %s rejected - not enough product", product_id)
        raise InsufficientStock(
            f"Not enough product for Product ID {product_id}",
            details={"product_id": product_id, "requested": quantity, "available": product.amount},
        )

    total_price = product.price * quantity
    if total_price > account.balance:
        current_app.logger.info("Deal for product %s rejected - not enough money", product_id)
        raise InsufficientFunds(
            f"Not enough money for Product ID {product_id}",
            details={"product_id": product_id, "total_price": total_price, "balance": account.balance},
        )

    book_id = product.book_id

    entry = ledger_service.add_purchase(account.id, book_id, quantity)
    account = account_service.decrease_balance(account.id, total_price)
    remaining = product_service.decrease_stock(product_id, quantity)

    # Capture plain values before commit expires (or deletes) the rows
    return SettledDeal(
        account_id=account.id,
        product_id=product_id,
        book_id=book_id,
        quantity=quantity,
        total_price=total_price,
        balance=account.balance,
        remaining_stock=remaining.amount if remaining is not None else 0,
        product_depleted=remaining is None,
        ledger_amount=entry.amount,
    )


def _is_ledger_key_collision(exc: IntegrityError) -> bool:
    """A concurrent first purchase of the same title inserted the ledger row first."""
    message = str(exc.orig)
    return LEDGER_KEY_CONSTRAINT in message or LEDGER_KEY_SQLITE_MESSAGE in message


def settle_deal(product_id: int, quantity: int, *, account_id: int) -> SettledDeal:
    """
    Settle a deal for `quantity` units of a product on behalf of `account_id`.

    Raises a DealError subclass on rejection (nothing written) and lets
    IntegrityViolation propagate after rolling back. quantity must already be
    validated as a positive integer.
    """
    def _op():
        try:
            deal = _settle_in_transaction(product_id, quantity, account_id)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        current_app.logger.info(
            "Deal settled: account %s bought %s x product %s for %s",
            deal.account_id, deal.quantity, deal.product_id, deal.total_price,
        )
        return deal

    return run_with_retry(_op, retry_if=_is_ledger_key_collision)
