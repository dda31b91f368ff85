# Overview: Dataset reset and market seeding from JSON seed descriptions.

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from flask import current_app
from sqlalchemy import text

from ..extensions import db
from ..models import Account, AccountBook, Book, Product
from . import account_service, product_service
from ..validation import MAX_AMOUNT, MAX_MONEY

STATIC_SEED_PATH = Path(__file__).resolve().parent.parent / "static" / "data.json"

# Referencing tables first: ledger -> (accounts, books); products -> books
RESET_ORDER = (AccountBook, Account, Product, Book)


class SeedError(ValueError):
    """Seed description could not be read or is malformed."""


@dataclass(frozen=True)
class SeedProduct:
    name: str
    author: str
    price: int
    amount: int


@dataclass(frozen=True)
class SeedData:
    balance: int
    products: tuple[SeedProduct, ...] = ()


def _seed_int(raw: dict, key: str, where: str, *, minimum: int, maximum: int) -> int:
    value = raw.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise SeedError(f"{where}.{key} must be an integer")
    if value < minimum or value > maximum:
        raise SeedError(f"{where}.{key} must be between {minimum} and {maximum}")
    return value


def _seed_text(raw: dict, key: str, where: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str) or not value.strip():
        raise SeedError(f"{where}.{key} must be a non-empty string")
    return value.strip()


def parse_seed(raw: Any) -> SeedData:
    """
    Turn a decoded seed document into SeedData.

    Format: {"account": {"money": int}, "books": [{"author", "name", "price", "amount"}]}
    Nothing is written here; a SeedError leaves the database untouched.
    """
    if not isinstance(raw, dict):
        raise SeedError("seed document must be a JSON object")

    account = raw.get("account")
    if not isinstance(account, dict):
        raise SeedError("seed document must contain an 'account' object")
    balance = _seed_int(account, "money", "account", minimum=0, maximum=MAX_MONEY)

    books = raw.get("books", [])
    if not isinstance(books, list):
        raise SeedError("'books' must be a list")

    products = []
    seen = set()
    for i, item in enumerate(books):
        where = f"books[{i}]"
        if not isinstance(item, dict):
            raise SeedError(f"{where} must be an object")
        product = SeedProduct(
            name=_seed_text(item, "name", where),
            author=_seed_text(item, "author", where),
            price=_seed_int(item, "price", where, minimum=0, maximum=MAX_MONEY),
            amount=_seed_int(item, "amount", where, minimum=1, maximum=MAX_AMOUNT),
        )
        title = (product.name, product.author)
        if title in seen:
            raise SeedError(f"{where} duplicates book {product.name!r} by {product.author}")
        seen.add(title)
        products.append(product)

    return SeedData(balance=balance, products=tuple(products))


def load_seed_file(path: str | Path) -> SeedData:
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as fh:
            raw = json.load(fh)
    except FileNotFoundError as exc:
        raise SeedError(f"seed file {path} not found") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise SeedError(f"could not read seed file {path}: {exc}") from exc
    return parse_seed(raw)


def load_static_seed() -> SeedData:
    """Seed bundled with the package (market/static/data.json)."""
    return load_seed_file(STATIC_SEED_PATH)


def _clear_table(table) -> None:
    dialect = db.engine.dialect.name
    if dialect == "postgresql":
        # CASCADE is a no-op here: referencing tables were cleared first
        db.session.execute(text(f'TRUNCATE TABLE "{table.name}" RESTART IDENTITY CASCADE'))
        return

    db.session.execute(table.delete())
    if dialect == "sqlite":
        has_sequence = db.session.execute(
            text("SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'sqlite_sequence'")
        ).first()
        if has_sequence:
            db.session.execute(
                text("DELETE FROM sqlite_sequence WHERE name = :name"), {"name": table.name}
            )


def reset_all(*, commit: bool = True) -> None:
    """
    Clear every market table in dependency order and restart id generation.

    After a reset the next account, book, product and ledger entry each get
    id 1.
    """
    current_app.logger.info("Clearing market data")
    for model in RESET_ORDER:
        table = model.__table__
        current_app.logger.info("Clearing %s", table.name)
        _clear_table(table)
    # Drop stale identities of the rows deleted behind the ORM's back
    db.session.expunge_all()
    if commit:
        db.session.commit()


def seed_market(seed: SeedData) -> Account:
    """
    Replace all market data with `seed`: reset, then insert the buyer account
    and one product (with its book) per seed entry, in a single transaction.
    """
    try:
        reset_all(commit=False)
        account = account_service.create_account(balance=seed.balance, commit=False)
        for item in seed.products:
            product_service.create_product(
                name=item.name,
                author=item.author,
                price=item.price,
                amount=item.amount,
                commit=False,
            )
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Seeding failed - market data left unchanged")
        raise

    current_app.logger.info("Loaded seeding data: account %s, %d products", account.id, len(seed.products))
    return account
