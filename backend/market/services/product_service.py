# backend/market/services/product_service.py
"""
Catalog service: products and the books they sell.

Stock-depletion policy (authoritative):
- decrease_stock never lets amount go negative; a larger decrement is an
  integrity violation, not a user error (settlement checks stock first).
- When amount reaches exactly zero the product row is deleted. The book row
  is kept for purchase history. A depleted product is "not found" afterwards,
  never "found with amount 0".
"""
from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Book, Product
from ..validation import ConflictError
from .book_service import find_book, save_book
from .concurrency import lock_for_update
from .integrity import DecrementExceedsStock, NullEntity, UnknownProduct

PRODUCT_MUTABLE_FIELDS = {"price", "amount"}
BOOK_MUTABLE_FIELDS = {"name", "author"}


def list_products() -> list[Product]:
    return db.session.query(Product).order_by(Product.id.asc()).all()


def get_product(product_id: int, *, lock: bool = False) -> Product | None:
    query = db.session.query(Product).filter_by(id=product_id)
    if lock:
        query = lock_for_update(query)
    return query.first()


def save_product(product: Product | None) -> Product:
    if product is None:
        raise NullEntity("product cannot be None")
    db.session.add(product)
    db.session.flush()
    current_app.logger.debug("Saved product %r", product)
    return product


def _book_for_listing(name: str, author: str) -> Book:
    """
    Reuse the existing row for this title so purchase history keeps
    accumulating on the same book id; refuse if that book is already on sale.
    """
    book = find_book(name, author)
    if book is None:
        return save_book(Book(name=name, author=author))

    live = db.session.query(Product).filter_by(book_id=book.id).first()
    if live is not None:
        raise ConflictError(f"Book {name!r} by {author} is already on sale as product {live.id}")
    return book


def create_product(*, name: str, author: str, price: int, amount: int, commit: bool = True) -> Product:
    """
    Put a book on sale.

    Values must already be validated (see validation.enforce_rules_product).
    Raises ConflictError when the same title already has a live product.
    """
    book = _book_for_listing(name, author)
    product = save_product(Product(book=book, price=price, amount=amount))
    current_app.logger.info("Listed product %s (%s by %s), price=%s amount=%s",
                            product.id, name, author, price, amount)
    if commit:
        db.session.commit()
    return product


def update_product(product_id: int, *, patch: dict, book_patch: dict | None = None) -> Product | None:
    """
    Apply a validated partial update. Returns None if the product is unknown.

    patch may carry price/amount; book_patch may carry name/author and edits
    the product's book row in place. Raises ConflictError when the edited
    title already belongs to another book row.
    """
    product = get_product(product_id)
    if product is None:
        current_app.logger.info("Update of product %s rejected - product not found", product_id)
        return None

    if book_patch:
        book = product.book
        name = book_patch.get("name", book.name)
        author = book_patch.get("author", book.author)
        other = find_book(name, author)
        if other is not None and other.id != book.id:
            current_app.logger.info(
                "Update of product %s rejected - title already belongs to book %s", product_id, other.id
            )
            raise ConflictError(f"Book {name!r} by {author} already exists as book {other.id}")

    for k, v in patch.items():
        if k in PRODUCT_MUTABLE_FIELDS:
            setattr(product, k, v)

    if book_patch:
        for k, v in book_patch.items():
            if k in BOOK_MUTABLE_FIELDS:
                setattr(product.book, k, v)
        save_book(product.book)

    save_product(product)
    db.session.commit()
    return product


def decrease_stock(product_id: int, decrement: int) -> Product | None:
    """
    Remove sold units from a product.

    Returns the product with its reduced amount, or None when the product was
    depleted and deleted. Does not commit.
    """
    product = get_product(product_id)
    if product is None:
        current_app.logger.error("Failed to decrease amount of product %s - product not found", product_id)
        raise UnknownProduct(f"Invalid product ID {product_id}", details={"product_id": product_id})

    remaining = product.amount - decrement
    if remaining < 0:
        current_app.logger.error(
            "Failed to decrease amount of product %s - decrement is greater than product amount",
            product_id,
        )
        raise DecrementExceedsStock(
            "Decrement is greater than product amount",
            details={"product_id": product_id, "amount": product.amount, "decrement": decrement},
        )

    if remaining == 0:
        current_app.logger.info("Product %s depleted - removing it from the market", product_id)
        db.session.delete(product)
        db.session.flush()
        return None

    product.amount = remaining
    db.session.flush()
    return product
