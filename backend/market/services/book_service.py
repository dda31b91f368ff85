# Overview: Service-layer operations for books.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Book
from .integrity import NullEntity


def get_book(book_id: int) -> Book | None:
    return db.session.query(Book).filter_by(id=book_id).first()


def find_book(name: str, author: str) -> Book | None:
    """Oldest book row with this exact name and author, if any."""
    return (
        db.session.query(Book)
        .filter_by(name=name, author=author)
        .order_by(Book.id.asc())
        .first()
    )


def save_book(book: Book | None) -> Book:
    if book is None:
        raise NullEntity("book cannot be None")
    db.session.add(book)
    db.session.flush()
    current_app.logger.debug("Saved book %r", book)
    return book
