from __future__ import annotations

from ..extensions import db


class Book(db.Model):
    """
    Book master data.

    IDENTITY: Same name and author means the same logical book. The catalog
    service keeps one row per title when listing or renaming, so purchase
    history, which is keyed by book id, never splits across rows.

    LIFECYCLE: A book outlives its product. When a product is depleted the
    product row is deleted but the book row stays, so ledger entries that point
    at it keep resolving.
    """
    __tablename__ = "books"
    __table_args__ = (
        db.Index("ix_books_name_author", "name", "author"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    author = db.Column(db.String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Book id={self.id} name={self.name!r} author={self.author!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "author": self.author,
        }


class Product(db.Model):
    """
    A book on sale: price and remaining stock.

    STOCK DESIGN DECISION:
    Products never sit in the catalog with amount == 0. When a deal takes the
    last unit, the row is deleted (see product_service.decrease_stock) and a
    later lookup by id yields "not found".

    CONCURRENCY:
    version_id is an optimistic version counter. A flush against a row that a
    concurrent deal already changed raises StaleDataError, which the settlement
    retry loop handles.
    """
    __tablename__ = "products"
    __table_args__ = (
        # A book backs at most one live product
        db.UniqueConstraint("book_id", name="uq_products_book_id"),
        db.CheckConstraint("price >= 0", name="price_non_negative"),
        db.CheckConstraint("amount >= 0", name="amount_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id"), nullable=False)

    price = db.Column(db.Integer, nullable=False)
    amount = db.Column(db.Integer, nullable=False)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    book = db.relationship("Book", lazy="joined", innerjoin=True)
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} book_id={self.book_id} price={self.price} amount={self.amount}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "book": self.book.to_dict() if self.book else None,
            "price": self.price,
            "amount": self.amount,
        }
