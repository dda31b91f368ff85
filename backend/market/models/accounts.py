from __future__ import annotations

from ..extensions import db


class Account(db.Model):
    """
    Buyer account: a single money balance plus purchase history.

    INVARIANT: balance >= 0 after every committed mutation. Settlement checks
    funds before decrementing and account_service.decrease_balance refuses to
    overdraw; the check constraint is the last line.
    """
    __tablename__ = "accounts"
    __table_args__ = (
        db.CheckConstraint("balance >= 0", name="balance_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    balance = db.Column(db.Integer, nullable=False)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    account_books = db.relationship(
        "AccountBook",
        back_populates="account",
        cascade="all, delete-orphan",
        order_by="AccountBook.id",
        lazy=True,
    )
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Account id={self.id} balance={self.balance}>"

    def to_dict(self, entries: list[AccountBook] | None = None) -> dict:
        if entries is None:
            entries = self.account_books
        return {
            "id": self.id,
            "balance": self.balance,
            "books": [entry.to_dict() for entry in entries],
        }


class AccountBook(db.Model):
    """
    Ledger entry: cumulative quantity of a book purchased by an account.

    At most one row per (account_id, book_id). ledger_service.add_purchase
    upserts against that key; the unique constraint backs it at the DB level.
    Rows are never decremented or deleted outside a full reset.
    """
    __tablename__ = "account_books"
    __table_args__ = (
        db.UniqueConstraint("account_id", "book_id", name="uq_account_books_account_book"),
        db.CheckConstraint("amount >= 0", name="amount_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id"), nullable=False, index=True)
    amount = db.Column(db.Integer, nullable=False, default=0)

    account = db.relationship("Account", back_populates="account_books")
    book = db.relationship("Book", lazy="joined", innerjoin=True)

    def __repr__(self) -> str:
        return f"<AccountBook account_id={self.account_id} book_id={self.book_id} amount={self.amount}>"

    def to_dict(self) -> dict:
        return {
            "book": self.book.to_dict() if self.book else None,
            "amount": self.amount,
        }
