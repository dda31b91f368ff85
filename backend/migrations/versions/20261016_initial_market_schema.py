"""Initial market schema: books, products, accounts, account_books

Revision ID: 20261016_initial_market
Revises:
Create Date: 2026-10-16
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261016_initial_market"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "books",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("author", sa.String(255), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_books"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("books", schema=None) as batch_op:
        batch_op.create_index("ix_books_name_author", ["name", "author"], unique=False)

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("book_id", sa.Integer(), nullable=False),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        sa.CheckConstraint("amount >= 0", name="ck_products_amount_non_negative"),
        sa.ForeignKeyConstraint(["book_id"], ["books.id"], name="fk_products_book_id_books"),
        sa.PrimaryKeyConstraint("id", name="pk_products"),
        sa.UniqueConstraint("book_id", name="uq_products_book_id"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("balance", sa.Integer(), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.CheckConstraint("balance >= 0", name="ck_accounts_balance_non_negative"),
        sa.PrimaryKeyConstraint("id", name="pk_accounts"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "account_books",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("book_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.CheckConstraint("amount >= 0", name="ck_account_books_amount_non_negative"),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], name="fk_account_books_account_id_accounts"),
        sa.ForeignKeyConstraint(["book_id"], ["books.id"], name="fk_account_books_book_id_books"),
        sa.PrimaryKeyConstraint("id", name="pk_account_books"),
        sa.UniqueConstraint("account_id", "book_id", name="uq_account_books_account_book"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("account_books", schema=None) as batch_op:
        batch_op.create_index("ix_account_books_account_id", ["account_id"], unique=False)
        batch_op.create_index("ix_account_books_book_id", ["book_id"], unique=False)


def downgrade():
    # Referencing tables first
    with op.batch_alter_table("account_books", schema=None) as batch_op:
        batch_op.drop_index("ix_account_books_book_id")
        batch_op.drop_index("ix_account_books_account_id")
    op.drop_table("account_books")
    op.drop_table("accounts")
    op.drop_table("products")
    with op.batch_alter_table("books", schema=None) as batch_op:
        batch_op.drop_index("ix_books_name_author")
    op.drop_table("books")
