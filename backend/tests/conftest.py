"""
Pytest fixtures for market backend tests.

Provides test database setup, a seeded market, and test client.
"""

import pytest
from market import create_app
from market.extensions import db
from market.models import Account, AccountBook, Product
from market.services import seed_service
from market.services.seed_service import SeedData, SeedProduct


BUYER_BALANCE = 20000

# Ids after seeding: account 1; products/books 1, 2, 3 in this order
MARKET_SEED = SeedData(
    balance=BUYER_BALANCE,
    products=(
        SeedProduct(name="Философия Java", author="Брюс Эккель", price=1500, amount=15),
        SeedProduct(name="Чистый код", author="Роберт Мартин", price=1000, amount=1),
        SeedProduct(name="Искусство программирования", author="Дональд Кнут", price=3000, amount=2),
    ),
)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'MARKET_ACCOUNT_ID': 1,
        'MARKET_SEED_FILE': None,
        'LOG_LEVEL': 'DEBUG',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Empty market with id generation restarted."""
    seed_service.reset_all()

    yield db.session

    db.session.rollback()


@pytest.fixture(scope='function')
def market(db_session):
    """Seeded market: buyer account 1 plus three products."""
    seed_service.seed_market(MARKET_SEED)
    return db_session


def snapshot() -> dict:
    """Plain-value picture of every market table, for before/after comparisons."""
    db.session.expire_all()
    return {
        "accounts": sorted((a.id, a.balance) for a in db.session.query(Account).all()),
        "products": sorted((p.id, p.book_id, p.price, p.amount) for p in db.session.query(Product).all()),
        "ledger": sorted(
            (e.account_id, e.book_id, e.amount) for e in db.session.query(AccountBook).all()
        ),
    }
