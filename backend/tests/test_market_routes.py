"""
HTTP tests for /market, /account and /health.
"""

import pytest

from market.services import product_service
from market.services.integrity import DecrementExceedsStock

from conftest import BUYER_BALANCE, snapshot


# =============================================================================
# CATALOG
# =============================================================================


class TestCatalogRoutes:
    def test_list_market(self, client, market):
        resp = client.get("/market")
        assert resp.status_code == 200
        products = resp.get_json()["products"]
        assert [p["id"] for p in products] == [1, 2, 3]
        assert products[0] == {
            "id": 1,
            "book": {"id": 1, "name": "Философия Java", "author": "Брюс Эккель"},
            "price": 1500,
            "amount": 15,
        }

    def test_get_product(self, client, market):
        resp = client.get("/market/2")
        assert resp.status_code == 200
        assert resp.get_json()["book"]["name"] == "Чистый код"

    def test_get_missing_product(self, client, market):
        assert client.get("/market/404").status_code == 404

    def test_create_product(self, client, market):
        resp = client.post("/market", json={
            "name": "Рефакторинг",
            "author": "Мартин Фаулер",
            "price": 2000,
            "amount": 4,
        })
        assert resp.status_code == 201
        data = resp.get_json()
        assert data["id"] == 4
        assert data["book"] == {"id": 4, "name": "Рефакторинг", "author": "Мартин Фаулер"}

    @pytest.mark.parametrize(
        "payload",
        [
            {"author": "A", "price": 1, "amount": 1},
            {"name": "B", "author": "A", "price": -1, "amount": 1},
            {"name": "B", "author": "A", "price": 1, "amount": 0},
            {"name": "B", "author": "A", "price": 1.5, "amount": 1},
            {"name": "", "author": "A", "price": 1, "amount": 1},
            {"name": "B", "author": "A", "price": 1, "amount": 1, "id": 9},
        ],
    )
    def test_create_product_validation(self, client, market, payload):
        assert client.post("/market", json=payload).status_code == 400

    def test_create_product_already_on_sale(self, client, market):
        resp = client.post("/market", json={
            "name": "Чистый код", "author": "Роберт Мартин", "price": 1, "amount": 1,
        })
        assert resp.status_code == 409

    def test_patch_product(self, client, market):
        resp = client.patch("/market/1", json={"price": 1700, "book": {"author": "Bruce Eckel"}})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["price"] == 1700
        assert data["amount"] == 15
        assert data["book"] == {"id": 1, "name": "Философия Java", "author": "Bruce Eckel"}

    def test_patch_book_to_existing_title(self, client, market):
        before = snapshot()

        resp = client.patch("/market/1", json={"book": {"name": "Чистый код", "author": "Роберт Мартин"}})
        assert resp.status_code == 409
        assert "error" in resp.get_json()

        assert snapshot() == before
        assert client.get("/market/1").get_json()["book"] == {
            "id": 1, "name": "Философия Java", "author": "Брюс Эккель",
        }

    def test_patch_missing_product(self, client, market):
        assert client.patch("/market/404", json={"price": 1}).status_code == 404

    @pytest.mark.parametrize(
        "payload",
        [
            {"amount": 0},
            {"price": -5},
            {"book": {"name": ""}},
            {"book": {"isbn": "123"}},
            {"id": 2},
        ],
    )
    def test_patch_validation(self, client, market, payload):
        assert client.patch("/market/1", json=payload).status_code == 400


# =============================================================================
# DEALS
# =============================================================================


class TestDealRoute:
    def test_deal_success(self, client, market):
        resp = client.post("/market/deal", json={"id": 1, "amount": 2})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["balance"] == 17000
        assert data["remaining_stock"] == 13
        assert data["ledger_amount"] == 2

        assert client.get("/market/1").get_json()["amount"] == 13

    def test_deal_depletes_product(self, client, market):
        resp = client.post("/market/deal", json={"id": 2, "amount": 1})
        assert resp.status_code == 200
        assert resp.get_json()["product_depleted"] is True
        assert client.get("/market/2").status_code == 404

    @pytest.mark.parametrize(
        "payload,code",
        [
            ({"id": 404, "amount": 1}, "PRODUCT_NOT_FOUND"),
            ({"id": 2, "amount": 2}, "INSUFFICIENT_STOCK"),
            ({"id": 1, "amount": 14}, "INSUFFICIENT_FUNDS"),
        ],
    )
    def test_deal_rejections(self, client, market, payload, code):
        before = snapshot()
        resp = client.post("/market/deal", json=payload)
        assert resp.status_code == 400
        assert resp.get_json()["code"] == code
        assert snapshot() == before

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"id": 1},
            {"amount": 1},
            {"id": 0, "amount": 1},
            {"id": 1, "amount": 0},
            {"id": 1, "amount": -3},
            {"id": 1, "amount": 1.5},
            {"id": 1, "amount": "two"},
            {"id": None, "amount": 1},
            {"id": 1, "amount": 1, "price": 0},
        ],
    )
    def test_deal_validation(self, client, market, payload):
        assert client.post("/market/deal", json=payload).status_code == 400

    def test_deal_without_buyer_account(self, app, client, market, monkeypatch):
        monkeypatch.setitem(app.config, "MARKET_ACCOUNT_ID", 99)
        resp = client.post("/market/deal", json={"id": 1, "amount": 1})
        assert resp.status_code == 500
        assert resp.get_json()["code"] == "ACCOUNT_UNRESOLVABLE"

    def test_integrity_violation_is_500_and_rolled_back(self, client, market, monkeypatch):
        def failing_decrease_stock(product_id, decrement):
            raise DecrementExceedsStock("Decrement is greater than product amount")

        monkeypatch.setattr(product_service, "decrease_stock", failing_decrease_stock)
        before = snapshot()

        resp = client.post("/market/deal", json={"id": 1, "amount": 1})

        assert resp.status_code == 500
        assert snapshot() == before


# =============================================================================
# ACCOUNT AND HEALTH
# =============================================================================


class TestAccountRoute:
    def test_account_with_purchases(self, client, market):
        client.post("/market/deal", json={"id": 1, "amount": 2})
        client.post("/market/deal", json={"id": 2, "amount": 1})

        resp = client.get("/account")
        assert resp.status_code == 200
        assert resp.get_json() == {
            "id": 1,
            "balance": BUYER_BALANCE - 3000 - 1000,
            "books": [
                {"book": {"id": 1, "name": "Философия Java", "author": "Брюс Эккель"}, "amount": 2},
                {"book": {"id": 2, "name": "Чистый код", "author": "Роберт Мартин"}, "amount": 1},
            ],
        }

    def test_missing_account_is_500(self, client, db_session):
        assert client.get("/account").status_code == 500


class TestHealthRoute:
    def test_health(self, client, market):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["status"] == "healthy"
        assert data["database"]["details"]["products"] == 3
