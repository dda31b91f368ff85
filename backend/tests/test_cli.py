"""
CLI tests through Flask's test runner.
"""

import json

from market.extensions import db
from market.models import Account, Product
from market.services import account_service, ledger_service, product_service

from conftest import snapshot


class TestSeedCommands:
    def test_seed_static(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["seed", "static"])
        assert result.exit_code == 0, result.output
        assert "PASS" in result.output
        assert len(product_service.list_products()) == 5
        assert account_service.get_account(1).balance == 20000

    def test_seed_load(self, app, db_session, tmp_path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps({
            "account": {"money": 100},
            "books": [{"author": "A", "name": "B", "price": 10, "amount": 2}],
        }), encoding="utf-8")

        result = app.test_cli_runner().invoke(args=["seed", "load", str(path)])

        assert result.exit_code == 0, result.output
        assert product_service.get_product(1).book.name == "B"

    def test_bad_seed_file_changes_nothing(self, app, market, tmp_path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps({"account": {"money": -1}}), encoding="utf-8")
        before = snapshot()

        result = app.test_cli_runner().invoke(args=["seed", "load", str(path)])

        assert result.exit_code != 0
        assert snapshot() == before

    def test_seed_startup_without_file_keeps_data(self, app, market):
        before = snapshot()
        result = app.test_cli_runner().invoke(args=["seed", "startup"])
        assert result.exit_code == 0
        assert "using persisted data" in result.output
        assert snapshot() == before


class TestSystemCommands:
    def test_wipe_requires_confirmation(self, app, market):
        result = app.test_cli_runner().invoke(args=["system", "wipe"])
        assert result.exit_code != 0
        assert db.session.query(Product).count() == 3

    def test_wipe(self, app, market):
        result = app.test_cli_runner().invoke(args=["system", "wipe", "--yes"])
        assert result.exit_code == 0
        assert db.session.query(Product).count() == 0
        assert db.session.query(Account).count() == 0


class TestMarketCommands:
    def test_list(self, app, market):
        result = app.test_cli_runner().invoke(args=["market", "list"])
        assert result.exit_code == 0
        assert "Философия Java" in result.output

    def test_deal(self, app, market):
        result = app.test_cli_runner().invoke(args=["market", "deal", "1", "2"])
        assert result.exit_code == 0, result.output
        assert ledger_service.find_or_null(1, 1).amount == 2

    def test_rejected_deal(self, app, market):
        result = app.test_cli_runner().invoke(args=["market", "deal", "2", "5"])
        assert result.exit_code != 0
        assert "INSUFFICIENT_STOCK" in result.output

    def test_accounts_show_and_create(self, app, market):
        runner = app.test_cli_runner()
        show = runner.invoke(args=["accounts", "show"])
        assert "balance=20000" in show.output

        runner.invoke(args=["market", "deal", "1", "2"])
        show = runner.invoke(args=["accounts", "show"])
        assert "balance=17000" in show.output
        assert "Философия Java / Брюс Эккель: 2" in show.output

        create = runner.invoke(args=["accounts", "create", "--balance", "300"])
        assert create.exit_code == 0
        assert account_service.get_account(2).balance == 300
