# Overview: Flask CLI command groups for seeding, inspection, and maintenance.

# backend/market/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "market" (PowerShell: $env:FLASK_APP="market").
# - Use: python -m flask <group> <command> [options]
#
# Seeding (reset-then-insert; the seed is fully parsed before anything is cleared):
# - python -m flask seed load data.json
#   Replace all market data with the contents of a JSON seed file.
# - python -m flask seed static
#   Replace all market data with the seed bundled in market/static/data.json.
# - python -m flask seed startup
#   Seed from MARKET_SEED_FILE when set; otherwise keep persisted data.
#
# System bootstrap/repair:
# - python -m flask system init
#   Create tables that do not exist yet.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system wipe --yes
#   Clear all market tables in dependency order and restart ids at 1.
#
# Market inspection:
# - python -m flask market list
#   List products on sale.
# - python -m flask market deal 1 2
#   Buy 2 units of product 1 as the configured buyer account.
#
# Accounts:
# - python -m flask accounts show
#   Show the configured buyer account and its purchases.
# - python -m flask accounts create --balance 20000
#   Create an account with the given balance.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services import account_service, ledger_service, product_service, seed_service
from .services.integrity import IntegrityViolation
from .services.seed_service import SeedError
from .services.settlement_service import DealError, settle_deal
from .validation import MAX_MONEY


@click.group('seed')
def seed_group():
    """Load market data from seed descriptions."""


def _apply_seed(seed: seed_service.SeedData) -> None:
    account = seed_service.seed_market(seed)
    click.echo(f"PASS Seeded account {account.id} (balance {seed.balance}) and {len(seed.products)} products")


@seed_group.command('load')
@click.argument('path', type=click.Path(dir_okay=False))
@with_appcontext
def seed_load(path):
    """Replace market data with the JSON seed at PATH."""
    try:
        seed = seed_service.load_seed_file(path)
    except SeedError as e:
        raise click.ClickException(str(e))
    _apply_seed(seed)


@seed_group.command('static')
@with_appcontext
def seed_static():
    """Replace market data with the bundled static seed."""
    try:
        seed = seed_service.load_static_seed()
    except SeedError as e:
        raise click.ClickException(str(e))
    _apply_seed(seed)


@seed_group.command('startup')
@with_appcontext
def seed_startup():
    """Seed from MARKET_SEED_FILE if configured."""
    path = current_app.config.get("MARKET_SEED_FILE")
    if not path:
        click.echo("No seeding data JSON path specified - using persisted data from the database")
        return
    try:
        seed = seed_service.load_seed_file(path)
    except SeedError as e:
        raise click.ClickException(str(e))
    _apply_seed(seed)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create missing tables."""
    db.create_all()
    click.echo("PASS Tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm dropping all tables')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        raise click.ClickException("Refusing to drop tables without --yes")
    db.drop_all()
    db.create_all()
    click.echo("PASS Database recreated")


@system_group.command('wipe')
@click.option('--yes', is_flag=True, help='Confirm clearing all market data')
@with_appcontext
def wipe(yes):
    """Clear all market data without reseeding."""
    if not yes:
        raise click.ClickException("Refusing to wipe data without --yes")
    seed_service.reset_all()
    click.echo("PASS Market data cleared")


@click.group('market')
def market_group():
    """Market inspection commands."""


@market_group.command('list')
@with_appcontext
def list_market():
    """List products on sale."""
    products = product_service.list_products()
    if not products:
        click.echo("No products on sale")
        return
    for p in products:
        click.echo(f"{p.id:>4}  {p.book.name} / {p.book.author}  price={p.price}  amount={p.amount}")


@market_group.command('deal')
@click.argument('product_id', type=click.IntRange(min=1))
@click.argument('amount', type=click.IntRange(min=1))
@with_appcontext
def deal(product_id, amount):
    """Buy AMOUNT units of PRODUCT_ID as the configured buyer."""
    account_id = current_app.config["MARKET_ACCOUNT_ID"]
    try:
        settled = settle_deal(product_id, amount, account_id=account_id)
    except DealError as e:
        raise click.ClickException(f"{e.code}: {e}")
    except IntegrityViolation as e:
        current_app.logger.exception("Failed to settle deal for product %s", product_id)
        raise click.ClickException(f"Deal could not be completed: {e}")

    click.echo(
        f"PASS Bought {settled.quantity} x product {settled.product_id} for {settled.total_price}; "
        f"balance {settled.balance}, stock {settled.remaining_stock}"
    )


@click.group('accounts')
def accounts_group():
    """Buyer account commands."""


@accounts_group.command('show')
@with_appcontext
def show_account():
    """Show the configured buyer account."""
    account_id = current_app.config["MARKET_ACCOUNT_ID"]
    account = account_service.get_account(account_id)
    if account is None:
        raise click.ClickException(f"Account {account_id} not found")
    click.echo(f"Account {account.id}: balance={account.balance}")
    for entry in ledger_service.list_entries(account.id):
        click.echo(f"  {entry.book.name} / {entry.book.author}: {entry.amount}")


@accounts_group.command('create')
@click.option('--balance', required=True, type=click.IntRange(min=0, max=MAX_MONEY), help='Starting balance')
@with_appcontext
def create_account(balance):
    """Create an account."""
    account = account_service.create_account(balance=balance)
    click.echo(f"PASS Created account {account.id} with balance {account.balance}")


def register_commands(app):
    app.cli.add_command(seed_group)
    app.cli.add_command(system_group)
    app.cli.add_command(market_group)
    app.cli.add_command(accounts_group)
