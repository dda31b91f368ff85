# Overview: Flask API routes for the buyer account.

from flask import Blueprint, g

from ..decorators import with_buyer_account
from ..services import account_service, ledger_service

account_bp = Blueprint("account", __name__, url_prefix="/account")


@account_bp.get("")
@with_buyer_account
def get_account_info():
    """Current buyer: balance and purchased books."""
    account = account_service.get_account(g.account_id)
    # The buyer row is created by seeding; without it the market is misconfigured
    if account is None:
        return {"error": "Couldn't get account information"}, 500
    return account.to_dict(entries=ledger_service.list_entries(account.id))
