# Overview: Request decorators for API routes.

from functools import wraps
from flask import current_app, g


def with_buyer_account(f):
    """
    Establish the buyer context for a request.

    The market has no authentication: every request acts on one implicit
    buyer account, configured as MARKET_ACCOUNT_ID. Sets g.account_id so that
    routes pass it explicitly to the services; swapping in a real identity
    mechanism later only touches this decorator.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.account_id = current_app.config["MARKET_ACCOUNT_ID"]
        return f(*args, **kwargs)

    return decorated_function
