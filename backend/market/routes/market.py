# Overview: Flask API routes for the market; parses input and returns JSON responses.

# backend/market/routes/market.py
"""
Market routes: catalog listing/administration and deals.

Status mapping for deals:
- 200: deal settled (body describes balances and stock after the deal)
- 400: validation error, product not found, not enough product, not enough money
- 500: buyer account missing, or an integrity violation between check and write
"""
from flask import Blueprint, current_app, g, request

from ..models import Book, Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    enforce_rules_deal,
    ValidationError,
    ConflictError,
)
from ..decorators import with_buyer_account
from ..services import product_service
from ..services.integrity import IntegrityViolation
from ..services.settlement_service import (
    settle_deal,
    DealError,
    AccountUnresolvable,
)

NEW_PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "author", "price", "amount"},
    required_on_create={"name", "author", "price", "amount"},
)

PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"price", "amount"},
)

BOOK_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "author"},
)

DEAL_POLICY = ModelValidationPolicy(
    writable_fields={"id", "amount"},
    required_on_create={"id", "amount"},
)

market_bp = Blueprint("market", __name__, url_prefix="/market")


@market_bp.get("")
def list_products():
    """Market data: every product currently on sale."""
    products = product_service.list_products()
    return {"products": [p.to_dict() for p in products]}


@market_bp.post("")
def create_product_route():
    """Put a new book on sale."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=(Book, Product), payload=payload, policy=NEW_PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = product_service.create_product(
            name=patch["name"],
            author=patch["author"],
            price=patch["price"],
            amount=patch["amount"],
        )
    except ConflictError as e:
        return {"error": str(e)}, 409

    return created.to_dict(), 201


@market_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    product = product_service.get_product(product_id)
    if product is None:
        return {"error": "Product not found"}, 404
    return product.to_dict()


@market_bp.patch("/<int:product_id>")
def update_product_route(product_id: int):
    """
    Partially update a product.

    Body: any of {"price", "amount", "book": {"name"?, "author"?}}.
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400
    payload = dict(payload)
    book_payload = payload.pop("book", None)

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)
        enforce_rules_product(patch)
        book_patch = None
        if book_payload is not None:
            book_patch = validate_payload(model=Book, payload=book_payload, policy=BOOK_UPDATE_POLICY, partial=True)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        updated = product_service.update_product(product_id, patch=patch, book_patch=book_patch)
    except ConflictError as e:
        return {"error": str(e)}, 409
    if updated is None:
        return {"error": "Product not found"}, 404
    return updated.to_dict()


@market_bp.post("/deal")
@with_buyer_account
def deal_route():
    """Buy `amount` units of product `id` with the buyer's money."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=DEAL_POLICY, partial=False)
        enforce_rules_deal(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        deal = settle_deal(patch["id"], patch["amount"], account_id=g.account_id)
    except AccountUnresolvable as e:
        return {"error": str(e), "code": e.code}, 500
    except DealError as e:
        return {"error": str(e), "code": e.code, "details": e.details}, 400
    except IntegrityViolation:
        current_app.logger.exception("Failed to settle deal for product %s", patch["id"])
        return {"error": "Deal could not be completed"}, 500

    return deal.to_dict(), 200
