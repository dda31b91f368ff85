from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Upper bound for prices and balances; keeps price * amount inside a 64-bit integer
MAX_MONEY = 999_999_999
MAX_AMOUNT = 1_000_000


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., a book already on sale)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(models: DeclarativeMeta | Iterable[DeclarativeMeta]) -> dict[str, Any]:
    if hasattr(models, "__mapper__"):
        models = [models]
    cols: dict[str, Any] = {}
    for model in models:
        for c in model.__mapper__.columns:
            cols.setdefault(c.key, c)
    return cols


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        # String input - must be plain digits (with optional leading minus)
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if not isinstance(value, str):
            raise ValidationError(f"{col.key} must be a string")
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta | Iterable[DeclarativeMeta],
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length) of one model
      or of several models whose columns make up the payload
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # Primary keys are non-nullable even though the column flag says otherwise
        if raw is None:
            if not col.nullable or col.primary_key:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _require_range(patch: dict, key: str, *, minimum: int, maximum: int) -> None:
    if key not in patch:
        return
    value = patch[key]
    if not isinstance(value, int):
        raise ValidationError(f"{key} must be an integer")
    if value < minimum:
        raise ValidationError(f"{key} must be >= {minimum}")
    if value > maximum:
        raise ValidationError(f"{key} cannot exceed {maximum}")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Price may be zero; a listed product always has at least one unit.
    """
    _require_range(patch, "price", minimum=0, maximum=MAX_MONEY)
    _require_range(patch, "amount", minimum=1, maximum=MAX_AMOUNT)


def enforce_rules_deal(patch: dict) -> None:
    # Product id and amount are both required and strictly positive
    for key in ("id", "amount"):
        if key not in patch or patch[key] is None:
            raise ValidationError(f"{key} is required for a deal")
    _require_range(patch, "id", minimum=1, maximum=2**63 - 1)
    _require_range(patch, "amount", minimum=1, maximum=MAX_AMOUNT)


def enforce_rules_account(patch: dict) -> None:
    if "balance" not in patch or patch["balance"] is None:
        raise ValidationError("balance is required")
    _require_range(patch, "balance", minimum=0, maximum=MAX_MONEY)
