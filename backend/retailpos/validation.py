from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from flask import current_app, has_app_context
from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError


# Maximum amount: 9,999,999.99 in any currency
MAX_PRICE_CENTS = 999_999_999

DEFAULT_CURRENCIES = ("CUP", "USD")


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: frozenset
    required_on_create: frozenset = frozenset()


def supported_currencies() -> tuple[str, ...]:
    if has_app_context():
        return tuple(current_app.config.get("SUPPORTED_CURRENCIES", DEFAULT_CURRENCIES))
    return DEFAULT_CURRENCIES


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(key: str, value: Any) -> int:
    """Strict integer coercion: rejects bools, floats, decimals and scientific notation."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        if "e" in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def coerce_rate(value: Any) -> Decimal:
    """Exchange rates arrive as numbers or numeric strings."""
    if isinstance(value, bool) or value is None:
        raise ValidationError("rate must be a number")
    try:
        rate = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("rate must be a number")
    if not rate.is_finite():
        raise ValidationError("rate must be a finite number")
    return rate


def _coerce_value(col, value: Any):
    if value is None:
        return None

    if isinstance(col.type, Integer):
        return coerce_int(col.key, value)

    if isinstance(col.type, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}
    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
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


def _check_amount(key: str, value: Any, *, strictly_positive: bool) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if strictly_positive and value <= 0:
        raise ValidationError(f"{key} must be > 0")
    if value < 0:
        raise ValidationError(f"{key} must be >= 0")
    if value > MAX_PRICE_CENTS:
        raise ValidationError(f"{key} cannot exceed {MAX_PRICE_CENTS}")


def normalize_currency(key: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{key} is required")
    code = value.strip().upper()
    if code not in supported_currencies():
        raise ValidationError(
            f"{key} must be one of: {', '.join(supported_currencies())}"
        )
    return code


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Normalizes currency codes in place.
    """
    if "name" in patch:
        name = patch["name"]
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("name cannot be blank")
        patch["name"] = name.strip()

    if "sale_price_amount_cents" in patch:
        _check_amount("sale_price_amount_cents", patch["sale_price_amount_cents"], strictly_positive=True)

    if "cost_price_amount_cents" in patch:
        _check_amount("cost_price_amount_cents", patch["cost_price_amount_cents"], strictly_positive=False)

    for key in ("sale_price_currency", "cost_price_currency"):
        if key in patch:
            patch[key] = normalize_currency(key, patch[key])

    if "stock_minimum" in patch:
        minimum = patch["stock_minimum"]
        if not isinstance(minimum, int) or isinstance(minimum, bool) or minimum < 0:
            raise ValidationError("stock_minimum must be >= 0")


def enforce_rules_quantity(key: str, value: Any, *, allow_zero: bool = False) -> int:
    qty = coerce_int(key, value)
    if allow_zero and qty < 0:
        raise ValidationError(f"{key} must be >= 0")
    if not allow_zero and qty <= 0:
        raise ValidationError(f"{key} must be > 0")
    return qty
