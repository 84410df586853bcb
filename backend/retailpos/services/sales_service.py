"""
Sales Service - append-only sale ledger and atomic checkout.

Checkout writes the Sale, its line snapshots and every stock decrement in a
single DB transaction. If any decrement is short the whole transaction is
rolled back: no sale row, no partial decrement.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..errors import EmptyCartError, InsufficientStockError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Sale, SaleLine
from ..validation import coerce_int, enforce_rules_quantity
from .concurrency import run_with_retry
from .inventory_service import _debit, _require_location, get_stock

logger = logging.getLogger(__name__)


def _normalize_lines(lines) -> list[dict]:
    if not isinstance(lines, (list, tuple)):
        raise ValidationError("items must be a list")

    normalized = []
    for i, raw in enumerate(lines, start=1):
        if not isinstance(raw, dict):
            raise ValidationError(f"item {i} must be an object")
        name = str(raw.get("name") or "").strip()
        if not name:
            raise ValidationError(f"item {i}: name is required")
        unit_price = coerce_int(f"item {i}: unit_price_cents", raw.get("unit_price_cents"))
        if unit_price < 0:
            raise ValidationError(f"item {i}: unit_price_cents must be >= 0")
        normalized.append({
            "product_id": coerce_int(f"item {i}: product_id", raw.get("product_id")),
            "name": name,
            "unit_price_cents": unit_price,
            "quantity": enforce_rules_quantity(f"item {i}: quantity", raw.get("quantity")),
        })
    return normalized


def _validate_on_hand(location_id: int, lines: list[dict]) -> None:
    product_totals: dict[int, int] = {}
    for line in lines:
        product_totals[line["product_id"]] = product_totals.get(line["product_id"], 0) + line["quantity"]

    insufficient = []
    for product_id, qty in product_totals.items():
        on_hand = get_stock(product_id, location_id)
        if on_hand < qty:
            insufficient.append({
                "product_id": product_id,
                "requested_quantity": qty,
                "on_hand": on_hand,
            })

    if insufficient:
        raise InsufficientStockError(
            "Insufficient stock to complete sale",
            details={"location_id": location_id, "items": insufficient},
        )


def find_by_reference(client_reference: str | None) -> Sale | None:
    if not client_reference:
        return None
    return db.session.query(Sale).filter_by(client_reference=client_reference).first()


def _add_sale(location_id: int, lines: list[dict], client_reference: str | None) -> Sale:
    sale = Sale(
        location_id=location_id,
        total_cents=sum(line["unit_price_cents"] * line["quantity"] for line in lines),
        client_reference=client_reference,
    )
    for number, line in enumerate(lines, start=1):
        sale.lines.append(SaleLine(
            line_number=number,
            product_id=line["product_id"],
            name=line["name"],
            unit_price_cents=line["unit_price_cents"],
            quantity=line["quantity"],
            line_total_cents=line["unit_price_cents"] * line["quantity"],
        ))
    db.session.add(sale)
    db.session.flush()
    return sale


def record(
    location_id: int,
    lines,
    *,
    client_reference: str | None = None,
    commit: bool = True,
) -> Sale:
    """Append a sale without touching stock. Returns the stored sale."""
    lines = _normalize_lines(lines)
    if not lines:
        raise EmptyCartError("Cannot record a sale with no items")
    _require_location(location_id)

    existing = find_by_reference(client_reference)
    if existing is not None:
        return existing

    sale = _add_sale(location_id, lines, client_reference)
    if commit:
        db.session.commit()
    return sale


def checkout(location_id: int, lines, *, client_reference: str | None = None) -> Sale:
    """
    Record a sale and decrement stock for each line, all-or-nothing.

    A repeated client_reference returns the sale already recorded for it and
    does not decrement again.

    Raises:
        EmptyCartError: no lines
        ValidationError: malformed lines
        NotFoundError: unknown location
        InsufficientStockError: any line exceeds stock (nothing is written)
    """
    lines = _normalize_lines(lines)
    if not lines:
        raise EmptyCartError("Cannot check out an empty cart")

    def _op():
        existing = find_by_reference(client_reference)
        if existing is not None:
            logger.info("Checkout %s already recorded as sale %s", client_reference, existing.id)
            return existing

        _require_location(location_id)
        _validate_on_hand(location_id, lines)

        try:
            sale = _add_sale(location_id, lines, client_reference)
            for line in lines:
                _debit(line["product_id"], location_id, line["quantity"])
            db.session.commit()
        except IntegrityError:
            # A concurrent checkout committed the same client_reference first
            db.session.rollback()
            existing = find_by_reference(client_reference)
            if existing is None:
                raise
            logger.info("Checkout %s was recorded concurrently as sale %s", client_reference, existing.id)
            return existing
        logger.info(
            "Sale %s recorded at location %s: %s lines, total_cents=%s",
            sale.id, location_id, len(lines), sale.total_cents,
        )
        return sale

    try:
        return run_with_retry(_op)
    except Exception:
        db.session.rollback()
        raise


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError(f"Sale {sale_id} not found")
    return sale


def list_sales(
    *,
    location_id: int | None = None,
    order: str = "desc",
    limit: int | None = None,
) -> list[Sale]:
    """
    Sales ordered by created_at then id.

    order="desc" is newest first; order="asc" is chronological (charts).
    """
    if order not in ("asc", "desc"):
        raise ValidationError("order must be asc or desc")

    q = db.session.query(Sale)
    if location_id is not None:
        q = q.filter(Sale.location_id == location_id)
    if order == "desc":
        q = q.order_by(Sale.created_at.desc(), Sale.id.desc())
    else:
        q = q.order_by(Sale.created_at.asc(), Sale.id.asc())
    if limit is not None:
        q = q.limit(max(1, int(limit)))
    return q.all()
