# Overview: Service-layer operations for the multi-location inventory ledger.

# backend/retailpos/services/inventory_service.py
"""
Inventory Invariants (authoritative)

Stock model:
- One InventoryItem row per (product, location) holding a non-negative count.
- A missing row is an implicit zero, never "unknown".
- The database enforces CHECK (stock >= 0) as a last line of defence.

Mutation rules:
- Debits are a single guarded UPDATE:
      UPDATE inventory_items SET stock = stock - :qty
      WHERE product_id = :p AND location_id = :l AND stock >= :qty
  Zero rows affected means insufficient stock; nothing is changed.
  Stock is never read into Python, modified and written back.
- Credits are an UPDATE ... SET stock = stock + :qty, inserting the row when
  it does not exist yet.
- A transfer is a debit plus a credit inside one DB transaction. Any failure
  rolls back both sides, so a debit never survives without its credit.

Callers that compose several mutations (checkout) pass commit=False and own
the transaction boundary.
"""
from __future__ import annotations

import logging

from sqlalchemy import func, select, update

from ..errors import InsufficientStockError, InvalidLocationError, NotFoundError
from ..extensions import db
from ..models import InventoryItem, Location, Product
from ..time_utils import utcnow
from ..validation import enforce_rules_quantity
from .concurrency import run_with_retry

logger = logging.getLogger(__name__)


def _require_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def _require_location(location_id: int, *, error_cls=NotFoundError) -> Location:
    location = db.session.get(Location, location_id)
    if location is None:
        raise error_cls(f"Location {location_id} not found")
    return location


def get_stock(product_id: int, location_id: int) -> int:
    """Stock on hand; 0 when no row exists."""
    value = db.session.execute(
        select(InventoryItem.stock).where(
            InventoryItem.product_id == product_id,
            InventoryItem.location_id == location_id,
        )
    ).scalar()
    return int(value or 0)


def stock_by_product(location_id: int | None = None) -> dict[int, int]:
    """Map product_id -> stock at a location, or summed over all locations."""
    q = select(
        InventoryItem.product_id,
        func.coalesce(func.sum(InventoryItem.stock), 0),
    ).group_by(InventoryItem.product_id)
    if location_id is not None:
        q = q.where(InventoryItem.location_id == location_id)
    return {int(pid): int(total) for pid, total in db.session.execute(q).all()}


def _debit(product_id: int, location_id: int, qty: int) -> None:
    result = db.session.execute(
        update(InventoryItem)
        .where(
            InventoryItem.product_id == product_id,
            InventoryItem.location_id == location_id,
            InventoryItem.stock >= qty,
        )
        .values(stock=InventoryItem.stock - qty, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        on_hand = get_stock(product_id, location_id)
        raise InsufficientStockError(
            f"Insufficient stock for product {product_id} at location {location_id}. "
            f"On-hand: {on_hand}, requested: {qty}",
            details={
                "product_id": product_id,
                "location_id": location_id,
                "requested_quantity": qty,
                "on_hand": on_hand,
            },
        )


def _credit(product_id: int, location_id: int, qty: int) -> None:
    result = db.session.execute(
        update(InventoryItem)
        .where(
            InventoryItem.product_id == product_id,
            InventoryItem.location_id == location_id,
        )
        .values(stock=InventoryItem.stock + qty, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.session.add(InventoryItem(product_id=product_id, location_id=location_id, stock=qty))
        db.session.flush()


def decrement(product_id: int, location_id: int, qty, *, commit: bool = True) -> int:
    """
    Remove `qty` units from a location.

    Returns the remaining stock. Raises InsufficientStockError when stock is
    short; stock is left unchanged in that case.
    """
    qty = enforce_rules_quantity("quantity", qty)

    def _op():
        _debit(product_id, location_id, qty)
        if commit:
            db.session.commit()
        return get_stock(product_id, location_id)

    if not commit:
        return _op()
    try:
        return run_with_retry(_op)
    except InsufficientStockError:
        db.session.rollback()
        raise


def increment(product_id: int, location_id: int, qty, *, commit: bool = True) -> int:
    qty = enforce_rules_quantity("quantity", qty)

    def _op():
        _require_product(product_id)
        _require_location(location_id)
        _credit(product_id, location_id, qty)
        if commit:
            db.session.commit()
        return get_stock(product_id, location_id)

    if not commit:
        return _op()
    return run_with_retry(_op)


def transfer(product_id: int, from_location_id: int, to_location_id: int, qty) -> dict:
    """
    Move `qty` units of a product between two locations, all-or-nothing.

    Raises:
        ValidationError: qty is not a positive integer
        InvalidLocationError: same location, or either location unknown
        NotFoundError: product unknown
        InsufficientStockError: source stock is short
    """
    qty = enforce_rules_quantity("quantity", qty)
    if from_location_id == to_location_id:
        raise InvalidLocationError("Cannot transfer to the same location")

    def _op():
        _require_product(product_id)
        _require_location(from_location_id, error_cls=InvalidLocationError)
        _require_location(to_location_id, error_cls=InvalidLocationError)

        _debit(product_id, from_location_id, qty)
        _credit(product_id, to_location_id, qty)
        db.session.commit()

        logger.info(
            "Transferred %s of product %s from location %s to %s",
            qty, product_id, from_location_id, to_location_id,
        )
        return {
            "product_id": product_id,
            "quantity": qty,
            "from_location_id": from_location_id,
            "to_location_id": to_location_id,
            "from_stock": get_stock(product_id, from_location_id),
            "to_stock": get_stock(product_id, to_location_id),
        }

    try:
        return run_with_retry(_op)
    except Exception:
        db.session.rollback()
        raise


def set_stock(product_id: int, location_id: int, stock) -> InventoryItem:
    """Introduce a product at a location or overwrite its count (stock take)."""
    stock = enforce_rules_quantity("stock", stock, allow_zero=True)

    def _op():
        _require_product(product_id)
        _require_location(location_id)
        item = db.session.get(InventoryItem, (product_id, location_id), populate_existing=True)
        if item is None:
            item = InventoryItem(product_id=product_id, location_id=location_id, stock=stock)
            db.session.add(item)
        else:
            item.stock = stock
        db.session.commit()
        return item

    return run_with_retry(_op)


def list_inventory(location_id: int | None = None) -> list[dict]:
    q = db.session.query(InventoryItem, Product.name, Location.name).join(
        Product, Product.id == InventoryItem.product_id
    ).join(
        Location, Location.id == InventoryItem.location_id
    )
    if location_id is not None:
        q = q.filter(InventoryItem.location_id == location_id)
    rows = q.order_by(Product.name.asc(), InventoryItem.product_id.asc(), InventoryItem.location_id.asc()).all()
    result = []
    for item, product_name, location_name in rows:
        data = item.to_dict()
        data["product_name"] = product_name
        data["location_name"] = location_name
        result.append(data)
    return result


def inventory_for_product(product_id: int) -> list[dict]:
    _require_product(product_id)
    items = (
        db.session.query(InventoryItem)
        .filter_by(product_id=product_id)
        .order_by(InventoryItem.location_id.asc())
        .all()
    )
    return [item.to_dict() for item in items]