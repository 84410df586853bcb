# Overview: Flask API routes for checkout and the sale ledger.

# backend/retailpos/routes/sales.py
"""Sales API routes."""

from flask import Blueprint, current_app, request

from ..errors import InsufficientStockError, NotFoundError, ValidationError
from ..services import sales_service
from ..services.cart_service import build_cart
from ..validation import coerce_int

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("/checkout")
def checkout_route():
    """
    Check out a cart at one location.

    Request body:
    {
        "location_id": int,
        "items": [{"product_id": int, "quantity": int}, ...],
        "client_reference": str (optional) - idempotency key for retries
    }

    Names and unit prices are taken from the catalog at checkout time.

    Returns:
        201: Sale recorded, stock decremented
        200: client_reference already recorded; the existing sale is returned
        400: Empty cart or malformed items
        404: Unknown location or product
        409: Insufficient stock (nothing is written)
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")

    location_id = coerce_int("location_id", data.get("location_id"))
    client_reference = data.get("client_reference")
    if client_reference is not None:
        client_reference = str(client_reference).strip()[:64] or None

    # A retry of a recorded checkout gets the same sale, even if stock is now gone
    existing = sales_service.find_by_reference(client_reference)
    if existing is not None:
        current_app.logger.info("Checkout %s already recorded as sale %s", client_reference, existing.id)
        return existing.to_dict(), 200

    try:
        cart = build_cart(location_id, data.get("items") or [])
        sale = cart.checkout(client_reference=client_reference)
    except (InsufficientStockError, NotFoundError):
        # A concurrent request with the same reference may have taken the stock
        existing = sales_service.find_by_reference(client_reference)
        if existing is None:
            raise
        return existing.to_dict(), 200
    current_app.logger.info("Checkout completed: sale %s at location %s", sale.id, location_id)
    return sale.to_dict(), 201


@sales_bp.get("")
def list_sales_route():
    """
    Query params:
    - location_id: int (optional)
    - order: "desc" (newest first, default) | "asc"
    - limit: int (optional)
    """
    sales = sales_service.list_sales(
        location_id=request.args.get("location_id", type=int),
        order=request.args.get("order", "desc"),
        limit=request.args.get("limit", type=int),
    )
    return {"items": [sale.to_dict() for sale in sales], "count": len(sales)}


@sales_bp.get("/<int:sale_id>")
def get_sale_route(sale_id: int):
    return sales_service.get_sale(sale_id).to_dict()
