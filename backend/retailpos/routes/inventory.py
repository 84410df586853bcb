# Overview: Flask API routes for stock reads, stock takes and transfers.

from flask import Blueprint, current_app, request

from ..decorators import require_admin_secret
from ..services import inventory_service
from ..validation import coerce_int

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
def list_inventory():
    items = inventory_service.list_inventory(location_id=request.args.get("location_id", type=int))
    return {"items": items, "count": len(items)}


@inventory_bp.get("/<int:product_id>/<int:location_id>")
def get_stock(product_id: int, location_id: int):
    return {
        "product_id": product_id,
        "location_id": location_id,
        "stock": inventory_service.get_stock(product_id, location_id),
    }


@inventory_bp.put("/<int:product_id>/<int:location_id>")
@require_admin_secret
def set_stock(product_id: int, location_id: int):
    """
    Overwrite the count at one location (stock take / introduce product).

    Request body: {"stock": int >= 0}
    """
    data = request.get_json(silent=True) or {}
    item = inventory_service.set_stock(product_id, location_id, data.get("stock"))
    current_app.logger.info(
        "Stock set for product %s at location %s to %s", product_id, location_id, item.stock
    )
    return item.to_dict(), 200


@inventory_bp.post("/transfers")
def create_transfer():
    """
    Move stock between two locations, all-or-nothing.

    Request body:
    {
        "product_id": int,
        "from_location_id": int,
        "to_location_id": int,
        "quantity": int
    }

    Returns:
        200: Transfer applied
        400: Invalid quantity or locations
        404: Product not found
        409: Insufficient stock at source
    """
    data = request.get_json(silent=True) or {}
    result = inventory_service.transfer(
        product_id=coerce_int("product_id", data.get("product_id")),
        from_location_id=coerce_int("from_location_id", data.get("from_location_id")),
        to_location_id=coerce_int("to_location_id", data.get("to_location_id")),
        qty=data.get("quantity"),
    )
    return {"ok": True, **result}, 200
