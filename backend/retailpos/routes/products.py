# Overview: Flask API routes for catalog operations; parses input and returns JSON responses.

# backend/retailpos/routes/products.py
"""
Catalog routes.

SECURITY: reads are open; writes require the admin secret
(X-Admin-Secret), mirroring the privileged product endpoint of the POS.
"""
from flask import Blueprint, request

from ..decorators import require_admin_secret
from ..errors import ValidationError
from ..models import Product
from ..services import catalog_service, description_service, inventory_service
from ..validation import ModelValidationPolicy, coerce_int, enforce_rules_product, validate_payload

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset(catalog_service.PRODUCT_MUTABLE_FIELDS),
    required_on_create=frozenset(catalog_service.REQUIRED_ON_CREATE),
)

# Keys accepted alongside product fields but not stored on the product row
CREATE_EXTRA_KEYS = {"location_id", "initial_stock"}
UPDATE_EXTRA_KEYS = {"image"}

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _split(payload: dict, extra_keys: set) -> tuple[dict, dict]:
    fields = {k: v for k, v in payload.items() if k not in extra_keys}
    extras = {k: v for k, v in payload.items() if k in extra_keys}
    return fields, extras


@products_bp.get("")
def list_products():
    """
    List products with stock.

    Query params:
    - location_id: int (optional) - stock at this location instead of the total
    - category: str (optional)
    - page, per_page: int (optional) - pagination (per_page max 100)
    """
    return catalog_service.list_products(
        location_id=request.args.get("location_id", type=int),
        category=request.args.get("category"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )


@products_bp.get("/low-stock")
def low_stock():
    items = catalog_service.low_stock_products(location_id=request.args.get("location_id", type=int))
    return {"items": items, "count": len(items)}


@products_bp.get("/<int:product_id>")
def get_product(product_id: int):
    product = catalog_service.get_product(product_id)
    data = product.to_dict()
    data["inventory"] = inventory_service.inventory_for_product(product_id)
    data["stock"] = sum(row["stock"] for row in data["inventory"])
    return data


@products_bp.post("")
@require_admin_secret
def create_product_route():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    fields, extras = _split(payload, CREATE_EXTRA_KEYS)
    patch = validate_payload(model=Product, payload=fields, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)

    location_id = extras.get("location_id")
    created = catalog_service.create_product(
        patch=patch,
        location_id=coerce_int("location_id", location_id) if location_id is not None else None,
        initial_stock=extras.get("initial_stock") or 0,
    )
    return created, 201


@products_bp.put("/<int:product_id>")
@require_admin_secret
def update_product_route(product_id: int):
    """
    Partial update. An optional "image": {"file_name", "data"} (base64)
    is uploaded first; if storage fails the update still applies and the
    response carries "warnings".
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    fields, extras = _split(payload, UPDATE_EXTRA_KEYS)
    patch = validate_payload(model=Product, payload=fields, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)

    image = extras.get("image")
    if image is not None and not isinstance(image, dict):
        raise ValidationError("image must be an object with file_name and data")

    updated = catalog_service.update_product(product_id=product_id, patch=patch, image=image)
    return updated, 200


@products_bp.post("/<int:product_id>/image")
@require_admin_secret
def upload_image_route(product_id: int):
    payload = request.get_json(silent=True) or {}
    result = catalog_service.upload_product_image(
        product_id=product_id,
        file_name=payload.get("file_name") or "",
        data=payload.get("data") or payload.get("file_base64") or "",
    )
    return result, 200


@products_bp.delete("/<int:product_id>")
@require_admin_secret
def delete_product_route(product_id: int):
    catalog_service.delete_product(product_id=product_id)
    return {"ok": True}, 200


@products_bp.post("/describe")
@require_admin_secret
def describe_product_route():
    """
    Generate a short description for a product name and category.

    Request body: {"name": str, "category": str (optional)}

    Returns:
        200: {"description": str}
        400: Missing name
        503: Generation not configured, or the API is unreachable
    """
    payload = request.get_json(silent=True) or {}
    description = description_service.generate_description(payload.get("name"), payload.get("category"))
    return {"description": description}, 200
