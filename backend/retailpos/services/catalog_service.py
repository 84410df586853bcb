# backend/retailpos/services/catalog_service.py
"""
Catalog service.

- Canonical prices are written only as (amount, currency); the legacy
  base-currency columns are re-derived here through pricing_service.
- Image uploads are a side effect: a failed upload never blocks a product
  update, it comes back as a warning.
- Deleting a product removes its inventory rows. Sale lines are snapshots
  and are not touched.
"""
from __future__ import annotations

import logging

from flask import current_app

from ..errors import NotFoundError, StorageError, ValidationError
from ..extensions import db
from ..models import Product
from ..validation import enforce_rules_product, enforce_rules_quantity
from .image_storage import decode_image_payload, get_image_storage
from .inventory_service import _credit, _require_location, stock_by_product
from .pricing_service import derive_legacy_prices

logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {
    "name",
    "description",
    "category",
    "unit_of_measure",
    "sale_price_amount_cents",
    "sale_price_currency",
    "cost_price_amount_cents",
    "cost_price_currency",
    "stock_minimum",
}
PRICE_FIELDS = {
    "sale_price_amount_cents",
    "sale_price_currency",
    "cost_price_amount_cents",
    "cost_price_currency",
}
REQUIRED_ON_CREATE = {"name", "sale_price_amount_cents"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def list_products(
    *,
    location_id: int | None = None,
    category: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Product listing with stock, optionally paginated.

    stock is the count at `location_id`, or the sum over all locations.
    """
    if location_id is not None:
        _require_location(location_id)

    base_query = db.session.query(Product)
    if category:
        base_query = base_query.filter(Product.category == category)
    base_query = base_query.order_by(Product.name.asc(), Product.id.asc())

    stock = stock_by_product(location_id)

    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict(stock=stock.get(p.id, 0)) for p in products],
            "count": len(products),
        }

    per_page = min(per_page or 20, 100)
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict(stock=stock.get(p.id, 0)) for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def create_product(
    *,
    patch: dict,
    location_id: int | None = None,
    initial_stock=0,
) -> dict:
    """
    Create a product, optionally stocking it at one location.

    Raises:
        ValidationError: missing/invalid fields or negative initial stock
        NotFoundError: location_id does not exist
    """
    missing = sorted(f for f in REQUIRED_ON_CREATE if patch.get(f) is None)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    patch = {k: v for k, v in patch.items() if k in PRODUCT_MUTABLE_FIELDS}
    enforce_rules_product(patch)
    initial_stock = enforce_rules_quantity("initial_stock", initial_stock or 0, allow_zero=True)
    if initial_stock and location_id is None:
        raise ValidationError("location_id is required when initial_stock is given")

    if location_id is not None:
        _require_location(location_id)

    p = Product()
    apply_product_patch(p, patch)
    p.sale_price_currency = p.sale_price_currency or "CUP"
    p.cost_price_currency = p.cost_price_currency or p.sale_price_currency
    if p.cost_price_amount_cents is None:
        p.cost_price_amount_cents = 0
    derive_legacy_prices(p)

    db.session.add(p)
    db.session.flush()

    if location_id is not None:
        _credit(p.id, location_id, initial_stock)

    db.session.commit()
    logger.info("Created product id=%s name=%r", p.id, p.name)
    return p.to_dict(stock=initial_stock if location_id is not None else 0)


def _upload_image(product: Product, image: dict) -> str:
    content = decode_image_payload(image.get("data") or image.get("file_base64") or "")
    return get_image_storage().upload(product.id, image.get("file_name") or "", content)


def _remove_image_quietly(url: str | None) -> None:
    if not url:
        return
    try:
        get_image_storage().remove(url)
    except StorageError as exc:
        logger.warning("Could not remove image %s: %s", url, exc)


def update_product(*, product_id: int, patch: dict, image: dict | None = None) -> dict:
    """
    Partial update. If `image` ({"file_name", "data"}) is given it is
    uploaded first; a storage failure is reported in `warnings` and the rest
    of the update still applies.

    Raises:
        NotFoundError: product does not exist
        ValidationError: invalid fields or malformed image payload
    """
    p = get_product(product_id)

    patch = {k: v for k, v in patch.items() if k in PRODUCT_MUTABLE_FIELDS}
    enforce_rules_product(patch)

    warnings: list[str] = []
    new_image_url = None
    if image:
        if not image.get("file_name"):
            raise ValidationError("image.file_name is required")
        try:
            new_image_url = _upload_image(p, image)
        except StorageError as exc:
            logger.warning("Image upload failed for product %s: %s", product_id, exc)
            warnings.append(f"Image was not updated: {exc}")

    old_image_url = p.image_url
    apply_product_patch(p, patch)
    if PRICE_FIELDS & set(patch):
        derive_legacy_prices(p)
    if new_image_url:
        p.image_url = new_image_url

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        # The row never points at the new object, so drop it from the bucket
        if new_image_url != old_image_url:
            _remove_image_quietly(new_image_url)
        raise

    if new_image_url and old_image_url and old_image_url != new_image_url:
        _remove_image_quietly(old_image_url)

    result = p.to_dict(stock=stock_by_product().get(p.id, 0))
    result["warnings"] = warnings
    return result


def upload_product_image(*, product_id: int, file_name: str, data: str) -> dict:
    """Direct image upload; unlike update_product a storage failure is fatal here."""
    p = get_product(product_id)
    old_image_url = p.image_url
    url = _upload_image(p, {"file_name": file_name, "data": data})
    p.image_url = url
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        if url != old_image_url:
            _remove_image_quietly(url)
        raise
    if old_image_url and old_image_url != url:
        _remove_image_quietly(old_image_url)
    return {"ok": True, "product_id": p.id, "image_url": url}


def delete_product(*, product_id: int) -> None:
    """
    Delete a product and its inventory rows; its image is removed best-effort.

    Raises:
        NotFoundError: product does not exist
    """
    p = get_product(product_id)
    image_url = p.image_url

    db.session.delete(p)
    db.session.commit()
    logger.info("Deleted product id=%s", product_id)

    _remove_image_quietly(image_url)


def low_stock_products(location_id: int | None = None) -> list[dict]:
    """
    Products at or below their reorder threshold.

    The threshold is the product's stock_minimum, or LOW_STOCK_THRESHOLD when
    the product has none set.
    """
    if location_id is not None:
        _require_location(location_id)
    default_threshold = current_app.config.get("LOW_STOCK_THRESHOLD", 10)
    stock = stock_by_product(location_id)

    rows = []
    for p in db.session.query(Product).order_by(Product.name.asc(), Product.id.asc()).all():
        on_hand = stock.get(p.id, 0)
        threshold = p.stock_minimum if p.stock_minimum else default_threshold
        if on_hand <= threshold:
            data = p.to_dict(stock=on_hand)
            data["threshold"] = threshold
            rows.append(data)
    return rows
