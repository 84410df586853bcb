from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


LOCATION_TYPES = ("WAREHOUSE", "STORE")


class Location(db.Model):
    """A warehouse or storefront holding its own stock counts."""
    __tablename__ = "locations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    type = db.Column(db.String(16), nullable=False, default="STORE")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    inventory_items = db.relationship(
        "InventoryItem",
        back_populates="location",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def __repr__(self) -> str:
        return f"<Location id={self.id} name={self.name!r} type={self.type}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Catalog entry.

    PRICING:
    - sale/cost prices are canonical as (amount_cents, currency).
    - sale_price_cents / cost_price_cents are the legacy single-currency
      projection in the base currency. They are derived by the pricing
      service and never written directly by product edits.
    - *_rate_applied records the exchange rate used for the last derivation.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("sale_price_amount_cents >= 0", name="ck_products_sale_amount_nonneg"),
        db.CheckConstraint("cost_price_amount_cents >= 0", name="ck_products_cost_amount_nonneg"),
        db.CheckConstraint("stock_minimum >= 0", name="ck_products_stock_minimum_nonneg"),
        db.Index("ix_products_name", "name"),
        db.Index("ix_products_sale_currency", "sale_price_currency"),
        db.Index("ix_products_cost_currency", "cost_price_currency"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(64), nullable=False, default="Otros")
    unit_of_measure = db.Column(db.String(32), nullable=False, default="unit")

    sale_price_amount_cents = db.Column(db.Integer, nullable=False)
    sale_price_currency = db.Column(db.String(3), nullable=False, default="CUP")
    cost_price_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    cost_price_currency = db.Column(db.String(3), nullable=False, default="CUP")

    # Legacy projection (base currency)
    sale_price_cents = db.Column(db.Integer, nullable=True, index=True)
    cost_price_cents = db.Column(db.Integer, nullable=True)
    sale_price_rate_applied = db.Column(db.Numeric(18, 6), nullable=True)
    cost_price_rate_applied = db.Column(db.Numeric(18, 6), nullable=True)
    last_recalculated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    stock_minimum = db.Column(db.Integer, nullable=False, default=0)
    image_url = db.Column(db.String(512), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    inventory_items = db.relationship(
        "InventoryItem",
        back_populates="product",
        cascade="all, delete-orphan",
        lazy=True,
    )
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r}>"

    def to_dict(self, stock: int | None = None) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "unit_of_measure": self.unit_of_measure,
            "sale_price_amount_cents": self.sale_price_amount_cents,
            "sale_price_currency": self.sale_price_currency,
            "cost_price_amount_cents": self.cost_price_amount_cents,
            "cost_price_currency": self.cost_price_currency,
            "sale_price_cents": self.sale_price_cents,
            "cost_price_cents": self.cost_price_cents,
            "sale_price_rate_applied": _rate_str(self.sale_price_rate_applied),
            "cost_price_rate_applied": _rate_str(self.cost_price_rate_applied),
            "last_recalculated_at": to_utc_z(self.last_recalculated_at),
            "stock_minimum": self.stock_minimum,
            "image_url": self.image_url,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if stock is not None:
            data["stock"] = stock
        return data


class InventoryItem(db.Model):
    """Stock count for one product at one location. Missing row means zero."""
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_inventory_items_stock_nonneg"),
    )

    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="CASCADE"),
        primary_key=True,
    )
    location_id = db.Column(
        db.Integer,
        db.ForeignKey("locations.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    stock = db.Column(db.Integer, nullable=False, default=0)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    product = db.relationship("Product", back_populates="inventory_items")
    location = db.relationship("Location", back_populates="inventory_items")

    def __repr__(self) -> str:
        return f"<InventoryItem product_id={self.product_id} location_id={self.location_id} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "location_id": self.location_id,
            "stock": self.stock,
            "updated_at": to_utc_z(self.updated_at),
        }


def _rate_str(value) -> str | None:
    return None if value is None else str(value)
