from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Sale(db.Model):
    """
    Completed sale. Append-only: rows are never updated or deleted by
    normal flow.

    Lines are snapshots (name, unit price, quantity copied at checkout) so
    later catalog edits or product deletion never change historical totals.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_created_id", "created_at", "id"),
        db.Index("ix_sales_location_created", "location_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)

    # Idempotency key supplied by the client for one checkout attempt
    client_reference = db.Column(db.String(64), nullable=True, unique=True)

    lines = db.relationship(
        "SaleLine",
        back_populates="sale",
        order_by="SaleLine.line_number",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Sale id={self.id} location_id={self.location_id} total_cents={self.total_cents}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "created_at": to_utc_z(self.created_at),
            "location_id": self.location_id,
            "total_cents": self.total_cents,
            "client_reference": self.client_reference,
            "items": [line.to_dict() for line in self.lines],
        }


class SaleLine(db.Model):
    """Line snapshot on a sale."""
    __tablename__ = "sale_lines"
    __table_args__ = (
        db.UniqueConstraint("sale_id", "line_number", name="uq_sale_lines_sale_line"),
        db.CheckConstraint("quantity > 0", name="ck_sale_lines_quantity_pos"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    line_number = db.Column(db.Integer, nullable=False)

    # Not a foreign key: the product may be deleted later
    product_id = db.Column(db.Integer, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    sale = db.relationship("Sale", back_populates="lines")

    def to_dict(self) -> dict:
        return {
            "line_number": self.line_number,
            "product_id": self.product_id,
            "name": self.name,
            "unit_price_cents": self.unit_price_cents,
            "quantity": self.quantity,
            "line_total_cents": self.line_total_cents,
        }
