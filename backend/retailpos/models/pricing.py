from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class ExchangeRate(db.Model):
    """Current rate for one currency pair: 1 unit of currency_from = rate currency_to."""
    __tablename__ = "exchange_rates"
    __table_args__ = (
        db.UniqueConstraint("currency_from", "currency_to", name="uq_exchange_rates_pair"),
        db.CheckConstraint("rate > 0", name="ck_exchange_rates_rate_pos"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    currency_from = db.Column(db.String(3), nullable=False)
    currency_to = db.Column(db.String(3), nullable=False)
    rate = db.Column(db.Numeric(18, 6), nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "currency_from": self.currency_from,
            "currency_to": self.currency_to,
            "rate": str(self.rate),
            "updated_at": to_utc_z(self.updated_at),
        }


class ExchangeRateHistory(db.Model):
    """Append-only log of rate changes."""
    __tablename__ = "exchange_rates_history"
    __table_args__ = (
        db.Index("ix_rate_history_pair_created", "currency_from", "currency_to", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    currency_from = db.Column(db.String(3), nullable=False)
    currency_to = db.Column(db.String(3), nullable=False)
    old_rate = db.Column(db.Numeric(18, 6), nullable=True)
    new_rate = db.Column(db.Numeric(18, 6), nullable=False)
    changed_by = db.Column(db.String(120), nullable=False, default="admin")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "currency_from": self.currency_from,
            "currency_to": self.currency_to,
            "old_rate": None if self.old_rate is None else str(self.old_rate),
            "new_rate": str(self.new_rate),
            "changed_by": self.changed_by,
            "created_at": to_utc_z(self.created_at),
        }
