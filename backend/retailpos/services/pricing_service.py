# Overview: Dual-currency pricing: exchange rates and the legacy base-currency projection.

# backend/retailpos/services/pricing_service.py
"""
Pricing rules (authoritative)

- Canonical prices are (amount_cents, currency) pairs on Product.
- The legacy sale_price_cents / cost_price_cents columns hold the same price
  expressed in the base currency (BASE_CURRENCY, default CUP). They exist so
  the catalog can be sorted and filtered in one currency.
- Conversion: base-currency amounts pass through unchanged; any other
  currency is multiplied by the stored rate (currency -> base) and rounded
  half-up to whole cents at the point of storage.
- Recalculation is a pure function of (amount, currency, rate), so running it
  twice with the same rate stores the same values.
- Rate changes append an ExchangeRateHistory row carrying the previous rate
  in the same DB transaction as the upsert.
"""
from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from flask import current_app, has_app_context

from ..errors import ValidationError
from ..extensions import db
from ..models import ExchangeRate, ExchangeRateHistory, Product
from ..time_utils import to_utc_z, utcnow
from ..validation import coerce_rate, normalize_currency
from .concurrency import lock_for_update, run_with_retry

logger = logging.getLogger(__name__)

WHOLE_CENT = Decimal("1")


def base_currency() -> str:
    if has_app_context():
        return current_app.config.get("BASE_CURRENCY", "CUP")
    return "CUP"


def _positive_rate(value) -> Decimal:
    rate = coerce_rate(value)
    if rate <= 0:
        raise ValidationError("rate must be > 0")
    return rate


def to_display_currency(amount_cents: int, currency: str, rate) -> int | None:
    """
    Express an amount in the base currency.

    Returns None when the amount is in a foreign currency and no rate is
    known yet (the price is unresolved, not zero).
    """
    code = normalize_currency("currency", currency)
    if code == base_currency():
        return int(amount_cents)
    if rate is None:
        return None
    rate = _positive_rate(rate)
    converted = (Decimal(int(amount_cents)) * rate).quantize(WHOLE_CENT, rounding=ROUND_HALF_UP)
    return int(converted)


def get_rate(currency_from: str, currency_to: str) -> Decimal | None:
    row = db.session.query(ExchangeRate).filter_by(
        currency_from=currency_from.upper(),
        currency_to=currency_to.upper(),
    ).first()
    return Decimal(row.rate) if row is not None else None


def get_exchange_rate(currency_from: str, currency_to: str) -> ExchangeRate | None:
    return db.session.query(ExchangeRate).filter_by(
        currency_from=currency_from.upper(),
        currency_to=currency_to.upper(),
    ).first()


def derive_legacy_prices(product: Product) -> None:
    """Recompute a product's legacy base-currency prices from the stored rates."""
    base = base_currency()
    now = utcnow()

    sale_rate = None if product.sale_price_currency == base else get_rate(product.sale_price_currency, base)
    product.sale_price_cents = to_display_currency(
        product.sale_price_amount_cents, product.sale_price_currency, sale_rate
    )
    product.sale_price_rate_applied = sale_rate

    cost_rate = None if product.cost_price_currency == base else get_rate(product.cost_price_currency, base)
    product.cost_price_cents = to_display_currency(
        product.cost_price_amount_cents or 0, product.cost_price_currency, cost_rate
    )
    product.cost_price_rate_applied = cost_rate
    product.last_recalculated_at = now


def update_exchange_rate(
    currency_from: str,
    currency_to: str,
    new_rate,
    *,
    changed_by: str = "admin",
) -> ExchangeRate:
    """
    Set the rate for a currency pair, recording the prior rate to history.

    Privileged: callers must be authorised to trigger bulk repricing.
    Does not reprice products; see recalc_all_prices.
    """
    currency_from = normalize_currency("currency_from", currency_from)
    currency_to = normalize_currency("currency_to", currency_to)
    if currency_from == currency_to:
        raise ValidationError("currency_from and currency_to must differ")
    rate = _positive_rate(new_rate)
    changed_by = str(changed_by or "admin").strip()[:120] or "admin"

    def _op():
        existing = lock_for_update(
            db.session.query(ExchangeRate).filter_by(
                currency_from=currency_from,
                currency_to=currency_to,
            )
        ).first()

        old_rate = Decimal(existing.rate) if existing is not None else None
        db.session.add(ExchangeRateHistory(
            currency_from=currency_from,
            currency_to=currency_to,
            old_rate=old_rate,
            new_rate=rate,
            changed_by=changed_by,
        ))

        if existing is None:
            existing = ExchangeRate(currency_from=currency_from, currency_to=currency_to, rate=rate)
            db.session.add(existing)
        else:
            existing.rate = rate
            existing.updated_at = utcnow()

        db.session.commit()
        logger.info(
            "Exchange rate %s->%s changed from %s to %s by %s",
            currency_from, currency_to, old_rate, rate, changed_by,
        )
        return existing

    return run_with_retry(_op)


def recalc_all_prices(currency_from: str, currency_to: str, rate=None) -> dict:
    """
    Recompute the legacy price of every product priced in `currency_from`.

    `rate` defaults to the stored rate for the pair. Idempotent and safe to
    retry. Returns counts of products touched per price column.
    """
    currency_from = normalize_currency("currency_from", currency_from)
    currency_to = normalize_currency("currency_to", currency_to)
    if currency_to != base_currency():
        raise ValidationError(f"currency_to must be the base currency {base_currency()}")
    if currency_from == currency_to:
        raise ValidationError("currency_from and currency_to must differ")

    if rate is None:
        rate = get_rate(currency_from, currency_to)
        if rate is None:
            raise ValidationError(f"No exchange rate stored for {currency_from}->{currency_to}")
    rate = _positive_rate(rate)

    def _op():
        now = utcnow()

        sale_products = lock_for_update(
            db.session.query(Product).filter(Product.sale_price_currency == currency_from)
        ).order_by(Product.id.asc()).all()
        for product in sale_products:
            product.sale_price_cents = to_display_currency(
                product.sale_price_amount_cents, currency_from, rate
            )
            product.sale_price_rate_applied = rate
            product.last_recalculated_at = now

        cost_products = lock_for_update(
            db.session.query(Product).filter(Product.cost_price_currency == currency_from)
        ).order_by(Product.id.asc()).all()
        for product in cost_products:
            product.cost_price_cents = to_display_currency(
                product.cost_price_amount_cents or 0, currency_from, rate
            )
            product.cost_price_rate_applied = rate
            product.last_recalculated_at = now

        db.session.commit()
        logger.info(
            "Recalculated %s->%s prices at rate %s: sale=%s cost=%s",
            currency_from, currency_to, rate, len(sale_products), len(cost_products),
        )
        return {
            "ok": True,
            "currency_from": currency_from,
            "currency_to": currency_to,
            "rate": str(rate),
            "updated_sale_products": len(sale_products),
            "updated_cost_products": len(cost_products),
            "timestamp": to_utc_z(now),
        }

    return run_with_retry(_op)


def list_rate_history(currency_from: str, currency_to: str, limit: int = 50) -> list[ExchangeRateHistory]:
    limit = max(1, min(int(limit or 50), 500))
    return (
        db.session.query(ExchangeRateHistory)
        .filter_by(currency_from=currency_from.upper(), currency_to=currency_to.upper())
        .order_by(ExchangeRateHistory.created_at.desc(), ExchangeRateHistory.id.desc())
        .limit(limit)
        .all()
    )
