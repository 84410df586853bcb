# Overview: Flask API routes for exchange rates and legacy price recalculation.

from flask import Blueprint, g, request

from ..decorators import require_admin_secret
from ..errors import NotFoundError
from ..services import pricing_service

exchange_rates_bp = Blueprint("exchange_rates", __name__, url_prefix="/api/exchange-rates")


@exchange_rates_bp.get("/<currency_from>/<currency_to>")
def get_rate(currency_from: str, currency_to: str):
    row = pricing_service.get_exchange_rate(currency_from, currency_to)
    if row is None:
        raise NotFoundError(f"No exchange rate for {currency_from.upper()}->{currency_to.upper()}")
    return row.to_dict()


@exchange_rates_bp.get("/<currency_from>/<currency_to>/history")
def rate_history(currency_from: str, currency_to: str):
    rows = pricing_service.list_rate_history(
        currency_from, currency_to, limit=request.args.get("limit", 50, type=int)
    )
    return {"items": [row.to_dict() for row in rows], "count": len(rows)}


@exchange_rates_bp.post("")
@require_admin_secret
def update_rate():
    """
    Set the rate for a currency pair.

    Request body:
    {
        "currency_from": str (default "USD"),
        "currency_to": str (default "CUP"),
        "rate": number > 0,
        "changed_by": str (optional),
        "recalculate": bool (optional) - also reprice products
    }
    """
    data = request.get_json(silent=True) or {}
    row = pricing_service.update_exchange_rate(
        data.get("currency_from") or "USD",
        data.get("currency_to") or "CUP",
        data.get("rate"),
        changed_by=data.get("changed_by") or g.changed_by,
    )
    result = {"ok": True, **row.to_dict()}
    if data.get("recalculate"):
        result["recalculation"] = pricing_service.recalc_all_prices(
            row.currency_from, row.currency_to, rate=row.rate
        )
    return result, 200


@exchange_rates_bp.post("/recalculate")
@require_admin_secret
def recalculate_prices():
    """
    Recompute legacy base-currency prices.

    Request body: {"currency_from": "USD", "currency_to": "CUP", "rate": optional}
    When rate is omitted the stored rate for the pair is used.
    """
    data = request.get_json(silent=True) or {}
    result = pricing_service.recalc_all_prices(
        data.get("currency_from") or "USD",
        data.get("currency_to") or "CUP",
        rate=data.get("rate"),
    )
    return result, 200
