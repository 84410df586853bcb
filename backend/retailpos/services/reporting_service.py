# Overview: Dashboard and report aggregation over already-fetched sales and inventory.

from __future__ import annotations

from typing import Iterable, Mapping

from flask import current_app

from ..time_utils import calendar_date
from .catalog_service import list_products, low_stock_products
from .sales_service import list_sales


class ReportError(Exception):
    """Raised when report parameters are invalid."""
    pass


# Pure reducers. Each takes plain dicts (Sale.to_dict() / inventory rows)
# and performs no I/O.

def total_revenue(sales: Iterable[Mapping]) -> int:
    return sum(int(sale["total_cents"]) for sale in sales)


def sales_count(sales: Iterable[Mapping]) -> int:
    return sum(1 for _ in sales)


def units_sold(sales: Iterable[Mapping]) -> int:
    return sum(int(item["quantity"]) for sale in sales for item in sale.get("items", []))


def inventory_total(items: Iterable[Mapping]) -> int:
    return sum(int(item.get("stock") or 0) for item in items)


def revenue_by_day(sales: Iterable[Mapping], window_days: int = 7) -> list[dict]:
    """
    Revenue per calendar date (UTC) of created_at.

    Returns the most recent `window_days` dates that have sales, oldest
    first. Presentation formatting of the date is left to the caller.
    """
    if window_days <= 0:
        raise ReportError("window_days must be > 0")

    totals: dict = {}
    for sale in sales:
        day = calendar_date(sale["created_at"])
        totals[day] = totals.get(day, 0) + int(sale["total_cents"])

    days = sorted(totals)[-window_days:]
    return [{"date": day.isoformat(), "total_cents": totals[day]} for day in days]


def top_products(sales: Iterable[Mapping], n: int = 5) -> list[dict]:
    """
    Quantity sold per product name, highest first.

    Ties keep the order in which the names were first encountered.
    """
    if n <= 0:
        raise ReportError("n must be > 0")

    quantities: dict[str, int] = {}
    for sale in sales:
        for item in sale.get("items", []):
            quantities[item["name"]] = quantities.get(item["name"], 0) + int(item["quantity"])

    # sorted() is stable, so equal quantities stay in first-seen order
    ranked = sorted(quantities.items(), key=lambda pair: pair[1], reverse=True)
    return [{"name": name, "quantity": qty} for name, qty in ranked[:n]]


def recent_sales(sales: Iterable[Mapping], n: int = 5) -> list[Mapping]:
    """First n sales of a newest-first sequence."""
    return list(sales)[:n]


def dashboard_summary(*, location_id: int | None = None, window_days: int | None = None, top_n: int = 5) -> dict:
    """Fetch sales and inventory, then apply the reducers above."""
    if window_days is None:
        window_days = current_app.config.get("DASHBOARD_WINDOW_DAYS", 7)

    sales = [sale.to_dict() for sale in list_sales(location_id=location_id, order="desc")]
    products = list_products(location_id=location_id)["items"]

    return {
        "location_id": location_id,
        "total_revenue_cents": total_revenue(sales),
        "sales_count": sales_count(sales),
        "units_sold": units_sold(sales),
        "inventory_total": inventory_total(products),
        "product_count": len(products),
        "low_stock_count": len(low_stock_products(location_id=location_id)),
        "revenue_by_day": revenue_by_day(sales, window_days),
        "top_products": top_products(sales, top_n),
        "recent_sales": recent_sales(sales, 5),
    }
