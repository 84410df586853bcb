# Overview: Pytest coverage for report reducers and the dashboard summary.

import pytest

from retailpos.services import reporting_service, sales_service
from retailpos.services.reporting_service import ReportError


def _sale(created_at, total_cents, items=()):
    return {
        "created_at": created_at,
        "total_cents": total_cents,
        "items": [{"name": name, "quantity": qty} for name, qty in items],
    }


class TestReducers:
    def test_revenue_by_day_groups_chronologically(self):
        sales = [
            _sale("2024-01-02T09:00:00Z", 7),
            _sale("2024-01-01T10:00:00Z", 10),
            _sale("2024-01-01T18:30:00Z", 5),
        ]
        assert reporting_service.revenue_by_day(sales) == [
            {"date": "2024-01-01", "total_cents": 15},
            {"date": "2024-01-02", "total_cents": 7},
        ]

    def test_revenue_by_day_accepts_plain_dates(self):
        sales = [_sale("2024-01-01", 10), _sale("2024-01-01", 5), _sale("2024-01-02", 7)]
        assert reporting_service.revenue_by_day(sales) == [
            {"date": "2024-01-01", "total_cents": 15},
            {"date": "2024-01-02", "total_cents": 7},
        ]

    def test_revenue_by_day_keeps_most_recent_days(self):
        sales = [_sale(f"2024-01-{day:02d}", day) for day in range(1, 11)]
        rows = reporting_service.revenue_by_day(sales, window_days=3)
        assert [row["date"] for row in rows] == ["2024-01-08", "2024-01-09", "2024-01-10"]

    def test_revenue_by_day_rejects_empty_window(self):
        with pytest.raises(ReportError):
            reporting_service.revenue_by_day([], window_days=0)

    def test_totals(self):
        sales = [
            _sale("2024-01-01", 1300, [("Arroz", 2), ("Aceite", 1)]),
            _sale("2024-01-02", 500, [("Arroz", 1)]),
        ]
        assert reporting_service.total_revenue(sales) == 1800
        assert reporting_service.sales_count(sales) == 2
        assert reporting_service.units_sold(sales) == 4
        assert reporting_service.total_revenue([]) == 0

    def test_inventory_total(self):
        assert reporting_service.inventory_total([{"stock": 3}, {"stock": 0}, {"stock": 9}]) == 12

    def test_top_products_ties_keep_first_seen_order(self):
        sales = [
            _sale("2024-01-01", 0, [("Cafetera", 1), ("Arroz", 3)]),
            _sale("2024-01-02", 0, [("Aceite", 3), ("Cafetera", 1)]),
        ]
        assert reporting_service.top_products(sales, n=2) == [
            {"name": "Arroz", "quantity": 3},
            {"name": "Aceite", "quantity": 3},
        ]
        assert reporting_service.top_products(sales, n=5)[-1] == {"name": "Cafetera", "quantity": 2}

    def test_top_products_rejects_non_positive_n(self):
        with pytest.raises(ReportError):
            reporting_service.top_products([], n=0)


class TestDashboard:
    def test_dashboard_summary(self, app, db_session, locations, product_factory):
        store = locations["centro"]
        arroz = product_factory(name="Arroz", price_cents=500, location=store, stock=20)
        aceite = product_factory(name="Aceite", price_cents=300, location=store, stock=3, stock_minimum=5)

        sales_service.checkout(store.id, [
            {"product_id": arroz.id, "name": "Arroz", "unit_price_cents": 500, "quantity": 2},
            {"product_id": aceite.id, "name": "Aceite", "unit_price_cents": 300, "quantity": 1},
        ])

        summary = reporting_service.dashboard_summary(location_id=store.id)

        assert summary["total_revenue_cents"] == 1300
        assert summary["sales_count"] == 1
        assert summary["units_sold"] == 3
        assert summary["inventory_total"] == 18 + 2
        assert summary["product_count"] == 2
        assert summary["low_stock_count"] == 1
        assert summary["top_products"][0] == {"name": "Arroz", "quantity": 2}
        assert len(summary["revenue_by_day"]) == 1
        assert summary["revenue_by_day"][0]["total_cents"] == 1300
        assert len(summary["recent_sales"]) == 1
