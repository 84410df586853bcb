# Overview: Pytest coverage for the JSON API through the Flask test client.

import pytest


@pytest.fixture
def stocked(db_session, locations, product_factory):
    """Two CUP products stocked at Tienda Centro."""
    store = locations["centro"]
    return {
        "store": store,
        "arroz": product_factory(name="Arroz", price_cents=500, location=store, stock=5),
        "aceite": product_factory(name="Aceite", price_cents=300, location=store, stock=1),
    }


class TestSystem:
    def test_health(self, client, db_session):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json["checks"]["database"]["status"] == "healthy"


class TestAdminSecret:
    def test_missing_header_is_unauthorized(self, client, db_session):
        response = client.post("/api/products", json={"name": "X", "sale_price_amount_cents": 100})
        assert response.status_code == 401

    def test_unconfigured_secret_is_unavailable(self, app, client, db_session, monkeypatch, admin_headers):
        monkeypatch.setitem(app.config, "ADMIN_SECRET", None)
        response = client.post(
            "/api/products", json={"name": "X", "sale_price_amount_cents": 100}, headers=admin_headers
        )
        assert response.status_code == 503
        assert "error" in response.json


class TestProducts:
    def test_create_and_fetch(self, client, locations, admin_headers):
        response = client.post(
            "/api/products",
            json={
                "name": "Cafetera",
                "sale_price_amount_cents": 4500,
                "location_id": locations["warehouse"].id,
                "initial_stock": 7,
            },
            headers=admin_headers,
        )
        assert response.status_code == 201
        product_id = response.json["id"]

        response = client.get(f"/api/products/{product_id}")
        assert response.status_code == 200
        assert response.json["stock"] == 7
        assert response.json["inventory"][0]["location_id"] == locations["warehouse"].id

    def test_create_rejects_unknown_field(self, client, db_session, admin_headers):
        response = client.post(
            "/api/products",
            json={"name": "X", "sale_price_amount_cents": 100, "sale_price_cents": 1},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert "not allowed" in response.json["error"]

    def test_create_rejects_float_price(self, client, db_session, admin_headers):
        response = client.post(
            "/api/products", json={"name": "X", "sale_price_amount_cents": 1.5}, headers=admin_headers
        )
        assert response.status_code == 400

    def test_unknown_product(self, client, db_session):
        response = client.get("/api/products/9999")
        assert response.status_code == 404

    def test_list_by_location(self, client, stocked):
        response = client.get(f"/api/products?location_id={stocked['store'].id}")
        assert response.status_code == 200
        assert {item["name"]: item["stock"] for item in response.json["items"]} == {"Aceite": 1, "Arroz": 5}

    def test_low_stock(self, client, stocked):
        response = client.get("/api/products/low-stock")
        assert [item["name"] for item in response.json["items"]] == ["Aceite", "Arroz"]

    def test_update_and_delete(self, client, stocked, admin_headers):
        product_id = stocked["arroz"].id
        response = client.put(f"/api/products/{product_id}", json={"name": "Arroz Basmati"}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json["name"] == "Arroz Basmati"

        response = client.delete(f"/api/products/{product_id}", headers=admin_headers)
        assert response.status_code == 200
        assert client.get(f"/api/products/{product_id}").status_code == 404


class TestInventory:
    def test_transfer_round_trip(self, client, stocked, locations):
        product_id = stocked["arroz"].id
        a, b = stocked["store"].id, locations["norte"].id

        response = client.post("/api/inventory/transfers", json={
            "product_id": product_id, "from_location_id": a, "to_location_id": b, "quantity": 3,
        })
        assert response.status_code == 200
        assert (response.json["from_stock"], response.json["to_stock"]) == (2, 3)

        response = client.post("/api/inventory/transfers", json={
            "product_id": product_id, "from_location_id": b, "to_location_id": a, "quantity": 3,
        })
        assert (response.json["from_stock"], response.json["to_stock"]) == (0, 5)

    def test_transfer_insufficient(self, client, stocked, locations):
        response = client.post("/api/inventory/transfers", json={
            "product_id": stocked["aceite"].id,
            "from_location_id": stocked["store"].id,
            "to_location_id": locations["norte"].id,
            "quantity": 2,
        })
        assert response.status_code == 409
        assert response.json["details"]["on_hand"] == 1

    def test_transfer_same_location(self, client, stocked):
        store_id = stocked["store"].id
        response = client.post("/api/inventory/transfers", json={
            "product_id": stocked["arroz"].id, "from_location_id": store_id, "to_location_id": store_id, "quantity": 1,
        })
        assert response.status_code == 400

    def test_set_stock(self, client, stocked, admin_headers):
        url = f"/api/inventory/{stocked['arroz'].id}/{stocked['store'].id}"
        response = client.put(url, json={"stock": 9}, headers=admin_headers)
        assert response.status_code == 200
        assert client.get(url).json["stock"] == 9


class TestCheckout:
    def test_checkout_creates_sale(self, client, stocked):
        response = client.post("/api/sales/checkout", json={
            "location_id": stocked["store"].id,
            "items": [
                {"product_id": stocked["arroz"].id, "quantity": 2},
                {"product_id": stocked["aceite"].id, "quantity": 1},
            ],
        })
        assert response.status_code == 201
        assert response.json["total_cents"] == 1300
        assert [item["quantity"] for item in response.json["items"]] == [2, 1]

        stock = client.get(f"/api/inventory/{stocked['arroz'].id}/{stocked['store'].id}").json["stock"]
        assert stock == 3

        listing = client.get("/api/sales").json
        assert listing["count"] == 1
        assert client.get(f"/api/sales/{response.json['id']}").status_code == 200

    def test_checkout_short_stock_writes_nothing(self, client, stocked):
        response = client.post("/api/sales/checkout", json={
            "location_id": stocked["store"].id,
            "items": [
                {"product_id": stocked["arroz"].id, "quantity": 2},
                {"product_id": stocked["aceite"].id, "quantity": 2},
            ],
        })
        assert response.status_code == 409
        assert response.json["details"]["items"][0]["product_id"] == stocked["aceite"].id
        assert client.get("/api/sales").json["count"] == 0
        stock = client.get(f"/api/inventory/{stocked['arroz'].id}/{stocked['store'].id}").json["stock"]
        assert stock == 5

    def test_checkout_empty_cart(self, client, stocked):
        response = client.post("/api/sales/checkout", json={"location_id": stocked["store"].id, "items": []})
        assert response.status_code == 400

    def test_checkout_retry_with_reference(self, client, stocked):
        body = {
            "location_id": stocked["store"].id,
            "items": [{"product_id": stocked["arroz"].id, "quantity": 1}],
            "client_reference": "till-2-0042",
        }
        first = client.post("/api/sales/checkout", json=body)
        second = client.post("/api/sales/checkout", json=body)
        assert first.json["id"] == second.json["id"]
        assert client.get("/api/sales").json["count"] == 1

    def test_retry_after_last_units_returns_same_sale(self, client, stocked):
        body = {
            "location_id": stocked["store"].id,
            "items": [{"product_id": stocked["aceite"].id, "quantity": 1}],
            "client_reference": "till-9",
        }
        first = client.post("/api/sales/checkout", json=body)
        assert first.status_code == 201

        second = client.post("/api/sales/checkout", json=body)
        assert second.status_code == 200
        assert second.json["id"] == first.json["id"]
        stock = client.get(f"/api/inventory/{stocked['aceite'].id}/{stocked['store'].id}").json["stock"]
        assert stock == 0

    def test_retry_after_product_deleted_returns_same_sale(self, client, stocked, admin_headers):
        body = {
            "location_id": stocked["store"].id,
            "items": [{"product_id": stocked["arroz"].id, "quantity": 2}],
            "client_reference": "till-9-0007",
        }
        first = client.post("/api/sales/checkout", json=body)
        assert client.delete(f"/api/products/{stocked['arroz'].id}", headers=admin_headers).status_code == 200

        second = client.post("/api/sales/checkout", json=body)
        assert second.status_code == 200
        assert second.json["id"] == first.json["id"]
        assert second.json["items"][0]["name"] == "Arroz"


class TestExchangeRates:
    def test_set_rate_and_recalculate(self, client, db_session, product_factory, admin_headers):
        product = product_factory(name="Cafetera", price_cents=500, currency="USD")

        response = client.post(
            "/api/exchange-rates",
            json={"currency_from": "USD", "currency_to": "CUP", "rate": 120, "recalculate": True},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json["recalculation"]["updated_sale_products"] == 1
        assert client.get(f"/api/products/{product.id}").json["sale_price_cents"] == 60000

        history = client.get("/api/exchange-rates/USD/CUP/history").json
        assert history["count"] == 1
        assert history["items"][0]["changed_by"] == "tester"

    def test_rate_not_found(self, client, db_session):
        assert client.get("/api/exchange-rates/USD/CUP").status_code == 404

    def test_invalid_rate(self, client, db_session, admin_headers):
        response = client.post("/api/exchange-rates", json={"rate": 0}, headers=admin_headers)
        assert response.status_code == 400

    @pytest.mark.parametrize("body", [
        {"currency_from": 5, "rate": 120},
        {"currency_to": ["CUP"], "rate": 120},
    ])
    def test_non_string_currency_is_rejected(self, client, db_session, admin_headers, body):
        response = client.post("/api/exchange-rates", json=body, headers=admin_headers)
        assert response.status_code == 400

    def test_non_string_changed_by_is_stored_as_text(self, client, db_session, admin_headers):
        response = client.post(
            "/api/exchange-rates", json={"rate": 120, "changed_by": 7}, headers=admin_headers,
        )
        assert response.status_code == 200
        history = client.get("/api/exchange-rates/USD/CUP/history").json
        assert history["items"][0]["changed_by"] == "7"

    def test_recalculate_with_non_string_currency(self, client, db_session, admin_headers):
        response = client.post(
            "/api/exchange-rates/recalculate", json={"currency_from": 5}, headers=admin_headers,
        )
        assert response.status_code == 400

    def test_recalculate_requires_stored_rate(self, client, db_session, admin_headers):
        response = client.post("/api/exchange-rates/recalculate", json={}, headers=admin_headers)
        assert response.status_code == 400


class TestReports:
    def test_dashboard_and_series(self, client, stocked):
        client.post("/api/sales/checkout", json={
            "location_id": stocked["store"].id,
            "items": [{"product_id": stocked["arroz"].id, "quantity": 2}],
        })

        dashboard = client.get("/api/reports/dashboard").json
        assert dashboard["total_revenue_cents"] == 1000
        assert dashboard["units_sold"] == 2

        series = client.get("/api/reports/revenue-by-day?days=7").json
        assert [row["total_cents"] for row in series["items"]] == [1000]

        top = client.get("/api/reports/top-products?limit=1").json
        assert top["items"] == [{"name": "Arroz", "quantity": 2}]

    def test_invalid_window(self, client, db_session):
        assert client.get("/api/reports/revenue-by-day?days=0").status_code == 400


class TestLocations:
    def test_list_and_create(self, client, locations, admin_headers):
        assert client.get("/api/locations").json["count"] == 3

        response = client.post("/api/locations", json={"name": "Tienda Sur"}, headers=admin_headers)
        assert response.status_code == 201
        assert response.json["type"] == "STORE"

        duplicate = client.post("/api/locations", json={"name": "Tienda Sur"}, headers=admin_headers)
        assert duplicate.status_code == 409
