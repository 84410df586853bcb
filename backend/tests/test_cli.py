# Overview: Pytest coverage for the Flask CLI groups.

from decimal import Decimal

from retailpos.services import inventory_service, location_service, pricing_service


def test_system_init_seeds_locations(app, db_session):
    result = app.test_cli_runner().invoke(args=["system", "init"])
    assert result.exit_code == 0, result.output
    assert [loc.name for loc in location_service.list_locations()] == [
        "Almacén Principal", "Tienda Centro", "Tienda Norte",
    ]


def test_seed_catalog_and_reprice(app, db_session, locations):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["system", "seed-catalog"])
    assert result.exit_code == 0, result.output
    assert "Cafetera Espresso" in result.output

    result = runner.invoke(args=["rates", "set", "USD", "CUP", "120", "--recalc"])
    assert result.exit_code == 0, result.output
    assert pricing_service.get_rate("USD", "CUP") == Decimal("120")
    assert "Repriced 2 sale prices" in result.output

    # Seeding again skips existing names
    result = runner.invoke(args=["system", "seed-catalog"])
    assert "already exists" in result.output


def test_transfer_reports_errors(app, db_session, locations, product_factory):
    product = product_factory(location=locations["warehouse"], stock=2)
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "inventory", "transfer", "--product-id", str(product.id),
        "--from", str(locations["warehouse"].id), "--to", str(locations["centro"].id), "--qty", "5",
    ])
    assert result.exit_code != 0
    assert "Insufficient stock" in result.output
    assert inventory_service.get_stock(product.id, locations["warehouse"].id) == 2


def test_invalid_rate_is_a_click_error(app, db_session):
    result = app.test_cli_runner().invoke(args=["rates", "set", "USD", "CUP", "0"])
    assert result.exit_code != 0
