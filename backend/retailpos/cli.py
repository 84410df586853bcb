# Overview: Flask CLI command groups for bootstrap, repricing and stock moves.

# backend/retailpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init
#   Create tables and the default warehouse and stores (idempotent).
# - python -m flask system seed-catalog --location-id 1
#   Add a small demo catalog stocked at one location.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Exchange rates:
# - python -m flask rates set USD CUP 120 [--recalc] [--changed-by ops]
#   Set a rate (history is recorded); --recalc also reprices products.
# - python -m flask rates history USD CUP --limit 20
#
# Pricing:
# - python -m flask prices recalc USD CUP [--rate 120]
#   Recompute legacy base-currency prices (idempotent).
#
# Inventory:
# - python -m flask inventory list [--location-id 2]
# - python -m flask inventory transfer --product-id 1 --from 1 --to 2 --qty 5

import click
from flask.cli import with_appcontext

from .errors import PosError
from .extensions import db
from .models import Product
from .services import catalog_service, inventory_service, location_service, pricing_service


DEMO_CATALOG = (
    # name, category, sale amount, sale currency, cost amount, cost currency, stock
    ("Refrigerador Inteligente", "Electrodomésticos", 45000, "USD", 38000, "USD", 5),
    ("Cafetera Espresso", "Electrodomésticos", 12000, "USD", 9000, "USD", 8),
    ("Aceite de Oliva 1L", "Alimentos", 95000, "CUP", 70000, "CUP", 40),
    ("Arroz Basmati 5kg", "Alimentos", 180000, "CUP", 150000, "CUP", 25),
)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create tables and the default locations."""
    click.echo("START Initializing database...")
    db.create_all()

    locations = location_service.seed_default_locations()
    for location in locations:
        click.echo(f"PASS Location: {location.name} ({location.type}, ID: {location.id})")

    click.echo("DONE System initialized")


@system_group.command('seed-catalog')
@click.option('--location-id', type=int, default=None, help='Location receiving the initial stock (default: first location)')
@with_appcontext
def seed_catalog(location_id):
    """Add demo products (skips names that already exist)."""
    if location_id is None:
        locations = location_service.list_locations()
        if not locations:
            raise click.ClickException("No locations exist; run 'flask system init' first")
        location_id = locations[0].id

    for name, category, sale, sale_cur, cost, cost_cur, stock in DEMO_CATALOG:
        if db.session.query(Product).filter_by(name=name).first():
            click.echo(f"WARN  Product '{name}' already exists, skipping...")
            continue
        created = catalog_service.create_product(
            patch={
                "name": name,
                "category": category,
                "sale_price_amount_cents": sale,
                "sale_price_currency": sale_cur,
                "cost_price_amount_cents": cost,
                "cost_price_currency": cost_cur,
            },
            location_id=location_id,
            initial_stock=stock,
        )
        click.echo(f"PASS Created product: {created['name']} (ID: {created['id']}, stock {stock})")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()
    click.echo("DONE Database reset")


@click.group('rates')
def rates_group():
    """Exchange rate commands."""


@rates_group.command('set')
@click.argument('currency_from')
@click.argument('currency_to')
@click.argument('rate')
@click.option('--recalc', is_flag=True, help='Also reprice products priced in currency_from')
@click.option('--changed-by', default='cli', help='Recorded in the rate history')
@with_appcontext
def set_rate(currency_from, currency_to, rate, recalc, changed_by):
    """Set the rate: 1 CURRENCY_FROM = RATE CURRENCY_TO."""
    try:
        row = pricing_service.update_exchange_rate(currency_from, currency_to, rate, changed_by=changed_by)
        click.echo(f"PASS {row.currency_from}->{row.currency_to} = {row.rate}")
        if recalc:
            result = pricing_service.recalc_all_prices(row.currency_from, row.currency_to, rate=row.rate)
            click.echo(
                f"PASS Repriced {result['updated_sale_products']} sale prices, "
                f"{result['updated_cost_products']} cost prices"
            )
    except PosError as exc:
        raise click.ClickException(exc.message)


@rates_group.command('history')
@click.argument('currency_from', default='USD')
@click.argument('currency_to', default='CUP')
@click.option('--limit', type=int, default=20)
@with_appcontext
def rate_history(currency_from, currency_to, limit):
    """Show recent rate changes, newest first."""
    rows = pricing_service.list_rate_history(currency_from, currency_to, limit=limit)
    if not rows:
        click.echo("No rate changes recorded")
        return
    for row in rows:
        click.echo(
            f"{row.created_at:%Y-%m-%d %H:%M:%S}  {row.old_rate if row.old_rate is not None else '-'}"
            f" -> {row.new_rate}  by {row.changed_by}"
        )


@click.group('prices')
def prices_group():
    """Price maintenance commands."""


@prices_group.command('recalc')
@click.argument('currency_from', default='USD')
@click.argument('currency_to', default='CUP')
@click.option('--rate', default=None, help='Rate to apply (default: the stored rate)')
@with_appcontext
def recalc_prices(currency_from, currency_to, rate):
    """Recompute legacy base-currency prices."""
    try:
        result = pricing_service.recalc_all_prices(currency_from, currency_to, rate=rate)
    except PosError as exc:
        raise click.ClickException(exc.message)
    click.echo(
        f"PASS {result['currency_from']}->{result['currency_to']} at {result['rate']}: "
        f"{result['updated_sale_products']} sale, {result['updated_cost_products']} cost"
    )


@click.group('inventory')
def inventory_group():
    """Stock inspection and transfer commands."""


@inventory_group.command('list')
@click.option('--location-id', type=int, default=None)
@with_appcontext
def list_inventory(location_id):
    rows = inventory_service.list_inventory(location_id=location_id)
    for row in rows:
        click.echo(f"{row['product_name']:<32} {row['location_name']:<24} {row['stock']:>6}")
    click.echo(f"{len(rows)} rows")


@inventory_group.command('transfer')
@click.option('--product-id', type=int, required=True)
@click.option('--from', 'from_location_id', type=int, required=True)
@click.option('--to', 'to_location_id', type=int, required=True)
@click.option('--qty', type=int, required=True)
@with_appcontext
def transfer_stock(product_id, from_location_id, to_location_id, qty):
    """Move stock between locations (all-or-nothing)."""
    try:
        result = inventory_service.transfer(product_id, from_location_id, to_location_id, qty)
    except PosError as exc:
        raise click.ClickException(exc.message)
    click.echo(
        f"PASS Moved {result['quantity']} units; source now {result['from_stock']}, "
        f"destination now {result['to_stock']}"
    )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(rates_group)
    app.cli.add_command(prices_group)
    app.cli.add_command(inventory_group)
