# Overview: Threaded stock and checkout safeguards against a file-backed SQLite database.

import threading

import pytest

from retailpos import create_app
from retailpos.errors import InsufficientStockError
from retailpos.extensions import db
from retailpos.models import Sale
from retailpos.services import catalog_service, inventory_service, location_service, sales_service

STARTING_STOCK = 10


@pytest.fixture
def file_app(tmp_path):
    """App on its own sqlite file with one stocked product; yields (app, ids)."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'concurrency.db'}",
        'ADMIN_SECRET': "concurrency-secret",
        'IMAGE_STORAGE_ROOT': str(tmp_path / "product-images"),
    })

    with app.app_context():
        db.drop_all()
        db.create_all()
        store = location_service.create_location("Tienda Concurrencia", "STORE")
        created = catalog_service.create_product(
            patch={"name": "Concurrent Product", "sale_price_amount_cents": 1000},
            location_id=store.id,
            initial_stock=STARTING_STOCK,
        )
        ids = {"location_id": store.id, "product_id": created["id"]}

    yield app, ids

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.session.remove()
        db.engine.dispose()


def _run_threads(app, count, work):
    """Run `work(index)` in `count` threads, each inside its own app context."""
    results = []
    lock = threading.Lock()

    def worker(index):
        with app.app_context():
            try:
                outcome = work(index)
                with lock:
                    results.append(outcome)
            except Exception as exc:
                with lock:
                    results.append(exc)
            finally:
                db.session.remove()

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results


def _line(product_id, quantity):
    return {
        "product_id": product_id,
        "name": "Concurrent Product",
        "unit_price_cents": 1000,
        "quantity": quantity,
    }


def test_concurrent_decrements_never_oversell(file_app):
    app, ids = file_app

    results = _run_threads(
        app, 8,
        lambda _: inventory_service.decrement(ids["product_id"], ids["location_id"], 3),
    )

    with app.app_context():
        remaining = inventory_service.get_stock(ids["product_id"], ids["location_id"])

    successes = [r for r in results if not isinstance(r, Exception)]
    failures = [r for r in results if isinstance(r, Exception)]
    assert remaining >= 0
    assert len(successes) * 3 + remaining == STARTING_STOCK
    assert len(successes) == 3
    assert all(isinstance(exc, InsufficientStockError) for exc in failures)


def test_concurrent_checkouts_never_oversell(file_app):
    app, ids = file_app

    results = _run_threads(
        app, 6,
        lambda i: sales_service.checkout(
            ids["location_id"], [_line(ids["product_id"], 4)], client_reference=f"till-{i}",
        ).id,
    )

    with app.app_context():
        remaining = inventory_service.get_stock(ids["product_id"], ids["location_id"])
        sale_count = db.session.query(Sale).count()

    successes = [r for r in results if not isinstance(r, Exception)]
    assert remaining >= 0
    assert sale_count == len(successes)
    assert len(successes) * 4 + remaining == STARTING_STOCK
    assert len(successes) == 2


def test_concurrent_retries_of_one_checkout_share_a_sale(file_app):
    app, ids = file_app

    results = _run_threads(
        app, 4,
        lambda _: sales_service.checkout(
            ids["location_id"], [_line(ids["product_id"], 2)], client_reference="till-7-0001",
        ).id,
    )

    with app.app_context():
        remaining = inventory_service.get_stock(ids["product_id"], ids["location_id"])
        sale_count = db.session.query(Sale).count()

    assert not [r for r in results if isinstance(r, Exception)]
    assert len(set(results)) == 1
    assert sale_count == 1
    assert remaining == STARTING_STOCK - 2
