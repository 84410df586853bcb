"""
Pytest fixtures for the retail POS backend tests.

Provides an in-memory database, a test client, default locations and a
product factory.
"""

import pytest

from retailpos import create_app
from retailpos.extensions import db
from retailpos.services import catalog_service, location_service

ADMIN_SECRET = "test-secret"


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'ADMIN_SECRET': ADMIN_SECRET,
        'IMAGE_STORAGE_ROOT': str(tmp_path_factory.mktemp("product-images")),
        'LOW_STOCK_THRESHOLD': 10,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        app.extensions.pop("image_storage", None)

        yield db.session

        # Cleanup after test
        db.session.rollback()
        app.extensions.pop("image_storage", None)


@pytest.fixture(scope='function')
def locations(db_session):
    """Default warehouse and two stores, keyed warehouse / centro / norte."""
    warehouse, centro, norte = location_service.seed_default_locations()
    return {"warehouse": warehouse, "centro": centro, "norte": norte}


@pytest.fixture(scope='function')
def product_factory(db_session):
    """Create a CUP-priced product, optionally stocked at one location."""
    counter = {"n": 0}

    def _create(name=None, price_cents=1000, currency="CUP", location=None, stock=0, **fields):
        counter["n"] += 1
        patch = {
            "name": name or f"Product {counter['n']}",
            "sale_price_amount_cents": price_cents,
            "sale_price_currency": currency,
            **fields,
        }
        created = catalog_service.create_product(
            patch=patch,
            location_id=location.id if location is not None else None,
            initial_stock=stock,
        )
        return catalog_service.get_product(created["id"])

    return _create


@pytest.fixture
def admin_headers():
    """Privileged request headers."""
    return {"X-Admin-Secret": ADMIN_SECRET, "X-Changed-By": "tester"}
