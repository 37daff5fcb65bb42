"""
Pytest fixtures for TablePOS backend tests.

Provides the app on an in-memory database, a clean database per test,
a test client, and small factories for products and tables.
"""

import pytest

from tablepos import create_app
from tablepos.extensions import db
from tablepos.models import OrderItem
from tablepos.services import catalog_service, table_service


TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'LEDGER_RETRY_BACKOFF': 0,
    'LOG_LEVEL': 'WARNING',
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

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

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: tracked drink with 10 in stock unless told otherwise."""
    def _make(name="Kola", price=40, stock=10, is_unlimited=False, category="Drinks", **extra):
        patch = {
            "name": name,
            "price": price,
            "stock": stock,
            "is_unlimited": is_unlimited,
            "category": category,
            **extra,
        }
        return catalog_service.create_product(patch=patch)
    return _make


@pytest.fixture(scope='function')
def make_table(db_session):
    counter = {"n": 0}

    def _make(name=None, section="Alt Kat"):
        counter["n"] += 1
        return table_service.create_table(name=name or f"A {counter['n']}", section=section)
    return _make


@pytest.fixture(scope='function')
def assert_total_consistent(db_session):
    """Check Order.total_amount against the sum of its item rows."""
    def _check(order_id):
        from tablepos.models import Order
        order = db_session.get(Order, order_id)
        db_session.refresh(order)
        rows = db_session.query(OrderItem).filter_by(order_id=order_id).all()
        assert order.total_amount == sum(r.price * r.quantity for r in rows)
        keys = [(r.product_id, r.price, r.type, r.is_paid) for r in rows]
        assert len(keys) == len(set(keys)), "duplicate bucket rows"
        return order.total_amount
    return _check
