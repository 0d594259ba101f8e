"""
Pytest fixtures for buffet POS backend tests.

Provides test database setup, per-role profiles, catalog fixtures and a
test client.
"""

import pytest

from buffet_pos import create_app
from buffet_pos.extensions import db
from buffet_pos.models.auth import ROLE_ADMIN, ROLE_MANAGER, ROLE_CASHIER
from buffet_pos.services import auth_service, customers_service, products_service


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'RECEIPT_PRINTER': None,
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

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def admin(db_session):
    return auth_service.create_profile("admin", PASSWORD, role=ROLE_ADMIN, email="admin@buffet.local")


@pytest.fixture(scope='function')
def manager(db_session):
    return auth_service.create_profile("manager", PASSWORD, role=ROLE_MANAGER, email="manager@buffet.local")


@pytest.fixture(scope='function')
def cashier(db_session):
    return auth_service.create_profile("cashier", PASSWORD, role=ROLE_CASHIER, email="cashier@buffet.local")


@pytest.fixture(scope='function')
def admin_headers(client, admin):
    return auth_headers(get_auth_token(client, "admin", PASSWORD))


@pytest.fixture(scope='function')
def manager_headers(client, manager):
    return auth_headers(get_auth_token(client, "manager", PASSWORD))


@pytest.fixture(scope='function')
def cashier_headers(client, cashier):
    return auth_headers(get_auth_token(client, "cashier", PASSWORD))


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(name, price_cents, stock=None, min_quantity=None, **fields)."""
    def _make(name="Buffet Plate", price_cents=1500, stock=None, min_quantity=None, **fields):
        patch = {"name": name, "price_cents": price_cents, **fields}
        return products_service.create_product(
            patch=patch,
            initial_quantity=stock,
            min_quantity=min_quantity,
        )
    return _make


@pytest.fixture(scope='function')
def plate(make_product):
    """Adult buffet plate, 15.00, 10 in stock."""
    return make_product("Adult Buffet", 1500, stock=10, min_quantity=2, barcode="100001")


@pytest.fixture(scope='function')
def drink(make_product):
    """Iced tea, 2.50, 2 in stock."""
    return make_product("Iced Tea", 250, stock=2, min_quantity=5, barcode="100002")


@pytest.fixture(scope='function')
def customer(db_session):
    return customers_service.create_customer({"name": "Ana Souza", "phone": "555-0101", "email": "ana@example.com"})


def get_auth_token(client, username: str, password: str) -> str:
    """Helper to get auth token for a profile."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
