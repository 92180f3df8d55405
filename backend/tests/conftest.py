"""
Pytest fixtures for shopfloor backend tests.

Provides test database setup, two isolated tenants with shops, users and
customers, and explicit tenant contexts with a controllable clock.
"""

from datetime import datetime

import pytest

from shopfloor import create_app
from shopfloor.context import TenantContext
from shopfloor.extensions import db
from shopfloor.models import Tenant, Shop, User, Customer, ROLE_OWNER


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


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


class FrozenClock:
    """Callable clock for TenantContext; move it with advance()."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, delta) -> None:
        self.current = self.current + delta


@pytest.fixture(scope='function')
def clock():
    return FrozenClock(datetime(2026, 3, 2, 9, 30, 0))


def _make_tenant(db_session, name, slug):
    tenant = Tenant(name=name, slug=slug, email=f"owner@{slug}.test", is_active=True)
    db_session.add(tenant)
    db_session.commit()
    return tenant


def _make_owner(db_session, tenant, email):
    user = User(
        tenant_id=tenant.id,
        first_name="Owner",
        last_name=tenant.name,
        email=email,
        password_hash="x",
        role=ROLE_OWNER,
        is_tenant_owner=True,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def tenant_a(db_session):
    """Create Tenant A (first tenant)."""
    return _make_tenant(db_session, "Acme Corp", "acme-corp")


@pytest.fixture(scope='function')
def tenant_b(db_session):
    """Create Tenant B (second tenant)."""
    return _make_tenant(db_session, "Beta Inc", "beta-inc")


@pytest.fixture(scope='function')
def shop_a(db_session, tenant_a):
    """Create Shop A1 in Tenant A."""
    shop = Shop(tenant_id=tenant_a.id, name="Shop A1")
    db_session.add(shop)
    db_session.commit()
    return shop


@pytest.fixture(scope='function')
def shop_a2(db_session, tenant_a):
    """Create a second shop in Tenant A."""
    shop = Shop(tenant_id=tenant_a.id, name="Shop A2")
    db_session.add(shop)
    db_session.commit()
    return shop


@pytest.fixture(scope='function')
def shop_b(db_session, tenant_b):
    """Create Shop B1 in Tenant B."""
    shop = Shop(tenant_id=tenant_b.id, name="Shop B1")
    db_session.add(shop)
    db_session.commit()
    return shop


@pytest.fixture(scope='function')
def user_a(db_session, tenant_a):
    return _make_owner(db_session, tenant_a, "owner_a@acme.test")


@pytest.fixture(scope='function')
def user_b(db_session, tenant_b):
    return _make_owner(db_session, tenant_b, "owner_b@beta.test")


@pytest.fixture(scope='function')
def customer_a(db_session, tenant_a):
    customer = Customer(tenant_id=tenant_a.id, first_name="John", last_name="Doe", email="john@example.test")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def customer_b(db_session, tenant_b):
    customer = Customer(tenant_id=tenant_b.id, first_name="Jane", last_name="Roe", email="jane@example.test")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def ctx_a(user_a, tenant_a, clock):
    """Tenant context of User A, on the shared frozen clock."""
    return TenantContext(user_id=user_a.id, tenant_id=tenant_a.id, clock=clock)


@pytest.fixture(scope='function')
def ctx_b(user_b, tenant_b, clock):
    """Tenant context of User B, on the shared frozen clock."""
    return TenantContext(user_id=user_b.id, tenant_id=tenant_b.id, clock=clock)


@pytest.fixture(scope='function')
def valid_items():
    return [
        {"variant_id": 11, "name": "Test Product", "sku": "TEST-001", "quantity": 2, "unit_price": 100.00},
        {"variant_id": 12, "name": "Another Product", "sku": "TEST-002", "quantity": 1, "unit_price": 50.00},
    ]
