"""
Pytest fixtures for storefront backend tests.

Provides test database setup, account/catalog factories, and test client.
"""

from decimal import Decimal

import pytest
from storefront import create_app
from storefront.config import TestConfig
from storefront.extensions import db
from storefront.models import Customer, Product, Supplier, User
from storefront.roles import Role
from storefront.services.credential_service import get_credential_store
from storefront.services.token_service import get_token_service

DEFAULT_PASSWORD = "Str0ng!Pw"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

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
        app.extensions["mailer"].outbox.clear()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def make_user(email: str, role: Role, password: str = DEFAULT_PASSWORD) -> User:
    user = User(
        email=email,
        password_hash=get_credential_store().hash(password),
        role=role,
        email_verified=False,
    )
    db.session.add(user)
    db.session.commit()
    return user


def make_customer(email: str = "customer@example.com") -> User:
    user = make_user(email, Role.CUSTOMER)
    db.session.add(Customer(user_id=user.id, first_name="Ada", last_name="Lovelace"))
    db.session.commit()
    return user


def make_supplier(email: str = "supplier@example.com") -> User:
    user = make_user(email, Role.SUPPLIER)
    db.session.add(Supplier(user_id=user.id, name="Acme Supplies"))
    db.session.commit()
    return user


def make_product(supplier_user: User, name: str = "Widget", price: str = "19.99", stock: int = 10, **extra) -> Product:
    supplier = db.session.query(Supplier).filter_by(user_id=supplier_user.id).one()
    product = Product(
        supplier_id=supplier.id,
        name=name,
        base_price=Decimal(price),
        stock_quantity=stock,
        media_paths=[],
        **extra,
    )
    db.session.add(product)
    db.session.commit()
    return product


@pytest.fixture(scope='function')
def customer_user(db_session):
    """Customer with a profile."""
    return make_customer()


@pytest.fixture(scope='function')
def other_customer_user(db_session):
    return make_customer("other@example.com")


@pytest.fixture(scope='function')
def supplier_user(db_session):
    """Supplier with a profile."""
    return make_supplier()


@pytest.fixture(scope='function')
def other_supplier_user(db_session):
    return make_supplier("rival@example.com")


@pytest.fixture(scope='function')
def product(supplier_user):
    """Product priced 19.99 with 10 in stock."""
    return make_product(supplier_user)


def token_for(user: User) -> str:
    return get_token_service().issue(user.id, user.role)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def customer_headers(customer_user):
    return auth_headers(token_for(customer_user))


@pytest.fixture(scope='function')
def supplier_headers(supplier_user):
    return auth_headers(token_for(supplier_user))
