"""
Pytest fixtures for back-office backend tests.

Provides test database setup, catalog/customer/staff seed fixtures, and test client.
"""

from decimal import Decimal

import pytest
from backoffice import create_app
from backoffice.extensions import db
from backoffice.models import Admin, Category, Customer, Item, Supplier


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
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
    """Staff member who places orders."""
    admin = Admin(admin_first_name="Maria", admin_last_name="Reyes", admin_email="maria@example.com")
    db_session.add(admin)
    db_session.commit()
    return admin


@pytest.fixture(scope='function')
def category(db_session):
    category = Category(category_name="Beverages")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def supplier(db_session):
    supplier = Supplier(
        supplier_name="Acme Trading",
        supplier_contact_person="Juan Santos",
        supplier_address="12 Market St",
        supplier_email="orders@acme.example",
        supplier_number="09171234567",
    )
    db_session.add(supplier)
    db_session.commit()
    return supplier


def make_item(db_session, category, supplier, *, description, price, quantity, reorder_threshold=2, unit="pc"):
    item = Item(
        description=description,
        unit=unit,
        price=Decimal(price),
        quantity=quantity,
        reorder_threshold=reorder_threshold,
        category_id=category.category_id,
        supplier_id=supplier.supplier_id,
    )
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def item_one(db_session, category, supplier):
    """Price 50.00, 10 on hand."""
    return make_item(db_session, category, supplier, description="Bottled Water", price="50.00", quantity=10, unit="bottle")


@pytest.fixture(scope='function')
def item_two(db_session, category, supplier):
    """Price 30.00, 5 on hand."""
    return make_item(db_session, category, supplier, description="Potato Chips", price="30.00", quantity=5, unit="pack")


@pytest.fixture(scope='function')
def customer(db_session):
    customer = Customer(
        customer_name="Jose Rizal",
        customer_address="Calamba, Laguna",
        customer_email="jose@example.com",
        customer_number="09181234567",
    )
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def admin_headers(admin):
    """Headers that attribute audited actions to the admin fixture."""
    return {'X-Admin-Id': str(admin.admin_id)}


def stock_of(item_id: int) -> int:
    """Read on-hand quantity straight from the database."""
    db.session.expire_all()
    return db.session.get(Item, item_id).quantity
