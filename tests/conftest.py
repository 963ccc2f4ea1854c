"""
Pytest configuration and fixtures shared by the service and API tests
"""
from decimal import Decimal

import pytest

from shopdesk import create_app
from shopdesk import db as _db
from shopdesk.models import Brand, Category, Product, Client, Seller, Supplier


@pytest.fixture(scope='function')
def app():
    """Fresh application on an in-memory database"""
    app = create_app("shopdesk.config.TestConfig")

    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Flask test client"""
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def catalog(app):
    """One brand, one category, one seller, one client, one supplier."""
    brand = Brand(name="Acme")
    category = Category(name="Tools")
    seller = Seller(name="Sam Seller", email="sam@example.com")
    client = Client(first_name="Alex", last_name="Doe", email="alex@example.com")
    supplier = Supplier(name="Wholesale Co", contact_person="Jordan")
    _db.session.add_all([brand, category, seller, client, supplier])
    _db.session.commit()
    return {
        "brand": brand,
        "category": category,
        "seller": seller,
        "client": client,
        "supplier": supplier,
    }


@pytest.fixture
def make_product(catalog):
    def _make(name="Widget", stock=10, price_sale="19.99", price_purchase="8.00", sku=None, min_alert=None):
        product = Product(
            name=name,
            sku=sku,
            price_sale=Decimal(price_sale),
            price_purchase=Decimal(price_purchase) if price_purchase is not None else None,
            quantity_stock=stock,
            stock_min_alert=min_alert,
            brand=catalog["brand"],
            category=catalog["category"],
        )
        _db.session.add(product)
        _db.session.commit()
        return product

    return _make


@pytest.fixture
def stock_of(app):
    """Stock as stored, bypassing the identity map."""
    def _stock(product_id):
        return _db.session.scalar(_db.select(Product.quantity_stock).where(Product.id == product_id))

    return _stock
