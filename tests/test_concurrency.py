"""
Two sellers racing for the last unit of a product
"""
import threading
from decimal import Decimal

import pytest

from shopdesk import create_app, db
from shopdesk.errors import InsufficientStockError
from shopdesk.inventory import LineItem, create_sale
from shopdesk.models import Brand, Category, Product, Sale, Seller


@pytest.fixture
def file_app(tmp_path):
    # threads need their own connections, so no in-memory database here
    app = create_app(
        "shopdesk.config.TestConfig",
        SQLALCHEMY_DATABASE_URI=f"sqlite:///{tmp_path / 'race.db'}",
        SQLALCHEMY_ENGINE_OPTIONS={"connect_args": {"check_same_thread": False, "timeout": 30}},
    )
    with app.app_context():
        db.create_all()
        brand, category = Brand(name="Acme"), Category(name="Tools")
        product = Product(name="Last one", price_sale=Decimal("9.99"), quantity_stock=1,
                          brand=brand, category=category)
        seller = Seller(name="Sam")
        db.session.add_all([product, seller])
        db.session.commit()
        ids = {"product": product.id, "seller": seller.id}
        db.session.remove()

    yield app, ids

    with app.app_context():
        db.drop_all()
        db.engine.dispose()


def test_concurrent_sales_of_last_unit(file_app):
    app, ids = file_app
    barrier = threading.Barrier(2)
    outcomes = []
    lock = threading.Lock()

    def sell():
        with app.app_context():
            barrier.wait()
            try:
                create_sale(
                    seller_id=ids["seller"],
                    payment_type="CASH",
                    items=[LineItem(ids["product"], 1, Decimal("9.99"))],
                )
                result = "sold"
            except InsufficientStockError:
                result = "rejected"
            with lock:
                outcomes.append(result)

    threads = [threading.Thread(target=sell) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert sorted(outcomes) == ["rejected", "sold"]

    with app.app_context():
        stock = db.session.scalar(db.select(Product.quantity_stock).where(Product.id == ids["product"]))
        sales = db.session.scalar(db.select(db.func.count(Sale.id)))
    assert stock == 0
    assert sales == 1
