from datetime import date
from decimal import Decimal

import pytest

from shopdesk.catalog import (
    get_entity, create_entity, update_entity,
    delete_brand, delete_category, delete_client, delete_seller,
    delete_supplier, delete_product, delete_expense
)
from shopdesk.errors import ConflictError, DeleteBlockedError, NotFoundError, ValidationError
from shopdesk.inventory import LineItem, create_sale, create_purchase
from shopdesk.models import Brand, Category, Product, Seller, Expense, PaymentType
from shopdesk import queries


def test_create_and_update_brand(db):
    brand = create_entity(Brand, {"name": "Globex", "logo_url": None})
    assert brand.id is not None

    updated = update_entity(Brand, brand.id, {"name": "Globex Corp", "logo_url": "https://cdn/x.png"})
    assert updated.name == "Globex Corp"
    assert get_entity(Brand, brand.id).logo_url == "https://cdn/x.png"


def test_duplicate_names_conflict(db, catalog):
    with pytest.raises(ConflictError, match="A brand with this name already exists."):
        create_entity(Brand, {"name": "Acme", "logo_url": None})

    other = create_entity(Category, {"name": "Garden", "logo_url": None})
    with pytest.raises(ConflictError, match="A category with this name already exists."):
        update_entity(Category, other.id, {"name": "Tools", "logo_url": None})

    # renaming to its own name is fine
    assert update_entity(Category, other.id, {"name": "Garden", "logo_url": None}).name == "Garden"


def test_storage_unique_violation_keeps_domain_message(db, catalog, monkeypatch):
    # a concurrent writer can slip past the pre-check; the constraint still answers
    monkeypatch.setattr("shopdesk.catalog._ensure_unique", lambda *args, **kwargs: None)

    with pytest.raises(ConflictError, match="A brand with this name already exists."):
        create_entity(Brand, {"name": "Acme", "logo_url": None})

    create_entity(Seller, {"name": "Sam", "email": "sam@shop.test", "phone": None, "is_active": True})
    with pytest.raises(ConflictError, match="A seller with this email already exists."):
        create_entity(Seller, {"name": "Kim", "email": "sam@shop.test", "phone": None, "is_active": True})

    assert [b.name for b in queries.list_brands()] == ["Acme"]


def test_product_references_must_exist(db, catalog):
    fields = {
        "name": "Drill", "sku": "DR-1", "description": None,
        "price_purchase": None, "price_sale": Decimal("49.90"),
        "quantity_stock": 3, "stock_min_alert": None,
        "brand_id": 999, "category_id": catalog["category"].id,
    }
    with pytest.raises(ValidationError, match="Brand with ID 999 does not exist."):
        create_entity(Product, fields)

    fields.update(brand_id=catalog["brand"].id, category_id=998)
    with pytest.raises(ValidationError, match="Category with ID 998 does not exist."):
        create_entity(Product, fields)

    fields.update(category_id=catalog["category"].id)
    product = create_entity(Product, fields)
    assert product.to_dict()["brand"]["name"] == "Acme"

    with pytest.raises(ConflictError, match="SKU"):
        create_entity(Product, dict(fields, name="Drill 2"))


def test_expense_defaults_to_today(db):
    expense = create_entity(Expense, {
        "description": "Rent", "amount": Decimal("800.00"), "category": "Premises",
        "payment_type": "TRANSFER", "expense_date": None, "notes": None,
    })
    assert expense.expense_date == date.today()
    assert expense.payment_type is PaymentType.TRANSFER

    delete_expense(expense.id)
    with pytest.raises(NotFoundError, match="Expense"):
        get_entity(Expense, expense.id)


def test_brand_with_products_cannot_be_deleted(db, catalog, make_product):
    make_product(name="One")
    make_product(name="Two")

    with pytest.raises(DeleteBlockedError) as excinfo:
        delete_brand(catalog["brand"].id)

    assert excinfo.value.count == 2
    assert excinfo.value.status_code == 409
    assert "2 associated product(s)" in excinfo.value.message
    assert db.session.get(Brand, catalog["brand"].id) is not None

    with pytest.raises(DeleteBlockedError, match="category"):
        delete_category(catalog["category"].id)


def test_contacts_with_sales_or_purchases_cannot_be_deleted(db, catalog, make_product):
    product = make_product(stock=5)
    create_sale(
        seller_id=catalog["seller"].id,
        client_id=catalog["client"].id,
        payment_type="CASH",
        items=[LineItem(product.id, 1, Decimal("19.99"))],
    )
    create_purchase(supplier_id=catalog["supplier"].id, items=[LineItem(product.id, 1, Decimal("8.00"))])

    with pytest.raises(DeleteBlockedError, match="1 associated sale"):
        delete_client(catalog["client"].id)
    with pytest.raises(DeleteBlockedError, match="1 associated sale"):
        delete_seller(catalog["seller"].id)
    with pytest.raises(DeleteBlockedError, match="1 associated purchase"):
        delete_supplier(catalog["supplier"].id)
    with pytest.raises(DeleteBlockedError, match="sale item"):
        delete_product(product.id)


def test_unreferenced_entities_are_deleted(db, catalog):
    delete_client(catalog["client"].id)
    delete_seller(catalog["seller"].id)
    delete_supplier(catalog["supplier"].id)
    delete_brand(catalog["brand"].id)
    delete_category(catalog["category"].id)

    assert queries.list_brands() == []
    assert queries.list_clients() == []


def test_delete_missing_entity(db):
    with pytest.raises(NotFoundError, match="Brand with id 5 not found."):
        delete_brand(5)


def test_product_filters(db, catalog, make_product):
    make_product(name="Hammer", sku="HM-1", stock=2, min_alert=5)
    make_product(name="Saw", sku="SW-1", stock=20, min_alert=5)
    make_product(name="Nails", sku="NL-1", stock=0)

    names = lambda items: [p.name for p in items]  # noqa: E731

    assert names(queries.list_products()) == ["Hammer", "Nails", "Saw"]
    assert names(queries.list_products(queries.ProductFilters(search="sw"))) == ["Saw"]
    assert names(queries.list_products(queries.ProductFilters(low_stock=True))) == ["Hammer"]
    assert names(queries.list_products(queries.ProductFilters(brand_id=catalog["brand"].id + 1))) == []


def test_filters_from_query_args():
    filters = queries.ProductFilters.from_args({"search": " saw ", "brandId": "3", "lowStock": "true"})
    assert filters == queries.ProductFilters(search="saw", brand_id=3, low_stock=True)

    with pytest.raises(ValidationError, match="Invalid brandId."):
        queries.ProductFilters.from_args({"brandId": "abc"})
    with pytest.raises(ValidationError, match="Invalid startDate."):
        queries.SaleFilters.from_args({"startDate": "yesterday"})
    with pytest.raises(ValidationError, match="Invalid status."):
        queries.PurchaseFilters.from_args({"status": "lost"})
