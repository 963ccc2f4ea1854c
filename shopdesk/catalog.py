"""
Create/update/delete for the reference entities and expenses.

Unique fields are checked up front so the caller gets a message that names
the clashing field; the storage constraint stays as the backstop (see
``unit_of_work``). Deleting anything that business records point at is
refused with the number of blocking rows, never cascaded.
"""
from datetime import date

from shopdesk import db
from shopdesk.errors import ConflictError, DeleteBlockedError, NotFoundError, ValidationError
from shopdesk.logger import get_logger
from shopdesk.models import (
    Brand, Category, Product, Client, Seller, Supplier, Expense,
    Sale, SaleItem, Purchase, PurchaseItem, PaymentType, UNIQUE_MESSAGES
)
from shopdesk.transaction import unit_of_work

logger = get_logger(__name__)

# model -> unique column attributes
UNIQUE_FIELDS = {
    Brand: ["name"],
    Category: ["name"],
    Product: ["sku"],
    Client: ["email"],
    Seller: ["name", "email"],
    Supplier: ["name"],
}


def get_entity(model, entity_id):
    instance = db.session.get(model, entity_id)
    if instance is None:
        raise NotFoundError(model.label, entity_id)
    return instance


def _ensure_unique(model, fields, exclude_id=None):
    for attr in UNIQUE_FIELDS.get(model, []):
        value = fields.get(attr)
        if value is None:
            continue
        column = getattr(model, attr)
        query = db.select(model.id).where(column == value)
        if exclude_id is not None:
            query = query.where(model.id != exclude_id)
        if db.session.scalar(query.limit(1)) is not None:
            raise ConflictError(UNIQUE_MESSAGES[(model.__tablename__, attr)], {"field": attr})


def _check_product_refs(fields):
    brand_id = fields.get("brand_id")
    if db.session.get(Brand, brand_id) is None:
        raise ValidationError(f"Brand with ID {brand_id} does not exist.", {"field": "brandId"})
    category_id = fields.get("category_id")
    if db.session.get(Category, category_id) is None:
        raise ValidationError(f"Category with ID {category_id} does not exist.", {"field": "categoryId"})


def _prepare(model, fields):
    fields = dict(fields)
    if model is Product:
        _check_product_refs(fields)
    elif model is Expense:
        fields["payment_type"] = PaymentType(fields["payment_type"])
        if fields.get("expense_date") is None:
            fields["expense_date"] = date.today()
    return fields


def create_entity(model, fields):
    """Insert one row of ``model`` from validated form values."""
    with unit_of_work() as session:
        fields = _prepare(model, fields)
        _ensure_unique(model, fields)
        instance = model(**fields)
        session.add(instance)

    logger.info("%s %s created", model.label.lower(), instance.id)
    return instance


def update_entity(model, entity_id, fields):
    """Replace the editable fields of an existing row."""
    with unit_of_work():
        instance = get_entity(model, entity_id)
        fields = _prepare(model, fields)
        _ensure_unique(model, fields, exclude_id=instance.id)
        for attr, value in fields.items():
            setattr(instance, attr, value)

    logger.info("%s %s updated", model.label.lower(), entity_id)
    return instance


def _count(model, column, value):
    return db.session.scalar(db.select(db.func.count(model.id)).where(column == value)) or 0


def _guarded_delete(model, entity_id, blockers):
    """
    Delete ``model`` #entity_id unless a blocker has rows pointing at it.

    ``blockers`` is a list of (dependent model, foreign key column, relation
    name used in the message).
    """
    with unit_of_work() as session:
        instance = get_entity(model, entity_id)

        for dependent, column, relation in blockers:
            count = _count(dependent, column, instance.id)
            if count > 0:
                logger.warning("delete of %s %s blocked by %d %s", model.label.lower(), entity_id, count, relation)
                raise DeleteBlockedError(model.label.lower(), count, relation)

        session.delete(instance)

    logger.info("%s %s deleted", model.label.lower(), entity_id)


def delete_brand(brand_id):
    _guarded_delete(Brand, brand_id, [(Product, Product.brand_id, "product(s)")])


def delete_category(category_id):
    _guarded_delete(Category, category_id, [(Product, Product.category_id, "product(s)")])


def delete_client(client_id):
    _guarded_delete(Client, client_id, [(Sale, Sale.client_id, "sale(s)")])


def delete_seller(seller_id):
    _guarded_delete(Seller, seller_id, [(Sale, Sale.seller_id, "sale(s)")])


def delete_supplier(supplier_id):
    _guarded_delete(Supplier, supplier_id, [(Purchase, Purchase.supplier_id, "purchase(s)")])


def delete_product(product_id):
    _guarded_delete(Product, product_id, [
        (SaleItem, SaleItem.product_id, "sale item(s)"),
        (PurchaseItem, PurchaseItem.product_id, "purchase item(s)"),
    ])


def delete_expense(expense_id):
    _guarded_delete(Expense, expense_id, [])
