"""
Read side: immutable filter objects and the list functions that apply them.

Each filter is built once from the request query string (``from_args``)
and passed into a list function; nothing here keeps state between calls.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from sqlalchemy.orm import joinedload, selectinload

from shopdesk import db
from shopdesk.errors import ValidationError
from shopdesk.models import (
    Brand, Category, Product, Client, Seller, Supplier,
    Sale, SaleItem, Purchase, PurchaseItem, Expense, PurchaseStatus
)


def _text(args, key):
    value = (args.get(key) or "").strip()
    return value or None


def _int(args, key):
    raw = (args.get(key) or "").strip()
    if not raw:
        return None
    if not raw.lstrip("-").isdigit():
        raise ValidationError(f"Invalid {key}.", {"field": key})
    return int(raw)


def _bool(args, key):
    raw = (args.get(key) or "").strip().lower()
    if not raw:
        return None
    if raw in ("1", "true", "yes"):
        return True
    if raw in ("0", "false", "no"):
        return False
    raise ValidationError(f"Invalid {key}.", {"field": key})


def _date(args, key):
    raw = (args.get(key) or "").strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        raise ValidationError(f"Invalid {key}.", {"field": key}) from None


def day_bounds(start_date=None, end_date=None):
    """Inclusive date range -> half-open datetime range [start, end)."""
    start = datetime.combine(start_date, time.min) if start_date else None
    end = datetime.combine(end_date + timedelta(days=1), time.min) if end_date else None
    return start, end


@dataclass(frozen=True)
class NameFilters:
    name: str | None = None

    @classmethod
    def from_args(cls, args):
        return cls(name=_text(args, "name"))


@dataclass(frozen=True)
class ProductFilters:
    search: str | None = None
    brand_id: int | None = None
    category_id: int | None = None
    low_stock: bool = False

    @classmethod
    def from_args(cls, args):
        return cls(
            search=_text(args, "search"),
            brand_id=_int(args, "brandId"),
            category_id=_int(args, "categoryId"),
            low_stock=bool(_bool(args, "lowStock")),
        )


@dataclass(frozen=True)
class SearchFilters:
    search: str | None = None

    @classmethod
    def from_args(cls, args):
        return cls(search=_text(args, "search"))


@dataclass(frozen=True)
class SellerFilters:
    active: bool | None = None

    @classmethod
    def from_args(cls, args):
        return cls(active=_bool(args, "active"))


@dataclass(frozen=True)
class DateRange:
    start_date: date | None = None
    end_date: date | None = None

    @classmethod
    def from_args(cls, args):
        return cls(start_date=_date(args, "startDate"), end_date=_date(args, "endDate"))


@dataclass(frozen=True)
class ExpenseFilters:
    category: str | None = None
    start_date: date | None = None
    end_date: date | None = None

    @classmethod
    def from_args(cls, args):
        return cls(
            category=_text(args, "category"),
            start_date=_date(args, "startDate"),
            end_date=_date(args, "endDate"),
        )


@dataclass(frozen=True)
class SaleFilters:
    client_id: int | None = None
    seller_id: int | None = None
    start_date: date | None = None
    end_date: date | None = None

    @classmethod
    def from_args(cls, args):
        return cls(
            client_id=_int(args, "clientId"),
            seller_id=_int(args, "sellerId"),
            start_date=_date(args, "startDate"),
            end_date=_date(args, "endDate"),
        )


@dataclass(frozen=True)
class PurchaseFilters:
    supplier_id: int | None = None
    status: PurchaseStatus | None = None

    @classmethod
    def from_args(cls, args):
        raw_status = _text(args, "status")
        status = None
        if raw_status:
            try:
                status = PurchaseStatus(raw_status.upper())
            except ValueError:
                raise ValidationError("Invalid status.", {"field": "status"}) from None
        return cls(supplier_id=_int(args, "supplierId"), status=status)


# -----------------------
# List functions
# -----------------------
def list_brands(filters=NameFilters()):
    query = db.select(Brand)
    if filters.name:
        query = query.where(Brand.name.ilike(f"%{filters.name}%"))
    return db.session.scalars(query.order_by(Brand.name.asc())).all()


def list_categories(filters=NameFilters()):
    query = db.select(Category)
    if filters.name:
        query = query.where(Category.name.ilike(f"%{filters.name}%"))
    return db.session.scalars(query.order_by(Category.name.asc())).all()


def list_products(filters=ProductFilters()):
    query = db.select(Product).options(joinedload(Product.brand), joinedload(Product.category))

    if filters.search:
        pattern = f"%{filters.search}%"
        query = query.where(db.or_(Product.name.ilike(pattern), Product.sku.ilike(pattern)))
    if filters.brand_id is not None:
        query = query.where(Product.brand_id == filters.brand_id)
    if filters.category_id is not None:
        query = query.where(Product.category_id == filters.category_id)
    if filters.low_stock:
        query = query.where(
            Product.stock_min_alert.is_not(None),
            Product.quantity_stock < Product.stock_min_alert
        )

    return db.session.scalars(query.order_by(Product.name.asc(), Product.id.asc())).all()


def list_clients(filters=SearchFilters()):
    query = db.select(Client)
    if filters.search:
        pattern = f"%{filters.search}%"
        query = query.where(db.or_(
            Client.first_name.ilike(pattern),
            Client.last_name.ilike(pattern),
            Client.email.ilike(pattern),
            Client.phone.ilike(pattern),
        ))
    return db.session.scalars(query.order_by(Client.first_name.asc(), Client.last_name.asc())).all()


def list_sellers(filters=SellerFilters()):
    query = db.select(Seller)
    if filters.active is not None:
        query = query.where(Seller.is_active.is_(filters.active))
    return db.session.scalars(query.order_by(Seller.name.asc())).all()


def list_suppliers(filters=SearchFilters()):
    query = db.select(Supplier)
    if filters.search:
        pattern = f"%{filters.search}%"
        query = query.where(db.or_(Supplier.name.ilike(pattern), Supplier.contact_person.ilike(pattern)))
    return db.session.scalars(query.order_by(Supplier.name.asc())).all()


def list_expenses(filters=ExpenseFilters()):
    query = db.select(Expense)
    if filters.category:
        query = query.where(Expense.category.ilike(f"%{filters.category}%"))
    if filters.start_date:
        query = query.where(Expense.expense_date >= filters.start_date)
    if filters.end_date:
        query = query.where(Expense.expense_date <= filters.end_date)
    return db.session.scalars(query.order_by(Expense.expense_date.desc(), Expense.id.desc())).all()


def _sale_options():
    return (
        joinedload(Sale.client),
        joinedload(Sale.seller),
        selectinload(Sale.items).joinedload(SaleItem.product),
    )


def list_sales(filters=SaleFilters()):
    query = db.select(Sale).options(*_sale_options())

    if filters.client_id is not None:
        query = query.where(Sale.client_id == filters.client_id)
    if filters.seller_id is not None:
        query = query.where(Sale.seller_id == filters.seller_id)

    start, end = day_bounds(filters.start_date, filters.end_date)
    if start:
        query = query.where(Sale.sale_date >= start)
    if end:
        query = query.where(Sale.sale_date < end)

    return db.session.scalars(query.order_by(Sale.sale_date.desc(), Sale.id.desc())).all()


def load_sale(sale_id):
    """Sale with client, seller and items/products attached, or None."""
    return db.session.scalars(
        db.select(Sale)
        .where(Sale.id == sale_id)
        .options(*_sale_options())
        .execution_options(populate_existing=True)
    ).first()


def _purchase_options():
    return (
        joinedload(Purchase.supplier),
        selectinload(Purchase.items).joinedload(PurchaseItem.product),
    )


def list_purchases(filters=PurchaseFilters()):
    query = db.select(Purchase).options(*_purchase_options())
    if filters.supplier_id is not None:
        query = query.where(Purchase.supplier_id == filters.supplier_id)
    if filters.status is not None:
        query = query.where(Purchase.status == filters.status)
    return db.session.scalars(query.order_by(Purchase.purchase_date.desc(), Purchase.id.desc())).all()


def load_purchase(purchase_id):
    return db.session.scalars(
        db.select(Purchase)
        .where(Purchase.id == purchase_id)
        .options(*_purchase_options())
        .execution_options(populate_existing=True)
    ).first()
