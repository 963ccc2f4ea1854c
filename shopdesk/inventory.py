"""
Stock-moving transactions: sales, purchases and sale reversal.

Every operation here runs inside a single ``unit_of_work``. Stock is never
written with a read-modify-write on a loaded object; it is adjusted with an
atomic UPDATE whose WHERE clause carries the stock guard, so two writers on
the same product serialize on the row and the counter cannot go negative.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from shopdesk import db
from shopdesk.errors import ValidationError, NotFoundError, InsufficientStockError, MissingProductError
from shopdesk.logger import get_logger
from shopdesk.models import (
    Product, Client, Seller, Supplier,
    Sale, SaleItem, Purchase, PurchaseItem,
    PaymentType, PurchaseStatus, money_problem
)
from shopdesk.queries import load_sale, load_purchase
from shopdesk.transaction import unit_of_work

logger = get_logger(__name__)


@dataclass(frozen=True)
class LineItem:
    product_id: int
    quantity: int
    unit_price: Decimal

    @property
    def total(self) -> Decimal:
        return self.unit_price * self.quantity


# -----------------------
# Parsing / validation
# -----------------------
def to_decimal(value, field="price"):
    """Exact decimal from a JSON number or string; floats go through str()."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"Invalid {field}.", {"field": field})
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid {field}.", {"field": field}) from None
    if not result.is_finite():
        raise ValidationError(f"Invalid {field}.", {"field": field})
    return result


def to_money(value, field="price"):
    """Like to_decimal, but only values a money column stores exactly."""
    result = to_decimal(value, field)
    problem = money_problem(result)
    if problem:
        raise ValidationError(f"{field}: {problem}", {"field": field})
    return result


def to_quantity(value, field="quantity"):
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"Invalid {field}.", {"field": field})
    if isinstance(value, int):
        return value
    number = to_decimal(value, field)
    if number != number.to_integral_value():
        raise ValidationError(f"{field} must be a whole number.", {"field": field})
    return int(number)


def parse_line_items(raw_items, price_key):
    """
    JSON lines -> LineItem list.

    ``raw_items`` is the list posted by the client, each entry carrying
    ``productId``, ``quantity`` and ``price_key`` (``priceAtSale`` for
    sales, ``purchasePrice`` for purchases).
    """
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("At least one item is required.", {"field": "items"})

    lines = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise ValidationError("Invalid item.", {"field": "items"})
        product_id = raw.get("productId")
        if isinstance(product_id, bool) or not isinstance(product_id, (int, str)) or not str(product_id).isdigit():
            raise ValidationError("Invalid productId in items.", {"field": "items"})
        lines.append(LineItem(
            product_id=int(product_id),
            quantity=to_quantity(raw.get("quantity")),
            unit_price=to_money(raw.get(price_key), price_key),
        ))
    return lines


def validate_lines(lines):
    """Reject the whole request on the first bad line; returns the exact total."""
    if not lines:
        raise ValidationError("At least one item is required.", {"field": "items"})

    total = Decimal("0")
    for line in lines:
        if line.quantity <= 0 or money_problem(line.unit_price) or line.unit_price < 0:
            raise ValidationError(
                f"Invalid quantity or price for product ID {line.product_id}.",
                {"productId": line.product_id}
            )
        total += line.total

    problem = money_problem(total)
    if problem:
        raise ValidationError(f"Total: {problem}", {"field": "items"})
    return total


def _payment_type(value):
    if isinstance(value, PaymentType):
        return value
    try:
        return PaymentType(value)
    except ValueError:
        raise ValidationError("Invalid payment type.", {"field": "paymentType"}) from None


def _purchase_status(value):
    if value is None:
        return PurchaseStatus.RECEIVED
    if isinstance(value, PurchaseStatus):
        return value
    try:
        return PurchaseStatus(value)
    except ValueError:
        raise ValidationError("Invalid purchase status.", {"field": "status"}) from None


# -----------------------
# Stock primitives (must run inside a unit of work)
# -----------------------
def _lock_product(product_id):
    """Current product row, locked for the rest of the transaction where the backend supports it."""
    product = db.session.scalars(
        db.select(Product)
        .where(Product.id == product_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).first()
    if product is None:
        raise MissingProductError(product_id)
    return product


def _take_stock(product, quantity):
    if product.quantity_stock < quantity:
        raise InsufficientStockError(product.id, product.name, product.quantity_stock, quantity)

    result = db.session.execute(
        db.update(Product)
        .where(Product.id == product.id, Product.quantity_stock >= quantity)
        .values(quantity_stock=Product.quantity_stock - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        # another writer got there between the read and the update
        current = db.session.scalar(db.select(Product.quantity_stock).where(Product.id == product.id))
        raise InsufficientStockError(product.id, product.name, current or 0, quantity)


def _put_stock(product_id, quantity, unit_cost=None):
    values = {"quantity_stock": Product.quantity_stock + quantity}
    if unit_cost is not None:
        values["price_purchase"] = unit_cost

    result = db.session.execute(
        db.update(Product)
        .where(Product.id == product_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise MissingProductError(product_id)


# -----------------------
# Sales
# -----------------------
def create_sale(seller_id, payment_type, items, client_id=None, notes=None, discount_code=None):
    """
    Record a sale and take its lines out of stock, all or nothing.

    ``items`` is a sequence of LineItem. The total is the exact decimal sum
    of quantity x unit price; the discount code is stored, never applied.
    Returns the persisted sale with items, products, client and seller.
    """
    if seller_id is None:
        raise ValidationError("Seller is required.", {"field": "sellerId"})
    payment_type = _payment_type(payment_type)
    lines = list(items or [])
    total = validate_lines(lines)

    with unit_of_work() as session:
        seller = session.get(Seller, seller_id)
        if seller is None:
            raise NotFoundError("Seller", seller_id)

        client = None
        if client_id is not None:
            client = session.get(Client, client_id)
            if client is None:
                raise NotFoundError("Client", client_id)

        sale = Sale(
            seller=seller,
            client=client,
            payment_type=payment_type,
            total_amount=total,
            notes=notes or None,
            discount_code_applied=discount_code or None,
        )
        session.add(sale)

        for line in lines:
            product = _lock_product(line.product_id)
            try:
                _take_stock(product, line.quantity)
            except InsufficientStockError as exc:
                logger.warning("sale rejected: %s", exc.message)
                raise

            sale.items.append(SaleItem(
                product_id=product.id,
                quantity=line.quantity,
                price_at_sale=line.unit_price,
                purchase_price_at_sale=product.price_purchase,
            ))

    logger.info("sale %s created: %d line(s), total %s", sale.id, len(lines), total)
    return load_sale(sale.id)


def get_sale(sale_id):
    sale = load_sale(sale_id)
    if sale is None:
        raise NotFoundError("Sale", sale_id)
    return sale


def delete_sale(sale_id):
    """Put every line of the sale back in stock, then delete it; one transaction."""
    with unit_of_work() as session:
        sale = session.get(Sale, sale_id)
        if sale is None:
            raise NotFoundError("Sale", sale_id)

        restored = 0
        for item in sale.items:
            _put_stock(item.product_id, item.quantity)
            restored += item.quantity

        session.delete(sale)

    logger.info("sale %s deleted, %d unit(s) returned to stock", sale_id, restored)


# -----------------------
# Purchases
# -----------------------
def create_purchase(supplier_id, items, status=None, invoice_number=None, notes=None):
    """
    Record a purchase and add its lines to stock, all or nothing.

    Receiving is unconditional: there is no stock check. Each line also
    overwrites the product's purchase cost, so with repeated products the
    last line wins.
    """
    if supplier_id is None:
        raise ValidationError("Supplier is required.", {"field": "supplierId"})
    status = _purchase_status(status)
    lines = list(items or [])
    total = validate_lines(lines)

    with unit_of_work() as session:
        supplier = session.get(Supplier, supplier_id)
        if supplier is None:
            raise NotFoundError("Supplier", supplier_id)

        purchase = Purchase(
            supplier=supplier,
            status=status,
            total_amount=total,
            invoice_number=invoice_number or None,
            notes=notes or None,
        )
        session.add(purchase)

        for line in lines:
            _put_stock(line.product_id, line.quantity, unit_cost=line.unit_price)
            purchase.items.append(PurchaseItem(
                product_id=line.product_id,
                quantity=line.quantity,
                purchase_price=line.unit_price,
            ))

    logger.info("purchase %s created: %d line(s), total %s", purchase.id, len(lines), total)
    return load_purchase(purchase.id)


def get_purchase(purchase_id):
    purchase = load_purchase(purchase_id)
    if purchase is None:
        raise NotFoundError("Purchase", purchase_id)
    return purchase
