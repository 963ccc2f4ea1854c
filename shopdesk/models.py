import enum
from decimal import Decimal

from shopdesk import db

CENT = Decimal("0.01")
MONEY_PRECISION = 14
MONEY_SCALE = 4
MONEY = db.Numeric(MONEY_PRECISION, MONEY_SCALE)

MONEY_UNIT = Decimal(1).scaleb(-MONEY_SCALE)
MONEY_LIMIT = Decimal(10) ** (MONEY_PRECISION - MONEY_SCALE)


def money_problem(value):
    """Why ``value`` cannot be stored exactly in a MONEY column, or None."""
    if not value.is_finite():
        return "Must be a finite number."
    if abs(value) >= MONEY_LIMIT:
        return "Out of range."
    if value.quantize(MONEY_UNIT) != value:
        return f"Cannot have more than {MONEY_SCALE} decimal places."
    return None


def format_money(value):
    """Decimal -> string, two places unless more are significant."""
    if value is None:
        return None
    value = Decimal(str(value))
    if value == value.quantize(CENT):
        return format(value.quantize(CENT), "f")
    return format(value.normalize(), "f")


def _iso(value):
    return value.isoformat() if value is not None else None


class PaymentType(enum.Enum):
    CASH = "CASH"
    TRANSFER = "TRANSFER"
    CARD = "CARD"
    OTHER = "OTHER"


class PurchaseStatus(enum.Enum):
    PENDING = "PENDING"
    RECEIVED = "RECEIVED"
    CANCELLED = "CANCELLED"


PAYMENT_TYPE = db.Enum(PaymentType, name="payment_type")
PURCHASE_STATUS = db.Enum(PurchaseStatus, name="purchase_status")


class TimestampMixin:
    created_at = db.Column(db.DateTime, server_default=db.func.now(), nullable=False)
    updated_at = db.Column(
        db.DateTime,
        server_default=db.func.now(),
        onupdate=db.func.now(),
        nullable=False
    )


class Brand(db.Model):
    __tablename__ = "brands"
    label = "Brand"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    logo_url = db.Column(db.String(250), nullable=True)

    def to_dict(self):
        return {"id": self.id, "name": self.name, "logoUrl": self.logo_url}

    def __repr__(self):
        return f"<Brand {self.name}>"


class Category(db.Model):
    __tablename__ = "categories"
    label = "Category"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    logo_url = db.Column(db.String(250), nullable=True)

    def to_dict(self):
        return {"id": self.id, "name": self.name, "logoUrl": self.logo_url}

    def __repr__(self):
        return f"<Category {self.name}>"


class Product(TimestampMixin, db.Model):
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("quantity_stock >= 0", name="ck_products_quantity_stock_non_negative"),
    )
    label = "Product"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(160), nullable=False, index=True)
    sku = db.Column(db.String(64), nullable=True, unique=True)
    description = db.Column(db.Text, nullable=True)

    price_purchase = db.Column(MONEY, nullable=True)
    price_sale = db.Column(MONEY, nullable=False)

    quantity_stock = db.Column(db.Integer, nullable=False, default=0)
    stock_min_alert = db.Column(db.Integer, nullable=True)

    brand_id = db.Column(db.Integer, db.ForeignKey("brands.id"), nullable=False, index=True)
    brand = db.relationship("Brand", backref=db.backref("products", lazy=True))

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False, index=True)
    category = db.relationship("Category", backref=db.backref("products", lazy=True))

    @property
    def is_low_stock(self):
        return self.stock_min_alert is not None and self.quantity_stock < self.stock_min_alert

    def to_dict(self, include_relations=True):
        data = {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "description": self.description,
            "pricePurchase": format_money(self.price_purchase),
            "priceSale": format_money(self.price_sale),
            "quantityStock": self.quantity_stock,
            "stockMinAlert": self.stock_min_alert,
            "isLowStock": self.is_low_stock,
            "brandId": self.brand_id,
            "categoryId": self.category_id,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
        if include_relations:
            data["brand"] = self.brand.to_dict() if self.brand else None
            data["category"] = self.category.to_dict() if self.category else None
        return data

    def __repr__(self):
        return f"<Product {self.name} stock={self.quantity_stock}>"


class Client(TimestampMixin, db.Model):
    __tablename__ = "clients"
    label = "Client"

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(120), nullable=False)
    last_name = db.Column(db.String(120), nullable=True)
    email = db.Column(db.String(120), nullable=True, unique=True)
    phone = db.Column(db.String(40), nullable=True)
    address = db.Column(db.String(250), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    @property
    def full_name(self):
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def to_dict(self):
        return {
            "id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "notes": self.notes,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Client {self.full_name}>"


class Seller(TimestampMixin, db.Model):
    __tablename__ = "sellers"
    label = "Seller"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    email = db.Column(db.String(120), nullable=True, unique=True)
    phone = db.Column(db.String(40), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "isActive": self.is_active,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Seller {self.name}>"


class Supplier(TimestampMixin, db.Model):
    __tablename__ = "suppliers"
    label = "Supplier"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(160), nullable=False, unique=True)
    contact_person = db.Column(db.String(120), nullable=True)
    email = db.Column(db.String(120), nullable=True)
    phone = db.Column(db.String(40), nullable=True)
    address = db.Column(db.String(250), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "contactPerson": self.contact_person,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "notes": self.notes,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Supplier {self.name}>"


class Sale(TimestampMixin, db.Model):
    __tablename__ = "sales"
    label = "Sale"

    id = db.Column(db.Integer, primary_key=True)
    sale_date = db.Column(db.DateTime, server_default=db.func.now(), nullable=False, index=True)
    total_amount = db.Column(MONEY, nullable=False)
    payment_type = db.Column(PAYMENT_TYPE, nullable=False)
    notes = db.Column(db.Text, nullable=True)
    # stored as entered, never applied to the total
    discount_code_applied = db.Column(db.String(64), nullable=True)

    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=True, index=True)
    client = db.relationship("Client", backref=db.backref("sales", lazy=True))

    seller_id = db.Column(db.Integer, db.ForeignKey("sellers.id"), nullable=False, index=True)
    seller = db.relationship("Seller", backref=db.backref("sales", lazy=True))

    items = db.relationship(
        "SaleItem",
        backref="sale",
        lazy=True,
        order_by="SaleItem.id",
        cascade="all, delete-orphan"
    )

    @property
    def items_total(self):
        return sum((item.line_total for item in self.items), Decimal("0"))

    def to_dict(self):
        return {
            "id": self.id,
            "saleDate": _iso(self.sale_date),
            "totalAmount": format_money(self.total_amount),
            "paymentType": self.payment_type.value,
            "notes": self.notes,
            "discountCodeApplied": self.discount_code_applied,
            "clientId": self.client_id,
            "client": self.client.to_dict() if self.client else None,
            "sellerId": self.seller_id,
            "seller": self.seller.to_dict() if self.seller else None,
            "items": [item.to_dict() for item in self.items],
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Sale {self.id} total={self.total_amount}>"


class SaleItem(db.Model):
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_items_quantity_pos"),
    )

    id = db.Column(db.Integer, primary_key=True)

    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    product = db.relationship("Product", backref=db.backref("sale_items", lazy=True))

    quantity = db.Column(db.Integer, nullable=False)
    price_at_sale = db.Column(MONEY, nullable=False)
    # product cost when sold, feeds cost of goods sold
    purchase_price_at_sale = db.Column(MONEY, nullable=True)

    @property
    def line_total(self):
        return Decimal(str(self.price_at_sale)) * self.quantity

    def to_dict(self):
        return {
            "id": self.id,
            "saleId": self.sale_id,
            "productId": self.product_id,
            "quantity": self.quantity,
            "priceAtSale": format_money(self.price_at_sale),
            "purchasePriceAtSale": format_money(self.purchase_price_at_sale),
            "product": self.product.to_dict(include_relations=False) if self.product else None,
        }

    def __repr__(self):
        return f"<SaleItem {self.id} sale={self.sale_id} product={self.product_id} qty={self.quantity}>"


class Purchase(TimestampMixin, db.Model):
    __tablename__ = "purchases"
    label = "Purchase"

    id = db.Column(db.Integer, primary_key=True)
    purchase_date = db.Column(db.DateTime, server_default=db.func.now(), nullable=False, index=True)
    total_amount = db.Column(MONEY, nullable=False)
    status = db.Column(
        PURCHASE_STATUS,
        nullable=False,
        default=PurchaseStatus.RECEIVED
    )
    invoice_number = db.Column(db.String(64), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)
    supplier = db.relationship("Supplier", backref=db.backref("purchases", lazy=True))

    items = db.relationship(
        "PurchaseItem",
        backref="purchase",
        lazy=True,
        order_by="PurchaseItem.id",
        cascade="all, delete-orphan"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "purchaseDate": _iso(self.purchase_date),
            "totalAmount": format_money(self.total_amount),
            "status": self.status.value,
            "invoiceNumber": self.invoice_number,
            "notes": self.notes,
            "supplierId": self.supplier_id,
            "supplier": self.supplier.to_dict() if self.supplier else None,
            "items": [item.to_dict() for item in self.items],
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Purchase {self.id} total={self.total_amount}>"


class PurchaseItem(db.Model):
    __tablename__ = "purchase_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_purchase_items_quantity_pos"),
    )

    id = db.Column(db.Integer, primary_key=True)

    purchase_id = db.Column(db.Integer, db.ForeignKey("purchases.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    product = db.relationship("Product", backref=db.backref("purchase_items", lazy=True))

    quantity = db.Column(db.Integer, nullable=False)
    purchase_price = db.Column(MONEY, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "purchaseId": self.purchase_id,
            "productId": self.product_id,
            "quantity": self.quantity,
            "purchasePrice": format_money(self.purchase_price),
            "product": self.product.to_dict(include_relations=False) if self.product else None,
        }

    def __repr__(self):
        return f"<PurchaseItem {self.id} purchase={self.purchase_id} product={self.product_id} qty={self.quantity}>"


class Expense(TimestampMixin, db.Model):
    __tablename__ = "expenses"
    label = "Expense"

    id = db.Column(db.Integer, primary_key=True)
    expense_date = db.Column(db.Date, nullable=False, index=True)
    description = db.Column(db.String(250), nullable=False)
    amount = db.Column(MONEY, nullable=False)
    category = db.Column(db.String(120), nullable=False, index=True)
    payment_type = db.Column(PAYMENT_TYPE, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "expenseDate": _iso(self.expense_date),
            "description": self.description,
            "amount": format_money(self.amount),
            "category": self.category,
            "paymentType": self.payment_type.value,
            "notes": self.notes,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Expense {self.id} {self.description} amount={self.amount}>"


# (table, column) -> message for every unique column
UNIQUE_MESSAGES = {
    ("brands", "name"): "A brand with this name already exists.",
    ("categories", "name"): "A category with this name already exists.",
    ("products", "sku"): "A product with this SKU already exists.",
    ("clients", "email"): "A client with this email already exists.",
    ("sellers", "name"): "A seller with this name already exists.",
    ("sellers", "email"): "A seller with this email already exists.",
    ("suppliers", "name"): "A supplier with this name already exists.",
}
