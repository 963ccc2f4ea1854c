from flask import Blueprint, jsonify, request
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from shopdesk import db
from shopdesk.catalog import (
    get_entity, create_entity, update_entity,
    delete_brand, delete_category, delete_client, delete_seller,
    delete_supplier, delete_product, delete_expense
)
from shopdesk.errors import ServiceError, ValidationError
from shopdesk.forms import (
    validate_payload,
    BrandForm, CategoryForm, ProductForm, ClientForm, SellerForm,
    SupplierForm, ExpenseForm, SaleForm, PurchaseForm
)
from shopdesk.inventory import (
    parse_line_items, create_sale, get_sale, delete_sale,
    create_purchase, get_purchase
)
from shopdesk.logger import get_logger
from shopdesk.models import Brand, Category, Product, Client, Seller, Supplier, Expense
from shopdesk.transaction import conflict_message
from shopdesk import queries, reports

logger = get_logger(__name__)


# -----------------------
# Blueprints
# -----------------------
api_bp = Blueprint("api", __name__, url_prefix="/api")
dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


# -----------------------
# Helpers
# -----------------------
def _payload():
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object.")
    return payload


def _int_arg(name, default, minimum=1, maximum=None):
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return default
    if not raw.isdigit() or int(raw) < minimum or (maximum is not None and int(raw) > maximum):
        raise ValidationError(f"Invalid {name}.", {"field": name})
    return int(raw)


def _not_implemented(what):
    return jsonify({"message": f"Updating or deleting a {what} is not implemented."}), 501


def register_crud(resource, model, form_cls, filters_cls, list_fn, delete_fn):
    """
    Collection + item endpoints for a plain entity:

        GET/POST        /api/<resource>
        GET/PUT/DELETE  /api/<resource>/<id>
    """
    def list_view():
        items = list_fn(filters_cls.from_args(request.args))
        return jsonify([item.to_dict() for item in items])

    def create_view():
        form = validate_payload(form_cls, _payload())
        instance = create_entity(model, form.values())
        return jsonify(instance.to_dict()), 201

    def detail_view(entity_id):
        return jsonify(get_entity(model, entity_id).to_dict())

    def update_view(entity_id):
        form = validate_payload(form_cls, _payload())
        instance = update_entity(model, entity_id, form.values())
        return jsonify(instance.to_dict())

    def delete_view(entity_id):
        delete_fn(entity_id)
        return "", 204

    api_bp.add_url_rule(f"/{resource}", f"{resource}_list", list_view, methods=["GET"])
    api_bp.add_url_rule(f"/{resource}", f"{resource}_create", create_view, methods=["POST"])
    api_bp.add_url_rule(f"/{resource}/<int:entity_id>", f"{resource}_detail", detail_view, methods=["GET"])
    api_bp.add_url_rule(f"/{resource}/<int:entity_id>", f"{resource}_update", update_view, methods=["PUT"])
    api_bp.add_url_rule(f"/{resource}/<int:entity_id>", f"{resource}_delete", delete_view, methods=["DELETE"])


# -----------------------
# Catalog / contacts / expenses
# -----------------------
register_crud("brands", Brand, BrandForm, queries.NameFilters, queries.list_brands, delete_brand)
register_crud("categories", Category, CategoryForm, queries.NameFilters, queries.list_categories, delete_category)
register_crud("products", Product, ProductForm, queries.ProductFilters, queries.list_products, delete_product)
register_crud("clients", Client, ClientForm, queries.SearchFilters, queries.list_clients, delete_client)
register_crud("sellers", Seller, SellerForm, queries.SellerFilters, queries.list_sellers, delete_seller)
register_crud("suppliers", Supplier, SupplierForm, queries.SearchFilters, queries.list_suppliers, delete_supplier)
register_crud("expenses", Expense, ExpenseForm, queries.ExpenseFilters, queries.list_expenses, delete_expense)


@api_bp.route("/brands/<int:brand_id>/products", methods=["GET"])
def brand_products(brand_id):
    get_entity(Brand, brand_id)
    products = queries.list_products(queries.ProductFilters(brand_id=brand_id))
    return jsonify([p.to_dict() for p in products])


@api_bp.route("/categories/<int:category_id>/products", methods=["GET"])
def category_products(category_id):
    get_entity(Category, category_id)
    products = queries.list_products(queries.ProductFilters(category_id=category_id))
    return jsonify([p.to_dict() for p in products])


@api_bp.route("/clients/<int:client_id>/sales", methods=["GET"])
def client_sales(client_id):
    get_entity(Client, client_id)
    sales = queries.list_sales(queries.SaleFilters(client_id=client_id))
    return jsonify([s.to_dict() for s in sales])


@api_bp.route("/sellers/<int:seller_id>/sales", methods=["GET"])
def seller_sales(seller_id):
    get_entity(Seller, seller_id)
    sales = queries.list_sales(queries.SaleFilters(seller_id=seller_id))
    return jsonify([s.to_dict() for s in sales])


# -----------------------
# Sales
# -----------------------
@api_bp.route("/sales", methods=["GET"])
def sales_list():
    sales = queries.list_sales(queries.SaleFilters.from_args(request.args))
    return jsonify([s.to_dict() for s in sales])


@api_bp.route("/sales", methods=["POST"])
def sales_create():
    payload = _payload()
    form = validate_payload(SaleForm, payload)
    lines = parse_line_items(payload.get("items"), "priceAtSale")

    sale = create_sale(
        seller_id=form.seller_id.data,
        payment_type=form.payment_type.data,
        items=lines,
        client_id=form.client_id.data,
        notes=form.notes.data,
        discount_code=form.discount_code_applied.data,
    )
    return jsonify(sale.to_dict()), 201


@api_bp.route("/sales/<int:sale_id>", methods=["GET"])
def sales_detail(sale_id):
    return jsonify(get_sale(sale_id).to_dict())


@api_bp.route("/sales/<int:sale_id>", methods=["PUT"])
def sales_update(sale_id):
    return _not_implemented("sale")


@api_bp.route("/sales/<int:sale_id>", methods=["DELETE"])
def sales_delete(sale_id):
    delete_sale(sale_id)
    return "", 204


# -----------------------
# Purchases
# -----------------------
@api_bp.route("/purchases", methods=["GET"])
def purchases_list():
    purchases = queries.list_purchases(queries.PurchaseFilters.from_args(request.args))
    return jsonify([p.to_dict() for p in purchases])


@api_bp.route("/purchases", methods=["POST"])
def purchases_create():
    payload = _payload()
    form = validate_payload(PurchaseForm, payload)
    lines = parse_line_items(payload.get("items"), "purchasePrice")

    purchase = create_purchase(
        supplier_id=form.supplier_id.data,
        items=lines,
        status=form.status.data or None,
        invoice_number=form.invoice_number.data,
        notes=form.notes.data,
    )
    return jsonify(purchase.to_dict()), 201


@api_bp.route("/purchases/<int:purchase_id>", methods=["GET"])
def purchases_detail(purchase_id):
    return jsonify(get_purchase(purchase_id).to_dict())


@api_bp.route("/purchases/<int:purchase_id>", methods=["PUT", "DELETE"])
def purchases_modify(purchase_id):
    return _not_implemented("purchase")


# -----------------------
# Dashboard
# -----------------------
@dashboard_bp.route("/summary", methods=["GET"])
def dashboard_summary():
    period = queries.DateRange.from_args(request.args)
    summary = reports.financial_summary(period.start_date, period.end_date)
    return jsonify({"counts": reports.counts(), "financial": summary.to_dict()})


@dashboard_bp.route("/top-products", methods=["GET"])
def dashboard_top_products():
    limit = _int_arg("limit", 5, maximum=100)
    days = _int_arg("days", 30, maximum=3650)
    rows = reports.top_selling_products(limit=limit, days=days)
    return jsonify([{"productName": name, "totalSold": total} for name, total in rows])


@dashboard_bp.route("/products-per-category", methods=["GET"])
def dashboard_products_per_category():
    rows = reports.products_per_category()
    return jsonify([{"name": name, "productCount": count} for name, count in rows])


@dashboard_bp.route("/monthly", methods=["GET"])
def dashboard_monthly():
    months = _int_arg("months", 6, maximum=36)
    summaries = reports.monthly_summaries(months)
    return jsonify([{"month": s.month, **s.to_dict()} for s in summaries])


# -----------------------
# Errors
# -----------------------
def register_error_handlers(app):
    @app.errorhandler(ServiceError)
    def handle_service_error(err):
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err):
        db.session.rollback()
        logger.warning("integrity violation: %s", err.orig)
        return jsonify({"message": conflict_message(err)}), 409

    @app.errorhandler(HTTPException)
    def handle_http_error(err):
        return jsonify({"message": err.description}), err.code

    @app.errorhandler(Exception)
    def handle_unexpected(err):
        db.session.rollback()
        logger.exception("unhandled error on %s %s", request.method, request.path)
        return jsonify({"message": f"Unexpected error: {err}"}), 500
