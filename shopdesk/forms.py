from flask_wtf import FlaskForm
from werkzeug.datastructures import ImmutableMultiDict
from wtforms import StringField, TextAreaField, DecimalField, IntegerField, BooleanField, DateField
from wtforms.validators import (
    DataRequired, InputRequired, Optional, Length, NumberRange, AnyOf, Regexp, StopValidation,
    ValidationError as FieldError
)

from shopdesk.errors import ValidationError
from shopdesk.models import PaymentType, PurchaseStatus, money_problem

PAYMENT_TYPES = [p.value for p in PaymentType]
PURCHASE_STATUSES = [s.value for s in PurchaseStatus]

EMAIL = Regexp(r"^[^@\s]+@[^@\s]+\.[^@\s]+$", message="Invalid email address.")


def _strip(value):
    return value.strip() if isinstance(value, str) else value


class Money:
    """
    Only amounts a money column stores exactly: finite, in range, at most
    four decimal places. Stops the chain so NaN never reaches a comparison.
    """

    def __call__(self, form, field):
        if field.data is None:
            return
        problem = money_problem(field.data)
        if problem:
            raise StopValidation(problem)


def json_formdata(payload):
    """
    Flatten a JSON object into form data.

    Scalars become strings so numbers reach DecimalField unchanged
    (0.1 stays "0.1", never a binary float). null drops the key,
    nested lists/objects are left to the caller.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object.")

    data = {}
    for key, value in payload.items():
        if value is None or isinstance(value, (list, dict)):
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        data[key] = str(value)
    return ImmutableMultiDict(data)


def validate_payload(form_cls, payload):
    """Bind a JSON payload to form_cls, raise ValidationError on the first failing field."""
    form = form_cls(formdata=json_formdata(payload))
    if not form.validate():
        attr, messages = next(iter(form.errors.items()))
        raise ValidationError(f"{form[attr].name}: {messages[0]}", {"field": form[attr].name})
    return form


class ApiForm(FlaskForm):
    class Meta:
        csrf = False

    def values(self):
        """Field data keyed by model attribute, blanks as None."""
        return {name: (None if value == "" else value) for name, value in self.data.items()}


class BrandForm(ApiForm):
    name = StringField("Name", filters=[_strip], validators=[DataRequired(), Length(max=128)])
    logo_url = StringField("Logo", name="logoUrl", filters=[_strip], validators=[Optional(), Length(max=250)])


class CategoryForm(ApiForm):
    name = StringField("Name", filters=[_strip], validators=[DataRequired(), Length(max=128)])
    logo_url = StringField("Logo", name="logoUrl", filters=[_strip], validators=[Optional(), Length(max=250)])


class ProductForm(ApiForm):
    name = StringField("Name", filters=[_strip], validators=[DataRequired(), Length(max=160)])
    sku = StringField("SKU", filters=[_strip], validators=[Optional(), Length(max=64)])
    description = TextAreaField("Description", filters=[_strip], validators=[Optional()])

    price_purchase = DecimalField(
        "Purchase price", name="pricePurchase",
        validators=[Optional(), Money(), NumberRange(min=0)]
    )
    price_sale = DecimalField(
        "Sale price", name="priceSale",
        validators=[InputRequired(), Money(), NumberRange(min=0)]
    )

    quantity_stock = IntegerField(
        "Stock", name="quantityStock",
        validators=[InputRequired(), NumberRange(min=0)]
    )
    stock_min_alert = IntegerField(
        "Minimum stock alert", name="stockMinAlert",
        validators=[Optional(), NumberRange(min=0)]
    )

    brand_id = IntegerField("Brand", name="brandId", validators=[InputRequired()])
    category_id = IntegerField("Category", name="categoryId", validators=[InputRequired()])


class ClientForm(ApiForm):
    first_name = StringField("First name", name="firstName", filters=[_strip], validators=[DataRequired(), Length(max=120)])
    last_name = StringField("Last name", name="lastName", filters=[_strip], validators=[Optional(), Length(max=120)])
    email = StringField("Email", filters=[_strip], validators=[Optional(), Length(max=120), EMAIL])
    phone = StringField("Phone", filters=[_strip], validators=[Optional(), Length(max=40)])
    address = StringField("Address", filters=[_strip], validators=[Optional(), Length(max=250)])
    notes = TextAreaField("Notes", filters=[_strip], validators=[Optional()])


class SellerForm(ApiForm):
    name = StringField("Name", filters=[_strip], validators=[DataRequired(), Length(max=120)])
    email = StringField("Email", filters=[_strip], validators=[Optional(), Length(max=120), EMAIL])
    phone = StringField("Phone", filters=[_strip], validators=[Optional(), Length(max=40)])
    is_active = BooleanField("Active", name="isActive")

    def validate_is_active(self, field):
        # absent means active; anything but a JSON boolean is rejected
        if not field.raw_data:
            field.data = True
        elif field.raw_data[0] not in ("true", "false"):
            raise FieldError("Must be a boolean.")


class SupplierForm(ApiForm):
    name = StringField("Name", filters=[_strip], validators=[DataRequired(), Length(max=160)])
    contact_person = StringField("Contact", name="contactPerson", filters=[_strip], validators=[Optional(), Length(max=120)])
    email = StringField("Email", filters=[_strip], validators=[Optional(), Length(max=120), EMAIL])
    phone = StringField("Phone", filters=[_strip], validators=[Optional(), Length(max=40)])
    address = StringField("Address", filters=[_strip], validators=[Optional(), Length(max=250)])
    notes = TextAreaField("Notes", filters=[_strip], validators=[Optional()])


class ExpenseForm(ApiForm):
    description = StringField("Description", filters=[_strip], validators=[DataRequired(), Length(max=250)])
    amount = DecimalField("Amount", validators=[InputRequired(), Money()])
    category = StringField("Category", filters=[_strip], validators=[DataRequired(), Length(max=120)])
    payment_type = StringField(
        "Payment type", name="paymentType",
        validators=[DataRequired(), AnyOf(PAYMENT_TYPES, message="Invalid payment type.")]
    )
    expense_date = DateField("Date", name="expenseDate", validators=[Optional()])
    notes = TextAreaField("Notes", filters=[_strip], validators=[Optional()])

    def validate_amount(self, field):
        if field.data is not None and field.data <= 0:
            raise FieldError("Amount must be greater than zero.")


class SaleForm(ApiForm):
    """Sale header; the line items travel separately."""
    seller_id = IntegerField("Seller", name="sellerId", validators=[InputRequired()])
    client_id = IntegerField("Client", name="clientId", validators=[Optional()])
    payment_type = StringField(
        "Payment type", name="paymentType",
        validators=[DataRequired(), AnyOf(PAYMENT_TYPES, message="Invalid payment type.")]
    )
    notes = TextAreaField("Notes", filters=[_strip], validators=[Optional()])
    discount_code_applied = StringField(
        "Discount code", name="discountCodeApplied",
        filters=[_strip], validators=[Optional(), Length(max=64)]
    )


class PurchaseForm(ApiForm):
    supplier_id = IntegerField("Supplier", name="supplierId", validators=[InputRequired()])
    status = StringField(
        "Status",
        validators=[Optional(), AnyOf(PURCHASE_STATUSES, message="Invalid purchase status.")]
    )
    invoice_number = StringField(
        "Invoice", name="invoiceNumber",
        filters=[_strip], validators=[Optional(), Length(max=64)]
    )
    notes = TextAreaField("Notes", filters=[_strip], validators=[Optional()])
