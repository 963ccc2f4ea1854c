"""Dashboard figures: counts, best sellers and profit summaries."""
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from shopdesk import db
from shopdesk.models import Brand, Category, Client, Product, Sale, SaleItem, Expense, format_money
from shopdesk.queries import day_bounds

ZERO = Decimal("0")


@dataclass(frozen=True)
class FinancialSummary:
    start_date: date
    end_date: date
    total_revenue: Decimal
    total_cogs: Decimal
    total_expenses: Decimal

    @property
    def gross_profit(self):
        return self.total_revenue - self.total_cogs

    @property
    def net_profit(self):
        return self.gross_profit - self.total_expenses

    @property
    def month(self):
        return self.start_date.strftime("%Y-%m")

    def to_dict(self):
        return {
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "totalRevenue": format_money(self.total_revenue),
            "totalCOGS": format_money(self.total_cogs),
            "totalExpenses": format_money(self.total_expenses),
            "grossProfit": format_money(self.gross_profit),
            "netProfit": format_money(self.net_profit),
        }


def _decimal(value):
    return Decimal(str(value)) if value is not None else ZERO


def month_range(year, month):
    start = date(year, month, 1)
    next_month = date(year + (month == 12), month % 12 + 1, 1)
    return start, next_month - timedelta(days=1)


def counts():
    def _count(model):
        return db.session.scalar(db.select(db.func.count(model.id))) or 0

    low_stock = db.session.scalar(
        db.select(db.func.count(Product.id)).where(
            Product.stock_min_alert.is_not(None),
            Product.quantity_stock < Product.stock_min_alert
        )
    ) or 0

    return {
        "products": _count(Product),
        "clients": _count(Client),
        "brands": _count(Brand),
        "categories": _count(Category),
        "lowStockProducts": low_stock,
    }


def products_per_category():
    """[(category name, product count)] for categories that have products."""
    rows = db.session.execute(
        db.select(Category.name, db.func.count(Product.id))
        .join(Product, Product.category_id == Category.id)
        .group_by(Category.id, Category.name)
        .order_by(Category.name.asc())
    ).all()
    return [(name, count) for name, count in rows if count > 0]


def top_selling_products(limit=5, days=30, today=None):
    today = today or date.today()
    start, end = day_bounds(today - timedelta(days=days), today)
    total_sold = db.func.sum(SaleItem.quantity).label("total_sold")

    rows = db.session.execute(
        db.select(Product.name, total_sold)
        .join(SaleItem, SaleItem.product_id == Product.id)
        .join(Sale, Sale.id == SaleItem.sale_id)
        .where(Sale.sale_date >= start, Sale.sale_date < end)
        .group_by(Product.id, Product.name)
        .order_by(total_sold.desc(), Product.name.asc())
        .limit(limit)
    ).all()
    return [(name, int(quantity or 0)) for name, quantity in rows]


def financial_summary(start_date=None, end_date=None):
    """
    Revenue, cost of goods sold and expenses for an inclusive date range.

    COGS uses the purchase cost captured on each sale line, so later cost
    changes do not rewrite past margins. Defaults to the current month.
    """
    if start_date is None or end_date is None:
        today = date.today()
        default_start, default_end = month_range(today.year, today.month)
        start_date = start_date or default_start
        end_date = end_date or default_end

    start, end = day_bounds(start_date, end_date)

    revenue = db.session.scalar(
        db.select(db.func.sum(Sale.total_amount))
        .where(Sale.sale_date >= start, Sale.sale_date < end)
    )

    # summed in Python to keep exact decimals on every backend
    cost_rows = db.session.execute(
        db.select(SaleItem.quantity, SaleItem.purchase_price_at_sale)
        .join(Sale, Sale.id == SaleItem.sale_id)
        .where(Sale.sale_date >= start, Sale.sale_date < end)
    ).all()
    cogs = sum((_decimal(cost) * quantity for quantity, cost in cost_rows), ZERO)

    expenses = db.session.scalar(
        db.select(db.func.sum(Expense.amount))
        .where(Expense.expense_date >= start_date, Expense.expense_date <= end_date)
    )

    return FinancialSummary(
        start_date=start_date,
        end_date=end_date,
        total_revenue=_decimal(revenue),
        total_cogs=cogs,
        total_expenses=_decimal(expenses),
    )


def monthly_summaries(months=6, today=None):
    """One FinancialSummary per calendar month, most recent first."""
    today = today or date.today()
    summaries = []
    year, month = today.year, today.month
    for _ in range(months):
        start_date, end_date = month_range(year, month)
        summaries.append(financial_summary(start_date, end_date))
        year, month = (year - 1, 12) if month == 1 else (year, month - 1)
    return summaries