from datetime import date, datetime
from decimal import Decimal

import pytest

from shopdesk import reports
from shopdesk.inventory import LineItem, create_sale
from shopdesk.models import Expense, PaymentType, Sale


@pytest.fixture
def march_sales(db, catalog, make_product):
    """Two sales and one expense in March 2026, one sale in February."""
    hammer = make_product(name="Hammer", stock=50, price_purchase="4.00", min_alert=60)
    saw = make_product(name="Saw", stock=50, price_purchase="10.00")

    def sell(when, *lines):
        sale = create_sale(seller_id=catalog["seller"].id, payment_type="CASH", items=list(lines))
        db.session.get(Sale, sale.id).sale_date = when
        db.session.commit()

    sell(datetime(2026, 3, 2, 10, 0), LineItem(hammer.id, 3, Decimal("6.50")), LineItem(saw.id, 1, Decimal("15.00")))
    sell(datetime(2026, 3, 31, 23, 30), LineItem(saw.id, 2, Decimal("15.00")))
    sell(datetime(2026, 2, 27, 9, 0), LineItem(hammer.id, 10, Decimal("6.00")))

    db.session.add(Expense(
        expense_date=date(2026, 3, 15), description="Rent", amount=Decimal("20.25"),
        category="Premises", payment_type=PaymentType.TRANSFER,
    ))
    db.session.commit()
    return {"hammer": hammer, "saw": saw}


def test_financial_summary_for_a_month(march_sales):
    summary = reports.financial_summary(date(2026, 3, 1), date(2026, 3, 31))

    # revenue 19.50 + 15.00 + 30.00, cost 3 x 4.00 + 3 x 10.00
    assert summary.total_revenue == Decimal("64.50")
    assert summary.total_cogs == Decimal("42.00")
    assert summary.total_expenses == Decimal("20.25")
    assert summary.gross_profit == Decimal("22.50")
    assert summary.net_profit == Decimal("2.25")
    assert summary.month == "2026-03"
    assert summary.to_dict()["totalCOGS"] == "42.00"


def test_monthly_summaries_most_recent_first(march_sales):
    summaries = reports.monthly_summaries(3, today=date(2026, 3, 10))

    assert [s.month for s in summaries] == ["2026-03", "2026-02", "2026-01"]
    assert summaries[1].total_revenue == Decimal("60.00")
    assert summaries[2].total_revenue == Decimal("0")


def test_top_selling_products(march_sales):
    rows = reports.top_selling_products(limit=5, days=30, today=date(2026, 3, 31))
    # tie on quantity falls back to name order
    assert rows == [("Hammer", 3), ("Saw", 3)]

    rows = reports.top_selling_products(limit=1, days=5, today=date(2026, 3, 31))
    assert rows == [("Saw", 2)]


def test_counts_and_products_per_category(march_sales, catalog):
    counts = reports.counts()
    assert counts == {
        "products": 2,
        "clients": 1,
        "brands": 1,
        "categories": 1,
        "lowStockProducts": 1,
    }
    assert reports.products_per_category() == [("Tools", 2)]


def test_month_range_handles_december():
    assert reports.month_range(2025, 12) == (date(2025, 12, 1), date(2025, 12, 31))
    assert reports.month_range(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))


def test_dashboard_endpoints(client, march_sales):
    body = client.get("/api/dashboard/summary?startDate=2026-03-01&endDate=2026-03-31").get_json()
    assert body["counts"]["products"] == 2
    assert body["financial"]["netProfit"] == "2.25"

    per_category = client.get("/api/dashboard/products-per-category").get_json()
    assert per_category == [{"name": "Tools", "productCount": 2}]

    assert client.get("/api/dashboard/top-products?limit=0").status_code == 400
    assert client.get("/api/dashboard/monthly?months=2").status_code == 200
    assert len(client.get("/api/dashboard/monthly?months=2").get_json()) == 2
