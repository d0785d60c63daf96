# dashboard/services.py
"""
Dashboard overview.

Everything the home page shows in one payload:
- totals: invoice, customer and product counts, inventory value
- invoiceStats: billed, paid, overdue, pending and outstanding amounts,
  plus the 6 most recent invoices
- charts: invoiced/paid/pending per month for the last 12 months,
  top 6 products by invoiced revenue
- growth: this month against last month

Outstanding balances ignore PAID and CANCELLED invoices. Pending is the
outstanding balance of SENT and PARTIAL invoices.
"""

import datetime
from decimal import Decimal

from django.conf import settings
from django.db.models import Count, DecimalField, ExpressionWrapper, F, Sum
from django.db.models.functions import Coalesce, TruncMonth
from django.utils import timezone

from accounting.money import ZERO, money
from customers.models import Customer
from inventory.models import Product
from inventory.stock import inventory_value
from invoicing.models import Invoice, InvoiceItem
from ops import cache as ops_cache
from ops.retry import retry_on_db_error

RECENT_INVOICES = 6
TOP_PRODUCTS = 6
CHART_MONTHS = 12

PENDING_STATUSES = {Invoice.Status.SENT, Invoice.Status.PARTIAL}
SETTLED_STATUSES = {Invoice.Status.PAID, Invoice.Status.CANCELLED}

AMOUNT = DecimalField(max_digits=16, decimal_places=2)


def month_start(day: datetime.date, offset: int = 0) -> datetime.date:
    """First day of the month ``offset`` months away from ``day``'s month."""
    index = day.year * 12 + (day.month - 1) + offset
    return datetime.date(index // 12, index % 12 + 1, 1)


def growth_percent(current, previous) -> float:
    """Month-over-month change; 100 when last month was zero and this month isn't."""
    current = Decimal(current)
    previous = Decimal(previous)
    if previous == 0:
        return 100.0 if current else 0.0
    return round(float((current - previous) / previous * 100), 1)


def _balance(total, paid) -> Decimal:
    return max(money(total - paid), ZERO)


def _invoice_stats(invoices) -> dict:
    sums = invoices.aggregate(amount=Coalesce(Sum("total"), ZERO), paid=Coalesce(Sum("paid_amount"), ZERO))
    overdue = pending = outstanding = ZERO
    groups = invoices.values("status").annotate(
        total=Coalesce(Sum("total"), ZERO),
        paid=Coalesce(Sum("paid_amount"), ZERO),
    )
    for group in groups:
        balance = _balance(group["total"], group["paid"])
        if group["status"] == Invoice.Status.OVERDUE:
            overdue += balance
        if group["status"] in PENDING_STATUSES:
            pending += balance
        if group["status"] not in SETTLED_STATUSES:
            outstanding += balance

    recent = invoices.select_related("customer").order_by("-issue_date", "-id")[:RECENT_INVOICES]
    return {
        "amount": money(sums["amount"]),
        "paid": money(sums["paid"]),
        "overdue": overdue,
        "pending": pending,
        "outstanding": outstanding,
        "recent": [
            {
                "id": invoice.id,
                "number": invoice.invoice_number,
                "customerName": invoice.customer.name if invoice.customer_id else "Unknown customer",
                "amount": invoice.total,
                "status": invoice.status,
                "issuedOn": invoice.issue_date.isoformat(),
            }
            for invoice in recent
        ],
    }


def _monthly_revenue(invoices, today) -> list[dict]:
    first = month_start(today, -(CHART_MONTHS - 1))
    rows = (
        invoices.filter(issue_date__gte=first)
        .annotate(month=TruncMonth("issue_date"))
        .values("month")
        .annotate(revenue=Coalesce(Sum("total"), ZERO), paid=Coalesce(Sum("paid_amount"), ZERO))
    )
    by_month = {}
    for row in rows:
        month = row["month"]
        if isinstance(month, datetime.datetime):
            month = month.date()
        by_month[month] = row

    chart = []
    for offset in range(CHART_MONTHS):
        month = month_start(first, offset)
        row = by_month.get(month)
        revenue = money(row["revenue"]) if row else ZERO
        paid = money(row["paid"]) if row else ZERO
        chart.append({
            "month": month.strftime("%b %Y"),
            "revenue": revenue,
            "paid": paid,
            "pending": max(revenue - paid, ZERO),
        })
    return chart


def _top_products(company) -> list[dict]:
    rows = (
        InvoiceItem.objects.filter(invoice__company=company, product__isnull=False)
        .values("product__name")
        .annotate(revenue=Sum(ExpressionWrapper(F("quantity") * F("unit_price"), output_field=AMOUNT)))
        .order_by("-revenue")[:TOP_PRODUCTS]
    )
    return [{"name": row["product__name"], "revenue": money(row["revenue"])} for row in rows]


def _month_figures(company, invoices, start, end) -> dict:
    month_invoices = invoices.filter(issue_date__gte=start, issue_date__lt=end).aggregate(
        count=Count("id"),
        revenue=Coalesce(Sum("total"), ZERO),
    )
    return {
        "invoices": month_invoices["count"],
        "customers": Customer.objects.filter(company=company, created_at__date__gte=start, created_at__date__lt=end).count(),
        "products": Product.objects.filter(company=company, created_at__date__gte=start, created_at__date__lt=end).count(),
        "revenue": money(month_invoices["revenue"]),
    }


def _growth(company, invoices, today) -> dict:
    current_start = month_start(today)
    previous_start = month_start(today, -1)
    next_start = month_start(today, 1)

    current = _month_figures(company, invoices, current_start, next_start)
    previous = _month_figures(company, invoices, previous_start, current_start)
    return {
        "currentMonth": current,
        "previousMonth": previous,
        "percent": {key: growth_percent(current[key], previous[key]) for key in current},
    }


@retry_on_db_error
def compute_overview(company, today=None) -> dict:
    today = today or timezone.localdate()
    invoices = Invoice.objects.filter(company=company)

    return {
        "totals": {
            "invoices": invoices.count(),
            "customers": Customer.objects.filter(company=company).count(),
            "products": Product.objects.filter(company=company).count(),
            "inventoryValue": inventory_value(company),
        },
        "invoiceStats": _invoice_stats(invoices),
        "charts": {
            "monthlyRevenue": _monthly_revenue(invoices, today),
            "topProducts": _top_products(company),
        },
        "growth": _growth(company, invoices, today),
    }


def overview(company) -> dict:
    """Cached per company; invoice, receipt, product and customer writes invalidate it."""
    return ops_cache.cached(
        company.id,
        ops_cache.DASHBOARD,
        lambda: compute_overview(company),
        "overview",
        timeout=settings.DASHBOARD_CACHE_TIMEOUT,
    )
