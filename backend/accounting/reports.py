# accounting/reports.py
"""
Financial reports computed from journal lines.

All reports take an optional date range (inclusive) on the entry date.
Reversed entries stay in the ledger together with their reversal, so the
two cancel out and no status filter is needed.
"""

from datetime import date

from django.db.models import Q, Sum
from django.db.models.functions import Coalesce

from accounting.models import Account, BankAccount, JournalLine
from accounting.money import ZERO, money


def _lines(company, start=None, end=None):
    qs = JournalLine.objects.filter(company=company)
    if start:
        qs = qs.filter(entry__date__gte=start)
    if end:
        qs = qs.filter(entry__date__lte=end)
    return qs


def account_totals(company, start=None, end=None) -> list[dict]:
    """Per-account debit and credit sums, ordered by code."""
    rows = (
        _lines(company, start, end)
        .values("account_id", "account__code", "account__name", "account__account_type")
        .annotate(
            total_debit=Coalesce(Sum("debit"), ZERO),
            total_credit=Coalesce(Sum("credit"), ZERO),
        )
        .order_by("account__code")
    )
    return [
        {
            "account_id": row["account_id"],
            "code": row["account__code"],
            "name": row["account__name"],
            "type": row["account__account_type"],
            "debit": money(row["total_debit"]),
            "credit": money(row["total_credit"]),
        }
        for row in rows
    ]


def trial_balance(company, start=None, end=None) -> dict:
    items = []
    total_debit = ZERO
    total_credit = ZERO
    for row in account_totals(company, start, end):
        row["balance"] = row["debit"] - row["credit"]
        items.append(row)
        total_debit += row["debit"]
        total_credit += row["credit"]

    return {
        "items": items,
        "totals": {"debit": total_debit, "credit": total_credit},
        "isBalanced": total_debit == total_credit,
    }


def profit_and_loss(company, start=None, end=None) -> dict:
    revenues = []
    expenses = []
    for row in account_totals(company, start, end):
        if row["type"] == Account.AccountType.REVENUE:
            revenues.append({**row, "amount": row["credit"] - row["debit"]})
        elif row["type"] == Account.AccountType.EXPENSE:
            expenses.append({**row, "amount": row["debit"] - row["credit"]})

    total_revenue = sum((r["amount"] for r in revenues), ZERO)
    total_expense = sum((e["amount"] for e in expenses), ZERO)
    return {
        "revenues": revenues,
        "expenses": expenses,
        "totals": {
            "revenue": total_revenue,
            "expense": total_expense,
            "netIncome": total_revenue - total_expense,
        },
    }


def balance_sheet(company, as_of: date = None) -> dict:
    """
    Assets, liabilities and equity as of a date.

    Revenue and expense accounts are not closed into retained earnings by
    a period-end entry, so their net is reported as current earnings
    inside equity; this keeps assets = liabilities + equity.
    """
    assets, liabilities, equity = [], [], []
    current_earnings = ZERO

    for row in account_totals(company, end=as_of):
        account_type = row["type"]
        if account_type == Account.AccountType.ASSET:
            assets.append({**row, "balance": row["debit"] - row["credit"]})
        elif account_type == Account.AccountType.LIABILITY:
            liabilities.append({**row, "balance": row["credit"] - row["debit"]})
        elif account_type == Account.AccountType.EQUITY:
            equity.append({**row, "balance": row["credit"] - row["debit"]})
        else:
            current_earnings += row["credit"] - row["debit"]

    total_assets = sum((a["balance"] for a in assets), ZERO)
    total_liabilities = sum((a["balance"] for a in liabilities), ZERO)
    total_equity = sum((a["balance"] for a in equity), ZERO) + current_earnings

    return {
        "asOf": as_of,
        "assets": assets,
        "liabilities": liabilities,
        "equity": equity,
        "currentEarnings": current_earnings,
        "totals": {
            "assets": total_assets,
            "liabilities": total_liabilities,
            "equity": total_equity,
            "liabilitiesAndEquity": total_liabilities + total_equity,
        },
        "isBalanced": total_assets == total_liabilities + total_equity,
    }


def cash_account_ids(company) -> set:
    """GL accounts linked to bank accounts, plus asset accounts that look like cash."""
    ids = set(
        BankAccount.objects.filter(company=company, gl_account__isnull=False)
        .values_list("gl_account_id", flat=True)
    )
    ids |= set(
        Account.objects.filter(company=company, account_type=Account.AccountType.ASSET)
        .filter(Q(name__icontains="cash") | Q(name__icontains="bank") | Q(code="1000"))
        .values_list("id", flat=True)
    )
    return ids


def cash_flow(company, start=None, end=None) -> dict:
    """Opening balance, inflows, outflows and closing balance per cash account."""
    ids = cash_account_ids(company)
    if not ids:
        return {"items": [], "totals": {"opening": ZERO, "inflow": ZERO, "outflow": ZERO, "closing": ZERO}}

    opening_by_account = {}
    if start:
        opening_rows = (
            JournalLine.objects.filter(company=company, account_id__in=ids, entry__date__lt=start)
            .values("account_id")
            .annotate(d=Coalesce(Sum("debit"), ZERO), c=Coalesce(Sum("credit"), ZERO))
        )
        opening_by_account = {r["account_id"]: r["d"] - r["c"] for r in opening_rows}

    period_rows = (
        _lines(company, start, end)
        .filter(account_id__in=ids)
        .values("account_id")
        .annotate(d=Coalesce(Sum("debit"), ZERO), c=Coalesce(Sum("credit"), ZERO))
    )
    period_by_account = {r["account_id"]: (r["d"], r["c"]) for r in period_rows}

    items = []
    totals = {"opening": ZERO, "inflow": ZERO, "outflow": ZERO, "closing": ZERO}
    for account in Account.objects.filter(id__in=ids).order_by("code"):
        opening = money(opening_by_account.get(account.id, ZERO))
        inflow, outflow = period_by_account.get(account.id, (ZERO, ZERO))
        inflow, outflow = money(inflow), money(outflow)
        closing = opening + inflow - outflow
        items.append({
            "account_id": account.id,
            "code": account.code,
            "name": account.name,
            "opening": opening,
            "inflow": inflow,
            "outflow": outflow,
            "net": inflow - outflow,
            "closing": closing,
        })
        for key in totals:
            totals[key] += items[-1][key]

    return {"items": items, "totals": totals}


def accounting_dashboard(company, today: date = None) -> dict:
    """Headline numbers for the accounting landing page."""
    from django.utils import timezone

    from invoicing.models import Invoice, InvoicePayment
    from receipts.models import Receipt
    from accounting.models import Expense

    today = today or timezone.localdate()
    month_start = today.replace(day=1)

    open_invoices = Invoice.objects.filter(
        company=company,
        status__in=[
            Invoice.Status.DRAFT,
            Invoice.Status.SENT,
            Invoice.Status.PARTIAL,
            Invoice.Status.OVERDUE,
        ],
    ).aggregate(total=Coalesce(Sum("total"), ZERO), paid=Coalesce(Sum("paid_amount"), ZERO))

    receipts_month = Receipt.objects.filter(
        company=company, receipt_date__date__gte=month_start, receipt_date__date__lte=today,
    ).aggregate(total=Coalesce(Sum("total"), ZERO))["total"]
    payments_month = InvoicePayment.objects.filter(
        company=company, paid_at__date__gte=month_start, paid_at__date__lte=today,
    ).aggregate(total=Coalesce(Sum("amount"), ZERO))["total"]

    cash = JournalLine.objects.filter(
        company=company, account_id__in=cash_account_ids(company),
    ).aggregate(d=Coalesce(Sum("debit"), ZERO), c=Coalesce(Sum("credit"), ZERO))

    expenses_month = Expense.objects.filter(
        company=company, date__gte=month_start, date__lte=today,
    ).aggregate(total=Coalesce(Sum("total"), ZERO))["total"]

    return {
        "accountsReceivableTotal": money(open_invoices["total"] - open_invoices["paid"]),
        "revenueMonth": money(receipts_month + payments_month),
        "cashBalance": money(cash["d"] - cash["c"]),
        "expensesMonth": money(expenses_month),
    }
