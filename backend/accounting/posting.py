# accounting/posting.py
"""
Double-entry posting helpers.

Every automatic ledger write goes through ``post_entry``:
- at least two lines
- each line is one-sided (debit or credit) and non-negative
- total debit equals total credit

Accounts are looked up by code inside the company; a missing account
raises PostingError("Account {code} not found"). Callers that must not fail
because of the ledger (expenses, receipts) catch PostingError and log it.
"""

import logging
from dataclasses import dataclass
from datetime import date as date_cls
from decimal import Decimal
from typing import Optional

from django.db import transaction
from django.utils import timezone

from accounting import chart
from accounting.models import Account, JournalEntry, JournalLine
from accounting.money import ZERO, money
from accounting.sequences import next_company_sequence

logger = logging.getLogger(__name__)


class PostingError(Exception):
    """Raised when an entry cannot be posted."""
    pass


@dataclass
class Line:
    account: object  # Account or account code
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    description: str = ""


def find_account(company, code: str) -> Account:
    account = Account.objects.filter(company=company, code=code).first()
    if account is None:
        raise PostingError(f"Account {code} not found")
    return account


def _resolve(company, account) -> Account:
    if isinstance(account, Account):
        if account.company_id != company.id:
            raise PostingError(f"Account {account.code} not found")
        return account
    return find_account(company, str(account))


def next_entry_number(company) -> str:
    return f"JE-{next_company_sequence(company, 'journal_entry'):06d}"


@transaction.atomic
def post_entry(
    company,
    lines,
    memo: str = "",
    source: str = JournalEntry.Source.MANUAL,
    reference_id: str = "",
    entry_date: date_cls = None,
    user=None,
) -> JournalEntry:
    """Validate and write a POSTED journal entry."""
    resolved = []
    total_debit = ZERO
    total_credit = ZERO

    for i, line in enumerate(lines, start=1):
        debit = money(line.debit)
        credit = money(line.credit)
        if debit < 0 or credit < 0:
            raise PostingError(f"Line {i}: amounts cannot be negative.")
        if debit == 0 and credit == 0:
            continue
        if debit > 0 and credit > 0:
            raise PostingError(f"Line {i}: must have either debit or credit (not both).")
        resolved.append((_resolve(company, line.account), debit, credit, line.description))
        total_debit += debit
        total_credit += credit

    if len(resolved) < 2:
        raise PostingError("Journal entry must have at least 2 non-empty lines.")
    if total_debit != total_credit:
        raise PostingError(
            f"Journal entry must be balanced. Debit={total_debit}, Credit={total_credit}"
        )

    entry = JournalEntry.objects.create(
        company=company,
        entry_number=next_entry_number(company),
        date=entry_date or timezone.localdate(),
        memo=memo[:500],
        source=source,
        reference_id=str(reference_id or ""),
        status=JournalEntry.Status.POSTED,
        posted_at=timezone.now(),
        posted_by=user if (user is not None and getattr(user, "is_authenticated", False)) else None,
    )
    JournalLine.objects.bulk_create([
        JournalLine(
            entry=entry,
            company=company,
            line_no=line_no,
            account=account,
            description=description,
            debit=debit,
            credit=credit,
        )
        for line_no, (account, debit, credit, description) in enumerate(resolved, start=1)
    ])

    logger.info(
        "Journal entry posted",
        extra={
            "company_id": company.id,
            "entry_number": entry.entry_number,
            "source": source,
            "amount": str(total_debit),
        },
    )
    return entry


@transaction.atomic
def reverse_entry(entry: JournalEntry, memo: str = "", user=None) -> JournalEntry:
    """Post the mirror of ``entry`` and mark the original REVERSED."""
    entry = JournalEntry.objects.select_for_update().get(pk=entry.pk)
    if entry.status == JournalEntry.Status.REVERSED:
        raise PostingError(f"Entry {entry.entry_number} is already reversed.")
    if entry.source == JournalEntry.Source.REVERSAL:
        raise PostingError("A reversal entry cannot be reversed.")

    mirror = [
        Line(account=line.account, debit=line.credit, credit=line.debit, description=line.description)
        for line in entry.lines.select_related("account")
    ]
    reversal = post_entry(
        entry.company,
        mirror,
        memo=memo or f"Reversal of {entry.entry_number}",
        source=JournalEntry.Source.REVERSAL,
        reference_id=entry.reference_id,
        user=user,
    )
    reversal.reverses = entry
    reversal.save(update_fields=["reverses"])

    entry.status = JournalEntry.Status.REVERSED
    entry.save(update_fields=["status"])
    return reversal


# =============================================================================
# Document postings
# =============================================================================

def post_invoice_issued(invoice, user=None) -> Optional[JournalEntry]:
    """
    Dr Accounts Receivable total; Cr Sales Revenue (total - tax); Cr SST Payable tax.

    A zero-total invoice has nothing to post and returns None.
    """
    total = money(invoice.total)
    tax = money(invoice.tax_amount)
    if total == 0:
        return None
    lines = [
        Line(chart.ACCOUNTS_RECEIVABLE, debit=total, description=f"Invoice {invoice.invoice_number}"),
        Line(chart.SALES_REVENUE, credit=total - tax),
    ]
    if tax > 0:
        lines.append(Line(chart.SST_PAYABLE, credit=tax))
    return post_entry(
        invoice.company,
        lines,
        memo=f"Invoice {invoice.invoice_number} issued",
        source=JournalEntry.Source.INVOICE,
        reference_id=invoice.public_id,
        entry_date=invoice.issue_date,
        user=user,
    )


def post_invoice_payment(invoice, amount, user=None, entry_date=None) -> JournalEntry:
    """Dr Cash; Cr Accounts Receivable."""
    amount = money(amount)
    return post_entry(
        invoice.company,
        [
            Line(chart.CASH, debit=amount, description=f"Payment for {invoice.invoice_number}"),
            Line(chart.ACCOUNTS_RECEIVABLE, credit=amount),
        ],
        memo=f"Invoice {invoice.invoice_number} payment",
        source=JournalEntry.Source.PAYMENT,
        reference_id=invoice.public_id,
        entry_date=entry_date,
        user=user,
    )


def post_expense(expense, user=None) -> JournalEntry:
    """Dr expense (net); Dr SST Payable (tax); Cr Cash or Accounts Payable (total)."""
    net = money(expense.amount)
    tax = money(expense.tax_amount)
    total = money(expense.total)
    credit_code = chart.CASH if expense.payment_method == "CASH" else chart.ACCOUNTS_PAYABLE

    lines = [Line(expense.category, debit=net, description=expense.description or expense.vendor)]
    if tax > 0:
        lines.append(Line(chart.SST_PAYABLE, debit=tax))
    lines.append(Line(credit_code, credit=total))

    return post_entry(
        expense.company,
        lines,
        memo=f"Expense {expense.vendor}",
        source=JournalEntry.Source.EXPENSE,
        reference_id=expense.public_id,
        entry_date=expense.date,
        user=user,
    )
