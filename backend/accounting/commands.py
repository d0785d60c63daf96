# accounting/commands.py
"""
Command layer for accounting operations.

Commands are the single point where business operations happen.
Views call commands; commands enforce rules and write.

Pattern:
1. Validate permissions (require)
2. Apply business policies (can_*)
3. Perform the operation (model changes, ledger postings)
4. Return CommandResult
"""

import csv
import io
import logging
from datetime import datetime
from decimal import Decimal

from django.db import transaction

from accounts.authz import ActorContext, require
from accounts.commands import CommandResult
from accounting.models import (
    Account,
    BankAccount,
    BankTransaction,
    Expense,
    JournalEntry,
    TaxRate,
)
from accounting.money import ZERO, money, to_decimal
from accounting.policies import (
    can_change_account_type,
    can_delete_account,
    can_delete_bank_account,
    can_post_to_account,
    can_reverse_entry,
)
from accounting.posting import Line, PostingError, post_entry, post_expense, reverse_entry

logger = logging.getLogger(__name__)

ACCOUNT_FIELDS = {"code", "name", "account_type", "description", "is_active"}
TAX_RATE_FIELDS = {"name", "rate", "is_active"}
BANK_ACCOUNT_FIELDS = {"name", "account_number"}

CSV_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%m/%d/%Y")


def _get_account(actor, account_id):
    if account_id in (None, ""):
        return None
    return Account.objects.filter(company=actor.company, pk=account_id).first()


# =============================================================================
# Account Commands
# =============================================================================

@transaction.atomic
def create_account(
    actor: ActorContext,
    code: str,
    name: str,
    account_type: str,
    parent_id: int = None,
    description: str = "",
) -> CommandResult:
    """
    Create a new account in the chart of accounts.

    Args:
        actor: The actor context (user + company)
        code: Account code (unique per company)
        name: Account name
        account_type: One of Account.AccountType choices
        parent_id: Optional parent account ID (same type)
        description: Free text

    Returns:
        CommandResult with the created Account or error
    """
    require(actor, "accounts.manage")

    code = (code or "").strip()
    name = (name or "").strip()
    if not code or not name or not account_type:
        return CommandResult.fail("Code, name and type are required.")

    if account_type not in Account.AccountType.values:
        return CommandResult.fail(f"Invalid account type: {account_type}")

    if Account.objects.filter(company=actor.company, code=code).exists():
        return CommandResult.fail(f"Account code '{code}' already exists.")

    parent = None
    if parent_id:
        parent = _get_account(actor, parent_id)
        if parent is None:
            return CommandResult.fail("Parent account not found.")
        if parent.account_type != account_type:
            return CommandResult.fail("Parent account must have the same type.")

    account = Account.objects.create(
        company=actor.company,
        code=code,
        name=name,
        account_type=account_type,
        parent=parent,
        description=description or "",
    )
    logger.info("Account created", extra={"company_id": actor.company.id, "code": code})
    return CommandResult.ok(account)


@transaction.atomic
def update_account(actor: ActorContext, account_id: int, **updates) -> CommandResult:
    require(actor, "accounts.manage")

    try:
        account = Account.objects.select_for_update().get(pk=account_id, company=actor.company)
    except Account.DoesNotExist:
        return CommandResult.fail("Account not found.", code="not_found")

    if "code" in updates and updates["code"] != account.code:
        if account.is_system:
            return CommandResult.fail("Cannot change the code of a system account.")
        if Account.objects.filter(
            company=actor.company,
            code=updates["code"],
        ).exclude(pk=account.id).exists():
            return CommandResult.fail(f"Account code '{updates['code']}' already exists.")

    if "account_type" in updates and updates["account_type"] != account.account_type:
        allowed, reason = can_change_account_type(actor, account)
        if not allowed:
            return CommandResult.fail(reason)

    changed = []
    for field, value in updates.items():
        if field in ACCOUNT_FIELDS and getattr(account, field) != value:
            setattr(account, field, value)
            changed.append(field)

    if changed:
        account.save(update_fields=changed + ["updated_at"])
    return CommandResult.ok(account)


@transaction.atomic
def delete_account(actor: ActorContext, account_id: int) -> CommandResult:
    require(actor, "accounts.manage")

    try:
        account = Account.objects.select_for_update().get(pk=account_id, company=actor.company)
    except Account.DoesNotExist:
        return CommandResult.fail("Account not found.", code="not_found")

    allowed, reason = can_delete_account(actor, account)
    if not allowed:
        return CommandResult.fail(reason)

    code = account.code
    account.delete()
    logger.info("Account deleted", extra={"company_id": actor.company.id, "code": code})
    return CommandResult.ok({"deleted": True})


# =============================================================================
# Journal Entry Commands
# =============================================================================

@transaction.atomic
def create_journal_entry(actor: ActorContext, date, memo: str = "", lines: list = None) -> CommandResult:
    """
    Post a manual journal entry.

    ``lines`` is a list of dicts with account_id, debit, credit and an
    optional description. The entry is posted immediately.
    """
    require(actor, "journal.create")

    posting_lines = []
    for i, line in enumerate(lines or [], start=1):
        account = _get_account(actor, line.get("account_id"))
        if account is None:
            return CommandResult.fail(f"Line {i}: account not found.")
        allowed, reason = can_post_to_account(account)
        if not allowed:
            return CommandResult.fail(f"Line {i}: {reason}")
        try:
            debit = to_decimal(line.get("debit") or 0)
            credit = to_decimal(line.get("credit") or 0)
        except ValueError:
            return CommandResult.fail(f"Line {i}: invalid amount.")
        posting_lines.append(
            Line(account=account, debit=debit, credit=credit, description=line.get("description", ""))
        )

    try:
        entry = post_entry(
            actor.company,
            posting_lines,
            memo=memo or "",
            source=JournalEntry.Source.MANUAL,
            entry_date=date,
            user=actor.user,
        )
    except PostingError as exc:
        return CommandResult.fail(str(exc))

    return CommandResult.ok(entry)


@transaction.atomic
def reverse_journal_entry(actor: ActorContext, entry_id: int, memo: str = "") -> CommandResult:
    require(actor, "journal.reverse")

    try:
        entry = JournalEntry.objects.get(pk=entry_id, company=actor.company)
    except JournalEntry.DoesNotExist:
        return CommandResult.fail("Journal entry not found.", code="not_found")

    allowed, reason = can_reverse_entry(actor, entry)
    if not allowed:
        return CommandResult.fail(reason)

    try:
        reversal = reverse_entry(entry, memo=memo, user=actor.user)
    except PostingError as exc:
        return CommandResult.fail(str(exc))

    return CommandResult.ok(reversal)


# =============================================================================
# Tax Rate Commands
# =============================================================================

def _validate_rate(rate):
    try:
        rate = to_decimal(rate)
    except ValueError:
        return None, "Rate must be a number."
    if rate < 0 or rate > 100:
        return None, "Rate must be between 0 and 100."
    return rate, ""


@transaction.atomic
def create_tax_rate(
    actor: ActorContext,
    name: str,
    rate,
    sales_tax_account_id: int = None,
    tax_liability_account_id: int = None,
) -> CommandResult:
    require(actor, "tax_rates.manage")

    if not (name or "").strip():
        return CommandResult.fail("Name is required.")

    rate, reason = _validate_rate(rate)
    if rate is None:
        return CommandResult.fail(reason)

    tax_rate = TaxRate.objects.create(
        company=actor.company,
        name=name.strip(),
        rate=rate,
        sales_tax_account=_get_account(actor, sales_tax_account_id),
        tax_liability_account=_get_account(actor, tax_liability_account_id),
    )
    return CommandResult.ok(tax_rate)


@transaction.atomic
def update_tax_rate(actor: ActorContext, tax_rate_id: int, **updates) -> CommandResult:
    require(actor, "tax_rates.manage")

    tax_rate = TaxRate.objects.filter(company=actor.company, pk=tax_rate_id).first()
    if tax_rate is None:
        return CommandResult.fail("Tax rate not found.", code="not_found")

    if "rate" in updates:
        rate, reason = _validate_rate(updates["rate"])
        if rate is None:
            return CommandResult.fail(reason)
        updates["rate"] = rate

    for field, value in updates.items():
        if field in TAX_RATE_FIELDS:
            setattr(tax_rate, field, value)
    for field in ("sales_tax_account_id", "tax_liability_account_id"):
        if field in updates:
            setattr(tax_rate, field.removesuffix("_id"), _get_account(actor, updates[field]))

    tax_rate.save()
    return CommandResult.ok(tax_rate)


@transaction.atomic
def delete_tax_rate(actor: ActorContext, tax_rate_id: int) -> CommandResult:
    require(actor, "tax_rates.manage")

    deleted, _ = TaxRate.objects.filter(company=actor.company, pk=tax_rate_id).delete()
    if not deleted:
        return CommandResult.fail("Tax rate not found.", code="not_found")
    return CommandResult.ok({"deleted": True})


# =============================================================================
# Expense Commands
# =============================================================================

@transaction.atomic
def create_expense(
    actor: ActorContext,
    vendor: str,
    category_id: int,
    date,
    amount,
    tax_amount=ZERO,
    description: str = "",
    payment_method: str = Expense.PaymentMethod.CASH,
) -> CommandResult:
    """
    Record an expense and post it to the ledger.

    The expense is kept even when the posting fails (for example when
    the company's chart is missing an account); the failure is logged.
    """
    require(actor, "expenses.manage")

    category = _get_account(actor, category_id)
    if category is None:
        return CommandResult.fail("Expense category account not found.")
    if category.account_type != Account.AccountType.EXPENSE:
        return CommandResult.fail("Category must be an expense account.")

    try:
        amount = money(amount)
        tax_amount = money(tax_amount or 0)
    except ValueError:
        return CommandResult.fail("Invalid amount.")
    if amount <= 0 or tax_amount < 0:
        return CommandResult.fail("Invalid amount.")

    expense = Expense.objects.create(
        company=actor.company,
        vendor=vendor,
        category=category,
        date=date,
        description=description or "",
        amount=amount,
        tax_amount=tax_amount,
        total=amount + tax_amount,
        payment_method=payment_method,
    )

    try:
        with transaction.atomic():
            expense.entry = post_expense(expense, user=actor.user)
        expense.save(update_fields=["entry"])
    except PostingError as exc:
        logger.warning(
            "Expense posting skipped",
            extra={"company_id": actor.company.id, "expense": str(expense.public_id), "error": str(exc)},
        )

    return CommandResult.ok(expense)


# =============================================================================
# Bank Commands
# =============================================================================

@transaction.atomic
def create_bank_account(
    actor: ActorContext,
    name: str,
    account_number: str = "",
    gl_account_id: int = None,
) -> CommandResult:
    require(actor, "bank.manage")

    if not (name or "").strip():
        return CommandResult.fail("Name is required.")

    gl_account = _get_account(actor, gl_account_id)
    if gl_account_id and gl_account is None:
        return CommandResult.fail("GL account not found.")
    if gl_account and gl_account.account_type != Account.AccountType.ASSET:
        return CommandResult.fail("GL account must be an asset account.")

    bank_account = BankAccount.objects.create(
        company=actor.company,
        name=name.strip(),
        account_number=account_number or "",
        gl_account=gl_account,
    )
    return CommandResult.ok(bank_account)


@transaction.atomic
def update_bank_account(actor: ActorContext, bank_account_id: int, **updates) -> CommandResult:
    require(actor, "bank.manage")

    bank_account = BankAccount.objects.filter(company=actor.company, pk=bank_account_id).first()
    if bank_account is None:
        return CommandResult.fail("Bank account not found.", code="not_found")

    for field, value in updates.items():
        if field in BANK_ACCOUNT_FIELDS:
            setattr(bank_account, field, value)
    if "gl_account_id" in updates:
        gl_account = _get_account(actor, updates["gl_account_id"])
        if updates["gl_account_id"] and gl_account is None:
            return CommandResult.fail("GL account not found.")
        bank_account.gl_account = gl_account

    bank_account.save()
    return CommandResult.ok(bank_account)


@transaction.atomic
def delete_bank_account(actor: ActorContext, bank_account_id: int) -> CommandResult:
    require(actor, "bank.manage")

    bank_account = BankAccount.objects.filter(company=actor.company, pk=bank_account_id).first()
    if bank_account is None:
        return CommandResult.fail("Bank account not found.", code="not_found")

    allowed, reason = can_delete_bank_account(actor, bank_account)
    if not allowed:
        return CommandResult.fail(reason)

    bank_account.delete()
    return CommandResult.ok({"deleted": True})


# BankTransaction.amount holds 12 integer digits.
MAX_STATEMENT_AMOUNT = Decimal("1000000000000")


def _parse_csv_date(value: str):
    value = (value or "").strip()
    for fmt in CSV_DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


@transaction.atomic
def import_bank_csv(actor: ActorContext, bank_account_id: int, content: str) -> CommandResult:
    """
    Import a bank statement CSV.

    The first row is a header. Columns: date, description, amount.
    Rows with an unreadable date or a non-numeric amount are skipped.
    """
    require(actor, "bank.manage")

    bank_account = BankAccount.objects.filter(company=actor.company, pk=bank_account_id).first()
    if bank_account is None:
        return CommandResult.fail("Bank account not found.", code="not_found")

    reader = csv.reader(io.StringIO(content))
    next(reader, None)

    transactions = []
    for row in reader:
        if len(row) < 3:
            continue
        txn_date = _parse_csv_date(row[0])
        try:
            amount = money(row[2].replace(",", "").strip())
        except ValueError:
            continue
        if abs(amount) >= MAX_STATEMENT_AMOUNT:
            continue
        if txn_date is None:
            continue
        transactions.append(BankTransaction(
            company=actor.company,
            bank_account=bank_account,
            date=txn_date,
            description=row[1].strip()[:500],
            amount=amount,
        ))

    BankTransaction.objects.bulk_create(transactions)
    logger.info(
        "Bank statement imported",
        extra={"company_id": actor.company.id, "bank_account": bank_account.id, "count": len(transactions)},
    )
    return CommandResult.ok({"count": len(transactions)})
