# accounting/models.py
"""
Accounting models for Invo.

All rows are written by the command layer (accounting/commands.py) and
the posting helpers (accounting/posting.py). Posted journal entries are
never edited; they are reversed by a mirror entry.

Models:
- CompanySequence: per-company counters (entry numbers, invoice numbers)
- Account: Chart of Accounts
- JournalEntry / JournalLine: double-entry ledger
- TaxRate: sales tax rates with their GL accounts
- Expense: supplier bills posted to the ledger
- BankAccount / BankTransaction: imported bank statements
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from accounts.models import Company


class CompanySequence(models.Model):
    """
    Per-company counters for sequential identifiers.

    Used by commands to allocate unique numbers under concurrency.
    """

    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name="sequences",
    )
    name = models.CharField(max_length=100)
    next_value = models.BigIntegerField(default=1)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["company", "name"],
                name="uniq_company_sequence_name",
            ),
        ]

    def __str__(self):
        return f"{self.company_id}:{self.name}={self.next_value}"


class Account(models.Model):
    """
    Chart of Accounts entry.

    System accounts (seeded with the default chart) are used by automatic
    postings and cannot be deleted.
    """

    class AccountType(models.TextChoices):
        ASSET = "ASSET", "Asset"
        LIABILITY = "LIABILITY", "Liability"
        EQUITY = "EQUITY", "Equity"
        REVENUE = "REVENUE", "Revenue"
        EXPENSE = "EXPENSE", "Expense"

    class NormalBalance(models.TextChoices):
        DEBIT = "DEBIT", "Debit"
        CREDIT = "CREDIT", "Credit"

    NORMAL_BALANCE_MAP = {
        AccountType.ASSET: NormalBalance.DEBIT,
        AccountType.LIABILITY: NormalBalance.CREDIT,
        AccountType.EQUITY: NormalBalance.CREDIT,
        AccountType.REVENUE: NormalBalance.CREDIT,
        AccountType.EXPENSE: NormalBalance.DEBIT,
    }

    # Ordering used by the account list and reports
    TYPE_ORDER = {
        AccountType.ASSET: 1,
        AccountType.LIABILITY: 2,
        AccountType.EQUITY: 3,
        AccountType.REVENUE: 4,
        AccountType.EXPENSE: 5,
    }

    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name="accounts",
    )
    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)

    code = models.CharField(max_length=20)
    name = models.CharField(max_length=255)
    account_type = models.CharField(max_length=20, choices=AccountType.choices, db_column="type")
    description = models.TextField(blank=True, default="")

    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="children",
    )

    is_active = models.BooleanField(default=True)
    is_system = models.BooleanField(
        default=False,
        help_text="Seeded accounts used by automatic postings",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["company", "code"],
                name="uniq_account_code_per_company",
            )
        ]
        ordering = ["code"]
        indexes = [
            models.Index(fields=["company", "account_type"]),
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"

    @property
    def normal_balance(self) -> str:
        return self.NORMAL_BALANCE_MAP[self.account_type]

    def clean(self):
        if self.parent and self.parent.company_id != self.company_id:
            raise ValidationError("Parent account must belong to the same company.")
        if self.parent and self.parent.account_type != self.account_type:
            raise ValidationError("Parent account must have the same type.")


class JournalEntry(models.Model):
    """
    Journal entry header.

    Entries are posted immediately. A reversal creates a new POSTED entry
    (source "reversal") pointing at the original, and flips the original
    to REVERSED.
    """

    class Status(models.TextChoices):
        POSTED = "POSTED", "Posted"
        REVERSED = "REVERSED", "Reversed"

    class Source(models.TextChoices):
        MANUAL = "manual", "Manual"
        INVOICE = "invoice", "Invoice"
        PAYMENT = "payment", "Payment"
        EXPENSE = "expense", "Expense"
        REVERSAL = "reversal", "Reversal"

    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name="journal_entries",
    )
    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)

    entry_number = models.CharField(max_length=30)
    date = models.DateField()
    memo = models.CharField(max_length=500, blank=True, default="")
    source = models.CharField(max_length=20, choices=Source.choices, default=Source.MANUAL)
    reference_id = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="public_id of the invoice/payment/expense that produced the entry",
    )
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.POSTED)
    posted_at = models.DateTimeField(null=True, blank=True)
    posted_by = models.ForeignKey(
        "accounts.User",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    reverses = models.OneToOneField(
        "self",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="reversed_by",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "Journal entries"
        ordering = ["-date", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "entry_number"],
                name="uniq_entry_number_per_company",
            ),
        ]
        indexes = [
            models.Index(fields=["company", "date"]),
            models.Index(fields=["company", "source", "reference_id"]),
        ]

    def __str__(self):
        return f"{self.entry_number} ({self.date})"

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines.all()), Decimal("0.00"))

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines.all()), Decimal("0.00"))


class JournalLine(models.Model):
    entry = models.ForeignKey(JournalEntry, on_delete=models.CASCADE, related_name="lines")
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="+")
    line_no = models.PositiveIntegerField()
    account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name="journal_lines")
    description = models.CharField(max_length=500, blank=True, default="")
    debit = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    credit = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ["entry_id", "line_no"]
        indexes = [
            models.Index(fields=["company", "account"]),
        ]

    def __str__(self):
        return f"{self.entry_id}#{self.line_no} {self.account_id} Dr {self.debit} Cr {self.credit}"


class TaxRate(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="tax_rates")
    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)
    name = models.CharField(max_length=100)
    rate = models.DecimalField(max_digits=5, decimal_places=2, help_text="Percent, e.g. 6.00")
    sales_tax_account = models.ForeignKey(
        Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="+",
    )
    tax_liability_account = models.ForeignKey(
        Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="+",
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.rate}%)"


class Expense(models.Model):
    class PaymentMethod(models.TextChoices):
        CASH = "CASH", "Cash"
        CREDIT = "CREDIT", "On credit"

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="expenses")
    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)
    vendor = models.CharField(max_length=255)
    category = models.ForeignKey(Account, on_delete=models.PROTECT, related_name="expenses")
    date = models.DateField()
    description = models.CharField(max_length=500, blank=True, default="")
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=14, decimal_places=2)
    payment_method = models.CharField(max_length=10, choices=PaymentMethod.choices, default=PaymentMethod.CASH)
    entry = models.ForeignKey(
        JournalEntry, null=True, blank=True, on_delete=models.SET_NULL, related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-date", "-id"]

    def __str__(self):
        return f"{self.vendor} {self.total}"


class BankAccount(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="bank_accounts")
    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)
    name = models.CharField(max_length=255)
    account_number = models.CharField(max_length=50, blank=True, default="")
    gl_account = models.ForeignKey(
        Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="bank_accounts",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class BankTransaction(models.Model):
    class Status(models.TextChoices):
        UNMATCHED = "unmatched", "Unmatched"
        MATCHED = "matched", "Matched"

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="+")
    bank_account = models.ForeignKey(BankAccount, on_delete=models.CASCADE, related_name="transactions")
    date = models.DateField()
    description = models.CharField(max_length=500, blank=True, default="")
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.UNMATCHED)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-date", "-id"]
