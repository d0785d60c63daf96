# accounting/serializers.py
"""
Serializers for accounting API.

Input serializers validate request bodies; model serializers format
output. The actual business logic happens in commands.py.
"""

from rest_framework import serializers

from .models import (
    Account,
    BankAccount,
    BankTransaction,
    Expense,
    JournalEntry,
    JournalLine,
    TaxRate,
)


# =============================================================================
# Account Serializers
# =============================================================================

class AccountSerializer(serializers.ModelSerializer):
    has_transactions = serializers.SerializerMethodField()
    parent_code = serializers.CharField(source="parent.code", read_only=True, default=None)
    normal_balance = serializers.CharField(read_only=True)

    class Meta:
        model = Account
        fields = [
            "id", "public_id", "code", "name", "account_type", "normal_balance",
            "description", "parent", "parent_code", "is_active", "is_system",
            "has_transactions", "created_at", "updated_at",
        ]
        read_only_fields = fields

    def get_has_transactions(self, obj):
        # Use annotated value if available (from list view), else query
        if hasattr(obj, "_has_transactions"):
            return obj._has_transactions
        return obj.journal_lines.exists()


class AccountCreateSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=20)
    name = serializers.CharField(max_length=255)
    account_type = serializers.ChoiceField(choices=Account.AccountType.choices)
    parent_id = serializers.IntegerField(required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, default="")


class AccountUpdateSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=20, required=False)
    name = serializers.CharField(max_length=255, required=False)
    account_type = serializers.ChoiceField(choices=Account.AccountType.choices, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    is_active = serializers.BooleanField(required=False)


# =============================================================================
# Journal Serializers
# =============================================================================

class JournalLineSerializer(serializers.ModelSerializer):
    account_code = serializers.CharField(source="account.code", read_only=True)
    account_name = serializers.CharField(source="account.name", read_only=True)

    class Meta:
        model = JournalLine
        fields = ["line_no", "account", "account_code", "account_name", "description", "debit", "credit"]
        read_only_fields = fields


class LedgerLineSerializer(JournalLineSerializer):
    """Journal line with its entry header, for the ledger view."""
    entry_number = serializers.CharField(source="entry.entry_number", read_only=True)
    date = serializers.DateField(source="entry.date", read_only=True)
    memo = serializers.CharField(source="entry.memo", read_only=True)
    source = serializers.CharField(source="entry.source", read_only=True)

    class Meta(JournalLineSerializer.Meta):
        fields = ["id", "entry_number", "date", "memo", "source"] + JournalLineSerializer.Meta.fields
        read_only_fields = fields


class JournalEntrySerializer(serializers.ModelSerializer):
    lines = JournalLineSerializer(many=True, read_only=True)
    total_debit = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    total_credit = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    reverses_number = serializers.CharField(source="reverses.entry_number", read_only=True, default=None)

    class Meta:
        model = JournalEntry
        fields = [
            "id", "public_id", "entry_number", "date", "memo", "source", "reference_id",
            "status", "posted_at", "reverses", "reverses_number",
            "lines", "total_debit", "total_credit", "created_at",
        ]
        read_only_fields = fields


class JournalLineInputSerializer(serializers.Serializer):
    account_id = serializers.IntegerField()
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    debit = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, default=0)
    credit = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, default=0)


class JournalEntryCreateSerializer(serializers.Serializer):
    date = serializers.DateField()
    memo = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    lines = JournalLineInputSerializer(many=True)

    def validate_lines(self, value):
        if len(value) < 2:
            raise serializers.ValidationError("At least 2 lines are required.")
        return value


class JournalEntryReverseSerializer(serializers.Serializer):
    memo = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


# =============================================================================
# Tax rates, expenses, bank
# =============================================================================

class TaxRateSerializer(serializers.ModelSerializer):
    class Meta:
        model = TaxRate
        fields = [
            "id", "public_id", "name", "rate", "sales_tax_account", "tax_liability_account",
            "is_active", "created_at",
        ]
        read_only_fields = fields


class TaxRateInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    rate = serializers.DecimalField(max_digits=5, decimal_places=2)
    sales_tax_account_id = serializers.IntegerField(required=False, allow_null=True)
    tax_liability_account_id = serializers.IntegerField(required=False, allow_null=True)
    is_active = serializers.BooleanField(required=False)


class ExpenseSerializer(serializers.ModelSerializer):
    category_code = serializers.CharField(source="category.code", read_only=True)
    category_name = serializers.CharField(source="category.name", read_only=True)
    entry_number = serializers.CharField(source="entry.entry_number", read_only=True, default=None)

    class Meta:
        model = Expense
        fields = [
            "id", "public_id", "vendor", "category", "category_code", "category_name",
            "date", "description", "amount", "tax_amount", "total", "payment_method",
            "entry_number", "created_at",
        ]
        read_only_fields = fields


class ExpenseCreateSerializer(serializers.Serializer):
    vendor = serializers.CharField(max_length=255)
    category_id = serializers.IntegerField()
    date = serializers.DateField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    tax_amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, default=0)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    payment_method = serializers.ChoiceField(
        choices=Expense.PaymentMethod.choices,
        required=False,
        default=Expense.PaymentMethod.CASH,
    )


class BankAccountSerializer(serializers.ModelSerializer):
    gl_account_code = serializers.CharField(source="gl_account.code", read_only=True, default=None)
    transaction_count = serializers.IntegerField(source="transactions.count", read_only=True)

    class Meta:
        model = BankAccount
        fields = ["id", "public_id", "name", "account_number", "gl_account", "gl_account_code", "transaction_count", "created_at"]
        read_only_fields = fields


class BankAccountInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    account_number = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    gl_account_id = serializers.IntegerField(required=False, allow_null=True)


class BankTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = BankTransaction
        fields = ["id", "date", "description", "amount", "status", "created_at"]
        read_only_fields = fields


class BankImportSerializer(serializers.Serializer):
    """Either an uploaded ``file`` or raw ``content`` text."""
    file = serializers.FileField(required=False)
    content = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if attrs.get("file") is None and not attrs.get("content"):
            raise serializers.ValidationError("A CSV file or content is required.")
        return attrs

    def get_text(self) -> str:
        upload = self.validated_data.get("file")
        if upload is not None:
            return upload.read().decode("utf-8-sig", errors="replace")
        return self.validated_data["content"]


class ReportRangeSerializer(serializers.Serializer):
    start = serializers.DateField(required=False)
    end = serializers.DateField(required=False)
    as_of = serializers.DateField(required=False)
