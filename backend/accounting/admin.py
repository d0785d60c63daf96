# accounting/admin.py
"""
Django admin configuration for accounting models.

Posted ledger rows are read-only here: corrections go through a
reversal (accounting/commands.py), never through an edit.
"""

from django.contrib import admin

from .models import (
    Account,
    BankAccount,
    BankTransaction,
    Expense,
    JournalEntry,
    JournalLine,
    TaxRate,
)


class ReadOnlyModelAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class JournalLineInline(admin.TabularInline):
    model = JournalLine
    extra = 0
    can_delete = False
    fields = ("line_no", "account", "description", "debit", "credit")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "account_type", "company", "is_active", "is_system")
    list_filter = ("account_type", "is_active", "is_system")
    search_fields = ("code", "name")
    readonly_fields = ("public_id", "is_system", "created_at", "updated_at")


@admin.register(JournalEntry)
class JournalEntryAdmin(ReadOnlyModelAdmin):
    list_display = ("entry_number", "date", "company", "source", "status", "memo")
    list_filter = ("source", "status")
    search_fields = ("entry_number", "memo", "reference_id")
    inlines = [JournalLineInline]


@admin.register(TaxRate)
class TaxRateAdmin(admin.ModelAdmin):
    list_display = ("name", "rate", "company", "is_active")


@admin.register(Expense)
class ExpenseAdmin(ReadOnlyModelAdmin):
    list_display = ("vendor", "date", "total", "payment_method", "company")
    search_fields = ("vendor", "description")


@admin.register(BankAccount)
class BankAccountAdmin(admin.ModelAdmin):
    list_display = ("name", "account_number", "gl_account", "company")


@admin.register(BankTransaction)
class BankTransactionAdmin(ReadOnlyModelAdmin):
    list_display = ("date", "bank_account", "description", "amount", "status")
    list_filter = ("status",)
