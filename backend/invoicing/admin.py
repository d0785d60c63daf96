from django.contrib import admin

from .models import Invoice, InvoiceItem, InvoicePayment


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0
    readonly_fields = ("amount",)


class InvoicePaymentInline(admin.TabularInline):
    model = InvoicePayment
    extra = 0
    can_delete = False
    readonly_fields = ("amount", "method", "paid_at", "reference", "journal_entry", "recorded_by")


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ("invoice_number", "company", "customer", "status", "total", "paid_amount", "due_date")
    list_filter = ("status", "company")
    search_fields = ("invoice_number", "customer__name")
    readonly_fields = ("public_id", "issued_entry", "stock_committed", "sent_at", "created_at", "updated_at")
    inlines = [InvoiceItemInline, InvoicePaymentInline]
