from django.contrib import admin

from .models import EInvoiceConfig, EInvoiceDocument, EInvoiceEvent


@admin.register(EInvoiceConfig)
class EInvoiceConfigAdmin(admin.ModelAdmin):
    list_display = ("company", "enabled", "environment", "supplier_tin", "auto_submit_on_send")
    list_filter = ("enabled", "environment")
    exclude = ("client_secret_hash",)


class EInvoiceEventInline(admin.TabularInline):
    model = EInvoiceEvent
    extra = 0
    readonly_fields = ("event_type", "message", "data", "created_at")


@admin.register(EInvoiceDocument)
class EInvoiceDocumentAdmin(admin.ModelAdmin):
    list_display = ("invoice", "company", "document_type", "profile", "status", "created_at")
    list_filter = ("status", "profile", "company")
    search_fields = ("invoice__invoice_number", "uuid", "submission_uid")
    inlines = [EInvoiceEventInline]
