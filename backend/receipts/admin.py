from django.contrib import admin

from .models import Receipt, ReceiptItem


class ReceiptItemInline(admin.TabularInline):
    model = ReceiptItem
    extra = 0


@admin.register(Receipt)
class ReceiptAdmin(admin.ModelAdmin):
    list_display = ("receipt_number", "company", "customer_name", "receipt_date", "payment_method", "total")
    list_filter = ("payment_method", "company")
    search_fields = ("receipt_number", "customer_name", "customer_phone")
    inlines = [ReceiptItemInline]
