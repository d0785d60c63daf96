# invoicing/serializers.py
"""
Serializers for invoicing API.

Output: InvoiceListSerializer (list rows), InvoiceSerializer (detail with
items and payments).
Input: InvoiceCreateSerializer, InvoiceUpdateSerializer, InvoiceActionSerializer.
"""

from rest_framework import serializers

from .models import Invoice, InvoiceItem, InvoicePayment


class InvoiceItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True, default=None)

    class Meta:
        model = InvoiceItem
        fields = ["id", "product", "product_name", "description", "quantity", "unit_price", "amount", "tax_type"]
        read_only_fields = fields


class InvoicePaymentSerializer(serializers.ModelSerializer):
    entry_number = serializers.CharField(source="journal_entry.entry_number", read_only=True, default=None)

    class Meta:
        model = InvoicePayment
        fields = ["id", "amount", "method", "paid_at", "reference", "entry_number"]
        read_only_fields = fields


class InvoiceListSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.name", read_only=True)
    balance_due = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = Invoice
        fields = [
            "id", "public_id", "invoice_number", "customer", "customer_name",
            "issue_date", "due_date", "status", "total", "paid_amount", "balance_due",
            "currency", "created_at",
        ]
        read_only_fields = fields


class InvoiceSerializer(InvoiceListSerializer):
    items = InvoiceItemSerializer(many=True, read_only=True)
    payments = InvoicePaymentSerializer(many=True, read_only=True)
    customer_phone = serializers.CharField(source="customer.phone_number", read_only=True)
    issued_entry_number = serializers.CharField(source="issued_entry.entry_number", read_only=True, default=None)

    class Meta(InvoiceListSerializer.Meta):
        fields = InvoiceListSerializer.Meta.fields + [
            "customer_phone", "subtotal", "tax_rate", "tax_amount", "discount_rate",
            "discount_amount", "notes", "stock_committed", "issued_entry_number",
            "sent_at", "items", "payments", "updated_at",
        ]
        read_only_fields = fields


class InvoiceItemInputSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(required=False, allow_null=True)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2)
    unit_price = serializers.DecimalField(max_digits=14, decimal_places=2)
    tax_type = serializers.CharField(max_length=2, required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if not attrs.get("product_id") and not attrs.get("description", "").strip():
            raise serializers.ValidationError("Each item needs a product or a description.")
        return attrs


class InvoiceCreateSerializer(serializers.Serializer):
    customer_id = serializers.IntegerField()
    issue_date = serializers.DateField()
    due_date = serializers.DateField()
    items = InvoiceItemInputSerializer(many=True)
    tax_rate = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False, default=0)
    discount_rate = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False, default=0)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    status = serializers.ChoiceField(
        choices=[Invoice.Status.DRAFT, Invoice.Status.SENT],
        required=False,
        default=Invoice.Status.DRAFT,
    )

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required.")
        return value


class InvoiceUpdateSerializer(serializers.Serializer):
    customer_id = serializers.IntegerField(required=False)
    issue_date = serializers.DateField(required=False)
    due_date = serializers.DateField(required=False)
    items = InvoiceItemInputSerializer(many=True, required=False)
    tax_rate = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False)
    discount_rate = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class InvoiceActionSerializer(serializers.Serializer):
    """
    PATCH body for a transition. ``paymentAmount`` is kept as text so that
    the command reports "Invalid payment amount" itself.
    """
    action = serializers.CharField()
    paymentAmount = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    method = serializers.ChoiceField(choices=InvoicePayment.Method.choices, required=False)
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
