# receipts/serializers.py

from rest_framework import serializers

from .models import Receipt, ReceiptItem


class ReceiptItemSerializer(serializers.ModelSerializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = ReceiptItem
        fields = ["id", "product", "description", "quantity", "unit_price", "amount"]
        read_only_fields = fields


class ReceiptSerializer(serializers.ModelSerializer):
    items = ReceiptItemSerializer(many=True, read_only=True)
    invoice_number = serializers.CharField(source="invoice.invoice_number", read_only=True, default=None)

    class Meta:
        model = Receipt
        fields = [
            "id", "public_id", "receipt_number", "customer", "customer_name", "customer_phone",
            "receipt_date", "payment_method", "total", "notes", "invoice", "invoice_number",
            "items", "created_at",
        ]
        read_only_fields = fields


class ReceiptItemInputSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(required=False, allow_null=True)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2)
    unit_price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)


class ReceiptCreateSerializer(serializers.Serializer):
    items = ReceiptItemInputSerializer(many=True)
    customer_id = serializers.IntegerField(required=False, allow_null=True)
    customer_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    customer_phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    receipt_date = serializers.DateTimeField(required=False, allow_null=True)
    payment_method = serializers.ChoiceField(
        choices=Receipt.PaymentMethod.choices,
        required=False,
        default=Receipt.PaymentMethod.CASH,
    )
    total = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True, min_value=0)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    invoice_id = serializers.IntegerField(required=False, allow_null=True)
    receipt_number = serializers.CharField(max_length=30, required=False, allow_blank=True, default="")

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("Receipt must contain at least one item")
        return value
