# messaging/serializers.py

from rest_framework import serializers

from .whatsapp import FOLLOW_UP_TYPES

INVOICE_MESSAGE_TYPES = ("invoice", "receipt", "follow_up")


class InvoiceLinkSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=INVOICE_MESSAGE_TYPES, required=False, default="invoice")
    kind = serializers.ChoiceField(choices=FOLLOW_UP_TYPES, required=False, default="gentle")
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")


class ReceiptLinkSerializer(serializers.Serializer):
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")


class CustomerLinkSerializer(serializers.Serializer):
    message = serializers.CharField(required=False, allow_blank=True, default="")
