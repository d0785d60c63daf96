# einvoice/serializers.py

from rest_framework import serializers

from .models import EInvoiceConfig, EInvoiceDocument, EInvoiceEvent
from .validation import LHDN, PEPPOL


class EInvoiceConfigSerializer(serializers.ModelSerializer):
    hasClientSecret = serializers.BooleanField(source="has_client_secret", read_only=True)

    class Meta:
        model = EInvoiceConfig
        fields = [
            "id", "enabled", "environment", "myinvois_client_id", "hasClientSecret",
            "supplier_tin", "supplier_brn", "sst_registration_number", "tourism_tax_number",
            "default_currency_code", "auto_submit_on_send", "peppol_participant_id",
            "peppol_scheme_id", "created_at", "updated_at",
        ]
        read_only_fields = fields


class EInvoiceConfigInputSerializer(serializers.Serializer):
    enabled = serializers.BooleanField(required=False)
    environment = serializers.ChoiceField(choices=EInvoiceConfig.Environment.choices, required=False)
    myinvois_client_id = serializers.CharField(max_length=255, required=False, allow_blank=True)
    client_secret = serializers.CharField(max_length=255, required=False, allow_blank=True, write_only=True)
    supplier_tin = serializers.CharField(max_length=20, required=False, allow_blank=True)
    supplier_brn = serializers.CharField(max_length=50, required=False, allow_blank=True)
    sst_registration_number = serializers.CharField(max_length=50, required=False, allow_blank=True)
    tourism_tax_number = serializers.CharField(max_length=50, required=False, allow_blank=True)
    default_currency_code = serializers.CharField(max_length=3, required=False)
    auto_submit_on_send = serializers.BooleanField(required=False)
    peppol_participant_id = serializers.CharField(max_length=100, required=False, allow_blank=True)
    peppol_scheme_id = serializers.CharField(max_length=10, required=False, allow_blank=True)

    def validate_supplier_tin(self, value):
        return value.strip().upper()

    def validate_default_currency_code(self, value):
        return value.strip().upper()


class EInvoiceEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = EInvoiceEvent
        fields = ["id", "event_type", "message", "data", "created_at"]
        read_only_fields = fields


class EInvoiceDocumentSerializer(serializers.ModelSerializer):
    events = serializers.SerializerMethodField()

    class Meta:
        model = EInvoiceDocument
        fields = [
            "id", "invoice", "document_type", "document_version", "status", "profile",
            "payload", "validation_errors", "validation_warnings",
            "submission_uid", "uuid", "long_id", "events", "created_at", "updated_at",
        ]
        read_only_fields = fields

    def get_events(self, obj):
        events = getattr(obj, "recent_events", None)
        if events is None:
            events = obj.events.all()[:10]
        return EInvoiceEventSerializer(events, many=True).data


class PrepareDocumentSerializer(serializers.Serializer):
    profile = serializers.ChoiceField(choices=[LHDN, PEPPOL], required=False, default=LHDN)
