# einvoice/models.py
"""
E-invoice models.

EInvoiceConfig holds the company's MyInvois credentials and supplier
identifiers. The client secret is never stored; only its SHA-256 hash,
which tells the UI a secret has been entered.

EInvoiceDocument is one prepared document for an invoice. Re-preparing
an invoice adds a new document; the latest one is the active one.
"""

from django.db import models

from accounts.models import Company


class EInvoiceConfig(models.Model):
    class Environment(models.TextChoices):
        SANDBOX = "SANDBOX", "Sandbox"
        PRODUCTION = "PRODUCTION", "Production"

    company = models.OneToOneField(Company, on_delete=models.CASCADE, related_name="einvoice_config")
    enabled = models.BooleanField(default=False)
    environment = models.CharField(max_length=10, choices=Environment.choices, default=Environment.SANDBOX)

    myinvois_client_id = models.CharField(max_length=255, blank=True, default="")
    client_secret_hash = models.CharField(max_length=64, blank=True, default="")

    supplier_tin = models.CharField(max_length=20, blank=True, default="")
    supplier_brn = models.CharField(max_length=50, blank=True, default="")
    sst_registration_number = models.CharField(max_length=50, blank=True, default="")
    tourism_tax_number = models.CharField(max_length=50, blank=True, default="")
    default_currency_code = models.CharField(max_length=3, default="MYR")
    auto_submit_on_send = models.BooleanField(default=False)

    peppol_participant_id = models.CharField(max_length=100, blank=True, default="")
    peppol_scheme_id = models.CharField(max_length=10, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"E-invoice config for {self.company_id}"

    @property
    def has_client_secret(self) -> bool:
        return bool(self.client_secret_hash)


class EInvoiceDocument(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        SUBMITTED = "SUBMITTED", "Submitted"
        VALID = "VALID", "Valid"
        INVALID = "INVALID", "Invalid"
        CANCELLED = "CANCELLED", "Cancelled"

    class Profile(models.TextChoices):
        LHDN = "LHDN", "LHDN MyInvois"
        PEPPOL = "PEPPOL", "PEPPOL BIS Billing 3.0"

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="einvoice_documents")
    invoice = models.ForeignKey(
        "invoicing.Invoice",
        on_delete=models.CASCADE,
        related_name="einvoice_documents",
    )
    document_type = models.CharField(max_length=2, default="01")
    document_version = models.CharField(max_length=5, default="1.0")
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    profile = models.CharField(max_length=10, choices=Profile.choices, default=Profile.LHDN)

    payload = models.JSONField(default=dict)
    validation_errors = models.JSONField(default=list)
    validation_warnings = models.JSONField(default=list)

    # Filled in by MyInvois once a document is submitted.
    submission_uid = models.CharField(max_length=100, blank=True, default="")
    uuid = models.CharField(max_length=100, blank=True, default="")
    long_id = models.CharField(max_length=255, blank=True, default="")

    created_by = models.ForeignKey(
        "accounts.User",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["company", "status"]),
        ]

    def __str__(self):
        return f"{self.invoice_id} {self.profile} {self.status}"


class EInvoiceEvent(models.Model):
    class EventType(models.TextChoices):
        PREPARED = "PREPARED", "Prepared"
        VALIDATION_FAILED = "VALIDATION_FAILED", "Validation failed"

    document = models.ForeignKey(EInvoiceDocument, on_delete=models.CASCADE, related_name="events")
    event_type = models.CharField(max_length=30, choices=EventType.choices)
    message = models.TextField(blank=True, default="")
    data = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.document_id} {self.event_type}"
