# customers/models.py
"""
Customer model.

Identification fields (TIN, BRN, id_type/id_value, SST number) feed the
buyer block of e-invoice documents.
"""

import uuid

from django.db import models

from accounts.models import Company


class Customer(models.Model):
    class IdType(models.TextChoices):
        NRIC = "NRIC", "NRIC"
        BRN = "BRN", "Business registration"
        PASSPORT = "PASSPORT", "Passport"
        ARMY = "ARMY", "Army ID"

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="customers")
    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)

    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True, default="")
    phone_number = models.CharField(max_length=20, blank=True, default="")
    address = models.TextField(blank=True, default="")
    city = models.CharField(max_length=100, blank=True, default="")
    postcode = models.CharField(max_length=10, blank=True, default="")
    state = models.CharField(max_length=100, blank=True, default="")
    country = models.CharField(max_length=100, blank=True, default="Malaysia")

    tin = models.CharField("TIN", max_length=20, blank=True, default="")
    brn = models.CharField("BRN", max_length=50, blank=True, default="")
    id_type = models.CharField(max_length=10, choices=IdType.choices, blank=True, default="")
    id_value = models.CharField(max_length=50, blank=True, default="")
    sst_registration_number = models.CharField(max_length=50, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["company", "phone_number"]),
            models.Index(fields=["company", "name"]),
        ]

    def __str__(self):
        return self.name
