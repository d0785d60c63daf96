# accounting/tests/test_journal_workflow.py
"""
Integration tests for the journal entry workflow.

API-level lifecycle: post a manual entry -> read it back -> reverse it
-> the reversal and the original both show in the ledger and the trial
balance nets to zero.
"""
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from accounts.models import Company, CompanyMembership
from accounts.permissions import grant_role_defaults
from accounting.chart import seed_default_chart
from accounting.models import Account, JournalEntry


class TestJournalEntryThinFlow(TestCase):
    """
    Thin integration test (API-level):
    - Post JE -> POSTED with JE-000001
    - Reverse -> creates a reversal + original becomes REVERSED
    - Reversing again is rejected
    """

    def setUp(self):
        self.client = APIClient()
        User = get_user_model()

        # 1) Create user
        self.user = User.objects.create_user(
            email="tester@example.com",
            password="pass12345",
            name="Tester",
        )

        # 2) Create company with the default chart
        self.company = Company.objects.create(name="Test Co", legal_name="Test Co Sdn Bhd")
        seed_default_chart(self.company)

        # 3) OWNER membership with default permissions
        self.membership = CompanyMembership.objects.create(
            user=self.user,
            company=self.company,
            role=CompanyMembership.Role.OWNER,
            is_active=True,
        )
        grant_role_defaults(self.membership, granted_by=self.user)

        # 4) Set active company and authenticate
        self.user.active_company = self.company
        self.user.save(update_fields=["active_company"])
        self.client.force_authenticate(user=self.user)

        self.cash = Account.objects.get(company=self.company, code="1000")
        self.revenue = Account.objects.get(company=self.company, code="4000")

    def _post_entry(self, amount="100.00"):
        return self.client.post(
            "/api/accounting/journal-entries/",
            {
                "date": "2024-03-01",
                "memo": "Cash sale",
                "lines": [
                    {"account_id": self.cash.id, "debit": amount, "credit": "0"},
                    {"account_id": self.revenue.id, "debit": "0", "credit": amount},
                ],
            },
            format="json",
        )

    def test_post_and_reverse(self):
        response = self._post_entry()
        self.assertEqual(response.status_code, 201, response.data)
        entry_id = response.data["id"]
        self.assertEqual(response.data["entry_number"], "JE-000001")
        self.assertEqual(response.data["status"], JournalEntry.Status.POSTED)
        self.assertEqual(response.data["total_debit"], "100.00")
        self.assertEqual(len(response.data["lines"]), 2)

        response = self.client.post(f"/api/accounting/journal-entries/{entry_id}/reverse/", {}, format="json")
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["source"], JournalEntry.Source.REVERSAL)
        self.assertEqual(response.data["reverses"], entry_id)
        self.assertEqual(response.data["reverses_number"], "JE-000001")

        response = self.client.get(f"/api/accounting/journal-entries/{entry_id}/")
        self.assertEqual(response.data["status"], JournalEntry.Status.REVERSED)

        response = self.client.post(f"/api/accounting/journal-entries/{entry_id}/reverse/", {}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_reversal_nets_out_in_reports(self):
        entry_id = self._post_entry("250.00").data["id"]
        self.client.post(f"/api/accounting/journal-entries/{entry_id}/reverse/", {}, format="json")

        response = self.client.get("/api/accounting/reports/trial-balance/")
        self.assertTrue(response.data["isBalanced"])
        cash = next(item for item in response.data["items"] if item["code"] == "1000")
        self.assertEqual(cash["balance"], Decimal("0.00"))

        response = self.client.get("/api/accounting/ledger/", {"account": self.cash.id})
        self.assertEqual(response.data["total"], 2)

    def test_unbalanced_entry_rejected(self):
        response = self.client.post(
            "/api/accounting/journal-entries/",
            {
                "date": "2024-03-01",
                "lines": [
                    {"account_id": self.cash.id, "debit": "100.00"},
                    {"account_id": self.revenue.id, "credit": "90.00"},
                ],
            },
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("balanced", response.data["detail"])
        self.assertFalse(JournalEntry.objects.filter(company=self.company).exists())

    def test_single_line_rejected_by_serializer(self):
        response = self.client.post(
            "/api/accounting/journal-entries/",
            {"date": "2024-03-01", "lines": [{"account_id": self.cash.id, "debit": "1"}]},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("lines", response.data)

    def test_entry_of_another_company_is_not_found(self):
        other = Company.objects.create(name="Other Co")
        seed_default_chart(other)
        foreign = JournalEntry.objects.create(company=other, entry_number="JE-000001", date="2024-03-01")

        response = self.client.get(f"/api/accounting/journal-entries/{foreign.id}/")
        self.assertEqual(response.status_code, 404)
        response = self.client.post(f"/api/accounting/journal-entries/{foreign.id}/reverse/", {}, format="json")
        self.assertEqual(response.status_code, 404)
