# tests/test_ledger.py
"""
Ledger tests: posting rules, reversals, reports, expenses, tax rates
and bank statement imports.
"""

import datetime
from decimal import Decimal

import pytest

from accounting.chart import GENERAL_EXPENSES
from accounting.commands import (
    create_account,
    create_bank_account,
    create_expense,
    create_journal_entry,
    create_tax_rate,
    delete_account,
    import_bank_csv,
    reverse_journal_entry,
)
from accounting.models import Account, BankTransaction, Expense, JournalEntry
from accounting.money import money, percent_of, to_decimal
from accounting.posting import Line, PostingError, post_entry, reverse_entry
from accounting.reports import balance_sheet, cash_flow, profit_and_loss, trial_balance


def _account(company, code):
    return Account.objects.get(company=company, code=code)


def test_money_rounds_half_up():
    assert money("2.675") == Decimal("2.68")
    assert percent_of(Decimal("53.00"), Decimal("6")) == Decimal("3.18")
    assert to_decimal(None) == Decimal("0.00")
    with pytest.raises(ValueError):
        to_decimal("abc")


@pytest.mark.parametrize("raw", ["NaN", "-Infinity", "inf", Decimal("NaN"), "1e40"])
def test_money_rejects_non_finite_and_out_of_range(raw):
    with pytest.raises(ValueError):
        money(raw)


# =============================================================================
# Posting
# =============================================================================

@pytest.mark.django_db
class TestPostEntry:
    def test_balanced_entry(self, chart):
        entry = post_entry(chart, [
            Line("1000", debit=Decimal("100")),
            Line("3000", credit=Decimal("100")),
        ], memo="Capital")
        assert entry.entry_number == "JE-000001"
        assert entry.status == JournalEntry.Status.POSTED
        assert entry.total_debit == entry.total_credit == Decimal("100.00")
        assert [line.line_no for line in entry.lines.all()] == [1, 2]

    def test_numbers_increment(self, chart):
        lines = [Line("1000", debit=Decimal("1")), Line("3000", credit=Decimal("1"))]
        post_entry(chart, lines)
        assert post_entry(chart, lines).entry_number == "JE-000002"

    @pytest.mark.parametrize("lines,message", [
        ([Line("1000", debit=Decimal("10")), Line("3000", credit=Decimal("9"))], "must be balanced"),
        ([Line("1000", debit=Decimal("10"))], "at least 2"),
        ([Line("1000", debit=Decimal("10"), credit=Decimal("10")), Line("3000", credit=Decimal("10"))], "not both"),
        ([Line("1000", debit=Decimal("-10")), Line("3000", credit=Decimal("-10"))], "cannot be negative"),
        ([Line("9999", debit=Decimal("10")), Line("3000", credit=Decimal("10"))], "Account 9999 not found"),
    ])
    def test_rejected(self, chart, lines, message):
        with pytest.raises(PostingError, match=message):
            post_entry(chart, lines)
        assert not JournalEntry.objects.exists()

    def test_zero_lines_are_dropped(self, chart):
        entry = post_entry(chart, [
            Line("1000", debit=Decimal("5")),
            Line("1010"),
            Line("3000", credit=Decimal("5")),
        ])
        assert entry.lines.count() == 2

    def test_other_company_account_is_rejected(self, chart, second_company):
        foreign = Account.objects.create(company=second_company, code="1000", name="Cash", account_type="ASSET")
        with pytest.raises(PostingError):
            post_entry(chart, [Line(foreign, debit=Decimal("1")), Line("3000", credit=Decimal("1"))])

    def test_reverse(self, chart):
        entry = post_entry(chart, [Line("1000", debit=Decimal("40")), Line("4000", credit=Decimal("40"))])
        reversal = reverse_entry(entry)

        entry.refresh_from_db()
        assert entry.status == JournalEntry.Status.REVERSED
        assert reversal.reverses == entry
        assert reversal.memo == f"Reversal of {entry.entry_number}"
        assert [(line.account.code, line.debit, line.credit) for line in reversal.lines.all()] == [
            ("1000", Decimal("0.00"), Decimal("40.00")),
            ("4000", Decimal("40.00"), Decimal("0.00")),
        ]

        with pytest.raises(PostingError, match="already reversed"):
            reverse_entry(entry)
        with pytest.raises(PostingError, match="cannot be reversed"):
            reverse_entry(reversal)


# =============================================================================
# Commands
# =============================================================================

@pytest.mark.django_db
class TestJournalCommands:
    def test_manual_entry(self, actor, chart):
        result = create_journal_entry(actor, datetime.date(2024, 1, 5), "Owner top-up", [
            {"account_id": _account(chart, "1010").id, "debit": "500"},
            {"account_id": _account(chart, "3000").id, "credit": "500"},
        ])
        assert result.success
        assert result.data.posted_by == actor.user
        assert result.data.source == JournalEntry.Source.MANUAL

    def test_unbalanced_is_a_failure(self, actor, chart):
        result = create_journal_entry(actor, datetime.date(2024, 1, 5), "", [
            {"account_id": _account(chart, "1010").id, "debit": "500"},
            {"account_id": _account(chart, "3000").id, "credit": "400"},
        ])
        assert not result.success
        assert "balanced" in result.error

    def test_inactive_account(self, actor, chart):
        Account.objects.filter(company=chart, code="1010").update(is_active=False)
        result = create_journal_entry(actor, datetime.date(2024, 1, 5), "", [
            {"account_id": _account(chart, "1010").id, "debit": "1"},
            {"account_id": _account(chart, "3000").id, "credit": "1"},
        ])
        assert result.error == "Line 1: Cannot post to inactive account: 1010"

    def test_reverse_command(self, actor, chart):
        entry = post_entry(chart, [Line("1000", debit=Decimal("1")), Line("3000", credit=Decimal("1"))])
        assert reverse_journal_entry(actor, entry.id).success
        assert reverse_journal_entry(actor, entry.id).error == "Cannot reverse entry in REVERSED status."
        assert reverse_journal_entry(actor, 999999).error_code == "not_found"

    def test_system_accounts_cannot_be_deleted(self, actor, chart):
        assert delete_account(actor, _account(chart, "1000").id).error == "System accounts cannot be deleted."

    def test_custom_account(self, actor, chart):
        result = create_account(actor, "5200", "Rent", Account.AccountType.EXPENSE)
        assert result.success
        assert create_account(actor, "5200", "Rent again", Account.AccountType.EXPENSE).error == (
            "Account code '5200' already exists."
        )
        assert create_account(actor, "5300", "Bad", "NOPE").error == "Invalid account type: NOPE"
        assert delete_account(actor, result.data.id).success


# =============================================================================
# Reports
# =============================================================================

@pytest.fixture
def ledger(chart):
    """Capital 1000, credit sale 300 + 18 SST, 200 collected, 50 expense."""
    post_entry(chart, [Line("1000", debit=Decimal("1000")), Line("3000", credit=Decimal("1000"))],
               entry_date=datetime.date(2024, 1, 1))
    post_entry(chart, [
        Line("1100", debit=Decimal("318")),
        Line("4000", credit=Decimal("300")),
        Line("2100", credit=Decimal("18")),
    ], entry_date=datetime.date(2024, 1, 10))
    post_entry(chart, [Line("1000", debit=Decimal("200")), Line("1100", credit=Decimal("200"))],
               entry_date=datetime.date(2024, 1, 20))
    post_entry(chart, [Line("5000", debit=Decimal("50")), Line("1000", credit=Decimal("50"))],
               entry_date=datetime.date(2024, 2, 1))
    return chart


@pytest.mark.django_db
class TestReports:
    def test_trial_balance(self, ledger):
        report = trial_balance(ledger)
        assert report["isBalanced"]
        assert report["totals"]["debit"] == Decimal("1568.00")
        cash = next(item for item in report["items"] if item["code"] == "1000")
        assert cash["balance"] == Decimal("1150.00")

    def test_trial_balance_range(self, ledger):
        report = trial_balance(ledger, end=datetime.date(2024, 1, 31))
        assert "5000" not in [item["code"] for item in report["items"]]

    def test_profit_and_loss(self, ledger):
        report = profit_and_loss(ledger)
        assert report["totals"] == {
            "revenue": Decimal("300.00"),
            "expense": Decimal("50.00"),
            "netIncome": Decimal("250.00"),
        }

    def test_balance_sheet_balances(self, ledger):
        report = balance_sheet(ledger)
        assert report["currentEarnings"] == Decimal("250.00")
        assert report["totals"]["assets"] == Decimal("1268.00")
        assert report["totals"]["liabilities"] == Decimal("18.00")
        assert report["totals"]["equity"] == Decimal("1250.00")
        assert report["isBalanced"]

    def test_reversal_cancels_out(self, ledger):
        entry = JournalEntry.objects.get(company=ledger, lines__account__code="5000")
        reverse_entry(entry)
        assert profit_and_loss(ledger)["totals"]["expense"] == Decimal("0.00")

    def test_cash_flow(self, ledger):
        report = cash_flow(ledger, start=datetime.date(2024, 1, 15))
        cash = next(item for item in report["items"] if item["code"] == "1000")
        assert cash["opening"] == Decimal("1000.00")
        assert cash["inflow"] == Decimal("200.00")
        assert cash["outflow"] == Decimal("50.00")
        assert cash["closing"] == Decimal("1150.00")


# =============================================================================
# Expenses, tax rates, bank
# =============================================================================

@pytest.mark.django_db
class TestExpenses:
    def test_cash_expense_posts(self, actor, chart):
        result = create_expense(
            actor, "TNB", _account(chart, GENERAL_EXPENSES).id, datetime.date(2024, 1, 3),
            Decimal("100"), tax_amount=Decimal("6"),
        )
        expense = result.data
        assert expense.total == Decimal("106.00")
        assert [(line.account.code, line.debit, line.credit) for line in expense.entry.lines.all()] == [
            ("5000", Decimal("100.00"), Decimal("0.00")),
            ("2100", Decimal("6.00"), Decimal("0.00")),
            ("1000", Decimal("0.00"), Decimal("106.00")),
        ]

    def test_credit_expense_hits_payables(self, actor, chart):
        result = create_expense(
            actor, "Supplier", _account(chart, "5100").id, datetime.date(2024, 1, 3), Decimal("80"),
            payment_method=Expense.PaymentMethod.CREDIT,
        )
        assert result.data.entry.lines.get(credit__gt=0).account.code == "2000"

    def test_category_must_be_an_expense(self, actor, chart):
        result = create_expense(actor, "X", _account(chart, "1000").id, datetime.date(2024, 1, 3), Decimal("1"))
        assert result.error == "Category must be an expense account."

    def test_expense_kept_when_posting_fails(self, actor, chart):
        Account.objects.filter(company=chart, code="1000").delete()
        result = create_expense(actor, "X", _account(chart, "5000").id, datetime.date(2024, 1, 3), Decimal("1"))
        assert result.success
        assert result.data.entry is None


@pytest.mark.django_db
class TestTaxAndBank:
    @pytest.mark.parametrize("rate,error", [("101", "Rate must be between 0 and 100."), ("x", "Rate must be a number.")])
    def test_tax_rate_validation(self, actor, rate, error):
        assert create_tax_rate(actor, "SST", rate).error == error

    def test_tax_rate(self, actor, chart):
        result = create_tax_rate(actor, "SST", "6", tax_liability_account_id=_account(chart, "2100").id)
        assert result.data.rate == Decimal("6")
        assert result.data.tax_liability_account.code == "2100"

    def test_bank_gl_account_must_be_an_asset(self, actor, chart):
        assert create_bank_account(actor, "Maybank", gl_account_id=_account(chart, "4000").id).error == (
            "GL account must be an asset account."
        )

    def test_csv_import_skips_bad_rows(self, actor, chart):
        bank = create_bank_account(actor, "Maybank", "5140-1234", _account(chart, "1010").id).data
        content = (
            "Date,Description,Amount\n"
            "2024-01-05,Payment from Siti,\"1,200.50\"\n"
            "05/01/2024,Rent,-900\n"
            "not a date,Junk,10\n"
            "2024-01-06,Junk amount,abc\n"
            "2024-01-07,Not a number,NaN\n"
            "2024-01-08,Overflow,Infinity\n"
            "2024-01-09,Too large,1e40\n"
            "2024-01-10,Too many digits,5000000000000\n"
            "short,row\n"
        )
        result = import_bank_csv(actor, bank.id, content)
        assert result.data == {"count": 2}
        amounts = sorted(BankTransaction.objects.values_list("amount", flat=True))
        assert amounts == [Decimal("-900.00"), Decimal("1200.50")]


# =============================================================================
# API
# =============================================================================

@pytest.mark.django_db
class TestAccountingAPI:
    def test_chart_list(self, auth_client):
        response = auth_client.get("/api/accounting/accounts/")
        assert response.status_code == 200
        assert [a["code"] for a in response.data][:4] == ["1000", "1010", "1100", "1200"]

    def test_trial_balance_export(self, auth_client, chart):
        post_entry(chart, [Line("1000", debit=Decimal("12.5")), Line("4000", credit=Decimal("12.5"))])
        response = auth_client.get("/api/accounting/reports/trial-balance/export/?format=csv")
        assert response.status_code == 200
        assert response["Content-Type"] == "text/csv"
        body = response.content.decode("utf-8-sig")
        assert body.splitlines()[0] == "Code,Account Name,Debit (RM),Credit (RM),Balance (RM)"
        assert "TOTAL" in body

    def test_ledger_paging(self, auth_client, chart):
        for _ in range(3):
            post_entry(chart, [Line("1000", debit=Decimal("1")), Line("3000", credit=Decimal("1"))])
        response = auth_client.get("/api/accounting/ledger/?limit=4")
        assert response.data["total"] == 6
        assert response.data["hasMore"] is True
        assert len(response.data["results"]) == 4

    def test_tax_rates(self, auth_client):
        response = auth_client.post("/api/accounting/tax-rates/", {"name": "SST", "rate": "6.00"}, format="json")
        assert response.status_code == 201
        assert auth_client.get("/api/accounting/tax-rates/").data[0]["rate"] == "6.00"

    def test_bank_import_content(self, auth_client, actor):
        bank = create_bank_account(actor, "CIMB").data
        response = auth_client.post(
            f"/api/accounting/bank-accounts/{bank.id}/import/",
            {"content": "date,description,amount\n2024-02-01,Deposit,50\n"},
            format="json",
        )
        assert response.status_code == 201
        assert response.data == {"count": 1}

    def test_viewer_cannot_post(self, viewer_client, chart):
        response = viewer_client.post("/api/accounting/journal-entries/", {
            "date": "2024-01-01",
            "lines": [
                {"account_id": _account(chart, "1000").id, "debit": "1"},
                {"account_id": _account(chart, "3000").id, "credit": "1"},
            ],
        }, format="json")
        assert response.status_code == 403
