# accounting/views.py
"""
Thin views that delegate to the commands layer.

Views handle: HTTP parsing, authentication, response formatting.
Commands handle: business logic and validation.

All mutations (create, update, delete) go through commands. Reports are
read-only and call accounting/reports.py directly.
"""

from django.db.models import Exists, OuterRef
from django.http import Http404
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import require, resolve_actor
from invo_backend.responses import error_response

from . import reports
from .commands import (
    create_account,
    create_bank_account,
    create_expense,
    create_journal_entry,
    create_tax_rate,
    delete_account,
    delete_bank_account,
    delete_tax_rate,
    import_bank_csv,
    reverse_journal_entry,
    update_account,
    update_bank_account,
    update_tax_rate,
)
from .exports import (
    ACCOUNT_EXPORT_COLUMNS,
    TRIAL_BALANCE_EXPORT_COLUMNS,
    ExportFormat,
    create_export_response,
    prepare_account_export_data,
    prepare_trial_balance_export_data,
)
from .models import Account, BankAccount, Expense, JournalEntry, JournalLine, TaxRate
from .serializers import (
    AccountCreateSerializer,
    AccountSerializer,
    AccountUpdateSerializer,
    BankAccountInputSerializer,
    BankAccountSerializer,
    BankImportSerializer,
    BankTransactionSerializer,
    ExpenseCreateSerializer,
    ExpenseSerializer,
    JournalEntryCreateSerializer,
    JournalEntryReverseSerializer,
    JournalEntrySerializer,
    LedgerLineSerializer,
    ReportRangeSerializer,
    TaxRateInputSerializer,
    TaxRateSerializer,
)

LEDGER_DEFAULT_LIMIT = 20
LEDGER_MAX_LIMIT = 50


def _accounts_queryset(company):
    return Account.objects.filter(company=company).annotate(
        _has_transactions=Exists(JournalLine.objects.filter(account=OuterRef("pk"))),
    ).select_related("parent")


def _ordered_by_type(accounts):
    return sorted(accounts, key=lambda a: (Account.TYPE_ORDER.get(a.account_type, 99), a.code))


def _report_range(request):
    serializer = ReportRangeSerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


def _int_param(request, name, default, maximum=None):
    try:
        value = int(request.query_params.get(name, default))
    except (TypeError, ValueError):
        value = default
    value = max(value, 0)
    if maximum is not None:
        value = min(value, maximum)
    return value


# =============================================================================
# Account Views
# =============================================================================

class AccountListCreateView(APIView):
    """
    GET /api/accounting/accounts/ -> accounts ordered by type then code
    POST /api/accounting/accounts/ -> create account
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "accounts.view")

        accounts = _ordered_by_type(_accounts_queryset(actor.company))
        return Response(AccountSerializer(accounts, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)
        input_serializer = AccountCreateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = create_account(actor, **input_serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(AccountSerializer(result.data).data, status=status.HTTP_201_CREATED)


class AccountDetailView(APIView):
    """
    GET/PATCH/DELETE /api/accounting/accounts/<pk>/
    """
    permission_classes = [IsAuthenticated]

    def get_object(self, actor, pk):
        account = _accounts_queryset(actor.company).filter(pk=pk).first()
        if not account:
            raise Http404
        return account

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "accounts.view")
        return Response(AccountSerializer(self.get_object(actor, pk)).data)

    def patch(self, request, pk):
        actor = resolve_actor(request)
        account = self.get_object(actor, pk)

        input_serializer = AccountUpdateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = update_account(actor, account.id, **input_serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(AccountSerializer(result.data).data)

    put = patch

    def delete(self, request, pk):
        actor = resolve_actor(request)
        account = self.get_object(actor, pk)

        result = delete_account(actor, account.id)
        if not result.success:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Journal Views
# =============================================================================

class JournalEntryListCreateView(APIView):
    """
    GET /api/accounting/journal-entries/ -> list entries (newest first)
    POST /api/accounting/journal-entries/ -> post a manual entry
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "journal.view")

        entries = JournalEntry.objects.filter(company=actor.company).select_related(
            "reverses",
        ).prefetch_related("lines", "lines__account")

        source = request.query_params.get("source")
        if source:
            entries = entries.filter(source=source)

        limit = _int_param(request, "limit", LEDGER_DEFAULT_LIMIT, LEDGER_MAX_LIMIT)
        offset = _int_param(request, "offset", 0)
        page = list(entries[offset:offset + limit + 1])
        return Response({
            "results": JournalEntrySerializer(page[:limit], many=True).data,
            "hasMore": len(page) > limit,
        })

    def post(self, request):
        actor = resolve_actor(request)
        input_serializer = JournalEntryCreateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = create_journal_entry(actor, **input_serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(JournalEntrySerializer(result.data).data, status=status.HTTP_201_CREATED)


class JournalEntryDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "journal.view")

        entry = get_object_or_404(JournalEntry, pk=pk, company=actor.company)
        return Response(JournalEntrySerializer(entry).data)


class JournalReverseView(APIView):
    """POST /api/accounting/journal-entries/<pk>/reverse/"""
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)
        input_serializer = JournalEntryReverseSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = reverse_journal_entry(actor, pk, **input_serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(JournalEntrySerializer(result.data).data, status=status.HTTP_201_CREATED)


class LedgerView(APIView):
    """
    GET /api/accounting/ledger/?account=<id>&limit=20&offset=0

    Journal lines, newest entry first. ``limit`` is capped at 50.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "journal.view")

        lines = JournalLine.objects.filter(company=actor.company).select_related("entry", "account")
        account_id = request.query_params.get("account")
        if account_id:
            lines = lines.filter(account_id=account_id)
        lines = lines.order_by("-entry__date", "-entry_id", "line_no")

        limit = _int_param(request, "limit", LEDGER_DEFAULT_LIMIT, LEDGER_MAX_LIMIT) or LEDGER_DEFAULT_LIMIT
        offset = _int_param(request, "offset", 0)
        total = lines.count()
        page = lines[offset:offset + limit]
        return Response({
            "results": LedgerLineSerializer(page, many=True).data,
            "total": total,
            "limit": limit,
            "offset": offset,
            "hasMore": offset + limit < total,
        })


# =============================================================================
# Reports
# =============================================================================

class TrialBalanceView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.view")
        params = _report_range(request)
        return Response(reports.trial_balance(actor.company, params.get("start"), params.get("end")))


class ProfitLossView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.view")
        params = _report_range(request)
        return Response(reports.profit_and_loss(actor.company, params.get("start"), params.get("end")))


class BalanceSheetView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.view")
        params = _report_range(request)
        as_of = params.get("as_of") or params.get("end") or timezone.localdate()
        return Response(reports.balance_sheet(actor.company, as_of))


class CashFlowView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.view")
        params = _report_range(request)
        return Response(reports.cash_flow(actor.company, params.get("start"), params.get("end")))


class AccountingDashboardView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.view")
        return Response(reports.accounting_dashboard(actor.company))


# =============================================================================
# Tax Rates
# =============================================================================

class TaxRateListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "accounts.view")
        tax_rates = TaxRate.objects.filter(company=actor.company)
        return Response(TaxRateSerializer(tax_rates, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)
        input_serializer = TaxRateInputSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        data = dict(input_serializer.validated_data)
        data.pop("is_active", None)
        result = create_tax_rate(actor, **data)
        if not result.success:
            return error_response(result)
        return Response(TaxRateSerializer(result.data).data, status=status.HTTP_201_CREATED)


class TaxRateDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def patch(self, request, pk):
        actor = resolve_actor(request)
        input_serializer = TaxRateInputSerializer(data=request.data, partial=True)
        input_serializer.is_valid(raise_exception=True)

        result = update_tax_rate(actor, pk, **input_serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(TaxRateSerializer(result.data).data)

    put = patch

    def delete(self, request, pk):
        actor = resolve_actor(request)
        result = delete_tax_rate(actor, pk)
        if not result.success:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Expenses
# =============================================================================

class ExpenseListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "accounts.view")
        expenses = Expense.objects.filter(company=actor.company).select_related("category", "entry")
        return Response(ExpenseSerializer(expenses, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)
        input_serializer = ExpenseCreateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = create_expense(actor, **input_serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(ExpenseSerializer(result.data).data, status=status.HTTP_201_CREATED)


# =============================================================================
# Bank Accounts
# =============================================================================

class BankAccountListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "accounts.view")
        bank_accounts = BankAccount.objects.filter(company=actor.company).select_related("gl_account")
        return Response(BankAccountSerializer(bank_accounts, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)
        input_serializer = BankAccountInputSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = create_bank_account(actor, **input_serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(BankAccountSerializer(result.data).data, status=status.HTTP_201_CREATED)


class BankAccountDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "accounts.view")
        bank_account = get_object_or_404(BankAccount, pk=pk, company=actor.company)
        transactions = bank_account.transactions.all()[:200]
        return Response({
            **BankAccountSerializer(bank_account).data,
            "transactions": BankTransactionSerializer(transactions, many=True).data,
        })

    def patch(self, request, pk):
        actor = resolve_actor(request)
        input_serializer = BankAccountInputSerializer(data=request.data, partial=True)
        input_serializer.is_valid(raise_exception=True)

        result = update_bank_account(actor, pk, **input_serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(BankAccountSerializer(result.data).data)

    put = patch

    def delete(self, request, pk):
        actor = resolve_actor(request)
        result = delete_bank_account(actor, pk)
        if not result.success:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


class BankImportView(APIView):
    """POST /api/accounting/bank-accounts/<pk>/import/ (CSV: date, description, amount)"""
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)
        input_serializer = BankImportSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = import_bank_csv(actor, pk, input_serializer.get_text())
        if not result.success:
            return error_response(result)
        return Response(result.data, status=status.HTTP_201_CREATED)


# =============================================================================
# Export Views
# =============================================================================

def _export_format(request):
    export_format = request.query_params.get("format", ExportFormat.CSV)
    if export_format not in ExportFormat.CHOICES:
        return None
    return export_format


def _invalid_format_response():
    return Response(
        {"detail": f"Invalid format. Must be one of: {', '.join(ExportFormat.CHOICES)}"},
        status=status.HTTP_400_BAD_REQUEST,
    )


class AccountExportView(APIView):
    """
    GET /api/accounting/accounts/export/?format=csv|xlsx|txt
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.export")

        export_format = _export_format(request)
        if export_format is None:
            return _invalid_format_response()

        accounts = _ordered_by_type(Account.objects.filter(company=actor.company).select_related("parent"))
        timestamp = timezone.localtime().strftime("%Y%m%d_%H%M%S")
        return create_export_response(
            data=prepare_account_export_data(accounts),
            columns=ACCOUNT_EXPORT_COLUMNS,
            format=export_format,
            filename=f"chart_of_accounts_{timestamp}",
            title="Chart of Accounts",
        )


class TrialBalanceExportView(APIView):
    """
    GET /api/accounting/reports/trial-balance/export/?format=csv&start=&end=
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.export")

        export_format = _export_format(request)
        if export_format is None:
            return _invalid_format_response()

        params = _report_range(request)
        report = reports.trial_balance(actor.company, params.get("start"), params.get("end"))
        timestamp = timezone.localtime().strftime("%Y%m%d_%H%M%S")
        return create_export_response(
            data=prepare_trial_balance_export_data(report),
            columns=TRIAL_BALANCE_EXPORT_COLUMNS,
            format=export_format,
            filename=f"trial_balance_{timestamp}",
            title="Trial Balance",
        )
