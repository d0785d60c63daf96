# invoicing/views.py
"""
Invoice endpoints.

Views handle: HTTP parsing, authentication, response formatting.
Commands handle: transitions and their stock/ledger side effects.
"""

from django.db.models import Q
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.exports import ExportFormat, create_export_response
from accounts.authz import require, resolve_actor
from invo_backend.pagination import IdCursorPagination
from invo_backend.responses import error_response

from .commands import apply_action, create_invoice, delete_invoice, update_draft
from .exports import INVOICE_EXPORT_COLUMNS, prepare_invoice_export_data
from .models import Invoice
from .pdf import render_invoice_pdf
from .serializers import (
    InvoiceActionSerializer,
    InvoiceCreateSerializer,
    InvoiceListSerializer,
    InvoiceSerializer,
    InvoiceUpdateSerializer,
)


def _filtered_invoices(request, company):
    invoices = Invoice.objects.filter(company=company).select_related("customer")

    status_filter = request.query_params.get("status", "").strip().upper()
    if status_filter and status_filter != "ALL":
        invoices = invoices.filter(status=status_filter)

    search = request.query_params.get("search", "").strip()
    if search:
        invoices = invoices.filter(
            Q(invoice_number__icontains=search) | Q(customer__name__icontains=search)
        )
    return invoices


def _detail_queryset(company):
    return (
        Invoice.objects.filter(company=company)
        .select_related("customer", "issued_entry")
        .prefetch_related("items__product", "payments__journal_entry")
    )


class InvoiceListCreateView(APIView):
    """
    GET /api/invoices/?status=&search=&cursor=&limit= -> {data, nextCursor, totalCount}
    POST /api/invoices/ -> create invoice (DRAFT or SENT)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "invoices.view")

        paginator = IdCursorPagination()
        page = paginator.paginate_queryset(_filtered_invoices(request, actor.company), request, view=self)
        return paginator.get_paginated_response(InvoiceListSerializer(page, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)
        serializer = InvoiceCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = create_invoice(actor, **serializer.validated_data)
        if not result.success:
            return error_response(result)

        invoice = _detail_queryset(actor.company).get(pk=result.data.pk)
        return Response(InvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)


class InvoiceDetailView(APIView):
    """
    GET /api/invoices/<pk>/
    PUT /api/invoices/<pk>/ -> edit a DRAFT (header and/or items)
    PATCH /api/invoices/<pk>/ -> {"action": "mark_sent" | "payment" | "cancel", "paymentAmount": ...}
    DELETE /api/invoices/<pk>/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "invoices.view")
        invoice = get_object_or_404(_detail_queryset(actor.company), pk=pk)
        return Response(InvoiceSerializer(invoice).data)

    def put(self, request, pk):
        actor = resolve_actor(request)
        serializer = InvoiceUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = update_draft(actor, pk, **serializer.validated_data)
        if not result.success:
            return error_response(result)
        invoice = _detail_queryset(actor.company).get(pk=pk)
        return Response(InvoiceSerializer(invoice).data)

    def patch(self, request, pk):
        actor = resolve_actor(request)
        serializer = InvoiceActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = apply_action(
            actor,
            pk,
            data["action"],
            payment_amount=data.get("paymentAmount"),
            method=data.get("method"),
            reference=data.get("reference", ""),
        )
        if not result.success:
            return error_response(result)
        invoice = _detail_queryset(actor.company).get(pk=pk)
        return Response(InvoiceSerializer(invoice).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)
        result = delete_invoice(actor, pk)
        if not result.success:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


class InvoicePdfView(APIView):
    """
    GET /api/invoices/<pk>/pdf/ -> application/pdf
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "invoices.view")
        invoice = get_object_or_404(
            Invoice.objects.filter(company=actor.company).select_related("company", "customer"),
            pk=pk,
        )

        response = HttpResponse(render_invoice_pdf(invoice), content_type="application/pdf")
        disposition = "attachment" if request.query_params.get("download") else "inline"
        response["Content-Disposition"] = f'{disposition}; filename="{invoice.invoice_number}.pdf"'
        return response


class InvoiceExportView(APIView):
    """
    GET /api/invoices/export/?format=csv|xlsx|txt&status=&search=
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "invoices.view")

        export_format = request.query_params.get("format", ExportFormat.CSV)
        if export_format not in ExportFormat.CHOICES:
            return Response(
                {"detail": f"Invalid format. Must be one of: {', '.join(ExportFormat.CHOICES)}"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        invoices = _filtered_invoices(request, actor.company).order_by("-issue_date", "-id")
        timestamp = timezone.localtime().strftime("%Y%m%d_%H%M%S")
        return create_export_response(
            data=prepare_invoice_export_data(invoices),
            columns=INVOICE_EXPORT_COLUMNS,
            format=export_format,
            filename=f"invoices_{timestamp}",
            title="Invoices",
        )
