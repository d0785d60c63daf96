# einvoice/views.py
"""
E-invoice endpoints.

Views handle: HTTP parsing, authentication, response formatting.
Commands handle: readiness, document building, validation, persistence.
"""

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import require, resolve_actor
from invo_backend.responses import error_response
from invoicing.models import Invoice

from .commands import get_config, invoice_einvoice_status, prepare_document, update_config
from .serializers import (
    EInvoiceConfigInputSerializer,
    EInvoiceConfigSerializer,
    EInvoiceDocumentSerializer,
    PrepareDocumentSerializer,
)


class EInvoiceConfigView(APIView):
    """
    GET /api/einvoice/config/ -> config (null before setup)
    PUT/PATCH /api/einvoice/config/ -> partial update
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "einvoice.view")
        config = get_config(actor.company)
        if config is None:
            return Response(None)
        return Response(EInvoiceConfigSerializer(config).data)

    def put(self, request):
        actor = resolve_actor(request)
        serializer = EInvoiceConfigInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = update_config(actor, **serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(EInvoiceConfigSerializer(result.data).data)

    patch = put


class InvoiceEInvoiceView(APIView):
    """
    GET /api/invoices/<pk>/einvoice/ -> readiness, latest document, all documents
    POST /api/invoices/<pk>/einvoice/ -> prepare a document {"profile": "LHDN" | "PEPPOL"}
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "einvoice.view")
        invoice = get_object_or_404(
            Invoice.objects.filter(company=actor.company).select_related("company", "customer"),
            pk=pk,
        )

        state = invoice_einvoice_status(invoice)
        latest = state["latest_document"]
        return Response({
            "invoiceId": state["invoice_id"],
            "latestDocument": EInvoiceDocumentSerializer(latest).data if latest else None,
            "allDocuments": EInvoiceDocumentSerializer(state["documents"], many=True).data,
            "readiness": state["readiness"],
        })

    def post(self, request, pk):
        actor = resolve_actor(request)
        serializer = PrepareDocumentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = prepare_document(actor, pk, profile=serializer.validated_data["profile"])
        if not result.success:
            return error_response(result)
        return Response(EInvoiceDocumentSerializer(result.data).data, status=status.HTTP_201_CREATED)
