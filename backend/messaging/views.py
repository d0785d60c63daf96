# messaging/views.py
"""
WhatsApp link endpoints.

Each endpoint answers {"url", "phone", "message"}; the client opens the
URL. A phone number in the query or body overrides the stored one.
"""

from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import require, resolve_actor
from customers.models import Customer
from invoicing.models import Invoice
from receipts.models import Receipt

from .serializers import CustomerLinkSerializer, InvoiceLinkSerializer, ReceiptLinkSerializer
from .whatsapp import (
    customer_message,
    display_number,
    follow_up_message,
    invoice_message,
    is_valid_whatsapp_number,
    receipt_message,
    whatsapp_url,
)

DATE_FORMAT = "%d/%m/%Y"


def _link(phone, message):
    if not is_valid_whatsapp_number(phone):
        return Response(
            {"detail": "A valid WhatsApp phone number is required."},
            status=status.HTTP_400_BAD_REQUEST,
        )
    return Response({
        "url": whatsapp_url(phone, message),
        "phone": display_number(phone),
        "message": message,
    })


class InvoiceWhatsAppView(APIView):
    """
    GET /api/messaging/whatsapp/invoices/<pk>/?type=invoice|receipt|follow_up&kind=gentle|urgent|final
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "messaging.send")
        serializer = InvoiceLinkSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        params = serializer.validated_data

        invoice = get_object_or_404(
            Invoice.objects.filter(company=actor.company).select_related("customer", "company"),
            pk=pk,
        )
        company_name = invoice.company.display_name
        customer = invoice.customer
        due_date = invoice.due_date.strftime(DATE_FORMAT)

        if params["type"] == "receipt":
            message = receipt_message(customer.name, invoice.invoice_number, invoice.paid_amount, company_name)
        elif params["type"] == "follow_up":
            days_overdue = max((timezone.localdate() - invoice.due_date).days, 0)
            message = follow_up_message(
                customer.name,
                invoice.invoice_number,
                invoice.balance_due,
                due_date,
                days_overdue,
                kind=params["kind"],
                company_name=company_name,
            )
        else:
            message = invoice_message(customer.name, invoice.invoice_number, invoice.total, due_date, company_name)

        return _link(params["phone"] or customer.phone_number, message)


class ReceiptWhatsAppView(APIView):
    """
    GET /api/messaging/whatsapp/receipts/<pk>/?phone=
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "messaging.send")
        serializer = ReceiptLinkSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)

        receipt = get_object_or_404(
            Receipt.objects.filter(company=actor.company).select_related("customer"),
            pk=pk,
        )
        customer_name = receipt.customer_name or (receipt.customer.name if receipt.customer else "")
        phone = (
            serializer.validated_data["phone"]
            or receipt.customer_phone
            or (receipt.customer.phone_number if receipt.customer else "")
        )
        message = receipt_message(customer_name, receipt.receipt_number, receipt.total, actor.company.display_name)
        return _link(phone, message)


class CustomerWhatsAppView(APIView):
    """
    POST /api/messaging/whatsapp/customers/<pk>/ {"message": optional custom text}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "messaging.send")
        serializer = CustomerLinkSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        customer = get_object_or_404(Customer, pk=pk, company=actor.company)
        message = customer_message(
            customer.name,
            actor.company.display_name,
            serializer.validated_data["message"] or None,
        )
        return _link(customer.phone_number, message)
