# receipts/views.py
"""
Receipt endpoints.

The list pages newest receipt_date first; ``invoice`` narrows it to the
receipts issued against one invoice.
"""

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import require, resolve_actor
from invo_backend.pagination import IdCursorPagination
from invo_backend.responses import error_response

from .commands import create_receipt, delete_receipt
from .models import Receipt
from .serializers import ReceiptCreateSerializer, ReceiptSerializer


class ReceiptPagination(IdCursorPagination):
    order_field = "receipt_date"


class ReceiptListCreateView(APIView):
    """
    GET /api/receipts/?invoice=&cursor=&limit= -> {data, nextCursor, totalCount}
    POST /api/receipts/ -> create receipt
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "receipts.view")

        receipts = Receipt.objects.filter(company=actor.company).select_related("invoice").prefetch_related("items")
        invoice_id = request.query_params.get("invoice")
        if invoice_id:
            if not invoice_id.isdigit():
                return Response({"detail": "Invalid invoice id."}, status=status.HTTP_400_BAD_REQUEST)
            receipts = receipts.filter(invoice_id=int(invoice_id))

        paginator = ReceiptPagination()
        page = paginator.paginate_queryset(receipts, request, view=self)
        return paginator.get_paginated_response(ReceiptSerializer(page, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)
        serializer = ReceiptCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = create_receipt(actor, **serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(ReceiptSerializer(result.data).data, status=status.HTTP_201_CREATED)


class ReceiptDetailView(APIView):
    """
    GET/DELETE /api/receipts/<pk>/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "receipts.view")
        receipt = get_object_or_404(
            Receipt.objects.filter(company=actor.company).prefetch_related("items"),
            pk=pk,
        )
        return Response(ReceiptSerializer(receipt).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)
        result = delete_receipt(actor, pk)
        if not result.success:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)
