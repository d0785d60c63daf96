# customers/views.py
"""
Customer endpoints.

The list is cached per company and search term; any customer write
bumps the cache tag.
"""

from django.conf import settings
from django.db.models import Count, DecimalField, Q, Sum, Value
from django.db.models.functions import Coalesce
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import require, resolve_actor
from invo_backend.responses import error_response
from ops import cache as ops_cache

from .commands import create_customer, delete_customer, update_customer
from .models import Customer
from .serializers import CustomerInputSerializer, CustomerSerializer


def _customer_list(company, search: str) -> list:
    customers = Customer.objects.filter(company=company)
    if search:
        customers = customers.filter(
            Q(name__icontains=search) | Q(email__icontains=search) | Q(phone_number__icontains=search)
        )
    return CustomerSerializer(customers.order_by("name"), many=True).data


class CustomerListCreateView(APIView):
    """
    GET /api/customers/?search= -> customers (cached)
    POST /api/customers/ -> create customer
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "customers.view")

        search = request.query_params.get("search", "").strip()
        data = ops_cache.cached(
            actor.company.id,
            ops_cache.CUSTOMERS,
            lambda: _customer_list(actor.company, search),
            "list",
            search.lower(),
            timeout=settings.CUSTOMER_CACHE_TIMEOUT,
        )
        return Response(data)

    def post(self, request):
        actor = resolve_actor(request)
        serializer = CustomerInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = create_customer(actor, **serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(CustomerSerializer(result.data).data, status=status.HTTP_201_CREATED)


class CustomerDetailView(APIView):
    """
    GET/PUT/PATCH/DELETE /api/customers/<pk>/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "customers.view")
        customer = get_object_or_404(Customer, pk=pk, company=actor.company)
        return Response(CustomerSerializer(customer).data)

    def put(self, request, pk):
        return self._update(request, pk, partial=False)

    def patch(self, request, pk):
        return self._update(request, pk, partial=True)

    def _update(self, request, pk, partial):
        actor = resolve_actor(request)
        serializer = CustomerInputSerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        result = update_customer(actor, pk, **serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(CustomerSerializer(result.data).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)
        result = delete_customer(actor, pk)
        if not result.success:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


class CustomerDetailsView(APIView):
    """
    GET /api/customers/<pk>/details/

    Customer plus totalPurchases (all invoices), paidPurchases (PAID and
    PARTIAL invoice totals) and invoiceCount.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        from invoicing.models import Invoice

        actor = resolve_actor(request)
        require(actor, "customers.view")
        customer = get_object_or_404(Customer, pk=pk, company=actor.company)

        zero = Value(0, output_field=DecimalField(max_digits=14, decimal_places=2))
        stats = Invoice.objects.filter(company=actor.company, customer=customer).aggregate(
            purchases_total=Coalesce(Sum("total"), zero),
            purchases_paid=Coalesce(
                Sum("total", filter=Q(status__in=[Invoice.Status.PAID, Invoice.Status.PARTIAL])),
                zero,
            ),
            invoice_count=Count("id"),
        )
        return Response({
            **CustomerSerializer(customer).data,
            "totalPurchases": stats["purchases_total"],
            "paidPurchases": stats["purchases_paid"],
            "invoiceCount": stats["invoice_count"],
        })
