# pos/views.py
"""
POS endpoints.

Every view except PosModuleView is gated by PosModuleEnabled, which
answers 403 "POS module is disabled. Enable it in Settings." until the
company enables the module.
"""

from django.db.models import Prefetch
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import require, resolve_actor
from invo_backend.responses import error_response

from .chit import kitchen_chit
from .commands import (
    ACTIVE_STATUSES,
    cancel_order,
    create_order,
    create_table,
    deactivate_table,
    disable_pos,
    enable_pos,
    is_pos_enabled,
    update_order_status,
    update_settings,
    update_table,
)
from .models import PosOrder, PosSettings, PosTable
from .permissions import PosModuleEnabled
from .serializers import (
    ChitRequestSerializer,
    PosOrderCreateSerializer,
    PosOrderSerializer,
    PosOrderStatusSerializer,
    PosOrderSummarySerializer,
    PosSettingsInputSerializer,
    PosSettingsSerializer,
    PosTableInputSerializer,
    PosTableSerializer,
)

DEFAULT_ORDER_LIMIT = 50


def _orders(company):
    return (
        PosOrder.objects.filter(company=company)
        .select_related("table", "receipt")
        .prefetch_related("items__product")
    )


# =============================================================================
# Module switch and settings
# =============================================================================

class PosModuleView(APIView):
    """
    GET /api/pos/module/ -> {"enabled": bool}
    POST /api/pos/module/ -> enable (creates default settings)
    DELETE /api/pos/module/ -> disable
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "pos.view")
        return Response({"enabled": is_pos_enabled(actor.company)})

    def post(self, request):
        actor = resolve_actor(request)
        result = enable_pos(actor)
        return Response(
            {"enabled": True, "settings": PosSettingsSerializer(result.data).data},
            status=status.HTTP_201_CREATED,
        )

    def delete(self, request):
        actor = resolve_actor(request)
        disable_pos(actor)
        return Response({"enabled": False})


class PosSettingsView(APIView):
    """
    GET/PUT /api/pos/settings/
    """
    permission_classes = [IsAuthenticated, PosModuleEnabled]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "pos.view")
        settings_row = PosSettings.objects.get(company=actor.company)
        return Response({"settings": PosSettingsSerializer(settings_row).data})

    def put(self, request):
        actor = resolve_actor(request)
        serializer = PosSettingsInputSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        result = update_settings(actor, **serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(PosSettingsSerializer(result.data).data)

    patch = put


# =============================================================================
# Tables
# =============================================================================

class PosTableListCreateView(APIView):
    """
    GET /api/pos/tables/ -> tables with hasActiveOrder / activeOrder
    POST /api/pos/tables/
    """
    permission_classes = [IsAuthenticated, PosModuleEnabled]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "pos.view")

        active = PosOrder.objects.filter(status__in=ACTIVE_STATUSES).order_by("-created_at")
        tables = PosTable.objects.filter(company=actor.company).prefetch_related(
            Prefetch("orders", queryset=active, to_attr="active_orders")
        )
        data = []
        for table in tables:
            row = PosTableSerializer(table).data
            latest = table.active_orders[0] if table.active_orders else None
            row["hasActiveOrder"] = latest is not None
            row["activeOrder"] = PosOrderSummarySerializer(latest).data if latest else None
            data.append(row)
        return Response({"tables": data})

    def post(self, request):
        actor = resolve_actor(request)
        serializer = PosTableInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = create_table(
            actor,
            name=data.get("name", ""),
            label=data.get("label", ""),
            capacity=data.get("capacity", 4),
            position_x=data.get("position_x", 0),
            position_y=data.get("position_y", 0),
        )
        if not result.success:
            return error_response(result)
        return Response({"table": PosTableSerializer(result.data).data}, status=status.HTTP_201_CREATED)


class PosTableDetailView(APIView):
    """
    GET /api/pos/tables/<pk>/ -> table with its active orders
    PUT/PATCH /api/pos/tables/<pk>/
    DELETE /api/pos/tables/<pk>/ -> deactivate
    """
    permission_classes = [IsAuthenticated, PosModuleEnabled]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "pos.view")
        table = get_object_or_404(PosTable, pk=pk, company=actor.company)
        orders = _orders(actor.company).filter(table=table, status__in=ACTIVE_STATUSES)
        return Response({
            "table": {
                **PosTableSerializer(table).data,
                "orders": PosOrderSerializer(orders, many=True).data,
            }
        })

    def put(self, request, pk):
        actor = resolve_actor(request)
        serializer = PosTableInputSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        result = update_table(actor, pk, **serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response({"table": PosTableSerializer(result.data).data})

    patch = put

    def delete(self, request, pk):
        actor = resolve_actor(request)
        result = deactivate_table(actor, pk)
        if not result.success:
            return error_response(result)
        return Response({
            "message": "Table deactivated successfully",
            "table": PosTableSerializer(result.data).data,
        })


# =============================================================================
# Orders
# =============================================================================

def _int_param(request, name, default):
    try:
        return max(int(request.query_params.get(name, default)), 0)
    except (TypeError, ValueError):
        return default


class PosOrderListCreateView(APIView):
    """
    GET /api/pos/orders/?status=&limit=&offset=
    POST /api/pos/orders/
    """
    permission_classes = [IsAuthenticated, PosModuleEnabled]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "pos.view")

        orders = _orders(actor.company)
        status_filter = request.query_params.get("status")
        if status_filter:
            orders = orders.filter(status=status_filter)

        limit = _int_param(request, "limit", DEFAULT_ORDER_LIMIT) or DEFAULT_ORDER_LIMIT
        offset = _int_param(request, "offset", 0)
        total = orders.count()
        page = orders.order_by("-created_at", "-id")[offset:offset + limit]
        return Response({
            "orders": PosOrderSerializer(page, many=True).data,
            "pagination": {
                "total": total,
                "limit": limit,
                "offset": offset,
                "hasMore": offset + limit < total,
            },
        })

    def post(self, request):
        actor = resolve_actor(request)
        serializer = PosOrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = create_order(actor, **serializer.validated_data)
        if not result.success:
            return error_response(result)
        order = _orders(actor.company).get(pk=result.data.pk)
        return Response(PosOrderSerializer(order).data, status=status.HTTP_201_CREATED)


class PosOrderDetailView(APIView):
    """
    GET /api/pos/orders/<pk>/
    PATCH /api/pos/orders/<pk>/ -> {"status": ..., "notes": ...}
    DELETE /api/pos/orders/<pk>/ -> cancel
    """
    permission_classes = [IsAuthenticated, PosModuleEnabled]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "pos.view")
        order = get_object_or_404(_orders(actor.company), pk=pk)
        return Response(PosOrderSerializer(order).data)

    def patch(self, request, pk):
        actor = resolve_actor(request)
        serializer = PosOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = update_order_status(actor, pk, serializer.validated_data["status"], notes=serializer.validated_data.get("notes"))
        if not result.success:
            return error_response(result)
        order = _orders(actor.company).get(pk=pk)
        return Response({
            "success": True,
            "order": PosOrderSerializer(order).data,
            "message": f"Order status updated to {order.status}",
        })

    def delete(self, request, pk):
        actor = resolve_actor(request)
        result = cancel_order(actor, pk)
        if not result.success:
            return error_response(result)
        return Response({"message": "Order cancelled successfully"})


class KitchenChitView(APIView):
    """
    POST /api/pos/print/chit/ {"order_id": ...} -> chit text for the printer bridge
    """
    permission_classes = [IsAuthenticated, PosModuleEnabled]

    def post(self, request):
        actor = resolve_actor(request)
        require(actor, "pos.use")
        serializer = ChitRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = get_object_or_404(_orders(actor.company), pk=serializer.validated_data["order_id"])
        return Response({
            "success": True,
            "message": "Kitchen chit generated successfully",
            "chitContent": kitchen_chit(order),
            "orderId": order.id,
            "orderNumber": order.order_number,
            "tableNumber": order.table_number,
            "printerAddress": serializer.validated_data["printer_address"],
            "timestamp": timezone.now().isoformat(),
        })
