# inventory/views.py
"""
Product endpoints.

GET /api/products/?search=&low_stock=1 lists products; low stock means
a tracked product at or below LOW_STOCK_THRESHOLD.
"""

from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import require, resolve_actor
from invo_backend.responses import error_response
from ops import cache as ops_cache

from .commands import (
    create_product,
    delete_product,
    delete_product_image,
    update_product,
    upload_product_image,
)
from .models import Product
from .serializers import (
    ProductInputSerializer,
    ProductPatchSerializer,
    ProductSerializer,
    StockMovementSerializer,
)

LOW_STOCK_THRESHOLD = 5
PRODUCT_CACHE_TIMEOUT = 120


def _product_list(company, search: str, low_stock: bool) -> list:
    products = Product.objects.filter(company=company)
    if search:
        products = products.filter(Q(name__icontains=search) | Q(sku__icontains=search))
    if low_stock:
        products = products.filter(disable_stock_management=False, quantity__lte=LOW_STOCK_THRESHOLD)
    return ProductSerializer(products.order_by("name"), many=True).data


class ProductListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "products.view")

        search = request.query_params.get("search", "").strip()
        low_stock = request.query_params.get("low_stock", "").lower() in ("1", "true", "yes")
        data = ops_cache.cached(
            actor.company.id,
            ops_cache.PRODUCTS,
            lambda: _product_list(actor.company, search, low_stock),
            "list",
            search.lower(),
            int(low_stock),
            timeout=PRODUCT_CACHE_TIMEOUT,
        )
        return Response(data)

    def post(self, request):
        actor = resolve_actor(request)
        serializer = ProductInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = create_product(actor, **serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(ProductSerializer(result.data).data, status=status.HTTP_201_CREATED)


class ProductDetailView(APIView):
    """
    GET /api/products/<pk>/ -> product with its last stock movements
    PUT /api/products/<pk>/ -> replace all fields
    PATCH /api/products/<pk>/ -> price, quantity, disable_stock_management, image_url
    DELETE /api/products/<pk>/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "products.view")
        product = get_object_or_404(Product, pk=pk, company=actor.company)
        return Response({
            **ProductSerializer(product).data,
            "movements": StockMovementSerializer(product.movements.all()[:20], many=True).data,
        })

    def put(self, request, pk):
        actor = resolve_actor(request)
        serializer = ProductInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = update_product(actor, pk, partial=False, **serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(ProductSerializer(result.data).data)

    def patch(self, request, pk):
        actor = resolve_actor(request)
        serializer = ProductPatchSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = update_product(actor, pk, partial=True, **serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(ProductSerializer(result.data).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)
        result = delete_product(actor, pk)
        if not result.success:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ProductImageView(APIView):
    """
    POST /api/products/<pk>/image/ -> multipart upload (field "file"), sets image_url
    DELETE /api/products/<pk>/image/ -> remove the uploaded image
    """
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request, pk):
        actor = resolve_actor(request)
        result = upload_product_image(
            actor, pk, request.FILES.get("file"), build_url=request.build_absolute_uri,
        )
        if not result.success:
            return error_response(result)
        return Response(ProductSerializer(result.data).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)
        result = delete_product_image(actor, pk)
        if not result.success:
            return error_response(result)
        return Response(ProductSerializer(result.data).data)
