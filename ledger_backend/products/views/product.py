# products/views/product.py

"""
PRODUCT VIEWSET

Purpose:
- Product master data (CRUD)
- Stock ledger actions (stock in / stock out / count adjustment)
- Stock history and low stock alerts

Key rule alignment:
- current_stock is never written through the serializer; every change goes
  through products/services/stock_ledger.py and leaves a StockMovement row.
"""

from django.utils.dateparse import parse_date
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounting.api.errors import service_error_response
from accounting.services.exceptions import AccountingServiceError
from products.models import Product
from products.serializers import (
    ProductSerializer,
    StockAdjustSerializer,
    StockChangeSerializer,
    StockMovementSerializer,
)
from products.services import stock_ledger

STOCK_CHANGE_PERMISSION = "products.add_stockmovement"


class ProductViewSet(viewsets.ModelViewSet):
    """
    Product endpoints.

    - CRUD
    - POST {id}/stock-in/, {id}/stock-out/, {id}/adjust/
    - GET  {id}/history/?date_from=&date_to=
    - GET  alerts/low-stock/
    """

    serializer_class = ProductSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        qs = Product.objects.all()

        include_inactive = (
            self.request.query_params.get("include_inactive") or ""
        ).strip().lower() in ("1", "true", "yes")
        if not include_inactive and self.action == "list":
            qs = qs.filter(is_active=True)

        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(name__icontains=q) | qs.filter(sku__icontains=q)

        return qs.order_by("name")

    def _forbidden(self, request):
        if not request.user.has_perm(STOCK_CHANGE_PERMISSION):
            return Response(
                {"detail": "You do not have permission to change stock."},
                status=status.HTTP_403_FORBIDDEN,
            )
        return None

    def _change_stock(self, request, fn):
        denied = self._forbidden(request)
        if denied:
            return denied

        product = self.get_object()
        s = StockChangeSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            change = fn(
                product,
                data["quantity"],
                unit_cost=data.get("unit_cost"),
                reference_module=data["reference_module"],
                note=data.get("note", ""),
                user=request.user,
            )
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(
            StockMovementSerializer(change.movement).data,
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(tags=["products"], request=StockChangeSerializer, responses={201: StockMovementSerializer})
    @action(detail=True, methods=["post"], url_path="stock-in")
    def stock_in(self, request, pk=None):
        return self._change_stock(request, stock_ledger.add_stock)

    @extend_schema(
        tags=["products"],
        request=StockChangeSerializer,
        responses={
            201: StockMovementSerializer,
            400: OpenApiResponse(description="Insufficient stock or invalid quantity"),
        },
    )
    @action(detail=True, methods=["post"], url_path="stock-out")
    def stock_out(self, request, pk=None):
        return self._change_stock(request, stock_ledger.reduce_stock)

    @extend_schema(tags=["products"], request=StockAdjustSerializer, responses={201: StockMovementSerializer})
    @action(detail=True, methods=["post"], url_path="adjust")
    def adjust(self, request, pk=None):
        denied = self._forbidden(request)
        if denied:
            return denied

        product = self.get_object()
        s = StockAdjustSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            change = stock_ledger.adjust_stock(
                product,
                data["new_quantity"],
                reference_module=data["reference_module"],
                note=data.get("note", ""),
                user=request.user,
            )
        except AccountingServiceError as exc:
            return service_error_response(exc)

        if change is None:
            return Response({"detail": "Stock already at the requested level."}, status=status.HTTP_200_OK)
        return Response(StockMovementSerializer(change.movement).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["products"],
        parameters=[
            OpenApiParameter(name="date_from", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="date_to", type=str, location=OpenApiParameter.QUERY, required=False),
        ],
        responses=StockMovementSerializer(many=True),
    )
    @action(detail=True, methods=["get"], url_path="history")
    def history(self, request, pk=None):
        product = self.get_object()

        bounds = {}
        for key in ("date_from", "date_to"):
            raw = (request.query_params.get(key) or "").strip()
            if raw:
                parsed = parse_date(raw)
                if parsed is None:
                    return Response(
                        {"detail": f"Invalid {key}. Use YYYY-MM-DD."},
                        status=status.HTTP_400_BAD_REQUEST,
                    )
                bounds[key] = parsed

        qs = stock_ledger.get_stock_history(product, **bounds)
        data = StockMovementSerializer(qs, many=True).data
        return Response({"count": len(data), "results": data})

    @extend_schema(tags=["products"], responses=ProductSerializer(many=True))
    @action(detail=False, methods=["get"], url_path="alerts/low-stock")
    def low_stock_alerts(self, request):
        data = self.get_serializer(stock_ledger.get_low_stock_products(), many=True).data
        return Response({"count": len(data), "results": data})
