"""
======================================================
PATH: sales/api/viewsets/sale.py
======================================================
SALE VIEWSET (STAFF)

Purpose:
- Sales invoice CRUD while draft (totals derived server-side).
- Lifecycle actions: approve / complete / cancel.
- Customer payments.
- Outstanding invoices + receivables aging.

Security:
- Requires IsAuthenticated
- Writes and lifecycle actions require sales.change_sale

Error mapping (domain -> HTTP) lives in accounting/api/errors.py.
======================================================
"""

from __future__ import annotations

from django.db.models import Q
from django.utils.dateparse import parse_date
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounting.api.errors import service_error_response
from accounting.api.serializers.documents import CancelInputSerializer, PaymentInputSerializer
from accounting.services.exceptions import AccountingServiceError
from sales.models import Sale
from sales.serializers import SalePaymentSerializer, SaleSerializer, SaleWriteSerializer
from sales.services import sale_service

SALE_CHANGE_PERMISSION = "sales.change_sale"


def _query_date(params, key):
    raw = (params.get(key) or "").strip()
    if not raw:
        return None
    try:
        return parse_date(raw)
    except ValueError:
        return None


def _forbidden():
    return Response(
        {"detail": "You do not have permission to change sales."},
        status=status.HTTP_403_FORBIDDEN,
    )


class SaleViewSet(viewsets.ModelViewSet):
    serializer_class = SaleSerializer
    permission_classes = [IsAuthenticated]

    # ======================================================
    # QUERYSET
    # ======================================================

    def get_queryset(self):
        qs = Sale.objects.all().select_related("journal_entry").prefetch_related(
            "items", "payments", "payments__journal_entry"
        )

        params = self.request.query_params

        status_val = (params.get("status") or "").strip()
        if status_val:
            qs = qs.filter(status=status_val)

        payment_status = (params.get("payment_status") or "").strip()
        if payment_status:
            qs = qs.filter(payment_status=payment_status)

        q = (params.get("q") or "").strip()
        if q:
            qs = qs.filter(Q(invoice_number__icontains=q) | Q(customer_name__icontains=q))

        date_from = _query_date(params, "date_from")
        if date_from:
            qs = qs.filter(invoice_date__gte=date_from)

        date_to = _query_date(params, "date_to")
        if date_to:
            qs = qs.filter(invoice_date__lte=date_to)

        return qs.order_by("-invoice_date", "-invoice_number")

    # ======================================================
    # DRAFT CRUD
    # ======================================================

    @extend_schema(request=SaleWriteSerializer, responses={201: SaleSerializer})
    def create(self, request, *args, **kwargs):
        if not request.user.has_perm(SALE_CHANGE_PERMISSION):
            return _forbidden()

        s = SaleWriteSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)
        items = [dict(item) for item in data.pop("items")]

        try:
            sale = sale_service.create_sale(items=items, user=request.user, **data)
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(SaleSerializer(sale).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=SaleWriteSerializer, responses={200: SaleSerializer})
    def update(self, request, *args, **kwargs):
        if not request.user.has_perm(SALE_CHANGE_PERMISSION):
            return _forbidden()

        sale = self.get_object()
        s = SaleWriteSerializer(data=request.data, partial=kwargs.get("partial", False))
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)
        items = data.pop("items", None)
        if items is not None:
            items = [dict(item) for item in items]

        try:
            sale = sale_service.update_sale(sale, items=items, **data)
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(SaleSerializer(sale_service.get_sale(sale.pk)).data)

    def destroy(self, request, *args, **kwargs):
        if not request.user.has_perm(SALE_CHANGE_PERMISSION):
            return _forbidden()

        try:
            sale_service.delete_sale(self.get_object())
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(status=status.HTTP_204_NO_CONTENT)

    # ======================================================
    # LIFECYCLE
    # ======================================================

    def _lifecycle(self, request, fn, **kwargs):
        if not request.user.has_perm(SALE_CHANGE_PERMISSION):
            return _forbidden()

        sale = self.get_object()
        try:
            sale = fn(sale, user=request.user, **kwargs)
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(SaleSerializer(sale_service.get_sale(sale.pk)).data)

    @extend_schema(
        request=None,
        responses={
            200: SaleSerializer,
            400: OpenApiResponse(description="Not a draft, or insufficient stock"),
            500: OpenApiResponse(description="Required accounts missing from the chart"),
        },
        description="Post revenue + COGS to the ledger and move stock out.",
    )
    @action(detail=True, methods=["post"], url_path="approve")
    def approve(self, request, pk=None):
        return self._lifecycle(request, sale_service.approve_sale)

    @extend_schema(request=None, responses={200: SaleSerializer})
    @action(detail=True, methods=["post"], url_path="complete")
    def complete(self, request, pk=None):
        return self._lifecycle(request, sale_service.complete_sale)

    @extend_schema(request=CancelInputSerializer, responses={200: SaleSerializer})
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        s = CancelInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        return self._lifecycle(request, sale_service.cancel_sale, reason=s.validated_data.get("reason", ""))

    # ======================================================
    # PAYMENTS
    # ======================================================

    @extend_schema(request=PaymentInputSerializer, responses={201: SalePaymentSerializer})
    @action(detail=True, methods=["get", "post"], url_path="payments")
    def payments(self, request, pk=None):
        sale = self.get_object()

        if request.method == "GET":
            return Response(SalePaymentSerializer(sale.payments.all(), many=True).data)

        if not request.user.has_perm(SALE_CHANGE_PERMISSION):
            return _forbidden()

        s = PaymentInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            payment = sale_service.record_sale_payment(
                sale,
                amount=data["amount"],
                method=data["method"],
                payment_date=data.get("payment_date"),
                note=data.get("note", ""),
                user=request.user,
            )
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(SalePaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    # ======================================================
    # REPORTS
    # ======================================================

    @extend_schema(responses=SaleSerializer(many=True))
    @action(detail=False, methods=["get"], url_path="outstanding")
    def outstanding(self, request):
        data = SaleSerializer(sale_service.get_outstanding_sales(), many=True).data
        return Response({"count": len(data), "results": data})

    @extend_schema(
        parameters=[
            OpenApiParameter(
                name="as_of",
                type=str,
                location=OpenApiParameter.QUERY,
                required=False,
                description="YYYY-MM-DD (default: today)",
            )
        ],
        responses={200: dict},
    )
    @action(detail=False, methods=["get"], url_path="aging")
    def aging(self, request):
        raw = (request.query_params.get("as_of") or "").strip()
        as_of = parse_date(raw) if raw else None
        if raw and as_of is None:
            return Response(
                {"detail": "Invalid as_of. Use YYYY-MM-DD."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(sale_service.get_receivables_aging(as_of=as_of))
