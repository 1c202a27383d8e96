# purchases/api/views.py

from django.db.models import Q
from django.utils.dateparse import parse_date
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounting.api.errors import service_error_response
from accounting.api.serializers.documents import CancelInputSerializer, PaymentInputSerializer
from accounting.services.exceptions import AccountingServiceError
from purchases.api.serializers import (
    PurchasePaymentSerializer,
    PurchaseSerializer,
    PurchaseWriteSerializer,
)
from purchases.models import Purchase
from purchases.services import purchase_service

PURCHASE_CHANGE_PERMISSION = "purchases.change_purchase"


def _forbidden():
    return Response(
        {"detail": "You do not have permission to change purchases."},
        status=status.HTTP_403_FORBIDDEN,
    )


def _purchase_payload(purchase_id):
    return PurchaseSerializer(purchase_service.get_purchase(purchase_id)).data


class PurchaseListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PurchaseSerializer

    @extend_schema(
        tags=["purchases"],
        parameters=[
            OpenApiParameter(name="status", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="payment_status", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="q", type=str, location=OpenApiParameter.QUERY, required=False),
        ],
        responses=PurchaseSerializer(many=True),
    )
    def get(self, request):
        qs = Purchase.objects.select_related("journal_entry").prefetch_related("items", "payments")

        params = request.query_params
        status_val = (params.get("status") or "").strip()
        if status_val:
            qs = qs.filter(status=status_val)

        payment_status = (params.get("payment_status") or "").strip()
        if payment_status:
            qs = qs.filter(payment_status=payment_status)

        q = (params.get("q") or "").strip()
        if q:
            qs = qs.filter(Q(order_number__icontains=q) | Q(supplier_name__icontains=q))

        return Response(
            PurchaseSerializer(qs.order_by("-order_date", "-order_number"), many=True).data,
            status=status.HTTP_200_OK,
        )

    @extend_schema(
        tags=["purchases"],
        request=PurchaseWriteSerializer,
        responses={201: PurchaseSerializer},
    )
    def post(self, request):
        if not request.user.has_perm(PURCHASE_CHANGE_PERMISSION):
            return _forbidden()

        s = PurchaseWriteSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)
        items = [dict(item) for item in data.pop("items")]

        try:
            purchase = purchase_service.create_purchase(items=items, user=request.user, **data)
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(_purchase_payload(purchase.pk), status=status.HTTP_201_CREATED)


class PurchaseDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PurchaseSerializer

    @extend_schema(tags=["purchases"], responses=PurchaseSerializer)
    def get(self, request, purchase_id):
        try:
            return Response(_purchase_payload(purchase_id))
        except AccountingServiceError as exc:
            return service_error_response(exc)

    @extend_schema(
        tags=["purchases"],
        request=PurchaseWriteSerializer,
        responses={200: PurchaseSerializer},
    )
    def patch(self, request, purchase_id):
        if not request.user.has_perm(PURCHASE_CHANGE_PERMISSION):
            return _forbidden()

        s = PurchaseWriteSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)
        items = data.pop("items", None)
        if items is not None:
            items = [dict(item) for item in items]

        try:
            purchase = purchase_service.update_purchase(
                purchase_service.get_purchase(purchase_id), items=items, **data
            )
            return Response(_purchase_payload(purchase.pk))
        except AccountingServiceError as exc:
            return service_error_response(exc)

    @extend_schema(tags=["purchases"], responses={204: None})
    def delete(self, request, purchase_id):
        if not request.user.has_perm(PURCHASE_CHANGE_PERMISSION):
            return _forbidden()

        try:
            purchase_service.delete_purchase(purchase_service.get_purchase(purchase_id))
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(status=status.HTTP_204_NO_CONTENT)


class _PurchaseLifecycleView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PurchaseSerializer
    service_fn = None

    def service_kwargs(self, request) -> dict:
        return {}

    def post(self, request, purchase_id):
        if not request.user.has_perm(PURCHASE_CHANGE_PERMISSION):
            return _forbidden()

        kwargs = self.service_kwargs(request)
        try:
            purchase = purchase_service.get_purchase(purchase_id)
            purchase = type(self).service_fn(purchase, user=request.user, **kwargs)
            return Response(_purchase_payload(purchase.pk))
        except AccountingServiceError as exc:
            return service_error_response(exc)


class PurchaseApproveView(_PurchaseLifecycleView):
    service_fn = purchase_service.approve_purchase

    @extend_schema(
        tags=["purchases"],
        request=None,
        responses={
            200: PurchaseSerializer,
            400: OpenApiResponse(description="Not a draft"),
            500: OpenApiResponse(description="Required accounts missing from the chart"),
        },
        description="Post Inventory / Accounts Payable and move stock in.",
    )
    def post(self, request, purchase_id):
        return super().post(request, purchase_id)


class PurchaseReceiveView(_PurchaseLifecycleView):
    service_fn = purchase_service.receive_purchase

    @extend_schema(tags=["purchases"], request=None, responses={200: PurchaseSerializer})
    def post(self, request, purchase_id):
        return super().post(request, purchase_id)


class PurchaseCancelView(_PurchaseLifecycleView):
    service_fn = purchase_service.cancel_purchase

    def service_kwargs(self, request) -> dict:
        s = CancelInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        return {"reason": s.validated_data.get("reason", "")}

    @extend_schema(tags=["purchases"], request=CancelInputSerializer, responses={200: PurchaseSerializer})
    def post(self, request, purchase_id):
        return super().post(request, purchase_id)


class PurchasePaymentListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PaymentInputSerializer

    @extend_schema(tags=["purchases"], responses=PurchasePaymentSerializer(many=True))
    def get(self, request, purchase_id):
        try:
            purchase = purchase_service.get_purchase(purchase_id)
        except AccountingServiceError as exc:
            return service_error_response(exc)
        return Response(PurchasePaymentSerializer(purchase.payments.all(), many=True).data)

    @extend_schema(
        tags=["purchases"],
        request=PaymentInputSerializer,
        responses={201: PurchasePaymentSerializer},
    )
    def post(self, request, purchase_id):
        if not request.user.has_perm(PURCHASE_CHANGE_PERMISSION):
            return _forbidden()

        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            payment = purchase_service.record_purchase_payment(
                purchase_service.get_purchase(purchase_id),
                amount=data["amount"],
                method=data["method"],
                payment_date=data.get("payment_date"),
                note=data.get("note", ""),
                user=request.user,
            )
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(PurchasePaymentSerializer(payment).data, status=status.HTTP_201_CREATED)


class PurchaseOutstandingView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PurchaseSerializer

    @extend_schema(tags=["purchases"], responses=PurchaseSerializer(many=True))
    def get(self, request):
        data = PurchaseSerializer(purchase_service.get_outstanding_purchases(), many=True).data
        return Response({"count": len(data), "results": data})


class PayablesAgingView(GenericAPIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["purchases"],
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
    def get(self, request):
        raw = (request.query_params.get("as_of") or "").strip()
        as_of = parse_date(raw) if raw else None
        if raw and as_of is None:
            return Response(
                {"detail": "Invalid as_of. Use YYYY-MM-DD."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(purchase_service.get_payables_aging(as_of=as_of))
