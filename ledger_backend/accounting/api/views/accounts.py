# accounting/api/views/accounts.py

"""
PATH: accounting/api/views/accounts.py

CHART OF ACCOUNTS API

GET  /api/accounting/accounts/   (?type=asset&role=cash&include_inactive=1)
POST /api/accounting/accounts/   code optional: generated from type + category

Permission-gated:
- list requires accounting.view_account
- create requires accounting.add_account
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounting.api.errors import service_error_response
from accounting.api.serializers.accounts import AccountCreateSerializer, AccountListSerializer
from accounting.models.account import Account
from accounting.services import chart_service
from accounting.services.exceptions import AccountingServiceError


class AccountListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = AccountListSerializer

    @extend_schema(
        tags=["accounting"],
        parameters=[
            OpenApiParameter(name="type", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="category", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="role", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="include_inactive", type=bool, location=OpenApiParameter.QUERY, required=False),
        ],
        responses=AccountListSerializer(many=True),
    )
    def get(self, request, *args, **kwargs):
        if not request.user.has_perm("accounting.view_account"):
            return Response(
                {"detail": "You do not have permission to view accounts."},
                status=status.HTTP_403_FORBIDDEN,
            )

        params = request.query_params
        qs = Account.objects.all()

        if (params.get("include_inactive") or "").strip().lower() not in ("1", "true", "yes"):
            qs = qs.filter(is_active=True)

        account_type = (params.get("type") or "").strip()
        if account_type:
            qs = qs.filter(account_type=account_type)

        category = (params.get("category") or "").strip()
        if category:
            qs = qs.filter(category=category)

        role = (params.get("role") or "").strip()
        if role:
            qs = qs.filter(role=role)

        return Response(AccountListSerializer(qs.order_by("code"), many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["accounting"],
        request=AccountCreateSerializer,
        responses={201: AccountListSerializer},
    )
    def post(self, request, *args, **kwargs):
        if not request.user.has_perm("accounting.add_account"):
            return Response(
                {"detail": "You do not have permission to create accounts."},
                status=status.HTTP_403_FORBIDDEN,
            )

        s = AccountCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)

        try:
            code = (data.pop("code", "") or "").strip()
            if not code:
                code = chart_service.generate_account_code(data["account_type"], data["category"])
            account = chart_service.create_account(code=code, **data)
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(AccountListSerializer(account).data, status=status.HTTP_201_CREATED)
