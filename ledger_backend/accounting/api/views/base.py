"""
PATH: accounting/api/views/base.py

Shared plumbing for the read-only financial report endpoints.

- Permission-gated: requires accounting.view_journalline
- Query dates are YYYY-MM-DD; malformed values are rejected with 400
- Domain errors (e.g. start after end) map through service_error_response
"""

from __future__ import annotations

from django.utils.dateparse import parse_date
from drf_spectacular.utils import OpenApiParameter
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.api.errors import service_error_response
from accounting.services.exceptions import AccountingServiceError

REPORT_PERMISSION = "accounting.view_journalline"


class InvalidQueryParam(Exception):
    pass


def _date_param(name: str, description: str) -> OpenApiParameter:
    return OpenApiParameter(
        name=name,
        type=str,
        location=OpenApiParameter.QUERY,
        required=False,
        description=description,
    )


AS_OF_PARAM = _date_param("as_of_date", "Snapshot date YYYY-MM-DD (default: today).")
PERIOD_PARAMS = [
    _date_param("start_date", "Period start YYYY-MM-DD (inclusive)."),
    _date_param("end_date", "Period end YYYY-MM-DD (inclusive)."),
]


def query_date(request, name: str):
    raw = (request.query_params.get(name) or "").strip()
    if not raw:
        return None
    try:
        value = parse_date(raw)
    except ValueError:
        value = None
    if value is None:
        raise InvalidQueryParam(f"Invalid {name}. Use YYYY-MM-DD.")
    return value


class ReportAPIView(APIView):
    """
    Subclasses implement `build(request) -> dict`.
    """

    permission_classes = [IsAuthenticated]
    report_name = "financial reports"

    def build(self, request) -> dict:
        raise NotImplementedError

    def get(self, request):
        if not request.user.has_perm(REPORT_PERMISSION):
            return Response(
                {"detail": f"You do not have permission to view {self.report_name}."},
                status=status.HTTP_403_FORBIDDEN,
            )

        try:
            data = self.build(request)
        except InvalidQueryParam as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(data, status=status.HTTP_200_OK)
