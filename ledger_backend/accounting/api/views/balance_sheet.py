"""
PATH: accounting/api/views/balance_sheet.py

BALANCE SHEET API VIEW (READ-ONLY)

An unbalanced sheet is still returned (balanced=false) unless strict=1,
in which case it is rejected with an error payload.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema

from accounting.api.views.base import AS_OF_PARAM, ReportAPIView, query_date
from accounting.services.balance_sheet_service import generate_balance_sheet, validate_financials


@extend_schema(
    tags=["accounting"],
    parameters=[
        AS_OF_PARAM,
        OpenApiParameter(name="strict", type=bool, location=OpenApiParameter.QUERY, required=False),
    ],
    responses={200: dict},
)
class BalanceSheetView(ReportAPIView):
    report_name = "the balance sheet"

    def build(self, request) -> dict:
        as_of = query_date(request, "as_of_date")
        strict = (request.query_params.get("strict") or "").strip().lower() in ("1", "true", "yes")
        if strict:
            return validate_financials(as_of=as_of)
        return generate_balance_sheet(as_of=as_of)
