"""
PATH: accounting/api/views/trial_balance.py

TRIAL BALANCE API VIEW (READ-ONLY)

GET /api/accounting/trial-balance/?as_of_date=YYYY-MM-DD&include_zero=0
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema

from accounting.api.views.base import AS_OF_PARAM, ReportAPIView, query_date
from accounting.services.trial_balance_service import TrialBalanceService


@extend_schema(
    tags=["accounting"],
    parameters=[
        AS_OF_PARAM,
        OpenApiParameter(
            name="include_zero",
            type=bool,
            location=OpenApiParameter.QUERY,
            required=False,
            description="Include accounts with no balance (default: true).",
        ),
    ],
    responses={200: dict},
)
class TrialBalanceView(ReportAPIView):
    report_name = "trial balance"

    def build(self, request) -> dict:
        include_zero = (request.query_params.get("include_zero") or "1").strip().lower()
        return TrialBalanceService().generate(
            as_of=query_date(request, "as_of_date"),
            include_zero=include_zero not in ("0", "false", "no"),
        )
