"""
PATH: accounting/api/views/cash_flow.py

CASH FLOW STATEMENT API VIEW (DIRECT METHOD, READ-ONLY)

`allocation` overrides LEDGER_CASH_FLOW_ALLOCATION for one request.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema

from accounting.api.views.base import PERIOD_PARAMS, InvalidQueryParam, ReportAPIView, query_date
from accounting.services import cash_flow_classifier
from accounting.services.cash_flow_service import get_cash_flow


@extend_schema(
    tags=["accounting"],
    parameters=[
        *PERIOD_PARAMS,
        OpenApiParameter(
            name="allocation",
            type=str,
            location=OpenApiParameter.QUERY,
            required=False,
            enum=list(cash_flow_classifier.ALLOCATION_MODES),
        ),
    ],
    responses={200: dict},
)
class CashFlowView(ReportAPIView):
    report_name = "the cash flow statement"

    def build(self, request) -> dict:
        allocation = (request.query_params.get("allocation") or "").strip() or None
        if allocation and allocation not in cash_flow_classifier.ALLOCATION_MODES:
            raise InvalidQueryParam(
                f"allocation must be one of: {', '.join(cash_flow_classifier.ALLOCATION_MODES)}"
            )

        return get_cash_flow(
            date_from=query_date(request, "start_date"),
            date_to=query_date(request, "end_date"),
            allocation=allocation,
        )
