"""
PATH: accounting/api/views/general_ledger.py

GENERAL LEDGER API VIEW (READ-ONLY)

GET /api/accounting/general-ledger/?account_code=1-1101&start_date=...&end_date=...
Without an account filter every active account is returned.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema

from accounting.api.views.base import PERIOD_PARAMS, InvalidQueryParam, ReportAPIView, query_date
from accounting.services.general_ledger_service import get_general_ledger


@extend_schema(
    tags=["accounting"],
    parameters=[
        OpenApiParameter(name="account_id", type=int, location=OpenApiParameter.QUERY, required=False),
        OpenApiParameter(name="account_code", type=str, location=OpenApiParameter.QUERY, required=False),
        *PERIOD_PARAMS,
    ],
    responses={200: dict},
)
class GeneralLedgerView(ReportAPIView):
    report_name = "the general ledger"

    def build(self, request) -> dict:
        raw_id = (request.query_params.get("account_id") or "").strip()
        account_id = None
        if raw_id:
            try:
                account_id = int(raw_id)
            except ValueError:
                raise InvalidQueryParam("account_id must be an integer")

        return get_general_ledger(
            account_id=account_id,
            account_code=(request.query_params.get("account_code") or "").strip() or None,
            date_from=query_date(request, "start_date"),
            date_to=query_date(request, "end_date"),
        )
