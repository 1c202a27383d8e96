"""
PATH: accounting/api/views/profit_and_loss.py

PROFIT & LOSS (P&L) API VIEW

Simple revenue vs expense snapshot over a date range.
`as_of_date` is a convenience alias that overrides end_date.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema

from accounting.api.views.base import AS_OF_PARAM, PERIOD_PARAMS, ReportAPIView, query_date
from accounting.services.income_statement_service import get_profit_and_loss


@extend_schema(tags=["accounting"], parameters=[*PERIOD_PARAMS, AS_OF_PARAM], responses={200: dict})
class ProfitAndLossView(ReportAPIView):
    def build(self, request) -> dict:
        end_date = query_date(request, "as_of_date") or query_date(request, "end_date")
        return get_profit_and_loss(
            date_from=query_date(request, "start_date"),
            date_to=end_date,
        )
