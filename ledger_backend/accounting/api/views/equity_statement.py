"""
PATH: accounting/api/views/equity_statement.py

STATEMENT OF CHANGES IN EQUITY API VIEW (READ-ONLY)
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema

from accounting.api.views.base import PERIOD_PARAMS, ReportAPIView, query_date
from accounting.services.equity_statement_service import get_equity_statement


@extend_schema(tags=["accounting"], parameters=PERIOD_PARAMS, responses={200: dict})
class EquityStatementView(ReportAPIView):
    report_name = "the equity statement"

    def build(self, request) -> dict:
        return get_equity_statement(
            date_from=query_date(request, "start_date"),
            date_to=query_date(request, "end_date"),
        )
