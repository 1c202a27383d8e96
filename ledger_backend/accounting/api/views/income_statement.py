"""
PATH: accounting/api/views/income_statement.py

INCOME STATEMENT API VIEW (MULTI-STEP, READ-ONLY)
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema

from accounting.api.views.base import PERIOD_PARAMS, ReportAPIView, query_date
from accounting.services.income_statement_service import get_income_statement


@extend_schema(tags=["accounting"], parameters=PERIOD_PARAMS, responses={200: dict})
class IncomeStatementView(ReportAPIView):
    report_name = "the income statement"

    def build(self, request) -> dict:
        return get_income_statement(
            date_from=query_date(request, "start_date"),
            date_to=query_date(request, "end_date"),
        )
