"""
PATH: accounting/api/views/overview.py

ACCOUNTING OVERVIEW (KPI) API VIEW

Balance-sheet KPIs as of `as_of_date`; P&L KPIs and the monthly trend
over [start_date, end_date].
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema

from accounting.api.views.base import AS_OF_PARAM, PERIOD_PARAMS, ReportAPIView, query_date
from accounting.services.overview_service import get_accounting_overview_kpis


@extend_schema(tags=["accounting"], parameters=[AS_OF_PARAM, *PERIOD_PARAMS], responses={200: dict})
class AccountingOverviewView(ReportAPIView):
    report_name = "the accounting overview"

    def build(self, request) -> dict:
        return get_accounting_overview_kpis(
            as_of=query_date(request, "as_of_date"),
            date_from=query_date(request, "start_date"),
            date_to=query_date(request, "end_date"),
        )
