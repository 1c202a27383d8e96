# accounting/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from accounting.api.views import (
    AccountingOverviewView,
    AccountListCreateView,
    BalanceSheetView,
    CashFlowView,
    EquityStatementView,
    GeneralLedgerView,
    IncomeStatementView,
    JournalEntryViewSet,
    ProfitAndLossView,
    TrialBalanceView,
)

router = DefaultRouter()
router.register("journal-entries", JournalEntryViewSet, basename="journal-entry")

urlpatterns = [
    # Router endpoints
    path("", include(router.urls)),
    # Chart of accounts
    path("accounts/", AccountListCreateView.as_view(), name="accounts"),
    # Reports
    path("trial-balance/", TrialBalanceView.as_view(), name="trial-balance"),
    path("general-ledger/", GeneralLedgerView.as_view(), name="general-ledger"),
    path("income-statement/", IncomeStatementView.as_view(), name="income-statement"),
    path("profit-and-loss/", ProfitAndLossView.as_view(), name="profit-and-loss"),
    path("balance-sheet/", BalanceSheetView.as_view(), name="balance-sheet"),
    path("equity-statement/", EquityStatementView.as_view(), name="equity-statement"),
    path("cash-flow/", CashFlowView.as_view(), name="cash-flow"),
    path("overview/", AccountingOverviewView.as_view(), name="accounting-overview"),
]
