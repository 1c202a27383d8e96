# accounting/api/views/__init__.py

"""
accounting.api.views package

Do NOT import accounting.api.urls from here to avoid circular imports.
"""

from accounting.api.views.accounts import AccountListCreateView
from accounting.api.views.balance_sheet import BalanceSheetView
from accounting.api.views.cash_flow import CashFlowView
from accounting.api.views.equity_statement import EquityStatementView
from accounting.api.views.general_ledger import GeneralLedgerView
from accounting.api.views.income_statement import IncomeStatementView
from accounting.api.views.journal_entries import JournalEntryViewSet
from accounting.api.views.overview import AccountingOverviewView
from accounting.api.views.profit_and_loss import ProfitAndLossView
from accounting.api.views.trial_balance import TrialBalanceView

__all__ = [
    "JournalEntryViewSet",
    "AccountListCreateView",
    "TrialBalanceView",
    "GeneralLedgerView",
    "IncomeStatementView",
    "ProfitAndLossView",
    "BalanceSheetView",
    "EquityStatementView",
    "CashFlowView",
    "AccountingOverviewView",
]
