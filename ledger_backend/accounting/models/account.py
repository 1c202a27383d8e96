# accounting/models/account.py

from __future__ import annotations

import re
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

ACCOUNT_CODE_RE = re.compile(r"^[1-5]-\d{4,5}$")


class Account(models.Model):
    """
    A single chart-of-accounts entry.

    Guarantees:
    - Account codes are unique and follow `{1..5}-{sub}{seq}`
    - The leading code digit, the account type and the normal balance agree
    - Code + name are normalized (trimmed)
    - Never hard-deleted once a journal line references it (PROTECT)
    """

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"

    ACCOUNT_TYPES = [
        (ASSET, "Asset"),
        (LIABILITY, "Liability"),
        (EQUITY, "Equity"),
        (REVENUE, "Revenue"),
        (EXPENSE, "Expense"),
    ]

    DEBIT = "debit"
    CREDIT = "credit"

    NORMAL_BALANCES = [
        (DEBIT, "Debit"),
        (CREDIT, "Credit"),
    ]

    # The only five accepted type/polarity pairings
    NORMAL_BALANCE_BY_TYPE = {
        ASSET: DEBIT,
        EXPENSE: DEBIT,
        LIABILITY: CREDIT,
        EQUITY: CREDIT,
        REVENUE: CREDIT,
    }

    TYPE_BY_CODE_DIGIT = {
        "1": ASSET,
        "2": LIABILITY,
        "3": EQUITY,
        "4": REVENUE,
        "5": EXPENSE,
    }

    class Category(models.TextChoices):
        CASH = "cash", "Cash"
        BANK = "bank", "Bank"
        RECEIVABLE = "receivable", "Receivable"
        INVENTORY = "inventory", "Inventory"
        FIXED_ASSET = "fixed_asset", "Fixed Asset"
        PAYABLE = "payable", "Payable"
        CAPITAL = "capital", "Capital"
        SALES = "sales", "Sales"
        PURCHASE = "purchase", "Purchase"
        OPERATING_EXPENSE = "operating_expense", "Operating Expense"
        OTHER = "other", "Other"

    class Role(models.TextChoices):
        # assets
        CASH = "cash", "Cash"
        BANK = "bank", "Bank"
        RECEIVABLE = "receivable", "Accounts Receivable"
        INVENTORY = "inventory", "Inventory"
        OTHER_CURRENT_ASSET = "other_current_asset", "Other Current Asset"
        FIXED_ASSET = "fixed_asset", "Fixed Asset"
        # liabilities
        PAYABLE_CURRENT = "payable_current", "Accounts Payable"
        TAX_PAYABLE = "tax_payable", "Tax Payable"
        LONG_TERM_LIABILITY = "long_term_liability", "Long-term Liability"
        # equity
        SHARE_CAPITAL = "share_capital", "Share Capital"
        ADDITIONAL_CAPITAL = "additional_capital", "Additional Paid-in Capital"
        RETAINED_EARNINGS = "retained_earnings", "Retained Earnings"
        OTHER_EQUITY = "other_equity", "Other Equity"
        # revenue
        NET_SALES = "net_sales", "Net Sales"
        CONSIGNMENT_SALES = "consignment_sales", "Consignment Sales"
        OTHER_INCOME = "other_income", "Other Income"
        # expenses
        COGS = "cogs", "Cost of Goods Sold"
        OPERATING_EXPENSE = "operating_expense", "Operating Expense"
        OTHER_EXPENSE = "other_expense", "Other Expense"
        FINANCE_COST = "finance_cost", "Finance Cost"
        ASSOCIATE_LOSS_SHARE = "associate_loss_share", "Share of Associate Loss"
        FINAL_TAX = "final_tax", "Final Tax"
        INCOME_TAX = "income_tax", "Income Tax"
        OTHER_COMPREHENSIVE_INCOME = "other_comprehensive_income", "Other Comprehensive Income"

    code = models.CharField(max_length=10, unique=True)
    name = models.CharField(max_length=150)

    account_type = models.CharField(max_length=20, choices=ACCOUNT_TYPES)
    category = models.CharField(
        max_length=32,
        choices=Category.choices,
        default=Category.OTHER,
    )
    role = models.CharField(
        max_length=32,
        choices=Role.choices,
        blank=True,
        default="",
        help_text="Statement role used by reports and automatic postings",
    )
    normal_balance = models.CharField(max_length=6, choices=NORMAL_BALANCES)

    opening_balance = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Signed balance at ledger epoch, in the account's normal side",
    )

    description = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]
        verbose_name = "Account"
        verbose_name_plural = "Accounts"
        indexes = [
            models.Index(fields=["account_type"]),
            models.Index(fields=["category"]),
            models.Index(fields=["role"]),
            models.Index(fields=["is_active"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(code=""),
                name="chk_account_code_not_blank",
            ),
            models.CheckConstraint(
                condition=~Q(name=""),
                name="chk_account_name_not_blank",
            ),
        ]

    def __str__(self):
        return f"{self.code} – {self.name}"

    @property
    def is_debit_normal(self) -> bool:
        return self.normal_balance == self.DEBIT

    def clean(self):
        self.code = (self.code or "").strip()
        self.name = (self.name or "").strip()

        if not self.code:
            raise ValidationError("Account code is required")
        if not self.name:
            raise ValidationError("Account name is required")

        if not ACCOUNT_CODE_RE.match(self.code):
            raise ValidationError(
                {"code": f"Invalid account code '{self.code}' (expected e.g. 1-1101)"}
            )

        expected_type = self.TYPE_BY_CODE_DIGIT[self.code[0]]
        if self.account_type != expected_type:
            raise ValidationError(
                {
                    "account_type": (
                        f"Code {self.code} belongs to {expected_type} accounts, "
                        f"not {self.account_type}"
                    )
                }
            )

        expected_balance = self.NORMAL_BALANCE_BY_TYPE.get(self.account_type)
        if self.normal_balance != expected_balance:
            raise ValidationError(
                {
                    "normal_balance": (
                        f"{self.account_type} accounts must have a "
                        f"{expected_balance} normal balance"
                    )
                }
            )

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
