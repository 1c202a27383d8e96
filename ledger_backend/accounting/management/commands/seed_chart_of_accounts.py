# accounting/management/commands/seed_chart_of_accounts.py

from django.core.management.base import BaseCommand
from django.db import transaction

from accounting.models.account import Account
from accounting.services import chart_service

Category = Account.Category

DEFAULT_CHART = [
    ("1-1101", "Cash", Category.CASH),
    ("1-1102", "Bank", Category.BANK),
    ("1-1103", "Accounts Receivable", Category.RECEIVABLE),
    ("1-1104", "Prepaid Expenses", Category.OTHER),
    ("1-1105", "Inventory", Category.INVENTORY),
    ("1-2101", "Equipment", Category.FIXED_ASSET),
    ("2-1101", "Accounts Payable", Category.PAYABLE),
    ("2-1102", "Tax Payable", Category.PAYABLE),
    ("2-2101", "Long-term Loans", Category.PAYABLE),
    ("3-1101", "Share Capital", Category.CAPITAL),
    ("3-1102", "Additional Paid-in Capital", Category.CAPITAL),
    ("3-1103", "Other Equity", Category.CAPITAL),
    ("3-1104", "Retained Earnings", Category.CAPITAL),
    ("4-1001", "Sales Revenue", Category.SALES),
    ("4-1002", "Consignment Sales", Category.SALES),
    ("4-1003", "Other Income", Category.OTHER),
    ("5-1001", "Cost of Goods Sold", Category.PURCHASE),
    ("5-1002", "Operating Expenses", Category.OPERATING_EXPENSE),
    ("5-1003", "Other Expenses", Category.OTHER),
    ("5-1004", "Final Tax", Category.OTHER),
    ("5-1005", "Share of Associate Loss", Category.OTHER),
    ("5-1006", "Finance Costs", Category.OTHER),
    ("5-1007", "Income Tax", Category.OTHER),
    ("5-1008", "Other Comprehensive Income", Category.OTHER),
]


class Command(BaseCommand):
    help = "Seed the default chart of accounts (well-known codes + statement roles)"

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding default Chart of Accounts...")

        created_count = 0
        updated_count = 0

        for code, name, category in DEFAULT_CHART:
            role = chart_service.DEFAULT_ROLE_BY_CODE.get(code, "")
            acc = Account.objects.filter(code=code).first()

            if acc is None:
                chart_service.create_account(code=code, name=name, category=category, role=role)
                created_count += 1
                continue

            needs_update = False
            if acc.role != role:
                acc.role = role
                needs_update = True
            if acc.category != category:
                acc.category = category
                needs_update = True
            if not acc.is_active:
                acc.is_active = True
                needs_update = True

            if needs_update:
                acc.save(update_fields=["role", "category", "is_active", "updated_at"])
                updated_count += 1

        self.stdout.write(
            self.style.SUCCESS(
                f"Default chart seeded ({created_count} new accounts, {updated_count} updated)."
            )
        )
