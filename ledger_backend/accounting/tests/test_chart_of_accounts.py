# accounting/tests/test_chart_of_accounts.py

from datetime import date, timedelta
from io import StringIO

from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone

from accounting.management.commands.seed_chart_of_accounts import DEFAULT_CHART
from accounting.models.account import Account
from accounting.services import account_resolver, chart_service
from accounting.services import journal_entry_service as journals
from accounting.services.exceptions import (
    ConfigurationError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from accounting.services.trial_balance_service import TrialBalanceService


class ChartOfAccountsTests(TestCase):
    """
    Chart-of-accounts master data.

    GUARANTEES:
    - Type and normal balance always form one of the five fixed pairs
    - Codes are unique and their leading digit encodes the type
    - Referenced accounts are never hard-deleted
    - Deactivation protects later postings unless forced
    """

    def test_type_and_balance_default_from_code(self):
        account = chart_service.create_account(code="2-1199", name="Accrued Wages")

        self.assertEqual(account.account_type, Account.LIABILITY)
        self.assertEqual(account.normal_balance, Account.CREDIT)
        self.assertEqual(account.role, "")

    def test_well_known_code_gets_default_role(self):
        account = chart_service.create_account(code="1-1101", name="Cash")
        self.assertEqual(account.role, Account.Role.CASH)

    def test_mismatched_normal_balance_is_rejected(self):
        with self.assertRaises(ValidationError):
            chart_service.create_account(
                code="1-1101", name="Cash", account_type=Account.ASSET, normal_balance=Account.CREDIT
            )

    def test_code_digit_must_match_type(self):
        with self.assertRaises(ValidationError):
            chart_service.create_account(code="1-1101", name="Cash", account_type=Account.EXPENSE)

    def test_invalid_code_format(self):
        for code in ("", "6-1001", "1-11", "11101", "1-ABCD"):
            with self.subTest(code=code):
                with self.assertRaises(ValidationError):
                    chart_service.create_account(code=code, name="Broken")

    def test_duplicate_code(self):
        chart_service.create_account(code="1-1101", name="Cash")
        with self.assertRaises(ValidationError):
            chart_service.create_account(code="1-1101", name="Cash again")

    def test_name_is_required(self):
        with self.assertRaises(ValidationError):
            chart_service.create_account(code="1-1101", name="   ")

    def test_generate_account_code(self):
        self.assertEqual(chart_service.generate_account_code(Account.ASSET, Account.Category.CASH), "1-1101")

        chart_service.create_account(code="1-1101", name="Cash")
        chart_service.create_account(code="1-1102", name="Bank")
        self.assertEqual(chart_service.generate_account_code(Account.ASSET, Account.Category.CASH), "1-1103")
        self.assertEqual(
            chart_service.generate_account_code(Account.EXPENSE, Account.Category.OPERATING_EXPENSE),
            "5-5201",
        )

    def test_generate_account_code_unknown_type(self):
        with self.assertRaises(ValidationError):
            chart_service.generate_account_code("mystery", Account.Category.OTHER)

    def test_lookups(self):
        call_command("seed_chart_of_accounts", stdout=StringIO())

        self.assertEqual(chart_service.find_by_code("4-1001").role, Account.Role.NET_SALES)
        self.assertEqual(
            list(chart_service.find_by_role(Account.Role.BANK).values_list("code", flat=True)),
            ["1-1102"],
        )
        self.assertEqual(chart_service.find_by_type(Account.EQUITY).count(), 4)
        self.assertEqual(chart_service.find_by_category(Account.Category.SALES).count(), 2)

        with self.assertRaises(NotFoundError):
            chart_service.find_by_code("1-9999")


class AccountLifecycleTests(TestCase):
    """
    Updates, deactivation and deletion of accounts that carry history.
    """

    def setUp(self):
        call_command("seed_chart_of_accounts", stdout=StringIO())
        self.cash = Account.objects.get(code="1-1101")

    def _post(self, entry_date):
        return journals.create_journal_entry(
            description="Takings",
            entry_date=entry_date,
            post=True,
            lines=[
                {"account_code": "1-1101", "debit": "10.00"},
                {"account_code": "4-1001", "credit": "10.00"},
            ],
        )

    def test_unreferenced_account_can_be_deleted(self):
        spare = chart_service.create_account(code="1-1199", name="Spare")
        chart_service.delete_account(spare)
        self.assertFalse(Account.objects.filter(code="1-1199").exists())

    def test_referenced_account_cannot_be_deleted(self):
        self._post(timezone.localdate())
        with self.assertRaises(InvalidStateError):
            chart_service.delete_account(self.cash)

    def test_referenced_account_keeps_its_code(self):
        self._post(timezone.localdate())

        with self.assertRaises(InvalidStateError):
            chart_service.update_account(self.cash, code="1-1199")

        renamed = chart_service.update_account(self.cash, name="Cash on Hand")
        self.assertEqual(renamed.name, "Cash on Hand")

    def test_update_rejects_unknown_fields(self):
        with self.assertRaises(ValidationError):
            chart_service.update_account(self.cash, colour="blue")

    def test_deactivate_without_later_postings(self):
        self._post(timezone.localdate() - timedelta(days=3))

        account = chart_service.deactivate_account(self.cash)
        self.assertFalse(account.is_active)

    def test_deactivate_refuses_later_postings(self):
        self._post(date(2025, 3, 1))

        with self.assertRaises(InvalidStateError):
            chart_service.deactivate_account(self.cash, as_of=date(2025, 2, 1))

    @override_settings(LEDGER_ALLOW_DEACTIVATION_WITH_LATER_POSTINGS=True)
    def test_forced_deactivation(self):
        self._post(date(2025, 3, 1))

        account = chart_service.deactivate_account(self.cash, as_of=date(2025, 2, 1))
        self.assertFalse(account.is_active)

    def test_deactivated_account_with_balance_stays_in_trial_balance(self):
        """Deactivation hides nothing: the dormant balance keeps the columns equal."""
        today = timezone.localdate()
        self._post(today)
        chart_service.deactivate_account(self.cash, as_of=today)

        tb = TrialBalanceService().generate(as_of=today)

        rows = {row["account_code"]: row for row in tb["accounts"]}
        self.assertEqual(rows["1-1101"]["debit"], 10.0)
        self.assertTrue(tb["totals"]["balanced"])
        self.assertEqual(tb["totals"]["debit"], tb["totals"]["credit"])


class SeedAndResolverTests(TestCase):
    """
    Default chart seeding and role-based account resolution.

    GUARANTEES:
    - Seeding is idempotent and restores roles / active flags
    - Automatic postings never guess: a missing role raises ConfigurationError
    """

    def test_seed_is_idempotent(self):
        call_command("seed_chart_of_accounts", stdout=StringIO())
        call_command("seed_chart_of_accounts", stdout=StringIO())

        self.assertEqual(Account.objects.count(), len(DEFAULT_CHART))

    def test_seed_restores_roles(self):
        call_command("seed_chart_of_accounts", stdout=StringIO())
        Account.objects.filter(code="1-1105").update(role="", is_active=False)

        call_command("seed_chart_of_accounts", stdout=StringIO())

        inventory = Account.objects.get(code="1-1105")
        self.assertEqual(inventory.role, Account.Role.INVENTORY)
        self.assertTrue(inventory.is_active)

    def test_resolver_picks_lowest_active_code(self):
        call_command("seed_chart_of_accounts", stdout=StringIO())
        chart_service.create_account(code="1-1106", name="Cash Drawer 2", role=Account.Role.CASH)

        self.assertEqual(account_resolver.get_cash_account().code, "1-1101")

        Account.objects.filter(code="1-1101").update(is_active=False)
        self.assertEqual(account_resolver.get_cash_account().code, "1-1106")

    def test_missing_role_raises_configuration_error(self):
        with self.assertRaises(ConfigurationError) as ctx:
            account_resolver.get_inventory_account()
        self.assertEqual(ctx.exception.http_status, 500)

    def test_settlement_account_by_method(self):
        call_command("seed_chart_of_accounts", stdout=StringIO())

        self.assertEqual(account_resolver.get_settlement_account("cash").code, "1-1101")
        self.assertEqual(account_resolver.get_settlement_account("BANK").code, "1-1102")
        with self.assertRaises(ConfigurationError):
            account_resolver.get_settlement_account("cheque")
