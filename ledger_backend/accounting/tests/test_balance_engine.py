# accounting/tests/test_balance_engine.py

from datetime import date
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from accounting.models.account import Account
from accounting.services import journal_entry_service as journals
from accounting.services.balance_service import (
    get_account_balance,
    get_account_movement,
    get_balances,
)
from accounting.services.exceptions import NotFoundError, ValidationError


def _cash_sale(amount, entry_date, *, post=True):
    return journals.create_journal_entry(
        description="Cash sale",
        entry_date=entry_date,
        post=post,
        lines=[
            {"account_code": "1-1101", "debit": amount},
            {"account_code": "4-1001", "credit": amount},
        ],
    )


class BalanceEngineTests(TestCase):
    """
    Point-in-time and period balances recomputed from posted journal lines.

    GUARANTEES:
    - Opening balance + signed posted movement, per the account's normal side
    - Bounds are inclusive; as_of and date_to together use the earlier date
    - Drafts and void entries never move a balance
    - Movement excludes the opening balance
    - Bulk balances agree with single-account balances, zero rows included
    """

    def setUp(self):
        call_command("seed_chart_of_accounts", stdout=StringIO())
        Account.objects.filter(code="1-1101").update(opening_balance=Decimal("50.00"))
        self.cash = Account.objects.get(code="1-1101")
        self.sales = Account.objects.get(code="4-1001")

        _cash_sale("100.00", date(2025, 1, 10))
        _cash_sale("40.00", date(2025, 2, 15))
        _cash_sale("7.00", date(2025, 3, 1))

    def test_point_in_time_balance(self):
        self.assertEqual(get_account_balance(self.cash), Decimal("197.00"))
        self.assertEqual(get_account_balance(self.cash, as_of=date(2025, 2, 15)), Decimal("190.00"))
        self.assertEqual(get_account_balance(self.cash, as_of=date(2025, 1, 9)), Decimal("50.00"))
        self.assertEqual(get_account_balance(self.sales, as_of=date(2025, 2, 28)), Decimal("140.00"))

    def test_as_of_and_date_to_use_the_earlier_bound(self):
        early, late = date(2025, 1, 31), date(2025, 2, 28)

        self.assertEqual(get_account_balance(self.cash, as_of=early, date_to=late), Decimal("150.00"))
        self.assertEqual(get_account_balance(self.cash, as_of=late, date_to=early), Decimal("150.00"))

    def test_drafts_and_voids_are_excluded(self):
        _cash_sale("1000.00", date(2025, 1, 20), post=False)
        voided = _cash_sale("500.00", date(2025, 1, 20))
        journals.void_journal_entry(voided.pk, reason="Duplicate")

        self.assertEqual(get_account_balance(self.cash), Decimal("197.00"))
        self.assertEqual(
            get_account_movement(self.cash, date(2025, 1, 1), date(2025, 1, 31))["debit"],
            Decimal("100.00"),
        )
        self.assertEqual(get_balances([self.cash])[self.cash.id]["balance"], Decimal("197.00"))

    def test_movement_is_date_bounded_and_skips_opening(self):
        february = get_account_movement(self.cash, date(2025, 2, 1), date(2025, 2, 28))
        self.assertEqual(
            february,
            {"debit": Decimal("40.00"), "credit": Decimal("0.00"), "net": Decimal("40.00")},
        )

        # inclusive on both ends
        edges = get_account_movement(self.cash, date(2025, 1, 10), date(2025, 3, 1))
        self.assertEqual(edges["net"], Decimal("147.00"))

        revenue = get_account_movement(self.sales, date(2025, 2, 1))
        self.assertEqual(revenue["credit"], Decimal("47.00"))
        self.assertEqual(revenue["net"], Decimal("47.00"))

        empty = get_account_movement(self.cash, date(2024, 1, 1), date(2024, 12, 31))
        self.assertEqual(empty["net"], Decimal("0.00"))

    def test_inverted_range_is_rejected(self):
        with self.assertRaises(ValidationError):
            get_account_movement(self.cash, date(2025, 3, 1), date(2025, 2, 1))
        with self.assertRaises(ValidationError):
            get_balances(date_from=date(2025, 3, 1), date_to=date(2025, 2, 1))

    def test_unknown_account(self):
        with self.assertRaises(NotFoundError):
            get_account_balance(987654)

    def test_bulk_balances_match_single_account_balances(self):
        as_of = date(2025, 2, 20)
        balances = get_balances(as_of=as_of)

        self.assertEqual(len(balances), Account.objects.count())
        for account in Account.objects.all():
            with self.subTest(account=account.code):
                self.assertEqual(
                    balances[account.id]["balance"], get_account_balance(account, as_of=as_of)
                )

        self.assertEqual(balances[self.cash.id]["debit"], Decimal("140.00"))
        self.assertEqual(balances[self.sales.id]["credit"], Decimal("140.00"))

    def test_bulk_balances_without_opening(self):
        balances = get_balances(
            [self.cash, self.sales],
            date_from=date(2025, 2, 1),
            date_to=date(2025, 3, 31),
            include_opening=False,
        )

        self.assertEqual(set(balances), {self.cash.id, self.sales.id})
        self.assertEqual(balances[self.cash.id]["balance"], Decimal("47.00"))
        self.assertEqual(balances[self.sales.id]["balance"], Decimal("47.00"))

    def test_reads_are_idempotent(self):
        first = get_balances(as_of=date(2025, 3, 1))
        second = get_balances(as_of=date(2025, 3, 1))

        self.assertEqual(first, second)
        self.assertEqual(
            get_account_movement(self.sales, date(2025, 1, 1), date(2025, 3, 31)),
            get_account_movement(self.sales, date(2025, 1, 1), date(2025, 3, 31)),
        )
