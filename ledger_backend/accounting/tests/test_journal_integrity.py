# accounting/tests/test_journal_integrity.py

from datetime import date
from decimal import Decimal
from io import StringIO

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.management import call_command
from django.test import TestCase

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.journal_line import JournalLine
from accounting.services import journal_entry_service as journals
from accounting.services.balance_service import get_account_balance
from accounting.services.exceptions import (
    DuplicateError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)


def _cash_sale_lines(amount="100.00"):
    return [
        {"account_code": "1-1101", "debit": amount, "credit": "0"},
        {"account_code": "4-1001", "debit": "0", "credit": amount},
    ]


class JournalEntryIntegrityTests(TestCase):
    """
    Double-entry integrity of the journal engine.

    GUARANTEES:
    - Σdebit == Σcredit for every stored entry
    - Lifecycle: draft -> posted -> void, nothing else
    - Posted and void entries are immutable
    - Only posted entries move balances
    - The general journal lists posted entries unless asked for every status
    """

    def setUp(self):
        call_command("seed_chart_of_accounts", stdout=StringIO())
        self.cash = Account.objects.get(code="1-1101")
        self.sales = Account.objects.get(code="4-1001")

    def test_create_draft_entry(self):
        """A balanced entry is stored as draft with frozen totals and snapshotted codes."""
        entry = journals.create_journal_entry(
            description="Cash sale",
            lines=_cash_sale_lines(),
            entry_date=date(2025, 1, 10),
        )

        self.assertEqual(entry.status, JournalEntry.Status.DRAFT)
        self.assertEqual(entry.total_debit, Decimal("100.00"))
        self.assertEqual(entry.total_credit, Decimal("100.00"))
        self.assertEqual(entry.number, "JU-202501-0001")

        codes = list(entry.lines.order_by("line_no").values_list("account_code", flat=True))
        self.assertEqual(codes, ["1-1101", "4-1001"])

    def test_lines_accept_account_objects_and_ids(self):
        entry = journals.create_journal_entry(
            description="Mixed references",
            lines=[
                {"account": self.cash, "debit": "25.00"},
                {"account_id": self.sales.pk, "credit": "25.00"},
            ],
        )
        self.assertEqual(entry.lines.count(), 2)

    def test_unbalanced_entry_is_rejected(self):
        """Nothing is written when debits and credits differ."""
        with self.assertRaises(ValidationError) as ctx:
            journals.create_journal_entry(
                description="Broken",
                lines=[
                    {"account_code": "1-1101", "debit": "100.00"},
                    {"account_code": "4-1001", "credit": "90.00"},
                ],
            )

        self.assertEqual(str(ctx.exception), "Unbalanced entry")
        self.assertEqual(ctx.exception.details["total_debit"], "100.00")
        self.assertEqual(JournalEntry.objects.count(), 0)
        self.assertEqual(JournalLine.objects.count(), 0)

    def test_rounding_within_tolerance_is_accepted(self):
        entry = journals.create_journal_entry(
            description="Rounded",
            lines=[
                {"account_code": "1-1101", "debit": "100.01"},
                {"account_code": "4-1001", "credit": "100.00"},
            ],
        )
        self.assertIsNotNone(entry.pk)

    def test_single_line_entry_is_rejected(self):
        with self.assertRaises(ValidationError):
            journals.create_journal_entry(
                description="Lonely",
                lines=[{"account_code": "1-1101", "debit": "10.00"}],
            )

    def test_line_without_amount_is_rejected(self):
        with self.assertRaises(ValidationError):
            journals.create_journal_entry(
                description="Empty line",
                lines=[
                    {"account_code": "1-1101", "debit": "0", "credit": "0"},
                    {"account_code": "4-1001", "debit": "0", "credit": "0"},
                ],
            )

    def test_negative_amounts_are_rejected(self):
        with self.assertRaises(ValidationError):
            journals.create_journal_entry(
                description="Negative",
                lines=[
                    {"account_code": "1-1101", "debit": "-10.00"},
                    {"account_code": "4-1001", "debit": "-10.00"},
                ],
            )

    def test_unknown_account_is_rejected(self):
        with self.assertRaises(ValidationError):
            journals.create_journal_entry(
                description="Ghost account",
                lines=[
                    {"account_code": "1-9999", "debit": "10.00"},
                    {"account_code": "4-1001", "credit": "10.00"},
                ],
            )

    def test_inactive_account_is_rejected(self):
        self.cash.is_active = False
        self.cash.save()

        with self.assertRaises(ValidationError):
            journals.create_journal_entry(description="Dormant", lines=_cash_sale_lines())

    def test_missing_description_is_rejected(self):
        with self.assertRaises(ValidationError):
            journals.create_journal_entry(description="  ", lines=_cash_sale_lines())

    def test_duplicate_number_is_rejected(self):
        journals.create_journal_entry(
            description="First", lines=_cash_sale_lines(), number="JU-202501-0042"
        )

        with self.assertRaises(DuplicateError):
            journals.create_journal_entry(
                description="Second", lines=_cash_sale_lines(), number="JU-202501-0042"
            )

    def test_post_then_void(self):
        entry = journals.create_journal_entry(description="Cash sale", lines=_cash_sale_lines())

        entry = journals.post_journal_entry(entry.pk)
        self.assertEqual(entry.status, JournalEntry.Status.POSTED)
        self.assertIsNotNone(entry.posted_at)

        entry = journals.void_journal_entry(entry.pk, reason="Keyed twice")
        self.assertEqual(entry.status, JournalEntry.Status.VOID)
        self.assertEqual(entry.void_reason, "Keyed twice")

    def test_posting_twice_is_rejected(self):
        entry = journals.create_journal_entry(description="Cash sale", lines=_cash_sale_lines(), post=True)

        with self.assertRaises(InvalidStateError):
            journals.post_journal_entry(entry.pk)

    def test_void_entry_cannot_be_posted_or_voided_again(self):
        entry = journals.create_journal_entry(description="Cash sale", lines=_cash_sale_lines(), post=True)
        journals.void_journal_entry(entry.pk)

        with self.assertRaises(InvalidStateError):
            journals.post_journal_entry(entry.pk)
        with self.assertRaises(InvalidStateError):
            journals.void_journal_entry(entry.pk)

    def test_draft_cannot_be_voided(self):
        """Drafts are deleted, not voided."""
        entry = journals.create_journal_entry(description="Cash sale", lines=_cash_sale_lines())

        with self.assertRaises(InvalidStateError):
            journals.void_journal_entry(entry.pk)

    def test_update_draft_replaces_lines(self):
        entry = journals.create_journal_entry(description="Cash sale", lines=_cash_sale_lines())

        entry = journals.update_journal_entry(
            entry.pk,
            lines=_cash_sale_lines("250.00"),
            description="Corrected cash sale",
        )

        self.assertEqual(entry.total_debit, Decimal("250.00"))
        self.assertEqual(entry.description, "Corrected cash sale")
        self.assertEqual(entry.lines.count(), 2)

    def test_posted_entry_cannot_be_updated(self):
        entry = journals.create_journal_entry(description="Cash sale", lines=_cash_sale_lines(), post=True)

        with self.assertRaises(InvalidStateError) as ctx:
            journals.update_journal_entry(entry.pk, lines=_cash_sale_lines("1.00"))
        self.assertEqual(str(ctx.exception), "Cannot update posted entry")

    def test_posted_entry_is_immutable_at_model_level(self):
        entry = journals.create_journal_entry(description="Cash sale", lines=_cash_sale_lines(), post=True)

        entry.description = "Tampered"
        with self.assertRaises(DjangoValidationError):
            entry.save()

        line = entry.lines.first()
        line.debit = Decimal("1.00")
        with self.assertRaises(DjangoValidationError):
            line.save()

    def test_delete_draft_only(self):
        draft = journals.create_journal_entry(description="Draft", lines=_cash_sale_lines())
        journals.delete_journal_entry(draft.pk)
        self.assertFalse(JournalEntry.objects.filter(pk=draft.pk).exists())

        posted = journals.create_journal_entry(description="Posted", lines=_cash_sale_lines(), post=True)
        with self.assertRaises(InvalidStateError):
            journals.delete_journal_entry(posted.pk)

    def test_missing_entry(self):
        with self.assertRaises(NotFoundError):
            journals.get_journal_entry(987654)
        with self.assertRaises(NotFoundError):
            journals.post_journal_entry(987654)

    def test_only_posted_entries_move_balances(self):
        journals.create_journal_entry(description="Draft", lines=_cash_sale_lines("10.00"))
        posted = journals.create_journal_entry(description="Posted", lines=_cash_sale_lines("40.00"), post=True)
        voided = journals.create_journal_entry(description="Voided", lines=_cash_sale_lines("70.00"), post=True)
        journals.void_journal_entry(voided.pk)

        self.assertEqual(get_account_balance(self.cash), Decimal("40.00"))
        self.assertEqual(get_account_balance(self.sales), Decimal("40.00"))

        journals.void_journal_entry(posted.pk)
        self.assertEqual(get_account_balance(self.cash), Decimal("0.00"))

    def test_reversal_nets_to_zero(self):
        entry = journals.create_journal_entry(description="Cash sale", lines=_cash_sale_lines(), post=True)

        reversal = journals.reverse_journal_entry(entry.pk, reason="Returned")

        self.assertTrue(reversal.is_posted)
        self.assertEqual(reversal.reference_number, entry.number)
        self.assertEqual(get_account_balance(self.cash), Decimal("0.00"))

    def test_list_filters_by_status(self):
        journals.create_journal_entry(description="Draft", lines=_cash_sale_lines())
        journals.create_journal_entry(description="Posted", lines=_cash_sale_lines(), post=True)

        posted = journals.list_journal_entries(status=JournalEntry.Status.POSTED)
        self.assertEqual([e.description for e in posted], ["Posted"])

    def test_general_journal_defaults_to_posted_entries(self):
        journals.create_journal_entry(description="Draft", lines=_cash_sale_lines())
        journals.create_journal_entry(description="Posted", lines=_cash_sale_lines(), post=True)
        voided = journals.create_journal_entry(description="Voided", lines=_cash_sale_lines(), post=True)
        journals.void_journal_entry(voided.pk)

        self.assertEqual([e.description for e in journals.list_journal_entries()], ["Posted"])
        self.assertEqual(
            [e.description for e in journals.list_journal_entries(status=None)],
            ["Draft", "Posted", "Voided"],
        )
