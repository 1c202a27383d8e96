# accounting/tests/test_numbering.py

from datetime import date
from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from accounting.models.journal import JournalEntry
from accounting.models.sequence import NumberSequence
from accounting.services import journal_entry_service as journals
from accounting.services.exceptions import ValidationError
from accounting.services.numbering import generate_journal_number, generate_number

JAN_15 = date(2025, 1, 15)


def _lines():
    return [
        {"account_code": "1-1101", "debit": "10.00"},
        {"account_code": "4-1001", "credit": "10.00"},
    ]


class DocumentNumberingTests(TestCase):
    """
    Month-scoped sequential numbering.

    GUARANTEES:
    - Format is PREFIX-YYYYMM-NNNN
    - Numbers continue after the highest one already stored
    - Sequences are independent per prefix and per month
    - A number is never handed out twice
    """

    def setUp(self):
        call_command("seed_chart_of_accounts", stdout=StringIO())

    def test_first_number_of_month(self):
        self.assertEqual(generate_journal_number(JAN_15), "JU-202501-0001")
        self.assertEqual(generate_journal_number(JAN_15), "JU-202501-0002")

    def test_continues_after_stored_number(self):
        """A hand-keyed JU-202501-0007 makes the next generated numbers 0008 and 0009."""
        journals.create_journal_entry(
            description="Imported", lines=_lines(), entry_date=JAN_15, number="JU-202501-0007"
        )

        second = journals.create_journal_entry(description="Next", lines=_lines(), entry_date=JAN_15)
        third = journals.create_journal_entry(description="After", lines=_lines(), entry_date=JAN_15)

        self.assertEqual(second.number, "JU-202501-0008")
        self.assertEqual(third.number, "JU-202501-0009")

    def test_deleted_draft_number_is_not_reused(self):
        entry = journals.create_journal_entry(description="Draft", lines=_lines(), entry_date=JAN_15)
        journals.delete_journal_entry(entry.pk)

        again = journals.create_journal_entry(description="Again", lines=_lines(), entry_date=JAN_15)
        self.assertNotEqual(again.number, entry.number)

    def test_months_are_independent(self):
        self.assertEqual(generate_journal_number(JAN_15), "JU-202501-0001")
        self.assertEqual(generate_journal_number(date(2025, 2, 1)), "JU-202502-0001")
        self.assertEqual(
            sorted(NumberSequence.objects.values_list("prefix", flat=True)),
            ["JU-202501", "JU-202502"],
        )

    def test_prefixes_are_independent(self):
        self.assertEqual(generate_number("inv", on_date=JAN_15), "INV-202501-0001")
        self.assertEqual(generate_number("PO", on_date=JAN_15), "PO-202501-0001")
        self.assertEqual(generate_number("INV", on_date=JAN_15), "INV-202501-0002")

    def test_ignores_foreign_suffixes(self):
        """Stored numbers with a non-numeric tail do not break the scan."""
        JournalEntry.objects.create(
            number="JU-202501-IMPORT",
            description="Legacy import",
            entry_date=JAN_15,
        )
        self.assertEqual(generate_journal_number(JAN_15), "JU-202501-0001")

    def test_blank_prefix_is_rejected(self):
        with self.assertRaises(ValidationError):
            generate_number("  ", on_date=JAN_15)

    def test_numbers_are_unique(self):
        numbers = {generate_journal_number(JAN_15) for _ in range(25)}
        self.assertEqual(len(numbers), 25)
