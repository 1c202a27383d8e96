# accounting/services/ledger_snapshot.py

"""
LEDGER SNAPSHOT

Plain, immutable view of the chart of accounts and the POSTED journal lines.

Statement builders are pure functions over a snapshot:
    build_x(snapshot, period...) -> dict
so they can be unit-tested against a synthetic ledger without a database,
and `load_snapshot()` is the only place reports touch the ORM.

Lines are ordered chronologically: (entry_date, number, line_no, line_id).
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.journal_line import JournalLine
from accounting.services.balance_service import signed_balance
from accounting.services.exceptions import ValidationError
from accounting.services.money import ZERO, q2


@dataclass(frozen=True)
class AccountRow:
    id: int
    code: str
    name: str
    account_type: str
    normal_balance: str
    opening_balance: Decimal = ZERO
    category: str = Account.Category.OTHER
    role: str = ""
    is_active: bool = True


@dataclass(frozen=True)
class LineRow:
    entry_id: int
    number: str
    entry_date: date
    description: str
    transaction_kind: str
    account_id: int
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    line_no: int = 1
    line_id: int = 0
    memo: str = ""

    @property
    def sort_key(self):
        return (self.entry_date, self.number, self.line_no, self.line_id)


@dataclass(frozen=True)
class LedgerSnapshot:
    accounts: tuple = ()
    lines: tuple = ()
    _by_id: dict = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "accounts", tuple(sorted(self.accounts, key=lambda a: a.code)))
        object.__setattr__(self, "lines", tuple(sorted(self.lines, key=lambda line: line.sort_key)))
        object.__setattr__(self, "_by_id", {a.id: a for a in self.accounts})

    # --------------------------
    # accounts
    # --------------------------
    def account(self, account_id: int) -> AccountRow:
        return self._by_id[account_id]

    def active_accounts(self) -> list[AccountRow]:
        return [a for a in self.accounts if a.is_active]

    def accounts_of_type(self, account_type: str) -> list[AccountRow]:
        return [a for a in self.accounts if a.account_type == account_type]

    def accounts_with_role(self, *roles: str) -> list[AccountRow]:
        return [a for a in self.accounts if a.role in roles]

    # --------------------------
    # lines
    # --------------------------
    def lines_for(self, account_id: int, *, date_from=None, date_to=None) -> list[LineRow]:
        return [
            line
            for line in self.lines
            if line.account_id == account_id and _within(line.entry_date, date_from, date_to)
        ]

    def totals(self, account_id: int, *, date_from=None, date_to=None) -> tuple[Decimal, Decimal]:
        debit = ZERO
        credit = ZERO
        for line in self.lines_for(account_id, date_from=date_from, date_to=date_to):
            debit += line.debit
            credit += line.credit
        return q2(debit), q2(credit)

    def balance(self, account: AccountRow, *, as_of=None) -> Decimal:
        """Opening balance + posted movement up to as_of (inclusive)."""
        debit, credit = self.totals(account.id, date_to=as_of)
        return signed_balance(account.normal_balance, account.opening_balance, debit, credit)

    def balance_before(self, account: AccountRow, day) -> Decimal:
        """Balance carried into `day` (opening + movement strictly before it)."""
        if day is None:
            return q2(account.opening_balance)
        debit = ZERO
        credit = ZERO
        for line in self.lines:
            if line.account_id == account.id and line.entry_date < day:
                debit += line.debit
                credit += line.credit
        return signed_balance(account.normal_balance, account.opening_balance, debit, credit)

    def movement(self, account: AccountRow, *, date_from=None, date_to=None) -> Decimal:
        """Signed period movement per polarity, without opening balance."""
        debit, credit = self.totals(account.id, date_from=date_from, date_to=date_to)
        return signed_balance(account.normal_balance, ZERO, debit, credit)

    def entries(self, *, date_from=None, date_to=None) -> "OrderedDict[int, list[LineRow]]":
        grouped: OrderedDict[int, list[LineRow]] = OrderedDict()
        for line in self.lines:
            if _within(line.entry_date, date_from, date_to):
                grouped.setdefault(line.entry_id, []).append(line)
        return grouped


def _within(day, date_from, date_to) -> bool:
    if date_from and day < date_from:
        return False
    if date_to and day > date_to:
        return False
    return True


def check_period(date_from, date_to) -> None:
    if date_from and date_to and date_from > date_to:
        raise ValidationError("start date must not be after end date")


def load_snapshot(*, as_of=None) -> LedgerSnapshot:
    """Read every account and every POSTED line dated on/before `as_of`."""
    accounts = [
        AccountRow(
            id=a.id,
            code=a.code,
            name=a.name,
            account_type=a.account_type,
            normal_balance=a.normal_balance,
            opening_balance=q2(a.opening_balance),
            category=a.category,
            role=a.role,
            is_active=a.is_active,
        )
        for a in Account.objects.all().order_by("code")
    ]

    qs = JournalLine.objects.filter(journal_entry__status=JournalEntry.Status.POSTED)
    if as_of:
        qs = qs.filter(journal_entry__entry_date__lte=as_of)

    lines = [
        LineRow(
            entry_id=row["journal_entry_id"],
            number=row["journal_entry__number"],
            entry_date=row["journal_entry__entry_date"],
            description=row["journal_entry__description"],
            transaction_kind=row["journal_entry__transaction_kind"],
            account_id=row["account_id"],
            debit=q2(row["debit"]),
            credit=q2(row["credit"]),
            line_no=row["line_no"],
            line_id=row["id"],
            memo=row["memo"],
        )
        for row in qs.values(
            "id",
            "journal_entry_id",
            "journal_entry__number",
            "journal_entry__entry_date",
            "journal_entry__description",
            "journal_entry__transaction_kind",
            "account_id",
            "debit",
            "credit",
            "line_no",
            "memo",
        )
    ]

    return LedgerSnapshot(accounts=tuple(accounts), lines=tuple(lines))
