# accounting/services/chart_service.py

"""
CHART OF ACCOUNTS SERVICE

Account master data: creation with polarity/code validation, lookups,
administrative updates, soft deactivation and guarded deletion.

Rules:
- type <-> normal balance pairing is one of the five fixed combinations
- codes follow {1..5}-{sub}{seq}; the leading digit encodes the type
- an account referenced by any journal line is never hard-deleted
- deactivation refuses accounts with posted lines dated after the request
  unless forced (settings.LEDGER_ALLOW_DEACTIVATION_WITH_LATER_POSTINGS)
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from accounting.models.account import ACCOUNT_CODE_RE, Account
from accounting.models.journal import JournalEntry
from accounting.models.journal_line import JournalLine
from accounting.services.exceptions import (
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from accounting.services.money import to_money

logger = logging.getLogger(__name__)

TYPE_PREFIX = {
    Account.ASSET: "1",
    Account.LIABILITY: "2",
    Account.EQUITY: "3",
    Account.REVENUE: "4",
    Account.EXPENSE: "5",
}

CATEGORY_PREFIX = {
    Account.Category.CASH: "11",
    Account.Category.BANK: "12",
    Account.Category.RECEIVABLE: "13",
    Account.Category.INVENTORY: "14",
    Account.Category.FIXED_ASSET: "15",
    Account.Category.PAYABLE: "21",
    Account.Category.CAPITAL: "31",
    Account.Category.SALES: "41",
    Account.Category.PURCHASE: "51",
    Account.Category.OPERATING_EXPENSE: "52",
    Account.Category.OTHER: "99",
}

# Well-known codes of the default chart; used when an account is created without a role
DEFAULT_ROLE_BY_CODE = {
    "1-1101": Account.Role.CASH,
    "1-1102": Account.Role.BANK,
    "1-1103": Account.Role.RECEIVABLE,
    "1-1104": Account.Role.OTHER_CURRENT_ASSET,
    "1-1105": Account.Role.INVENTORY,
    "1-2101": Account.Role.FIXED_ASSET,
    "2-1101": Account.Role.PAYABLE_CURRENT,
    "2-1102": Account.Role.TAX_PAYABLE,
    "2-2101": Account.Role.LONG_TERM_LIABILITY,
    "3-1101": Account.Role.SHARE_CAPITAL,
    "3-1102": Account.Role.ADDITIONAL_CAPITAL,
    "3-1103": Account.Role.OTHER_EQUITY,
    "3-1104": Account.Role.RETAINED_EARNINGS,
    "4-1001": Account.Role.NET_SALES,
    "4-1002": Account.Role.CONSIGNMENT_SALES,
    "4-1003": Account.Role.OTHER_INCOME,
    "5-1001": Account.Role.COGS,
    "5-1002": Account.Role.OPERATING_EXPENSE,
    "5-1003": Account.Role.OTHER_EXPENSE,
    "5-1004": Account.Role.FINAL_TAX,
    "5-1005": Account.Role.ASSOCIATE_LOSS_SHARE,
    "5-1006": Account.Role.FINANCE_COST,
    "5-1007": Account.Role.INCOME_TAX,
    "5-1008": Account.Role.OTHER_COMPREHENSIVE_INCOME,
}


# ============================================================
# PURE HELPERS
# ============================================================


def normal_balance_for_type(account_type: str) -> str:
    try:
        return Account.NORMAL_BALANCE_BY_TYPE[account_type]
    except KeyError:
        raise ValidationError(f"Unknown account type: {account_type!r}")


def type_from_code(code: str) -> str:
    code = (code or "").strip()
    if not ACCOUNT_CODE_RE.match(code):
        raise ValidationError(f"Invalid account code: {code!r}")
    return Account.TYPE_BY_CODE_DIGIT[code[0]]


def is_valid_code(code: str) -> bool:
    return bool(ACCOUNT_CODE_RE.match((code or "").strip()))


def _validation_message(exc: DjangoValidationError) -> str:
    if hasattr(exc, "message_dict"):
        return "; ".join(
            f"{field}: {' '.join(messages)}" for field, messages in exc.message_dict.items()
        )
    return " ".join(exc.messages)


# ============================================================
# COMMANDS
# ============================================================


@transaction.atomic
def create_account(
    *,
    code: str,
    name: str,
    account_type: str | None = None,
    normal_balance: str | None = None,
    category: str = Account.Category.OTHER,
    role: str | None = None,
    opening_balance=None,
    description: str = "",
    is_active: bool = True,
) -> Account:
    """
    Create a chart-of-accounts entry.

    account_type defaults to the type encoded in the code; normal_balance
    defaults to the type's polarity. An explicit value that disagrees fails.
    """
    code = (code or "").strip()
    if not is_valid_code(code):
        raise ValidationError(f"Invalid account code '{code}' (expected e.g. 1-1101)")

    account_type = account_type or type_from_code(code)
    expected_balance = normal_balance_for_type(account_type)
    normal_balance = normal_balance or expected_balance

    if normal_balance != expected_balance:
        raise ValidationError(
            f"{account_type} accounts must have a {expected_balance} normal balance"
        )

    if Account.objects.filter(code=code).exists():
        raise ValidationError(f"Account code {code} already exists")

    if role is None:
        role = DEFAULT_ROLE_BY_CODE.get(code, "")

    account = Account(
        code=code,
        name=name,
        account_type=account_type,
        normal_balance=normal_balance,
        category=category or Account.Category.OTHER,
        role=role or "",
        opening_balance=to_money(opening_balance, field_name="opening_balance"),
        description=description or "",
        is_active=is_active,
    )

    try:
        with transaction.atomic():
            account.save()
    except DjangoValidationError as exc:
        raise ValidationError(_validation_message(exc))
    except IntegrityError:
        raise ValidationError(f"Account code {code} already exists")

    logger.info(
        "Account created",
        extra={"account_code": account.code, "account_type": account.account_type},
    )
    return account


def is_referenced(account: Account) -> bool:
    return JournalLine.objects.filter(account=account).exists()


@transaction.atomic
def update_account(account: Account, **changes) -> Account:
    """
    Administrative update.

    code/account_type/normal_balance are frozen once any journal line
    references the account.
    """
    frozen = {"code", "account_type", "normal_balance"}
    allowed = frozen | {"name", "category", "role", "opening_balance", "description", "is_active"}

    unknown = set(changes) - allowed
    if unknown:
        raise ValidationError(f"Unknown account fields: {', '.join(sorted(unknown))}")

    account = Account.objects.select_for_update().get(pk=account.pk)

    touched_frozen = {
        f for f in frozen & set(changes) if changes[f] != getattr(account, f)
    }
    if touched_frozen and is_referenced(account):
        raise InvalidStateError(
            f"Cannot change {', '.join(sorted(touched_frozen))} of an account "
            "referenced by journal lines"
        )

    if "code" in changes:
        new_code = (changes["code"] or "").strip()
        if Account.objects.filter(code=new_code).exclude(pk=account.pk).exists():
            raise ValidationError(f"Account code {new_code} already exists")

    if "opening_balance" in changes:
        changes["opening_balance"] = to_money(
            changes["opening_balance"], field_name="opening_balance"
        )

    for field, value in changes.items():
        setattr(account, field, value)

    try:
        account.save()
    except DjangoValidationError as exc:
        raise ValidationError(_validation_message(exc))

    return account


@transaction.atomic
def deactivate_account(account: Account, *, as_of=None, force: bool | None = None) -> Account:
    """
    Soft delete.

    Fails when posted journal lines dated after `as_of` (default: today)
    reference the account, unless forced.
    """
    if force is None:
        force = bool(getattr(settings, "LEDGER_ALLOW_DEACTIVATION_WITH_LATER_POSTINGS", False))

    as_of = as_of or timezone.localdate()
    account = Account.objects.select_for_update().get(pk=account.pk)

    later_postings = JournalLine.objects.filter(
        account=account,
        journal_entry__status=JournalEntry.Status.POSTED,
        journal_entry__entry_date__gt=as_of,
    ).exists()

    if later_postings and not force:
        raise InvalidStateError(
            f"Account {account.code} has posted journal lines dated after {as_of}"
        )

    if account.is_active:
        account.is_active = False
        account.save()

    logger.info(
        "Account deactivated",
        extra={"account_code": account.code, "forced": bool(force and later_postings)},
    )
    return account


@transaction.atomic
def delete_account(account: Account) -> None:
    if is_referenced(account):
        raise InvalidStateError(
            f"Account {account.code} is referenced by journal lines; deactivate it instead"
        )
    account.delete()


# ============================================================
# LOOKUPS
# ============================================================


def find_by_code(code: str) -> Account:
    try:
        return Account.objects.get(code=(code or "").strip())
    except Account.DoesNotExist:
        raise NotFoundError(f"Account {code} not found")


def find_by_type(account_type: str, *, active_only: bool = True):
    qs = Account.objects.filter(account_type=account_type)
    if active_only:
        qs = qs.filter(is_active=True)
    return qs.order_by("code")


def find_by_category(category: str, *, active_only: bool = True):
    qs = Account.objects.filter(category=category)
    if active_only:
        qs = qs.filter(is_active=True)
    return qs.order_by("code")


def find_by_role(role: str, *, active_only: bool = True):
    qs = Account.objects.filter(role=role)
    if active_only:
        qs = qs.filter(is_active=True)
    return qs.order_by("code")


def generate_account_code(account_type: str, category: str) -> str:
    """
    Next free code for a type/category pair: {type}-{category}{seq:02d}.

    e.g. asset + cash -> 1-1101, 1-1102, ...
    """
    type_prefix = TYPE_PREFIX.get(account_type)
    if type_prefix is None:
        raise ValidationError(f"Unknown account type: {account_type!r}")

    category_prefix = CATEGORY_PREFIX.get(category, CATEGORY_PREFIX[Account.Category.OTHER])
    head = f"{type_prefix}-{category_prefix}"

    highest = 0
    for code in Account.objects.filter(code__startswith=head).values_list("code", flat=True):
        tail = code[len(head):]
        if len(tail) == 2 and tail.isdigit():
            highest = max(highest, int(tail))

    if highest >= 99:
        raise ValidationError(f"No free account codes left under {head}")

    return f"{head}{highest + 1:02d}"
