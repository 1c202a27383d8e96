# accounting/services/trial_balance_service.py

from __future__ import annotations

from django.utils import timezone

from accounting.models.account import Account
from accounting.services.ledger_snapshot import LedgerSnapshot, load_snapshot
from accounting.services.money import ZERO, q2, to_major_number, to_minor_int


def build_trial_balance(snapshot: LedgerSnapshot, *, as_of=None, include_zero: bool = True) -> dict:
    """
    Trial balance over a snapshot (pure).

    Each row carries the polarity-signed `balance` and the debit/credit
    column it lands in (by the sign of its debit-side net).
    Inactive accounts are listed only while their balance is nonzero.
    """
    rows = []
    total_debit = ZERO
    total_credit = ZERO

    for acc in snapshot.accounts:
        balance = snapshot.balance(acc, as_of=as_of)
        # dormant accounts stay listed while they still carry a balance
        if not acc.is_active and balance == ZERO:
            continue
        debit_side_net = balance if acc.normal_balance == Account.DEBIT else -balance

        debit = q2(debit_side_net) if debit_side_net > 0 else ZERO
        credit = q2(-debit_side_net) if debit_side_net < 0 else ZERO

        if not include_zero and debit == ZERO and credit == ZERO:
            continue

        rows.append(
            {
                "account_id": acc.id,
                "account_code": acc.code,
                "account_name": acc.name,
                "account_type": acc.account_type,
                "normal_balance": acc.normal_balance,
                "balance": to_major_number(balance),
                "balance_minor": to_minor_int(balance),
                "debit": to_major_number(debit),
                "credit": to_major_number(credit),
                "debit_minor": to_minor_int(debit),
                "credit_minor": to_minor_int(credit),
            }
        )

        total_debit += debit
        total_credit += credit

    total_debit = q2(total_debit)
    total_credit = q2(total_credit)

    return {
        "as_of": as_of.isoformat() if as_of else None,
        "accounts": rows,
        "totals": {
            "debit": to_major_number(total_debit),
            "credit": to_major_number(total_credit),
            "debit_minor": to_minor_int(total_debit),
            "credit_minor": to_minor_int(total_credit),
            "balanced": to_minor_int(total_debit) == to_minor_int(total_credit),
        },
    }


class TrialBalanceService:
    """
    Trial Balance computation service.

    Guarantees:
    - Active accounts, plus inactive ones still carrying a balance
    - POSTED journal entries only, entry_date <= as_of
    - Returns JSON-safe numeric values (no Decimals)
    """

    def __init__(self, snapshot_loader=load_snapshot):
        self.load_snapshot = snapshot_loader

    def generate(self, *, as_of=None, include_zero: bool = True) -> dict:
        as_of = as_of or timezone.localdate()
        snapshot = self.load_snapshot(as_of=as_of)
        return build_trial_balance(snapshot, as_of=as_of, include_zero=include_zero)
