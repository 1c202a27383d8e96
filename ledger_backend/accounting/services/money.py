# accounting/services/money.py

"""
MONEY HELPERS

All ledger amounts are Decimal with 2 decimal places (ROUND_HALF_UP).
Report outputs are JSON-safe: float major units + int minor units.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from accounting.services.exceptions import ValidationError

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")

# Σdebit vs Σcredit tolerance, in currency units
BALANCE_TOLERANCE = Decimal("0.01")


def q2(amount) -> Decimal:
    return (amount or ZERO).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def to_money(value, *, field_name: str = "amount") -> Decimal:
    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        return q2(Decimal(str(value)))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"Invalid {field_name}: {value!r}")


def to_quantity(value, *, field_name: str = "quantity", allow_zero: bool = False) -> int:
    """Whole, positive item count; 2.5 or "2.5" is rejected rather than truncated."""
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer")

    try:
        number = int(value)
        whole = number == Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")

    if not whole:
        raise ValidationError(f"{field_name} must be a whole number")

    if number < 0 or (number == 0 and not allow_zero):
        raise ValidationError(f"{field_name} must be greater than zero")

    return number


def to_major_number(amount: Decimal) -> float:
    return float(q2(amount))


def to_minor_int(amount: Decimal) -> int:
    return int((q2(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def format_percent(part: Decimal, whole: Decimal) -> str:
    """`part / whole` as "NN.NN%"; "0.00%" when whole is zero."""
    if not whole:
        return "0.00%"
    ratio = (Decimal(part) / Decimal(whole) * 100).quantize(
        TWOPLACES, rounding=ROUND_HALF_UP
    )
    return f"{ratio}%"


def ratio(numerator: Decimal, denominator: Decimal) -> float:
    if not denominator:
        return 0.0
    return float(
        (Decimal(numerator) / Decimal(denominator)).quantize(
            TWOPLACES, rounding=ROUND_HALF_UP
        )
    )


def money_pair(prefix: str, amount: Decimal) -> dict:
    """{"<prefix>": 12.5, "<prefix>_minor": 1250}"""
    return {prefix: to_major_number(amount), f"{prefix}_minor": to_minor_int(amount)}
