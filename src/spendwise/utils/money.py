"""Decimal helpers shared by the calculation modules."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from spendwise.exceptions import InvalidAmountError

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """
    Convert a number-like value to Decimal.

    Floats go through str() so 4.23 becomes Decimal("4.23") rather than its
    binary expansion.

    Raises:
        InvalidAmountError: If the value cannot be read as a number
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or value is None:
        raise InvalidAmountError(value, "not a number")
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise InvalidAmountError(value, "not a number") from e


def require_positive_amount(value: Any) -> Decimal:
    """Return value as Decimal, rejecting zero, negative and non-finite amounts."""
    amount = to_decimal(value)
    if not amount.is_finite():
        raise InvalidAmountError(value, "amount must be finite")
    if amount <= 0:
        raise InvalidAmountError(value)
    return amount


def round_money(value: Decimal) -> Decimal:
    """Round to two decimal places, half-up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def round_percent(part: Decimal, whole: Decimal) -> int:
    """Whole-number percentage of part in whole, half-up. Zero whole gives 0."""
    if whole == 0:
        return 0
    return int((part * 100 / whole).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
