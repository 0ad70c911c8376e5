"""Monthly budget figures and savings rules."""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from spendwise.categorizer import categorize_income
from spendwise.models import IncomeCategory, Transaction
from spendwise.periods import MonthPeriod
from spendwise.utils.money import ZERO, to_decimal

PAYCHECK_MINIMUM = Decimal("1000")


@dataclass(frozen=True)
class MonthStats:
    """Income and spend for one month."""

    income: Decimal
    spent: Decimal
    saved: Decimal
    available: Decimal


@dataclass(frozen=True)
class BudgetSplit:
    savings_target: Decimal
    spending_budget: Decimal


def _is_income(tx: Transaction) -> bool:
    return categorize_income(tx) is IncomeCategory.SALARY


def is_paycheck(tx: Transaction) -> bool:
    """A credit over 1000 labelled as income or salary."""
    return tx.amount > PAYCHECK_MINIMUM and _is_income(tx)


def apply_budget_rule(
    amount: Decimal | float | str,
    save: Decimal | float | str,
    spend: Decimal | float | str,
) -> BudgetSplit:
    """
    Split an amount by a savings rule, e.g. save=0.2, spend=0.8.

    Both parts are rounded to whole currency units.
    """
    value = to_decimal(amount)
    whole = Decimal("1")
    return BudgetSplit(
        savings_target=(value * to_decimal(save)).quantize(whole, rounding=ROUND_HALF_UP),
        spending_budget=(value * to_decimal(spend)).quantize(whole, rounding=ROUND_HALF_UP),
    )


def month_stats(transactions: Iterable[Transaction], year: int, month: int) -> MonthStats:
    """
    Income, spend and savings for a calendar month.

    Only credits recognised as income count towards income; transfers in and
    refunds do not. Saved is whatever income is left after spending.
    """
    period = MonthPeriod(year, month)
    income = ZERO
    spent = ZERO

    for tx in transactions:
        if not period.contains(tx.timestamp):
            continue
        if tx.is_credit and _is_income(tx):
            income += tx.amount
        elif tx.is_debit:
            spent += abs(tx.amount)

    saved = max(ZERO, income - spent)
    return MonthStats(
        income=income,
        spent=spent,
        saved=saved,
        available=income - spent - saved,
    )
