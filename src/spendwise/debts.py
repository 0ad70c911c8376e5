"""Debt payoff ordering.

Avalanche pays the highest APR first, snowball the smallest balance first.
Every debt gets its minimum payment; any budget left over goes to the debt
ranked first.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from spendwise.models import DebtAccount
from spendwise.utils.money import ZERO, to_decimal

STRATEGIES = ("avalanche", "snowball")


@dataclass(frozen=True)
class PrioritizedDebt:
    debt: DebtAccount
    priority: int
    suggested_payment: Decimal


def prioritize_debts(
    debts: Iterable[DebtAccount],
    strategy: str = "avalanche",
    monthly_budget: Decimal | float | str | None = None,
) -> list[PrioritizedDebt]:
    """
    Rank debts and suggest a payment for each.

    Args:
        debts: Debts to rank; paid-off debts (zero balance) are skipped
        strategy: "avalanche" or "snowball"
        monthly_budget: Total available for debt payments this month

    Returns:
        Debts in payoff order, priority starting at 1

    Raises:
        ValueError: If the strategy is unknown
    """
    open_debts = [d for d in debts if d.balance > 0]

    if strategy == "avalanche":
        open_debts.sort(key=lambda d: (-d.apr, d.balance, d.name))
    elif strategy == "snowball":
        open_debts.sort(key=lambda d: (d.balance, -d.apr, d.name))
    else:
        raise ValueError(f"Unknown strategy {strategy!r}, expected one of {', '.join(STRATEGIES)}")

    payments = [min(d.minimum_payment, d.balance) for d in open_debts]

    if monthly_budget is not None and open_debts:
        surplus = to_decimal(monthly_budget) - sum(payments, ZERO)
        # Surplus cascades down the order once the top debt is covered
        for i, debt in enumerate(open_debts):
            if surplus <= 0:
                break
            extra = min(surplus, debt.balance - payments[i])
            payments[i] += extra
            surplus -= extra

    return [
        PrioritizedDebt(debt=debt, priority=i + 1, suggested_payment=payment)
        for i, (debt, payment) in enumerate(zip(open_debts, payments))
    ]


def total_debt(debts: Iterable[DebtAccount]) -> Decimal:
    return sum((d.balance for d in debts), ZERO)
