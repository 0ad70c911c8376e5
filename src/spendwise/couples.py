"""Couples savings: shared goals funded by two people."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from spendwise.models import Contribution, SharedGoal
from spendwise.utils.money import ZERO, require_positive_amount, round_money, round_percent


@dataclass(frozen=True)
class GoalBreakdown:
    """Who has put what into a shared goal."""

    user_total: Decimal
    partner_total: Decimal
    remaining: Decimal
    progress: int
    user_share: Decimal
    partner_share: Decimal
    contribution_count: int


def add_contribution(
    contributions: list[Contribution],
    contributor: str,
    amount: Decimal | float | str,
    on: date | None = None,
) -> Contribution:
    """
    Append a contribution to a goal's ledger.

    Raises:
        InvalidAmountError: If amount is zero, negative or not finite
    """
    record = Contribution(
        amount=require_positive_amount(amount),
        date=on or date.today(),
        contributor=contributor,
    )
    contributions.append(record)
    return record


def _total_for(contributions: Iterable[Contribution], contributor: str | None) -> Decimal:
    if contributor is None:
        return ZERO
    return sum((c.amount for c in contributions if c.contributor == contributor), ZERO)


def goal_breakdown(
    goal: SharedGoal,
    contributions: Iterable[Contribution],
    user: str,
    partner: str | None = None,
) -> GoalBreakdown:
    """
    Split a shared goal's progress between the two partners.

    The user's and partner's shares are percentages of the target that stack
    to at most 100.
    """
    contributions = list(contributions)
    user_total = _total_for(contributions, user)
    partner_total = _total_for(contributions, partner)
    saved = user_total + partner_total
    target = goal.target_amount

    if target > 0:
        user_share = min(user_total / target * 100, Decimal(100))
        partner_share = min(partner_total / target * 100, Decimal(100) - user_share)
    else:
        user_share = partner_share = ZERO

    return GoalBreakdown(
        user_total=user_total,
        partner_total=partner_total,
        remaining=max(target - saved, ZERO),
        progress=round_percent(saved, target),
        user_share=round_money(user_share),
        partner_share=round_money(partner_share),
        contribution_count=len(contributions),
    )


def monthly_contribution_total(
    contributions: Iterable[Contribution],
    contributor: str,
    year: int,
    month: int,
) -> Decimal:
    """What one person contributed during a calendar month."""
    return sum(
        (
            c.amount
            for c in contributions
            if c.contributor == contributor and c.date.year == year and c.date.month == month
        ),
        ZERO,
    )
