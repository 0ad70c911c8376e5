"""Emergency-fund tracking.

State changes only through ``contribute``, which returns a new state. The
caller persists that state together with an append-only Contribution record;
the records drive the monthly progress and milestone-date views.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal

from spendwise.models import Contribution, EmergencyFundState, Milestone
from spendwise.utils.money import ZERO, require_positive_amount, round_money, to_decimal

MILESTONE_THRESHOLDS = (500, 1000, 2500, 5000, 7500)


@dataclass(frozen=True)
class FundProgress:
    """Progress of an emergency fund towards its target."""

    percentage: Decimal
    remaining: Decimal
    monthly_expenses: Decimal
    months_covered: Decimal
    goal_exceeded: bool


def create_fund(
    target_amount: Decimal | float | str,
    target_months: int,
    monthly_contribution: Decimal | float | str = 0,
    created_at: date | None = None,
) -> EmergencyFundState:
    """Start an empty emergency fund."""
    return EmergencyFundState(
        current_amount=ZERO,
        target_amount=to_decimal(target_amount),
        target_months=target_months,
        created_at=created_at or date.today(),
        monthly_contribution=to_decimal(monthly_contribution),
    )


def contribute(state: EmergencyFundState, amount: Decimal | float | str) -> EmergencyFundState:
    """
    Add money to the fund.

    There is no cap: going past the target is reported as goal exceeded.

    Raises:
        InvalidAmountError: If amount is zero, negative or not finite
    """
    value = require_positive_amount(amount)
    return replace(state, current_amount=state.current_amount + value)


def default_milestones(target_amount: Decimal | float | str) -> list[Milestone]:
    """Standard thresholds below the target, followed by the target itself."""
    target = to_decimal(target_amount)
    milestones = [Milestone(Decimal(t)) for t in MILESTONE_THRESHOLDS if Decimal(t) < target]
    milestones.append(Milestone(target, label="Goal"))
    return milestones


def fund_progress(state: EmergencyFundState) -> FundProgress:
    monthly_expenses = state.target_amount / state.target_months
    percentage = min(state.current_amount / state.target_amount * 100, Decimal(100))
    return FundProgress(
        percentage=round_money(percentage),
        remaining=max(state.target_amount - state.current_amount, ZERO),
        monthly_expenses=round_money(monthly_expenses),
        months_covered=round_money(state.current_amount / monthly_expenses),
        goal_exceeded=state.current_amount > state.target_amount,
    )


def monthly_contributed(contributions: Iterable[Contribution], year: int, month: int) -> Decimal:
    """Total contributed during one calendar month."""
    return sum(
        (c.amount for c in contributions if c.date.year == year and c.date.month == month),
        ZERO,
    )


def milestone_dates(
    contributions: Iterable[Contribution],
    milestones: Sequence[Milestone],
) -> dict[Milestone, date]:
    """
    Date on which each milestone was first reached.

    Replays contributions in date order from an empty fund. Milestones not
    reached yet are left out.
    """
    reached: dict[Milestone, date] = {}
    running = ZERO
    pending = sorted(milestones)

    for contribution in sorted(contributions, key=lambda c: c.date):
        running += contribution.amount
        while pending and running >= pending[0].amount:
            reached[pending.pop(0)] = contribution.date

    return reached


def replay(state: EmergencyFundState, contributions: Iterable[Contribution]) -> EmergencyFundState:
    """Apply contributions to a state in order."""
    for contribution in contributions:
        state = contribute(state, contribution.amount)
    return state
