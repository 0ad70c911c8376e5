"""Round-up micro-investing.

Every debit is rounded up to the next whole currency unit and the spare change
collects in a pool. Investing moves the whole pool into one fund in a single
step: either every entry is marked invested and the fund credited, or nothing
changes.

Persisting the result is the caller's job. Two concurrent ``invest`` calls on
the same user's pool must be serialised by the caller, or run inside a store
transaction, otherwise both can read the same pool.
"""

from collections.abc import Collection, Iterable, Sequence
from decimal import ROUND_CEILING, Decimal
from typing import Any

from spendwise.categorizer import resolve_category
from spendwise.exceptions import (
    InsufficientFundsError,
    InvalidAmountError,
    UnknownFundError,
)
from spendwise.models import (
    FundAllocation,
    InvestmentFund,
    InvestmentResult,
    Milestone,
    MilestoneStatus,
    RoundUpEntry,
    RoundUpPool,
    Transaction,
)
from spendwise.utils.money import ZERO, require_positive_amount, round_money, to_decimal

INVESTMENT_FUNDS: tuple[InvestmentFund, ...] = (
    InvestmentFund(
        id="ftse100",
        name="FTSE 100 Index Fund",
        risk_level="Low Risk",
        fee="0.15%",
        description="Track the UK's largest 100 companies with steady returns.",
    ),
    InvestmentFund(
        id="global",
        name="Global Diversified ETF",
        risk_level="Medium Risk",
        fee="0.25%",
        description="Worldwide exposure across developed and emerging markets.",
    ),
    InvestmentFund(
        id="tech",
        name="Technology Growth Fund",
        risk_level="High Risk",
        fee="0.45%",
        description="Focus on innovative tech companies with high growth potential.",
    ),
)

FUNDS_BY_ID = {fund.id: fund for fund in INVESTMENT_FUNDS}


def compute_round_up(transaction: Transaction | Decimal | float | str) -> Decimal:
    """
    Spare change from rounding a spend up to the next whole unit.

    Accepts a transaction or a bare amount; the sign is ignored.
    4.23 gives 0.77, 5.00 gives 0.
    """
    if isinstance(transaction, Transaction):
        spent = transaction.amount_spent
    else:
        spent = abs(to_decimal(transaction))
    return spent.to_integral_value(rounding=ROUND_CEILING) - spent


def make_entry(transaction: Transaction) -> RoundUpEntry:
    """Build an uninvested round-up entry for a debit."""
    return RoundUpEntry(
        id=transaction.id,
        merchant=transaction.display_name,
        amount_spent=transaction.amount_spent,
        round_up_amount=compute_round_up(transaction),
        category=resolve_category(transaction),
        date=transaction.timestamp,
    )


def accumulate_pool(
    transactions: Iterable[Transaction],
    invested_ids: Collection[str] = (),
) -> RoundUpPool:
    """
    Collect round-ups from debits that have not been invested yet.

    Args:
        transactions: Transactions in any order; credits are ignored
        invested_ids: IDs of transactions whose round-up was already invested

    Returns:
        Pool with one uninvested entry per remaining debit
    """
    return RoundUpPool(
        entries=[
            make_entry(tx)
            for tx in transactions
            if tx.is_debit and tx.id not in invested_ids
        ]
    )


def invest(
    pool: RoundUpPool,
    fund_id: str,
    amount: Decimal | float | str,
    allocation: FundAllocation | None = None,
) -> InvestmentResult:
    """
    Invest the whole pool into a fund.

    All checks run before anything is touched, so a failure leaves the pool
    and the allocation exactly as they were. On success every pool entry is
    marked invested and the fund is credited with ``amount``. Calling again
    with the same pool fails because nothing is left in it.

    Args:
        pool: Uninvested round-ups
        fund_id: ID from INVESTMENT_FUNDS
        amount: Amount to invest; must equal the pool total
        allocation: Current fund allocation (a new one is started if None)

    Returns:
        InvestmentResult with the updated entries and allocation

    Raises:
        InvalidAmountError: amount is not positive, or is less than the pool
        UnknownFundError: fund_id is not a known fund
        InsufficientFundsError: amount exceeds the pool
    """
    value = require_positive_amount(amount)
    if fund_id not in FUNDS_BY_ID:
        raise UnknownFundError(fund_id)

    available = pool.total_available
    if value > available:
        raise InsufficientFundsError(value, available)
    if value < available:
        # The pool is only ever invested whole.
        raise InvalidAmountError(
            value, f"the whole pool of {available} must be invested at once"
        )

    updated_allocation = allocation if allocation is not None else FundAllocation()
    entries = pool.uninvested
    for entry in entries:
        entry.mark_invested()
    updated_allocation.add(fund_id, value)

    return InvestmentResult(
        fund_id=fund_id,
        amount=value,
        updated_entries=entries,
        updated_allocation=updated_allocation,
    )


def portfolio_value(allocation: FundAllocation) -> Decimal:
    """Total invested across all funds."""
    return round_money(allocation.total)


def _as_milestone(value: Any) -> Milestone:
    if isinstance(value, Milestone):
        return value
    return Milestone(to_decimal(value))


def get_milestone_status(
    current_amount: Decimal | float | str,
    milestones: Sequence[Milestone | Decimal | float | int | str],
) -> MilestoneStatus:
    """
    Split milestones into those reached and the next one to aim for.

    Args:
        current_amount: Amount saved so far
        milestones: Thresholds, as Milestone objects or plain numbers

    Returns:
        MilestoneStatus; ``next`` is None once every milestone is reached
    """
    current = to_decimal(current_amount)
    ordered = sorted(_as_milestone(m) for m in milestones)

    achieved = [m for m in ordered if current >= m.amount]
    upcoming = [m for m in ordered if current < m.amount]

    return MilestoneStatus(achieved=achieved, next=upcoming[0] if upcoming else None)


def total_round_ups(entries: Iterable[RoundUpEntry], invested: bool | None = None) -> Decimal:
    """Sum round-ups, optionally only invested or uninvested ones."""
    return sum(
        (e.round_up_amount for e in entries if invested is None or e.invested == invested),
        ZERO,
    )
