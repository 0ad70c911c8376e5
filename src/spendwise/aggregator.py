"""Aggregation of transactions into category, month and account totals.

All functions are pure and recompute from the list they are given. Debits feed
the spending side, credits the income side.
"""

from collections.abc import Callable, Iterable
from datetime import date
from decimal import Decimal
from typing import TypeVar

from spendwise.categorizer import categorize_income, resolve_category
from spendwise.models import (
    AccountTotal,
    Category,
    CategoryTotal,
    IncomeCategory,
    MonthTotal,
    Transaction,
    category_order,
)
from spendwise.periods import MonthPeriod, Period, this_month
from spendwise.utils.money import ZERO, round_percent

C = TypeVar("C", Category, IncomeCategory)


def filter_period(
    transactions: Iterable[Transaction], period: Period | None
) -> list[Transaction]:
    """Keep transactions whose date falls in the period (all if None)."""
    if period is None:
        return list(transactions)
    return [tx for tx in transactions if period.contains(tx.timestamp)]


def _category_totals(
    transactions: Iterable[Transaction],
    classify: Callable[[Transaction], C],
) -> list[CategoryTotal]:
    sums: dict[C, Decimal] = {}
    counts: dict[C, int] = {}

    for tx in transactions:
        category = classify(tx)
        sums[category] = sums.get(category, ZERO) + abs(tx.amount)
        counts[category] = counts.get(category, 0) + 1

    total = sum(sums.values(), ZERO)

    results = [
        CategoryTotal(
            category=category,
            total_amount=amount,
            transaction_count=counts[category],
            percentage_of_total=round_percent(amount, total),
        )
        for category, amount in sums.items()
    ]
    results.sort(key=lambda ct: (-ct.total_amount, category_order(ct.category)))
    return results


def aggregate_by_category(
    transactions: Iterable[Transaction],
    period: Period | None = None,
) -> list[CategoryTotal]:
    """
    Group debits by spending category.

    Args:
        transactions: Transactions in any order
        period: Optional period filter

    Returns:
        One CategoryTotal per category with spend, largest first. Empty
        input gives an empty list.
    """
    debits = [tx for tx in filter_period(transactions, period) if tx.is_debit]
    return _category_totals(debits, resolve_category)


def aggregate_income(
    transactions: Iterable[Transaction],
    period: Period | None = None,
) -> list[CategoryTotal]:
    """Group credits by income category, largest first."""
    credits = [tx for tx in filter_period(transactions, period) if tx.is_credit]
    return _category_totals(credits, categorize_income)


def total_spent(transactions: Iterable[Transaction], period: Period | None = None) -> Decimal:
    return sum(
        (abs(tx.amount) for tx in filter_period(transactions, period) if tx.is_debit), ZERO
    )


def total_income(transactions: Iterable[Transaction], period: Period | None = None) -> Decimal:
    return sum(
        (tx.amount for tx in filter_period(transactions, period) if tx.is_credit), ZERO
    )


def aggregate_by_month(transactions: Iterable[Transaction]) -> list[MonthTotal]:
    """Spend and income per calendar month, newest month first."""
    buckets: dict[tuple[int, int], list[Transaction]] = {}
    for tx in transactions:
        buckets.setdefault((tx.timestamp.year, tx.timestamp.month), []).append(tx)

    return [
        MonthTotal(
            year=year,
            month=month,
            spent=total_spent(txs),
            income=total_income(txs),
            transaction_count=len(txs),
        )
        for (year, month), txs in sorted(buckets.items(), reverse=True)
    ]


def aggregate_by_account(
    transactions: Iterable[Transaction],
    period: Period | None = None,
) -> list[AccountTotal]:
    """Spend and income per account, biggest spender first."""
    buckets: dict[str, list[Transaction]] = {}
    for tx in filter_period(transactions, period):
        buckets.setdefault(tx.account_id, []).append(tx)

    results = [
        AccountTotal(
            account_id=account_id,
            spent=total_spent(txs),
            income=total_income(txs),
            transaction_count=len(txs),
        )
        for account_id, txs in buckets.items()
    ]
    results.sort(key=lambda at: (-at.spent, at.account_id))
    return results


def category_trends(
    transactions: Iterable[Transaction],
    today: date | None = None,
) -> dict[Category | IncomeCategory, int]:
    """
    Month-on-month change in spend per category, in whole percent.

    Compares the current calendar month with the previous one. Categories
    with no spend last month report 0.
    """
    transactions = list(transactions)
    current_period = this_month(today)
    previous_period: MonthPeriod = current_period.previous()

    current = {
        ct.category: ct.total_amount
        for ct in aggregate_by_category(transactions, current_period)
    }
    previous = {
        ct.category: ct.total_amount
        for ct in aggregate_by_category(transactions, previous_period)
    }

    trends: dict[Category | IncomeCategory, int] = {}
    for category, amount in current.items():
        before = previous.get(category, ZERO)
        trends[category] = round_percent(amount - before, before)
    return trends
