"""Spendwise - Spending breakdowns, round-up investing and savings tracking."""

from spendwise.aggregator import aggregate_by_category
from spendwise.categorizer import categorize
from spendwise.emergency_fund import contribute
from spendwise.exceptions import (
    InsufficientFundsError,
    InvalidAmountError,
    SpendwiseError,
    StaleStateError,
    UnknownFundError,
)
from spendwise.models import Category, Transaction
from spendwise.roundups import accumulate_pool, compute_round_up, get_milestone_status, invest

__version__ = "0.1.0"
__all__ = [
    "Category",
    "InsufficientFundsError",
    "InvalidAmountError",
    "SpendwiseError",
    "StaleStateError",
    "Transaction",
    "UnknownFundError",
    "accumulate_pool",
    "aggregate_by_category",
    "categorize",
    "compute_round_up",
    "contribute",
    "get_milestone_status",
    "invest",
]
