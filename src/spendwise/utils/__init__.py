"""Utility functions for spendwise."""

from spendwise.utils.money import (
    require_positive_amount,
    round_money,
    round_percent,
    to_decimal,
)
from spendwise.utils.parsing import (
    clean_description,
    parse_amount,
    parse_date,
    read_file,
)

__all__ = [
    "parse_date",
    "parse_amount",
    "clean_description",
    "read_file",
    "to_decimal",
    "require_positive_amount",
    "round_money",
    "round_percent",
]
