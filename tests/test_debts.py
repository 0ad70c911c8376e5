"""Tests for debt payoff ordering."""

from decimal import Decimal

import pytest

from spendwise.debts import prioritize_debts, total_debt
from spendwise.models import DebtAccount


@pytest.fixture
def debts() -> list[DebtAccount]:
    """Three debts with different rates and balances."""
    return [
        DebtAccount("Credit card", Decimal("3000"), Decimal("24.9"), Decimal("90")),
        DebtAccount("Car loan", Decimal("8000"), Decimal("6.5"), Decimal("250")),
        DebtAccount("Store card", Decimal("400"), Decimal("29.9"), Decimal("25")),
        DebtAccount("Old overdraft", Decimal("0"), Decimal("39.9"), Decimal("0")),
    ]


class TestPrioritizeDebts:
    """Tests for prioritize_debts function."""

    def test_avalanche_orders_by_apr(self, debts: list[DebtAccount]) -> None:
        """Test highest APR first, paid-off debts skipped."""
        ranked = prioritize_debts(debts, "avalanche")
        assert [p.debt.name for p in ranked] == ["Store card", "Credit card", "Car loan"]
        assert [p.priority for p in ranked] == [1, 2, 3]

    def test_snowball_orders_by_balance(self) -> None:
        """Test smallest balance first, whatever the rate."""
        debts = [
            DebtAccount("Credit card", Decimal("3000"), Decimal("24.9"), Decimal("90")),
            DebtAccount("Phone plan", Decimal("150"), Decimal("0"), Decimal("30")),
            DebtAccount("Car loan", Decimal("8000"), Decimal("6.5"), Decimal("250")),
        ]
        avalanche = prioritize_debts(debts, "avalanche")
        snowball = prioritize_debts(debts, "snowball")

        assert [p.debt.name for p in avalanche] == ["Credit card", "Car loan", "Phone plan"]
        assert [p.debt.name for p in snowball] == ["Phone plan", "Credit card", "Car loan"]

    def test_minimum_payments_without_budget(self, debts: list[DebtAccount]) -> None:
        """Test suggested payments default to the minimums."""
        ranked = prioritize_debts(debts)
        assert [p.suggested_payment for p in ranked] == [
            Decimal("25"),
            Decimal("90"),
            Decimal("250"),
        ]

    def test_surplus_cascades(self, debts: list[DebtAccount]) -> None:
        """Test leftover budget clears the top debt then moves down."""
        ranked = prioritize_debts(debts, "avalanche", monthly_budget="865")
        # 365 of minimums leaves 500: 375 finishes the store card, 125 goes on
        assert [p.suggested_payment for p in ranked] == [
            Decimal("400"),
            Decimal("215"),
            Decimal("250"),
        ]

    def test_unknown_strategy(self, debts: list[DebtAccount]) -> None:
        """Test unknown strategies are rejected."""
        with pytest.raises(ValueError, match="Unknown strategy"):
            prioritize_debts(debts, "lottery")

    def test_no_debts(self) -> None:
        """Test an empty list gives no plan."""
        assert prioritize_debts([], monthly_budget="100") == []

    def test_from_dict(self) -> None:
        """Test debts load from JSON-style dicts."""
        debt = DebtAccount.from_dict({"name": "Loan", "balance": 1200, "apr": "7.9"})
        assert debt.balance == Decimal("1200")
        assert debt.minimum_payment == Decimal("0")

    def test_total_debt(self, debts: list[DebtAccount]) -> None:
        """Test balances are summed."""
        assert total_debt(debts) == Decimal("11400")
