"""Tests for emergency-fund tracking."""

from datetime import date
from decimal import Decimal

import pytest

from spendwise.emergency_fund import (
    contribute,
    create_fund,
    default_milestones,
    fund_progress,
    milestone_dates,
    monthly_contributed,
    replay,
)
from spendwise.exceptions import InvalidAmountError
from spendwise.models import Contribution, Milestone


class TestContribute:
    """Tests for contribute function."""

    def test_adds_amount(self) -> None:
        """Test a contribution raises the balance by exactly the amount."""
        state = create_fund("6000", 6, created_at=date(2025, 1, 1))
        updated = contribute(state, Decimal("250.50"))

        assert updated.current_amount == Decimal("250.50")
        assert updated.target_amount == Decimal("6000")
        assert state.current_amount == Decimal("0")

    @pytest.mark.parametrize("amount", ["0", "-10", "NaN", "Infinity"])
    def test_rejects_invalid(self, amount: str) -> None:
        """Test zero, negative and non-finite amounts are rejected."""
        state = create_fund("6000", 6, created_at=date(2025, 1, 1))
        with pytest.raises(InvalidAmountError):
            contribute(state, amount)

    def test_no_cap_at_target(self) -> None:
        """Test the fund can grow past its target."""
        state = create_fund("1000", 3, created_at=date(2025, 1, 1))
        state = contribute(state, "1500")

        progress = fund_progress(state)
        assert state.current_amount == Decimal("1500")
        assert progress.goal_exceeded
        assert progress.percentage == Decimal("100.00")
        assert progress.remaining == Decimal("0")


class TestFundProgress:
    """Tests for fund_progress function."""

    def test_progress_figures(self) -> None:
        """Test percentage, monthly expenses and months covered."""
        state = contribute(create_fund("6000", 6, created_at=date(2025, 1, 1)), "1500")
        progress = fund_progress(state)

        assert progress.percentage == Decimal("25.00")
        assert progress.remaining == Decimal("4500")
        assert progress.monthly_expenses == Decimal("1000.00")
        assert progress.months_covered == Decimal("1.50")
        assert not progress.goal_exceeded


class TestMilestones:
    """Tests for milestone helpers."""

    def test_default_milestones_below_target(self) -> None:
        """Test thresholds past the target are dropped and the goal added."""
        milestones = default_milestones("3000")
        assert [m.amount for m in milestones] == [
            Decimal("500"),
            Decimal("1000"),
            Decimal("2500"),
            Decimal("3000"),
        ]
        assert milestones[-1].label == "Goal"

    def test_milestone_dates(self) -> None:
        """Test each milestone is dated by the contribution that reached it."""
        contributions = [
            Contribution(Decimal("600"), date(2025, 2, 1)),
            Contribution(Decimal("300"), date(2025, 1, 1)),
            Contribution(Decimal("200"), date(2025, 3, 1)),
        ]
        milestones = [Milestone(Decimal("500")), Milestone(Decimal("1000")), Milestone(Decimal("2500"))]

        reached = milestone_dates(contributions, milestones)

        assert reached == {
            Milestone(Decimal("500")): date(2025, 2, 1),
            Milestone(Decimal("1000")): date(2025, 3, 1),
        }

    def test_monthly_contributed(self) -> None:
        """Test only the given month is summed."""
        contributions = [
            Contribution(Decimal("100"), date(2025, 3, 1)),
            Contribution(Decimal("50"), date(2025, 3, 28)),
            Contribution(Decimal("75"), date(2025, 2, 28)),
            Contribution(Decimal("20"), date(2024, 3, 5)),
        ]
        assert monthly_contributed(contributions, 2025, 3) == Decimal("150")

    def test_replay(self) -> None:
        """Test replaying contributions gives the running balance."""
        state = create_fund("6000", 6, created_at=date(2025, 1, 1))
        contributions = [
            Contribution(Decimal("100"), date(2025, 1, 5)),
            Contribution(Decimal("250"), date(2025, 2, 5)),
        ]
        assert replay(state, contributions).current_amount == Decimal("350")


class TestCreateFund:
    """Tests for create_fund function."""

    def test_starts_empty(self) -> None:
        """Test a new fund has nothing saved."""
        state = create_fund("6000", 6, monthly_contribution="200", created_at=date(2025, 1, 1))
        assert state.current_amount == Decimal("0")
        assert state.monthly_contribution == Decimal("200")

    def test_rejects_bad_target(self) -> None:
        """Test a non-positive target is rejected."""
        with pytest.raises(InvalidAmountError):
            create_fund("0", 6)
