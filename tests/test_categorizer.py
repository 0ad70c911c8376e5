"""Tests for keyword categorization."""

from collections.abc import Callable

import pytest

from spendwise.categorizer import categorize, categorize_income, resolve_category
from spendwise.models import Category, IncomeCategory, Transaction

MakeTransaction = Callable[..., Transaction]


class TestCategorize:
    """Tests for categorize function."""

    @pytest.mark.parametrize(
        ("description", "expected"),
        [
            ("TESCO STORES 3117", Category.GROCERIES),
            ("Sainsbury's Local", Category.GROCERIES),
            ("ASDA SUPERSTORE", Category.GROCERIES),
            ("SHELL BP 42", Category.TRANSPORT),
            ("Petrol station", Category.TRANSPORT),
            ("NETFLIX.COM", Category.SUBSCRIPTIONS),
            ("Spotify P0A1", Category.SUBSCRIPTIONS),
            ("STARBUCKS 221", Category.DINING),
            ("COSTA COFFEE", Category.DINING),
            ("AMAZON MARKETPLACE", Category.SHOPPING),
            ("LANDLORD RENT", Category.BILLS),
            ("BRITISH GAS", Category.BILLS),
            ("TFL TRAVEL CHARGE", Category.TRANSPORT),
            ("STAGECOACH BUS", Category.TRANSPORT),
            ("PET SHOP", Category.OTHER),
        ],
    )
    def test_keywords(self, make_tx: MakeTransaction, description: str, expected: Category) -> None:
        """Test each rule's keywords."""
        assert categorize(make_tx("-1", description)) is expected

    def test_case_insensitive(self, make_tx: MakeTransaction) -> None:
        """Test matching ignores case."""
        assert categorize(make_tx("-1", "tEsCo")) is Category.GROCERIES

    def test_first_rule_wins(self, make_tx: MakeTransaction) -> None:
        """Test an earlier rule beats a later one."""
        assert categorize(make_tx("-1", "TESCO EXPRESS AMAZON PRIME")) is Category.GROCERIES

    def test_subscriptions_before_public_transport(self, make_tx: MakeTransaction) -> None:
        """Test 'netflix' wins even though it contains 'tfl'."""
        assert categorize(make_tx("-1", "NETFLIX")) is Category.SUBSCRIPTIONS

    def test_merchant_name_matches(self, make_tx: MakeTransaction) -> None:
        """Test keywords in the merchant name count too."""
        tx = make_tx("-4.00", "CARD 0042", merchant_name="Starbucks")
        assert categorize(tx) is Category.DINING

    def test_empty_text_is_other(self, make_tx: MakeTransaction) -> None:
        """Test missing description and merchant fall through to Other."""
        assert categorize(make_tx("-1", "", None)) is Category.OTHER

    @pytest.mark.parametrize("description", ["TESCO STORES", "UBER TRIP", "NETFLIX", ""])
    def test_same_input_same_category(self, make_tx: MakeTransaction, description: str) -> None:
        """Test repeated calls give the same answer."""
        tx = make_tx("-1", description)
        first = categorize(tx)
        assert all(categorize(tx) is first for _ in range(5))
        assert categorize(make_tx("-1", description)) is first


class TestResolveCategory:
    """Tests for resolve_category function."""

    def test_known_label_wins(self, make_tx: MakeTransaction) -> None:
        """Test a valid category label overrides keywords."""
        tx = make_tx("-1", "TESCO", category="shopping")
        assert resolve_category(tx) is Category.SHOPPING

    def test_unknown_label_falls_back(self, make_tx: MakeTransaction) -> None:
        """Test unrecognised labels use keyword rules."""
        tx = make_tx("-1", "TESCO", category="Food & Drink")
        assert resolve_category(tx) is Category.GROCERIES


class TestCategorizeIncome:
    """Tests for categorize_income function."""

    def test_salary_label(self, make_tx: MakeTransaction) -> None:
        """Test a Salary label is salary."""
        assert categorize_income(make_tx("100", "ACME", category="Salary")) is IncomeCategory.SALARY

    def test_income_label(self, make_tx: MakeTransaction) -> None:
        """Test an Income label is salary, ignoring case."""
        assert categorize_income(make_tx("2000", "ACME LTD", category="Income")) is IncomeCategory.SALARY
        assert categorize_income(make_tx("2000", "ACME LTD", category=" income ")) is IncomeCategory.SALARY

    def test_payroll_keyword(self, make_tx: MakeTransaction) -> None:
        """Test payroll keyword is salary."""
        assert categorize_income(make_tx("100", "ACME PAYROLL")) is IncomeCategory.SALARY

    def test_other_income(self, make_tx: MakeTransaction) -> None:
        """Test anything else is other income."""
        assert categorize_income(make_tx("15", "REFUND")) is IncomeCategory.OTHER_INCOME
