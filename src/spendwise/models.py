"""Data models for transactions and the summaries derived from them."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from spendwise.exceptions import InvalidAmountError
from spendwise.utils.money import ZERO, round_money, to_decimal


class Category(Enum):
    """Spending categories. Declaration order breaks ties when sorting."""

    GROCERIES = "Groceries"
    TRANSPORT = "Transport"
    DINING = "Dining"
    SHOPPING = "Shopping"
    BILLS = "Bills"
    SUBSCRIPTIONS = "Subscriptions"
    OTHER = "Other"

    @classmethod
    def from_label(cls, label: str | None) -> "Category | None":
        """Match a free-text label to a category, ignoring case."""
        if not label:
            return None
        wanted = label.strip().lower()
        for member in cls:
            if member.value.lower() == wanted:
                return member
        return None


class IncomeCategory(Enum):
    """Income categories, kept apart from spending."""

    SALARY = "Salary"
    OTHER_INCOME = "OtherIncome"


def category_order(category: Category | IncomeCategory) -> int:
    """Position of a category in its enum declaration."""
    return list(type(category)).index(category)


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass(frozen=True)
class Transaction:
    """A transaction from the banking feed. Negative amounts are debits."""

    id: str
    timestamp: date
    amount: Decimal
    description: str = ""
    merchant_name: str | None = None
    account_id: str = ""
    category: str | None = None
    currency: str = "GBP"
    raw_data: dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        """Coerce the amount to Decimal and reject NaN and infinities."""
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", to_decimal(self.amount))
        if not self.amount.is_finite():
            raise InvalidAmountError(self.amount, "amount must be finite")
        if self.description is None:
            object.__setattr__(self, "description", "")

    @property
    def is_debit(self) -> bool:
        """Return True if money left the account."""
        return self.amount < 0

    @property
    def is_credit(self) -> bool:
        """Return True if money came in."""
        return self.amount > 0

    @property
    def amount_spent(self) -> Decimal:
        return abs(self.amount)

    @property
    def display_name(self) -> str:
        """Merchant name when the feed has one, otherwise the description."""
        return self.merchant_name or self.description

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for CSV output and storage."""
        return {
            "id": self.id,
            "date": self.timestamp.isoformat(),
            "amount": str(self.amount),
            "description": self.description,
            "merchant": self.merchant_name or "",
            "account": self.account_id,
            "category": self.category or "",
            "currency": self.currency,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Transaction":
        return cls(
            id=str(data["id"]),
            timestamp=_parse_date(data["date"]),
            amount=to_decimal(data["amount"]),
            description=data.get("description") or "",
            merchant_name=data.get("merchant") or None,
            account_id=data.get("account") or "",
            category=data.get("category") or None,
            currency=data.get("currency") or "GBP",
        )


@dataclass(frozen=True)
class CategoryTotal:
    """Spend (or income) for one category. Recomputed on every aggregation."""

    category: Category | IncomeCategory
    total_amount: Decimal
    transaction_count: int
    percentage_of_total: int

    def to_dict(self) -> dict[str, str]:
        return {
            "category": self.category.value,
            "total": str(self.total_amount),
            "transactions": str(self.transaction_count),
            "percentage": str(self.percentage_of_total),
        }


@dataclass(frozen=True)
class MonthTotal:
    """Spend and income for one calendar month."""

    year: int
    month: int
    spent: Decimal
    income: Decimal
    transaction_count: int

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class AccountTotal:
    """Spend and income for one account."""

    account_id: str
    spent: Decimal
    income: Decimal
    transaction_count: int


@dataclass
class RoundUpEntry:
    """Spare change from one debit. ``invested`` only ever goes False -> True."""

    id: str
    merchant: str
    amount_spent: Decimal
    round_up_amount: Decimal
    category: Category
    date: date
    invested: bool = False

    def mark_invested(self) -> None:
        self.invested = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "merchant": self.merchant,
            "amount_spent": str(self.amount_spent),
            "round_up": str(self.round_up_amount),
            "category": self.category.value,
            "date": self.date.isoformat(),
            "invested": self.invested,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RoundUpEntry":
        return cls(
            id=str(data["id"]),
            merchant=data.get("merchant", ""),
            amount_spent=to_decimal(data["amount_spent"]),
            round_up_amount=to_decimal(data["round_up"]),
            category=Category.from_label(data.get("category")) or Category.OTHER,
            date=_parse_date(data["date"]),
            invested=bool(data.get("invested", False)),
        )


@dataclass
class RoundUpPool:
    """Round-up entries waiting to be invested."""

    entries: list[RoundUpEntry] = field(default_factory=list)

    @property
    def uninvested(self) -> list[RoundUpEntry]:
        return [e for e in self.entries if not e.invested]

    @property
    def total_available(self) -> Decimal:
        """Sum of uninvested round-ups, rounded to 2 dp half-up."""
        return round_money(sum((e.round_up_amount for e in self.uninvested), ZERO))


@dataclass
class FundAllocation:
    """Cumulative amount invested per fund. Only ever grows."""

    amounts: dict[str, Decimal] = field(default_factory=dict)

    def __getitem__(self, fund_id: str) -> Decimal:
        return self.amounts.get(fund_id, ZERO)

    def add(self, fund_id: str, amount: Decimal) -> None:
        if amount < 0:
            raise InvalidAmountError(amount, "fund allocations can only grow")
        self.amounts[fund_id] = self[fund_id] + amount

    @property
    def total(self) -> Decimal:
        return sum(self.amounts.values(), ZERO)

    def copy(self) -> "FundAllocation":
        return FundAllocation(dict(self.amounts))

    def to_dict(self) -> dict[str, str]:
        return {k: str(v) for k, v in self.amounts.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "FundAllocation":
        return cls({k: to_decimal(v) for k, v in (data or {}).items()})


@dataclass(frozen=True)
class InvestmentResult:
    """Outcome of investing the round-up pool into a fund."""

    fund_id: str
    amount: Decimal
    updated_entries: list[RoundUpEntry]
    updated_allocation: FundAllocation


@dataclass(frozen=True)
class InvestmentFund:
    """A fund round-ups can be invested in."""

    id: str
    name: str
    risk_level: str
    fee: str
    description: str = ""


@dataclass(frozen=True, order=True)
class Milestone:
    """A savings threshold."""

    amount: Decimal
    label: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", to_decimal(self.amount))
        if not self.label:
            object.__setattr__(self, "label", f"{self.amount:,.0f}")


@dataclass(frozen=True)
class MilestoneStatus:
    """Milestones reached so far and the next one to aim for."""

    achieved: list[Milestone]
    next: Milestone | None


@dataclass(frozen=True)
class EmergencyFundState:
    """A user's emergency fund. One per user."""

    current_amount: Decimal
    target_amount: Decimal
    target_months: int
    created_at: date
    monthly_contribution: Decimal = ZERO

    def __post_init__(self) -> None:
        """Validate fund values."""
        for name in ("current_amount", "target_amount", "monthly_contribution"):
            value = getattr(self, name)
            if not isinstance(value, Decimal):
                object.__setattr__(self, name, to_decimal(value))
        if not self.current_amount.is_finite() or self.current_amount < 0:
            raise InvalidAmountError(self.current_amount, "current amount cannot be negative")
        if not self.target_amount.is_finite() or self.target_amount <= 0:
            raise InvalidAmountError(self.target_amount, "target amount must be greater than zero")
        if self.target_months <= 0:
            raise InvalidAmountError(self.target_months, "target months must be greater than zero")

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_amount": str(self.current_amount),
            "target_amount": str(self.target_amount),
            "target_months": self.target_months,
            "created_at": self.created_at.isoformat(),
            "monthly_contribution": str(self.monthly_contribution),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EmergencyFundState":
        return cls(
            current_amount=to_decimal(data.get("current_amount", "0")),
            target_amount=to_decimal(data["target_amount"]),
            target_months=int(data["target_months"]),
            created_at=_parse_date(data["created_at"]),
            monthly_contribution=to_decimal(data.get("monthly_contribution", "0")),
        )


@dataclass(frozen=True)
class Contribution:
    """An append-only record of money added to a fund or goal."""

    amount: Decimal
    date: date
    contributor: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"amount": str(self.amount), "date": self.date.isoformat()}
        if self.contributor:
            data["contributor"] = self.contributor
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Contribution":
        return cls(
            amount=to_decimal(data["amount"]),
            date=_parse_date(data["date"]),
            contributor=data.get("contributor"),
        )


@dataclass(frozen=True)
class DebtAccount:
    """A debt to pay down."""

    name: str
    balance: Decimal
    apr: Decimal
    minimum_payment: Decimal

    def __post_init__(self) -> None:
        for name in ("balance", "apr", "minimum_payment"):
            value = getattr(self, name)
            if not isinstance(value, Decimal):
                object.__setattr__(self, name, to_decimal(value))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DebtAccount":
        return cls(
            name=data["name"],
            balance=to_decimal(data["balance"]),
            apr=to_decimal(data["apr"]),
            minimum_payment=to_decimal(data.get("minimum_payment", "0")),
        )


@dataclass(frozen=True)
class SharedGoal:
    """A savings goal shared by a couple."""

    id: str
    title: str
    target_amount: Decimal
    category: str = "savings"
    deadline: date | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.target_amount, Decimal):
            object.__setattr__(self, "target_amount", to_decimal(self.target_amount))
