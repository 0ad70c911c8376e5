"""Pytest configuration and fixtures."""

from collections.abc import Callable
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from spendwise.models import Transaction
from spendwise.store import InMemoryStore

MakeTransaction = Callable[..., Transaction]


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep config, data and tokens from the real environment out of tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg_config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg_data"))
    monkeypatch.delenv("TRUELAYER_ACCESS_TOKEN", raising=False)
    monkeypatch.delenv("SPENDWISE_LOG_LEVEL", raising=False)


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def transactions_file(fixtures_dir: Path) -> Path:
    """Return path to the sample transactions export."""
    return fixtures_dir / "transactions.csv"


@pytest.fixture
def make_tx() -> MakeTransaction:
    """Return a factory for transactions with sensible defaults."""
    counter = iter(range(1, 10_000))

    def factory(
        amount: str | Decimal,
        description: str = "",
        merchant_name: str | None = None,
        on: date = date(2025, 3, 10),
        **kwargs: object,
    ) -> Transaction:
        return Transaction(
            id=str(kwargs.pop("id", f"tx-{next(counter)}")),
            timestamp=on,
            amount=Decimal(str(amount)),
            description=description,
            merchant_name=merchant_name,
            **kwargs,  # type: ignore[arg-type]
        )

    return factory


@pytest.fixture
def sample_transactions(make_tx: MakeTransaction) -> list[Transaction]:
    """A month of mixed spending and income."""
    return [
        make_tx("-32.50", "TESCO STORES 3117", on=date(2025, 3, 2)),
        make_tx("-4.23", "COSTA COFFEE", on=date(2025, 3, 3)),
        make_tx("2500.00", "ACME LTD SALARY", on=date(2025, 3, 5), category="Salary"),
        make_tx("-7.00", "TRAVEL", "TfL", on=date(2025, 3, 9)),
        make_tx("-10.99", "NETFLIX.COM", on=date(2025, 2, 27)),
    ]


@pytest.fixture
def store() -> InMemoryStore:
    """Return an empty in-memory document store."""
    return InMemoryStore()
