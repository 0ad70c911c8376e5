"""Exception hierarchy for spendwise.

Every error raised by the library derives from SpendwiseError so callers can
catch the whole family in one place. The money errors carry the offending
values so the calling application can build a user-facing message.
"""

from decimal import Decimal
from typing import Any


class SpendwiseError(Exception):
    """Base exception for all spendwise errors."""


class InsufficientFundsError(SpendwiseError):
    """Raised when an investment exceeds the uninvested round-up pool.

    The caller should re-read the pool and retry with the current total.
    """

    def __init__(self, requested: Decimal, available: Decimal) -> None:
        self.requested = requested
        self.available = available
        super().__init__(
            f"Requested {requested} but only {available} is available to invest"
        )


class InvalidAmountError(SpendwiseError):
    """Raised when an amount is zero, negative, non-finite or malformed."""

    def __init__(self, amount: Any, reason: str = "amount must be greater than zero") -> None:
        self.amount = amount
        self.reason = reason
        super().__init__(f"Invalid amount {amount!r}: {reason}")


class UnknownFundError(SpendwiseError):
    """Raised when investing into a fund that is not in the catalogue."""

    def __init__(self, fund_id: str) -> None:
        self.fund_id = fund_id
        super().__init__(f"Unknown investment fund: {fund_id}")


class StoreError(SpendwiseError):
    """Base exception for persistence failures."""


class StoreUnavailableError(StoreError):
    """Raised when a storage tier cannot be reached."""


class DocumentNotFoundError(StoreError):
    """Raised when updating a document that does not exist."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"No document stored under {key!r}")


class StaleStateError(StoreError):
    """Raised when a transactional commit sees documents changed since read.

    Retry the whole read-compute-write cycle.
    """

    def __init__(self, keys: list[str]) -> None:
        self.keys = keys
        super().__init__(f"Documents changed during transaction: {', '.join(keys)}")


class BankDataError(SpendwiseError):
    """Raised when the banking-data provider returns an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)
