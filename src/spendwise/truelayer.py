"""TrueLayer Data API client for fetching accounts and transactions."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

import requests

from spendwise.exceptions import BankDataError
from spendwise.logging_setup import get_logger
from spendwise.models import Transaction
from spendwise.utils import clean_description, parse_date, to_decimal

logger = get_logger(__name__)


@dataclass
class BankSession:
    """Credentials for one user's bank connection.

    Passed to the client explicitly; nothing is kept at module level.
    """

    access_token: str
    refresh_token: str | None = None
    expires_at: datetime | None = None

    @property
    def expired(self) -> bool:
        if self.expires_at is None:
            return False
        return datetime.now(timezone.utc) >= self.expires_at


@dataclass
class FetchResult:
    """Transactions fetched across all accounts."""

    transactions: list[Transaction] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def parse_transaction(raw: dict[str, Any], account_id: str) -> Transaction:
    """Convert a TrueLayer transaction payload to a Transaction.

    Debits are stored negative whatever sign the provider sent.
    """
    amount = abs(to_decimal(raw.get("amount", 0)))
    if str(raw.get("transaction_type", "")).upper() == "DEBIT":
        amount = -amount

    timestamp = parse_date(str(raw.get("timestamp", "")))
    if timestamp is None:
        raise BankDataError(f"Transaction {raw.get('transaction_id')} has no usable timestamp")

    return Transaction(
        id=str(raw["transaction_id"]),
        timestamp=timestamp,
        amount=amount,
        description=clean_description(raw.get("description") or ""),
        merchant_name=raw.get("merchant_name") or None,
        account_id=account_id,
        currency=raw.get("currency") or "GBP",
        raw_data=raw,
    )


class TrueLayerClient:
    """Client for the TrueLayer Data API."""

    BASE_URL = "https://api.truelayer.com/data/v1"
    AUTH_URL = "https://auth.truelayer.com"

    def __init__(
        self,
        session: BankSession,
        base_url: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize client with a user's bank session."""
        self.session = session
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout
        self._http = requests.Session()
        self._http.headers.update({
            "Authorization": f"Bearer {session.access_token}",
            "Accept": "application/json",
        })

    def _request(self, method: str, endpoint: str) -> dict[str, Any]:
        """Make an API request."""
        url = f"{self.base_url}/{endpoint}"
        try:
            response = self._http.request(method, url, timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise BankDataError(f"{method} {endpoint} failed: {e}", status_code=status) from e
        except requests.RequestException as e:
            raise BankDataError(f"{method} {endpoint} failed: {e}") from e
        return response.json()  # type: ignore[no-any-return]

    def get_accounts(self) -> list[dict[str, Any]]:
        """Get all connected accounts."""
        return self._request("GET", "accounts").get("results", [])  # type: ignore[no-any-return]

    def get_balance(self, account_id: str) -> dict[str, Any] | None:
        results = self._request("GET", f"accounts/{account_id}/balance").get("results", [])
        return results[0] if results else None

    def get_transactions(self, account_id: str) -> list[Transaction]:
        """Get transactions for one account."""
        results = self._request("GET", f"accounts/{account_id}/transactions").get("results", [])
        return [parse_transaction(raw, account_id) for raw in results]

    def fetch_all_transactions(self) -> FetchResult:
        """
        Fetch transactions for every connected account.

        A failure on one account is recorded and the rest are still fetched.
        Failing to list accounts raises.

        Returns:
            FetchResult with all transactions and per-account errors
        """
        result = FetchResult()

        for account in self.get_accounts():
            account_id = account["account_id"]
            try:
                result.transactions.extend(self.get_transactions(account_id))
            except BankDataError as e:
                logger.warning("Could not fetch transactions for %s: %s", account_id, e)
                result.errors.append(f"{account_id}: {e}")

        logger.info(
            "Fetched %d transactions, %d account errors",
            len(result.transactions),
            len(result.errors),
        )
        return result

    @classmethod
    def exchange_code(
        cls,
        code: str,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        auth_url: str | None = None,
        timeout: float = 30.0,
    ) -> BankSession:
        """Exchange an OAuth authorization code for a BankSession."""
        url = f"{(auth_url or cls.AUTH_URL).rstrip('/')}/connect/token"
        try:
            response = requests.post(
                url,
                data={
                    "grant_type": "authorization_code",
                    "client_id": client_id,
                    "client_secret": client_secret,
                    "redirect_uri": redirect_uri,
                    "code": code,
                },
                timeout=timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise BankDataError(f"Token exchange failed: {e}", status_code=status) from e
        except requests.RequestException as e:
            raise BankDataError(f"Token exchange failed: {e}") from e

        data = response.json()
        expires_at = None
        if data.get("expires_in"):
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=int(data["expires_in"]))

        return BankSession(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_at=expires_at,
        )


def total_balance(balances: list[dict[str, Any]]) -> Decimal:
    """Sum the current balance across accounts."""
    return sum((to_decimal(b.get("current", 0)) for b in balances), Decimal("0"))
