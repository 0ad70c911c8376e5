"""Tests for the TrueLayer client."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
import requests

from spendwise.exceptions import BankDataError
from spendwise.truelayer import (
    BankSession,
    TrueLayerClient,
    parse_transaction,
    total_balance,
)


def _raw(tx_id: str = "t1", amount: float = 4.23, tx_type: str = "DEBIT", **extra: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "transaction_id": tx_id,
        "timestamp": "2025-03-14T09:30:00+00:00",
        "description": "CARD PAYMENT TO COSTA COFFEE",
        "amount": amount,
        "currency": "GBP",
        "transaction_type": tx_type,
    }
    data.update(extra)
    return data


def _response(payload: dict[str, Any]) -> MagicMock:
    response = MagicMock()
    response.json.return_value = payload
    return response


class TestParseTransaction:
    """Tests for parse_transaction function."""

    def test_debit_is_negative(self) -> None:
        """Test debits are stored negative even when sent positive."""
        tx = parse_transaction(_raw(amount=4.23), "acc-1")
        assert tx.amount == Decimal("-4.23")
        assert tx.is_debit
        assert tx.timestamp == date(2025, 3, 14)
        assert tx.account_id == "acc-1"
        assert tx.description == "COSTA COFFEE"

    def test_credit_is_positive(self) -> None:
        """Test credits keep a positive amount."""
        tx = parse_transaction(_raw(amount=-2500, tx_type="CREDIT"), "acc-1")
        assert tx.amount == Decimal("2500")

    def test_merchant_name_kept(self) -> None:
        """Test merchant_name is carried across."""
        tx = parse_transaction(_raw(merchant_name="Costa"), "acc-1")
        assert tx.merchant_name == "Costa"
        assert tx.raw_data["transaction_id"] == "t1"

    def test_bad_timestamp(self) -> None:
        """Test unusable timestamps raise BankDataError."""
        with pytest.raises(BankDataError):
            parse_transaction(_raw(timestamp="yesterday"), "acc-1")


class TestBankSession:
    """Tests for BankSession."""

    def test_not_expired_without_expiry(self) -> None:
        """Test sessions with no expiry never expire."""
        assert not BankSession("token").expired

    def test_expired(self) -> None:
        """Test a past expiry is expired."""
        past = datetime.now(timezone.utc) - timedelta(minutes=1)
        assert BankSession("token", expires_at=past).expired


class TestTrueLayerClient:
    """Tests for TrueLayerClient."""

    @patch("spendwise.truelayer.requests.Session")
    def test_auth_header(self, mock_session_class: MagicMock) -> None:
        """Test the session's token is sent as a bearer token."""
        mock_session = MagicMock()
        mock_session.headers = {}
        mock_session_class.return_value = mock_session

        TrueLayerClient(BankSession("secret-token"))

        assert mock_session.headers["Authorization"] == "Bearer secret-token"

    @patch("spendwise.truelayer.requests.Session")
    def test_get_transactions(self, mock_session_class: MagicMock) -> None:
        """Test transactions are fetched and parsed for an account."""
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session
        mock_session.request.return_value = _response({"results": [_raw("t1"), _raw("t2")]})

        client = TrueLayerClient(BankSession("token"))
        transactions = client.get_transactions("acc-1")

        assert [tx.id for tx in transactions] == ["t1", "t2"]
        mock_session.request.assert_called_once_with(
            "GET",
            "https://api.truelayer.com/data/v1/accounts/acc-1/transactions",
            timeout=30.0,
        )

    @patch("spendwise.truelayer.requests.Session")
    def test_fetch_all_collects_errors(self, mock_session_class: MagicMock) -> None:
        """Test one failing account does not stop the others."""
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session

        def request(method: str, url: str, timeout: float) -> MagicMock:
            if url.endswith("/accounts"):
                return _response({"results": [{"account_id": "a1"}, {"account_id": "a2"}]})
            if "/a2/" in url:
                error = requests.HTTPError("500 Server Error")
                error.response = MagicMock(status_code=500)
                response = MagicMock()
                response.raise_for_status.side_effect = error
                return response
            return _response({"results": [_raw("t1")]})

        mock_session.request.side_effect = request

        result = TrueLayerClient(BankSession("token")).fetch_all_transactions()

        assert [tx.id for tx in result.transactions] == ["t1"]
        assert len(result.errors) == 1
        assert result.errors[0].startswith("a2:")
        assert not result.ok

    @patch("spendwise.truelayer.requests.Session")
    def test_http_error_has_status(self, mock_session_class: MagicMock) -> None:
        """Test HTTP failures carry the status code."""
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session
        error = requests.HTTPError("401 Unauthorized")
        error.response = MagicMock(status_code=401)
        response = MagicMock()
        response.raise_for_status.side_effect = error
        mock_session.request.return_value = response

        with pytest.raises(BankDataError) as exc_info:
            TrueLayerClient(BankSession("token")).get_accounts()

        assert exc_info.value.status_code == 401

    @patch("spendwise.truelayer.requests.Session")
    def test_connection_error(self, mock_session_class: MagicMock) -> None:
        """Test network failures become BankDataError."""
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session
        mock_session.request.side_effect = requests.ConnectionError("down")

        with pytest.raises(BankDataError):
            TrueLayerClient(BankSession("token")).get_accounts()

    @patch("spendwise.truelayer.requests.Session")
    def test_get_balance(self, mock_session_class: MagicMock) -> None:
        """Test the first balance result is returned."""
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session
        mock_session.request.return_value = _response({"results": [{"current": 120.5}]})

        assert TrueLayerClient(BankSession("token")).get_balance("a1") == {"current": 120.5}

    @patch("spendwise.truelayer.requests.post")
    def test_exchange_code(self, mock_post: MagicMock) -> None:
        """Test an auth code becomes a session with an expiry."""
        mock_post.return_value = _response(
            {"access_token": "at", "refresh_token": "rt", "expires_in": 3600}
        )

        session = TrueLayerClient.exchange_code("code", "cid", "secret", "http://localhost/cb")

        assert session.access_token == "at"
        assert session.refresh_token == "rt"
        assert session.expires_at is not None
        assert not session.expired
        assert mock_post.call_args.args[0] == "https://auth.truelayer.com/connect/token"
        assert mock_post.call_args.kwargs["data"]["grant_type"] == "authorization_code"


class TestTotalBalance:
    """Tests for total_balance function."""

    def test_sums_current(self) -> None:
        """Test current balances are added up."""
        assert total_balance([{"current": 100.25}, {"current": "50.50"}, {}]) == Decimal("150.75")
