"""Persisted round-up and emergency-fund ledgers.

These sit between the pure calculation modules and a DocumentStore. Each
state change is one ``run_transaction`` call so the documents it touches are
written together or not at all. Investing is additionally serialised per user
inside this process.
"""

import threading
import weakref
from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal
from typing import Any

from spendwise import emergency_fund, roundups
from spendwise.exceptions import DocumentNotFoundError, InsufficientFundsError
from spendwise.logging_setup import get_logger
from spendwise.models import (
    Contribution,
    EmergencyFundState,
    FundAllocation,
    InvestmentResult,
    Milestone,
    MilestoneStatus,
    RoundUpEntry,
    RoundUpPool,
    Transaction,
)
from spendwise.store import DocumentStore, StoreTransaction
from spendwise.utils.money import ZERO, require_positive_amount

logger = get_logger(__name__)

# Entries drop out once no ledger call holds the lock
_user_locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
_user_locks_guard = threading.Lock()


def _lock_for(user_id: str) -> threading.Lock:
    with _user_locks_guard:
        lock = _user_locks.get(user_id)
        if lock is None:
            lock = _user_locks[user_id] = threading.Lock()
        return lock


class RoundUpLedger:
    """
    A user's round-up entries, fund allocation and round-up settings.

    Usage:
        ledger = RoundUpLedger(store, "user-1")
        ledger.record(transactions)
        ledger.invest("ftse100")
    """

    def __init__(self, store: DocumentStore, user_id: str) -> None:
        self.store = store
        self.user_id = user_id

    @property
    def entries_key(self) -> str:
        return f"users/{self.user_id}/roundUps"

    @property
    def funds_key(self) -> str:
        return f"users/{self.user_id}/fundInvestments"

    @property
    def settings_key(self) -> str:
        return f"users/{self.user_id}/roundUpSettings"

    @staticmethod
    def _entries_from(doc: dict[str, Any] | None) -> list[RoundUpEntry]:
        if not doc:
            return []
        return [RoundUpEntry.from_dict(e) for e in doc.get("entries", {}).values()]

    @staticmethod
    def _entries_doc(entries: Iterable[RoundUpEntry]) -> dict[str, Any]:
        return {"entries": {e.id: e.to_dict() for e in entries}}

    def settings(self) -> dict[str, Any]:
        return self.store.get(self.settings_key) or {"enabled": True}

    def set_enabled(self, enabled: bool) -> None:
        self.store.set(self.settings_key, {"enabled": enabled})

    def entries(self) -> list[RoundUpEntry]:
        """All round-up entries, invested or not, oldest first."""
        return sorted(self._entries_from(self.store.get(self.entries_key)), key=lambda e: e.date)

    def pool(self) -> RoundUpPool:
        """Entries still waiting to be invested."""
        return RoundUpPool([e for e in self.entries() if not e.invested])

    def allocation(self) -> FundAllocation:
        return FundAllocation.from_dict(self.store.get(self.funds_key))

    def record(self, transactions: Iterable[Transaction]) -> int:
        """
        Add round-ups for debits not seen before.

        Does nothing while round-ups are disabled.

        Returns:
            Number of new entries
        """
        if not self.settings().get("enabled", True):
            logger.info("Round-ups disabled for %s, skipping record", self.user_id)
            return 0

        transactions = list(transactions)

        def apply(txn: StoreTransaction) -> int:
            entries = {e.id: e for e in self._entries_from(txn.get(self.entries_key))}
            fresh = [
                roundups.make_entry(tx)
                for tx in transactions
                if tx.is_debit and tx.id not in entries
            ]
            for entry in fresh:
                entries[entry.id] = entry
            if fresh:
                txn.set(self.entries_key, self._entries_doc(entries.values()))
            return len(fresh)

        added = self.store.run_transaction(apply)
        logger.debug("Recorded %d new round-ups for %s", added, self.user_id)
        return added

    def invest(self, fund_id: str, amount: Decimal | float | str | None = None) -> InvestmentResult:
        """
        Invest the whole uninvested pool into a fund.

        Args:
            fund_id: ID from roundups.INVESTMENT_FUNDS
            amount: Expected pool total; defaults to the current pool total

        Raises:
            InsufficientFundsError: Nothing to invest, or amount exceeds the pool
            InvalidAmountError: amount is below the pool total or not positive
            UnknownFundError: fund_id is not a known fund
            StaleStateError: The pool changed while investing; retry
        """

        def apply(txn: StoreTransaction) -> InvestmentResult:
            entries = self._entries_from(txn.get(self.entries_key))
            pool = RoundUpPool(entries)
            allocation = FundAllocation.from_dict(txn.get(self.funds_key))

            value = amount
            if value is None:
                value = pool.total_available
                if value <= 0:
                    raise InsufficientFundsError(ZERO, value)

            result = roundups.invest(pool, fund_id, value, allocation)
            txn.set(self.entries_key, self._entries_doc(entries))
            txn.set(self.funds_key, result.updated_allocation.to_dict())
            return result

        with _lock_for(self.user_id):
            result = self.store.run_transaction(apply)

        logger.info(
            "Invested %s from %d round-ups into %s for %s",
            result.amount,
            len(result.updated_entries),
            fund_id,
            self.user_id,
        )
        return result


class EmergencyFundLedger:
    """A user's emergency fund and its contribution history."""

    def __init__(
        self,
        store: DocumentStore,
        user_id: str,
        milestone_thresholds: Sequence[Decimal] | None = None,
    ) -> None:
        self.store = store
        self.user_id = user_id
        self.milestone_thresholds = milestone_thresholds

    @property
    def state_key(self) -> str:
        return f"users/{self.user_id}/emergencyFund/current"

    @property
    def contributions_key(self) -> str:
        return f"users/{self.user_id}/emergencyFund/contributions"

    def setup(
        self,
        target_amount: Decimal | float | str,
        target_months: int,
        monthly_contribution: Decimal | float | str = 0,
        created_at: date | None = None,
    ) -> EmergencyFundState:
        """Create (or reset) the fund with nothing saved."""
        state = emergency_fund.create_fund(
            target_amount, target_months, monthly_contribution, created_at
        )

        def apply(txn: StoreTransaction) -> None:
            txn.set(self.state_key, state.to_dict())
            txn.set(self.contributions_key, {"items": []})

        self.store.run_transaction(apply)
        logger.info("Emergency fund set up for %s with target %s", self.user_id, state.target_amount)
        return state

    def state(self) -> EmergencyFundState | None:
        doc = self.store.get(self.state_key)
        return EmergencyFundState.from_dict(doc) if doc else None

    def contributions(self) -> list[Contribution]:
        doc = self.store.get(self.contributions_key) or {}
        return [Contribution.from_dict(c) for c in doc.get("items", [])]

    def contribute(self, amount: Decimal | float | str, on: date | None = None) -> EmergencyFundState:
        """
        Add money to the fund and record the contribution.

        Raises:
            InvalidAmountError: If amount is zero, negative or not finite
            DocumentNotFoundError: If the fund has not been set up
        """
        value = require_positive_amount(amount)
        record = Contribution(amount=value, date=on or date.today())

        def apply(txn: StoreTransaction) -> EmergencyFundState:
            doc = txn.get(self.state_key)
            if doc is None:
                raise DocumentNotFoundError(self.state_key)
            new_state = emergency_fund.contribute(EmergencyFundState.from_dict(doc), value)

            history = txn.get(self.contributions_key) or {"items": []}
            history["items"].append(record.to_dict())

            txn.set(self.state_key, new_state.to_dict())
            txn.set(self.contributions_key, history)
            return new_state

        new_state = self.store.run_transaction(apply)
        logger.info("Added %s to emergency fund for %s", value, self.user_id)
        return new_state

    def _milestones(self, state: EmergencyFundState) -> list[Milestone]:
        if self.milestone_thresholds:
            below = [Milestone(t) for t in self.milestone_thresholds]
            return [m for m in below if m.amount < state.target_amount] + [
                Milestone(state.target_amount, label="Goal")
            ]
        return emergency_fund.default_milestones(state.target_amount)

    def _require_state(self) -> EmergencyFundState:
        state = self.state()
        if state is None:
            raise DocumentNotFoundError(self.state_key)
        return state

    def progress(self) -> emergency_fund.FundProgress:
        return emergency_fund.fund_progress(self._require_state())

    def milestones(self) -> MilestoneStatus:
        state = self._require_state()
        return roundups.get_milestone_status(state.current_amount, self._milestones(state))

    def milestone_dates(self) -> dict[Milestone, date]:
        state = self._require_state()
        return emergency_fund.milestone_dates(self.contributions(), self._milestones(state))

    def contributed_in(self, year: int, month: int) -> Decimal:
        return emergency_fund.monthly_contributed(self.contributions(), year, month)
