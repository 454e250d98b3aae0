from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional

from errors import (
    AmountNotAvailable,
    AmountNotHeld,
    ClientIsLocked,
    ClientLockFailed,
    ClientUnlockFailed,
    InvalidChargeback,
    InvalidDispute,
    InvalidResolve,
    UnknownTransactionType,
)


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @classmethod
    def parse(cls, value: str) -> "TransactionType":
        """Map a raw type string onto a TransactionType, ignoring case and surrounding whitespace."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise UnknownTransactionType(value) from None


MONETARY_TYPES = frozenset({TransactionType.DEPOSIT, TransactionType.WITHDRAWAL})


@dataclass
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None
    disputed: bool = False
    charged_back: bool = False

    @property
    def is_monetary(self) -> bool:
        return self.transaction_type in MONETARY_TYPES

    def mark_disputed(self) -> None:
        if self.disputed:
            raise InvalidDispute(self.transaction_id, self.client_id, "transaction already disputed")
        if self.charged_back:
            raise InvalidDispute(self.transaction_id, self.client_id, "transaction already charged back")
        self.disputed = True

    def mark_resolved(self) -> None:
        if not self.disputed:
            raise InvalidResolve(self.transaction_id, self.client_id, "transaction is not disputed")
        self.disputed = False

    def mark_charged_back(self) -> None:
        if self.charged_back:
            raise InvalidChargeback(self.transaction_id, self.client_id, "transaction already charged back")
        self.charged_back = True

    def __repr__(self) -> str:
        kind = getattr(self.transaction_type, "value", self.transaction_type)
        return f"Transaction({kind}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass(frozen=True)
class ClientState:
    """Read-only view of a client account, safe to hand out of the ledger."""

    client_id: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    def deposit(self, amount: Decimal) -> Decimal:
        self._ensure_unlocked()
        self.available += amount
        return self.available

    def withdraw(self, amount: Decimal) -> Decimal:
        self._ensure_unlocked()
        if amount > self.available:
            raise AmountNotAvailable(self.client_id, amount)
        self.available -= amount
        return self.available

    def dispute(self, amount: Decimal) -> None:
        """Move funds from available to held. Total is unchanged."""
        if amount > self.available:
            raise AmountNotAvailable(self.client_id, amount)
        self.available -= amount
        self.held += amount

    def resolve(self, amount: Decimal) -> None:
        if amount > self.held:
            raise AmountNotHeld(self.client_id, amount)
        self.held -= amount
        self.available += amount

    def chargeback(self, amount: Decimal) -> None:
        """
        Remove held funds permanently and lock the account.
        A second chargeback on an already locked account still removes its held funds.
        """
        if amount > self.held:
            raise AmountNotHeld(self.client_id, amount)
        self.held -= amount
        if not self.locked:
            self.lock()

    def lock(self) -> None:
        if self.locked:
            raise ClientLockFailed(self.client_id)
        self.locked = True

    def unlock(self) -> None:
        if not self.locked:
            raise ClientUnlockFailed(self.client_id)
        self.locked = False

    def snapshot(self) -> ClientState:
        return ClientState(
            client_id=self.client_id,
            available=self.available,
            held=self.held,
            total=self.total,
            locked=self.locked,
        )

    def _ensure_unlocked(self) -> None:
        if self.locked:
            raise ClientIsLocked(self.client_id)

    def __str__(self) -> str:
        return (
            f"Client {self.client_id}: available: {self.available:.4f}, held: {self.held:.4f}, "
            f"total: {self.total:.4f}, locked: {str(self.locked).lower()}"
        )


@dataclass
class ProcessingStats:
    """Counters for one ingestion run."""

    processed: int = 0
    failed: int = 0
    skipped: int = 0
    failures_by_kind: Counter = field(default_factory=Counter)

    def record_success(self) -> None:
        self.processed += 1

    def record_failure(self, error: Exception) -> None:
        self.failed += 1
        self.failures_by_kind[type(error).__name__] += 1

    def record_skipped(self, error: Exception) -> None:
        self.skipped += 1
        self.failures_by_kind[type(error).__name__] += 1
