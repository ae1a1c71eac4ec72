from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional

from errors import AccountLocked, InsufficientFunds, InvalidAmount, TransactionRejected


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class DisputeState(Enum):
    NONE = "none"
    DISPUTED = "disputed"
    RESOLVED = "resolved"
    CHARGED_BACK = "charged_back"


@dataclass
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class LedgerEntry:
    """Accepted deposit, kept so later disputes can be validated and sized."""

    transaction_id: int
    client_id: int
    amount: Decimal
    dispute_state: DisputeState = DisputeState.NONE


@dataclass
class ClientAccount:
    """
    Balance state of one client.
    Every operation either applies completely or raises a TransactionRejected
    subclass without touching the balances.
    """

    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    def deposit(self, amount: Decimal) -> None:
        self._check_amount(amount)
        self._check_unlocked()
        self.available += amount

    def withdraw(self, amount: Decimal) -> None:
        self._check_amount(amount)
        self._check_unlocked()
        if self.available < amount:
            raise InsufficientFunds(
                f"requested {amount} with only {self.available} available",
                client_id=self.client_id,
            )
        self.available -= amount

    def hold(self, amount: Decimal) -> None:
        # No funds check: a deposit that was partly withdrawn still holds its full amount.
        self.available -= amount
        self.held += amount

    def release(self, amount: Decimal) -> None:
        self.held -= amount
        self.available += amount

    def chargeback(self, amount: Decimal) -> None:
        self.held -= amount
        self.locked = True

    def _check_amount(self, amount: Optional[Decimal]) -> None:
        if amount is None or amount <= 0:
            raise InvalidAmount(f"invalid amount {amount}", client_id=self.client_id)

    def _check_unlocked(self) -> None:
        if self.locked:
            raise AccountLocked("account is locked", client_id=self.client_id)


@dataclass
class ProcessingResult:
    transaction: Transaction
    rejection: Optional[TransactionRejected] = None

    @property
    def accepted(self) -> bool:
        return self.rejection is None


@dataclass
class ProcessingStats:
    """Counters for a single run."""

    processed: int = 0
    rejected: int = 0
    rejections_by_kind: Counter = field(default_factory=Counter)

    def record(self, result: ProcessingResult) -> None:
        if result.accepted:
            self.processed += 1
        else:
            self.rejected += 1
            self.rejections_by_kind[result.rejection.kind] += 1

    def summary(self) -> str:
        text = f"Processed: {self.processed}, Rejected: {self.rejected}"
        if self.rejections_by_kind:
            details = ", ".join(f"{kind}={count}" for kind, count in sorted(self.rejections_by_kind.items()))
            text += f" ({details})"
        return text
