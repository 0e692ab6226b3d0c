import threading
from dataclasses import dataclass, field
from decimal import Context, Decimal, DivisionByZero, InvalidOperation, Overflow, ROUND_HALF_EVEN
from enum import Enum
from typing import Dict, Optional

from errors import BalanceOverflowError, LedgerInvariantError

MONEY_PRECISION = Decimal("0.0001")
ZERO = Decimal("0")

# 30 integer digits plus 4 fractional; parsed amounts stay below 10^28.
MONEY_CONTEXT = Context(
    prec=34,
    rounding=ROUND_HALF_EVEN,
    traps=[InvalidOperation, DivisionByZero, Overflow],
)


def round_money(value: Decimal) -> Decimal:
    """Round to 4 fractional digits (round-half-even)."""
    try:
        return value.quantize(MONEY_PRECISION, context=MONEY_CONTEXT)
    except InvalidOperation:
        raise BalanceOverflowError(f"balance {value} exceeds {MONEY_CONTEXT.prec} digits") from None


def add_money(left: Decimal, right: Decimal) -> Decimal:
    return round_money(MONEY_CONTEXT.add(left, right))


def subtract_money(left: Decimal, right: Decimal) -> Decimal:
    return round_money(MONEY_CONTEXT.subtract(left, right))


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class ProcessingResult(Enum):
    SUCCESS = "success"
    IGNORED = "ignored"


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None
    position: int = 0

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


class DisputeStatus(Enum):
    UNDISPUTED = "undisputed"
    DISPUTED = "disputed"
    CHARGEBACK = "chargeback"


@dataclass(frozen=True)
class DisputeState:
    """Dispute state of one original transaction, as seen by its account."""

    status: DisputeStatus
    amount: Optional[Decimal] = None

    @classmethod
    def undisputed(cls) -> "DisputeState":
        return cls(DisputeStatus.UNDISPUTED)

    @classmethod
    def disputed(cls, amount: Decimal) -> "DisputeState":
        return cls(DisputeStatus.DISPUTED, amount)

    @classmethod
    def charged_back(cls) -> "DisputeState":
        return cls(DisputeStatus.CHARGEBACK)


@dataclass
class ClientAccount:
    """
    Per-client balance state.

    Held funds are tracked per disputed transaction id and their sum is cached
    in held_total, kept in step with every insert/remove. Total funds are
    always derived, never stored.
    """

    client_id: int
    available_balance: Decimal = ZERO
    held_amounts: Dict[int, Decimal] = field(default_factory=dict)
    completed_disputes: Dict[int, DisputeState] = field(default_factory=dict)
    held_total: Decimal = ZERO
    frozen: bool = False

    def available_funds(self) -> Decimal:
        return round_money(self.available_balance)

    def held_funds(self) -> Decimal:
        return round_money(self.held_total)

    def total_funds(self) -> Decimal:
        return add_money(self.available_funds(), self.held_funds())

    def find_dispute(self, transaction_id: int) -> DisputeState:
        held = self.held_amounts.get(transaction_id)
        if held is not None:
            return DisputeState.disputed(held)
        return self.completed_disputes.get(transaction_id, DisputeState.undisputed())

    @property
    def available(self) -> Decimal:
        return self.available_funds()

    @property
    def held(self) -> Decimal:
        return self.held_funds()

    @property
    def total(self) -> Decimal:
        return self.total_funds()

    @property
    def locked(self) -> bool:
        return self.frozen

    # Write side. Callers (the handlers) validate before calling.

    def set_available_funds(self, amount: Decimal) -> None:
        self.available_balance = round_money(amount)

    def add_held_funds(self, amount: Decimal, transaction_id: int) -> None:
        amount = round_money(amount)
        previous = self.held_amounts.get(transaction_id)
        if previous is not None:
            self.held_total = subtract_money(self.held_total, previous)
        self.held_amounts[transaction_id] = amount
        self.held_total = add_money(self.held_total, amount)

    def remove_held_funds(self, transaction_id: int) -> None:
        amount = self.held_amounts.pop(transaction_id, None)
        if amount is not None:
            self.held_total = subtract_money(self.held_total, amount)

    def set_locked(self, locked: bool) -> None:
        self.frozen = locked

    def complete_dispute(self, transaction_id: int, state: DisputeState) -> None:
        # Only chargebacks are final; anything else just means "no longer disputed".
        if state.status is DisputeStatus.CHARGEBACK:
            self.completed_disputes[transaction_id] = state

    def check_invariant(self) -> None:
        """Raise LedgerInvariantError if held bookkeeping is out of sync."""
        expected = ZERO
        for amount in self.held_amounts.values():
            expected = add_money(expected, amount)
        if expected != self.held_funds():
            raise LedgerInvariantError(
                f"client {self.client_id}: cached held total {self.held_funds()} "
                f"does not match held entries {expected}"
            )
        if self.held_funds() < ZERO:
            raise LedgerInvariantError(f"client {self.client_id}: negative held funds {self.held_funds()}")
        overlap = self.held_amounts.keys() & self.completed_disputes.keys()
        if overlap:
            raise LedgerInvariantError(
                f"client {self.client_id}: transactions both disputed and charged back: {sorted(overlap)}"
            )


class ProcessingStats:
    """Thread-safe counters for tracking processing statistics."""

    def __init__(self):
        self._lock = threading.Lock()
        self.processed = 0
        self.ignored = 0
        self.lookups = 0

    def record_success(self):
        with self._lock:
            self.processed += 1

    def record_ignored(self):
        with self._lock:
            self.processed += 1
            self.ignored += 1

    def record_lookup(self):
        with self._lock:
            self.lookups += 1
