from typing import Optional


class PaymentsEngineError(Exception):
    """Base class for errors that abort a replay."""


class LedgerIOError(PaymentsEngineError):
    """The ledger file could not be opened or read."""


class LedgerParseError(PaymentsEngineError):
    """A ledger row does not match the transaction schema."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class LedgerInvariantError(PaymentsEngineError):
    """Account bookkeeping is inconsistent. Never reachable from valid input."""


class ConfigError(PaymentsEngineError, ValueError):
    # Raised for invalid engine configuration (fail fast).
    pass


class BalanceOverflowError(PaymentsEngineError):
    """A balance no longer fits the fixed-point money precision."""
