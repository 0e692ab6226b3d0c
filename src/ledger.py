import csv
import logging
import re
from decimal import Decimal
from typing import Dict, Iterator, List, Optional

from errors import LedgerIOError, LedgerParseError
from models import Transaction, TransactionType

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("type", "client", "tx")
AMOUNT_COLUMN = "amount"

CLIENT_ID_BITS = 16
TRANSACTION_ID_BITS = 32
# Amounts stay below 10^28 so balances keep headroom in MONEY_CONTEXT.
MAX_AMOUNT_EXPONENT = 27

_UNSIGNED_RE = re.compile(r"[0-9]+")
_AMOUNT_RE = re.compile(r"[0-9]+(?:\.[0-9]*)?|\.[0-9]+")


class LedgerSource:
    """
    Restartable source of ledger records backed by a CSV file.

    Every call to iterate() opens an independent cursor at the start of the
    file, so callers can re-scan a prefix of the log while a forward pass is
    still in progress.
    """

    def __init__(self, filepath: str):
        self._filepath = filepath

    @classmethod
    def open(cls, filepath: str) -> "LedgerSource":
        """Check the file can be opened and return a source for it."""
        try:
            with open(filepath, "r", encoding="utf-8-sig", newline=""):
                pass
        except OSError as e:
            raise LedgerIOError(f"Cannot open ledger {filepath}: {e}") from e
        return cls(filepath)

    @property
    def filepath(self) -> str:
        return self._filepath

    def iterate(self) -> Iterator[Transaction]:
        """Yield every record in file order, reading lazily from the beginning."""
        try:
            with open(self._filepath, "r", encoding="utf-8-sig", newline="") as f:
                yield from self._read_transactions(csv.reader(f))
        except OSError as e:
            raise LedgerIOError(f"Cannot read ledger {self._filepath}: {e}") from e
        except (UnicodeDecodeError, csv.Error) as e:
            raise LedgerParseError(f"{self._filepath} is not a readable CSV file: {e}") from e

    def __iter__(self) -> Iterator[Transaction]:
        return self.iterate()

    def _read_transactions(self, reader) -> Iterator[Transaction]:
        columns: Optional[Dict[str, int]] = None
        position = 0

        for row in reader:
            fields = [value.strip() for value in row]
            if not any(fields):
                continue

            if columns is None:
                columns = _parse_header(fields, reader.line_num)
                continue

            yield parse_row(fields, columns, position, reader.line_num)
            position += 1

        if columns is None:
            raise LedgerParseError("ledger has no header row")


def _parse_header(fields: List[str], line_number: int) -> Dict[str, int]:
    columns = {name: index for index, name in enumerate(fields)}
    missing = [name for name in REQUIRED_COLUMNS if name not in columns]
    if missing:
        raise LedgerParseError(f"header is missing columns {missing}", line_number)
    return columns


def parse_row(
    fields: List[str],
    columns: Dict[str, int],
    position: int,
    line_number: Optional[int] = None,
) -> Transaction:
    """Parse one already-trimmed CSV row into a Transaction."""
    if len(fields) > len(columns):
        raise LedgerParseError(
            f"expected at most {len(columns)} columns, got {len(fields)}", line_number
        )

    def column(name: str) -> str:
        index = columns.get(name)
        if index is None or index >= len(fields):
            return ""
        return fields[index]

    try:
        transaction_type = TransactionType(column("type"))
    except ValueError:
        raise LedgerParseError(f"unknown transaction type {column('type')!r}", line_number) from None

    client_id = _parse_unsigned(column("client"), CLIENT_ID_BITS, "client", line_number)
    transaction_id = _parse_unsigned(column("tx"), TRANSACTION_ID_BITS, "tx", line_number)

    amount = None
    amount_str = column(AMOUNT_COLUMN)
    if transaction_type.carries_amount:
        if not amount_str:
            raise LedgerParseError(
                f"{transaction_type.value} tx {transaction_id} has no amount", line_number
            )
        amount = _parse_amount(amount_str, line_number)
    elif amount_str:
        logger.debug(f"{transaction_type.value} tx {transaction_id}: ignoring amount {amount_str!r}")

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
        position=position,
    )


def _parse_unsigned(value: str, bits: int, name: str, line_number: Optional[int]) -> int:
    if not _UNSIGNED_RE.fullmatch(value):
        raise LedgerParseError(f"{name} {value!r} is not an unsigned integer", line_number)
    number = int(value)
    if number >= 1 << bits:
        raise LedgerParseError(f"{name} {number} does not fit in u{bits}", line_number)
    return number


def _parse_amount(value: str, line_number: Optional[int]) -> Decimal:
    if not _AMOUNT_RE.fullmatch(value):
        raise LedgerParseError(f"amount {value!r} is not a non-negative decimal", line_number)
    amount = Decimal(value)
    if amount and amount.adjusted() > MAX_AMOUNT_EXPONENT:
        raise LedgerParseError(f"amount {value!r} is out of range", line_number)
    return amount
