from itertools import islice
from typing import Dict, Optional, Tuple

from config import LookupStrategy
from ledger import LedgerSource
from models import Transaction


class PrefixScanLookup:
    """
    Finds the original transaction by re-scanning the ledger from the start.

    Only the records before the current position are considered, so a
    dispute can only refer to something that happened before it. Each lookup
    is O(position).
    """

    def __init__(self, source: LedgerSource):
        self._source = source

    def find(self, position: int, client_id: int, transaction_id: int) -> Optional[Transaction]:
        for transaction in islice(self._source.iterate(), position):
            if transaction.transaction_id == transaction_id and transaction.client_id == client_id:
                return transaction
        return None

    def record(self, transaction: Transaction) -> None:
        pass


class IndexedLookup:
    """
    Same answers as PrefixScanLookup, served from an index built during the
    forward pass. The first record seen for a (client, tx) pair wins.
    """

    def __init__(self):
        self._index: Dict[Tuple[int, int], Transaction] = {}

    def find(self, position: int, client_id: int, transaction_id: int) -> Optional[Transaction]:
        transaction = self._index.get((client_id, transaction_id))
        if transaction is None or transaction.position >= position:
            return None
        return transaction

    def record(self, transaction: Transaction) -> None:
        self._index.setdefault((transaction.client_id, transaction.transaction_id), transaction)


def create_lookup(strategy: LookupStrategy, source: LedgerSource):
    match strategy:
        case LookupStrategy.SCAN:
            return PrefixScanLookup(source)
        case LookupStrategy.INDEX:
            return IndexedLookup()
