import logging
from typing import Dict, Optional

from config import EngineConfig
from ledger import LedgerSource
from models import ClientAccount, ProcessingResult, ProcessingStats, Transaction, TransactionType
from state_manager import StateManager
from transaction_lookup import create_lookup
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Replays a ledger in file order against per-client accounts.

    Dispute, resolve and chargeback records are matched to the original
    transaction by a backward lookup over the records that precede them,
    restricted to the same client. One engine instance performs one replay.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self._config = config or EngineConfig()
        self._state = StateManager()
        self._processor = TransactionProcessor(self._config.dispute_policy)
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        return self.replay(LedgerSource.open(filepath))

    def replay(self, source: LedgerSource) -> Dict[int, ClientAccount]:
        """Replay every record of an opened source and return the account table."""
        logger.info(f"Replaying {source.filepath} with {self._config.lookup_strategy.value} lookup")
        lookup = create_lookup(self._config.lookup_strategy, source)

        for transaction in source.iterate():
            result = self._apply(transaction, lookup)
            lookup.record(transaction)

            if result == ProcessingResult.SUCCESS:
                self._stats.record_success()
            else:
                self._stats.record_ignored()

        logger.info(
            f"Processed: {self._stats.processed}, "
            f"Ignored: {self._stats.ignored}, "
            f"Lookups: {self._stats.lookups}, "
            f"Accounts: {len(self._state)}"
        )
        return self._state.get_all_accounts()

    def _apply(self, transaction: Transaction, lookup) -> ProcessingResult:
        account = self._state.get_or_create_account(transaction.client_id)

        original = None
        if not transaction.transaction_type.carries_amount:
            self._stats.record_lookup()
            original = lookup.find(transaction.position, transaction.client_id, transaction.transaction_id)

        lock = self._state.get_client_lock(transaction.client_id)
        with lock:
            match transaction.transaction_type:
                case TransactionType.DEPOSIT:
                    result = self._processor.handle_deposit(account, transaction.amount)
                case TransactionType.WITHDRAWAL:
                    result = self._processor.handle_withdrawal(account, transaction.amount)
                case TransactionType.DISPUTE:
                    result = self._processor.handle_dispute(account, original)
                case TransactionType.RESOLVE:
                    result = self._processor.handle_resolve(account, original)
                case TransactionType.CHARGEBACK:
                    result = self._processor.handle_chargeback(account, original)

            if self._config.verify_invariants:
                account.check_invariant()

        return result
