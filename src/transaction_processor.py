import logging
from decimal import Decimal
from typing import Optional

from config import DisputePolicy
from errors import LedgerInvariantError
from models import (
    ClientAccount,
    DisputeStatus,
    DisputeState,
    ProcessingResult,
    Transaction,
    add_money,
    round_money,
    subtract_money,
)

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies one transaction to one account.

    Rejected instructions (frozen account, insufficient funds, unknown or
    already settled disputes) leave the account untouched and come back as
    ProcessingResult.IGNORED; they are never raised. Only a held-funds
    bookkeeping inconsistency raises.
    Caller is responsible for holding the client's lock.
    """

    def __init__(self, dispute_policy: DisputePolicy = DisputePolicy.REQUIRE_AVAILABLE):
        self._dispute_policy = dispute_policy

    def handle_deposit(self, account: ClientAccount, amount: Decimal) -> ProcessingResult:
        if account.locked:
            logger.debug(f"Deposit for client {account.client_id}: account is frozen")
            return ProcessingResult.IGNORED

        account.set_available_funds(add_money(account.available_funds(), amount))
        return ProcessingResult.SUCCESS

    def handle_withdrawal(self, account: ClientAccount, amount: Decimal) -> ProcessingResult:
        if account.locked:
            logger.debug(f"Withdrawal for client {account.client_id}: account is frozen")
            return ProcessingResult.IGNORED

        if account.available_funds() < amount:
            logger.debug(
                f"Withdrawal for client {account.client_id}: insufficient funds "
                f"(required {amount}, available {account.available_funds()})"
            )
            return ProcessingResult.IGNORED

        account.set_available_funds(subtract_money(account.available_funds(), amount))
        return ProcessingResult.SUCCESS

    def handle_dispute(self, account: ClientAccount, original: Optional[Transaction]) -> ProcessingResult:
        # Disputes are accepted on frozen accounts too.
        if original is None:
            logger.debug(f"Dispute for client {account.client_id}: transaction not found")
            return ProcessingResult.IGNORED

        state = account.find_dispute(original.transaction_id)
        if state.status is not DisputeStatus.UNDISPUTED:
            logger.debug(f"Dispute for tx {original.transaction_id}: transaction is {state.status.value}")
            return ProcessingResult.IGNORED

        if original.amount is None:
            logger.debug(f"Dispute for tx {original.transaction_id}: {original} carries no amount")
            return ProcessingResult.IGNORED

        # Held and available move by the same rounded amount.
        amount = round_money(original.amount)

        if account.available_funds() < amount and self._dispute_policy is DisputePolicy.REQUIRE_AVAILABLE:
            logger.debug(
                f"Dispute for tx {original.transaction_id}: insufficient available funds "
                f"(required {amount}, available {account.available_funds()})"
            )
            return ProcessingResult.IGNORED

        account.set_available_funds(subtract_money(account.available_funds(), amount))
        account.add_held_funds(amount, original.transaction_id)
        return ProcessingResult.SUCCESS

    def handle_resolve(self, account: ClientAccount, original: Optional[Transaction]) -> ProcessingResult:
        if original is None:
            logger.debug(f"Resolve for client {account.client_id}: transaction not found")
            return ProcessingResult.IGNORED

        state = account.find_dispute(original.transaction_id)
        if state.status is not DisputeStatus.DISPUTED:
            logger.debug(f"Resolve for tx {original.transaction_id}: transaction is {state.status.value}")
            return ProcessingResult.IGNORED

        self._check_held(account, original.transaction_id, state.amount)
        account.set_available_funds(add_money(account.available_funds(), state.amount))
        account.remove_held_funds(original.transaction_id)
        account.complete_dispute(original.transaction_id, DisputeState.undisputed())
        return ProcessingResult.SUCCESS

    def handle_chargeback(self, account: ClientAccount, original: Optional[Transaction]) -> ProcessingResult:
        if original is None:
            logger.debug(f"Chargeback for client {account.client_id}: transaction not found")
            return ProcessingResult.IGNORED

        state = account.find_dispute(original.transaction_id)
        if state.status is not DisputeStatus.DISPUTED:
            logger.debug(f"Chargeback for tx {original.transaction_id}: transaction is {state.status.value}")
            return ProcessingResult.IGNORED

        self._check_held(account, original.transaction_id, state.amount)
        account.remove_held_funds(original.transaction_id)
        account.complete_dispute(original.transaction_id, DisputeState.charged_back())
        account.set_locked(True)
        logger.info(f"Chargeback for tx {original.transaction_id}: client {account.client_id} frozen")
        return ProcessingResult.SUCCESS

    @staticmethod
    def _check_held(account: ClientAccount, transaction_id: int, amount: Decimal) -> None:
        if amount > account.held_funds():
            raise LedgerInvariantError(
                f"client {account.client_id}: disputed amount {amount} for tx {transaction_id} "
                f"exceeds held funds {account.held_funds()}"
            )
