import logging
from dataclasses import replace
from typing import Dict, Tuple, Type

from errors import (
    ClientDoesNotExist,
    InvalidChargeback,
    InvalidDispute,
    InvalidResolve,
    InvalidTransactionRecord,
    TransactionError,
    TransactionExistsAlready,
    UnknownTransactionType,
)
from models import Transaction, TransactionType, ClientAccount, ClientState
from state_manager import StateManager

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions to the ledger state, one at a time and in input order.

    Every rejected transaction raises a TransactionError subclass and leaves the
    state exactly as it was, so the processor can keep going after any failure.
    """

    def __init__(self, state: StateManager):
        self._state = state

    def apply(self, transaction: Transaction) -> None:
        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                self._handle_deposit(transaction)
            case TransactionType.WITHDRAWAL:
                self._handle_withdrawal(transaction)
            case TransactionType.DISPUTE:
                self._handle_dispute(transaction)
            case TransactionType.RESOLVE:
                self._handle_resolve(transaction)
            case TransactionType.CHARGEBACK:
                self._handle_chargeback(transaction)
            case _:
                raise UnknownTransactionType(str(transaction.transaction_type))

        logger.debug(f"Applied {transaction}")

    def clients(self) -> Dict[int, ClientState]:
        return self._state.get_all_accounts()

    def _handle_deposit(self, transaction: Transaction) -> None:
        account, is_new = self._stage_monetary(transaction)
        account.deposit(transaction.amount)
        self._commit_monetary(account, is_new, transaction)

    def _handle_withdrawal(self, transaction: Transaction) -> None:
        account, is_new = self._stage_monetary(transaction)
        account.withdraw(transaction.amount)
        self._commit_monetary(account, is_new, transaction)

    def _handle_dispute(self, transaction: Transaction) -> None:
        original, account = self._stage_referenced(transaction, InvalidDispute)
        original.mark_disputed()
        account.dispute(original.amount)
        self._commit_referenced(original, account)

    def _handle_resolve(self, transaction: Transaction) -> None:
        original, account = self._stage_referenced(transaction, InvalidResolve)
        original.mark_resolved()
        account.resolve(original.amount)
        self._commit_referenced(original, account)

    def _handle_chargeback(self, transaction: Transaction) -> None:
        original, account = self._stage_referenced(transaction, InvalidChargeback)
        try:
            original.mark_resolved()
        except InvalidResolve:
            raise InvalidChargeback(
                transaction.transaction_id, transaction.client_id, "transaction is not disputed"
            ) from None
        original.mark_charged_back()
        account.chargeback(original.amount)
        self._commit_referenced(original, account)

    def _stage_monetary(self, transaction: Transaction) -> Tuple[ClientAccount, bool]:
        """
        Validate a deposit or withdrawal and return a working copy of its account.
        The account is new (and not yet stored) when the client has never been seen.
        """
        if transaction.amount is None:
            raise InvalidTransactionRecord(
                f"{transaction.transaction_type.value} tx {transaction.transaction_id} is missing an amount"
            )
        if not transaction.amount.is_finite() or transaction.amount <= 0:
            raise InvalidTransactionRecord(
                f"{transaction.transaction_type.value} tx {transaction.transaction_id}: invalid amount {transaction.amount}"
            )
        if self._state.has_transaction(transaction.transaction_id):
            raise TransactionExistsAlready(transaction.transaction_id)

        account = self._state.get_account(transaction.client_id)
        if account is None:
            return ClientAccount(client_id=transaction.client_id), True
        return replace(account), False

    def _commit_monetary(self, account: ClientAccount, is_new: bool, transaction: Transaction) -> None:
        self._state.log_transaction(replace(transaction, disputed=False, charged_back=False))
        if is_new:
            self._state.add_account(account)
        else:
            self._state.replace_account(account)

    def _stage_referenced(
        self, transaction: Transaction, error: Type[TransactionError]
    ) -> Tuple[Transaction, ClientAccount]:
        """
        Look up the logged transaction a dispute, resolve or chargeback points at, and
        return working copies of it and of its owning account.
        """
        if not self._state.has_account(transaction.client_id):
            raise ClientDoesNotExist(transaction.client_id)

        original = self._state.get_transaction(transaction.transaction_id)
        if original is None:
            raise error(transaction.transaction_id, transaction.client_id, "transaction not found")

        if original.client_id != transaction.client_id:
            raise error(
                transaction.transaction_id,
                transaction.client_id,
                f"transaction belongs to client {original.client_id}",
            )

        account = self._state.get_account(original.client_id)
        if account is None:
            raise error(transaction.transaction_id, transaction.client_id, "owning client not found")

        if transaction.amount is not None:
            logger.debug(
                f"{transaction.transaction_type.value} for tx {transaction.transaction_id}: "
                f"ignoring amount {transaction.amount}, using the disputed transaction's amount"
            )

        return replace(original), replace(account)

    def _commit_referenced(self, original: Transaction, account: ClientAccount) -> None:
        self._state.replace_transaction(original)
        self._state.replace_account(account)
