from typing import Dict, Optional

from errors import TransactionExistsAlready
from models import Transaction, ClientAccount, ClientState


class StateManager:
    """
    Owns client accounts and the log of monetary transactions used for dispute lookups.
    Only the transaction processor writes to it.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._transactions: Dict[int, Transaction] = {}

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def has_account(self, client_id: int) -> bool:
        return client_id in self._accounts

    def add_account(self, account: ClientAccount) -> None:
        """Insert a newly created account. Existing accounts are never replaced here."""
        self._accounts.setdefault(account.client_id, account)

    def replace_account(self, account: ClientAccount) -> None:
        """Commit a staged copy of an existing account."""
        self._accounts[account.client_id] = account

    def log_transaction(self, transaction: Transaction) -> None:
        """Store transaction for future dispute lookups. A transaction id is logged at most once."""
        if transaction.transaction_id in self._transactions:
            raise TransactionExistsAlready(transaction.transaction_id)
        self._transactions[transaction.transaction_id] = transaction

    def replace_transaction(self, transaction: Transaction) -> None:
        """Commit a staged copy of an already logged transaction."""
        self._transactions[transaction.transaction_id] = transaction

    def has_transaction(self, transaction_id: int) -> bool:
        return transaction_id in self._transactions

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Retrieve stored transaction by ID."""
        return self._transactions.get(transaction_id)

    def get_all_accounts(self) -> Dict[int, ClientState]:
        """Return snapshots of all accounts (for final output)."""
        return {client_id: account.snapshot() for client_id, account in self._accounts.items()}
