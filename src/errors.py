from decimal import Decimal
from typing import Optional


class TransactionError(Exception):
    """Base class for every reason a transaction can be rejected."""


class ClientIsLocked(TransactionError):
    def __init__(self, client_id: int):
        super().__init__(f"Could not process because client with id {client_id} is locked")
        self.client_id = client_id


class ClientLockFailed(TransactionError):
    def __init__(self, client_id: int):
        super().__init__(f"Could not lock client with id {client_id}")
        self.client_id = client_id


class ClientUnlockFailed(TransactionError):
    def __init__(self, client_id: int):
        super().__init__(f"Could not unlock client with id {client_id}")
        self.client_id = client_id


class AmountNotAvailable(TransactionError):
    def __init__(self, client_id: int, amount: Decimal):
        super().__init__(f"Requested amount ({amount}) is not available in client account with id {client_id}")
        self.client_id = client_id
        self.amount = amount


class AmountNotHeld(TransactionError):
    def __init__(self, client_id: int, amount: Decimal):
        super().__init__(f"Requested amount ({amount}) is not held in client account with id {client_id}")
        self.client_id = client_id
        self.amount = amount


class ClientDoesNotExist(TransactionError):
    def __init__(self, client_id: int):
        super().__init__(f"Client with id {client_id} does not exist")
        self.client_id = client_id


class TransactionExistsAlready(TransactionError):
    def __init__(self, transaction_id: int):
        super().__init__(f"Transaction {transaction_id} can't be created because it already exists")
        self.transaction_id = transaction_id


class InvalidTransactionRecord(TransactionError):
    """Raised for records missing a required field or carrying an unusable value."""


class _InvalidReference(TransactionError):
    action = "transaction"

    def __init__(self, transaction_id: int, client_id: Optional[int] = None, reason: str = ""):
        message = f"The {self.action}'s transaction ({transaction_id}) or client id ({client_id}) is invalid"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.transaction_id = transaction_id
        self.client_id = client_id


class InvalidDispute(_InvalidReference):
    action = "dispute"


class InvalidResolve(_InvalidReference):
    action = "resolve"


class InvalidChargeback(_InvalidReference):
    action = "chargeback"


class UnknownTransactionType(TransactionError):
    def __init__(self, transaction_type: str):
        super().__init__(f"Ignoring unknown transaction type {transaction_type!r}")
        self.transaction_type = transaction_type
