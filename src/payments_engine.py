import csv
import logging
import sys
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Optional, TextIO

from errors import InvalidTransactionRecord, TransactionError
from models import Transaction, TransactionType, ClientState, ProcessingStats
from state_manager import StateManager
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


class PaymentsEngine:
    """
    Reads transaction records from CSV and feeds them, in order, to the transaction processor.

    By default a record that fails to parse or apply is logged and skipped. With
    strict=True the first failure is raised to the caller instead.
    """

    def __init__(self, strict: bool = False):
        self._strict = strict
        self._state = StateManager()
        self._processor = TransactionProcessor(self._state)
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> Dict[int, ClientState]:
        """Process CSV file ("-" for stdin) and return final account states."""
        if filepath == "-":
            return self.process_stream(sys.stdin)
        with open(filepath, "r", newline="") as f:
            return self.process_stream(f)

    def process_stream(self, stream: TextIO) -> Dict[int, ClientState]:
        return self.process_rows(csv.DictReader(stream))

    def process_rows(self, rows: Iterable[Dict[str, Optional[str]]]) -> Dict[int, ClientState]:
        logger.info("Starting processing")

        for line_number, row in enumerate(rows, start=2):
            try:
                transaction = self._parse_csv_row(row)
            except TransactionError as e:
                self._stats.record_skipped(e)
                logger.warning(f"Skipping row {line_number} {row}: {e}")
                if self._strict:
                    raise
                continue

            self._apply(transaction)

        logger.info(
            f"Processed: {self._stats.processed}, "
            f"Failed: {self._stats.failed}, "
            f"Skipped: {self._stats.skipped}"
        )
        return self._processor.clients()

    def clients(self) -> Dict[int, ClientState]:
        return self._processor.clients()

    def _apply(self, transaction: Transaction) -> None:
        try:
            self._processor.apply(transaction)
        except TransactionError as e:
            self._stats.record_failure(e)
            logger.warning(f"Rejected {transaction}: {e}")
            if self._strict:
                raise
        else:
            self._stats.record_success()

    def _parse_csv_row(self, row: Dict[str, Optional[str]]) -> Transaction:
        """Parse CSV row into Transaction."""
        normalized = {k.strip(): (v or "").strip() for k, v in row.items() if isinstance(k, str)}

        try:
            transaction_type = TransactionType.parse(normalized["type"])
            client_id = int(normalized["client"])
            transaction_id = int(normalized["tx"])
        except KeyError as e:
            raise InvalidTransactionRecord(f"missing column {e}") from None
        except ValueError as e:
            raise InvalidTransactionRecord(str(e)) from None

        if not 0 <= client_id <= MAX_CLIENT_ID:
            raise InvalidTransactionRecord(f"client id {client_id} out of range")
        if not 0 <= transaction_id <= MAX_TRANSACTION_ID:
            raise InvalidTransactionRecord(f"transaction id {transaction_id} out of range")

        amount = None
        amount_str = normalized.get("amount", "")
        if amount_str:
            try:
                amount = Decimal(amount_str)
            except InvalidOperation:
                raise InvalidTransactionRecord(f"invalid amount {amount_str!r}") from None
            if not amount.is_finite():
                raise InvalidTransactionRecord(f"invalid amount {amount_str!r}")

        return Transaction(
            transaction_type=transaction_type,
            client_id=client_id,
            transaction_id=transaction_id,
            amount=amount,
        )
