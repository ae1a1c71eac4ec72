import logging
from typing import Dict, Iterable

from account_registry import AccountRegistry
from csv_io import read_transactions
from ledger_store import LedgerStore
from models import ClientAccount, ProcessingStats, Transaction
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Runs one sequential pass over a transaction stream.
    Rejected transactions are counted and skipped; a FatalError from the input
    side propagates and leaves the run unfinished.
    """

    def __init__(self):
        self._accounts = AccountRegistry()
        self._ledger = LedgerStore()
        self._processor = TransactionProcessor(self._accounts, self._ledger)
        self.stats = ProcessingStats()

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing transactions from {filepath}")
        return self.process(read_transactions(filepath))

    def process(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        for transaction in transactions:
            result = self._processor.process_transaction(transaction)
            self.stats.record(result)

        logger.info(self.stats.summary())
        return self._accounts.all_accounts()
