import logging
from typing import Optional

from account_registry import AccountRegistry
from errors import DuplicateTransaction, InvalidDisputeState, TransactionRejected, UnknownTransaction
from ledger_store import LedgerStore
from models import ClientAccount, DisputeState, LedgerEntry, ProcessingResult, Transaction, TransactionType

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions, in arrival order, to the accounts they target.

    Every business rule violation is raised as a TransactionRejected subclass
    before any balance is touched, then caught here, logged and returned in the
    ProcessingResult. Nothing a single transaction does can abort the run.
    """

    def __init__(self, accounts: Optional[AccountRegistry] = None, ledger: Optional[LedgerStore] = None):
        self.accounts = accounts if accounts is not None else AccountRegistry()
        self.ledger = ledger if ledger is not None else LedgerStore()

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            ProcessingResult with rejection=None if the transaction was applied,
            otherwise carrying the TransactionRejected that explains why it was skipped.
        """
        account = self.accounts.get_or_create(transaction.client_id)

        try:
            match transaction.transaction_type:
                case TransactionType.DEPOSIT:
                    self._handle_deposit(account, transaction)
                case TransactionType.WITHDRAWAL:
                    self._handle_withdrawal(account, transaction)
                case TransactionType.DISPUTE:
                    self._handle_dispute(account, transaction)
                case TransactionType.RESOLVE:
                    self._handle_resolve(account, transaction)
                case TransactionType.CHARGEBACK:
                    self._handle_chargeback(account, transaction)
        except TransactionRejected as rejection:
            if rejection.client_id is None:
                rejection.client_id = transaction.client_id
            if rejection.transaction_id is None:
                rejection.transaction_id = transaction.transaction_id
            logger.warning(
                f"{transaction.transaction_type.value.capitalize()} tx {transaction.transaction_id} "
                f"(client {transaction.client_id}) rejected: {rejection.kind}: {rejection.message}"
            )
            return ProcessingResult(transaction, rejection)

        logger.debug(f"Applied {transaction}")
        return ProcessingResult(transaction)

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> None:
        self._check_unused(transaction)
        account.deposit(transaction.amount)
        self.ledger.record(transaction.transaction_id, transaction.client_id, transaction.amount)

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> None:
        self._check_unused(transaction)
        account.withdraw(transaction.amount)
        self.ledger.record_withdrawal(transaction.transaction_id)

    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> None:
        entry = self._find_entry(transaction)
        self._check_state(entry, DisputeState.NONE)

        account.hold(entry.amount)
        self.ledger.mark(entry.transaction_id, DisputeState.DISPUTED)

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> None:
        entry = self._find_entry(transaction)
        self._check_state(entry, DisputeState.DISPUTED)

        account.release(entry.amount)
        self.ledger.mark(entry.transaction_id, DisputeState.RESOLVED)

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> None:
        entry = self._find_entry(transaction)
        self._check_state(entry, DisputeState.DISPUTED)

        account.chargeback(entry.amount)
        self.ledger.mark(entry.transaction_id, DisputeState.CHARGED_BACK)

    def _check_unused(self, transaction: Transaction) -> None:
        if self.ledger.is_used(transaction.transaction_id):
            raise DuplicateTransaction("transaction ID already used")

    def _find_entry(self, transaction: Transaction) -> LedgerEntry:
        entry = self.ledger.find(transaction.transaction_id)

        # Withdrawals are never stored, so they are reported as unknown too.
        if entry is None:
            raise UnknownTransaction("no deposit with this ID")

        # No cross-client disputes: another client's deposit is as good as missing.
        if entry.client_id != transaction.client_id:
            raise UnknownTransaction(f"no deposit with this ID for client {transaction.client_id}")

        return entry

    @staticmethod
    def _check_state(entry: LedgerEntry, expected: DisputeState) -> None:
        if entry.dispute_state != expected:
            raise InvalidDisputeState(
                f"deposit is {entry.dispute_state.value}, expected {expected.value}"
            )
