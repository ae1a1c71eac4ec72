from typing import Optional


class PaymentsError(Exception):
    """Base class for every error raised by the payments engine."""


class FatalError(PaymentsError):
    """
    Aborts the whole run.
    Raised for structural problems with the input or output streams, never for business rules.
    """


class InputError(FatalError):
    """Input source unreadable or output sink not writable."""


class MalformedRecord(FatalError):
    def __init__(self, message: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class TransactionRejected(PaymentsError):
    """
    A single transaction violated a business rule.
    The transaction is skipped and processing continues with the next one.
    """

    def __init__(self, message: str, client_id: Optional[int] = None, transaction_id: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.client_id = client_id
        self.transaction_id = transaction_id

    @property
    def kind(self) -> str:
        return type(self).__name__


class DuplicateTransaction(TransactionRejected):
    pass


class InvalidAmount(TransactionRejected):
    pass


class InsufficientFunds(TransactionRejected):
    pass


class AccountLocked(TransactionRejected):
    pass


class UnknownTransaction(TransactionRejected):
    """Referenced transaction does not exist, or belongs to another client."""


class InvalidDisputeState(TransactionRejected):
    pass
