from decimal import Decimal
from typing import Dict, Iterator, Optional, Set

from errors import DuplicateTransaction, UnknownTransaction
from models import DisputeState, LedgerEntry


class LedgerStore:
    """
    Append-only store of accepted deposits, keyed by transaction ID.
    Also remembers the IDs of accepted withdrawals: they cannot be disputed,
    but their IDs are still taken.
    """

    def __init__(self):
        self._entries: Dict[int, LedgerEntry] = {}
        self._withdrawal_ids: Set[int] = set()

    def record(self, transaction_id: int, client_id: int, amount: Decimal) -> LedgerEntry:
        """Store an accepted deposit with no dispute against it."""
        if self.is_used(transaction_id):
            raise DuplicateTransaction(
                "transaction ID already used", client_id=client_id, transaction_id=transaction_id
            )
        entry = LedgerEntry(transaction_id=transaction_id, client_id=client_id, amount=amount)
        self._entries[transaction_id] = entry
        return entry

    def record_withdrawal(self, transaction_id: int) -> None:
        self._withdrawal_ids.add(transaction_id)

    def is_used(self, transaction_id: int) -> bool:
        return transaction_id in self._entries or transaction_id in self._withdrawal_ids

    def find(self, transaction_id: int) -> Optional[LedgerEntry]:
        return self._entries.get(transaction_id)

    def mark(self, transaction_id: int, new_state: DisputeState) -> None:
        """Move an entry to a new dispute state. Legality of the transition is checked by the caller."""
        entry = self._entries.get(transaction_id)
        if entry is None:
            raise UnknownTransaction("transaction not found", transaction_id=transaction_id)
        entry.dispute_state = new_state

    def __contains__(self, transaction_id: int) -> bool:
        return transaction_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LedgerEntry]:
        return iter(self._entries.values())
