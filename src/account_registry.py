from typing import Dict, Iterator, Optional

from models import ClientAccount


class AccountRegistry:
    """Client accounts keyed by client ID, created on first reference."""

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}

    def get_or_create(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def get(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts in creation order (for final output)."""
        return dict(self._accounts)

    def __len__(self) -> int:
        return len(self._accounts)

    def __iter__(self) -> Iterator[ClientAccount]:
        return iter(self._accounts.values())
