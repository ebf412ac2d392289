from typing import Optional

from .account_store import (
    Account,
    AccountStore,
    AccountStoreError,
    InMemoryAccountStore,
    ProviderAccount,
    WalletItem,
)

_store: Optional[InMemoryAccountStore] = None


def get_account_store() -> InMemoryAccountStore:
    """Get the process-wide account store."""
    global _store
    if _store is None:
        _store = InMemoryAccountStore()
    return _store


__all__ = [
    "Account",
    "AccountStore",
    "AccountStoreError",
    "InMemoryAccountStore",
    "ProviderAccount",
    "WalletItem",
    "get_account_store",
]
