"""
Account persistence interface.

The linker and importer only need a handful of operations from whatever
stores accounts: create a provider account per category, attach a snapshot,
create the user-facing account, link the two, and list linked accounts.
InMemoryAccountStore backs local runs and tests.
"""

from __future__ import annotations

import copy
import logging
import uuid
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional

from ..providers.debank import DebankProvider

logger = logging.getLogger(__name__)


class AccountStoreError(Exception):
    """A record could not be saved."""
    pass


@dataclass
class WalletItem:
    """Connection holding the DeBank credentials for a family."""
    id: str
    family_id: str
    api_key: str = ""

    @property
    def credentials_configured(self) -> bool:
        return bool(self.api_key)

    def debank_provider(self) -> Optional[DebankProvider]:
        if not self.credentials_configured:
            return None
        return DebankProvider(api_key=self.api_key)


@dataclass
class ProviderAccount:
    """Provider-side record of one category of one wallet."""
    id: str
    item_id: str
    name: str
    account_id: Optional[str] = None
    currency: str = "USD"
    current_balance: float = 0.0
    raw_payload: Dict[str, Any] = field(default_factory=dict)
    linked_account_id: Optional[str] = None

    @property
    def category(self) -> Optional[str]:
        return self.account_id or self.name


@dataclass
class Account:
    """User-facing balance account."""
    id: str
    family_id: str
    name: str
    balance: float
    cash_balance: float
    currency: str = "USD"
    accountable_type: str = "Crypto"
    status: str = "active"


class AccountStore(ABC):
    """Persistence operations needed to link and sync wallet categories."""

    @abstractmethod
    def transaction(self):
        """Async context manager; changes are discarded if the block raises."""

    @abstractmethod
    async def create_provider_account(
        self,
        item: WalletItem,
        name: str,
        account_id: str,
        current_balance: float,
        currency: str = "USD",
    ) -> ProviderAccount:
        pass

    @abstractmethod
    async def upsert_snapshot(self, provider_account: ProviderAccount, snapshot: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    async def create_account(
        self,
        family_id: str,
        name: str,
        balance: float,
        currency: str = "USD",
    ) -> Account:
        pass

    @abstractmethod
    async def link(self, account: Account, provider_account: ProviderAccount) -> None:
        pass

    @abstractmethod
    async def linked_accounts(self, item_id: str) -> List[ProviderAccount]:
        pass

    @abstractmethod
    async def request_sync(self, item_id: str) -> None:
        pass


class InMemoryAccountStore(AccountStore):
    """Dict-backed store."""

    def __init__(self) -> None:
        self.items: Dict[str, WalletItem] = {}
        self.provider_accounts: Dict[str, ProviderAccount] = {}
        self.accounts: Dict[str, Account] = {}
        self.sync_requests: List[str] = []

    def add_item(self, item: WalletItem) -> WalletItem:
        self.items[item.id] = item
        return item

    def get_item(self, item_id: str) -> Optional[WalletItem]:
        return self.items.get(item_id)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["InMemoryAccountStore"]:
        provider_accounts = copy.deepcopy(self.provider_accounts)
        accounts = copy.deepcopy(self.accounts)
        try:
            yield self
        except Exception:
            self.provider_accounts = provider_accounts
            self.accounts = accounts
            raise

    async def create_provider_account(
        self,
        item: WalletItem,
        name: str,
        account_id: str,
        current_balance: float,
        currency: str = "USD",
    ) -> ProviderAccount:
        if not name or not name.strip():
            raise AccountStoreError("Name can't be blank")
        for existing in self.provider_accounts.values():
            if existing.item_id == item.id and existing.account_id == account_id and existing.name == name:
                raise AccountStoreError(f"Account '{name}' has already been taken")

        provider_account = ProviderAccount(
            id=str(uuid.uuid4()),
            item_id=item.id,
            name=name,
            account_id=account_id,
            currency=currency,
            current_balance=current_balance,
        )
        self.provider_accounts[provider_account.id] = provider_account
        return provider_account

    async def upsert_snapshot(self, provider_account: ProviderAccount, snapshot: Dict[str, Any]) -> None:
        stored = self.provider_accounts.get(provider_account.id)
        if stored is None:
            raise AccountStoreError(f"Unknown provider account {provider_account.id}")
        stored.raw_payload = dict(snapshot)
        stored.current_balance = float(snapshot.get("balance") or 0.0)
        stored.currency = snapshot.get("currency") or stored.currency
        # Callers may hold the instance returned at creation time
        provider_account.raw_payload = stored.raw_payload
        provider_account.current_balance = stored.current_balance

        account = self.accounts.get(stored.linked_account_id or "")
        if account is not None:
            account.balance = stored.current_balance
            account.cash_balance = stored.current_balance

    async def create_account(
        self,
        family_id: str,
        name: str,
        balance: float,
        currency: str = "USD",
    ) -> Account:
        if not name or not name.strip():
            raise AccountStoreError("Name can't be blank")
        account = Account(
            id=str(uuid.uuid4()),
            family_id=family_id,
            name=name,
            balance=balance,
            cash_balance=balance,
            currency=currency,
        )
        self.accounts[account.id] = account
        return account

    async def link(self, account: Account, provider_account: ProviderAccount) -> None:
        stored = self.provider_accounts.get(provider_account.id)
        if stored is None:
            raise AccountStoreError(f"Unknown provider account {provider_account.id}")
        stored.linked_account_id = account.id
        provider_account.linked_account_id = account.id

    async def linked_accounts(self, item_id: str) -> List[ProviderAccount]:
        return [
            provider_account
            for provider_account in self.provider_accounts.values()
            if provider_account.item_id == item_id and provider_account.linked_account_id
        ]

    async def request_sync(self, item_id: str) -> None:
        logger.info(f"Sync requested for item {item_id}")
        self.sync_requests.append(item_id)
