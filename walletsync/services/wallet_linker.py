"""
Wallet linking.

Links a wallet by fetching its categorized balances and creating one account
per category ("wallet", "Aave", "GMX", ...).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..db.account_store import AccountStore, AccountStoreError, WalletItem
from ..providers.base import BalanceProvider
from ..types import AccountSnapshot
from .categorized_balances import get_categorized_balances
from .categorizer import WALLET_CATEGORY

logger = logging.getLogger(__name__)


@dataclass
class LinkResult:
    success: bool
    created_count: int = 0
    errors: List[str] = field(default_factory=list)


def truncate_address(address: Optional[str]) -> Optional[str]:
    if not address:
        return None
    return f"{address[:4]}...{address[-4:]}"


def build_account_name(category_name: str, address: Optional[str]) -> str:
    """Display name such as "Wallet (0x12...abcd)" or "Aave (0x12...abcd)"."""
    label = "Wallet" if category_name == WALLET_CATEGORY else category_name
    truncated = truncate_address(address)
    if truncated:
        return f"{label} ({truncated})"
    return label


class WalletLinker:
    """
    Creates accounts for every balance category of a wallet.

    Usage:
        linker = WalletLinker(item, address="0x...", blockchain="ethereum", store=store)
        result = await linker.link()
    """

    def __init__(
        self,
        item: WalletItem,
        address: str,
        store: AccountStore,
        blockchain: Optional[str] = None,
        provider: Optional[BalanceProvider] = None,
    ) -> None:
        self.item = item
        self.address = address
        self.blockchain = blockchain
        self.store = store
        self._owns_provider = provider is None
        self.provider = provider or item.debank_provider()

    async def link(self) -> LinkResult:
        categories = await self._fetch_categorized_balances()

        if not categories:
            return LinkResult(success=False, created_count=0, errors=["No categories found for wallet"])

        created_count = 0
        errors: List[str] = []

        for category_name, category_data in categories.items():
            error = await self._create_account_from_category(category_name, category_data)
            if error is None:
                created_count += 1
            else:
                errors.append(error)

        if created_count > 0:
            await self.store.request_sync(self.item.id)

        return LinkResult(success=created_count > 0, created_count=created_count, errors=errors)

    async def _fetch_categorized_balances(self) -> Dict[str, Dict[str, Any]]:
        if self.provider is None:
            logger.warning(f"WalletLinker - No DeBank credentials configured for item {self.item.id}")
            return {}
        try:
            result = await get_categorized_balances(self.provider, self.address)
        finally:
            if self._owns_provider:
                await self.provider.close()
        return result.categories

    async def _create_account_from_category(
        self,
        category_name: str,
        category_data: Dict[str, Any],
    ) -> Optional[str]:
        """Create the provider account, snapshot and linked account; return an error string on failure."""
        category_value = category_data.get("value") or 0.0
        category_tokens = category_data.get("tokens") or []
        account_name = build_account_name(category_name, self.address)

        try:
            async with self.store.transaction():
                provider_account = await self.store.create_provider_account(
                    self.item,
                    name=account_name,
                    account_id=category_name,
                    current_balance=category_value,
                )
                snapshot = self.build_snapshot(category_name, category_value, category_tokens)
                await self.store.upsert_snapshot(provider_account, snapshot)

                account = await self.store.create_account(
                    self.item.family_id,
                    name=account_name,
                    balance=category_value,
                    currency=provider_account.currency,
                )
                await self.store.link(account, provider_account)
        except AccountStoreError as e:
            logger.error(f"WalletLinker - Failed to create account: {e}")
            return f"Failed to create {account_name}: {e}"
        except Exception as e:
            logger.error(f"WalletLinker - Unexpected error: {e.__class__.__name__} - {e}", exc_info=True)
            return f"Unexpected error: {e}"

        return None

    def build_snapshot(
        self,
        category_name: str,
        category_value: float,
        category_tokens: List[Dict[str, Any]],
    ) -> Dict[str, Any]:
        return AccountSnapshot(
            id=category_name,
            name=category_name,
            balance=category_value,
            address=self.address,
            blockchain=self.blockchain,
            category=category_name,
            tokens=category_tokens,
            raw_balance_data={"value": category_value, "tokens": category_tokens},
        ).model_dump()
