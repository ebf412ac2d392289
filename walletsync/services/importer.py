"""
Balance import for linked wallet accounts.

Every linked provider account represents one category of one wallet. A sync
refetches the categorized balances of each wallet address found on those
accounts and refreshes the snapshot of every account whose category is still
present. DeBank supplies no per-wallet transaction history, so nothing else
is imported.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..db.account_store import AccountStore, ProviderAccount, WalletItem
from ..logging_config import bind_wallet_context, clear_wallet_context
from ..providers.base import BalanceProvider
from ..types import AccountSnapshot
from .categorized_balances import get_categorized_balances

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    success: bool
    accounts_updated: int = 0
    accounts_failed: int = 0
    transactions_imported: int = 0
    error: Optional[str] = None
    errors: Dict[str, str] = field(default_factory=dict)


def wallet_addresses(accounts: List[ProviderAccount]) -> List[str]:
    """Unique wallet addresses stored on the accounts, in first-seen order."""
    addresses: List[str] = []
    for account in accounts:
        address = (account.raw_payload or {}).get("address")
        if address and address not in addresses:
            addresses.append(address)
    return addresses


class WalletImporter:
    """Refreshes the balance snapshots of an item's linked accounts."""

    def __init__(
        self,
        item: WalletItem,
        store: AccountStore,
        provider: Optional[BalanceProvider] = None,
    ) -> None:
        self.item = item
        self.store = store
        self._owns_provider = provider is None
        self.provider = provider or item.debank_provider()

    async def import_balances(self) -> ImportResult:
        logger.info(f"WalletImporter - Starting import for item {self.item.id}")

        linked_accounts = await self.store.linked_accounts(self.item.id)
        if not linked_accounts:
            logger.info(f"WalletImporter - No linked accounts to sync for item {self.item.id}")
            return ImportResult(success=True)

        addresses = wallet_addresses(linked_accounts)
        if not addresses:
            logger.warning(f"WalletImporter - No wallet addresses found for item {self.item.id}")
            return ImportResult(success=False, error="No wallet addresses found")

        if self.provider is None:
            logger.error(f"WalletImporter - No DeBank credentials configured for item {self.item.id}")
            return ImportResult(
                success=False,
                accounts_failed=len(linked_accounts),
                error="DeBank credentials not configured",
            )

        accounts_updated = 0
        accounts_failed = 0
        errors: Dict[str, str] = {}

        try:
            for wallet_address in addresses:
                wallet_accounts = [
                    account for account in linked_accounts
                    if (account.raw_payload or {}).get("address") == wallet_address
                ]
                bind_wallet_context(wallet_address, item_id=self.item.id)
                try:
                    updated, failed = await self._import_wallet(wallet_address, wallet_accounts, errors)
                    accounts_updated += updated
                    accounts_failed += failed
                except Exception as e:
                    accounts_failed += len(wallet_accounts)
                    errors[f"{wallet_address}:fetch"] = str(e)
                    logger.error(
                        f"WalletImporter - Failed to fetch balances for wallet {wallet_address}: {e}",
                        exc_info=True,
                    )
                finally:
                    clear_wallet_context()
        finally:
            if self._owns_provider:
                await self.provider.close()

        logger.info(f"WalletImporter - Updated {accounts_updated} accounts ({accounts_failed} failed)")

        return ImportResult(
            success=accounts_failed == 0,
            accounts_updated=accounts_updated,
            accounts_failed=accounts_failed,
            transactions_imported=0,
            errors=errors,
        )

    async def _import_wallet(
        self,
        wallet_address: str,
        accounts: List[ProviderAccount],
        errors: Dict[str, str],
    ) -> Tuple[int, int]:
        """Refresh one wallet's accounts; returns (updated, failed)."""
        result = await get_categorized_balances(self.provider, wallet_address)
        for source, error in result.errors.items():
            errors[f"{wallet_address}:{source}"] = f"{error.kind.value}: {error.message}"
            logger.warning(f"WalletImporter - {source} fetch failed for {wallet_address}: {error.message}")

        # Nothing was fetched, so none of this wallet's accounts can be refreshed
        if result.tokens_error is not None and result.protocols_error is not None:
            return 0, len(accounts)

        updated = 0
        failed = 0
        for account in accounts:
            category_name = account.category
            if not category_name:
                continue

            category_data = result.categories.get(category_name)
            if category_data is None:
                logger.warning(
                    f"WalletImporter - Category '{category_name}' not found in API response "
                    f"for account {account.id}"
                )
                continue

            try:
                await self._update_category_account(account, category_data, wallet_address)
                updated += 1
            except Exception as e:
                failed += 1
                logger.error(f"WalletImporter - Failed to update account {account.id}: {e}")

        return updated, failed

    async def _update_category_account(
        self,
        account: ProviderAccount,
        category_data: Dict[str, Any],
        wallet_address: str,
    ) -> None:
        category = account.category or ""
        category_value = category_data.get("value") or 0.0
        category_tokens = category_data.get("tokens") or []

        snapshot = AccountSnapshot(
            id=category,
            name=account.name,
            balance=category_value,
            address=wallet_address,
            blockchain=(account.raw_payload or {}).get("blockchain"),
            category=category,
            tokens=category_tokens,
            raw_balance_data=category_data,
        ).model_dump()

        await self.store.upsert_snapshot(account, snapshot)
