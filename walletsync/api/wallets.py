import logging

from fastapi import APIRouter, Depends, HTTPException

from ..db import InMemoryAccountStore, get_account_store
from ..providers.debank import DebankProvider, get_debank_provider
from ..services.categorized_balances import get_categorized_balances
from ..services.categorizer import total_value
from ..services.importer import WalletImporter
from ..services.wallet_linker import WalletLinker
from ..types import (
    CategorizedBalancesResponse,
    CategoryBalance,
    FetchError,
    LinkWalletRequest,
    LinkWalletResponse,
    SyncResponse,
)

router = APIRouter()
_logger = logging.getLogger(__name__)


@router.get("/wallets/{address}/categories")
async def get_wallet_categories(
    address: str,
    provider: DebankProvider = Depends(get_debank_provider),
) -> CategorizedBalancesResponse:
    """Get a wallet's balances grouped into wallet and protocol categories"""

    if not address.strip():
        raise HTTPException(status_code=400, detail="Wallet address is required")

    if not await provider.ready():
        raise HTTPException(status_code=503, detail="DeBank provider not configured")

    result = await get_categorized_balances(provider, address)

    return CategorizedBalancesResponse(
        success=result.success,
        address=address,
        total_value_usd=total_value(result.categories),
        categories={
            name: CategoryBalance(value=data["value"], tokens=list(data["tokens"]))
            for name, data in result.categories.items()
        },
        partial=result.partial,
        errors={
            source: FetchError(kind=error.kind.value, message=error.message, status_code=error.status_code)
            for source, error in result.errors.items()
        },
    )


def _item_or_404(store: InMemoryAccountStore, item_id: str):
    item = store.get_item(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail=f"Unknown wallet item '{item_id}'")
    if not item.credentials_configured:
        raise HTTPException(status_code=503, detail="DeBank credentials not configured for item")
    return item


@router.post("/wallets/link")
async def link_wallet(
    request: LinkWalletRequest,
    store: InMemoryAccountStore = Depends(get_account_store),
) -> LinkWalletResponse:
    """Create one account per balance category of a wallet"""

    item = _item_or_404(store, request.item_id)
    linker = WalletLinker(
        item,
        address=request.address.strip(),
        blockchain=request.blockchain,
        store=store,
    )
    result = await linker.link()
    _logger.info(f"Linked {result.created_count} categories for item {item.id}")
    return LinkWalletResponse(success=result.success, created_count=result.created_count, errors=result.errors)


@router.post("/items/{item_id}/sync")
async def sync_item(
    item_id: str,
    store: InMemoryAccountStore = Depends(get_account_store),
) -> SyncResponse:
    """Refresh balances of every account linked under an item"""

    item = _item_or_404(store, item_id)
    result = await WalletImporter(item, store=store).import_balances()
    return SyncResponse(
        success=result.success,
        accounts_updated=result.accounts_updated,
        accounts_failed=result.accounts_failed,
        transactions_imported=result.transactions_imported,
        error=result.error,
        errors=result.errors,
    )
