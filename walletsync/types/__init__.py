from .balances import (
    AccountSnapshot,
    CategorizedBalancesResponse,
    CategoryBalance,
    FetchError,
    LinkWalletRequest,
    LinkWalletResponse,
    SyncResponse,
)

__all__ = [
    "AccountSnapshot",
    "CategorizedBalancesResponse",
    "CategoryBalance",
    "FetchError",
    "LinkWalletRequest",
    "LinkWalletResponse",
    "SyncResponse",
]
