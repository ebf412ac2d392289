"""Service layer helpers"""

from .categorized_balances import CategorizedBalancesResult, get_categorized_balances
from .categorizer import UNKNOWN_PROTOCOL, WALLET_CATEGORY, categorize_balances
from .importer import ImportResult, WalletImporter
from .wallet_linker import LinkResult, WalletLinker, build_account_name

__all__ = [
    "CategorizedBalancesResult",
    "ImportResult",
    "LinkResult",
    "UNKNOWN_PROTOCOL",
    "WALLET_CATEGORY",
    "WalletImporter",
    "WalletLinker",
    "build_account_name",
    "categorize_balances",
    "get_categorized_balances",
]
