"""
Categorized balance lookup.

Fetches the token list and the protocol list for a wallet and categorizes
them. A failed fetch only empties its own dataset: the other one is still
categorized and the failure is reported per source.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..providers.base import BalanceProvider, ProviderResponse
from ..providers.errors import ProviderError
from .categorizer import categorize_balances

logger = logging.getLogger(__name__)


@dataclass
class CategorizedBalancesResult:
    """Categories for one wallet plus any per-source fetch failure."""
    wallet_address: str
    categories: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    tokens_error: Optional[ProviderError] = None
    protocols_error: Optional[ProviderError] = None

    @property
    def success(self) -> bool:
        # Categorization never blocks on a partial fetch failure
        return True

    @property
    def partial(self) -> bool:
        return self.tokens_error is not None or self.protocols_error is not None

    @property
    def errors(self) -> Dict[str, ProviderError]:
        errors: Dict[str, ProviderError] = {}
        if self.tokens_error is not None:
            errors["tokens"] = self.tokens_error
        if self.protocols_error is not None:
            errors["protocols"] = self.protocols_error
        return errors


def _dataset(response: ProviderResponse, source: str, wallet_address: str) -> List[Any]:
    """Empty-on-failure policy for one fetched dataset."""
    if not response.success:
        error = response.error
        logger.warning(
            f"{source} fetch failed for {wallet_address}, categorizing without it: "
            f"{error.kind.value if error else 'unknown'} {error.message if error else ''}"
        )
        return []
    if response.data is None:
        return []
    if not isinstance(response.data, list):
        logger.warning(
            f"{source} fetch for {wallet_address} returned {type(response.data).__name__}, expected list"
        )
        return []
    return response.data


async def get_categorized_balances(
    provider: BalanceProvider,
    wallet_address: str,
) -> CategorizedBalancesResult:
    """
    Get categorized balances for a wallet address.

    Groups tokens into "wallet" for direct holdings and one category per
    protocol, e.g. {"wallet": {"value": 1000.0, "tokens": [...]},
    "Aave": {"value": 500.0, "tokens": [...]}}.

    Args:
        provider: Balance provider to fetch from
        wallet_address: Wallet address to categorize

    Returns:
        CategorizedBalancesResult with categories and per-source errors
    """
    if not wallet_address or not wallet_address.strip():
        return CategorizedBalancesResult(wallet_address=wallet_address or "")

    tokens_response = await provider.get_wallet_tokens(wallet_address)
    protocols_response = await provider.get_wallet_protocols(wallet_address)

    tokens = _dataset(tokens_response, "Token", wallet_address)
    protocols = _dataset(protocols_response, "Protocol", wallet_address)

    categories = categorize_balances(tokens, protocols)
    logger.info(
        f"Categorized {wallet_address}: {len(categories)} categories "
        f"from {len(tokens)} tokens and {len(protocols)} protocols"
    )

    return CategorizedBalancesResult(
        wallet_address=wallet_address,
        categories=categories,
        tokens_error=None if tokens_response.success else tokens_response.error,
        protocols_error=None if protocols_response.success else protocols_response.error,
    )
