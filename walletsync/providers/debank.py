"""
DeBank API Provider

Fetches wallet holdings from the DeBank OpenAPI:
- Tokens held directly by a wallet across all chains
- Complex protocol positions (lending, liquidity pools, staking, ...)

Docs: https://docs.cloud.debank.com/en/readme/api-pro-reference/user
"""

import json
import logging
from typing import Any, Dict, Optional

import httpx

from ..config import settings
from .base import BalanceProvider, ProviderResponse
from .errors import (
    ApiErrorKind,
    DebankError,
    STATUS_MESSAGES,
    STATUS_REASONS,
    classify_status,
)

logger = logging.getLogger(__name__)

USER_AGENT = "walletsync DeBank Client"

TOKEN_LIST_PATH = "/v1/user/all_token_list"
PROTOCOL_LIST_PATH = "/v1/user/all_complex_protocol_list"


class DebankProvider(BalanceProvider):
    """DeBank API provider for wallet token and protocol balances."""

    name = "debank"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.debank_api_key
        self.base_url = (base_url or settings.debank_base_url).rstrip("/")
        self.timeout_s = timeout_s or settings.debank_timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "DebankProvider":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_s,
                headers=self._build_headers(),
                transport=self._transport,
            )
        return self._client

    def _build_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }

    async def ready(self) -> bool:
        return bool(self.api_key) and settings.enable_debank

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {
                "status": "unavailable",
                "reason": "API key not configured or provider disabled"
            }
        return {"status": "healthy", "base_url": self.base_url}

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def get_wallet_tokens(self, wallet_address: str) -> ProviderResponse:
        """
        Get all token balances for a wallet address across all chains.

        Args:
            wallet_address: Wallet address to fetch balances for

        Returns:
            ProviderResponse with the list of token records
        """
        if not wallet_address or not wallet_address.strip():
            return ProviderResponse.ok([])
        return await self._get(TOKEN_LIST_PATH, {"id": wallet_address})

    async def get_wallet_protocols(self, wallet_address: str) -> ProviderResponse:
        """
        Get all protocol positions for a wallet address.

        Includes tokens held in DeFi protocols like Aave, GMX, Aerodrome, etc.

        Args:
            wallet_address: Wallet address to fetch protocol positions for

        Returns:
            ProviderResponse with the list of protocol records
        """
        if not wallet_address or not wallet_address.strip():
            return ProviderResponse.ok([])
        return await self._get(PROTOCOL_LIST_PATH, {"id": wallet_address})

    async def _get(self, path: str, params: Dict[str, Any]) -> ProviderResponse:
        client = self._get_client()
        try:
            response = await client.get(path, params=params)
        except httpx.TimeoutException as e:
            logger.error(f"DeBank API: GET {path} timed out after {self.timeout_s}s: {e!r}")
            return ProviderResponse.fail(DebankError(
                f"DeBank API request timed out: {e}",
                kind=ApiErrorKind.TRANSPORT_ERROR,
                source=path,
            ))
        except httpx.RequestError as e:
            logger.error(f"DeBank API: GET {path} failed: {e.__class__.__name__}: {e}")
            return ProviderResponse.fail(DebankError(
                f"DeBank API request failed: {e}",
                kind=ApiErrorKind.TRANSPORT_ERROR,
                source=path,
            ))

        return self._handle_response(path, response)

    def _handle_response(self, path: str, response: httpx.Response) -> ProviderResponse:
        """Map the DeBank HTTP status code to data or a classified error."""
        if response.status_code == 200:
            try:
                return ProviderResponse.ok(response.json())
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                logger.error(f"DeBank API: 200 with undecodable body on {path}: {e}")
                return ProviderResponse.fail(DebankError(
                    "DeBank: Response body is not valid JSON",
                    kind=ApiErrorKind.UNEXPECTED,
                    status_code=200,
                    source=path,
                ))

        kind = classify_status(response.status_code)
        self._log_api_error(response, STATUS_REASONS[kind])
        return ProviderResponse.fail(DebankError(
            f"DeBank: {STATUS_MESSAGES[kind]}",
            kind=kind,
            status_code=response.status_code,
            source=path,
        ))

    def _log_api_error(self, response: httpx.Response, reason: str) -> None:
        logger.error(f"DeBank API: {response.status_code} {reason} - {response.text}")


# Singleton instance
_provider_instance: Optional[DebankProvider] = None


def get_debank_provider() -> DebankProvider:
    """Get the singleton DeBank provider instance."""
    global _provider_instance
    if _provider_instance is None:
        _provider_instance = DebankProvider()
    return _provider_instance
