from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import ProviderError


@dataclass
class ProviderResponse:
    """Outcome of a provider call: either data or a classified error."""

    success: bool
    data: Any = None
    error: Optional[ProviderError] = None

    @classmethod
    def ok(cls, data: Any) -> "ProviderResponse":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: ProviderError) -> "ProviderResponse":
        return cls(success=False, error=error)


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: float = 10

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is ready to serve requests"""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status"""
        pass


class BalanceProvider(Provider):
    """Provider for wallet holdings across chains and DeFi protocols"""

    @abstractmethod
    async def get_wallet_tokens(self, wallet_address: str) -> ProviderResponse:
        """Get the flat list of tokens directly held by a wallet"""
        pass

    @abstractmethod
    async def get_wallet_protocols(self, wallet_address: str) -> ProviderResponse:
        """Get the DeFi protocol positions held by a wallet"""
        pass
