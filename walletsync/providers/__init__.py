from .base import BalanceProvider, Provider, ProviderResponse
from .debank import DebankProvider, get_debank_provider
from .errors import ApiErrorKind, DebankError, ProviderError, classify_status

__all__ = [
    "ApiErrorKind",
    "BalanceProvider",
    "DebankError",
    "DebankProvider",
    "Provider",
    "ProviderError",
    "ProviderResponse",
    "classify_status",
    "get_debank_provider",
]
