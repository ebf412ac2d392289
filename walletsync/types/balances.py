from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class CategoryBalance(BaseModel):
    value: float = Field(default=0.0, description="Total USD value of the category")
    tokens: List[Dict[str, Any]] = Field(default_factory=list, description="Token records as returned upstream")


class FetchError(BaseModel):
    kind: str = Field(description="Error classification")
    message: str = Field(description="Human readable error")
    status_code: Optional[int] = Field(default=None, description="Upstream HTTP status, if any")


class CategorizedBalancesResponse(BaseModel):
    success: bool
    address: str = Field(description="Wallet address")
    total_value_usd: float = Field(default=0.0, description="Sum of all category values")
    categories: Dict[str, CategoryBalance] = Field(default_factory=dict)
    partial: bool = Field(default=False, description="Whether a source failed and was treated as empty")
    errors: Dict[str, FetchError] = Field(default_factory=dict, description="Fetch failures keyed by source")


class AccountSnapshot(BaseModel):
    """Balance snapshot stored on a provider account after link or sync."""
    id: str
    name: str
    balance: float
    currency: str = "USD"
    address: Optional[str] = None
    blockchain: Optional[str] = None
    category: str
    tokens: List[Dict[str, Any]] = Field(default_factory=list)
    raw_balance_data: Dict[str, Any] = Field(default_factory=dict)


class LinkWalletRequest(BaseModel):
    item_id: str = Field(description="Wallet connection to link under")
    address: str = Field(min_length=1, description="Wallet address to link")
    blockchain: Optional[str] = Field(default=None, description="Network label kept with the snapshot")


class LinkWalletResponse(BaseModel):
    success: bool
    created_count: int = 0
    errors: List[str] = Field(default_factory=list)


class SyncResponse(BaseModel):
    success: bool
    accounts_updated: int = 0
    accounts_failed: int = 0
    transactions_imported: int = 0
    error: Optional[str] = None
    errors: Dict[str, str] = Field(default_factory=dict, description="Fetch failures keyed by \"<address>:<source>\"")
