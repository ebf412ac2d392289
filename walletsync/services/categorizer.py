"""
Balance categorization.

Turns the two DeBank datasets (flat token list and complex protocol list) into
named categories: one per protocol plus "wallet" for tokens held directly.
A token found inside a protocol is never counted again under "wallet".
"""

from __future__ import annotations

import logging
import math
from collections.abc import Hashable
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set

logger = logging.getLogger(__name__)

WALLET_CATEGORY = "wallet"
UNKNOWN_PROTOCOL = "Unknown Protocol"

# Candidate keys per logical field, first present wins
PROTOCOL_NAME_KEYS = ("name", "protocol_name")
PORTFOLIO_ITEM_KEYS = ("portfolio_item_list", "portfolio_items")
ITEM_TOKEN_KEYS = ("asset_token_list", "tokens", "assets")
TOKEN_ID_KEYS = ("id", "token_id")
AMOUNT_KEYS = ("amount", "balance")
PRICE_KEYS = ("price", "price_usd")


def first_present(record: Mapping[str, Any], keys: Iterable[str], default: Any = None) -> Any:
    """Return the value of the first key present with a non-null value."""
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return default


def to_float(value: Any) -> float:
    """Coerce an upstream numeric field to float; anything unusable is 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        result = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(result):
        return 0.0
    return result


def resolve_token_id(token: Mapping[str, Any]) -> Hashable:
    """
    Explicit id, then token_id, then "chain:address".

    Explicit ids keep their upstream type, so 1 and "1" are different tokens.
    """
    explicit = first_present(token, TOKEN_ID_KEYS)
    if explicit is not None:
        return explicit if isinstance(explicit, Hashable) else str(explicit)
    chain = token.get("chain") or ""
    address = token.get("address") or ""
    return f"{chain}:{address}"


def resolve_protocol_name(protocol: Mapping[str, Any]) -> str:
    return str(first_present(protocol, PROTOCOL_NAME_KEYS, UNKNOWN_PROTOCOL))


def token_usd_value(token: Mapping[str, Any]) -> float:
    amount = to_float(first_present(token, AMOUNT_KEYS, 0))
    price = to_float(first_present(token, PRICE_KEYS, 0))
    value = amount * price
    # Finite factors can still overflow
    if not math.isfinite(value):
        return 0.0
    return value


def _records(value: Any) -> List[Mapping[str, Any]]:
    """Keep only mapping entries of an upstream list."""
    if not isinstance(value, (list, tuple)):
        return []
    records = []
    for entry in value:
        if isinstance(entry, Mapping):
            records.append(entry)
        else:
            logger.debug(f"Skipping non-mapping record: {entry!r}")
    return records


def iter_protocol_tokens(protocol: Mapping[str, Any]) -> Iterable[Mapping[str, Any]]:
    """Yield the token records nested under a protocol's portfolio items."""
    for item in _records(first_present(protocol, PORTFOLIO_ITEM_KEYS, [])):
        yield from _records(first_present(item, ITEM_TOKEN_KEYS, []))


def categorize_balances(
    tokens: Optional[Sequence[Mapping[str, Any]]],
    protocols: Optional[Sequence[Mapping[str, Any]]],
) -> Dict[str, Dict[str, Any]]:
    """
    Group wallet holdings into categories.

    Args:
        tokens: Token records from the flat token list
        protocols: Protocol records from the complex protocol list

    Returns:
        {"category_name": {"value": float, "tokens": [token records]}}.
        Protocols appear even when they hold nothing; "wallet" appears only
        when it has value or at least one token.
    """
    categories: Dict[str, Dict[str, Any]] = {}
    claimed_ids: Set[Hashable] = set()

    # Protocols first, so the wallet pass can skip tokens they already hold
    for protocol in _records(protocols):
        protocol_name = resolve_protocol_name(protocol)
        category = categories.setdefault(protocol_name, {"value": 0.0, "tokens": []})

        for asset in iter_protocol_tokens(protocol):
            claimed_ids.add(resolve_token_id(asset))
            category["value"] += token_usd_value(asset)
            category["tokens"].append(asset)

    wallet_value = 0.0
    wallet_tokens: List[Mapping[str, Any]] = []

    for token in _records(tokens):
        if resolve_token_id(token) in claimed_ids:
            continue
        wallet_value += token_usd_value(token)
        wallet_tokens.append(token)

    if wallet_value > 0 or wallet_tokens:
        categories[WALLET_CATEGORY] = {"value": wallet_value, "tokens": wallet_tokens}

    return categories


def total_value(categories: Mapping[str, Mapping[str, Any]]) -> float:
    """Sum of category values."""
    return sum(category.get("value", 0.0) for category in categories.values())
