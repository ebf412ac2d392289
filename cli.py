#!/usr/bin/env python3
"""Simple CLI for inspecting wallet balance categories locally"""

import argparse
import asyncio
import json
from typing import Any, Dict

from walletsync.logging_config import setup_logging
from walletsync.providers.base import ProviderResponse
from walletsync.providers.debank import DebankProvider
from walletsync.services.categorized_balances import get_categorized_balances
from walletsync.services.categorizer import resolve_token_id, total_value


def print_categories(address: str, categories: Dict[str, Dict[str, Any]]) -> None:
    """Pretty print categorized balances"""
    if not categories:
        print("❌ No categories found for wallet")
        return

    print("\n📊 Balance Categories")
    print("=" * 50)
    print(f"Address: {address}")
    print(f"Total Value: ${total_value(categories):,.2f} USD")
    print(f"Categories: {len(categories)}")
    print("-" * 50)

    ordered = sorted(categories.items(), key=lambda kv: kv[1]["value"], reverse=True)
    for i, (name, data) in enumerate(ordered, 1):
        print(f"{i:2d}. {name:<24} ${data['value']:>14,.2f}  ({len(data['tokens'])} tokens)")
        for token in data["tokens"]:
            symbol = token.get("symbol") or token.get("optimized_symbol") or resolve_token_id(token)
            print(f"      - {symbol}")


def print_response(label: str, response: ProviderResponse) -> None:
    if not response.success:
        print(f"❌ {label} fetch failed ({response.error.kind.value}): {response.error.message}")
        return
    print(json.dumps(response.data, indent=2, default=str))


async def cli_categories(address: str):
    """CLI command to categorize a wallet's balances"""
    print(f"🔍 Fetching categorized balances for {address}...")

    async with DebankProvider() as provider:
        if not await provider.ready():
            print("❌ DeBank provider not configured (set DEBANK_API_KEY)")
            return
        result = await get_categorized_balances(provider, address)

    for source, error in result.errors.items():
        print(f"⚠️  {source} fetch failed ({error.kind.value}): {error.message}")
    print_categories(address, result.categories)


async def cli_raw(address: str, source: str):
    """CLI command to dump a raw DeBank dataset"""
    async with DebankProvider() as provider:
        if source == "tokens":
            response = await provider.get_wallet_tokens(address)
        else:
            response = await provider.get_wallet_protocols(address)
    print_response(source, response)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Wallet categories CLI")
    parser.add_argument("--log-level", help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command")

    categories_parser = subparsers.add_parser("categories", help="Group wallet balances by wallet and protocol")
    categories_parser.add_argument("address", help="Wallet address")

    tokens_parser = subparsers.add_parser("tokens", help="Dump the raw token list")
    tokens_parser.add_argument("address", help="Wallet address")

    protocols_parser = subparsers.add_parser("protocols", help="Dump the raw protocol positions")
    protocols_parser.add_argument("address", help="Wallet address")

    return parser


async def main():
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(args.log_level)

    if not args.command:
        parser.print_help()
        return

    command = args.command.lower()

    if command == "categories":
        await cli_categories(args.address)

    elif command in ["tokens", "protocols"]:
        await cli_raw(args.address, command)

    else:
        print(f"❌ Unknown command: {command}")
        parser.print_help()


if __name__ == "__main__":
    asyncio.run(main())
