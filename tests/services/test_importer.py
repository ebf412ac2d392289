import copy

import pytest

from walletsync.db.account_store import InMemoryAccountStore, WalletItem
from walletsync.providers.errors import ApiErrorKind
from walletsync.services.importer import WalletImporter, wallet_addresses
from walletsync.services.wallet_linker import WalletLinker

from fakes import FakeBalanceProvider, PROTOCOLS, TOKENS, WALLET

OTHER_WALLET = "0xfeedfeedfeedfeedfeedfeedfeedfeedfeedfeed"


async def _linked_store(provider, *addresses):
    store = InMemoryAccountStore()
    item = store.add_item(WalletItem(id="item-1", family_id="family-1", api_key="key"))
    for address in addresses or (WALLET,):
        await WalletLinker(item, address=address, blockchain="ethereum", store=store, provider=provider).link()
    return store, item


@pytest.mark.asyncio
async def test_import_refreshes_linked_categories():
    provider = FakeBalanceProvider(tokens=copy.deepcopy(TOKENS), protocols=PROTOCOLS)
    store, item = await _linked_store(provider)

    provider.tokens[WALLET][0]["price"] = 1500
    result = await WalletImporter(item, store=store, provider=provider).import_balances()

    assert result.success
    assert result.accounts_updated == 3
    assert result.accounts_failed == 0
    assert result.transactions_imported == 0

    wallet = next(a for a in store.provider_accounts.values() if a.account_id == "wallet")
    assert wallet.current_balance == pytest.approx(3000.0)
    assert wallet.raw_payload["address"] == WALLET
    assert wallet.raw_payload["blockchain"] == "ethereum"
    assert store.accounts[wallet.linked_account_id].balance == pytest.approx(3000.0)


@pytest.mark.asyncio
async def test_import_without_linked_accounts_is_a_no_op():
    store = InMemoryAccountStore()
    item = store.add_item(WalletItem(id="item-1", family_id="family-1", api_key="key"))
    provider = FakeBalanceProvider()

    result = await WalletImporter(item, store=store, provider=provider).import_balances()

    assert result.success
    assert result.accounts_updated == 0
    assert provider.calls == []


@pytest.mark.asyncio
async def test_import_without_addresses_fails():
    provider = FakeBalanceProvider(tokens=TOKENS, protocols=PROTOCOLS)
    store, item = await _linked_store(provider)
    for account in store.provider_accounts.values():
        account.raw_payload = {}

    result = await WalletImporter(item, store=store, provider=provider).import_balances()

    assert not result.success
    assert result.error == "No wallet addresses found"


@pytest.mark.asyncio
async def test_missing_category_is_skipped_not_failed():
    provider = FakeBalanceProvider(tokens=TOKENS, protocols=PROTOCOLS)
    store, item = await _linked_store(provider)

    provider.protocols = {WALLET: [PROTOCOLS[WALLET][0]]}
    result = await WalletImporter(item, store=store, provider=provider).import_balances()

    assert result.success
    assert result.accounts_updated == 2
    assert result.accounts_failed == 0


@pytest.mark.asyncio
async def test_update_failure_is_counted(monkeypatch):
    provider = FakeBalanceProvider(tokens=TOKENS, protocols=PROTOCOLS)
    store, item = await _linked_store(provider)
    original_upsert = store.upsert_snapshot

    async def _flaky_upsert(account, snapshot):
        if account.account_id == "GMX":
            raise RuntimeError("disk full")
        await original_upsert(account, snapshot)

    monkeypatch.setattr(store, "upsert_snapshot", _flaky_upsert)

    result = await WalletImporter(item, store=store, provider=provider).import_balances()

    assert not result.success
    assert result.accounts_updated == 2
    assert result.accounts_failed == 1


@pytest.mark.asyncio
async def test_each_wallet_only_updates_its_own_accounts():
    tokens = {
        WALLET: TOKENS[WALLET],
        OTHER_WALLET: [{"id": "eth", "chain": "eth", "amount": 1, "price": 1000}],
    }
    provider = FakeBalanceProvider(tokens=tokens)
    store, item = await _linked_store(provider, WALLET, OTHER_WALLET)

    assert wallet_addresses(await store.linked_accounts("item-1")) == [WALLET, OTHER_WALLET]

    result = await WalletImporter(item, store=store, provider=provider).import_balances()

    assert result.accounts_updated == 2
    balances = {
        a.raw_payload["address"]: a.current_balance for a in store.provider_accounts.values()
    }
    assert balances == {WALLET: pytest.approx(2500.0), OTHER_WALLET: pytest.approx(1000.0)}


@pytest.mark.asyncio
async def test_fetch_failure_still_updates_from_partial_data():
    provider = FakeBalanceProvider(tokens=TOKENS, protocols=PROTOCOLS)
    store, item = await _linked_store(provider)

    provider.protocol_error = ApiErrorKind.RATE_LIMITED
    result = await WalletImporter(item, store=store, provider=provider).import_balances()

    # Only the wallet category is still present in the degraded response
    assert result.success
    assert result.accounts_updated == 1


@pytest.mark.asyncio
async def test_both_sources_failing_counts_accounts_as_failed():
    provider = FakeBalanceProvider(tokens=TOKENS, protocols=PROTOCOLS)
    store, item = await _linked_store(provider)

    provider.token_error = ApiErrorKind.UNAUTHORIZED
    provider.protocol_error = ApiErrorKind.UNAUTHORIZED
    result = await WalletImporter(item, store=store, provider=provider).import_balances()

    assert not result.success
    assert result.accounts_updated == 0
    assert result.accounts_failed == 3
    assert set(result.errors) == {f"{WALLET}:tokens", f"{WALLET}:protocols"}
    assert result.errors[f"{WALLET}:tokens"].startswith("unauthorized")


@pytest.mark.asyncio
async def test_partial_fetch_failure_is_reported_per_source():
    provider = FakeBalanceProvider(tokens=TOKENS, protocols=PROTOCOLS)
    store, item = await _linked_store(provider)

    provider.protocol_error = ApiErrorKind.SERVER_ERROR
    result = await WalletImporter(item, store=store, provider=provider).import_balances()

    assert list(result.errors) == [f"{WALLET}:protocols"]


@pytest.mark.asyncio
async def test_one_wallet_raising_does_not_stop_the_others(monkeypatch):
    tokens = {
        WALLET: TOKENS[WALLET],
        OTHER_WALLET: [{"id": "eth", "chain": "eth", "amount": 1, "price": 1000}],
    }
    provider = FakeBalanceProvider(tokens=tokens)
    store, item = await _linked_store(provider, WALLET, OTHER_WALLET)

    original_get_tokens = provider.get_wallet_tokens

    async def _exploding_tokens(wallet_address):
        if wallet_address == WALLET:
            raise RuntimeError("decode failed")
        return await original_get_tokens(wallet_address)

    monkeypatch.setattr(provider, "get_wallet_tokens", _exploding_tokens)
    provider.tokens[OTHER_WALLET][0]["price"] = 1200
    monkeypatch.setattr(WalletItem, "debank_provider", lambda self: provider)

    result = await WalletImporter(item, store=store).import_balances()

    assert not result.success
    assert result.accounts_failed == 1
    assert result.accounts_updated == 1
    assert result.errors == {f"{WALLET}:fetch": "decode failed"}
    other = next(a for a in store.provider_accounts.values() if a.raw_payload["address"] == OTHER_WALLET)
    assert other.current_balance == pytest.approx(1200.0)
    # Provider built from the item credentials is closed after the run
    assert provider.closed
