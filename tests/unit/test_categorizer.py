import pytest

from walletsync.services.categorizer import (
    UNKNOWN_PROTOCOL,
    WALLET_CATEGORY,
    categorize_balances,
    first_present,
    resolve_protocol_name,
    resolve_token_id,
    to_float,
    total_value,
)


def _protocol(name, *items, key="portfolio_item_list", **extra):
    protocol = {key: list(items), **extra}
    if name is not None:
        protocol["name"] = name
    return protocol


def _item(*tokens, key="asset_token_list"):
    return {key: list(tokens)}


def test_empty_inputs_yield_no_categories():
    assert categorize_balances([], []) == {}
    assert categorize_balances(None, None) == {}


def test_token_held_in_protocol_is_not_counted_in_wallet():
    token = {"id": "eth:0xA", "amount": 2, "price": 1000}
    protocols = [_protocol("Aave", _item(dict(token)))]

    categories = categorize_balances([token], protocols)

    assert set(categories) == {"Aave"}
    assert categories["Aave"]["value"] == pytest.approx(2000.0)
    assert categories["Aave"]["tokens"] == [token]


def test_wallet_only_tokens():
    token = {"id": "eth:0xB", "amount": 1, "price": 500}

    categories = categorize_balances([token], [])

    assert categories == {WALLET_CATEGORY: {"value": 500.0, "tokens": [token]}}


def test_malformed_numbers_contribute_zero_but_token_is_kept():
    token = {"chain": "eth", "address": "0xC", "amount": "bad", "price": None}

    categories = categorize_balances([token], [])

    assert resolve_token_id(token) == "eth:0xC"
    assert categories[WALLET_CATEGORY]["value"] == 0.0
    assert categories[WALLET_CATEGORY]["tokens"] == [token]


def test_protocol_without_holdings_still_listed():
    categories = categorize_balances([], [_protocol("Lido")])

    assert categories == {"Lido": {"value": 0.0, "tokens": []}}


def test_protocol_name_fallbacks():
    assert resolve_protocol_name({"name": "GMX", "protocol_name": "Other"}) == "GMX"
    assert resolve_protocol_name({"protocol_name": "Aerodrome"}) == "Aerodrome"
    assert resolve_protocol_name({"name": None}) == UNKNOWN_PROTOCOL
    assert resolve_protocol_name({}) == UNKNOWN_PROTOCOL


def test_same_protocol_name_merges_contributions():
    protocols = [
        _protocol("Aave", _item({"id": "a", "amount": 1, "price": 10})),
        _protocol("Aave", _item({"id": "b", "amount": 2, "price": 10})),
    ]

    categories = categorize_balances([], protocols)

    assert categories["Aave"]["value"] == pytest.approx(30.0)
    assert [t["id"] for t in categories["Aave"]["tokens"]] == ["a", "b"]


def test_token_id_priority():
    assert resolve_token_id({"id": "x", "token_id": "y", "chain": "eth", "address": "0x1"}) == "x"
    assert resolve_token_id({"token_id": "y", "chain": "eth", "address": "0x1"}) == "y"
    assert resolve_token_id({"chain": "eth", "address": "0x1"}) == "eth:0x1"
    assert resolve_token_id({"chain": "eth"}) == "eth:"
    assert resolve_token_id({}) == ":"


def test_tokens_without_identity_still_deduplicate():
    nameless = {"amount": 1, "price": 5}
    protocols = [_protocol("Curve", _item(dict(nameless)))]

    categories = categorize_balances([dict(nameless)], protocols)

    assert WALLET_CATEGORY not in categories
    assert categories["Curve"]["value"] == pytest.approx(5.0)


def test_alternate_item_and_token_keys():
    protocols = [
        _protocol(
            "Uniswap V3",
            _item({"token_id": "t1", "balance": "3", "price_usd": "2.5"}, key="tokens"),
            _item({"id": "t2", "amount": 1, "price": 1}, key="assets"),
            key="portfolio_items",
        )
    ]

    categories = categorize_balances([], protocols)

    assert categories["Uniswap V3"]["value"] == pytest.approx(8.5)
    assert len(categories["Uniswap V3"]["tokens"]) == 2


def test_amount_zero_does_not_fall_back_to_balance():
    token = {"id": "z", "amount": 0, "balance": 100, "price": 1}

    categories = categorize_balances([token], [])

    assert categories[WALLET_CATEGORY]["value"] == 0.0


def test_wallet_suppressed_when_fully_delegated():
    tokens = [{"id": "a", "amount": 1, "price": 1}, {"id": "b", "amount": 1, "price": 1}]
    protocols = [_protocol("Aave", _item({"id": "a"}), _item({"id": "b"}))]

    categories = categorize_balances(tokens, protocols)

    assert WALLET_CATEGORY not in categories


def test_zero_value_wallet_token_keeps_wallet_category():
    token = {"id": "dust", "amount": 0, "price": 0}

    categories = categorize_balances([token], [])

    assert categories[WALLET_CATEGORY] == {"value": 0.0, "tokens": [token]}


def test_conservation_over_distinct_tokens():
    tokens = [
        {"id": "eth", "amount": 1.5, "price": 2000},
        {"id": "usdc", "amount": 100, "price": 1},
        {"id": "aUSDC", "amount": 50, "price": 1},
    ]
    protocols = [
        _protocol("Aave", _item({"id": "aUSDC", "amount": 50, "price": 1})),
        _protocol("Lido", _item({"id": "steth", "amount": 2, "price": 1990})),
    ]

    categories = categorize_balances(tokens, protocols)

    expected = 1.5 * 2000 + 100 + 50 + 2 * 1990
    assert total_value(categories) == pytest.approx(expected)
    assert categories[WALLET_CATEGORY]["value"] == pytest.approx(3100.0)


def test_repeated_runs_are_identical():
    tokens = [{"id": "a", "amount": 1, "price": 3}, {"id": "b", "amount": 2, "price": 4}]
    protocols = [_protocol("GMX", _item({"id": "b", "amount": 2, "price": 4}))]

    assert categorize_balances(tokens, protocols) == categorize_balances(tokens, protocols)


def test_input_records_are_passed_through_unmodified():
    token = {"id": "a", "amount": "1", "price": "2", "symbol": "AAA", "logo_url": "https://x/a.png"}
    snapshot = dict(token)

    categories = categorize_balances([token], [])

    assert categories[WALLET_CATEGORY]["tokens"][0] is token
    assert token == snapshot


def test_non_mapping_records_are_ignored():
    protocols = [None, "junk", _protocol("Aave", "junk", _item(42, {"id": "a", "amount": 1, "price": 1}))]

    categories = categorize_balances([None, 7], protocols)

    assert categories == {"Aave": {"value": 1.0, "tokens": [{"id": "a", "amount": 1, "price": 1}]}}


@pytest.mark.parametrize(
    "raw,expected",
    [(None, 0.0), ("bad", 0.0), ("1.5", 1.5), (2, 2.0), (True, 0.0), ("nan", 0.0), ([], 0.0)],
)
def test_to_float(raw, expected):
    assert to_float(raw) == expected


def test_first_present_skips_none():
    assert first_present({"a": None, "b": 0}, ("a", "b"), 9) == 0
    assert first_present({}, ("a",), 9) == 9


def test_overflowing_value_counts_as_zero():
    token = {"id": "huge", "amount": "1e200", "price": "1e200"}

    categories = categorize_balances([token, {"id": "ok", "amount": 1, "price": 2}], [])

    assert categories[WALLET_CATEGORY]["value"] == 2.0
    assert len(categories[WALLET_CATEGORY]["tokens"]) == 2


def test_explicit_ids_keep_their_type():
    protocols = [_protocol("Aave", _item({"id": 1, "amount": 1, "price": 1}))]

    categories = categorize_balances([{"id": "1", "amount": 3, "price": 1}], protocols)

    assert resolve_token_id({"id": 1}) == 1
    assert resolve_token_id({"id": ["x"]}) == "['x']"
    assert categories[WALLET_CATEGORY]["value"] == 3.0
