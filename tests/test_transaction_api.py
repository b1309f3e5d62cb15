"""
Unit tests for the typed accessors over the transaction service.
"""
import asyncio
import json

import pytest

from conftest import (
    SAFE_ADDRESS,
    TX_SERVICE_URL,
    FakeNetworkService,
    FakeRedis,
    make_settings,
    multisig_payload,
    page_payload,
)
from core.cache import CacheRouter, RedisCacheService
from core.exceptions import InvalidAddressError, ValidationError
from core.schema import Backbone, MultisigTransaction, UnknownTransaction
from services.factory import build_transactions_service

BALANCES_URL = f"{TX_SERVICE_URL}/api/v1/safes/{SAFE_ADDRESS}/balances/usd/"
ABOUT_URL = f"{TX_SERVICE_URL}/api/v1/about"
HISTORY_URL = f"{TX_SERVICE_URL}/api/v1/safes/{SAFE_ADDRESS}/all-transactions/"

BALANCES = [
    {"tokenAddress": None, "token": None, "balance": "1000000000000000000", "fiatBalance": "2500.5"},
    {
        "tokenAddress": "0x" + "5" * 40,
        "token": {"name": "Token", "symbol": "TKN", "decimals": 6, "logoUri": None},
        "balance": "42",
    },
]


def build_api(routes, client=None, **settings):
    network = FakeNetworkService(routes)
    cache = RedisCacheService(client if client is not None else FakeRedis())
    service = build_transactions_service(make_settings(**settings), network=network, cache=cache)
    return service.transaction_api, network


def test_injected_empty_cache_is_used():
    """Test a caller-supplied cache is wired in even while it holds no entries."""
    cache = RedisCacheService(FakeRedis())
    service = build_transactions_service(make_settings(), network=FakeNetworkService(), cache=cache)

    assert service.transaction_api.data_source.cache is cache


def test_default_cache_is_redis():
    """Test the service caches in Redis when no cache is supplied."""
    service = build_transactions_service(
        make_settings(redis_url="redis://cache.test:6379/1"), network=FakeNetworkService()
    )

    assert isinstance(service.transaction_api.data_source.cache, RedisCacheService)

def test_get_balances():
    """Test balances are validated and returned in upstream order."""
    api, network = build_api({BALANCES_URL: BALANCES})

    balances = asyncio.run(api.get_balances(SAFE_ADDRESS))

    assert [b.balance for b in balances] == ["1000000000000000000", "42"]
    assert balances[0].token is None
    assert balances[1].token.decimals == 6
    assert network.calls == [(BALANCES_URL, {"trusted": False, "excludeSpam": True})]


def test_get_balances_reports_every_invalid_element():
    """Test one error lists the violations of all invalid elements, in array order."""
    payload = [BALANCES[0], {"tokenAddress": None}, {"balance": "not-a-number"}]
    api, _ = build_api({BALANCES_URL: payload})

    with pytest.raises(ValidationError) as exc_info:
        asyncio.run(api.get_balances(SAFE_ADDRESS))

    paths = [violation.path for violation in exc_info.value.violations]
    assert paths == ["$[1]", "$[2].balance"]


def test_get_balances_rejects_non_array():
    """Test a non-array payload is a validation failure."""
    api, _ = build_api({BALANCES_URL: {"detail": "oops"}})
    with pytest.raises(ValidationError):
        asyncio.run(api.get_balances(SAFE_ADDRESS))


def test_get_balances_default_filters_share_cache_key():
    """Test omitted filters and explicit upstream defaults hit the same entry."""
    api, network = build_api({BALANCES_URL: BALANCES})

    asyncio.run(api.get_balances(SAFE_ADDRESS))
    asyncio.run(api.get_balances(SAFE_ADDRESS, trusted=False, exclude_spam=True))
    assert network.calls_to(BALANCES_URL) == 1

    asyncio.run(api.get_balances(SAFE_ADDRESS, trusted=True))
    assert network.calls_to(BALANCES_URL) == 2


def test_get_balances_invalid_address():
    """Test malformed addresses are rejected before any fetch."""
    api, network = build_api({})
    with pytest.raises(InvalidAddressError):
        asyncio.run(api.get_balances("0x1234"))
    assert network.calls == []


def test_get_backbone_from_cache():
    """Test a cached backbone is served with zero upstream calls."""
    client = FakeRedis()
    client.store[CacheRouter.backbone_key("1")] = json.dumps({"chainId": "1", "name": "Mainnet"})
    api, network = build_api({}, client=client)

    backbone = asyncio.run(api.get_backbone())

    assert isinstance(backbone, Backbone)
    assert backbone.name == "Mainnet"
    assert network.calls == []


def test_get_backbone_is_frozen_and_defaults_chain():
    """Test the snapshot is immutable and takes the accessor's chain when omitted."""
    api, _ = build_api({ABOUT_URL: {"name": "Safe Transaction Service", "version": "5.0.0"}})

    backbone = asyncio.run(api.get_backbone())

    assert backbone.chain_id == "1"
    with pytest.raises(Exception):
        backbone.name = "changed"


def test_validation_failure_keeps_cached_payload():
    """Test the raw payload stays cached after a validation failure by default."""
    client = FakeRedis()
    api, _ = build_api({ABOUT_URL: {"version": "5.0.0"}}, client=client)

    with pytest.raises(ValidationError):
        asyncio.run(api.get_backbone())
    assert CacheRouter.backbone_key("1") in client.store


def test_validation_failure_can_invalidate_cache():
    """Test the configurable policy drops the cached payload."""
    client = FakeRedis()
    api, _ = build_api(
        {ABOUT_URL: {"version": "5.0.0"}}, client=client, invalidate_cache_on_validation_error=True
    )

    with pytest.raises(ValidationError):
        asyncio.run(api.get_backbone())
    assert CacheRouter.backbone_key("1") not in client.store


def test_get_transaction_history_validates_by_type():
    """Test items are validated per txType and unknown kinds are kept."""
    payload = page_payload([
        multisig_payload(nonce=1, safe_tx_hash="0x" + "aa" * 32, executed=True),
        {"txType": "SOMETHING_NEW", "to": None},
    ])
    api, _ = build_api({HISTORY_URL: payload})

    page = asyncio.run(api.get_transaction_history(SAFE_ADDRESS, limit=20, offset=0))

    assert isinstance(page.results[0], MultisigTransaction)
    assert isinstance(page.results[1], UnknownTransaction)
    assert page.count == 2


def test_get_transaction_history_keeps_records_without_type():
    """Test a record with no txType is kept as an unknown record instead of failing the page."""
    payload = page_payload([{"to": None, "txHash": "0x" + "07" * 32}])
    api, _ = build_api({HISTORY_URL: payload})

    page = asyncio.run(api.get_transaction_history(SAFE_ADDRESS, limit=20, offset=0))

    [record] = page.results
    assert isinstance(record, UnknownTransaction)
    assert record.tx_type is None



def test_get_transaction_history_reports_item_paths():
    """Test item violations are located inside the page."""
    broken = multisig_payload(nonce=1, safe_tx_hash="0x" + "aa" * 32)
    del broken["safeTxHash"]
    api, _ = build_api({HISTORY_URL: page_payload([broken])})

    with pytest.raises(ValidationError) as exc_info:
        asyncio.run(api.get_transaction_history(SAFE_ADDRESS))

    assert exc_info.value.violations[0].path == "$.results[0]"
