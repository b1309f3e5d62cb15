"""
Shared fixtures: an in-memory upstream and payload builders.
"""
import asyncio
import copy
from typing import Any, Dict, List, Optional

import pytest

from core.cache import RedisCacheService
from core.config import Settings
from core.exceptions import FetchError
from services.factory import build_transactions_service

TX_SERVICE_URL = "https://tx.test"
SWAPS_URL = "https://swaps.test"

# Digit-only addresses are their own EIP-55 checksum
SAFE_ADDRESS = "0x" + "1" * 40
OWNER_1 = "0x" + "2" * 40
OWNER_2 = "0x" + "3" * 40
RECIPIENT = "0x" + "4" * 40
TOKEN_ADDRESS = "0x" + "5" * 40
SETTLEMENT_CONTRACT = "0x9008D19f58AAbD9eD0D60971565AA8510560ab41"


class FakeNetworkService:
    """Serves canned JSON by URL and records every call."""

    def __init__(self, routes: Optional[Dict[str, Any]] = None, delay: float = 0.0):
        self.routes: Dict[str, Any] = dict(routes or {})
        self.delay = delay
        self.calls: List[tuple] = []

    async def get(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        self.calls.append((url, params))
        if self.delay:
            await asyncio.sleep(self.delay)
        if url not in self.routes:
            raise FetchError(f"HTTP 404 for {url}", url=url, status_code=404)
        response = self.routes[url]
        if isinstance(response, Exception):
            raise response
        return copy.deepcopy(response)

    def calls_to(self, url: str) -> int:
        return sum(1 for called, _ in self.calls if called == url)


class FakeRedis:
    """Async stand-in for a Redis client: string values with recorded TTLs."""

    def __init__(self):
        self.store: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}

    async def get(self, key: str) -> Optional[str]:
        return self.store.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                self.ttls.pop(key, None)
                removed += 1
        return removed


def make_cache() -> RedisCacheService:
    return RedisCacheService(FakeRedis())


def make_settings(**overrides) -> Settings:
    values = {
        "chain_id": "1",
        "transaction_service_url": TX_SERVICE_URL,
        "swaps_api_url": SWAPS_URL,
        "swaps_explorer_url": "https://explorer.test",
        "cache_ttl_seconds": 60,
        "default_page_size": 20,
        "max_page_size": 100,
    }
    values.update(overrides)
    return Settings(**values)


def safe_payload(nonce: int = 5, owners: Optional[List[str]] = None) -> Dict[str, Any]:
    return {
        "address": SAFE_ADDRESS,
        "nonce": nonce,
        "threshold": 2,
        "owners": owners or [OWNER_1, OWNER_2],
        "masterCopy": None,
        "modules": [],
        "fallbackHandler": None,
        "guard": None,
        "version": "1.3.0",
    }


def multisig_payload(
    nonce: int,
    safe_tx_hash: str,
    submission_date: str = "2024-01-02T10:00:00Z",
    to: str = RECIPIENT,
    value: str = "0",
    data: Optional[str] = None,
    data_decoded: Optional[Dict[str, Any]] = None,
    executed: bool = False,
    confirmations: Optional[List[str]] = None,
) -> Dict[str, Any]:
    return {
        "txType": "MULTISIG_TRANSACTION",
        "safe": SAFE_ADDRESS,
        "to": to,
        "value": value,
        "data": data,
        "dataDecoded": data_decoded,
        "operation": 0,
        "nonce": nonce,
        "executionDate": "2024-01-02T12:00:00Z" if executed else None,
        "submissionDate": submission_date,
        "transactionHash": "0x" + "ab" * 32 if executed else None,
        "safeTxHash": safe_tx_hash,
        "isExecuted": executed,
        "isSuccessful": True if executed else None,
        "confirmationsRequired": 2,
        "confirmations": [
            {"owner": owner, "submissionDate": submission_date, "signature": "0x"}
            for owner in (confirmations or [])
        ],
        "trusted": True,
    }


def transfer_payload(
    transfer_id: str,
    sender: str,
    recipient: str,
    value: str = "1000",
    execution_date: str = "2024-01-02T10:00:00Z",
    transfer_type: str = "ETHER_TRANSFER",
) -> Dict[str, Any]:
    return {
        "type": transfer_type,
        "executionDate": execution_date,
        "transactionHash": "0x" + "cd" * 32,
        "to": recipient,
        "from": sender,
        "value": value,
        "tokenId": None,
        "tokenAddress": None,
        "tokenInfo": None,
        "transferId": transfer_id,
    }


def page_payload(results: List[Any], count: Optional[int] = None, next_url: Optional[str] = None) -> Dict[str, Any]:
    return {
        "count": len(results) if count is None else count,
        "next": next_url,
        "previous": None,
        "results": results,
    }


@pytest.fixture
def network():
    return FakeNetworkService()


@pytest.fixture
def service(network):
    return build_transactions_service(make_settings(), network=network, cache=make_cache())
