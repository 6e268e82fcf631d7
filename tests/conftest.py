"""Pytest configuration and fixtures."""

import asyncio
from typing import Any, Dict, List, Optional

import httpx
import pytest

from swap_engine.clarity import ClarityValue
from swap_engine.services.pool_cache import PoolDataCache
from swap_engine.services.quote_aggregator import QuoteAggregator
from swap_engine.services.quote_executor import QuoteExecutor
from swap_engine.services.route_finder import RouteFinder

AMM_ADDRESS = "SP102V8P0F7JX67ARQ77WEA3D3CFB5XW39REDT0AM"
TOKEN_DEPLOYER = "SP3K8BC0PPEVCV7NZ6QSRWPQ2JE9E5B6N3PA0KBR9"
FEED_URL = "https://alex.test/"

WSTX = "token-wstx"
ALEX = "age000-governance-token"
ABTC = "token-abtc"
SUSDT = "token-susdt"


def token_entry(token_id: str, name: str, decimals: int = 8) -> Dict[str, Any]:
    """A token as the ALEX API lists it."""
    return {
        "id": token_id,
        "name": name,
        "icon": "",
        "wrapToken": f"{TOKEN_DEPLOYER}.{token_id}::{name.lower()}",
        "wrapTokenDecimals": decimals,
        "underlyingToken": f"{TOKEN_DEPLOYER}.{token_id}::{name.lower()}",
        "underlyingTokenDecimals": decimals,
        "isRebaseToken": False,
        "isVaultWrapToken": False,
    }


def pool_entry(pool_id: int, token_x: str, token_y: str) -> Dict[str, Any]:
    return {"poolId": pool_id, "tokenX": token_x, "tokenY": token_y, "factor": 100000000}


DEFAULT_TOKENS = [
    token_entry(WSTX, "STX", 6),
    token_entry(ALEX, "ALEX"),
    token_entry(ABTC, "aBTC"),
    token_entry(SUSDT, "aUSD"),
]


def registry_payload(pools: List[Dict[str, Any]], tokens: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    return {"pools": pools, "tokens": DEFAULT_TOKENS if tokens is None else tokens}


class FakeClock:
    """Manually advanced stand-in for time.monotonic."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FeedServer:
    """Serves a registry payload through httpx.MockTransport and counts hits."""

    def __init__(self, payload: Any, status_code: int = 200):
        self.payload = payload
        self.status_code = status_code
        self.requests = 0
        self.error: Optional[Exception] = None

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests += 1
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json=self.payload)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


class FakeReadOnly:
    """Records read-only calls and answers with a fixed Clarity value."""

    def __init__(self, result: Optional[ClarityValue] = None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def call_read_only(
        self,
        contract_address,
        contract_name,
        function_name,
        function_args,
        network,
        sender_address,
    ) -> ClarityValue:
        self.calls.append(
            {
                "contract_address": contract_address,
                "contract_name": contract_name,
                "function_name": function_name,
                "function_args": list(function_args),
                "network": network,
                "sender_address": sender_address,
            }
        )
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_cache(clock):
    """Build a PoolDataCache over a fake feed: make_cache(pools, tokens=None)."""

    def _make(pools, tokens=None, status_code=200):
        feed = FeedServer(registry_payload(pools, tokens), status_code=status_code)
        cache = PoolDataCache(client=feed.client(), url=FEED_URL, ttl=300, clock=clock)
        return cache, feed

    return _make


@pytest.fixture
def make_engine(make_cache):
    """Build (aggregator, read_only, feed) wired over fakes."""

    def _make(pools, result=None, tokens=None, error=None, **executor_kwargs):
        cache, feed = make_cache(pools, tokens)
        read_only = FakeReadOnly(result=result, error=error)
        executor = QuoteExecutor(
            cache,
            read_only,
            route_finder=RouteFinder(cache),
            contract_address=AMM_ADDRESS,
            contract_name="amm-pool-v2-01",
            network="mainnet",
            **executor_kwargs,
        )
        return QuoteAggregator(executor), read_only, feed

    return _make
