"""
Pytest configuration and fixtures for the DAO risk scoring service.

Fixtures follow the pattern: factory functions plus fake collaborators
that count their calls.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import aiohttp
import pytest

from scor.credit_scorer import CreditScorer
from scor.data_aggregator import DataAggregator
from scor.exceptions import UpstreamUnavailable
from scor.models import AccountSnapshot, PriceSnapshot, TokenBalance
from scor.services.cache_service import ResultCache
from scor.services.scoring_service import ScoringService

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
WEI = 10 ** 18

DAO_ADDRESS = "0x1f9840a85d5af5bf1d1762f925bdaddc4201f984"
UNKNOWN_ADDRESS = "0x" + "ab" * 20


# =============================================================================
# FAKE COLLABORATORS
# =============================================================================

class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeChainClient:
    def __init__(self, raw: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.raw = raw
        self.error = error
        self.calls: List[str] = []

    async def fetch_account_data(self, address: str) -> Dict[str, Any]:
        self.calls.append(address)
        if self.error is not None:
            raise self.error
        return dict(self.raw, address=address)


class FakePriceClient:
    def __init__(self, raw: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.raw = raw
        self.error = error
        self.calls: List[List[str]] = []

    async def fetch_prices(self, symbols) -> Dict[str, Any]:
        self.calls.append(list(symbols))
        if self.error is not None:
            raise self.error
        return self.raw


class FakeHTTPResponse:
    """Stands in for an aiohttp response used as an async context manager."""

    def __init__(self, status: int = 200, payload: Any = None, error: Optional[BaseException] = None):
        self.status = status
        self.payload = payload
        self.error = error

    async def __aenter__(self):
        if isinstance(self.error, asyncio.TimeoutError):
            raise self.error
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def json(self, content_type=None):
        if self.error is not None:
            raise self.error
        return self.payload


class FakeHTTPSession:
    """Records GET requests and answers them through a responder callable."""

    def __init__(self, responder: Callable[[str, Dict[str, Any]], FakeHTTPResponse], requests: List):
        self.responder = responder
        self.requests = requests

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    def get(self, url: str, params: Optional[Dict[str, Any]] = None):
        params = params or {}
        self.requests.append((url, params))
        return self.responder(url, params)


# =============================================================================
# RAW PAYLOAD FIXTURES
# =============================================================================

def _raw_account(
    balance_eth: float = 10,
    transaction_ages_days: Optional[List[float]] = None,
    transfers: Optional[List[Dict[str, Any]]] = None,
    now: datetime = NOW,
) -> Dict[str, Any]:
    ages = transaction_ages_days or []
    return {
        "balance": str(int(balance_eth * WEI)),
        "transactions": [
            {"timeStamp": str(int((now - timedelta(days=age)).timestamp()))} for age in ages
        ],
        "tokenTransfers": transfers or [],
    }


@pytest.fixture
def make_raw_account():
    """Factory for explorer-shaped account payloads."""
    return _raw_account


@pytest.fixture
def make_transfer():
    def _transfer(symbol: str, amount: float, decimals: int = 18, contract: str = "0xToken") -> Dict[str, Any]:
        return {
            "tokenSymbol": symbol,
            "value": str(int(amount * 10 ** decimals)),
            "tokenDecimal": str(decimals),
            "contractAddress": contract,
        }
    return _transfer


@pytest.fixture
def live_prices() -> Dict[str, Any]:
    return {
        "nativePrice": 3000.0,
        "tokenPrices": {"USDC": 1.0, "DAI": 1.0, "WBTC": 60000.0, "UNI": 8.0},
        "source": "live",
    }


# =============================================================================
# SERVICE FIXTURES
# =============================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_chain_client(make_raw_account):
    def _make(raw=None, error=None) -> FakeChainClient:
        return FakeChainClient(raw=raw or make_raw_account(), error=error)
    return _make


@pytest.fixture
def make_price_client(live_prices):
    def _make(raw=None, error=None) -> FakePriceClient:
        return FakePriceClient(raw=raw or live_prices, error=error)
    return _make


@pytest.fixture
def chain_client(make_chain_client) -> FakeChainClient:
    return make_chain_client()


@pytest.fixture
def price_client(live_prices) -> FakePriceClient:
    return FakePriceClient(raw=live_prices)


@pytest.fixture
def failing_price_client() -> FakePriceClient:
    return FakePriceClient(error=UpstreamUnavailable("CoinGecko HTTP 429", source="coingecko", status_code=429))


@pytest.fixture
def result_cache(clock) -> ResultCache:
    return ResultCache(clock=clock)


@pytest.fixture
def scoring_service(result_cache, chain_client, price_client) -> ScoringService:
    return ScoringService(
        cache=result_cache,
        aggregator=DataAggregator(chain_client=chain_client, price_client=price_client),
    )


# =============================================================================
# DOMAIN FIXTURES
# =============================================================================

@pytest.fixture
def diversified_account() -> AccountSnapshot:
    """A mature, active treasury holding ETH plus three priced tokens."""
    return AccountSnapshot(
        native_balance=500.0,
        token_balances=(
            TokenBalance("USDC", "0xa0b8", 1_000_000 * 10 ** 6, 6),
            TokenBalance("UNI", "0x1f98", 50_000 * WEI, 18),
            TokenBalance("WBTC", "0x2260", 5 * 10 ** 8, 8),
            TokenBalance("SHIB", "0x95ad", 10 ** 30, 18),
        ),
        transaction_count_total=2500,
        transaction_count_recent=120,
        first_activity=NOW - timedelta(days=4 * 365),
    )


@pytest.fixture
def prices() -> PriceSnapshot:
    return PriceSnapshot(
        native_price_usd=3000.0,
        token_prices_usd={"USDC": 1.0, "UNI": 8.0, "WBTC": 60000.0},
    )


@pytest.fixture
def scorer(clock) -> CreditScorer:
    return CreditScorer(clock=clock)


@pytest.fixture
def sample_result(scorer, diversified_account, prices):
    return scorer.calculate_score(DAO_ADDRESS, diversified_account, prices)


# =============================================================================
# HTTP FIXTURES
# =============================================================================

@pytest.fixture
def stub_http(monkeypatch):
    """Route aiohttp.ClientSession through a responder; returns the request log."""
    def _install(responder):
        requests: List = []
        monkeypatch.setattr(
            aiohttp, "ClientSession", lambda **kwargs: FakeHTTPSession(responder, requests)
        )
        return requests
    return _install


@pytest.fixture
def http_response():
    """Factory for canned aiohttp responses."""
    return FakeHTTPResponse
