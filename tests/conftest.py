"""
Test configuration for the crypto calculator tests.
"""

import asyncio
import sys
from decimal import Decimal
from pathlib import Path

import pytest
import pytest_asyncio

# Add project root to path before importing our modules
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Import our modules after path setup
from crypto_calculator.price_gateway.assets import AssetCatalog  # noqa: E402
from crypto_calculator.price_gateway.rate_limiter import RateLimiter  # noqa: E402
from crypto_calculator.price_gateway.service import PriceGateway  # noqa: E402
from crypto_calculator.storage.memory_storage import MemoryStorage  # noqa: E402
from crypto_calculator.storage.sqlite_storage import SqliteStorage  # noqa: E402


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class CountingRateLimiter(RateLimiter):
    """RateLimiter that remembers every dispatch it granted."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.dispatches: list[float] = []

    async def acquire(self) -> float:
        dispatched_at = await super().acquire()
        self.dispatches.append(dispatched_at)
        return dispatched_at


class FakeCoinGeckoClient:
    """Stands in for CoinGeckoClient and records every upstream call."""

    def __init__(
        self,
        simple_prices: dict | None = None,
        market_chart: dict | None = None,
        error: Exception | None = None,
        delay: float = 0,
    ):
        self.simple_prices = simple_prices or {}
        self.market_chart = market_chart or {"prices": []}
        self.error = error
        self.delay = delay
        self.calls: list[tuple] = []

    async def _respond(self, call: tuple, data: dict) -> dict:
        self.calls.append(call)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return data

    async def fetch_simple_prices(self, coin_ids: list[str], currency: str) -> dict:
        data = {
            coin_id: entry
            for coin_id, entry in self.simple_prices.items()
            if coin_id in coin_ids
        }
        return await self._respond(("simple", tuple(coin_ids), currency), data)

    async def fetch_market_chart(self, coin_id: str, currency: str, days: int) -> dict:
        return await self._respond(
            ("market_chart", coin_id, currency, days), self.market_chart
        )


@pytest.fixture
def fake_clock():
    """Provide a fake monotonic clock."""
    return FakeClock()


@pytest.fixture
def rate_limiter(fake_clock):
    """Provide a counting rate limiter with the production interval on a fake clock."""
    return CountingRateLimiter(6.0, clock=fake_clock, sleep=fake_clock.sleep)


@pytest.fixture
def catalog():
    """Provide a small asset catalog."""
    return AssetCatalog(
        {
            "bitcoin": "bitcoin",
            "ethereum": "ethereum",
            "binance-coin": "binancecoin",
        }
    )


@pytest.fixture
def sample_simple_prices():
    """Provide a CoinGecko simple/price payload as decoded by the client."""
    return {
        "bitcoin": {"usd": 50000, "usd_24h_change": Decimal("2.5")},
        "ethereum": {"usd": Decimal("3000.12345678"), "usd_24h_change": Decimal("-1.2345")},
        "binancecoin": {"usd": 400},
    }


@pytest.fixture
def fake_client(sample_simple_prices):
    """Provide a fake upstream client serving the sample prices."""
    return FakeCoinGeckoClient(simple_prices=sample_simple_prices)


@pytest.fixture
def memory_storage():
    """Provide a fresh in-memory storage."""
    return MemoryStorage()


@pytest_asyncio.fixture
async def sqlite_storage(tmp_path):
    """Create a temporary SQLite storage instance for testing."""
    storage = SqliteStorage(str(tmp_path / "prices.db"))
    await storage.initialize()
    try:
        yield storage
    finally:
        await storage.close()


@pytest.fixture
def gateway(memory_storage, fake_client, rate_limiter, catalog):
    """Provide a gateway wired to fakes."""
    return PriceGateway(
        storage=memory_storage,
        client=fake_client,
        rate_limiter=rate_limiter,
        catalog=catalog,
    )
