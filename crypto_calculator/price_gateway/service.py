"""
Price gateway that fetches quotes from CoinGecko and writes them through to storage.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from functools import partial
from operator import attrgetter
from typing import Any, TypeVar

from ..shared.errors import PriceDataNotFoundError, UpstreamUnavailableError
from ..storage.base import PriceStorage
from ..storage.models import PriceRecord, PriceUpdate
from .assets import AssetCatalog
from .client import CoinGeckoClient
from .models import PricePoint
from .rate_limiter import RateLimiter
from .settings import price_gateway_settings

T = TypeVar("T")

logger = logging.getLogger(__name__)


class PriceGateway:
    """Rate-limited, write-through access to upstream prices."""

    def __init__(
        self,
        storage: PriceStorage,
        client: CoinGeckoClient | None = None,
        rate_limiter: RateLimiter | None = None,
        catalog: AssetCatalog | None = None,
        coalesce_requests: bool | None = None,
    ) -> None:
        """Initialize the gateway; anything not passed comes from settings."""
        self.storage = storage
        self.client = client or CoinGeckoClient()
        self.rate_limiter = rate_limiter or RateLimiter(
            price_gateway_settings.min_request_interval
        )
        self.catalog = catalog or AssetCatalog.from_file(
            price_gateway_settings.asset_map_path
        )
        self.coalesce_requests = (
            price_gateway_settings.coalesce_requests
            if coalesce_requests is None
            else coalesce_requests
        )
        self._in_flight: dict[Hashable, asyncio.Future] = {}

    async def get_all_prices(self, currency: str) -> list[PriceRecord]:
        """
        Fetch prices for every catalog asset with one batched upstream call.

        Assets missing from the upstream response are left out of the result.
        """
        currency = currency.lower()
        return await self._coalesce(
            ("all", currency), partial(self._fetch_all_prices, currency)
        )

    async def get_price(self, asset: str, currency: str) -> PriceRecord:
        """
        Fetch the current price of one asset.

        Raises:
            UnsupportedAssetError: If the asset is not in the catalog. Raised
                before any rate limiting or upstream traffic.
            PriceDataNotFoundError: If upstream answered without this price.
            UpstreamUnavailableError: If the upstream call failed.
        """
        currency = currency.lower()
        coin_id = self.catalog.resolve(asset)
        return await self._coalesce(
            ("price", asset, currency),
            partial(self._fetch_price, asset, coin_id, currency),
        )

    async def get_price_history(
        self, asset: str, currency: str, days: int
    ) -> list[PricePoint]:
        """Fetch the price series of one asset, sorted by ascending timestamp."""
        if days < 1:
            raise ValueError("days must be >= 1")

        currency = currency.lower()
        coin_id = self.catalog.resolve(asset)
        return await self._coalesce(
            ("history", asset, currency, days),
            partial(self._fetch_price_history, asset, coin_id, currency, days),
        )

    async def get_cached_price(self, asset: str, currency: str) -> PriceRecord | None:
        """Return the last written price without contacting upstream."""
        self.catalog.resolve(asset)
        return await self.storage.get_price(asset, currency.lower())

    async def _fetch_all_prices(self, currency: str) -> list[PriceRecord]:
        await self.rate_limiter.acquire()
        data = await self.client.fetch_simple_prices(
            list(self.catalog.values()), currency
        )

        records = []
        for asset, coin_id in self.catalog.items():
            if (entry := data.get(coin_id)) is None:
                continue
            if update := self._parse_simple_price(asset, currency, entry):
                records.append(await self.storage.upsert_price(update))

        logger.info(
            f"Fetched {len(records)} of {len(self.catalog)} prices in {currency}"
        )
        return records

    async def _fetch_price(self, asset: str, coin_id: str, currency: str) -> PriceRecord:
        await self.rate_limiter.acquire()
        data = await self.client.fetch_simple_prices([coin_id], currency)

        entry = data.get(coin_id)
        if entry is None or not (
            update := self._parse_simple_price(asset, currency, entry)
        ):
            raise PriceDataNotFoundError(f"Price data not found for {asset} in {currency}")

        return await self.storage.upsert_price(update)

    async def _fetch_price_history(
        self, asset: str, coin_id: str, currency: str, days: int
    ) -> list[PricePoint]:
        await self.rate_limiter.acquire()
        data = await self.client.fetch_market_chart(coin_id, currency, days)

        raw_prices = data.get("prices")
        if not isinstance(raw_prices, list):
            raise UpstreamUnavailableError(
                f"Price history for {asset} is missing from the upstream response"
            )

        points = [
            point for item in raw_prices if (point := self._parse_price_point(item))
        ]
        points.sort(key=attrgetter("timestamp"))

        logger.debug(f"Fetched {len(points)} history points for {asset}/{currency}")
        return points

    def _parse_simple_price(
        self, asset: str, currency: str, entry: Any
    ) -> PriceUpdate | None:
        """Parse one CoinGecko simple/price entry into a PriceUpdate."""
        if not isinstance(entry, dict) or entry.get(currency) is None:
            logger.warning(f"No {currency} price for {asset} in upstream data: {entry}")
            return None

        try:
            return PriceUpdate(
                asset=asset,
                currency=currency,
                price=entry[currency],
                change_24h=entry.get(f"{currency}_24h_change"),
            )
        except ValueError as e:
            logger.warning(f"Failed to parse price data for {asset}: {entry}, error: {e}")
            return None

    def _parse_price_point(self, item: Any) -> PricePoint | None:
        """Parse one ``[timestamp_ms, price]`` pair."""
        try:
            timestamp, price = item[0], item[1]
            if price is None:
                return None
            return PricePoint(timestamp=int(timestamp), price=price)
        except (TypeError, ValueError, IndexError, KeyError) as e:
            logger.warning(f"Skipping malformed history point {item!r}: {e}")
            return None

    async def _coalesce(self, key: Hashable, fetch: Callable[[], Awaitable[T]]) -> T:
        """Run ``fetch`` once for all concurrent callers sharing ``key``."""
        if not self.coalesce_requests:
            return await fetch()

        if (task := self._in_flight.get(key)) is None:
            task = asyncio.ensure_future(fetch())
            self._in_flight[key] = task
            task.add_done_callback(partial(self._forget_in_flight, key))
        else:
            logger.debug(f"Joining in-flight upstream request {key}")

        # A cancelled waiter must not cancel the call other waiters share
        return await asyncio.shield(task)

    def _forget_in_flight(self, key: Hashable, task: asyncio.Future) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
