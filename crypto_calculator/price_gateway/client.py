"""
HTTP client for the CoinGecko endpoints used by the price gateway.
"""

import json
import logging
from decimal import Decimal
from functools import partial
from typing import Any

import aiohttp

from ..shared.errors import UpstreamUnavailableError
from .settings import price_gateway_settings

logger = logging.getLogger(__name__)

# Keep upstream floats exact all the way into the cache
decimal_json_loads = partial(json.loads, parse_float=Decimal)


class CoinGeckoClient:
    """Issues single requests to CoinGecko; throttling is the caller's job."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        self.base_url = (base_url or price_gateway_settings.coingecko_base_url).rstrip(
            "/"
        )
        self.timeout = aiohttp.ClientTimeout(
            total=timeout or price_gateway_settings.request_timeout
        )

    async def fetch_simple_prices(
        self, coin_ids: list[str], currency: str
    ) -> dict[str, Any]:
        """
        Fetch current prices and 24h change for ``coin_ids`` in one call.

        Returns:
            Mapping of coin id to ``{currency: price, "<currency>_24h_change": pct}``
        """
        return await self._get_json(
            "/simple/price",
            {
                "ids": ",".join(coin_ids),
                "vs_currencies": currency,
                "include_24hr_change": "true",
            },
        )

    async def fetch_market_chart(
        self, coin_id: str, currency: str, days: int
    ) -> dict[str, Any]:
        """Fetch the price series for one coin over the last ``days`` days."""
        return await self._get_json(
            f"/coins/{coin_id}/market_chart",
            {"vs_currency": currency, "days": str(days)},
        )

    async def _get_json(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        url = f"{self.base_url}{path}"

        try:
            async with (
                aiohttp.ClientSession() as session,
                session.get(url, params=params, timeout=self.timeout) as response,
            ):
                response.raise_for_status()
                data = await response.json(loads=decimal_json_loads)
        except aiohttp.ClientResponseError as e:
            logger.error(f"CoinGecko API error for {path}: {e.status} {e.message}")
            raise UpstreamUnavailableError(
                f"CoinGecko API error: {e.status} {e.message}"
            ) from e
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.error(f"Error calling CoinGecko {path}: {e!r}")
            raise UpstreamUnavailableError("CoinGecko API is unreachable") from e
        except ValueError as e:
            logger.error(f"Invalid JSON from CoinGecko {path}: {e}")
            raise UpstreamUnavailableError("CoinGecko returned invalid JSON") from e

        if not isinstance(data, dict):
            raise UpstreamUnavailableError(
                f"Unexpected CoinGecko response type: {type(data).__name__}"
            )
        return data
