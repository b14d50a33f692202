"""
Price gateway settings using Pydantic for environment-based configuration.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PriceGatewaySettings(BaseSettings):
    """Upstream price API configuration using Pydantic settings."""

    coingecko_base_url: str = Field(
        default="https://api.coingecko.com/api/v3",
        description="CoinGecko REST API base URL",
    )

    min_request_interval: float = Field(
        default=6.0,
        gt=0,
        description="Minimum spacing in seconds between upstream calls",
    )

    request_timeout: float = Field(
        default=10.0, gt=0, description="Total timeout in seconds per upstream call"
    )

    coalesce_requests: bool = Field(
        default=True,
        description="Share one upstream call among concurrent identical requests",
    )

    asset_map_path: str | None = Field(
        default=None,
        description="JSON file mapping asset keys to CoinGecko ids; bundled map if unset",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Create a global instance
price_gateway_settings = PriceGatewaySettings()
