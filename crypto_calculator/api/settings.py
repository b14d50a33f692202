"""
API settings using Pydantic for environment-based configuration.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class APISettings(BaseSettings):
    """API service configuration using Pydantic settings."""

    api_host: str = Field(default="0.0.0.0", description="API host address")
    api_port: int = Field(default=8000, description="API port number")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Format string for log records",
    )
    log_file: str = Field(
        default="crypto_calculator.log", description="Log file path"
    )
    log_to_file: bool = Field(default=True, description="Also write logs to a file")
    default_currency: str = Field(
        default="usd", pattern=r"^[a-z]{3}$", description="Currency when none is given"
    )
    default_history_days: int = Field(
        default=30, ge=1, le=365, description="History range when none is given"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


api_settings = APISettings()
