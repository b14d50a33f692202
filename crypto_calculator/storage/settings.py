"""
Storage settings using Pydantic for environment-based configuration.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Storage configuration for the price cache and calculation log."""

    storage_backend: Literal["memory", "sqlite"] = Field(
        default="memory", description="Which storage implementation to use"
    )

    # Database Configuration
    database_path: str = Field(
        default="./crypto_calculator.db",
        description="Path to SQLite database file (sqlite backend only)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Create a global instance
storage_settings = StorageSettings()
