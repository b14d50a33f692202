"""
Storage selection based on settings.
"""

import logging

from .base import PriceStorage
from .memory_storage import MemoryStorage
from .settings import StorageSettings, storage_settings

logger = logging.getLogger(__name__)


def build_storage(settings: StorageSettings = storage_settings) -> PriceStorage:
    """Create the storage implementation named by ``settings.storage_backend``."""
    match settings.storage_backend:
        case "memory":
            logger.info("Using in-memory storage")
            return MemoryStorage()
        case "sqlite":
            from .sqlite_storage import SqliteStorage

            logger.info(f"Using SQLite storage at {settings.database_path}")
            return SqliteStorage(settings.database_path)
        case _:
            raise ValueError(f"Unknown storage backend: {settings.storage_backend}")
