"""
Storage interface for cached prices and calculation records.

Callers depend on this abstraction so the in-memory store can be swapped for
a durable backend without touching the gateway or the API.
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime

from .models import CalculationCreate, CalculationRecord, PriceRecord, PriceUpdate


def utc_now() -> datetime:
    return datetime.now(UTC)


class PriceStorage(ABC):
    """Latest price per (asset, currency) plus an append-only calculation log."""

    @abstractmethod
    async def upsert_price(self, update: PriceUpdate) -> PriceRecord:
        """
        Create or replace the price record for ``(update.asset, update.currency)``.

        An existing record keeps its id; all other fields are replaced and
        ``last_updated`` is stamped with the current time. Concurrent writers
        to the same key race and the last write wins.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_price(self, asset: str, currency: str) -> PriceRecord | None:
        """Return the cached record for the pair, or None."""
        raise NotImplementedError

    @abstractmethod
    async def get_all_prices(self) -> list[PriceRecord]:
        """Return every cached record in insertion order."""
        raise NotImplementedError

    @abstractmethod
    async def append_calculation(self, create: CalculationCreate) -> CalculationRecord:
        """Store a calculation under a generated id and creation timestamp."""
        raise NotImplementedError

    @abstractmethod
    async def get_calculations_by_owner(self, owner_id: str) -> list[CalculationRecord]:
        """Return the calculations submitted by ``owner_id``."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release any held resources."""
