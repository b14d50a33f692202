"""
In-memory storage for cached prices and calculation records.

State lives for the lifetime of the process; a restart discards it.
"""

import logging
import threading
import uuid
from collections.abc import Callable
from datetime import datetime

from .base import PriceStorage, utc_now
from .models import CalculationCreate, CalculationRecord, PriceRecord, PriceUpdate

logger = logging.getLogger(__name__)


class MemoryStorage(PriceStorage):
    """Dict-backed storage guarded by a lock."""

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        """Initialize the memory storage."""
        self._clock = clock
        self._lock = threading.RLock()
        self._prices: dict[tuple[str, str], PriceRecord] = {}
        self._calculations: dict[str, CalculationRecord] = {}

    async def upsert_price(self, update: PriceUpdate) -> PriceRecord:
        key = (update.asset, update.currency)
        with self._lock:
            existing = self._prices.get(key)
            record = PriceRecord(
                id=existing.id if existing else uuid.uuid4().hex,
                asset=update.asset,
                currency=update.currency,
                price=update.price,
                change_24h=update.change_24h,
                last_updated=self._clock(),
            )
            self._prices[key] = record

        logger.debug(f"Cached {update.asset}/{update.currency} at {update.price}")
        return record

    async def get_price(self, asset: str, currency: str) -> PriceRecord | None:
        with self._lock:
            return self._prices.get((asset, currency))

    async def get_all_prices(self) -> list[PriceRecord]:
        with self._lock:
            return list(self._prices.values())

    async def append_calculation(self, create: CalculationCreate) -> CalculationRecord:
        record = CalculationRecord(
            **create.model_dump(),
            id=uuid.uuid4().hex,
            created_at=self._clock(),
        )
        with self._lock:
            self._calculations[record.id] = record

        logger.info(f"Stored calculation {record.id} ({record.calculation_type})")
        # results is a plain dict; callers get their own copy
        return record.model_copy(deep=True)

    async def get_calculations_by_owner(self, owner_id: str) -> list[CalculationRecord]:
        with self._lock:
            return [
                calculation.model_copy(deep=True)
                for calculation in self._calculations.values()
                if calculation.owner_id == owner_id
            ]
