"""
Storage for cached prices and calculation records using async SQLite.
"""

import asyncio
import json
import logging
import uuid
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

import aiosqlite

from .base import PriceStorage, utc_now
from .models import CalculationCreate, CalculationRecord, PriceRecord, PriceUpdate
from .settings import storage_settings

logger = logging.getLogger(__name__)


class SqliteStorage(PriceStorage):
    """Async SQLite-based storage. Decimals are stored as text to keep precision."""

    def __init__(
        self,
        database_path: str | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the SQLite storage."""
        self.database_path = database_path or storage_settings.database_path
        self._clock = clock
        self._connection: aiosqlite.Connection | None = None
        self._connect_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Open the database connection and create tables."""
        await self._get_connection()

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get or create async database connection."""
        if self._connection is not None:
            return self._connection

        async with self._connect_lock:
            # Another caller may have connected while we waited
            if self._connection is None:
                connection = await aiosqlite.connect(self.database_path)
                connection.row_factory = aiosqlite.Row
                try:
                    await self._create_tables(connection)
                except Exception:
                    await connection.close()
                    raise
                self._connection = connection
        return self._connection

    async def _create_tables(self, connection: aiosqlite.Connection) -> None:
        """Create the tables if they don't exist."""
        await connection.execute("""
            CREATE TABLE IF NOT EXISTS crypto_prices (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL,
                asset TEXT NOT NULL,
                currency TEXT NOT NULL,
                price TEXT NOT NULL,
                change_24h TEXT,
                last_updated TEXT NOT NULL,
                UNIQUE (asset, currency)
            )
        """)

        await connection.execute("""
            CREATE TABLE IF NOT EXISTS calculations (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                owner_id TEXT,
                payload TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
        """)

        await connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_calculations_owner
            ON calculations(owner_id)
        """)

        await connection.commit()

    async def upsert_price(self, update: PriceUpdate) -> PriceRecord:
        connection = await self._get_connection()

        await connection.execute(
            """
            INSERT INTO crypto_prices (id, asset, currency, price, change_24h, last_updated)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT (asset, currency) DO UPDATE SET
                price = excluded.price,
                change_24h = excluded.change_24h,
                last_updated = excluded.last_updated
        """,
            (
                uuid.uuid4().hex,
                update.asset,
                update.currency,
                str(update.price),
                None if update.change_24h is None else str(update.change_24h),
                self._clock().isoformat(),
            ),
        )
        await connection.commit()

        return await self.get_price(update.asset, update.currency)

    async def get_price(self, asset: str, currency: str) -> PriceRecord | None:
        connection = await self._get_connection()

        async with connection.execute(
            """
            SELECT id, asset, currency, price, change_24h, last_updated
            FROM crypto_prices
            WHERE asset = ? AND currency = ?
        """,
            (asset, currency),
        ) as cursor:
            row = await cursor.fetchone()

        return self._row_to_price(row) if row else None

    async def get_all_prices(self) -> list[PriceRecord]:
        connection = await self._get_connection()

        async with connection.execute("""
            SELECT id, asset, currency, price, change_24h, last_updated
            FROM crypto_prices
            ORDER BY seq
        """) as cursor:
            rows = await cursor.fetchall()

        return [self._row_to_price(row) for row in rows]

    async def append_calculation(self, create: CalculationCreate) -> CalculationRecord:
        record = CalculationRecord(
            **create.model_dump(),
            id=uuid.uuid4().hex,
            created_at=self._clock(),
        )
        connection = await self._get_connection()

        await connection.execute(
            """
            INSERT INTO calculations (id, owner_id, payload, created_at)
            VALUES (?, ?, ?, ?)
        """,
            (
                record.id,
                record.owner_id,
                create.model_dump_json(),
                record.created_at.isoformat(),
            ),
        )
        await connection.commit()

        logger.info(f"Stored calculation {record.id} ({record.calculation_type})")
        return record

    async def get_calculations_by_owner(self, owner_id: str) -> list[CalculationRecord]:
        connection = await self._get_connection()

        async with connection.execute(
            """
            SELECT id, payload, created_at
            FROM calculations
            WHERE owner_id = ?
            ORDER BY seq
        """,
            (owner_id,),
        ) as cursor:
            rows = await cursor.fetchall()

        return [
            CalculationRecord(
                **json.loads(row["payload"]),
                id=row["id"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    @staticmethod
    def _row_to_price(row: aiosqlite.Row) -> PriceRecord:
        return PriceRecord(
            id=row["id"],
            asset=row["asset"],
            currency=row["currency"],
            price=Decimal(row["price"]),
            change_24h=(
                None if row["change_24h"] is None else Decimal(row["change_24h"])
            ),
            last_updated=datetime.fromisoformat(row["last_updated"]),
        )

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None
