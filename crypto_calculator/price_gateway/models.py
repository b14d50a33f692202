"""
Price gateway data models.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_serializer


class PricePoint(BaseModel):
    """One sample of a historical price series."""

    model_config = ConfigDict(frozen=True)

    timestamp: Annotated[int, Field(description="Epoch milliseconds")]
    price: Annotated[Decimal, Field(ge=0, description="Price at timestamp")]

    @computed_field
    @property
    def date(self) -> str:
        """ISO-8601 UTC rendering of ``timestamp``, e.g. 2024-01-01T00:00:00.000Z."""
        moment = datetime.fromtimestamp(self.timestamp / 1000, UTC)
        return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    @field_serializer("price", when_used="json")
    def serialize_price(self, value: Decimal) -> float:
        """Render decimals as JSON numbers."""
        return float(value)
