"""
Storage data models for the crypto calculator application.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

CalculationType = Literal["profit-loss", "future-projection", "dca", "portfolio"]


class PriceUpdate(BaseModel):
    """Fresh price data for one (asset, currency) pair, before it is stored."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    asset: Annotated[str, Field(min_length=1, description="Internal asset key")]
    currency: Annotated[
        str, Field(pattern=r"^[a-z]{3}$", description="Lowercase currency code")
    ]
    price: Annotated[Decimal, Field(ge=0, description="Latest price")]
    # to_camel would produce "change24H"
    change_24h: Annotated[
        Decimal | None,
        Field(alias="change24h", description="24 hour change in percent"),
    ] = None


class PriceRecord(PriceUpdate):
    """Model representing the cached price of an asset in one currency."""

    model_config = ConfigDict(frozen=True)

    id: Annotated[str, Field(description="Identifier kept across refreshes")]
    last_updated: Annotated[datetime, Field(description="Last successful write")]

    @field_serializer("price", "change_24h", when_used="json")
    def serialize_decimal(self, value: Decimal | None) -> float | None:
        """Render decimals as JSON numbers."""
        return None if value is None else float(value)

    @field_serializer("last_updated")
    def serialize_timestamp(self, value: datetime) -> str:
        """Serialize datetime to ISO format."""
        return value.isoformat()


class CalculationCreate(BaseModel):
    """A calculation submitted by the UI, before it gets an id and timestamp."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    owner_id: Annotated[str | None, Field(description="Owner reference")] = None
    asset: Annotated[str, Field(min_length=1, description="Internal asset key")]
    investment_amount: Annotated[Decimal, Field(gt=0)]
    purchase_price: Annotated[Decimal, Field(gt=0)]
    current_price: Annotated[Decimal, Field(ge=0)]
    purchase_date: datetime
    currency: Annotated[str, Field(pattern=r"^[a-z]{3}$")] = "usd"
    calculation_type: CalculationType
    results: Annotated[
        dict[str, Any], Field(description="Result payload, stored as given")
    ]


class CalculationRecord(CalculationCreate):
    """A stored calculation. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime

    @field_serializer(
        "investment_amount", "purchase_price", "current_price", when_used="json"
    )
    def serialize_decimal(self, value: Decimal) -> float:
        """Render decimals as JSON numbers."""
        return float(value)

    @field_serializer("purchase_date", "created_at")
    def serialize_timestamp(self, value: datetime) -> str:
        """Serialize datetime to ISO format."""
        return value.isoformat()
