"""
API-specific data models for the crypto calculator application.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..price_gateway.models import PricePoint


class PriceHistoryResponse(BaseModel):
    """Model for the price history response."""

    model_config = ConfigDict(validate_assignment=True)

    asset: Annotated[str, Field(description="Internal asset key")]
    currency: Annotated[str, Field(description="Lowercase currency code")]
    prices: Annotated[
        list[PricePoint], Field(description="Samples in ascending timestamp order")
    ]


class HealthResponse(BaseModel):
    """Model for the health check response."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str
    status: str
    cached_prices: Annotated[int, Field(ge=0, description="Entries in the price cache")]


class ErrorResponse(BaseModel):
    """Model for error responses."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
    )

    error: Annotated[str, Field(description="Error code")]
    message: Annotated[str, Field(description="Human-readable error message")]
