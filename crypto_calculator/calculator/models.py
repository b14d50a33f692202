"""
Data models for profit/loss and ROI calculations.
"""

from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator
from pydantic.alias_generators import to_camel


class DCAEntry(BaseModel):
    """One periodic purchase in a dollar-cost-averaging plan."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    investment: Annotated[Decimal, Field(gt=0, description="Amount spent")]
    price: Annotated[Decimal, Field(gt=0, description="Price paid per coin")]


class CalculationRequest(BaseModel):
    """Input for a server-side ROI calculation."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )

    calculation_type: Literal["profit-loss", "future-projection", "dca"]
    investment_amount: Annotated[Decimal | None, Field(gt=0)] = None
    purchase_price: Annotated[Decimal | None, Field(gt=0)] = None
    current_price: Annotated[Decimal, Field(ge=0)]
    target_price: Annotated[Decimal | None, Field(ge=0)] = None
    entries: list[DCAEntry] = []

    @model_validator(mode="after")
    def check_required_inputs(self) -> "CalculationRequest":
        """Make sure the fields each calculation type needs are present."""
        if self.calculation_type == "dca":
            if not self.entries:
                raise ValueError("dca calculations need at least one entry")
            return self

        if self.investment_amount is None or self.purchase_price is None:
            raise ValueError("investmentAmount and purchasePrice are required")
        if self.calculation_type == "future-projection" and self.target_price is None:
            raise ValueError("future-projection calculations need targetPrice")
        return self


class CalculationResults(BaseModel):
    """Outcome of a profit/loss style calculation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_profit: Decimal
    roi_percentage: Decimal
    initial_investment: Decimal
    current_value: Decimal
    profit_loss: Decimal
    coin_amount: Decimal

    @field_serializer("*", when_used="json")
    def serialize_decimal(self, value: Decimal) -> float:
        """Render decimals as JSON numbers."""
        return float(value)
