"""
Profit/loss, future projection and dollar-cost-averaging calculations.
"""

from collections.abc import Sequence
from decimal import Decimal
from typing import Final

from .models import CalculationRequest, CalculationResults, DCAEntry

HUNDRED: Final[Decimal] = Decimal(100)


def _results(
    initial_investment: Decimal, coin_amount: Decimal, value: Decimal
) -> CalculationResults:
    profit_loss = value - initial_investment
    return CalculationResults(
        total_profit=profit_loss,
        roi_percentage=profit_loss / initial_investment * HUNDRED,
        initial_investment=initial_investment,
        current_value=value,
        profit_loss=profit_loss,
        coin_amount=coin_amount,
    )


def _check_positive(**values: Decimal) -> None:
    for name, value in values.items():
        if value <= 0:
            raise ValueError(f"{name} must be > 0")


def calculate_profit_loss(
    investment_amount: Decimal, purchase_price: Decimal, current_price: Decimal
) -> CalculationResults:
    """Value today of ``investment_amount`` spent at ``purchase_price``."""
    _check_positive(investment_amount=investment_amount, purchase_price=purchase_price)
    coin_amount = investment_amount / purchase_price
    return _results(investment_amount, coin_amount, coin_amount * current_price)


def calculate_future_projection(
    investment_amount: Decimal, purchase_price: Decimal, target_price: Decimal
) -> CalculationResults:
    """Same as profit/loss, but valued at a hypothetical ``target_price``."""
    return calculate_profit_loss(investment_amount, purchase_price, target_price)


def calculate_dca(
    entries: Sequence[DCAEntry], current_price: Decimal
) -> CalculationResults:
    """Combine a series of purchases and value the holdings at ``current_price``."""
    if not entries:
        raise ValueError("entries must not be empty")

    total_investment = sum((entry.investment for entry in entries), Decimal(0))
    total_coins = sum((entry.investment / entry.price for entry in entries), Decimal(0))
    return _results(total_investment, total_coins, total_coins * current_price)


def calculate(request: CalculationRequest) -> CalculationResults:
    """Dispatch a validated request to the matching calculation."""
    match request.calculation_type:
        case "profit-loss":
            return calculate_profit_loss(
                request.investment_amount,
                request.purchase_price,
                request.current_price,
            )
        case "future-projection":
            return calculate_future_projection(
                request.investment_amount,
                request.purchase_price,
                request.target_price,
            )
        case "dca":
            return calculate_dca(request.entries, request.current_price)
        case _:
            raise ValueError(f"Unknown calculation type: {request.calculation_type}")
