"""
Custom validators for API parameters and request bodies.
"""

from typing import Any

from pydantic import BaseModel, ValidationError

from ..calculator.models import CalculationRequest
from ..shared.errors import InvalidInputError
from ..storage.models import CalculationCreate


def normalize_currency(v: str) -> str:
    """Lowercase and trim a currency code before pattern validation."""
    return v.strip().lower() if isinstance(v, str) else v


def _describe(error: ValidationError) -> str:
    details = "; ".join(
        f"{'.'.join(str(part) for part in item['loc']) or 'body'}: {item['msg']}"
        for item in error.errors()
    )
    return details or "Invalid request body"


def _parse(model: type[BaseModel], payload: Any, what: str) -> Any:
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise InvalidInputError(f"Invalid {what}: {_describe(e)}") from e


def parse_calculation(payload: Any) -> CalculationCreate:
    """
    Validate a calculation submission.

    Raises:
        InvalidInputError: If the payload does not match the calculation schema
    """
    return _parse(CalculationCreate, payload, "calculation data")


def parse_calculation_request(payload: Any) -> CalculationRequest:
    """
    Validate the input of a server-side ROI calculation.

    Raises:
        InvalidInputError: If the payload does not match the request schema
    """
    return _parse(CalculationRequest, payload, "calculation input")
