"""FastAPI application serving crypto prices and calculation records."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Annotated, Any, Final

import uvicorn
from fastapi import Depends, FastAPI, Path, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BeforeValidator

from ..calculator.models import CalculationResults
from ..calculator.roi import calculate
from ..price_gateway.service import PriceGateway
from ..shared.errors import (
    ERROR_INTERNAL_ERROR,
    InternalServiceError,
    InvalidInputError,
    PriceNotCachedError,
    PriceServiceError,
)
from ..storage.base import PriceStorage
from ..storage.factory import build_storage
from ..storage.models import CalculationRecord, PriceRecord
from .models import ErrorResponse, HealthResponse, PriceHistoryResponse
from .settings import api_settings
from .validators import normalize_currency, parse_calculation, parse_calculation_request

MIN_HISTORY_DAYS: Final[int] = 1
MAX_HISTORY_DAYS: Final[int] = 365

ERROR_NOT_FOUND: Final[str] = "not_found"

logger = logging.getLogger(__name__)


@lru_cache
def get_storage() -> PriceStorage:
    """
    Dependency function to provide the process-wide storage instance.

    Returns:
        PriceStorage: Storage chosen by the storage settings
    """
    return build_storage()


@lru_cache
def get_price_gateway() -> PriceGateway:
    """
    Dependency function to provide the process-wide price gateway.

    There is exactly one gateway, and so one rate limiter, per process.

    Returns:
        PriceGateway: Gateway writing through to the shared storage
    """
    return PriceGateway(storage=get_storage())


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncGenerator[None, None]:
    """Close storage when the server shuts down."""
    yield
    if get_storage.cache_info().currsize:
        await get_storage().close()


CurrencyType = Annotated[
    str,
    BeforeValidator(normalize_currency),
    Query(
        pattern=r"^[a-z]{3}$",
        description="Three-letter currency code",
        examples=["usd", "eur", "gbp"],
    ),
]

AssetType = Annotated[
    str,
    Path(description="Internal asset key", examples=["bitcoin", "ethereum"]),
]

StorageDep = Annotated[PriceStorage, Depends(get_storage)]
GatewayDep = Annotated[PriceGateway, Depends(get_price_gateway)]


app = FastAPI(
    title="Crypto Calculator API",
    description="Rate-limited cryptocurrency prices and saved profit/loss calculations",
    version="1.0.0",
    lifespan=lifespan,
)


def internal_error(message: str, exc: Exception) -> InternalServiceError:
    """Log an unexpected failure and wrap it for the error handler."""
    logger.error(f"{message}: {exc}", exc_info=exc)
    return InternalServiceError(message)


async def read_json_body(request: Request) -> Any:
    """Decode the request body, treating malformed JSON as invalid input."""
    try:
        return await request.json()
    except ValueError as e:
        raise InvalidInputError("Request body must be valid JSON") from e


@app.get("/", response_model=HealthResponse)
async def root(storage: StorageDep) -> HealthResponse:
    """Health check endpoint.

    Returns:
        HealthResponse: Health status and price cache size
    """
    prices = await storage.get_all_prices()
    return HealthResponse(
        message="Crypto Calculator API is running",
        status="healthy",
        cached_prices=len(prices),
    )


@app.get("/prices", response_model=list[PriceRecord])
async def get_prices(
    gateway: GatewayDep,
    currency: CurrencyType = api_settings.default_currency,
) -> list[PriceRecord]:
    """
    Get live prices for every supported cryptocurrency.

    One batched upstream call is made; assets the upstream left out are
    omitted from the response.

    Raises:
        UpstreamUnavailableError: When the upstream API fails (500)
    """
    try:
        return await gateway.get_all_prices(currency)
    except PriceServiceError:
        raise
    except Exception as e:
        raise internal_error("Failed to fetch crypto prices", e) from e


@app.get("/prices/{asset}", response_model=PriceRecord)
async def get_price(
    gateway: GatewayDep,
    asset: AssetType,
    currency: CurrencyType = api_settings.default_currency,
) -> PriceRecord:
    """
    Get the live price of one cryptocurrency.

    Raises:
        UnsupportedAssetError: Unknown asset (404)
        PriceDataNotFoundError: No price in the upstream response (404)
        UpstreamUnavailableError: Upstream failures (500)
    """
    try:
        return await gateway.get_price(asset, currency)
    except PriceServiceError:
        raise
    except Exception as e:
        raise internal_error("Failed to fetch crypto price", e) from e


@app.get("/prices/{asset}/cached", response_model=PriceRecord)
async def get_cached_price(
    gateway: GatewayDep,
    asset: AssetType,
    currency: CurrencyType = api_settings.default_currency,
) -> PriceRecord:
    """
    Get the last stored price of one cryptocurrency without calling upstream.

    Serves stale data while the upstream is slow, rate limited or down.

    Raises:
        UnsupportedAssetError: Unknown asset (404)
        PriceNotCachedError: Nothing stored for the pair yet (404)
    """
    try:
        record = await gateway.get_cached_price(asset, currency)
    except PriceServiceError:
        raise
    except Exception as e:
        raise internal_error("Failed to read cached price", e) from e

    if record is None:
        raise PriceNotCachedError(asset, currency)
    return record


@app.get("/prices/{asset}/history", response_model=PriceHistoryResponse)
async def get_price_history(
    gateway: GatewayDep,
    asset: AssetType,
    currency: CurrencyType = api_settings.default_currency,
    days: Annotated[
        int,
        Query(
            ge=MIN_HISTORY_DAYS,
            le=MAX_HISTORY_DAYS,
            description="Number of days of history",
        ),
    ] = api_settings.default_history_days,
) -> PriceHistoryResponse:
    """
    Get the price history of one cryptocurrency, oldest sample first.

    Raises:
        UnsupportedAssetError: Unknown asset (404)
        UpstreamUnavailableError: Upstream failures (500)
    """
    try:
        points = await gateway.get_price_history(asset, currency, days)
    except PriceServiceError:
        raise
    except Exception as e:
        raise internal_error("Failed to fetch price history", e) from e

    return PriceHistoryResponse(asset=asset, currency=currency, prices=points)


@app.post("/calculations", response_model=CalculationRecord)
async def create_calculation(
    request: Request, storage: StorageDep
) -> CalculationRecord:
    """
    Save a calculation. The results payload is stored as given.

    Raises:
        InvalidInputError: When the body fails validation (400); nothing is stored
    """
    calculation = parse_calculation(await read_json_body(request))

    try:
        return await storage.append_calculation(calculation)
    except Exception as e:
        raise internal_error("Failed to save calculation", e) from e


@app.get("/calculations/{owner_id}", response_model=list[CalculationRecord])
async def get_calculations(
    owner_id: str, storage: StorageDep
) -> list[CalculationRecord]:
    """Get the calculations saved by one owner."""
    try:
        return await storage.get_calculations_by_owner(owner_id)
    except Exception as e:
        raise internal_error("Failed to fetch calculations", e) from e


@app.post("/calculate", response_model=CalculationResults)
async def run_calculation(request: Request) -> CalculationResults:
    """
    Compute profit/loss, a future projection or a DCA summary without saving it.

    Raises:
        InvalidInputError: When the input is invalid (400)
    """
    calculation_request = parse_calculation_request(await read_json_body(request))

    try:
        return calculate(calculation_request)
    except (ValueError, ArithmeticError) as e:
        raise InvalidInputError(str(e)) from e


@app.exception_handler(PriceServiceError)
async def price_service_error_handler(
    _: Request, exc: PriceServiceError
) -> JSONResponse:
    """Turn domain errors into structured responses.

    Returns:
        JSONResponse: Error response in JSON format
    """
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.error_code, message=exc.message).model_dump(),
    )


@app.exception_handler(404)
async def not_found_handler(_: Request, __: Exception) -> JSONResponse:
    """Handle 404 errors.

    Returns:
        JSONResponse: Error response in JSON format
    """
    return JSONResponse(
        status_code=404,
        content=ErrorResponse(
            error=ERROR_NOT_FOUND, message="Endpoint not found"
        ).model_dump(),
    )


@app.exception_handler(500)
async def internal_error_handler(_: Request, exc: Exception) -> JSONResponse:
    """Handle internal server errors.

    Args:
        exc: The exception that was raised

    Returns:
        JSONResponse: Error response in JSON format
    """
    logger.error(f"Internal server error: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ERROR_INTERNAL_ERROR, message="An internal server error occurred"
        ).model_dump(),
    )


async def main() -> None:
    """Main entry point for the API server."""
    config = uvicorn.Config(
        app,
        host=api_settings.api_host,
        port=api_settings.api_port,
        log_level=api_settings.log_level.lower(),
    )
    server = uvicorn.Server(config)
    await server.serve()


if __name__ == "__main__":
    import asyncio

    asyncio.run(main())
