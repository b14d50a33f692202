"""
Exception types shared by the price gateway, storage and API layers.
"""

from typing import Final

ERROR_UNSUPPORTED_ASSET: Final[str] = "unsupported_asset"
ERROR_UPSTREAM_UNAVAILABLE: Final[str] = "upstream_unavailable"
ERROR_PRICE_DATA_NOT_FOUND: Final[str] = "price_data_not_found"
ERROR_PRICE_NOT_CACHED: Final[str] = "price_not_cached"
ERROR_INVALID_INPUT: Final[str] = "invalid_input"
ERROR_INTERNAL_ERROR: Final[str] = "internal_error"


class PriceServiceError(Exception):
    """Base error for failures that map onto a structured API response."""

    error_code: str = ERROR_INTERNAL_ERROR
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnsupportedAssetError(PriceServiceError):
    """Raised when an asset has no upstream identifier mapping."""

    error_code = ERROR_UNSUPPORTED_ASSET
    status_code = 404

    def __init__(self, asset: str):
        super().__init__(f"Cryptocurrency '{asset}' is not supported")
        self.asset = asset


class UpstreamUnavailableError(PriceServiceError):
    """Raised when the upstream price API call fails or returns unusable data."""

    error_code = ERROR_UPSTREAM_UNAVAILABLE
    status_code = 500


class PriceDataNotFoundError(UpstreamUnavailableError):
    """Raised when a successful upstream response lacks the requested price."""

    error_code = ERROR_PRICE_DATA_NOT_FOUND
    status_code = 404


class PriceNotCachedError(PriceServiceError):
    """Raised when a cache-only read finds nothing stored for the pair."""

    error_code = ERROR_PRICE_NOT_CACHED
    status_code = 404

    def __init__(self, asset: str, currency: str):
        super().__init__(f"No cached price for '{asset}' in '{currency}'")
        self.asset = asset
        self.currency = currency


class InvalidInputError(PriceServiceError):
    """Raised when a submitted payload fails validation."""

    error_code = ERROR_INVALID_INPUT
    status_code = 400


class InternalServiceError(PriceServiceError):
    """Raised in place of an unexpected failure inside a request handler."""

    error_code = ERROR_INTERNAL_ERROR
    status_code = 500
