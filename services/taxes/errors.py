"""Error types for tax data collection."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for tax data provider errors."""

    UNKNOWN = "unknown"
    RATE_LIMIT = "rate_limit"
    AUTHENTICATION = "authentication"
    NETWORK = "network"
    PARSE = "parse"
    NOT_FOUND = "not_found"
    INVALID_REQUEST = "invalid_request"
    NOT_CONFIGURED = "not_configured"


@dataclass(frozen=True, slots=True)
class ProviderError:
    """
    Failure of a single provider request.

    Attributes:
        code: Error code identifying the type of error.
        message: Human-readable error message.
        country_code: Country the request was for, if any.
        details: Additional error details (optional).
        retry_after: Seconds to wait before retrying (for rate limits).
    """

    code: ErrorCode
    message: str
    country_code: str | None = None
    details: str | None = None
    retry_after: int | None = None

    def __str__(self) -> str:
        """Return string representation of the error."""
        scope = self.country_code or "provider"
        return f"[{scope}] {self.code.value}: {self.message}"

    @property
    def is_retryable(self) -> bool:
        """Check if retrying the same request may succeed."""
        return self.code in {ErrorCode.RATE_LIMIT, ErrorCode.NETWORK, ErrorCode.UNKNOWN}

    @property
    def is_network_level(self) -> bool:
        """Check if the provider itself could not be reached or refused us."""
        return self.code in {
            ErrorCode.NETWORK,
            ErrorCode.AUTHENTICATION,
            ErrorCode.NOT_CONFIGURED,
        }


class TaxDataError(Exception):
    """Base error for the tax data subsystem."""

    def __init__(self, message: str, details: str | None = None) -> None:
        """Initialize with error message and optional details."""
        super().__init__(message)
        self.message = message
        self.details = details


class ProviderUnavailable(TaxDataError):
    """The provider could not be reached for any country."""


class StorageUnavailable(TaxDataError):
    """The keyed settings store could not be read or written."""


class NotConfigured(TaxDataError):
    """No provider credential is configured; collection is disabled."""
