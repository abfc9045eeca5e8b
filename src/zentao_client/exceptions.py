"""Custom exception hierarchy for the ZenTao client."""
from __future__ import annotations

from typing import Any


class ZentaoError(RuntimeError):
    """Base error for ZenTao client failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class TransportError(ZentaoError):
    """Raised when the HTTP exchange with the server cannot be completed."""


class ConfigurationError(ZentaoError):
    """Raised when a request is attempted without a usable server config."""


class UnexpectedResponseError(ZentaoError):
    """Raised when the server returns an unexpected payload structure."""


class ApiNotFoundError(ZentaoError):
    """Raised when an operation name is not present in the catalog registry."""
