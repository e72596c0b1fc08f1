"""
Custom exceptions for the POS sandbox data generator.

Three families of failure flow through the simulation:

* ``ApiError``: a call to the external platform failed (network, HTTP). The
  engine logs it and abandons only the sub-operation that raised.
* ``InvalidInputError``: a caller broke a contract (unknown dining option,
  discount payload without an amount). These always propagate.
* ``ConfigurationError``: settings are missing or inconsistent.

Business-rule non-eligibility (no discount, empty gift card) is never an
exception; it is represented by ``None`` results.
"""

from enum import Enum
from typing import Any

import requests


class PosDataGenException(Exception):
    """Base exception for all POS data generator errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}

        if details:
            extra = ", ".join(f"{key}={value}" for key, value in details.items())
            message = f"{message} ({extra})"

        super().__init__(message)


class ConfigurationError(PosDataGenException):
    """Raised when configuration is missing or invalid."""

    pass


class ApiError(PosDataGenException):
    """Raised when a call to the external POS platform fails."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        status_code: int | None = None,
        response_body: Any | None = None,
    ):
        self.operation = operation
        self.status_code = status_code
        self.response_body = response_body

        details: dict[str, Any] = {}
        if operation:
            details["operation"] = operation
        if status_code is not None:
            details["status"] = status_code

        super().__init__(message, details)


class InvalidInputError(PosDataGenException, ValueError):
    """Raised when a caller passes structurally invalid input."""

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        self.field = field
        self.value = value

        details: dict[str, Any] = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = value

        super().__init__(message, details)


class ErrorSeverity(Enum):
    """How an error should be handled by the simulation loop."""

    TRANSIENT = "transient"  # Retry later or skip this one operation
    PERMANENT = "permanent"  # Won't succeed on retry, skip and log
    CRITICAL = "critical"  # Programmer or configuration error, propagate


def classify_error(exception: Exception) -> ErrorSeverity:
    """
    Classify an exception by severity.

    Args:
        exception: The exception to classify

    Returns:
        ErrorSeverity for the exception
    """
    if isinstance(exception, (InvalidInputError, ConfigurationError)):
        return ErrorSeverity.CRITICAL

    if isinstance(exception, ApiError):
        if exception.status_code is None or exception.status_code >= 500:
            return ErrorSeverity.TRANSIENT
        if exception.status_code == 429:
            return ErrorSeverity.TRANSIENT
        return ErrorSeverity.PERMANENT

    if isinstance(exception, (requests.ConnectionError, requests.Timeout)):
        return ErrorSeverity.TRANSIENT

    return ErrorSeverity.PERMANENT
