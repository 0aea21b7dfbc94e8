"""
Core business exceptions for the updater application.

This module defines a hierarchy of custom exceptions to allow for granular
error handling and clear separation of failure domains.
"""

from pathlib import Path
from typing import Optional


class GeoipUpdaterError(Exception):
    """Base exception for all component-specific errors."""
    pass


# --- Configuration Errors ---

class ConfigurationError(GeoipUpdaterError):
    """Raised for errors related to application configuration."""
    pass


class SetupError(ConfigurationError):
    """Raised when a working or download directory cannot be prepared."""
    pass


# --- Infrastructure Errors ---

class InfrastructureError(GeoipUpdaterError):
    """Base class for errors related to external systems (network, disk)."""
    pass


class TransportError(InfrastructureError):
    """
    Raised when the download service cannot be reached or answers with a
    status other than 200.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class FileOperationError(InfrastructureError):
    """Raised when a local file cannot be read or written."""

    def __init__(self, path: Path, operation: str, cause: Exception):
        super().__init__(f"Cannot {operation} {path}: {cause}")
        self.path = path
        self.operation = operation


# --- Domain/Business Logic Errors ---

class DomainError(GeoipUpdaterError):
    """Base class for errors related to business logic failures."""
    pass


class IntegrityError(DomainError):
    """Raised when a computed checksum differs from the expected one."""

    def __init__(self, subject: str, expected: str, actual: str):
        super().__init__(
            f"MD5 of {subject} ({actual}) does not match "
            f"expected MD5 ({expected})"
        )
        self.expected = expected
        self.actual = actual
