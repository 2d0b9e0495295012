"""
OEE Monitor - Exceptions

The calculation core never raises for data edge cases. These exceptions are
raised at the configuration and HTTP boundaries and carry the status code and
details rendered in API error responses.
"""

from typing import Any, Dict, Optional

from fastapi import status


class OEEMonitorException(Exception):
    """Base exception for OEE Monitor."""

    default_error_code = "OEE_MONITOR_ERROR"
    default_status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.status_code = status_code or self.default_status_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(OEEMonitorException):
    """Input rejected after schema validation passed."""

    default_error_code = "VALIDATION_ERROR"
    default_status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details)


class NotFoundError(OEEMonitorException):
    """A referenced machine (or other resource) is not in the submitted snapshot."""

    default_error_code = "NOT_FOUND"
    default_status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str = "Resource", resource_id: Optional[str] = None):
        message = f"{resource} {resource_id} not found" if resource_id else f"{resource} not found"
        super().__init__(message, details={"resource": resource, "resource_id": resource_id})


class ShiftConfigurationError(OEEMonitorException):
    """The configured shift catalog cannot be parsed."""

    default_error_code = "SHIFT_CONFIGURATION_ERROR"

    def __init__(self, entry: str, message: str = "Invalid shift catalog entry",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(f"{message}: {entry!r}", details={"entry": entry, **(details or {})})


class OEEError(OEEMonitorException):
    """A report could not be assembled from the submitted snapshot."""

    default_error_code = "OEE_ERROR"
    default_status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "OEE report error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details)
