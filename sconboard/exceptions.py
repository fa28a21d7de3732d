"""
SConboard — Custom Exception Hierarchy
=======================================

What:  Application-specific exceptions for every failure path of the
       onboarding workflow.
How:   Each exception carries a user-facing message and an optional context
       dict for logging. FormSession converts the recoverable ones into form
       state (an error entry or a one-shot notice); the rest propagate.

Exception Hierarchy:
    SConboardError (base)
    ├── ValidationError        → user-correctable input problem
    ├── FileStorageError       → an image could not be read from disk
    ├── LocationError          → geolocation denied / unavailable / timed out
    │   └── LocationBusyError  → acquisition already in flight (rejected)
    ├── EnrichmentError        → reverse geocoding failed
    │   └── EnrichmentBusyError
    └── SubmissionError        → the create-service-center API refused or failed
"""

from typing import Any, Dict, Optional


class SConboardError(Exception):
    """
    Base exception for all SConboard errors.

    Attributes:
        message:  User-facing error description (safe to show in the form)
        context:  Additional debug info (logged, never shown)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(SConboardError):
    """
    Raised when input fails validation outside the submit rules.

    When:    Unknown or read-only field edited, unknown category toggled,
             attached image has the wrong type or size.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class FileStorageError(SConboardError):
    """
    Raised when an attached image cannot be read.

    When:    File missing, permission denied, I/O error.
    """

    def __init__(
        self,
        message: str = "Could not read the selected image",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class LocationError(SConboardError):
    """
    Raised when the device location provider cannot produce a fix.

    Codes follow the W3C Geolocation API (see services.location_base):
        0 unsupported (no provider), 1 permission denied,
        2 position unavailable, 3 timeout.
    Recoverable by retrying.
    """

    def __init__(
        self,
        message: str = "Unable to retrieve location. Check permissions.",
        code: int = 2,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["code"] = code
        super().__init__(message=message, context=ctx)
        self.code = code


class LocationBusyError(LocationError):
    """Raised when a location request arrives while another one is in flight."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="Location is already being fetched. Please wait.",
            code=-1,
            context=context,
        )


class EnrichmentError(SConboardError):
    """
    Raised when reverse geocoding fails.

    When:    Network error, non-2xx response, malformed JSON, no address.
    Never blocks manual address entry.
    """

    def __init__(
        self,
        message: str = "Failed to fetch address details. Please enter manually.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class EnrichmentBusyError(EnrichmentError):
    """Raised when an auto-fill arrives while another one is in flight."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="Address lookup is already in progress. Please wait.",
            context=context,
        )


class SubmissionError(SConboardError):
    """
    Raised when the create-service-center API call fails.

    Attributes:
        status_code: HTTP status returned by the API (None for transport errors)
    """

    def __init__(
        self,
        message: str = "Could not submit the form. Please try again.",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message=message, context=ctx)
        self.status_code = status_code
