"""Listing pipeline exceptions.

Validation problems are never raised; they are normalised away by the
parameter parser. The exceptions below cover the storage boundary, the
HTTP transport used by export clients, and the bulk export lifecycle.
"""

from typing import Optional


class ListingError(Exception):
    """Base exception for listing errors."""

    def __init__(self, message: str, code: str = "LISTING_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ListingBackendError(ListingError):
    """The storage layer failed while executing a list query."""

    def __init__(self, resource: str, message: str):
        self.resource = resource
        super().__init__(
            message=f"[{resource}] {message}",
            code="LISTING_BACKEND_ERROR",
        )


class ListingUnauthorizedError(ListingError):
    """The caller has no valid session for a protected resource."""

    def __init__(self, resource: str, reason: str = "missing"):
        self.resource = resource
        self.reason = reason
        super().__init__(
            message=f"Not authenticated for {resource} ({reason})",
            code="LISTING_UNAUTHORIZED",
        )


class ListingTransportError(ListingError):
    """A listing endpoint could not be reached or answered with an error status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message=message, code="LISTING_TRANSPORT_ERROR")


class ExportError(ListingError):
    """Unrecoverable failure during a bulk export."""

    def __init__(self, message: str, code: str = "EXPORT_ERROR"):
        super().__init__(message=message, code=code)


class ExportInProgressError(ExportError):
    """An export is already running for this view."""

    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(
            message=f"An export of {resource} is already running",
            code="EXPORT_IN_PROGRESS",
        )


class ExportCancelledError(ExportError):
    """The export was cancelled before completion."""

    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(
            message=f"Export of {resource} was cancelled",
            code="EXPORT_CANCELLED",
        )
