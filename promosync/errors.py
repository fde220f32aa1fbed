"""
Error taxonomy shared by the HTTP layer and the sync processor.
"""

from typing import Optional


class SyncServiceError(Exception):
    """Base error. Carries the HTTP status used when it reaches a handler."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SyncServiceError):
    """Missing or malformed request fields."""

    status_code = 400


class NotFoundError(SyncServiceError):
    """Unknown job id, or a product code the catalog doesn't have."""

    status_code = 404


class UpstreamError(SyncServiceError):
    """Non-success response (or transport failure) from an external API."""

    status_code = 502

    def __init__(self, message: str, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class InternalError(SyncServiceError):
    """Unexpected failure inside the service."""

    status_code = 500
