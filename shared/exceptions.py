"""Errors raised by the sync pipeline."""
from typing import Optional


class SyncError(Exception):
    """Base class for every error the sync pipeline raises."""


class AuthenticationError(SyncError):
    """FreshRSS rejected the credentials or returned an unusable login body."""


class FetchError(SyncError):
    """A subscription or item list request failed."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class StoreError(SyncError):
    """A store write failed outside the expected upsert conflict path."""


class ValidationError(SyncError):
    """A raw item could not be normalized into an article task."""
