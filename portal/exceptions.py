"""Custom exceptions for the learning portal."""
from typing import Optional


class PortalError(Exception):
    """Base exception for learning portal errors."""
    pass


class GenerationError(PortalError):
    """Completion service returned a non-success status or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StoreError(PortalError):
    """Persistent store rejected or failed a query."""
    pass
