from __future__ import annotations

from typing import Any

DEFAULT_ERROR_MESSAGE = "An error occurred"


class SyncError(Exception):
    """Base class for errors surfaced by the company sync layer."""


class NotAuthenticatedError(SyncError):
    """A networked operation was invoked without an authenticated actor."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"Authentication required for '{operation}'")
        self.operation = operation


class BackendError(SyncError):
    """
    Transport failure, non-2xx response or undecodable body.

    ``message`` is the best human-readable text available: the backend's
    ``message`` field, then its ``error`` field, then a generic fallback.
    """

    def __init__(
        self,
        message: str = DEFAULT_ERROR_MESSAGE,
        *,
        status: int | None = None,
        data: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data

    def __str__(self) -> str:
        if self.status is not None:
            return f"{self.message} (HTTP {self.status})"
        return self.message
