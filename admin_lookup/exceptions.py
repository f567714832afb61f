"""Errors raised by the REST client and the list loaders."""

from typing import Any, Optional


class ApiError(Exception):
    """A request reached the backend (or tried to) and did not succeed."""

    def __init__(self, message: str, status: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.status = status
        self.data = data


class AuthenticationError(ApiError):
    """401/403 from the backend: bad credentials or an expired session."""
