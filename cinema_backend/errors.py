"""
Error types shared by the remote clients and the HTTP layer.
"""

from __future__ import annotations


class RemoteServiceError(Exception):
    """A remote collaborator reported a failure."""


class AuthClientError(RemoteServiceError):
    pass


class DataClientError(RemoteServiceError):
    pass


class SheetClientError(RemoteServiceError):
    pass


class ApiError(Exception):
    """
    An error that is safe to show to the caller.

    The message is a fixed, generic string; remote failure detail belongs in
    the logs only.
    """

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
