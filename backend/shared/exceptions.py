"""
Error hierarchy for the farm site backend.

Module exceptions derive from one of the bases below. Each base carries the
HTTP status the API answers with, so handlers never need to know about
individual module errors.
"""

from typing import Optional, Any


class FarmsiteError(Exception):
    """
    Root of every error the backend raises on purpose.

    ``code`` is a stable machine-readable identifier (defaults to the class
    name) and ``details`` holds structured context for the client.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Render as the ``{error, message, details}`` response body."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(FarmsiteError):
    """Requested record or section does not exist."""

    status_code = 404


class ValidationError(FarmsiteError):
    """Request was understood but refused."""

    status_code = 400


class AuthenticationError(FarmsiteError):
    """Nobody is signed in, or the credentials were rejected."""

    status_code = 401


class AuthorizationError(FarmsiteError):
    """Signed in, but the role does not open this resource."""

    status_code = 403


class ExternalServiceError(FarmsiteError):
    """A hosted collaborator (Supabase auth or tables) failed."""

    status_code = 502

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service
