"""
Authentication module exceptions.

Errors from explicit operations (sign-in, sign-up, sign-out) propagate to
callers and can be caught by API error handlers. Profile faults are raised
by the repository and absorbed by the session manager.
"""

from typing import Optional

from shared.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ExternalServiceError,
    FarmsiteError,
    ValidationError,
)


class CredentialError(AuthenticationError):
    """Raised when the session store rejects an email/password pair."""

    def __init__(self, message: str = "Invalid login credentials"):
        super().__init__(message, code="INVALID_CREDENTIALS")


class SignUpRejected(ValidationError):
    """Raised when the session store refuses to create an account."""

    def __init__(self, message: str = "Sign up was rejected"):
        super().__init__(message, code="SIGN_UP_REJECTED")


class InvalidSessionToken(AuthenticationError):
    """Raised when the stored session or refresh token is no longer valid."""

    def __init__(self, message: str = "Session token is invalid or expired"):
        super().__init__(message, code="INVALID_SESSION_TOKEN")


class SessionStoreError(ExternalServiceError):
    """Raised when the session store cannot be reached or fails unexpectedly."""

    def __init__(self, message: str, code: str = "SESSION_STORE_ERROR"):
        super().__init__(message, service="supabase_auth", code=code)


class ProfileLookupFault(ExternalServiceError):
    """
    Raised when a profile read fails for a reason other than a missing row.

    ``retryable`` is set for transport failures and for permission-denied
    responses, which Supabase returns transiently while row level security
    catches up with a new session.
    """

    def __init__(self, identity_id: str, message: str, retryable: bool = False):
        super().__init__(
            f"Profile lookup failed for {identity_id}: {message}",
            service="supabase",
            code="PROFILE_LOOKUP_FAULT",
            details={"identity_id": identity_id, "retryable": retryable},
        )
        self.retryable = retryable


class ProfileInsertFault(ExternalServiceError):
    """Raised when inserting a profile row fails."""

    def __init__(self, identity_id: str, message: str, pg_code: Optional[str] = None):
        super().__init__(
            f"Profile insert failed for {identity_id}: {message}",
            service="supabase",
            code="PROFILE_INSERT_FAULT",
            details={"identity_id": identity_id, "pg_code": pg_code},
        )


class AccessDeniedError(AuthorizationError):
    """Raised when the signed-in user lacks every one of the required roles."""

    def __init__(self, required_roles: list[str], user_role: Optional[str]):
        super().__init__(
            f"Insufficient permissions. Required: {' or '.join(required_roles)}, "
            f"has: {user_role or 'none'}",
            code="INSUFFICIENT_PERMISSIONS",
            details={"required_roles": required_roles, "user_role": user_role},
        )


class SignInRequiredError(AuthenticationError):
    """Raised when a protected resource is requested without a signed-in user."""

    def __init__(self, message: str = "Please sign in to access this page"):
        super().__init__(message, code="SIGN_IN_REQUIRED")


class AuthPendingError(FarmsiteError):
    """Raised when the auth state is still being resolved."""

    status_code = 503

    def __init__(self, message: str = "Verifying authentication, try again shortly"):
        super().__init__(message, code="AUTH_PENDING")
