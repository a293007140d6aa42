"""
Supabase Auth adapter for the session store contract.

Converts gotrue sessions and users into the module's Session/Identity
models and maps auth errors onto the module's exception taxonomy.
"""

import logging
from typing import Any, Optional

import jwt
from supabase import AsyncClient, AuthError, AuthRetryableError

from .exceptions import (
    CredentialError,
    InvalidSessionToken,
    SessionStoreError,
    SignUpRejected,
)
from .interfaces import SessionCallback, Unsubscribe
from .models import AuthEvent, Identity, Session

logger = logging.getLogger(__name__)

_INVALID_TOKEN_MARKERS = (
    "invalid refresh token",
    "refresh token not found",
    "refresh token is not valid",
    "refresh token has expired",
    "refresh_token_not_found",
    "invalid jwt",
    "jwt expired",
)

_INVALID_TOKEN_CODES = {
    "refresh_token_not_found",
    "refresh_token_already_used",
    "session_not_found",
    "session_expired",
    "bad_jwt",
    # PostgREST rejections of the bearer token on table reads
    "pgrst301",
    "pgrst303",
}


def is_invalid_token_error(error: BaseException) -> bool:
    """
    Recognize a rejected or expired session from an auth error.

    Supabase reports these with HTTP 400/401 and either an error code or a
    message such as "Invalid Refresh Token: Refresh Token Not Found".
    """
    code = getattr(error, "code", None)
    if isinstance(code, str) and code.lower() in _INVALID_TOKEN_CODES:
        return True

    message = str(getattr(error, "message", None) or error).lower()
    if any(marker in message for marker in _INVALID_TOKEN_MARKERS):
        return True

    status = getattr(error, "status", None)
    return status == 401 and "token" in message


def _token_expiry(access_token: str) -> Optional[int]:
    """Read the ``exp`` claim without verifying the signature."""
    try:
        claims = jwt.decode(access_token, options={"verify_signature": False})
    except jwt.InvalidTokenError:
        return None
    exp = claims.get("exp")
    return int(exp) if exp is not None else None


def to_identity(user: Any) -> Identity:
    """Convert a gotrue User into an Identity."""
    return Identity(
        id=str(user.id),
        email=user.email,
        user_metadata=dict(user.user_metadata or {}),
    )


def to_session(session: Any) -> Session:
    """Convert a gotrue Session into a Session."""
    expires_at = session.expires_at
    if expires_at is None:
        expires_at = _token_expiry(session.access_token)
    return Session(
        access_token=session.access_token,
        refresh_token=session.refresh_token or "",
        expires_at=expires_at,
        identity=to_identity(session.user),
    )


class SupabaseSessionStore:
    """
    Session store backed by ``AsyncClient.auth``.

    The Supabase client keeps the session in memory, refreshes it in the
    background and notifies subscribers through ``on_auth_state_change``.
    """

    def __init__(self, client: AsyncClient) -> None:
        self._auth = client.auth

    async def get_current_session(self) -> Optional[Session]:
        try:
            session = await self._auth.get_session()
        except AuthError as e:
            raise self._map_session_error(e) from e
        if session is None:
            return None
        return to_session(session)

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        try:
            response = await self._auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthRetryableError as e:
            raise SessionStoreError(e.message) from e
        except AuthError as e:
            raise CredentialError(e.message) from e

        if response.session is None:
            raise CredentialError("Sign in did not return a session")
        return to_session(response.session)

    async def sign_up(
        self, email: str, password: str, metadata: dict
    ) -> tuple[Identity, Optional[Session]]:
        try:
            response = await self._auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {"data": metadata},
                }
            )
        except AuthRetryableError as e:
            raise SessionStoreError(e.message) from e
        except AuthError as e:
            raise SignUpRejected(e.message) from e

        if response.user is None:
            raise SignUpRejected("Sign up did not return a user")
        session = to_session(response.session) if response.session else None
        return to_identity(response.user), session

    async def sign_out(self) -> None:
        try:
            await self._auth.sign_out()
        except AuthError as e:
            raise SessionStoreError(e.message, code="SIGN_OUT_FAILED") from e

    def subscribe(self, callback: SessionCallback) -> Unsubscribe:
        def _forward(event: str, session: Any) -> None:
            try:
                auth_event = AuthEvent(event)
            except ValueError:
                logger.debug(f"Ignoring unknown auth event {event!r}")
                return
            callback(auth_event, to_session(session) if session else None)

        subscription = self._auth.on_auth_state_change(_forward)
        return subscription.unsubscribe

    @staticmethod
    def _map_session_error(error: AuthError) -> Exception:
        if is_invalid_token_error(error):
            return InvalidSessionToken(error.message)
        return SessionStoreError(error.message)
