"""
Authentication and role dependencies.

Turns the auth session manager's snapshot into route guards using the
access gate's decision function. The snapshot is only shown to callers
presenting the signed-in session's access token as a bearer token; every
other caller sees an unauthenticated snapshot.
"""

from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from modules.access import AccessOutcome, decide_access
from modules.auth.exceptions import (
    AccessDeniedError,
    AuthPendingError,
    SignInRequiredError,
)
from modules.auth.interfaces import IAuthSessionManager
from modules.auth.models import AuthSnapshot, AuthState, AuthenticatedUser
from shared.config import get_settings
from shared.models import UserRole

from ..dependencies import get_auth_manager

bearer_scheme = HTTPBearer(auto_error=False)

_SIGNED_OUT = AuthSnapshot(state=AuthState.UNAUTHENTICATED)


def bearer_token(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    return credentials.credentials if credentials else None


def snapshot_for_caller(
    manager: IAuthSessionManager,
    snapshot: AuthSnapshot,
    token: Optional[str],
) -> AuthSnapshot:
    """
    Project a snapshot onto one caller.

    Loading snapshots pass through so the gate still answers 503.
    """
    if snapshot.state is AuthState.AUTHENTICATED and not manager.owns_token(token):
        return _SIGNED_OUT
    return snapshot


async def get_auth_snapshot(
    manager: IAuthSessionManager = Depends(get_auth_manager),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthSnapshot:
    """
    Dependency returning the auth snapshot as seen by the caller.

    Callers without a bearer token are unauthenticated straight away.
    Otherwise, while the manager is loading, waits (bounded by the resolve
    timeout) for it to settle.
    """
    token = bearer_token(credentials)
    if token is None:
        return _SIGNED_OUT
    snapshot = manager.snapshot
    if snapshot.loading:
        snapshot = await manager.wait_until_settled(get_settings().auth_resolve_timeout)
    return snapshot_for_caller(manager, snapshot, token)


async def peek_auth_snapshot(
    manager: IAuthSessionManager = Depends(get_auth_manager),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthSnapshot:
    """Like ``get_auth_snapshot`` but never waits for loading to finish."""
    token = bearer_token(credentials)
    if token is None:
        return _SIGNED_OUT
    return snapshot_for_caller(manager, manager.snapshot, token)


def enforce_access(snapshot: AuthSnapshot, roles: tuple[UserRole, ...] = ()) -> AuthenticatedUser:
    """
    Apply the access gate to a snapshot.

    Raises:
        AuthPendingError: Still loading (503)
        SignInRequiredError: Nobody is signed in (401)
        AccessDeniedError: Signed in without a required role (403)
    """
    decision = decide_access(snapshot, roles)

    if decision.outcome is AccessOutcome.LOADING:
        raise AuthPendingError()
    if decision.outcome is AccessOutcome.REQUIRE_SIGN_IN:
        raise SignInRequiredError()
    if decision.outcome is AccessOutcome.FORBIDDEN:
        raise AccessDeniedError(
            [role.value for role in decision.required_roles],
            decision.user_role.value if decision.user_role else None,
        )
    return snapshot.user


def require_roles(*roles: UserRole) -> Callable:
    """
    Build a dependency that admits users holding any of ``roles``.

    With no roles, any signed-in user is admitted.

    Usage:
        @router.get("/console")
        async def console(user: AuthenticatedUser = Depends(require_roles(UserRole.FARM))):
            ...
    """

    async def dependency(
        snapshot: AuthSnapshot = Depends(get_auth_snapshot),
    ) -> AuthenticatedUser:
        return enforce_access(snapshot, roles)

    return dependency


get_current_user = require_roles()


async def get_optional_user(
    snapshot: AuthSnapshot = Depends(get_auth_snapshot),
) -> Optional[AuthenticatedUser]:
    """
    Dependency that returns the signed-in user, or None.

    Use this for endpoints that work with or without authentication.
    """
    return snapshot.user


# Type aliases for cleaner route definitions
RequireAuth = Depends(get_current_user)
OptionalAuth = Depends(get_optional_user)
