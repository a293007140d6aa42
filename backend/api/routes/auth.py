"""
Sign-in, sign-up and sign-out endpoints.

Every endpoint answers with the resulting session view once the auth
session manager has settled (or its resolve timeout has elapsed). Sign-in
and sign-up return the issued access token; the other endpoints expect it
back as an ``Authorization: Bearer`` header.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials

from modules.auth.interfaces import IAuthSessionManager
from modules.auth.models import (
    AuthSnapshot,
    AuthenticatedUser,
    Session,
    SessionView,
    SignInRequest,
    SignUpRequest,
)
from shared.config import get_settings

from ..dependencies import get_auth_manager
from ..middleware.auth import (
    bearer_scheme,
    bearer_token,
    get_current_user,
    peek_auth_snapshot,
    snapshot_for_caller,
)
from ..models.errors import ErrorResponse

router = APIRouter()


async def _settled_view(
    manager: IAuthSessionManager, token: Optional[str]
) -> SessionView:
    snapshot = await manager.wait_until_settled(get_settings().auth_resolve_timeout)
    return SessionView.from_snapshot(snapshot_for_caller(manager, snapshot, token))


async def _issued_view(
    manager: IAuthSessionManager, session: Optional[Session]
) -> SessionView:
    """View for the caller that was just issued ``session``."""
    snapshot = await manager.wait_until_settled(get_settings().auth_resolve_timeout)
    if session is not None and manager.owns_token(session.access_token):
        return SessionView.from_snapshot(snapshot, access_token=session.access_token)
    return SessionView.from_snapshot(snapshot_for_caller(manager, snapshot, None))


@router.get("/session", response_model=SessionView)
async def get_session(
    snapshot: AuthSnapshot = Depends(peek_auth_snapshot),
) -> SessionView:
    """
    Current auth state: ``{state, loading, user}``.

    Does not wait; ``loading`` is true while the state is being resolved.
    """
    return SessionView.from_snapshot(snapshot)


@router.post(
    "/sign-in",
    response_model=SessionView,
    responses={401: {"model": ErrorResponse}},
)
async def sign_in(
    request: SignInRequest,
    manager: IAuthSessionManager = Depends(get_auth_manager),
) -> SessionView:
    """Sign in with email and password."""
    session = await manager.sign_in(request.email, request.password)
    return await _issued_view(manager, session)


@router.post(
    "/sign-up",
    response_model=SessionView,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
)
async def sign_up(
    request: SignUpRequest,
    manager: IAuthSessionManager = Depends(get_auth_manager),
) -> SessionView:
    """
    Create an account with the requested role.

    When the project requires email confirmation no session is issued and
    the returned state stays unauthenticated.
    """
    session = await manager.sign_up(
        request.email, request.password, request.full_name, request.role
    )
    return await _issued_view(manager, session)


@router.post(
    "/sign-out",
    response_model=SessionView,
    responses={401: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def sign_out(
    user: AuthenticatedUser = Depends(get_current_user),
    manager: IAuthSessionManager = Depends(get_auth_manager),
) -> SessionView:
    """
    Sign out the caller's session.

    Local state is cleared even when the remote sign-out fails; the
    failure is still reported as a 502.
    """
    await manager.sign_out()
    return SessionView.from_snapshot(manager.snapshot)


@router.post(
    "/refresh-profile",
    response_model=SessionView,
    responses={401: {"model": ErrorResponse}},
)
async def refresh_profile(
    user: AuthenticatedUser = Depends(get_current_user),
    manager: IAuthSessionManager = Depends(get_auth_manager),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> SessionView:
    """Re-read the signed-in user's role from the profile table."""
    await manager.refresh_profile()
    return await _settled_view(manager, bearer_token(credentials))
