"""Tests for the auth route guards."""

import pytest
from fastapi.security import HTTPAuthorizationCredentials
from unittest.mock import AsyncMock, MagicMock

from api.middleware.auth import enforce_access, get_auth_snapshot, peek_auth_snapshot
from modules.auth.exceptions import AccessDeniedError, AuthPendingError, SignInRequiredError
from modules.auth.models import AuthSnapshot, AuthState
from shared.models import UserRole


class TestEnforceAccess:
    def test_returns_user(self, snapshot_for):
        user = enforce_access(snapshot_for(UserRole.FARM), (UserRole.FARM,))
        assert user.role is UserRole.FARM

    def test_pending(self, snapshot_for):
        with pytest.raises(AuthPendingError):
            enforce_access(snapshot_for(state=AuthState.RESOLVING_PROFILE))

    def test_sign_in_required(self, snapshot_for):
        with pytest.raises(SignInRequiredError):
            enforce_access(snapshot_for())

    def test_denied_reports_roles(self, snapshot_for):
        with pytest.raises(AccessDeniedError) as exc_info:
            enforce_access(snapshot_for(UserRole.CUSTOMER), (UserRole.ADMINISTRATOR, UserRole.FARM))
        assert exc_info.value.details == {
            "required_roles": ["administrator", "farm"],
            "user_role": "customer",
        }


def bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


@pytest.fixture
def manager(session):
    manager = MagicMock()
    manager.wait_until_settled = AsyncMock()
    manager.owns_token = MagicMock(side_effect=lambda token: token == session.access_token)
    return manager


class TestGetAuthSnapshot:
    @pytest.mark.asyncio
    async def test_settled_snapshot_returned_directly(self, manager, session, snapshot_for):
        manager.snapshot = snapshot_for(UserRole.FARM)

        snapshot = await get_auth_snapshot(manager, bearer(session.access_token))

        assert snapshot.user.role is UserRole.FARM
        manager.wait_until_settled.assert_not_called()

    @pytest.mark.asyncio
    async def test_waits_while_loading(self, manager, session, snapshot_for):
        manager.snapshot = AuthSnapshot(state=AuthState.INITIALIZING)
        manager.wait_until_settled.return_value = snapshot_for(UserRole.ADMINISTRATOR)

        snapshot = await get_auth_snapshot(manager, bearer(session.access_token))

        assert snapshot.user.role is UserRole.ADMINISTRATOR
        manager.wait_until_settled.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_token_is_signed_out(self, manager):
        """Callers without a bearer token never see the signed-in user."""
        manager.snapshot = AuthSnapshot(state=AuthState.INITIALIZING)

        snapshot = await get_auth_snapshot(manager, None)

        assert snapshot.state is AuthState.UNAUTHENTICATED
        manager.wait_until_settled.assert_not_called()

    @pytest.mark.asyncio
    async def test_other_token_is_signed_out(self, manager, snapshot_for):
        manager.snapshot = snapshot_for(UserRole.ADMINISTRATOR)

        snapshot = await get_auth_snapshot(manager, bearer("access-someone-else"))

        assert snapshot.state is AuthState.UNAUTHENTICATED
        assert snapshot.user is None
        with pytest.raises(SignInRequiredError):
            enforce_access(snapshot, (UserRole.ADMINISTRATOR,))

    @pytest.mark.asyncio
    async def test_loading_passes_through(self, manager, snapshot_for):
        """A caller with a token still gets a pending answer while loading."""
        manager.snapshot = AuthSnapshot(state=AuthState.RESOLVING_PROFILE)
        manager.wait_until_settled.return_value = manager.snapshot

        snapshot = await get_auth_snapshot(manager, bearer("access-someone-else"))

        assert snapshot.loading is True


class TestPeekAuthSnapshot:
    @pytest.mark.asyncio
    async def test_does_not_wait(self, manager, session):
        manager.snapshot = AuthSnapshot(state=AuthState.INITIALIZING)

        snapshot = await peek_auth_snapshot(manager, bearer(session.access_token))

        assert snapshot.state is AuthState.INITIALIZING
        manager.wait_until_settled.assert_not_called()

    @pytest.mark.asyncio
    async def test_other_token_is_signed_out(self, manager, snapshot_for):
        manager.snapshot = snapshot_for(UserRole.FARM)
        snapshot = await peek_auth_snapshot(manager, bearer("access-someone-else"))
        assert snapshot.user is None
