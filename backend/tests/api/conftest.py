"""Fixtures for API tests: the app with a mocked auth session manager."""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock

from api import app
from api.dependencies import get_auth_manager
from modules.auth.models import AuthSnapshot, AuthState


@pytest.fixture
def mock_manager(session):
    """
    Auth session manager double whose snapshot tests can swap.

    Only the ``session`` fixture's access token is recognized.
    """
    manager = MagicMock()
    manager.snapshot = AuthSnapshot(state=AuthState.UNAUTHENTICATED)
    manager.sign_in = AsyncMock(return_value=session)
    manager.sign_up = AsyncMock(return_value=session)
    manager.sign_out = AsyncMock()
    manager.refresh_profile = AsyncMock()
    manager.wait_until_settled = AsyncMock(side_effect=lambda timeout=None: manager.snapshot)
    manager.owns_token = MagicMock(side_effect=lambda token: token == session.access_token)
    return manager


@pytest.fixture
def client(mock_manager, auth_headers):
    """Client presenting the signed-in session's bearer token."""
    app.dependency_overrides[get_auth_manager] = lambda: mock_manager
    yield TestClient(app, headers=auth_headers)
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(mock_manager):
    """Client without any Authorization header."""
    app.dependency_overrides[get_auth_manager] = lambda: mock_manager
    yield TestClient(app)
    app.dependency_overrides.clear()
