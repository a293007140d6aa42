"""Tests for the service container."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from api.dependencies import ServiceContainer
from modules.auth.models import AuthState
from modules.auth.service import AuthSessionManager
from shared.config import Settings


class TestServiceContainer:
    def test_auth_before_start(self):
        container = ServiceContainer(Settings())
        with pytest.raises(RuntimeError, match="not been started"):
            container.auth

    @pytest.mark.asyncio
    @patch("shared.database.get_supabase_client", new_callable=AsyncMock)
    async def test_start_and_stop(self, mock_get_client):
        """start() should wire and start one manager; stop() should tear it down."""
        client = MagicMock()
        client.auth.get_session = AsyncMock(return_value=None)
        mock_get_client.return_value = client
        container = ServiceContainer(Settings(profiles_table="profiles"))

        await container.start()
        manager = container.auth
        snapshot = await manager.wait_until_settled(1)

        assert isinstance(manager, AuthSessionManager)
        assert snapshot.state is AuthState.UNAUTHENTICATED
        client.auth.on_auth_state_change.assert_called_once()

        await container.stop()
        client.auth.on_auth_state_change.return_value.unsubscribe.assert_called_once()
        with pytest.raises(RuntimeError):
            container.auth
