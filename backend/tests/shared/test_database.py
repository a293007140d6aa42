"""Tests for shared/database.py."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from shared.database import get_supabase_client, reset_client_cache


class TestSupabaseClient:
    def setup_method(self):
        """Reset cache before each test."""
        reset_client_cache()

    def teardown_method(self):
        reset_client_cache()

    @pytest.mark.asyncio
    @patch("shared.database.acreate_client", new_callable=AsyncMock)
    @patch("shared.database.get_settings")
    async def test_creates_client_with_anon_key(self, mock_settings, mock_create):
        """Should create the client with the anon key."""
        mock_settings.return_value.supabase_url = "https://test.supabase.co"
        mock_settings.return_value.supabase_anon_key = "test-anon-key"
        mock_create.return_value = MagicMock()

        client = await get_supabase_client()

        mock_create.assert_awaited_once_with("https://test.supabase.co", "test-anon-key")
        assert client is mock_create.return_value

    @pytest.mark.asyncio
    @patch("shared.database.acreate_client", new_callable=AsyncMock)
    @patch("shared.database.get_settings")
    async def test_caches_client(self, mock_settings, mock_create):
        """Should cache the client and not recreate it."""
        mock_settings.return_value.supabase_url = "https://test.supabase.co"
        mock_settings.return_value.supabase_anon_key = "test-anon-key"
        mock_create.return_value = MagicMock()

        client1 = await get_supabase_client()
        client2 = await get_supabase_client()

        mock_create.assert_awaited_once()
        assert client1 is client2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "url,key",
        [("", ""), ("", "test-anon-key"), ("https://test.supabase.co", "")],
    )
    @patch("shared.database.get_settings")
    async def test_raises_without_config(self, mock_settings, url, key):
        """Should raise if the URL or key is missing."""
        mock_settings.return_value.supabase_url = url
        mock_settings.return_value.supabase_anon_key = key

        with pytest.raises(RuntimeError, match="configuration missing"):
            await get_supabase_client()

    @pytest.mark.asyncio
    @patch("shared.database.acreate_client", new_callable=AsyncMock)
    @patch("shared.database.get_settings")
    async def test_reset_client_cache(self, mock_settings, mock_create):
        """Should reset the cache and allow new client creation."""
        mock_settings.return_value.supabase_url = "https://test.supabase.co"
        mock_settings.return_value.supabase_anon_key = "test-anon-key"
        mock_create.side_effect = [MagicMock(name="client1"), MagicMock(name="client2")]

        client1 = await get_supabase_client()
        reset_client_cache()
        client2 = await get_supabase_client()

        assert mock_create.await_count == 2
        assert client1 is not client2
