"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together the module
implementations. The container is created once in the application
lifespan and stored on ``app.state``; routes reach it through the
dependency functions below rather than through a module-level global.
"""

import logging
from typing import TYPE_CHECKING, Optional

from fastapi import Request

from shared.config import Settings, get_settings

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from supabase import AsyncClient
    from modules.auth.interfaces import IAuthSessionManager
    from modules.auth.repository import ProfileRepository
    from modules.auth.session_store import SupabaseSessionStore

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Container for all service instances.

    ``start()`` creates the Supabase client, the adapters and the single
    auth session manager, then starts the manager. ``stop()`` tears the
    manager down again.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._client: "AsyncClient | None" = None
        self._session_store: "SupabaseSessionStore | None" = None
        self._profiles: "ProfileRepository | None" = None
        self._auth_manager: "IAuthSessionManager | None" = None

    async def start(self) -> None:
        """Build the services and start the auth session manager."""
        from modules.auth.repository import ProfileRepository
        from modules.auth.service import AuthSessionManager
        from modules.auth.session_store import SupabaseSessionStore
        from shared.database import get_supabase_client

        self._client = await get_supabase_client()
        self._session_store = SupabaseSessionStore(self._client)
        self._profiles = ProfileRepository(self._client, self._settings.profiles_table)
        manager = AuthSessionManager.from_settings(
            self._session_store, self._profiles, self._settings
        )
        await manager.start()
        self._auth_manager = manager
        logger.info("Service container started")

    async def stop(self) -> None:
        """Stop the auth session manager."""
        if self._auth_manager is not None:
            await self._auth_manager.stop()
            self._auth_manager = None
        logger.info("Service container stopped")

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def auth(self) -> "IAuthSessionManager":
        """Get the auth session manager instance."""
        if self._auth_manager is None:
            raise RuntimeError("Service container has not been started")
        return self._auth_manager


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_container(request: Request) -> ServiceContainer:
    """FastAPI dependency for the application's service container."""
    return request.app.state.container


def get_auth_manager(request: Request) -> "IAuthSessionManager":
    """FastAPI dependency for the auth session manager."""
    return get_container(request).auth
