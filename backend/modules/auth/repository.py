"""
Profile repository for database access.

Encapsulates the Supabase queries against the profile table (``users`` by
default), which maps each auth identity to a role and display name.
"""

import logging
from typing import Any, Optional

from supabase import AsyncClient, PostgrestAPIError

from shared.models import UserRole
from shared.repository import BaseRepository

from .exceptions import InvalidSessionToken, ProfileInsertFault, ProfileLookupFault
from .models import Profile
from .session_store import is_invalid_token_error

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = "id, email, role, full_name, is_active"

# Postgres insufficient_privilege
_PERMISSION_DENIED = "42501"


def _is_permission_denied(error: PostgrestAPIError) -> bool:
    return error.code == _PERMISSION_DENIED or "permission denied" in (error.message or "").lower()


class ProfileRepository(BaseRepository[Profile]):
    """
    Repository for profile rows.

    Note: This repository does NOT perform authorization checks.
    Row Level Security on the table restricts reads to the signed-in user.
    """

    def __init__(self, db: AsyncClient, table: str = "users") -> None:
        super().__init__(db)
        self._table = table

    async def get_profile(self, identity_id: str) -> Optional[Profile]:
        """
        Get the profile for an identity.

        Duplicate rows should not exist; if they do, the first one wins.

        Returns:
            Profile, or None when no row exists.

        Raises:
            InvalidSessionToken: When the request token was rejected.
            ProfileLookupFault: On any other query failure. Transport errors
                and permission-denied responses are marked retryable.
        """
        try:
            result = await (
                self._db.table(self._table)
                .select(PROFILE_COLUMNS)
                .eq("id", identity_id)
                .limit(1)
                .execute()
            )
        except PostgrestAPIError as e:
            if is_invalid_token_error(e):
                raise InvalidSessionToken(e.message or str(e)) from e
            raise ProfileLookupFault(
                identity_id, e.message or str(e), retryable=_is_permission_denied(e)
            ) from e
        except Exception as e:
            raise ProfileLookupFault(identity_id, str(e), retryable=True) from e

        if not result.data:
            return None
        return self._map_to_profile(result.data[0])

    async def insert_profile(
        self,
        identity_id: str,
        email: Optional[str],
        full_name: Optional[str],
        role: UserRole,
    ) -> Profile:
        """
        Insert a profile row.

        Returns:
            The stored profile (or the requested values if the insert
            returned no representation).

        Raises:
            ProfileInsertFault: On any insert failure, including a
                duplicate row.
        """
        row = {
            "id": identity_id,
            "email": email,
            "full_name": full_name,
            "role": role.value,
            "is_active": True,
        }
        try:
            result = await self._db.table(self._table).insert(row).execute()
        except PostgrestAPIError as e:
            raise ProfileInsertFault(identity_id, e.message or str(e), pg_code=e.code) from e
        except Exception as e:
            raise ProfileInsertFault(identity_id, str(e)) from e

        return self._map_to_profile(result.data[0] if result.data else row)

    def _map_to_profile(self, data: dict[str, Any]) -> Profile:
        return Profile(
            id=str(data["id"]),
            role=data.get("role"),
            full_name=data.get("full_name"),
            email=data.get("email"),
            is_active=data.get("is_active", True) is not False,
        )
