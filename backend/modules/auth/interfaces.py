"""
Authentication module interfaces.

The session manager depends on ISessionStore and IProfileRepository rather
than on Supabase directly, so tests can drive it with in-memory fakes.
Other modules should depend on IAuthSessionManager, not the concrete
implementation.
"""

from typing import Callable, Iterable, Optional, Protocol, Union, runtime_checkable

from shared.models import UserRole

from .models import AuthEvent, AuthSnapshot, Identity, Profile, Session

SessionCallback = Callable[[AuthEvent, Optional[Session]], None]
Unsubscribe = Callable[[], None]


@runtime_checkable
class ISessionStore(Protocol):
    """
    Hosted identity service: credential checks, tokens and change events.
    """

    async def get_current_session(self) -> Optional[Session]:
        """
        Return the stored session, refreshing it if needed.

        Raises:
            InvalidSessionToken: If the stored refresh token was rejected
            SessionStoreError: If the store could not be reached
        """
        ...

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        """
        Raises:
            CredentialError: If the credentials are rejected
        """
        ...

    async def sign_up(
        self, email: str, password: str, metadata: dict
    ) -> tuple[Identity, Optional[Session]]:
        """
        Create an account. The session is None when email confirmation
        is required before the first sign-in.

        Raises:
            SignUpRejected: If the store refuses the account
        """
        ...

    async def sign_out(self) -> None:
        """
        Raises:
            SessionStoreError: If the remote sign-out failed
        """
        ...

    def subscribe(self, callback: SessionCallback) -> Unsubscribe:
        """Register for lifecycle notifications; returns an unsubscribe callable."""
        ...


@runtime_checkable
class IProfileRepository(Protocol):
    """Hosted table mapping identity -> {role, full name}."""

    async def get_profile(self, identity_id: str) -> Optional[Profile]:
        """
        Returns:
            The profile, or None if no row exists

        Raises:
            InvalidSessionToken: If the caller's access token was rejected
            ProfileLookupFault: For any other failure except a missing row
        """
        ...

    async def insert_profile(
        self,
        identity_id: str,
        email: Optional[str],
        full_name: Optional[str],
        role: UserRole,
    ) -> Profile:
        """
        Raises:
            ProfileInsertFault: If the row could not be written
        """
        ...


@runtime_checkable
class IAuthSessionManager(Protocol):
    """
    Single source of truth for who is signed in and with what role.
    """

    @property
    def snapshot(self) -> AuthSnapshot:
        ...

    async def sign_in(self, email: str, password: str) -> Session:
        ...

    async def sign_up(
        self, email: str, password: str, full_name: str, role: UserRole
    ) -> Optional[Session]:
        ...

    async def sign_out(self) -> None:
        ...

    async def refresh_profile(self) -> None:
        ...

    async def wait_until_settled(self, timeout: Optional[float] = None) -> AuthSnapshot:
        ...

    def has_role(self, role: Union[UserRole, str]) -> bool:
        ...

    def has_any_role(self, roles: Iterable[Union[UserRole, str]]) -> bool:
        ...

    def owns_token(self, token: Optional[str]) -> bool:
        """Whether ``token`` belongs to the session currently signed in."""
        ...
