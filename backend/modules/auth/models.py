"""
Authentication module data models.

These models define the data structures used by the auth module
and exposed to other modules through the interface.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from shared.models import UserRole


class AuthState(str, Enum):
    """Mutually exclusive states of the auth session manager."""

    INITIALIZING = "initializing"
    UNAUTHENTICATED = "unauthenticated"
    RESOLVING_PROFILE = "resolving_profile"
    AUTHENTICATED = "authenticated"

    @property
    def is_loading(self) -> bool:
        return self in (AuthState.INITIALIZING, AuthState.RESOLVING_PROFILE)


class AuthEvent(str, Enum):
    """Lifecycle notifications emitted by the session store."""

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"

    # Forwarded by Supabase but not acted upon
    INITIAL_SESSION = "INITIAL_SESSION"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"
    MFA_CHALLENGE_VERIFIED = "MFA_CHALLENGE_VERIFIED"


class Identity(BaseModel):
    """
    Durable subject record issued by Supabase Auth.

    Only the metadata is expected to change over the identity's lifetime.
    """

    id: str = Field(..., description="User ID (UUID from Supabase)")
    email: Optional[str] = Field(None, description="User's email address")
    user_metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @property
    def display_name_hint(self) -> str:
        """Best available display name: metadata, then email local part."""
        full_name = self.user_metadata.get("full_name")
        if isinstance(full_name, str) and full_name.strip():
            return full_name.strip()
        if self.email:
            return self.email.split("@")[0]
        return "User"


class Session(BaseModel):
    """
    Token bundle issued by the session store.

    The manager holds a cached copy only; the store owns refresh.
    """

    access_token: str
    refresh_token: str = ""
    expires_at: Optional[int] = Field(None, description="Expiry as a Unix timestamp")
    identity: Identity

    model_config = {"frozen": True}

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now.timestamp() >= self.expires_at


class Profile(BaseModel):
    """Application-owned row carrying role and display name for an identity."""

    id: str = Field(..., description="Identity ID (foreign key, unique)")
    role: UserRole = UserRole.CUSTOMER
    full_name: Optional[str] = None
    email: Optional[str] = None
    is_active: bool = True

    @model_validator(mode="before")
    @classmethod
    def _normalize_role(cls, data: Any) -> Any:
        if isinstance(data, dict) and "role" in data:
            data = {**data, "role": UserRole.parse(data["role"])}
        return data


class AuthenticatedUser(BaseModel):
    """
    Identity joined with its profile's role and display name.

    Recomputed whenever the session or profile changes; never persisted.
    """

    id: str = Field(..., description="User ID (UUID from Supabase)")
    email: Optional[str] = Field(None, description="User's email address")
    role: UserRole = Field(..., description="Resolved role")
    full_name: Optional[str] = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}  # Make immutable for safety

    @classmethod
    def from_profile(cls, identity: Identity, profile: Profile) -> "AuthenticatedUser":
        return cls(
            id=identity.id,
            email=identity.email,
            role=profile.role,
            full_name=profile.full_name or identity.display_name_hint,
            user_metadata=identity.user_metadata,
        )

    @classmethod
    def fallback(cls, identity: Identity) -> "AuthenticatedUser":
        """Least-privileged user used when the profile cannot be resolved."""
        return cls(
            id=identity.id,
            email=identity.email,
            role=UserRole.CUSTOMER,
            full_name=identity.display_name_hint,
            user_metadata=identity.user_metadata,
        )


class AuthSnapshot(BaseModel):
    """
    Immutable view of the manager's state handed to readers.

    A user is present exactly when the state is AUTHENTICATED, and the
    session is only exposed alongside that user.
    """

    state: AuthState = AuthState.INITIALIZING
    user: Optional[AuthenticatedUser] = None
    session: Optional[Session] = None
    degraded: bool = Field(
        default=False,
        description="True when the role is a fallback rather than a stored profile",
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_consistency(self) -> "AuthSnapshot":
        authenticated = self.state is AuthState.AUTHENTICATED
        if authenticated != (self.user is not None):
            raise ValueError("user must be present exactly in the authenticated state")
        if self.session is not None and not authenticated:
            raise ValueError("session is only exposed with a resolved user")
        if self.degraded and not authenticated:
            raise ValueError("only an authenticated snapshot can be degraded")
        return self

    @property
    def loading(self) -> bool:
        return self.state.is_loading


class SignInRequest(BaseModel):
    """Credentials for password sign-in."""

    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class SignUpRequest(BaseModel):
    """Account creation request."""

    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1)
    role: UserRole = UserRole.CUSTOMER


class SessionView(BaseModel):
    """Public projection of the auth state: ``{state, user, loading}``."""

    state: AuthState
    loading: bool
    user: Optional[AuthenticatedUser] = None
    degraded: bool = False
    # Only set on sign-in and sign-up; send it back as a bearer token
    access_token: Optional[str] = None

    @classmethod
    def from_snapshot(
        cls, snapshot: AuthSnapshot, access_token: Optional[str] = None
    ) -> "SessionView":
        return cls(
            state=snapshot.state,
            loading=snapshot.loading,
            user=snapshot.user,
            degraded=snapshot.degraded,
            access_token=access_token,
        )
