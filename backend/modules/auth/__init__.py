"""
Authentication module.

Tracks who is signed in to the farm site and with what role, reconciling
Supabase Auth notifications with profile rows from the ``users`` table.

Public API:
- IAuthSessionManager: Interface consumed by routes and the access gate
- AuthSessionManager: The single-writer session state machine
- ISessionStore / IProfileRepository: Collaborator contracts
- AuthSnapshot, AuthState, AuthenticatedUser, Profile, Session: Models
- Auth exceptions: CredentialError, SignUpRejected, etc.
"""

from .interfaces import IAuthSessionManager, IProfileRepository, ISessionStore
from .models import (
    AuthEvent,
    AuthSnapshot,
    AuthState,
    AuthenticatedUser,
    Identity,
    Profile,
    Session,
)
from .exceptions import (
    AccessDeniedError,
    AuthPendingError,
    CredentialError,
    InvalidSessionToken,
    ProfileInsertFault,
    ProfileLookupFault,
    SessionStoreError,
    SignInRequiredError,
    SignUpRejected,
)
from .service import AuthSessionManager

__all__ = [
    # Interfaces
    "IAuthSessionManager",
    "IProfileRepository",
    "ISessionStore",
    # Service
    "AuthSessionManager",
    # Models
    "AuthEvent",
    "AuthSnapshot",
    "AuthState",
    "AuthenticatedUser",
    "Identity",
    "Profile",
    "Session",
    # Exceptions
    "AccessDeniedError",
    "AuthPendingError",
    "CredentialError",
    "InvalidSessionToken",
    "ProfileInsertFault",
    "ProfileLookupFault",
    "SessionStoreError",
    "SignInRequiredError",
    "SignUpRejected",
]
