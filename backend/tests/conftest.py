"""
Shared test fixtures and utilities.

Provides in-memory fakes of the session store and profile repository so the
auth session manager can be driven without Supabase.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
import pytest_asyncio

from modules.auth.exceptions import CredentialError
from modules.auth.models import (
    AuthEvent,
    AuthSnapshot,
    AuthState,
    AuthenticatedUser,
    Identity,
    Profile,
    Session,
)
from modules.auth.service import AuthSessionManager
from shared.config import get_settings
from shared.models import UserRole


def build_identity(
    user_id: str = "user-123",
    email: str = "jo@hillside.farm",
    full_name: Optional[str] = None,
) -> Identity:
    metadata = {"full_name": full_name} if full_name else {}
    return Identity(id=user_id, email=email, user_metadata=metadata)


def build_session(identity: Optional[Identity] = None, expired: bool = False) -> Session:
    identity = identity or build_identity()
    now = datetime.now(timezone.utc)
    expires = now - timedelta(hours=1) if expired else now + timedelta(hours=1)
    return Session(
        access_token=f"access-{identity.id}",
        refresh_token=f"refresh-{identity.id}",
        expires_at=int(expires.timestamp()),
        identity=identity,
    )


class FakeSessionStore:
    """In-memory session store that emits notifications like Supabase does."""

    def __init__(self) -> None:
        self.session: Optional[Session] = None
        self.accounts: dict[str, tuple[str, Identity]] = {}
        self.restore_error: Optional[Exception] = None
        self.restore_gate: Optional[asyncio.Event] = None
        self.sign_up_error: Optional[Exception] = None
        self.sign_out_error: Optional[Exception] = None
        self.require_confirmation = False
        self.sign_out_calls = 0
        self.callbacks: list = []

    def add_account(self, identity: Identity, password: str) -> None:
        self.accounts[identity.email] = (password, identity)

    def emit(self, event: AuthEvent, session: Optional[Session]) -> None:
        for callback in list(self.callbacks):
            callback(event, session)

    async def get_current_session(self) -> Optional[Session]:
        if self.restore_gate is not None:
            await self.restore_gate.wait()
        if self.restore_error is not None:
            raise self.restore_error
        return self.session

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise CredentialError()
        self.session = build_session(account[1])
        self.emit(AuthEvent.SIGNED_IN, self.session)
        return self.session

    async def sign_up(self, email: str, password: str, metadata: dict):
        if self.sign_up_error is not None:
            raise self.sign_up_error
        identity = Identity(id=f"new-{email}", email=email, user_metadata=metadata)
        self.add_account(identity, password)
        if self.require_confirmation:
            return identity, None
        self.session = build_session(identity)
        self.emit(AuthEvent.SIGNED_IN, self.session)
        return identity, self.session

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        if self.sign_out_error is not None:
            raise self.sign_out_error
        self.session = None
        self.emit(AuthEvent.SIGNED_OUT, None)

    def subscribe(self, callback):
        self.callbacks.append(callback)
        return lambda: self.callbacks.remove(callback)


class FakeProfileRepository:
    """In-memory profile table."""

    def __init__(self) -> None:
        self.profiles: dict[str, Profile] = {}
        self.lookup_errors: list[Exception] = []
        self.insert_error: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None
        self.inserted: list[tuple[str, UserRole]] = []
        self.get_calls = 0

    def add(self, identity_id: str, role: UserRole, full_name: Optional[str] = None, **extra) -> None:
        self.profiles[identity_id] = Profile(id=identity_id, role=role, full_name=full_name, **extra)

    async def get_profile(self, identity_id: str) -> Optional[Profile]:
        self.get_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.lookup_errors:
            raise self.lookup_errors.pop(0)
        return self.profiles.get(identity_id)

    async def insert_profile(self, identity_id, email, full_name, role) -> Profile:
        self.inserted.append((identity_id, role))
        if self.insert_error is not None:
            raise self.insert_error
        profile = Profile(id=identity_id, email=email, full_name=full_name, role=role)
        self.profiles[identity_id] = profile
        return profile


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset cached settings before and after each test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def session_store() -> FakeSessionStore:
    return FakeSessionStore()


@pytest.fixture
def profile_repo() -> FakeProfileRepository:
    return FakeProfileRepository()


@pytest.fixture
def identity() -> Identity:
    return build_identity(full_name="Jo Hill")


@pytest.fixture
def session(identity) -> Session:
    return build_session(identity)


@pytest.fixture
def auth_headers(session) -> dict:
    """Bearer header carrying the access token of the ``session`` fixture."""
    return {"Authorization": f"Bearer {session.access_token}"}


@pytest.fixture
def make_session():
    """Factory for sessions of arbitrary identities."""

    def _make(user_id: str = "user-123", email: str = "jo@hillside.farm", **kwargs) -> Session:
        return build_session(build_identity(user_id, email, kwargs.pop("full_name", None)), **kwargs)

    return _make


@pytest_asyncio.fixture
async def start_manager(session_store, profile_repo):
    """
    Start an AuthSessionManager over the fakes with short timeouts.

    Every manager started through this fixture is stopped on teardown.
    """
    started: list[AuthSessionManager] = []

    async def _start(**overrides) -> AuthSessionManager:
        options = {
            "resolve_timeout": 1.0,
            "sign_out_timeout": 0.5,
            "profile_fetch_retries": 2,
            "profile_retry_delay": 0,
        }
        options.update(overrides)
        manager = AuthSessionManager(session_store, profile_repo, **options)
        await manager.start()
        started.append(manager)
        return manager

    yield _start

    for manager in started:
        await manager.stop()


@pytest.fixture
def wait_for_state():
    """Poll until the manager reaches ``state``."""

    async def _wait(manager: AuthSessionManager, state: AuthState, timeout: float = 1.0) -> None:
        async def poll() -> None:
            while manager.state is not state:
                await asyncio.sleep(0.005)

        await asyncio.wait_for(poll(), timeout)

    return _wait


@pytest.fixture
def snapshot_for():
    """Build settled snapshots for gate and route tests."""

    def _snapshot(role: Optional[UserRole] = None, state: Optional[AuthState] = None) -> AuthSnapshot:
        if role is None:
            return AuthSnapshot(state=state or AuthState.UNAUTHENTICATED)
        user = AuthenticatedUser(
            id="user-123",
            email="jo@hillside.farm",
            role=role,
            full_name="Jo Hill",
        )
        return AuthSnapshot(
            state=AuthState.AUTHENTICATED,
            user=user,
            session=build_session(build_identity(full_name="Jo Hill")),
        )

    return _snapshot
