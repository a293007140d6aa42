"""
Auth session manager implementation.

Owns the in-memory "who is signed in and with what role" state. Every state
change goes through one queue consumed by a single worker task: session
store notifications, the startup session restore, profile resolutions, deadlines and
explicit sign-outs are all posted as messages and applied in order.

Asynchronous results carry the generation they were started under. Any
transition to a new session or to UNAUTHENTICATED bumps the generation, so
a result that arrives after being superseded is discarded.
"""

import asyncio
import hmac
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Union

from shared.config import Settings
from shared.models import UserRole

from .exceptions import InvalidSessionToken, ProfileInsertFault, ProfileLookupFault
from .interfaces import IProfileRepository, ISessionStore, Unsubscribe
from .models import (
    AuthEvent,
    AuthSnapshot,
    AuthState,
    AuthenticatedUser,
    Identity,
    Profile,
    Session,
)

logger = logging.getLogger(__name__)

# Events that carry a session to resolve (or its absence)
_SESSION_EVENTS = {
    AuthEvent.SIGNED_IN,
    AuthEvent.SIGNED_OUT,
    AuthEvent.TOKEN_REFRESHED,
    AuthEvent.USER_UPDATED,
}

Listener = Callable[[AuthSnapshot], None]


def _as_role(role: Union[UserRole, str]) -> Optional[UserRole]:
    """Coerce a role name for comparison; unknown names match nobody."""
    try:
        return UserRole(role)
    except ValueError:
        return None


@dataclass(frozen=True)
class _Notification:
    event: AuthEvent
    session: Optional[Session]


@dataclass(frozen=True)
class _RestoreResult:
    generation: int
    session: Optional[Session] = None
    error: Optional[Exception] = None


@dataclass(frozen=True)
class _ProfileResolved:
    generation: int
    user: AuthenticatedUser
    degraded: bool


@dataclass(frozen=True)
class _Deadline:
    generation: int


@dataclass(frozen=True)
class _SessionFault:
    error: Exception
    # Set when raised by a background resolution; stale faults are dropped
    generation: Optional[int] = None


@dataclass(frozen=True)
class _LocalSignOut:
    pass


_Message = Union[
    _Notification, _RestoreResult, _ProfileResolved, _Deadline, _SessionFault, _LocalSignOut
]


class AuthSessionManager:
    """
    Single source of truth for the signed-in user and their role.

    Create one instance per application, call ``start()`` once and
    ``stop()`` on shutdown. Reads (``snapshot``, ``has_role``...) are
    synchronous and never block; writes only happen on the worker task.
    """

    def __init__(
        self,
        session_store: ISessionStore,
        profiles: IProfileRepository,
        *,
        resolve_timeout: float = 10.0,
        sign_out_timeout: float = 5.0,
        profile_fetch_retries: int = 2,
        profile_retry_delay: float = 1.0,
    ) -> None:
        self._store = session_store
        self._profiles = profiles
        self._resolve_timeout = resolve_timeout
        self._sign_out_timeout = sign_out_timeout
        self._profile_fetch_retries = profile_fetch_retries
        self._profile_retry_delay = profile_retry_delay

        self._snapshot = AuthSnapshot()
        self._session: Optional[Session] = None
        self._generation = 0
        # Access tokens issued to the current identity since it signed in
        self._tokens: set[str] = set()

        self._queue: asyncio.Queue[tuple[_Message, Optional[asyncio.Future]]] = asyncio.Queue()
        self._settled = asyncio.Event()
        self._listeners: list[Listener] = []
        self._worker: Optional[asyncio.Task] = None
        self._tasks: set[asyncio.Task] = set()
        self._deadline: Optional[asyncio.TimerHandle] = None
        self._unsubscribe: Optional[Unsubscribe] = None

        # Identities whose missing profile was already re-created once
        self._healed: set[str] = set()
        # Identities whose profile row is being written by sign_up()
        self._pending_signups: set[str] = set()

    @classmethod
    def from_settings(
        cls,
        session_store: ISessionStore,
        profiles: IProfileRepository,
        settings: Settings,
    ) -> "AuthSessionManager":
        return cls(
            session_store,
            profiles,
            resolve_timeout=settings.auth_resolve_timeout,
            sign_out_timeout=settings.auth_sign_out_timeout,
            profile_fetch_retries=settings.profile_fetch_retries,
            profile_retry_delay=settings.profile_retry_delay,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        """Subscribe to the session store and restore any existing session."""
        if self.running:
            return
        logger.debug("Starting auth session manager")
        self._unsubscribe = self._store.subscribe(self._on_store_event)
        self._worker = asyncio.create_task(self._run(), name="auth-session-manager")
        self._schedule_deadline(self._generation)
        self._spawn(self._restore(self._generation))

    async def stop(self) -> None:
        """Unsubscribe and cancel every task owned by the manager."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._cancel_deadline()

        tasks = [t for t in (self._worker, *self._tasks) if t is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._worker = None
        self._tasks.clear()

        while not self._queue.empty():
            _, done = self._queue.get_nowait()
            self._queue.task_done()
            if done is not None and not done.done():
                done.cancel()
        logger.debug("Auth session manager stopped")

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def snapshot(self) -> AuthSnapshot:
        return self._snapshot

    @property
    def state(self) -> AuthState:
        return self._snapshot.state

    @property
    def user(self) -> Optional[AuthenticatedUser]:
        return self._snapshot.user

    @property
    def loading(self) -> bool:
        return self._snapshot.loading

    def has_role(self, role: Union[UserRole, str]) -> bool:
        user = self._snapshot.user
        return user is not None and user.role is _as_role(role)

    def has_any_role(self, roles: Iterable[Union[UserRole, str]]) -> bool:
        user = self._snapshot.user
        if user is None:
            return False
        return user.role in {_as_role(role) for role in roles}

    def owns_token(self, token: Optional[str]) -> bool:
        """Whether ``token`` was issued to the identity currently signed in."""
        if not token:
            return False
        candidate = token.encode()
        return any(hmac.compare_digest(candidate, t.encode()) for t in self._tokens)

    def is_administrator(self) -> bool:
        return self.has_role(UserRole.ADMINISTRATOR)

    def is_farm_user(self) -> bool:
        return self.has_role(UserRole.FARM)

    def is_customer(self) -> bool:
        return self.has_role(UserRole.CUSTOMER)

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """
        Register a callback invoked with each new snapshot.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def wait_until_settled(self, timeout: Optional[float] = None) -> AuthSnapshot:
        """
        Wait until queued notifications are applied and nothing is loading.

        Returns the current snapshot when the timeout expires instead of
        raising; callers inspect ``snapshot.loading``.
        """

        async def settle() -> None:
            while True:
                await self._queue.join()
                await self._settled.wait()
                if self._queue.empty():
                    return

        try:
            await asyncio.wait_for(settle(), timeout)
        except asyncio.TimeoutError:
            logger.debug(f"Auth state still {self._snapshot.state.value} after {timeout}s")
        return self._snapshot

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> Session:
        """
        Check credentials with the session store.

        Local state is not touched here; the store's SIGNED_IN notification
        drives the transition.

        Returns:
            The session issued by the store

        Raises:
            CredentialError: If the credentials are rejected
        """
        email = email.strip()
        logger.info(f"Sign in attempt for {email}")
        session = await self._store.sign_in_with_password(email, password)
        logger.info(f"Sign in accepted for {email}")
        return session

    async def sign_up(
        self, email: str, password: str, full_name: str, role: UserRole
    ) -> Optional[Session]:
        """
        Create an account and its profile row with the requested role.

        A failed profile insert is logged and does not fail the sign-up;
        the missing row is re-created on the next resolution.

        Raises:
            SignUpRejected: If the session store refuses the account
        """
        email = email.strip()
        role = UserRole(role)
        logger.info(f"Sign up attempt for {email} with role {role.value}")
        identity, session = await self._store.sign_up(
            email, password, {"full_name": full_name}
        )

        if session is None:
            logger.info(f"Sign up for {email} awaits email confirmation")
            return None

        self._pending_signups.add(identity.id)
        try:
            await self._profiles.insert_profile(
                identity.id, identity.email or email, full_name, role
            )
            logger.info(f"Profile created for {identity.id} with role {role.value}")
        except ProfileInsertFault as e:
            logger.warning(f"Profile creation during sign up failed: {e.message}")
        finally:
            self._pending_signups.discard(identity.id)

        # The SIGNED_IN notification may have been resolved before the row
        # existed; resolve again so the requested role is picked up.
        current = self._session
        if current is not None and current.identity.id == identity.id:
            self._post(_Notification(AuthEvent.USER_UPDATED, current))
        return session

    async def sign_out(self) -> None:
        """
        Sign out remotely and clear local state.

        Local state is cleared even when the remote call fails; the failure
        is then re-raised.

        Raises:
            SessionStoreError: If the remote sign-out failed
        """
        logger.info("Signing out")
        try:
            await self._store.sign_out()
        finally:
            await self._submit(_LocalSignOut())
        logger.info("Sign out successful")

    async def refresh_profile(self) -> None:
        """Re-resolve the current user's profile. No-op when signed out."""
        session = self._session
        if session is None or self._snapshot.state is AuthState.UNAUTHENTICATED:
            return
        logger.debug(f"Refreshing profile for {session.identity.id}")
        await self._submit(_Notification(AuthEvent.USER_UPDATED, session))

    async def handle_session_error(self, error: Exception) -> None:
        """
        Report a session store failure seen outside the manager.

        Invalid or expired tokens sign the user out; other errors are
        logged only.
        """
        await self._submit(_SessionFault(error))

    # -------------------------------------------------------------------------
    # Message plumbing
    # -------------------------------------------------------------------------

    def _on_store_event(self, event: AuthEvent, session: Optional[Session]) -> None:
        logger.debug(f"Auth event {event.value} {'with' if session else 'without'} session")
        self._post(_Notification(event, session))

    def _post(self, message: _Message) -> None:
        self._queue.put_nowait((message, None))

    async def _submit(self, message: _Message) -> AuthSnapshot:
        """Post a message and wait until the worker has applied it."""
        if not self.running:
            await self._handle(message)
            return self._snapshot
        done: asyncio.Future = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((message, done))
        return await done

    async def _run(self) -> None:
        while True:
            message, done = await self._queue.get()
            try:
                await self._handle(message)
            except Exception:
                logger.exception(f"Failed to apply {type(message).__name__}")
            finally:
                self._queue.task_done()
                if done is not None and not done.done():
                    done.set_result(self._snapshot)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_finished)
        return task

    def _task_finished(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Background auth task failed", exc_info=task.exception())

    def _schedule_deadline(self, generation: int) -> None:
        self._cancel_deadline()
        loop = asyncio.get_running_loop()
        self._deadline = loop.call_later(
            self._resolve_timeout, self._post, _Deadline(generation)
        )

    def _cancel_deadline(self) -> None:
        if self._deadline is not None:
            self._deadline.cancel()
            self._deadline = None

    # -------------------------------------------------------------------------
    # Transitions (worker only)
    # -------------------------------------------------------------------------

    async def _handle(self, message: _Message) -> None:
        if isinstance(message, _Notification):
            self._handle_notification(message)
        elif isinstance(message, _RestoreResult):
            await self._handle_restored(message)
        elif isinstance(message, _ProfileResolved):
            self._handle_resolved(message)
        elif isinstance(message, _Deadline):
            self._handle_deadline(message)
        elif isinstance(message, _SessionFault):
            await self._handle_fault(message)
        elif isinstance(message, _LocalSignOut):
            self._become_unauthenticated()

    def _handle_notification(self, message: _Notification) -> None:
        if message.event not in _SESSION_EVENTS:
            logger.debug(f"Ignoring auth event {message.event.value}")
            return
        if message.event is AuthEvent.SIGNED_OUT or message.session is None:
            self._become_unauthenticated()
        else:
            self._begin_resolution(message.session)

    async def _handle_restored(self, message: _RestoreResult) -> None:
        if message.generation != self._generation or self.state is not AuthState.INITIALIZING:
            logger.debug("Discarding superseded session restore result")
            return

        if message.error is not None:
            if isinstance(message.error, InvalidSessionToken):
                logger.warning(f"Stored session rejected: {message.error}")
                await self._purge_credentials()
            else:
                logger.warning(f"Session restore failed: {message.error}")
                self._become_unauthenticated()
            return

        session = message.session
        if session is None:
            self._become_unauthenticated()
        elif session.is_expired():
            logger.warning("Stored session has expired")
            await self._purge_credentials()
        else:
            self._begin_resolution(session)

    def _handle_resolved(self, message: _ProfileResolved) -> None:
        if (
            message.generation != self._generation
            or self.state is not AuthState.RESOLVING_PROFILE
        ):
            logger.debug(f"Discarding stale profile for {message.user.id}")
            return
        self._cancel_deadline()
        self._set(
            AuthSnapshot(
                state=AuthState.AUTHENTICATED,
                user=message.user,
                session=self._session,
                degraded=message.degraded,
            )
        )

    def _handle_deadline(self, message: _Deadline) -> None:
        if message.generation != self._generation:
            return
        if self.state is AuthState.INITIALIZING:
            logger.warning(
                f"No session answer after {self._resolve_timeout}s, continuing signed out"
            )
            self._become_unauthenticated()
        elif self.state is AuthState.RESOLVING_PROFILE and self._session is not None:
            logger.warning(
                f"Profile not resolved after {self._resolve_timeout}s, continuing as customer"
            )
            self._deadline = None
            self._set(
                AuthSnapshot(
                    state=AuthState.AUTHENTICATED,
                    user=AuthenticatedUser.fallback(self._session.identity),
                    session=self._session,
                    degraded=True,
                )
            )

    async def _handle_fault(self, message: _SessionFault) -> None:
        if message.generation is not None and message.generation != self._generation:
            logger.debug("Discarding session fault from a superseded resolution")
            return
        if isinstance(message.error, InvalidSessionToken):
            logger.warning(f"Session invalidated: {message.error}")
            await self._purge_credentials()
        else:
            logger.warning(f"Session store error: {message.error}")

    def _begin_resolution(self, session: Session) -> None:
        if self._session is None or self._session.identity.id != session.identity.id:
            self._tokens = set()
        self._tokens.add(session.access_token)
        self._generation += 1
        self._session = session
        self._set(AuthSnapshot(state=AuthState.RESOLVING_PROFILE))
        self._schedule_deadline(self._generation)
        self._spawn(self._resolve_profile(session.identity, self._generation))

    def _become_unauthenticated(self) -> None:
        self._generation += 1
        self._session = None
        self._tokens = set()
        self._cancel_deadline()
        self._set(AuthSnapshot(state=AuthState.UNAUTHENTICATED))

    async def _purge_credentials(self) -> None:
        """
        Settle signed out, then ask the store to drop its stale credentials.

        The worker waits for the purge before applying the next message.
        """
        self._become_unauthenticated()
        try:
            await asyncio.wait_for(self._store.sign_out(), self._sign_out_timeout)
        except Exception as e:
            logger.warning(f"Could not purge stale credentials: {e}")

    def _set(self, snapshot: AuthSnapshot) -> None:
        previous = self._snapshot
        self._snapshot = snapshot
        if snapshot.loading:
            self._settled.clear()
        else:
            self._settled.set()

        if snapshot == previous:
            return
        logger.debug(f"Auth state {previous.state.value} -> {snapshot.state.value}")
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Auth state listener failed")

    # -------------------------------------------------------------------------
    # Background work
    # -------------------------------------------------------------------------

    async def _restore(self, generation: int) -> None:
        try:
            session = await self._store.get_current_session()
        except Exception as e:
            self._post(_RestoreResult(generation, error=e))
            return
        self._post(_RestoreResult(generation, session=session))

    async def _resolve_profile(self, identity: Identity, generation: int) -> None:
        try:
            profile = await self._fetch_profile(identity)
            if profile is None:
                profile = await self._heal_profile(identity)
        except InvalidSessionToken as e:
            self._post(_SessionFault(e, generation))
            return
        except ProfileLookupFault as e:
            logger.warning(f"{e.message}; continuing as customer")
            profile = None

        if profile is None:
            user = AuthenticatedUser.fallback(identity)
            degraded = True
        else:
            if not profile.is_active:
                logger.warning(f"Profile {identity.id} is marked inactive")
            user = AuthenticatedUser.from_profile(identity, profile)
            degraded = False

        self._post(_ProfileResolved(generation, user, degraded))

    async def _fetch_profile(self, identity: Identity) -> Optional[Profile]:
        attempt = 0
        while True:
            try:
                return await self._profiles.get_profile(identity.id)
            except ProfileLookupFault as e:
                if not e.retryable or attempt >= self._profile_fetch_retries:
                    raise
                attempt += 1
                logger.warning(
                    f"Reading profile {identity.id} failed ({e.message}), "
                    f"retrying ({attempt}/{self._profile_fetch_retries})"
                )
                await asyncio.sleep(self._profile_retry_delay)

    async def _heal_profile(self, identity: Identity) -> Optional[Profile]:
        """Create the missing default profile, at most once per identity."""
        if identity.id in self._pending_signups:
            logger.debug(f"Profile for {identity.id} is being created by sign up")
            return None
        if identity.id in self._healed:
            logger.warning(f"Profile for {identity.id} still missing after re-creation")
            return None

        self._healed.add(identity.id)
        logger.info(f"No profile for {identity.id}, creating a customer profile")
        try:
            return await self._profiles.insert_profile(
                identity.id,
                identity.email,
                identity.display_name_hint,
                UserRole.CUSTOMER,
            )
        except ProfileInsertFault as e:
            logger.warning(f"Profile creation failed: {e.message}")
            return None
