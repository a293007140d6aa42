"""
Access gate for protected views.

The decision is a pure function of the auth snapshot and the required
roles: it never calls the session store or the profile table.
"""

from typing import Callable, Generic, Iterable, Optional, TypeVar, Union

from modules.auth.models import AuthSnapshot
from shared.models import UserRole

from .models import AccessDecision, AccessOutcome, Placeholder

T = TypeVar("T")


def decide_access(
    snapshot: AuthSnapshot,
    required_roles: Iterable[UserRole] = (),
) -> AccessDecision:
    """
    Decide what a protected view should show.

    First match wins:
    1. Manager still initializing or resolving a profile -> LOADING
    2. No signed-in user -> REQUIRE_SIGN_IN
    3. Roles required and the user's role is not among them -> FORBIDDEN
    4. Otherwise -> ALLOW
    """
    roles = tuple(dict.fromkeys(UserRole(role) for role in required_roles))

    if snapshot.loading:
        return AccessDecision(outcome=AccessOutcome.LOADING, required_roles=roles)

    user = snapshot.user
    if user is None:
        return AccessDecision(outcome=AccessOutcome.REQUIRE_SIGN_IN, required_roles=roles)

    if roles and user.role not in roles:
        return AccessDecision(
            outcome=AccessOutcome.FORBIDDEN,
            required_roles=roles,
            user_role=user.role,
        )

    return AccessDecision(
        outcome=AccessOutcome.ALLOW, required_roles=roles, user_role=user.role
    )


def default_placeholder(decision: AccessDecision) -> Placeholder:
    """Build the stock placeholder for a non-ALLOW decision."""
    if decision.outcome is AccessOutcome.LOADING:
        title, message = "Loading", "Verifying authentication..."
    elif decision.outcome is AccessOutcome.REQUIRE_SIGN_IN:
        title, message = "Authentication Required", "Please sign in to access this page."
    elif decision.outcome is AccessOutcome.FORBIDDEN:
        title = "Access Denied"
        message = (
            "You don't have permission to access this page. "
            f"Required role: {decision.describe_required()}."
        )
    else:
        raise ValueError("Allowed decisions have no placeholder")

    return Placeholder(
        outcome=decision.outcome,
        title=title,
        message=message,
        required_roles=list(decision.required_roles),
        user_role=decision.user_role,
    )


class AccessGate(Generic[T]):
    """
    Renders protected content, a fallback, or a placeholder.

    A caller-supplied fallback replaces the sign-in and forbidden
    placeholders; the loading placeholder is never replaced. With
    ``hide_if_denied`` nothing is rendered instead of a placeholder.
    """

    def __init__(
        self,
        placeholder: Callable[[AccessDecision], Union[T, Placeholder]] = default_placeholder,
    ) -> None:
        self._placeholder = placeholder

    def render(
        self,
        snapshot: AuthSnapshot,
        required_roles: Iterable[UserRole],
        content: Callable[[], T],
        fallback: Optional[Callable[[AccessDecision], T]] = None,
        hide_if_denied: bool = False,
    ) -> Union[T, Placeholder, None]:
        decision = decide_access(snapshot, required_roles)

        if decision.outcome is AccessOutcome.ALLOW:
            return content()
        if decision.outcome is AccessOutcome.LOADING:
            return self._placeholder(decision)
        if hide_if_denied:
            return None
        if fallback is not None:
            return fallback(decision)
        return self._placeholder(decision)
