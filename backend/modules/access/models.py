"""
Access gate data models.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from shared.models import UserRole


class AccessOutcome(str, Enum):
    """What a protected view should show."""

    LOADING = "loading"
    REQUIRE_SIGN_IN = "require_sign_in"
    FORBIDDEN = "forbidden"
    ALLOW = "allow"


class AccessDecision(BaseModel):
    """
    Result of gating a protected view.

    ``required_roles`` keeps the caller's order so it can be displayed as
    "farm or administrator".
    """

    outcome: AccessOutcome
    required_roles: tuple[UserRole, ...] = ()
    user_role: Optional[UserRole] = None

    model_config = {"frozen": True}

    @property
    def allowed(self) -> bool:
        return self.outcome is AccessOutcome.ALLOW

    def describe_required(self) -> str:
        return " or ".join(role.value for role in self.required_roles)


class Placeholder(BaseModel):
    """Default view shown instead of protected content."""

    outcome: AccessOutcome
    title: str
    message: str
    required_roles: list[UserRole] = Field(default_factory=list)
    user_role: Optional[UserRole] = None
