"""
Access gate module.

Decides whether a protected view is shown, given the auth snapshot and the
roles the view requires.

Public API:
- decide_access: Pure decision function
- AccessGate: Chooses between content, fallback and placeholders
- AccessDecision, AccessOutcome, Placeholder: Models
"""

from .gate import AccessGate, decide_access, default_placeholder
from .models import AccessDecision, AccessOutcome, Placeholder

__all__ = [
    "AccessGate",
    "decide_access",
    "default_placeholder",
    "AccessDecision",
    "AccessOutcome",
    "Placeholder",
]
