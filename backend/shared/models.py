"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

import logging
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class UserRole(str, Enum):
    """Role carried by a profile row. Exactly three roles exist."""

    ADMINISTRATOR = "administrator"
    FARM = "farm"
    CUSTOMER = "customer"

    @classmethod
    def parse(cls, value: Any) -> "UserRole":
        """
        Normalize a raw role value read from the profile table.

        Unknown or missing values resolve to CUSTOMER, the least
        privileged role, instead of failing.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        logger.warning(f"Unknown role value {value!r}, treating as customer")
        return cls.CUSTOMER
