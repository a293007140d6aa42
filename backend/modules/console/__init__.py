"""
Management console module.

Registry of the farm staff console's sections and dashboard panels, and
the role-gated endpoints that expose them. Routes live in
``modules.console.routes`` and are mounted by the API app.
"""

from .models import (
    ConsoleView,
    DashboardPanel,
    ManagementSection,
    SectionCategory,
    SectionGroup,
)
from .registry import (
    CONSOLE_ROLES,
    PANELS,
    SECTIONS,
    accessible_sections,
    get_section,
    group_by_category,
)
from .exceptions import SectionNotFoundError

__all__ = [
    "ConsoleView",
    "DashboardPanel",
    "ManagementSection",
    "SectionCategory",
    "SectionGroup",
    "CONSOLE_ROLES",
    "PANELS",
    "SECTIONS",
    "accessible_sections",
    "get_section",
    "group_by_category",
    "SectionNotFoundError",
]
