"""
Management console data models.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from modules.auth.models import AuthenticatedUser
from shared.models import UserRole


class SectionCategory(str, Enum):
    """Sidebar groups, in display order."""

    DASHBOARD = "dashboard"
    LIVESTOCK = "livestock"
    BUSINESS = "business"
    CONTENT = "content"
    SYSTEM = "system"

    @property
    def title(self) -> str:
        return _CATEGORY_TITLES[self]


_CATEGORY_TITLES = {
    SectionCategory.DASHBOARD: "Dashboard",
    SectionCategory.LIVESTOCK: "Livestock Management",
    SectionCategory.BUSINESS: "Business Operations",
    SectionCategory.CONTENT: "Website Content",
    SectionCategory.SYSTEM: "System Settings",
}


class ManagementSection(BaseModel):
    """A page of the management console and the roles allowed to open it."""

    id: str
    name: str
    category: SectionCategory
    roles: tuple[UserRole, ...]

    model_config = {"frozen": True}


class DashboardPanel(BaseModel):
    """A block of the console dashboard, hidden from users without access."""

    id: str
    title: str
    roles: tuple[UserRole, ...]

    model_config = {"frozen": True}


class SectionGroup(BaseModel):
    """Accessible sections of one category."""

    category: SectionCategory
    title: str
    sections: list[ManagementSection] = Field(default_factory=list)


class ConsoleView(BaseModel):
    """What the console landing page shows the signed-in staff member."""

    user: AuthenticatedUser
    greeting: str
    summary: Optional[str] = None
    groups: list[SectionGroup] = Field(default_factory=list)
    panels: list[DashboardPanel] = Field(default_factory=list)
