"""
Management console section registry.

Staff sections (livestock and business operations) are open to farm users
and administrators; website content and system settings are for
administrators only.
"""

from typing import Optional

from shared.models import UserRole

from .models import DashboardPanel, ManagementSection, SectionCategory, SectionGroup

ADMIN = UserRole.ADMINISTRATOR
FARM = UserRole.FARM

# Roles that may enter the console at all
CONSOLE_ROLES: tuple[UserRole, ...] = (ADMIN, FARM)

_STAFF = (ADMIN, FARM)
_ADMIN_ONLY = (ADMIN,)


def _section(id: str, name: str, category: SectionCategory, roles: tuple[UserRole, ...]):
    return ManagementSection(id=id, name=name, category=category, roles=roles)


SECTIONS: tuple[ManagementSection, ...] = (
    _section("dashboard", "Dashboard", SectionCategory.DASHBOARD, _STAFF),
    # Livestock
    _section("animals", "Animals", SectionCategory.LIVESTOCK, _STAFF),
    _section("breeding", "Breeding", SectionCategory.LIVESTOCK, _STAFF),
    _section("health", "Health Records", SectionCategory.LIVESTOCK, _STAFF),
    _section("facilities", "Facilities", SectionCategory.LIVESTOCK, _STAFF),
    _section("veterinarians", "Veterinarians", SectionCategory.LIVESTOCK, _STAFF),
    # Business
    _section("inventory", "Inventory", SectionCategory.BUSINESS, _STAFF),
    _section("biproducts", "Bi-Products", SectionCategory.BUSINESS, _STAFF),
    _section("suppliers", "Suppliers", SectionCategory.BUSINESS, _STAFF),
    _section("customers", "Customers", SectionCategory.BUSINESS, _STAFF),
    _section("financial", "Financial", SectionCategory.BUSINESS, _STAFF),
    # Website content
    _section("news", "News", SectionCategory.CONTENT, _ADMIN_ONLY),
    _section("education", "Education & FAQs", SectionCategory.CONTENT, _ADMIN_ONLY),
    _section("home", "Home Page", SectionCategory.CONTENT, _ADMIN_ONLY),
    _section("about", "About Page", SectionCategory.CONTENT, _ADMIN_ONLY),
    _section("contact", "Contact Page", SectionCategory.CONTENT, _ADMIN_ONLY),
    # System
    _section("settings", "Farm Settings", SectionCategory.SYSTEM, _ADMIN_ONLY),
)

PANELS: tuple[DashboardPanel, ...] = (
    DashboardPanel(id="stats", title="Farm Statistics", roles=_STAFF),
    DashboardPanel(id="admin-actions", title="Administrator Actions", roles=_ADMIN_ONLY),
    DashboardPanel(id="farm-operations", title="Farm Operations", roles=_STAFF),
    DashboardPanel(id="recent-animals", title="Recent Animals", roles=_STAFF),
    DashboardPanel(id="breeding-schedule", title="Breeding Schedule", roles=_STAFF),
)

_BY_ID = {section.id: section for section in SECTIONS}


def get_section(section_id: str) -> Optional[ManagementSection]:
    return _BY_ID.get(section_id)


def accessible_sections(role: Optional[UserRole]) -> list[ManagementSection]:
    """Sections the given role may open, in registry order."""
    if role is None:
        return []
    return [section for section in SECTIONS if role in section.roles]


def group_by_category(sections: list[ManagementSection]) -> list[SectionGroup]:
    """Group sections by category in sidebar order, skipping empty groups."""
    groups = []
    for category in SectionCategory:
        members = [s for s in sections if s.category is category]
        if members:
            groups.append(
                SectionGroup(category=category, title=category.title, sections=members)
            )
    return groups
