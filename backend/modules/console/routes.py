"""
Management console endpoints.

The whole console is reserved for farm staff and administrators; each
section and dashboard panel narrows that further.
"""

from fastapi import APIRouter, Depends

from api.middleware.auth import enforce_access, get_auth_snapshot, require_roles
from modules.access import AccessGate
from modules.auth.models import AuthSnapshot, AuthenticatedUser
from shared.models import UserRole

from .exceptions import SectionNotFoundError
from .models import ConsoleView, DashboardPanel, ManagementSection, SectionGroup
from .registry import (
    CONSOLE_ROLES,
    PANELS,
    accessible_sections,
    get_section,
    group_by_category,
)

router = APIRouter()

_panel_gate: AccessGate[DashboardPanel] = AccessGate()

_SUMMARIES = {
    UserRole.ADMINISTRATOR: (
        "You have full administrative access to manage the farm website and operations."
    ),
    UserRole.FARM: "Manage your farm operations, livestock, and inventory from this dashboard.",
}


def visible_panels(snapshot: AuthSnapshot) -> list[DashboardPanel]:
    """Dashboard panels the snapshot's user may see; the rest are hidden."""
    panels = []
    for panel in PANELS:
        rendered = _panel_gate.render(
            snapshot,
            panel.roles,
            content=lambda panel=panel: panel,
            hide_if_denied=True,
        )
        if isinstance(rendered, DashboardPanel):
            panels.append(rendered)
    return panels


@router.get("", response_model=ConsoleView)
async def get_console(
    user: AuthenticatedUser = Depends(require_roles(*CONSOLE_ROLES)),
    snapshot: AuthSnapshot = Depends(get_auth_snapshot),
) -> ConsoleView:
    """
    Console landing page: greeting, accessible sections and panels.
    """
    return ConsoleView(
        user=user,
        greeting=f"Welcome back, {user.full_name or user.email}",
        summary=_SUMMARIES.get(user.role),
        groups=group_by_category(accessible_sections(user.role)),
        panels=visible_panels(snapshot),
    )


@router.get("/sections", response_model=list[SectionGroup])
async def list_console_sections(
    user: AuthenticatedUser = Depends(require_roles(*CONSOLE_ROLES)),
) -> list[SectionGroup]:
    """Sections the signed-in staff member may open, grouped for the sidebar."""
    return group_by_category(accessible_sections(user.role))


@router.get("/sections/{section_id}", response_model=ManagementSection)
async def get_console_section(
    section_id: str,
    user: AuthenticatedUser = Depends(require_roles(*CONSOLE_ROLES)),
    snapshot: AuthSnapshot = Depends(get_auth_snapshot),
) -> ManagementSection:
    """
    Open a console section.

    Returns 403 when the section needs a role the user lacks.
    """
    section = get_section(section_id)
    if section is None:
        raise SectionNotFoundError(section_id)
    enforce_access(snapshot, section.roles)
    return section
