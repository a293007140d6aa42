"""Tests for the console section registry."""

from modules.console import (
    CONSOLE_ROLES,
    SECTIONS,
    SectionCategory,
    accessible_sections,
    get_section,
    group_by_category,
)
from shared.models import UserRole


class TestRegistry:
    def test_section_ids_are_unique(self):
        ids = [section.id for section in SECTIONS]
        assert len(ids) == len(set(ids))

    def test_every_section_is_staff_only(self):
        """Customers never see console sections."""
        for section in SECTIONS:
            assert set(section.roles) <= set(CONSOLE_ROLES)
            assert UserRole.ADMINISTRATOR in section.roles

    def test_get_section(self):
        assert get_section("animals").name == "Animals"
        assert get_section("missing") is None

    def test_administrator_sees_everything(self):
        assert accessible_sections(UserRole.ADMINISTRATOR) == list(SECTIONS)

    def test_farm_user_sees_operations_only(self):
        sections = accessible_sections(UserRole.FARM)
        categories = {section.category for section in sections}
        assert categories == {
            SectionCategory.DASHBOARD,
            SectionCategory.LIVESTOCK,
            SectionCategory.BUSINESS,
        }
        assert get_section("settings") not in sections

    def test_customer_and_anonymous_see_nothing(self):
        assert accessible_sections(UserRole.CUSTOMER) == []
        assert accessible_sections(None) == []

    def test_group_by_category_keeps_order(self):
        groups = group_by_category(accessible_sections(UserRole.ADMINISTRATOR))
        assert [group.category for group in groups] == list(SectionCategory)
        assert groups[1].title == "Livestock Management"

    def test_group_by_category_skips_empty(self):
        groups = group_by_category(accessible_sections(UserRole.FARM))
        assert SectionCategory.CONTENT not in [group.category for group in groups]
