"""
Console module exceptions.
"""

from shared.exceptions import NotFoundError


class SectionNotFoundError(NotFoundError):
    """Raised when a console section id is unknown."""

    def __init__(self, section_id: str):
        super().__init__(
            f"Console section not found: {section_id}",
            code="SECTION_NOT_FOUND",
            details={"section_id": section_id},
        )
