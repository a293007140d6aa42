"""
Error response models.

Documents the body rendered by the FarmsiteError exception handler.
"""

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error body, as produced by ``FarmsiteError.to_dict()``."""

    error: str = Field(..., description="Machine-readable error code")
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
