"""
Health check endpoints.

Provides endpoints for monitoring application health and readiness.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from modules.auth.interfaces import IAuthSessionManager
from modules.auth.models import AuthState
from shared.config import get_settings

from ..dependencies import get_auth_manager

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    auth_state: AuthState


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the API is running.
    """
    return HealthResponse(status="healthy", version=get_settings().app_version)


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(
    manager: IAuthSessionManager = Depends(get_auth_manager),
) -> ReadinessResponse:
    """
    Readiness check endpoint.

    Ready once the auth session manager has left its loading states.
    """
    snapshot = manager.snapshot
    return ReadinessResponse(
        status="starting" if snapshot.loading else "ready",
        auth_state=snapshot.state,
    )
