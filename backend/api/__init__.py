"""
Farm site API package.

Provides the FastAPI application for the farm site's sign-in flow and
management console.
"""

from .app import app, create_app

__all__ = ["app", "create_app"]
