"""
Exception handlers.

Renders FarmsiteError subclasses with ``to_dict()`` and the status code
declared on their base class.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.exceptions import FarmsiteError

logger = logging.getLogger(__name__)


def status_code_for(exc: FarmsiteError) -> int:
    return exc.status_code


async def handle_farmsite_error(request: Request, exc: FarmsiteError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.warning(f"{request.method} {request.url.path} failed: {exc.message}")
    # Clients poll again once the auth state has settled
    headers = {"Retry-After": "1"} if status_code == 503 else None
    return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FarmsiteError, handle_farmsite_error)
