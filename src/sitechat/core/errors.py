"""
Global Error Handling

This module defines the shared exception base for remote collaborators and
the application-wide exception handlers registered by ``create_app()``.

Design Goals
------------
- Never leak internal exception details to clients
- Always return deterministic, machine-readable error responses
- Log full stack traces internally for debugging
- Keep request validation failures distinct from server failures
"""

from __future__ import annotations

import logging
from typing import Dict, Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger("sitechat.errors")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class UpstreamServiceError(RuntimeError):
    """Raised when a remote collaborator (embedding, generation) fails."""


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Report malformed request payloads as a 400 client error.

    The payload carries the validation details so callers can correct the
    request. No session state is touched.
    """
    logger.info(
        "Rejected invalid payload for %s %s",
        request.method,
        request.url.path,
    )

    payload: Dict[str, Any] = {
        "error": "validation_error",
        "detail": jsonable_encoder(exc.errors()),
    }

    return JSONResponse(status_code=400, content=payload)


async def upstream_exception_handler(
    request: Request,
    exc: UpstreamServiceError,
) -> JSONResponse:
    """
    Map a failed embedding or generation call to 502 Bad Gateway.
    """
    logger.error(
        "Upstream service failure during %s %s: %s",
        request.method,
        request.url.path,
        exc,
    )

    payload: Dict[str, Any] = {
        "error": "upstream_error",
        "detail": str(exc),
    }

    return JSONResponse(status_code=502, content=payload)


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    This handler should be registered with FastAPI as the final safety net
    for any exception not otherwise handled by route-level or framework-level
    handlers.

    Behavior
    --------
    - Logs the full exception stack trace for internal diagnostics.
    - Returns a generic 500 error to the client with no internal details.
    - Ensures consistent error response format across the entire API.

    Parameters
    ----------
    request : Request
        The incoming HTTP request that triggered the exception.

    exc : Exception
        The uncaught exception instance.

    Returns
    -------
    JSONResponse
        A JSON 500 response with a minimal error payload.
    """

    # Log full traceback internally (never returned to client)
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    payload: Dict[str, Any] = {
        "error": "internal_server_error",
        "detail": "Internal server error",
    }

    return JSONResponse(
        status_code=500,
        content=payload,
    )
