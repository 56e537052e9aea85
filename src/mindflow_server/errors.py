"""Global exception handlers — map SDK exceptions to HTTP status codes.

The SDK raises ``ValueError`` for flow-level conditions (flow not found,
wrong status, duplicate flow id, corrupt snapshot).  Global handlers
inspect the message and pick the status code so routes stay focused on
the happy path.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

# Checked in order; first match wins.
_VALUE_ERROR_PATTERNS: list[tuple[str, int]] = [
    ("already exists", 409),
    ("not found", 404),
    ("only valid during", 409),
]

# Internal details (user ids, flow ids) stay in the server log
_SAFE_MESSAGES: dict[int, str] = {
    404: "Resource not found",
    409: "Flow is not in a state that allows this action",
    400: "Invalid request",
}


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Map SDK ``ValueError`` to 404, 409 or 400.

    The raw exception message is logged server-side but never sent to the
    client.
    """
    msg = str(exc)
    status = 400
    for pattern, code in _VALUE_ERROR_PATTERNS:
        if pattern in msg.lower():
            status = code
            break

    if status == 409 and "already exists" in msg.lower():
        detail = "Resource already exists"
    else:
        detail = _SAFE_MESSAGES.get(status, "Invalid request")

    logger.warning("ValueError [%d] at %s: %s", status, request.url, msg)
    return JSONResponse(status_code=status, content={"detail": detail})


async def key_error_handler(request: Request, exc: KeyError) -> JSONResponse:
    """Map ``KeyError`` (unknown flow definition) to 404."""
    logger.warning("KeyError at %s: %s", request.url, exc)
    return JSONResponse(status_code=404, content={"detail": "Resource not found"})


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — log full traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
