"""Domain errors raised by the scheduling core.

Each error carries the HTTP status it maps to; ``register_error_handlers``
renders them as ``{"detail": message}``.
"""

import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class SalonError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SalonError):
    """Missing or malformed input."""
    status_code = 400


class InvalidAssignment(ValidationError):
    """Staff member is not permitted to perform the requested service."""


class NotFound(SalonError):
    status_code = 404


class Forbidden(SalonError):
    status_code = 403


class PolicyViolation(SalonError):
    """Notice period, terminal state or unpaid gate."""
    status_code = 400


class ConflictError(SalonError):
    """Overlapping booking or a slot outside working hours."""
    status_code = 400

    def __init__(self, message: str, staff_id=None, reason: str | None = None):
        super().__init__(message)
        self.staff_id = staff_id
        self.reason = reason


class ProviderError(SalonError):
    """Payment gateway failure; the provider's message is surfaced."""
    status_code = 500

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider} error: {message}")
        self.provider = provider


async def salon_error_handler(request: Request, exc: SalonError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%d): %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SalonError, salon_error_handler)
