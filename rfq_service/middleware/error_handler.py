"""
Exception handlers for the RFQ service.

Domain errors raised by the crud and service layers are rendered as a
structured envelope:

    {"error": {"code": ..., "message": ..., "path": ..., "timestamp": ..., **details}}
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from rfq_service.core.exceptions import RfqServiceError
from rfq_service.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)


def _envelope(request: Request, code: str, message: str, details: dict) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "path": request.url.path,
            "timestamp": utcnow().isoformat(),
            **details,
        }
    }


async def handle_service_error(request: Request, error: RfqServiceError) -> JSONResponse:
    """Handle typed domain errors"""
    logger.warning(
        f"{error.error_code} on {request.method} {request.url.path}: {error.message}"
    )
    return JSONResponse(
        status_code=error.status_code,
        content=_envelope(request, error.error_code, error.message, error.details),
    )


async def handle_validation_error(
    request: Request, error: RequestValidationError
) -> JSONResponse:
    """Handle request body/query validation errors"""
    errors = []
    for err in error.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        })

    logger.warning(f"Validation error on {request.method} {request.url.path}")

    return JSONResponse(
        status_code=422,
        content=_envelope(
            request, "VALIDATION_ERROR", "Request validation failed", {"errors": errors}
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RfqServiceError, handle_service_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
