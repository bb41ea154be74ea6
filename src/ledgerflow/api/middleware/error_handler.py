"""Global error handling.

All exceptions are converted to the same JSON body:
``{error, error_code, message, user_message, suggestion, retry_allowed}``.
"""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from ledgerflow.config import settings
from ledgerflow.core.errors import error_body
from ledgerflow.core.exceptions import LedgerError

logger = logging.getLogger(__name__)


def _request_extra(request: Request) -> dict:
    return {"path": request.url.path, "method": request.method}


async def handle_ledger_error(request: Request, exc: LedgerError) -> JSONResponse:
    """Handle exceptions raised by the ledger services."""
    extra = {"error_code": exc.error_code, **_request_extra(request)}
    if settings.debug:
        extra["details"] = exc.details

    log = logger.error if exc.http_status >= 500 else logger.warning
    log(f"Ledger error: {exc.error_code}", extra=extra)

    return JSONResponse(status_code=exc.http_status, content=error_body(exc.error_code, exc.message))


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors as 400 with field-level messages."""
    errors = exc.errors()
    error_messages = []
    for error in errors:
        field = ".".join(str(x) for x in error.get("loc", []))
        error_messages.append(f"{field}: {error.get('msg', 'Invalid value')}")

    extra = _request_extra(request)
    if settings.debug:
        extra["errors"] = errors
    logger.warning(f"Validation error on {request.url.path}", extra=extra)

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("VAL_001", " | ".join(error_messages) or None),
    )


async def handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
    """Handle database integrity errors: unique violations are 409, the rest 500."""
    # str(exc) can include SQL and bound parameters.
    if settings.debug:
        logger.exception(f"Database integrity error on {request.url.path}", extra=_request_extra(request))
    else:
        logger.error(f"Database integrity error on {request.url.path}", extra=_request_extra(request))

    error_msg = str(exc.orig).lower() if exc.orig is not None else str(exc).lower()
    if "unique" in error_msg or "duplicate" in error_msg:
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=error_body("DB_002"))

    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=error_body("DB_001"))


async def handle_generic_error(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without exposing internal details."""
    extra = {"error_type": type(exc).__name__, **_request_extra(request)}
    if settings.debug:
        logger.exception(f"Unexpected error on {request.url.path}", extra=extra)
    else:
        logger.error(f"Unexpected error on {request.url.path}", extra=extra)

    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=error_body("SYS_001"))
