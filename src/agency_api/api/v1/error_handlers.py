"""
FastAPI exception handlers that turn application exceptions into HTTP responses.

Exceptions carry their own payload (`to_payload()`) and status (`http_status()`),
so each handler only logs and wraps:

    RequestValidationFailed  -> 400 {"success": false, "message": "Validation failed", "errors": [...]}
    PersistenceError         -> 500 {"success": false, "message": "<store message>"}
    RequestValidationError   -> 400, same shape as RequestValidationFailed
                                (malformed JSON, rejected before any route code runs)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from agency_api.exceptions.base import (
    ApiError,
    PersistenceError,
    RequestValidationFailed,
    Violation,
)

logger = logging.getLogger(__name__)


async def validation_failed_handler(request: Request, exc: RequestValidationFailed) -> JSONResponse:
    logger.info("RequestValidationFailed for %s %s: fields=%s", request.method, request.url.path, exc.fields)
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    """
    500 for anything the store refused. The message is the store's own text;
    the classified kind only goes to the log.
    """
    logger.error(
        "PersistenceError for %s %s: kind=%s",
        request.method,
        request.url.path,
        exc.kind,
        extra={"failure_kind": exc.kind},
    )
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    logger.warning("ApiError for %s %s: %s", request.method, request.url.path, str(exc))
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


def _violation_from_pydantic(error: dict) -> Violation:
    loc = [str(part) for part in error.get("loc", ())]
    location = loc[0] if loc else "body"
    field = ".".join(loc[1:]) or location
    return Violation(field, error.get("msg", "Invalid value"), location=location)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Body that never reached the validator (e.g. not JSON). Reported as 400, not 422."""
    violations = [_violation_from_pydantic(error) for error in exc.errors()]
    if not violations:
        violations = [Violation("body", "Invalid request body")]
    return await validation_failed_handler(request, RequestValidationFailed(violations))


def register_exception_handlers(app: FastAPI) -> None:
    # Most specific first
    app.add_exception_handler(RequestValidationFailed, validation_failed_handler)
    app.add_exception_handler(PersistenceError, persistence_error_handler)
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
