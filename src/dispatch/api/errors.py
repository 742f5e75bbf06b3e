"""Translate domain failures into structured HTTP error responses.

Every error body has the same shape::

    {"success": false, "error": {"code": ..., "message": ..., "details": {...}}}
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from dispatch.errors import (
    AuthorizationError,
    BusinessRuleError,
    DispatchError,
    NotFoundError,
    OrderValidationError,
    ServiceConfigError,
    StateTransitionError,
    TransitionConflictError,
)

logger = structlog.get_logger(__name__)

_HTTP_STATUS = {
    ServiceConfigError: 500,
    OrderValidationError: 400,
    BusinessRuleError: 400,
    StateTransitionError: 409,
    TransitionConflictError: 409,
    AuthorizationError: 403,
    NotFoundError: 404,
}


def _body(code: str, message: str, details: dict | None = None) -> dict:
    return {"success": False, "error": {"code": code, "message": message, "details": details or {}}}


def http_status_for(exc: DispatchError) -> int:
    for cls in type(exc).__mro__:
        if cls in _HTTP_STATUS:
            return _HTTP_STATUS[cls]
    return 500


async def _dispatch_error(request: Request, exc: DispatchError) -> JSONResponse:
    status = http_status_for(exc)
    if isinstance(exc, ServiceConfigError):
        # Field errors of a stored config are logged, not returned
        logger.error("Stored service configuration is invalid", path=request.url.path, details=exc.details)
        return JSONResponse(status_code=status, content=_body(exc.code, exc.message))
    return JSONResponse(status_code=status, content=_body(exc.code, exc.message, exc.details))


async def _protean_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=_body("VALIDATION_ERROR", "Request is invalid", {"fields": exc.messages}),
    )


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = {}
    for err in exc.errors():
        path = ".".join(str(part) for part in err["loc"] if part != "body")
        fields.setdefault(path or "body", []).append(err["msg"])
    return JSONResponse(
        status_code=400,
        content=_body("VALIDATION_ERROR", "Request is invalid", {"fields": fields}),
    )


async def _object_not_found(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content=_body("NOT_FOUND", "Resource not found"))


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error while processing request", path=request.url.path)
    return JSONResponse(status_code=500, content=_body("INTERNAL_ERROR", "An unexpected error occurred"))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DispatchError, _dispatch_error)
    app.add_exception_handler(ValidationError, _protean_validation_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(ObjectNotFoundError, _object_not_found)
    app.add_exception_handler(Exception, _unexpected_error)
