"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from clients.ledger_client import LedgerError
from core.errors import (
    ExternalNotFoundError,
    ExternalUnavailableError,
    InvalidFieldError,
    InvariantViolationError,
    NoBillableItemsError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

# Most specific first; InvalidFieldError is also a ValueError
_DOMAIN_ERRORS: list[tuple[type[Exception], int, str]] = [
    (InvalidFieldError, 400, ErrorCodes.INVALID_FIELD),
    (NotFoundError, 404, ErrorCodes.NOT_FOUND),
    (InvariantViolationError, 409, ErrorCodes.INVARIANT_VIOLATION),
    (ExternalNotFoundError, 422, ErrorCodes.LEDGER_RECORD_NOT_FOUND),
    (NoBillableItemsError, 422, ErrorCodes.NO_BILLABLE_ITEMS),
    (ExternalUnavailableError, 503, ErrorCodes.SERVICE_UNAVAILABLE),
]


def _json(request: Request, status_code: int, code: str, message: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_response(code, message, request, details).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    for exc_class, status_code, code in _DOMAIN_ERRORS:

        def make_handler(status_code=status_code, code=code):
            async def handler(request: Request, exc: Exception):
                if status_code >= 500:
                    logger.error(f"{request.method} {request.url.path}: {exc}")
                return _json(request, status_code, code, str(exc))
            return handler

        app.add_exception_handler(exc_class, make_handler())

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        logger.error(f"Ledger rejected request on {request.url.path}: {exc}")
        return _json(request, 502, ErrorCodes.LEDGER_REJECTED, str(exc), exc.errors or None)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = [
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        ]
        return _json(request, 422, ErrorCodes.VALIDATION_ERROR, "Request validation failed", details)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return _json(request, 500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
