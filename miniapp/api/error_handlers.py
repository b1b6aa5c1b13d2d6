"""Error Handlers — global exception handlers for the mini app API.

Invariants:
    - MiniAppError → structured JSON with error code, message, severity
    - RequestValidationError → 400; the message names the failing form fields
      (user_id, bpm, initData) and details keep the per-field reasons
    - Exception (catch-all) → never leaks internal details

Design Decisions:
    - Three-layer handler: domain (MiniAppError), validation (Pydantic), catch-all (Exception)
    - Extracted from main.py to keep the entry point to wiring only
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from miniapp.core.errors import MiniAppError, ErrorSeverity

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_miniapp_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_miniapp_error_handler(app: FastAPI) -> None:
    """Register domain/infrastructure error handler."""

    @app.exception_handler(MiniAppError)
    async def miniapp_error_handler(request: Request, exc: MiniAppError):
        """Handle all mini app domain/infrastructure errors."""
        log = logger.error if exc.http_status >= 500 else logger.warning
        log(
            f"MiniAppError: {exc.message}",
            extra={"error_code": exc.code, "path": request.url.path},
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "Internal server error",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _failing_fields(errors: list) -> list[str]:
    """Field names from error locations, dropping the "body"/"query" prefix."""
    names: list[str] = []
    for e in errors:
        loc = [str(part) for part in e["loc"][1:]] or [str(part) for part in e["loc"]]
        name = ".".join(loc)
        if name not in names:
            names.append(name)
    return names


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    """Build structured validation error response."""
    errors = exc.errors()
    fields = _failing_fields(errors)
    message = "Invalid request data"
    if fields:
        message = f"{message}: {', '.join(fields)}"
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": message,
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in errors
            ],
        },
    }
