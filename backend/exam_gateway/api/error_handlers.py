"""Error Handlers — global exception handlers for the exam gateway API.

Invariants:
    - ExamGatewayError → structured JSON with error code, message, severity
    - RequestValidationError → 400 with field-level details (schema closure lives here)
    - Exception (catch-all) → never leaks internal details
    - Field details name the field and error type only, never the offending input
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from exam_gateway.core.errors import ExamGatewayError, ErrorSeverity

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_gateway_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_gateway_error_handler(app: FastAPI) -> None:

    @app.exception_handler(ExamGatewayError)
    async def gateway_error_handler(request: Request, exc: ExamGatewayError):
        """Handle all gateway domain/infrastructure errors."""
        log = logger.warning if exc.http_status < 500 else logger.error
        log(
            f"ExamGatewayError: {exc.message}",
            extra={"path": request.url.path, **exc.log_fields()},
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic schema errors."""
        details = _build_validation_details(exc)
        logger.warning(
            f"Schema error on {request.url.path}: {len(details)} error(s)",
            extra={"path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": {
                    "code": "SCHEMA_ERROR",
                    "message": "Invalid request data",
                    "category": "validation",
                    "severity": ErrorSeverity.ERROR.value,
                    "details": details,
                },
            },
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {type(exc).__name__}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _build_validation_details(exc: RequestValidationError) -> list[dict]:
    # Lead errors repeat per sample; collapse to one entry per field + type
    seen: set[tuple[str, str]] = set()
    details = []
    for e in exc.errors():
        loc = [str(part) for part in e["loc"] if not isinstance(part, int)]
        entry = (".".join(loc), e["type"])
        if entry in seen:
            continue
        seen.add(entry)
        details.append({"field": entry[0], "message": e["msg"], "type": entry[1]})
    return details
