"""
Error handling middleware for API

FastAPI lets us define custom handlers for specific exception types.
When an exception is raised anywhere in the request, FastAPI catches it
and calls the appropriate handler to return a formatted error response.

Every error leaves the service in the same shape: {"error": "<message>"}.

This file defines handlers for:
- Validation errors (body is not a JSON object / description not a string)
- Domain errors (database unavailable, description missing, store failure)
- Generic errors (unexpected problems)
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from utils.logger import get_logger
from models.enums import LogCategory

log = get_logger().for_category(LogCategory.API)


class DomainError(Exception):
    """Base class for domain-specific errors"""
    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class DatabaseUnavailableError(DomainError):
    """Store is not connected; raised before any store call"""
    def __init__(self):
        super().__init__(
            code="DATABASE_UNAVAILABLE",
            message="Database unavailable",
            status_code=503
        )


class DescriptionRequiredError(DomainError):
    """POST /tasks without a (non-empty) description"""
    def __init__(self):
        super().__init__(
            code="DESCRIPTION_REQUIRED",
            message="Description is required",
            status_code=400
        )


class InvalidRequestBodyError(DomainError):
    """Body is not a JSON object, or a field has the wrong type"""
    def __init__(self):
        super().__init__(
            code="INVALID_REQUEST_BODY",
            message="Invalid request body",
            status_code=400
        )


class StoreOperationFailedError(DomainError):
    """A store command failed; the message is passed to the caller"""
    def __init__(self, message: str):
        super().__init__(
            code="STORE_OPERATION_FAILED",
            message=message,
            status_code=500
        )


def error_body(message: str) -> dict:
    return {"error": message}


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with FastAPI app"""

    # Handle validation errors (bad request format)
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle Pydantic validation errors (bad JSON structure)"""
        errors = exc.errors()
        log.warn(
            f"Validation error on {request.method} {request.url.path}: {len(errors)} error(s)",
            first=errors[0].get("msg") if errors else None
        )

        error = InvalidRequestBodyError()
        return JSONResponse(
            status_code=error.status_code,
            content=error_body(error.message)
        )

    # Handle domain-specific errors (our custom exceptions)
    @app.exception_handler(DomainError)
    async def domain_exception_handler(request: Request, exc: DomainError):
        """Handle domain-specific business logic errors"""
        if exc.status_code >= 500:
            log.error(f"Domain error on {request.method} {request.url.path}: {exc.code} - {exc.message}")
        else:
            log.warn(f"Domain error on {request.method} {request.url.path}: {exc.code} - {exc.message}")

        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message)
        )

    # Handle unexpected errors (server errors)
    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected errors"""
        log.error(
            f"Unexpected error on {request.method} {request.url.path}: {type(exc).__name__}: {exc}",
            exc_info=exc
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("Internal server error")
        )
