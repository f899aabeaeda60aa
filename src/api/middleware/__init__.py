"""
API Middleware - Request/response processing

Exception handlers turn domain and validation errors into {"error": ...}
JSON responses.
"""

from .error_handler import (
    DomainError,
    DatabaseUnavailableError,
    DescriptionRequiredError,
    InvalidRequestBodyError,
    StoreOperationFailedError,
    register_exception_handlers,
)

__all__ = [
    "DomainError",
    "DatabaseUnavailableError",
    "DescriptionRequiredError",
    "InvalidRequestBodyError",
    "StoreOperationFailedError",
    "register_exception_handlers",
]
